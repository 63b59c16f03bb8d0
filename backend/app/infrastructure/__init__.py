"""
Infrastructure layer - external system integrations.
Keeps business logic clean from implementation details.
"""

from .stats_client import StatsClient, get_stats_client, close_stats_client

__all__ = ['StatsClient', 'get_stats_client', 'close_stats_client']
