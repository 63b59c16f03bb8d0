"""
Pydantic schemas for the statistics service wire format.
"""

from pydantic import BaseModel, Field, field_validator

from app.core import clock
from app.core.clock import FormattedDateTime


class HitCreate(BaseModel):
    app: str = Field(..., min_length=1, max_length=255)
    uri: str = Field(..., min_length=1, max_length=512)
    ip: str = Field(..., min_length=1, max_length=64)
    timestamp: FormattedDateTime

    @field_validator("app", "uri", "ip")
    @classmethod
    def not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Field must not be blank")
        return value

    @field_validator("timestamp")
    @classmethod
    def not_in_future(cls, value):
        if value > clock.now():
            raise ValueError("Hit timestamp must not be in the future")
        return value


class ViewStats(BaseModel):
    app: str
    uri: str
    hits: int

    model_config = {"from_attributes": True}
