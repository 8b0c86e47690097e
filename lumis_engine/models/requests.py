"""Pydantic request bodies accepted at the HTTP boundary."""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field

from lumis_engine.domain.enums import ActivityType
from lumis_engine.domain.sensor import ConfidenceInputs, GeoLocation


class RegisterUserRequest(BaseModel):
    program_start: Optional[date] = Field(default=None, description="First program day; defaults to today (UTC)")
    timezone: Optional[str] = Field(default=None, description="IANA zone used for early-bird checks")


class StartSessionRequest(BaseModel):
    activity_type: ActivityType = Field(..., description="Activity the user claims")
    started_at: Optional[datetime] = Field(default=None)


class WindowRequest(BaseModel):
    """A pre-summarised evaluation window from the client."""

    started_at: datetime
    ended_at: datetime
    inputs: ConfidenceInputs
    steps: int = Field(default=0, ge=0)
    lux: Optional[float] = None


class ClosePendingWindowRequest(BaseModel):
    """Close the session's buffered samples into one window."""

    location: GeoLocation
    ended_at: Optional[datetime] = None
    cloud_cover_percent: float = Field(default=0.0, ge=0.0, le=100.0)


class RolloverRequest(BaseModel):
    new_day: date = Field(..., description="The day being opened; the previous day is closed")
