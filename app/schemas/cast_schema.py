"""
Cast and phase payloads.

Position phases accept the GPS fix as `latitude`, `longitude` and
`timestamp`; anything extra the browser sends (accuracy) is ignored.
"""

from datetime import datetime
from typing import Optional
from pydantic import Field, field_validator

from app.schemas.common import FormModel, normalize_timestamp



class CastCreate(FormModel):
    ship_id: int
    station_id: int
    cruise_id: int
    cast_number: int = Field(..., ge=1)
    notes: Optional[str] = None


class CastSensorIn(FormModel):
    sensor_id: int
    position_order: int = Field(..., ge=1)
    sequence_number: Optional[int] = Field(default=None, ge=1)
    notes: Optional[str] = None


class PhaseIn(FormModel):
    timestamp: Optional[datetime] = None
    notes: Optional[str] = None

    @field_validator("timestamp", mode="before")
    @classmethod
    def _normalize_timestamp(cls, v):
        return normalize_timestamp(v)


class OptionalPositionIn(PhaseIn):
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)


class RequiredPositionIn(PhaseIn):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


class PreCastIn(OptionalPositionIn):
    pressure_test: Optional[float] = Field(default=None, ge=0)


class BeginningPositionIn(RequiredPositionIn):
    depth: Optional[float] = Field(default=None, ge=0)


class AtDepthPositionIn(RequiredPositionIn):
    depth: Optional[float] = Field(default=None, ge=0)


class CaptureStartIn(PhaseIn):
    markscan_start: Optional[int] = Field(default=None, ge=0)


class BottomDepthIn(OptionalPositionIn):
    height_above_bottom: Optional[float] = Field(default=None, ge=0)
    max_pressure: Optional[float] = Field(default=None, ge=0)
    winch_payout: Optional[float] = Field(default=None, ge=0)


class EndingPositionIn(RequiredPositionIn):
    depth: Optional[float] = Field(default=None, ge=0)


class OnDeckPositionIn(RequiredPositionIn):
    pass


class PostCastIn(FormModel):
    pressure_check: Optional[float] = Field(default=None, ge=0)
    real_time_data_stop: bool = False
    real_time_data_stop_datetime: Optional[datetime] = None
    deck_unit_off: bool = False
    deck_unit_off_datetime: Optional[datetime] = None
    notes: Optional[str] = None

    @field_validator("real_time_data_stop_datetime", "deck_unit_off_datetime", mode="before")
    @classmethod
    def _normalize_timestamps(cls, v):
        return normalize_timestamp(v)
