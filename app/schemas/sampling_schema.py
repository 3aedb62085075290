from datetime import datetime
from typing import Literal, Optional
from pydantic import Field, field_validator

from app.schemas.common import FormModel, normalize_timestamp

BottleStatus = Literal["empty", "filled", "processed", "archived"]


class SampleCaptureIn(FormModel):
    niskin_id: int
    actual_pressure: float = Field(..., ge=0)
    captured: bool = True
    timestamp: Optional[datetime] = None
    target_depth_id: Optional[int] = None
    notes: Optional[str] = None

    @field_validator("timestamp", mode="before")
    @classmethod
    def _normalize_timestamp(cls, v):
        return normalize_timestamp(v)


class BottleCreate(FormModel):
    niskin_id: int
    sample_type_id: int
    bottle_number: int = Field(..., ge=1)
    is_duplicate: bool = False
    duplicate_sequence: Optional[int] = Field(default=None, ge=1)
    capacity_ml: Optional[int] = Field(default=None, ge=1)
    status: BottleStatus = "empty"


class BottleStatusUpdate(FormModel):
    status: BottleStatus


class BottleReplacementIn(FormModel):
    replacement_bottle_id: int
    reason: Optional[str] = Field(default=None, max_length=255)
    notes: Optional[str] = None


class SamplingSessionOpen(FormModel):
    start: Optional[datetime] = None
    notes: Optional[str] = None

    @field_validator("start", mode="before")
    @classmethod
    def _normalize_start(cls, v):
        return normalize_timestamp(v)


class SamplingSessionClose(FormModel):
    end: Optional[datetime] = None

    @field_validator("end", mode="before")
    @classmethod
    def _normalize_end(cls, v):
        return normalize_timestamp(v)


class SampleTimingIn(FormModel):
    sample_type_id: int
    time_limit_hours: int = Field(..., ge=1)
    set_datetime: Optional[datetime] = None
    notes: Optional[str] = None

    @field_validator("set_datetime", mode="before")
    @classmethod
    def _normalize_set(cls, v):
        return normalize_timestamp(v)
