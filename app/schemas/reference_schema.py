from typing import Literal, Optional
from pydantic import Field

from app.schemas.common import FormModel

SensorStatus = Literal["operational", "maintenance", "broken", "retired"]
NiskinStatus = Literal["ready", "deployed", "maintenance", "broken"]


class ShipIn(FormModel):
    ship_name: str = Field(..., min_length=1, max_length=100)
    ship_number: Optional[int] = None
    ship_abbreviation: Optional[str] = Field(default=None, max_length=20)


class CruiseIn(FormModel):
    cruise_number: int
    cruise_name: str = Field(..., min_length=1, max_length=100)
    cruise_abbreviation: Optional[str] = Field(default=None, max_length=20)


class StationIn(FormModel):
    cruise_id: int
    station_number: str = Field(..., min_length=1, max_length=50)
    station_name: str = Field(..., min_length=1, max_length=100)
    station_abbreviation: Optional[str] = Field(default=None, max_length=20)
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)


class TargetDepthIn(FormModel):
    target_pressure: float = Field(..., ge=0)
    sequence_order: int = Field(..., ge=1)
    niskin_position: Optional[int] = Field(default=None, ge=1)
    notes: Optional[str] = None


class SensorIn(FormModel):
    sensor_type: str = Field(..., min_length=1, max_length=100)
    vin_number: Optional[str] = Field(default=None, max_length=100)
    status: SensorStatus = "operational"
    in_use: bool = False
    backup_available: bool = False
    notes: Optional[str] = None


class SensorStatusUpdate(FormModel):
    status: SensorStatus


class NiskinIn(FormModel):
    niskin_number: int = Field(..., ge=1)
    status: NiskinStatus = "ready"
    notes: Optional[str] = None


class NiskinStatusUpdate(FormModel):
    status: NiskinStatus


class SampleTypeIn(FormModel):
    type_name: str = Field(..., min_length=1, max_length=100)
    abbreviation: Optional[str] = Field(default=None, max_length=20)
    description: Optional[str] = None


class ActiveUpdate(FormModel):
    active: bool
