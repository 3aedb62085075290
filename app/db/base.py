from app.db.base_class import Base

# Import all models here for Alembic
from app.models.user import User, Role, UserRole
from app.models.ship import Ship
from app.models.cruise import Cruise
from app.models.station import Station, StationTargetDepth
from app.models.equipment import SensorInventory, NiskinBottle
from app.models.sample_type import SampleType
from app.models.cast import CTDCast, CastSensor
from app.models.phases import (
    PreCast,
    BeginningPosition,
    AtDepthPosition,
    CaptureStart,
    BottomDepthPosition,
    EndingPosition,
    OnDeckPosition,
    PostCast,
)
from app.models.sample_pressure import SamplePressure
from app.models.bottle import Bottle, BottleReplacement
from app.models.sampling_session import SamplingSession, SampleTiming
