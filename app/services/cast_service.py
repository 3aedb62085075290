"""
Cast Lifecycle Service
----------------------
Creates CTD casts and records their phase sub-records:
 - pre-cast check, beginning / at-depth positions, capture start
 - bottom depth, ending / on-deck positions, post-cast shutdown

Every phase save is a whole-record upsert keyed by the cast: the latest
submission replaces the previous one field for field, and missing optional
fields are stored as null. Phases may arrive in any order; gaps only
produce advisory warnings.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Tuple, Type

from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.context import RequestContext
from app.core.exceptions import NotFoundError, StorageError, ValidationError
from app.core.logging_config import log_activity
from app.db.base_class import Base
from app.db.session import transaction
from app.models.cast import CastSensor, CTDCast
from app.models.cruise import Cruise
from app.models.equipment import SensorInventory
from app.models.phases import (
    AtDepthPosition,
    BeginningPosition,
    BottomDepthPosition,
    CaptureStart,
    EndingPosition,
    OnDeckPosition,
    PostCast,
    PreCast,
)
from app.models.ship import Ship
from app.models.station import Station
from app.models.user import User
from app.schemas.cast_schema import (
    AtDepthPositionIn,
    BeginningPositionIn,
    BottomDepthIn,
    CastCreate,
    CastSensorIn,
    CaptureStartIn,
    EndingPositionIn,
    OnDeckPositionIn,
    PostCastIn,
    PreCastIn,
)
from app.schemas.common import parse_payload
from app.services.common import get_or_404, to_dict
from app.utils.time_utils import utcnow

logger = logging.getLogger(__name__)


# -------------------------------------------------------------------------
# Phase registry
# -------------------------------------------------------------------------
class CastState(str, Enum):
    CREATED = "created"
    PRE_CAST_RECORDED = "pre_cast_recorded"
    BEGINNING_POSITION_RECORDED = "beginning_position_recorded"
    AT_DEPTH_RECORDED = "at_depth_recorded"
    CAPTURE_STARTED = "capture_started"
    BOTTOM_DEPTH_RECORDED = "bottom_depth_recorded"
    SAMPLES_IN_PROGRESS = "samples_in_progress"
    ENDING_POSITION_RECORDED = "ending_position_recorded"
    ON_DECK_RECORDED = "on_deck_recorded"
    POST_CAST_RECORDED = "post_cast_recorded"


@dataclass(frozen=True)
class PhaseSpec:
    key: str
    model: Type[Base]
    schema: Type[BaseModel]
    relation: str  # attribute on CTDCast
    state: CastState
    fields: Dict[str, str]  # payload field -> model attribute
    timestamp: Optional[str] = None  # attribute defaulted to "now" when omitted


PHASES: Dict[str, PhaseSpec] = {
    phase_spec.key: phase_spec
    for phase_spec in (
        PhaseSpec(
            "pre_cast", PreCast, PreCastIn, "pre_cast", CastState.PRE_CAST_RECORDED,
            {
                "pressure_test": "pre_cast_pressure_test",
                "timestamp": "pre_cast_datetime",
                "latitude": "pre_cast_latitude",
                "longitude": "pre_cast_longitude",
                "notes": "notes",
            },
            timestamp="pre_cast_datetime",
        ),
        PhaseSpec(
            "beginning_position", BeginningPosition, BeginningPositionIn, "beginning_position",
            CastState.BEGINNING_POSITION_RECORDED,
            {
                "timestamp": "begin_datetime",
                "latitude": "begin_latitude",
                "longitude": "begin_longitude",
                "depth": "begin_depth",
                "notes": "notes",
            },
            timestamp="begin_datetime",
        ),
        PhaseSpec(
            "at_depth", AtDepthPosition, AtDepthPositionIn, "at_depth_position", CastState.AT_DEPTH_RECORDED,
            {
                "timestamp": "at_depth_datetime",
                "latitude": "at_depth_latitude",
                "longitude": "at_depth_longitude",
                "depth": "at_depth_depth",
                "notes": "notes",
            },
            timestamp="at_depth_datetime",
        ),
        PhaseSpec(
            "capture_start", CaptureStart, CaptureStartIn, "capture_start", CastState.CAPTURE_STARTED,
            {
                "markscan_start": "markscan_start",
                "timestamp": "markscan_start_datetime",
                "notes": "notes",
            },
            timestamp="markscan_start_datetime",
        ),
        PhaseSpec(
            "bottom_depth", BottomDepthPosition, BottomDepthIn, "bottom_depth_position",
            CastState.BOTTOM_DEPTH_RECORDED,
            {
                "timestamp": "bottom_datetime",
                "latitude": "bottom_latitude",
                "longitude": "bottom_longitude",
                "height_above_bottom": "height_above_bottom",
                "max_pressure": "max_pressure",
                "winch_payout": "winch_payout",
                "notes": "notes",
            },
            timestamp="bottom_datetime",
        ),
        PhaseSpec(
            "ending_position", EndingPosition, EndingPositionIn, "ending_position",
            CastState.ENDING_POSITION_RECORDED,
            {
                "timestamp": "end_datetime",
                "latitude": "end_latitude",
                "longitude": "end_longitude",
                "depth": "end_depth",
                "notes": "notes",
            },
            timestamp="end_datetime",
        ),
        PhaseSpec(
            "on_deck", OnDeckPosition, OnDeckPositionIn, "on_deck_position", CastState.ON_DECK_RECORDED,
            {
                "timestamp": "on_deck_datetime",
                "latitude": "on_deck_latitude",
                "longitude": "on_deck_longitude",
                "notes": "notes",
            },
            timestamp="on_deck_datetime",
        ),
        PhaseSpec(
            "post_cast", PostCast, PostCastIn, "post_cast", CastState.POST_CAST_RECORDED,
            {
                "pressure_check": "post_cast_pressure_check",
                "real_time_data_stop": "real_time_data_stop",
                "real_time_data_stop_datetime": "real_time_data_stop_datetime",
                "deck_unit_off": "deck_unit_off",
                "deck_unit_off_datetime": "deck_unit_off_datetime",
                "notes": "notes",
            },
        ),
    )
}

# Operational order; "samples" is the sample-pressure stage between bottom and ending.
LIFECYCLE: List[Tuple[str, CastState]] = [
    ("pre_cast", CastState.PRE_CAST_RECORDED),
    ("beginning_position", CastState.BEGINNING_POSITION_RECORDED),
    ("at_depth", CastState.AT_DEPTH_RECORDED),
    ("capture_start", CastState.CAPTURE_STARTED),
    ("bottom_depth", CastState.BOTTOM_DEPTH_RECORDED),
    ("samples", CastState.SAMPLES_IN_PROGRESS),
    ("ending_position", CastState.ENDING_POSITION_RECORDED),
    ("on_deck", CastState.ON_DECK_RECORDED),
    ("post_cast", CastState.POST_CAST_RECORDED),
]


def _get_cast(db: Session, cast_id: int) -> CTDCast:
    return get_or_404(db, CTDCast, cast_id, "Cast")


def _stage_present(cast: CTDCast, stage: str) -> bool:
    if stage == "samples":
        return len(cast.sample_pressures) > 0
    return getattr(cast, PHASES[stage].relation) is not None


# -------------------------------------------------------------------------
# Cast creation and queries
# -------------------------------------------------------------------------
def create_cast(db: Session, data, context: RequestContext) -> CTDCast:
    """Create a cast; ship, station, cruise and observer are fixed from here on."""
    payload = parse_payload(CastCreate, data)

    get_or_404(db, Ship, payload.ship_id)
    get_or_404(db, Cruise, payload.cruise_id)
    station = get_or_404(db, Station, payload.station_id)
    get_or_404(db, User, context.user_id)

    if station.cruise_id != payload.cruise_id:
        raise ValidationError(
            f"Station {station.station_id} does not belong to cruise {payload.cruise_id}", ["station_id"]
        )

    with transaction(db, "creating cast"):
        cast = CTDCast(
            ship_id=payload.ship_id,
            station_id=payload.station_id,
            cruise_id=payload.cruise_id,
            observer_user_id=context.user_id,
            cast_number=payload.cast_number,
            notes=payload.notes or "",
        )
        db.add(cast)

    log_activity(
        "CTD cast created",
        f"Cast ID: {cast.ctd_cast_log_id} | Station: {station.station_name} | Cast #: {cast.cast_number}",
        username=context.username,
    )
    return cast


def _cast_summary(cast: CTDCast) -> dict:
    return {
        "ctd_cast_log_id": cast.ctd_cast_log_id,
        "cast_number": cast.cast_number,
        "cast_date": cast.cast_date,
        "created_at": cast.created_at,
        "notes": cast.notes,
        "ship_id": cast.ship_id,
        "ship_name": cast.ship.ship_name,
        "station_id": cast.station_id,
        "station_name": cast.station.station_name,
        "cruise_id": cast.cruise_id,
        "cruise_name": cast.cruise.cruise_name,
        "observer_user_id": cast.observer_user_id,
        "observer_name": cast.observer.full_name,
    }


def get_cast(db: Session, cast_id: int) -> dict:
    return _cast_summary(_get_cast(db, cast_id))


def list_recent_casts(db: Session, limit: int = 20) -> List[dict]:
    casts = db.execute(
        select(CTDCast)
        .order_by(CTDCast.created_at.desc(), CTDCast.ctd_cast_log_id.desc())
        .limit(limit)
    ).scalars().all()
    return [_cast_summary(cast) for cast in casts]


def get_cast_state(db: Session, cast_id: int) -> CastState:
    """Furthest lifecycle stage that has a record, regardless of gaps before it."""
    cast = _get_cast(db, cast_id)
    state = CastState.CREATED
    for stage, stage_state in LIFECYCLE:
        if _stage_present(cast, stage):
            state = stage_state
    return state


def missing_before(cast: CTDCast, phase_key: str) -> List[str]:
    """Earlier phases (not sample captures) with no record yet."""
    missing = []
    for stage, _ in LIFECYCLE:
        if stage == phase_key:
            break
        if stage != "samples" and not _stage_present(cast, stage):
            missing.append(stage)
    return missing


def get_cast_detail(db: Session, cast_id: int) -> dict:
    cast = _get_cast(db, cast_id)
    detail = _cast_summary(cast)
    detail["state"] = get_cast_state(db, cast_id).value
    detail["phases"] = {key: to_dict(getattr(cast, phase_spec.relation)) for key, phase_spec in PHASES.items()}
    detail["sensors"] = [_sensor_row(cs) for cs in cast.sensors]
    detail["sample_pressures"] = [to_dict(sp) for sp in cast.sample_pressures]
    return detail


# -------------------------------------------------------------------------
# Phase upserts
# -------------------------------------------------------------------------
def upsert_phase(
    db: Session, cast_id: int, phase_key: str, data, context: Optional[RequestContext] = None
) -> Tuple[Base, List[str]]:
    """
    Insert or fully replace one phase record of a cast.

    Returns the stored record and advisory warnings for earlier phases that
    have not been recorded. Warnings never block the save.
    """
    phase_spec = PHASES.get(phase_key)
    if phase_spec is None:
        raise ValidationError(f"Unknown cast phase '{phase_key}'", ["phase"])

    cast = _get_cast(db, cast_id)
    payload = parse_payload(phase_spec.schema, data)

    values = {attr: getattr(payload, field) for field, attr in phase_spec.fields.items()}
    if phase_spec.timestamp and values[phase_spec.timestamp] is None:
        values[phase_spec.timestamp] = utcnow()

    warnings = [f"{name} has not been recorded yet" for name in missing_before(cast, phase_key)]

    try:
        record = _write_phase(db, cast, phase_spec, values)
    except StorageError as e:
        # another terminal inserted the same phase first; overwrite it
        if not isinstance(e.__cause__, IntegrityError):
            raise
        db.expire(cast)
        record = _write_phase(db, cast, phase_spec, values)

    username = context.username if context else None
    log_activity("Cast phase saved", f"Cast ID: {cast_id} | Phase: {phase_key}", username=username)
    if warnings:
        logger.info(f"Cast {cast_id} phase {phase_key} saved out of order: {warnings}")
    return record, warnings


def _write_phase(db: Session, cast: CTDCast, phase_spec: PhaseSpec, values: dict) -> Base:
    with transaction(db, f"saving {phase_spec.key}"):
        record = getattr(cast, phase_spec.relation)
        if record is None:
            record = phase_spec.model(**values)
            setattr(cast, phase_spec.relation, record)
        else:
            for attr, value in values.items():
                setattr(record, attr, value)
        record.updated_at = utcnow()
    return record


def get_phase(db: Session, cast_id: int, phase_key: str) -> Optional[dict]:
    phase_spec = PHASES.get(phase_key)
    if phase_spec is None:
        raise ValidationError(f"Unknown cast phase '{phase_key}'", ["phase"])
    return to_dict(getattr(_get_cast(db, cast_id), phase_spec.relation))


def save_pre_cast(db: Session, cast_id: int, data, context: Optional[RequestContext] = None):
    return upsert_phase(db, cast_id, "pre_cast", data, context)


def save_beginning_position(db: Session, cast_id: int, data, context: Optional[RequestContext] = None):
    return upsert_phase(db, cast_id, "beginning_position", data, context)


def save_at_depth_position(db: Session, cast_id: int, data, context: Optional[RequestContext] = None):
    return upsert_phase(db, cast_id, "at_depth", data, context)


def save_capture_start(db: Session, cast_id: int, data, context: Optional[RequestContext] = None):
    return upsert_phase(db, cast_id, "capture_start", data, context)


def save_bottom_depth(db: Session, cast_id: int, data, context: Optional[RequestContext] = None):
    return upsert_phase(db, cast_id, "bottom_depth", data, context)


def save_ending_position(db: Session, cast_id: int, data, context: Optional[RequestContext] = None):
    return upsert_phase(db, cast_id, "ending_position", data, context)


def save_on_deck_position(db: Session, cast_id: int, data, context: Optional[RequestContext] = None):
    return upsert_phase(db, cast_id, "on_deck", data, context)


def save_post_cast(db: Session, cast_id: int, data, context: Optional[RequestContext] = None):
    return upsert_phase(db, cast_id, "post_cast", data, context)


# -------------------------------------------------------------------------
# Deletion
# -------------------------------------------------------------------------
def delete_cast(db: Session, cast_id: int, context: Optional[RequestContext] = None) -> None:
    """Remove a cast with its phases, sensors, sample pressures and sessions in one commit."""
    cast = _get_cast(db, cast_id)
    sensors = [cs.sensor for cs in cast.sensors]
    with transaction(db, "deleting cast"):
        db.delete(cast)
        db.flush()
        _sync_in_use(db, sensors)
    log_activity(
        "CTD cast deleted", f"Cast ID: {cast_id}", username=context.username if context else None
    )


# -------------------------------------------------------------------------
# Cast sensors
# -------------------------------------------------------------------------
def _sync_in_use(db: Session, sensors: List[SensorInventory]) -> None:
    """in_use holds while any cast still references the sensor."""
    for sensor in sensors:
        sensor.in_use = db.execute(
            select(CastSensor.cast_sensor_id).where(CastSensor.sensor_id == sensor.sensor_id).limit(1)
        ).first() is not None


def _sensor_row(cast_sensor: CastSensor) -> dict:
    row = to_dict(cast_sensor)
    row["sensor_type"] = cast_sensor.sensor.sensor_type
    row["vin_number"] = cast_sensor.sensor.vin_number
    return row


def attach_sensor(db: Session, cast_id: int, data) -> CastSensor:
    cast = _get_cast(db, cast_id)
    payload = parse_payload(CastSensorIn, data)
    sensor = get_or_404(db, SensorInventory, payload.sensor_id, "Sensor")

    if sensor.status != "operational" or not sensor.active:
        raise ValidationError(
            f"Sensor {sensor.sensor_id} is not operational (status: {sensor.status})", ["sensor_id"]
        )
    if any(cs.sensor_id == sensor.sensor_id for cs in cast.sensors):
        raise ValidationError(f"Sensor {sensor.sensor_id} is already attached to this cast", ["sensor_id"])

    with transaction(db, "attaching sensor"):
        cast_sensor = CastSensor(**payload.model_dump())
        cast.sensors.append(cast_sensor)
        sensor.in_use = True
    return cast_sensor


def list_cast_sensors(db: Session, cast_id: int) -> List[dict]:
    cast = _get_cast(db, cast_id)
    return [_sensor_row(cs) for cs in cast.sensors]


def detach_sensor(db: Session, cast_id: int, cast_sensor_id: int) -> None:
    cast = _get_cast(db, cast_id)
    cast_sensor = next((cs for cs in cast.sensors if cs.cast_sensor_id == cast_sensor_id), None)
    if cast_sensor is None:
        raise NotFoundError("Cast sensor", cast_sensor_id)
    with transaction(db, "detaching sensor"):
        sensor = cast_sensor.sensor
        cast.sensors.remove(cast_sensor)
        db.flush()
        _sync_in_use(db, [sensor])
