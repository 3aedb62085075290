"""
Reference Data Service
----------------------
Ships, cruises, stations (with their planned target depths), sensor
inventory, niskin bottles, sample types and roles, plus the dashboard
counters and the allow-listed search.
"""

import logging
from typing import Dict, List, Optional

from sqlalchemy import func, or_, select, cast as sql_cast, String
from sqlalchemy.orm import Session

from app.core.exceptions import ValidationError
from app.db.session import transaction
from app.models.bottle import Bottle
from app.models.cast import CTDCast
from app.models.cruise import Cruise
from app.models.equipment import NiskinBottle, SensorInventory
from app.models.sample_type import SampleType
from app.models.sample_pressure import SamplePressure
from app.models.ship import Ship
from app.models.station import Station, StationTargetDepth
from app.models.user import Role, User
from app.schemas.common import parse_payload
from app.services.common import get_or_404, to_dict
from app.schemas.reference_schema import (
    CruiseIn,
    NiskinIn,
    NiskinStatusUpdate,
    SampleTypeIn,
    SensorIn,
    SensorStatusUpdate,
    ShipIn,
    StationIn,
    TargetDepthIn,
)

logger = logging.getLogger(__name__)


def _ensure_unique(db: Session, model, column, value, field: str, exclude_pk=None) -> None:
    if value is None:
        return
    query = select(model).where(column == value)
    row = db.execute(query).scalar_one_or_none()
    if row is not None and (exclude_pk is None or db.get(model, exclude_pk) is not row):
        raise ValidationError(f"{field} '{value}' already exists", [field])


# -------------------------------------------------------------------------
# Ships
# -------------------------------------------------------------------------
def create_ship(db: Session, data) -> Ship:
    payload = parse_payload(ShipIn, data)
    _ensure_unique(db, Ship, Ship.ship_name, payload.ship_name, "ship_name")
    _ensure_unique(db, Ship, Ship.ship_number, payload.ship_number, "ship_number")

    with transaction(db, "creating ship"):
        ship = Ship(**payload.model_dump(), active=True)
        db.add(ship)
    logger.info(f"Ship created: {ship.ship_name} (id={ship.ship_id})")
    return ship


def update_ship(db: Session, ship_id: int, data) -> Ship:
    ship = get_or_404(db, Ship, ship_id)
    payload = parse_payload(ShipIn, data)
    _ensure_unique(db, Ship, Ship.ship_name, payload.ship_name, "ship_name", exclude_pk=ship_id)
    _ensure_unique(db, Ship, Ship.ship_number, payload.ship_number, "ship_number", exclude_pk=ship_id)

    with transaction(db, "updating ship"):
        for key, value in payload.model_dump().items():
            setattr(ship, key, value)
    return ship


def list_ships(db: Session, active_only: bool = True) -> List[Ship]:
    query = select(Ship).order_by(Ship.ship_name)
    if active_only:
        query = query.where(Ship.active.is_(True))
    return list(db.execute(query).scalars().all())


def get_ship(db: Session, ship_id: int) -> Ship:
    return get_or_404(db, Ship, ship_id)


def set_ship_active(db: Session, ship_id: int, active: bool) -> Ship:
    ship = get_or_404(db, Ship, ship_id)
    with transaction(db, "updating ship status"):
        ship.active = active
    return ship


# -------------------------------------------------------------------------
# Cruises
# -------------------------------------------------------------------------
def create_cruise(db: Session, data) -> Cruise:
    payload = parse_payload(CruiseIn, data)
    with transaction(db, "creating cruise"):
        cruise = Cruise(**payload.model_dump(), active=True)
        db.add(cruise)
    logger.info(f"Cruise created: {cruise.cruise_name} (id={cruise.cruise_id})")
    return cruise


def update_cruise(db: Session, cruise_id: int, data) -> Cruise:
    cruise = get_or_404(db, Cruise, cruise_id)
    payload = parse_payload(CruiseIn, data)
    with transaction(db, "updating cruise"):
        for key, value in payload.model_dump().items():
            setattr(cruise, key, value)
    return cruise


def list_cruises(db: Session, active_only: bool = True) -> List[Cruise]:
    query = select(Cruise).order_by(Cruise.cruise_name)
    if active_only:
        query = query.where(Cruise.active.is_(True))
    return list(db.execute(query).scalars().all())


def get_cruise(db: Session, cruise_id: int) -> Cruise:
    return get_or_404(db, Cruise, cruise_id)


def set_cruise_active(db: Session, cruise_id: int, active: bool) -> Cruise:
    cruise = get_or_404(db, Cruise, cruise_id)
    with transaction(db, "updating cruise status"):
        cruise.active = active
    return cruise


# -------------------------------------------------------------------------
# Stations and target depths
# -------------------------------------------------------------------------
def _ensure_station_number_free(db: Session, cruise_id: int, station_number: str, exclude_pk=None) -> None:
    row = db.execute(
        select(Station).where(Station.cruise_id == cruise_id, Station.station_number == station_number)
    ).scalar_one_or_none()
    if row is not None and row.station_id != exclude_pk:
        raise ValidationError(
            f"Station number '{station_number}' already exists in cruise {cruise_id}", ["station_number"]
        )


def create_station(db: Session, data) -> Station:
    payload = parse_payload(StationIn, data)
    get_or_404(db, Cruise, payload.cruise_id)
    _ensure_station_number_free(db, payload.cruise_id, payload.station_number)

    with transaction(db, "creating station"):
        station = Station(**payload.model_dump(), active=True)
        db.add(station)
    logger.info(f"Station created: {station.station_name} (id={station.station_id}, cruise={station.cruise_id})")
    return station


def update_station(db: Session, station_id: int, data) -> Station:
    station = get_or_404(db, Station, station_id)
    payload = parse_payload(StationIn, data)
    get_or_404(db, Cruise, payload.cruise_id)
    _ensure_station_number_free(db, payload.cruise_id, payload.station_number, exclude_pk=station_id)

    with transaction(db, "updating station"):
        for key, value in payload.model_dump().items():
            setattr(station, key, value)
    return station


def list_stations(db: Session, cruise_id: Optional[int] = None, active_only: bool = True) -> List[Station]:
    query = select(Station).order_by(Station.station_name)
    if cruise_id is not None:
        query = query.where(Station.cruise_id == cruise_id)
    if active_only:
        query = query.where(Station.active.is_(True))
    return list(db.execute(query).scalars().all())


def get_station(db: Session, station_id: int) -> Station:
    return get_or_404(db, Station, station_id)


def set_station_active(db: Session, station_id: int, active: bool) -> Station:
    station = get_or_404(db, Station, station_id)
    with transaction(db, "updating station status"):
        station.active = active
    return station


def add_target_depth(db: Session, station_id: int, data) -> StationTargetDepth:
    """Add one planned sampling pressure; sequence_order is unique per station."""
    get_or_404(db, Station, station_id)
    payload = parse_payload(TargetDepthIn, data)

    taken = db.execute(
        select(StationTargetDepth.target_depth_id).where(
            StationTargetDepth.station_id == station_id,
            StationTargetDepth.sequence_order == payload.sequence_order,
        )
    ).first()
    if taken:
        raise ValidationError(
            f"Sequence {payload.sequence_order} already planned for station {station_id}", ["sequence_order"]
        )

    with transaction(db, "adding target depth"):
        target = StationTargetDepth(station_id=station_id, **payload.model_dump())
        db.add(target)
    return target


def list_target_depths(db: Session, station_id: int) -> List[StationTargetDepth]:
    get_or_404(db, Station, station_id)
    return list(
        db.execute(
            select(StationTargetDepth)
            .where(StationTargetDepth.station_id == station_id)
            .order_by(StationTargetDepth.sequence_order)
        ).scalars().all()
    )


def delete_target_depth(db: Session, target_depth_id: int) -> None:
    """Sample pressures recorded against it keep their row with no target."""
    target = get_or_404(db, StationTargetDepth, target_depth_id, "Target depth")
    with transaction(db, "deleting target depth"):
        db.query(SamplePressure).filter(SamplePressure.target_depth_id == target_depth_id).update(
            {SamplePressure.target_depth_id: None}, synchronize_session=False
        )
        db.delete(target)


# -------------------------------------------------------------------------
# Equipment
# -------------------------------------------------------------------------
def create_sensor(db: Session, data) -> SensorInventory:
    payload = parse_payload(SensorIn, data)
    _ensure_unique(db, SensorInventory, SensorInventory.vin_number, payload.vin_number, "vin_number")
    with transaction(db, "creating sensor"):
        sensor = SensorInventory(**payload.model_dump(), active=True)
        db.add(sensor)
    return sensor


def list_sensors(db: Session, status: Optional[str] = None) -> List[SensorInventory]:
    query = select(SensorInventory).order_by(SensorInventory.sensor_type, SensorInventory.sensor_id)
    if status is not None:
        query = query.where(SensorInventory.status == status)
    return list(db.execute(query).scalars().all())


def list_available_sensors(db: Session) -> List[SensorInventory]:
    return [s for s in list_sensors(db, status="operational") if s.active]


def update_sensor_status(db: Session, sensor_id: int, data) -> SensorInventory:
    sensor = get_or_404(db, SensorInventory, sensor_id, "Sensor")
    payload = parse_payload(SensorStatusUpdate, data)
    with transaction(db, "updating sensor status"):
        sensor.status = payload.status
    logger.info(f"Sensor {sensor_id} status -> {payload.status}")
    return sensor


def create_niskin(db: Session, data) -> NiskinBottle:
    payload = parse_payload(NiskinIn, data)
    _ensure_unique(db, NiskinBottle, NiskinBottle.niskin_number, payload.niskin_number, "niskin_number")
    with transaction(db, "creating niskin bottle"):
        niskin = NiskinBottle(**payload.model_dump(), active=True)
        db.add(niskin)
    return niskin


def list_niskins(db: Session, active_only: bool = True) -> List[NiskinBottle]:
    query = select(NiskinBottle).order_by(NiskinBottle.niskin_number)
    if active_only:
        query = query.where(NiskinBottle.active.is_(True))
    return list(db.execute(query).scalars().all())


def get_niskin(db: Session, niskin_id: int) -> NiskinBottle:
    return get_or_404(db, NiskinBottle, niskin_id, "Niskin bottle")


def update_niskin_status(db: Session, niskin_id: int, data) -> NiskinBottle:
    niskin = get_or_404(db, NiskinBottle, niskin_id, "Niskin bottle")
    payload = parse_payload(NiskinStatusUpdate, data)
    with transaction(db, "updating niskin status"):
        niskin.status = payload.status
    return niskin


# -------------------------------------------------------------------------
# Sample types and roles
# -------------------------------------------------------------------------
def create_sample_type(db: Session, data) -> SampleType:
    payload = parse_payload(SampleTypeIn, data)
    _ensure_unique(db, SampleType, SampleType.type_name, payload.type_name, "type_name")
    with transaction(db, "creating sample type"):
        sample_type = SampleType(**payload.model_dump(), active=True)
        db.add(sample_type)
    return sample_type


def list_sample_types(db: Session, active_only: bool = True) -> List[SampleType]:
    query = select(SampleType).order_by(SampleType.type_name)
    if active_only:
        query = query.where(SampleType.active.is_(True))
    return list(db.execute(query).scalars().all())


def list_roles(db: Session) -> List[Role]:
    return list(db.execute(select(Role).order_by(Role.role_name)).scalars().all())


# -------------------------------------------------------------------------
# Dashboard statistics
# -------------------------------------------------------------------------
STAT_MODELS = {
    "users": User,
    "ctd_cast_log": CTDCast,
    "bottles": Bottle,
    "ships": Ship,
    "cruises": Cruise,
    "stations": Station,
}


def get_database_stats(db: Session) -> Dict[str, int]:
    """Row counts shown on the dashboard; users counts active accounts only."""
    stats = {}
    for name, model in STAT_MODELS.items():
        query = select(func.count()).select_from(model)
        if model is User:
            query = query.where(User.active.is_(True))
        stats[name] = db.execute(query).scalar() or 0
    return stats


# -------------------------------------------------------------------------
# Allow-listed search
# -------------------------------------------------------------------------
SEARCHABLE = {
    "users": (User, [User.username, User.first_name, User.last_name]),
    "ships": (Ship, [Ship.ship_name, Ship.ship_abbreviation]),
    "cruises": (Cruise, [Cruise.cruise_name, Cruise.cruise_abbreviation]),
    "stations": (Station, [Station.station_name, Station.station_number, Station.station_abbreviation]),
    "ctd_cast_log": (CTDCast, [CTDCast.notes, sql_cast(CTDCast.cast_number, String)]),
}


def search(db: Session, entity: str, term: str, limit: int = 20) -> List[dict]:
    """
    Case-insensitive substring search over a fixed set of columns per entity.
    Entity names outside SEARCHABLE are rejected; no identifier comes from input.
    """
    if entity not in SEARCHABLE:
        raise ValidationError(f"Search is not available for '{entity}'", ["entity"])
    term = (term or "").strip()
    if not term:
        raise ValidationError("Search term is required", ["term"])

    model, columns = SEARCHABLE[entity]
    escaped = term.lower().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    pattern = f"%{escaped}%"
    query = (
        select(model)
        .where(or_(*(func.lower(col).like(pattern, escape="\\") for col in columns)))
        .limit(max(1, min(limit, 100)))
    )
    rows = db.execute(query).scalars().all()
    results = [to_dict(row) for row in rows]
    if model is User:
        for row in results:
            row.pop("password", None)
    return results
