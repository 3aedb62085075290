"""
Sampling Service
----------------
Handles everything that happens to water once a niskin fires:
 - sample-pressure captures against a cast (append-only history)
 - capture summary with target vs. actual depth variance
 - sample bottles, their status lifecycle and replacements
 - sampling sessions opened after the cast is on deck, with per-type deadlines
"""

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.context import RequestContext
from app.core.exceptions import ValidationError
from app.core.logging_config import log_activity
from app.db.session import transaction
from app.models.bottle import BOTTLE_STATUSES, Bottle, BottleReplacement
from app.models.cast import CTDCast
from app.models.equipment import NiskinBottle
from app.models.sample_pressure import SamplePressure
from app.models.sample_type import SampleType
from app.models.sampling_session import SampleTiming, SamplingSession
from app.models.station import StationTargetDepth
from app.models.user import User
from app.schemas.common import parse_payload
from app.schemas.sampling_schema import (
    BottleCreate,
    BottleReplacementIn,
    BottleStatusUpdate,
    SampleCaptureIn,
    SampleTimingIn,
    SamplingSessionClose,
    SamplingSessionOpen,
)
from app.services.common import get_or_404, to_dict
from app.utils.time_utils import add_hours, hours_remaining, utcnow

logger = logging.getLogger(__name__)


# -------------------------------------------------------------------------
# Sample pressure captures
# -------------------------------------------------------------------------
def record_sample_capture(
    db: Session, cast_id: int, data, context: Optional[RequestContext] = None
) -> SamplePressure:
    """
    Append one capture row for a niskin on a cast.

    Repeated attempts for the same niskin/target are kept as history.
    The target depth, when given, must be planned for the cast's station.
    """
    cast = get_or_404(db, CTDCast, cast_id, "Cast")
    payload = parse_payload(SampleCaptureIn, data)
    get_or_404(db, NiskinBottle, payload.niskin_id, "Niskin bottle")

    if payload.target_depth_id is not None:
        target = get_or_404(db, StationTargetDepth, payload.target_depth_id, "Target depth")
        if target.station_id != cast.station_id:
            raise ValidationError(
                f"Target depth {target.target_depth_id} belongs to station {target.station_id}, "
                f"not the cast's station {cast.station_id}",
                ["target_depth_id"],
            )

    with transaction(db, "recording sample capture"):
        sample = SamplePressure(
            niskin_id=payload.niskin_id,
            target_depth_id=payload.target_depth_id,
            sample_pressure_value=payload.actual_pressure,
            sample_captured=payload.captured,
            sample_captured_datetime=payload.timestamp or utcnow(),
            notes=payload.notes or "",
        )
        cast.sample_pressures.append(sample)

    log_activity(
        "Sample pressure recorded",
        f"Cast ID: {cast_id} | Niskin ID: {payload.niskin_id} | Pressure: {payload.actual_pressure}",
        username=context.username if context else None,
    )
    return sample


def list_sample_pressures(db: Session, cast_id: int) -> List[dict]:
    get_or_404(db, CTDCast, cast_id, "Cast")
    rows = db.execute(
        select(SamplePressure)
        .where(SamplePressure.cast_log_id == cast_id)
        .order_by(SamplePressure.sample_pressure_id)
    ).scalars().all()
    return [to_dict(row) for row in rows]


def compute_variance(actual: Optional[float], target: Optional[float]) -> Optional[float]:
    """actual - target, or None when either side is missing."""
    if actual is None or target is None:
        return None
    return actual - target


def get_capture_summary(db: Session, cast_id: int) -> List[dict]:
    """
    Every capture of a cast joined to its planned target depth.

    Ordered by the target's sequence_order with untargeted captures last,
    then by niskin number.
    """
    get_or_404(db, CTDCast, cast_id, "Cast")

    rows = db.execute(
        select(
            SamplePressure.sample_pressure_id,
            SamplePressure.niskin_id,
            NiskinBottle.niskin_number,
            SamplePressure.target_depth_id,
            StationTargetDepth.sequence_order,
            StationTargetDepth.target_pressure,
            SamplePressure.sample_pressure_value,
            SamplePressure.sample_captured,
            SamplePressure.sample_captured_datetime,
        )
        .join(NiskinBottle, NiskinBottle.niskin_id == SamplePressure.niskin_id)
        .outerjoin(StationTargetDepth, StationTargetDepth.target_depth_id == SamplePressure.target_depth_id)
        .where(SamplePressure.cast_log_id == cast_id)
        .order_by(
            StationTargetDepth.sequence_order.is_(None),
            StationTargetDepth.sequence_order,
            NiskinBottle.niskin_number,
            SamplePressure.sample_pressure_id,
        )
    ).all()

    summary = [
        {
            "sample_pressure_id": row.sample_pressure_id,
            "niskin_id": row.niskin_id,
            "niskin_number": row.niskin_number,
            "target_depth_id": row.target_depth_id,
            "sequence_order": row.sequence_order,
            "target_pressure": row.target_pressure,
            "actual_pressure": row.sample_pressure_value,
            "variance": compute_variance(row.sample_pressure_value, row.target_pressure)
            if row.target_depth_id is not None
            else None,
            "captured": bool(row.sample_captured),
            "captured_datetime": row.sample_captured_datetime,
        }
        for row in rows
    ]
    logger.info(f"Capture summary for cast {cast_id}: {len(summary)} rows")
    return summary


# -------------------------------------------------------------------------
# Bottles
# -------------------------------------------------------------------------
def create_bottle(db: Session, data) -> Bottle:
    payload = parse_payload(BottleCreate, data)
    get_or_404(db, NiskinBottle, payload.niskin_id, "Niskin bottle")
    get_or_404(db, SampleType, payload.sample_type_id, "Sample type")

    if payload.is_duplicate and payload.duplicate_sequence is None:
        raise ValidationError("duplicate_sequence is required for duplicate bottles", ["duplicate_sequence"])

    with transaction(db, "creating bottle"):
        bottle = Bottle(**payload.model_dump())
        if payload.status != "empty":
            bottle.collected_datetime = utcnow()
        db.add(bottle)
    return bottle


def get_bottle(db: Session, bottle_id: int) -> Bottle:
    return get_or_404(db, Bottle, bottle_id, "Bottle")


def next_bottle_status(current: str) -> Optional[str]:
    index = BOTTLE_STATUSES.index(current)
    return BOTTLE_STATUSES[index + 1] if index + 1 < len(BOTTLE_STATUSES) else None


def update_bottle_status(db: Session, bottle_id: int, data, context: Optional[RequestContext] = None) -> Bottle:
    """
    Advance a bottle exactly one step along empty → filled → processed → archived.
    Re-submitting the current status is a no-op; skips and reversals are rejected.
    """
    bottle = get_or_404(db, Bottle, bottle_id, "Bottle")
    payload = parse_payload(BottleStatusUpdate, data)

    if payload.status == bottle.status:
        return bottle

    expected = next_bottle_status(bottle.status)
    if payload.status != expected:
        allowed = f"'{expected}'" if expected else "none (archived is final)"
        raise ValidationError(
            f"Bottle {bottle_id} cannot move from '{bottle.status}' to '{payload.status}'; next allowed: {allowed}",
            ["status"],
        )

    with transaction(db, "updating bottle status"):
        bottle.status = payload.status
        if payload.status == "filled":
            bottle.collected_datetime = utcnow()

    log_activity(
        "Bottle status updated",
        f"Bottle ID: {bottle_id} -> {payload.status}",
        username=context.username if context else None,
    )
    return bottle


def get_bottles_for_cast(db: Session, cast_id: int) -> List[dict]:
    """Bottles drawn from the niskins that fired on this cast."""
    get_or_404(db, CTDCast, cast_id, "Cast")
    fired = select(SamplePressure.niskin_id).where(SamplePressure.cast_log_id == cast_id).distinct()

    rows = db.execute(
        select(Bottle, NiskinBottle.niskin_number, SampleType.type_name, SampleType.abbreviation)
        .join(NiskinBottle, NiskinBottle.niskin_id == Bottle.niskin_id)
        .join(SampleType, SampleType.sample_type_id == Bottle.sample_type_id)
        .where(Bottle.niskin_id.in_(fired))
        .order_by(NiskinBottle.niskin_number, Bottle.bottle_number)
    ).all()

    results = []
    for bottle, niskin_number, type_name, abbreviation in rows:
        row = to_dict(bottle)
        row.update(niskin_number=niskin_number, type_name=type_name, abbreviation=abbreviation)
        results.append(row)
    return results


def replace_bottle(
    db: Session, original_bottle_id: int, data, context: Optional[RequestContext] = None
) -> BottleReplacement:
    """Record that a bottle was swapped; neither bottle row is modified."""
    payload = parse_payload(BottleReplacementIn, data)
    if payload.replacement_bottle_id == original_bottle_id:
        raise ValidationError("A bottle cannot replace itself", ["replacement_bottle_id"])

    get_or_404(db, Bottle, original_bottle_id, "Bottle")
    get_or_404(db, Bottle, payload.replacement_bottle_id, "Bottle")

    with transaction(db, "recording bottle replacement"):
        replacement = BottleReplacement(
            original_bottle_id=original_bottle_id,
            replacement_bottle_id=payload.replacement_bottle_id,
            replacement_datetime=utcnow(),
            reason=payload.reason,
            notes=payload.notes,
        )
        db.add(replacement)

    log_activity(
        "Bottle replaced",
        f"Bottle {original_bottle_id} -> {payload.replacement_bottle_id} ({payload.reason or 'no reason'})",
        username=context.username if context else None,
    )
    return replacement


def list_bottle_replacements(db: Session, bottle_id: int) -> List[dict]:
    get_or_404(db, Bottle, bottle_id, "Bottle")
    rows = db.execute(
        select(BottleReplacement)
        .where(
            (BottleReplacement.original_bottle_id == bottle_id)
            | (BottleReplacement.replacement_bottle_id == bottle_id)
        )
        .order_by(BottleReplacement.replacement_datetime, BottleReplacement.replacement_id)
    ).scalars().all()
    return [to_dict(row) for row in rows]


# -------------------------------------------------------------------------
# Sampling sessions and deadlines
# -------------------------------------------------------------------------
def open_sampling_session(db: Session, cast_id: int, data=None) -> SamplingSession:
    """Start bottle handling for a cast; the cast must already be on deck."""
    cast = get_or_404(db, CTDCast, cast_id, "Cast")
    payload = parse_payload(SamplingSessionOpen, data)

    if cast.on_deck_position is None:
        raise ValidationError(
            f"Cast {cast_id} has no on-deck record; sampling starts once the package is on deck",
            ["on_deck_position"],
        )

    with transaction(db, "opening sampling session"):
        session = SamplingSession(
            on_deck_position_id=cast.on_deck_position.on_deck_id,
            sampling_start_datetime=payload.start or utcnow(),
            notes=payload.notes,
        )
        cast.sampling_sessions.append(session)
    return session


def close_sampling_session(db: Session, session_id: int, data=None) -> SamplingSession:
    session = get_or_404(db, SamplingSession, session_id, "Sampling session")
    payload = parse_payload(SamplingSessionClose, data)
    end = payload.end or utcnow()

    if session.sampling_start_datetime and end < session.sampling_start_datetime:
        raise ValidationError("Sampling cannot end before it started", ["end"])

    with transaction(db, "closing sampling session"):
        session.sampling_end_datetime = end
    return session


def list_sampling_sessions(db: Session, cast_id: int) -> List[dict]:
    cast = get_or_404(db, CTDCast, cast_id, "Cast")
    return [to_dict(s) for s in cast.sampling_sessions]


def set_sample_timing(db: Session, session_id: int, data, context: RequestContext) -> SampleTiming:
    """
    Set the processing time limit for one sample type in a session.
    deadline = set_datetime + time_limit_hours.
    """
    session = get_or_404(db, SamplingSession, session_id, "Sampling session")
    payload = parse_payload(SampleTimingIn, data)
    get_or_404(db, SampleType, payload.sample_type_id, "Sample type")
    get_or_404(db, User, context.user_id)

    set_at = payload.set_datetime or utcnow()
    with transaction(db, "setting sample timing"):
        timing = SampleTiming(
            sample_type_id=payload.sample_type_id,
            set_by_user_id=context.user_id,
            time_limit_hours=payload.time_limit_hours,
            set_datetime=set_at,
            deadline_datetime=add_hours(set_at, payload.time_limit_hours),
            notes=payload.notes,
        )
        session.timings.append(timing)
    return timing


def get_sample_deadlines(db: Session, session_id: int, now: Optional[datetime] = None) -> List[dict]:
    """Deadlines of a session, soonest first, with hours remaining and an overdue flag."""
    session = get_or_404(db, SamplingSession, session_id, "Sampling session")
    now = now or utcnow()

    deadlines = []
    for timing in sorted(session.timings, key=lambda t: t.deadline_datetime):
        remaining = hours_remaining(timing.deadline_datetime, now)
        deadlines.append(
            {
                "timing_id": timing.timing_id,
                "sample_type_id": timing.sample_type_id,
                "type_name": timing.sample_type.type_name,
                "time_limit_hours": timing.time_limit_hours,
                "set_datetime": timing.set_datetime,
                "deadline_datetime": timing.deadline_datetime,
                "hours_remaining": remaining,
                "overdue": remaining < 0,
            }
        )
    return deadlines
