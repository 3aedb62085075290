"""
Singleton phase records of a CTD cast.

Each table holds at most one row per cast (unique cast_log_id) and is
deleted with the cast. Column names follow the shipboard log sheets.
"""

from sqlalchemy import Column, Integer, Float, Boolean, DateTime, Text, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from app.db.base_class import Base
from app.utils.time_utils import utcnow

CAST_FK = "ctd_cast_log.ctd_cast_log_id"


def _lat_lon_checks(prefix: str):
    return (
        CheckConstraint(f"{prefix}_latitude BETWEEN -90 AND 90", name=f"ck_{prefix}_latitude"),
        CheckConstraint(f"{prefix}_longitude BETWEEN -180 AND 180", name=f"ck_{prefix}_longitude"),
    )


class PreCast(Base):
    __tablename__ = "pre_cast"
    __table_args__ = (
        CheckConstraint("pre_cast_pressure_test >= 0", name="ck_pre_cast_pressure_test"),
        *_lat_lon_checks("pre_cast"),
    )

    pre_cast_id = Column(Integer, primary_key=True, autoincrement=True)
    cast_log_id = Column(Integer, ForeignKey(CAST_FK, ondelete="CASCADE"), nullable=False, unique=True)
    pre_cast_pressure_test = Column(Float, nullable=True)
    pre_cast_datetime = Column(DateTime, nullable=True)
    pre_cast_latitude = Column(Float, nullable=True)
    pre_cast_longitude = Column(Float, nullable=True)
    notes = Column(Text, nullable=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    cast = relationship("CTDCast", back_populates="pre_cast")


class BeginningPosition(Base):
    __tablename__ = "beginning_position"
    __table_args__ = (
        CheckConstraint("begin_depth >= 0", name="ck_begin_depth"),
        *_lat_lon_checks("begin"),
    )

    begin_id = Column(Integer, primary_key=True, autoincrement=True)
    cast_log_id = Column(Integer, ForeignKey(CAST_FK, ondelete="CASCADE"), nullable=False, unique=True)
    begin_datetime = Column(DateTime, nullable=True)
    begin_latitude = Column(Float, nullable=True)
    begin_longitude = Column(Float, nullable=True)
    begin_depth = Column(Float, nullable=True)
    notes = Column(Text, nullable=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    cast = relationship("CTDCast", back_populates="beginning_position")


class AtDepthPosition(Base):
    __tablename__ = "at_depth_position"
    __table_args__ = (
        CheckConstraint("at_depth_depth >= 0", name="ck_at_depth_depth"),
        *_lat_lon_checks("at_depth"),
    )

    at_depth_id = Column(Integer, primary_key=True, autoincrement=True)
    cast_log_id = Column(Integer, ForeignKey(CAST_FK, ondelete="CASCADE"), nullable=False, unique=True)
    at_depth_datetime = Column(DateTime, nullable=True)
    at_depth_latitude = Column(Float, nullable=True)
    at_depth_longitude = Column(Float, nullable=True)
    at_depth_depth = Column(Float, nullable=True)
    notes = Column(Text, nullable=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    cast = relationship("CTDCast", back_populates="at_depth_position")


class CaptureStart(Base):
    __tablename__ = "capture_start"
    __table_args__ = (CheckConstraint("markscan_start >= 0", name="ck_capture_start_markscan"),)

    capture_start_id = Column(Integer, primary_key=True, autoincrement=True)
    cast_log_id = Column(Integer, ForeignKey(CAST_FK, ondelete="CASCADE"), nullable=False, unique=True)
    markscan_start = Column(Integer, nullable=True)
    markscan_start_datetime = Column(DateTime, nullable=True)
    notes = Column(Text, nullable=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    cast = relationship("CTDCast", back_populates="capture_start")


class BottomDepthPosition(Base):
    __tablename__ = "bottom_depth_position"
    __table_args__ = (
        CheckConstraint("height_above_bottom >= 0", name="ck_bottom_height_above_bottom"),
        CheckConstraint("max_pressure >= 0", name="ck_bottom_max_pressure"),
        CheckConstraint("winch_payout >= 0", name="ck_bottom_winch_payout"),
        *_lat_lon_checks("bottom"),
    )

    bottom_position_id = Column(Integer, primary_key=True, autoincrement=True)
    cast_log_id = Column(Integer, ForeignKey(CAST_FK, ondelete="CASCADE"), nullable=False, unique=True)
    bottom_datetime = Column(DateTime, nullable=True)
    bottom_latitude = Column(Float, nullable=True)
    bottom_longitude = Column(Float, nullable=True)
    height_above_bottom = Column(Float, nullable=True)
    max_pressure = Column(Float, nullable=True)
    winch_payout = Column(Float, nullable=True)
    notes = Column(Text, nullable=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    cast = relationship("CTDCast", back_populates="bottom_depth_position")


class EndingPosition(Base):
    __tablename__ = "ending_position"
    __table_args__ = (
        CheckConstraint("end_depth >= 0", name="ck_end_depth"),
        *_lat_lon_checks("end"),
    )

    ending_id = Column(Integer, primary_key=True, autoincrement=True)
    cast_log_id = Column(Integer, ForeignKey(CAST_FK, ondelete="CASCADE"), nullable=False, unique=True)
    end_datetime = Column(DateTime, nullable=True)
    end_latitude = Column(Float, nullable=True)
    end_longitude = Column(Float, nullable=True)
    end_depth = Column(Float, nullable=True)
    notes = Column(Text, nullable=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    cast = relationship("CTDCast", back_populates="ending_position")


class OnDeckPosition(Base):
    __tablename__ = "on_deck_position"
    __table_args__ = _lat_lon_checks("on_deck")

    on_deck_id = Column(Integer, primary_key=True, autoincrement=True)
    cast_log_id = Column(Integer, ForeignKey(CAST_FK, ondelete="CASCADE"), nullable=False, unique=True)
    on_deck_datetime = Column(DateTime, nullable=True)
    on_deck_latitude = Column(Float, nullable=True)
    on_deck_longitude = Column(Float, nullable=True)
    notes = Column(Text, nullable=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    cast = relationship("CTDCast", back_populates="on_deck_position")


class PostCast(Base):
    __tablename__ = "post_cast"
    __table_args__ = (CheckConstraint("post_cast_pressure_check >= 0", name="ck_post_cast_pressure_check"),)

    post_cast_id = Column(Integer, primary_key=True, autoincrement=True)
    # column keeps its historical name; mapped as cast_log_id like the other phases
    cast_log_id = Column("ctd_cast_log_id", Integer, ForeignKey(CAST_FK, ondelete="CASCADE"), nullable=False, unique=True)
    post_cast_pressure_check = Column(Float, nullable=True)
    real_time_data_stop = Column(Boolean, nullable=False, default=False)
    real_time_data_stop_datetime = Column(DateTime, nullable=True)
    deck_unit_off = Column(Boolean, nullable=False, default=False)
    deck_unit_off_datetime = Column(DateTime, nullable=True)
    notes = Column(Text, nullable=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    cast = relationship("CTDCast", back_populates="post_cast")
