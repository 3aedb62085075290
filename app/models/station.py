from sqlalchemy import (
    Column, Integer, String, Float, Boolean, Text, ForeignKey, UniqueConstraint, CheckConstraint,
)
from sqlalchemy.orm import relationship
from app.db.base_class import Base


class Station(Base):
    __tablename__ = "stations"
    __table_args__ = (
        UniqueConstraint("cruise_id", "station_number", name="uq_stations_cruise_number"),
        CheckConstraint("latitude BETWEEN -90 AND 90", name="ck_stations_latitude"),
        CheckConstraint("longitude BETWEEN -180 AND 180", name="ck_stations_longitude"),
    )

    station_id = Column(Integer, primary_key=True, autoincrement=True)
    cruise_id = Column(Integer, ForeignKey("cruises.cruise_id"), nullable=False, index=True)
    station_number = Column(String(50), nullable=False)
    station_name = Column(String(100), nullable=False)
    station_abbreviation = Column(String(20), nullable=True)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    active = Column(Boolean, nullable=False, default=True)

    cruise = relationship("Cruise", back_populates="stations")
    target_depths = relationship(
        "StationTargetDepth",
        back_populates="station",
        cascade="all, delete-orphan",
        order_by="StationTargetDepth.sequence_order",
    )


class StationTargetDepth(Base):
    """Planned sampling pressure for a station."""
    __tablename__ = "station_target_depths"
    __table_args__ = (
        UniqueConstraint("station_id", "sequence_order", name="uq_target_depths_station_sequence"),
        CheckConstraint("target_pressure >= 0", name="ck_target_depths_pressure"),
        CheckConstraint("sequence_order > 0", name="ck_target_depths_sequence"),
    )

    target_depth_id = Column(Integer, primary_key=True, autoincrement=True)
    station_id = Column(Integer, ForeignKey("stations.station_id", ondelete="CASCADE"), nullable=False, index=True)
    target_pressure = Column(Float, nullable=False)
    sequence_order = Column(Integer, nullable=False)
    niskin_position = Column(Integer, nullable=True)  # hint only
    notes = Column(Text, nullable=True)

    station = relationship("Station", back_populates="target_depths")
