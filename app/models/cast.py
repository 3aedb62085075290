from sqlalchemy import Column, Integer, Date, DateTime, Text, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from datetime import date
from app.db.base_class import Base
from app.utils.time_utils import utcnow


class CTDCast(Base):
    """One CTD deployment; owns every phase record logged against it."""
    __tablename__ = "ctd_cast_log"

    ctd_cast_log_id = Column(Integer, primary_key=True, autoincrement=True)
    ship_id = Column(Integer, ForeignKey("ships.ship_id"), nullable=False, index=True)
    station_id = Column(Integer, ForeignKey("stations.station_id"), nullable=False, index=True)
    cruise_id = Column(Integer, ForeignKey("cruises.cruise_id"), nullable=False, index=True)
    observer_user_id = Column(Integer, ForeignKey("users.user_id"), nullable=False)
    cast_number = Column(Integer, nullable=False)
    cast_date = Column(Date, default=date.today)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow, index=True)

    ship = relationship("Ship")
    station = relationship("Station")
    cruise = relationship("Cruise")
    observer = relationship("User")

    pre_cast = relationship("PreCast", uselist=False, back_populates="cast", cascade="all, delete-orphan")
    beginning_position = relationship("BeginningPosition", uselist=False, back_populates="cast", cascade="all, delete-orphan")
    at_depth_position = relationship("AtDepthPosition", uselist=False, back_populates="cast", cascade="all, delete-orphan")
    capture_start = relationship("CaptureStart", uselist=False, back_populates="cast", cascade="all, delete-orphan")
    bottom_depth_position = relationship("BottomDepthPosition", uselist=False, back_populates="cast", cascade="all, delete-orphan")
    ending_position = relationship("EndingPosition", uselist=False, back_populates="cast", cascade="all, delete-orphan")
    on_deck_position = relationship("OnDeckPosition", uselist=False, back_populates="cast", cascade="all, delete-orphan")
    post_cast = relationship("PostCast", uselist=False, back_populates="cast", cascade="all, delete-orphan")

    sensors = relationship("CastSensor", back_populates="cast", cascade="all, delete-orphan", order_by="CastSensor.position_order")
    sample_pressures = relationship("SamplePressure", back_populates="cast", cascade="all, delete-orphan")
    sampling_sessions = relationship("SamplingSession", back_populates="cast", cascade="all, delete-orphan")


class CastSensor(Base):
    __tablename__ = "cast_sensors"
    __table_args__ = (
        CheckConstraint("position_order > 0", name="ck_cast_sensors_position_order"),
        CheckConstraint("sequence_number > 0", name="ck_cast_sensors_sequence_number"),
    )

    cast_sensor_id = Column(Integer, primary_key=True, autoincrement=True)
    cast_log_id = Column(Integer, ForeignKey("ctd_cast_log.ctd_cast_log_id", ondelete="CASCADE"), nullable=False, index=True)
    sensor_id = Column(Integer, ForeignKey("sensor_inventory.sensor_id"), nullable=False)
    position_order = Column(Integer, nullable=False)
    sequence_number = Column(Integer, nullable=True)
    notes = Column(Text, nullable=True)

    cast = relationship("CTDCast", back_populates="sensors")
    sensor = relationship("SensorInventory")
