from sqlalchemy import Column, Integer, Float, Boolean, DateTime, Text, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from app.db.base_class import Base


class SamplePressure(Base):
    """One niskin firing attempt; rows are appended, never overwritten."""
    __tablename__ = "sample_pressure"
    __table_args__ = (CheckConstraint("sample_pressure_value >= 0", name="ck_sample_pressure_value"),)

    sample_pressure_id = Column(Integer, primary_key=True, autoincrement=True)
    cast_log_id = Column(Integer, ForeignKey("ctd_cast_log.ctd_cast_log_id", ondelete="CASCADE"), nullable=False, index=True)
    niskin_id = Column(Integer, ForeignKey("niskin_bottles.niskin_id"), nullable=False)
    target_depth_id = Column(
        Integer, ForeignKey("station_target_depths.target_depth_id", ondelete="SET NULL"), nullable=True
    )
    sample_pressure_value = Column(Float, nullable=True)
    sample_captured = Column(Boolean, nullable=False, default=False)
    sample_captured_datetime = Column(DateTime, nullable=True)
    notes = Column(Text, nullable=True)

    cast = relationship("CTDCast", back_populates="sample_pressures")
    niskin = relationship("NiskinBottle")
    target_depth = relationship("StationTargetDepth")
