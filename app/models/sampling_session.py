from sqlalchemy import Column, Integer, DateTime, Text, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from app.db.base_class import Base
from app.utils.time_utils import utcnow


class SamplingSession(Base):
    __tablename__ = "sampling_session"

    session_id = Column(Integer, primary_key=True, autoincrement=True)
    ctd_cast_log_id = Column(Integer, ForeignKey("ctd_cast_log.ctd_cast_log_id", ondelete="CASCADE"), nullable=False, index=True)
    on_deck_position_id = Column(Integer, ForeignKey("on_deck_position.on_deck_id", ondelete="SET NULL"), nullable=True)
    sampling_start_datetime = Column(DateTime, nullable=True)
    sampling_end_datetime = Column(DateTime, nullable=True)
    notes = Column(Text, nullable=True)

    cast = relationship("CTDCast", back_populates="sampling_sessions")
    on_deck_position = relationship("OnDeckPosition")
    timings = relationship("SampleTiming", back_populates="session", cascade="all, delete-orphan")


class SampleTiming(Base):
    """Per-sample-type processing deadline for a sampling session."""
    __tablename__ = "sample_timing"
    __table_args__ = (CheckConstraint("time_limit_hours > 0", name="ck_sample_timing_hours"),)

    timing_id = Column(Integer, primary_key=True, autoincrement=True)
    sample_type_id = Column(Integer, ForeignKey("sample_types.sample_type_id"), nullable=False)
    session_id = Column(Integer, ForeignKey("sampling_session.session_id", ondelete="CASCADE"), nullable=False, index=True)
    set_by_user_id = Column(Integer, ForeignKey("users.user_id"), nullable=False)
    time_limit_hours = Column(Integer, nullable=False)
    deadline_datetime = Column(DateTime, nullable=True)
    set_datetime = Column(DateTime, default=utcnow)
    notes = Column(Text, nullable=True)

    session = relationship("SamplingSession", back_populates="timings")
    sample_type = relationship("SampleType")
