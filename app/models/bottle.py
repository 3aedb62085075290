from sqlalchemy import Column, Integer, String, Boolean, DateTime, Text, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from app.db.base_class import Base
from app.utils.time_utils import utcnow

# lifecycle order; a bottle only ever moves one step to the right
BOTTLE_STATUSES = ("empty", "filled", "processed", "archived")


class Bottle(Base):
    __tablename__ = "bottles"
    __table_args__ = (
        CheckConstraint("duplicate_sequence > 0", name="ck_bottles_duplicate_sequence"),
        CheckConstraint("capacity_ml > 0", name="ck_bottles_capacity_ml"),
        CheckConstraint(
            "status IN ('empty', 'filled', 'processed', 'archived')", name="ck_bottles_status"
        ),
    )

    bottle_id = Column(Integer, primary_key=True, autoincrement=True)
    niskin_id = Column(Integer, ForeignKey("niskin_bottles.niskin_id"), nullable=False, index=True)
    sample_type_id = Column(Integer, ForeignKey("sample_types.sample_type_id"), nullable=False)
    bottle_number = Column(Integer, nullable=False)
    is_duplicate = Column(Boolean, nullable=False, default=False)
    duplicate_sequence = Column(Integer, nullable=True)
    capacity_ml = Column(Integer, nullable=True)
    status = Column(String(20), nullable=False, default="empty")
    collected_datetime = Column(DateTime, nullable=True)

    niskin = relationship("NiskinBottle")
    sample_type = relationship("SampleType")


class BottleReplacement(Base):
    """Audit row: original bottle swapped for a replacement. Neither bottle is modified."""
    __tablename__ = "bottle_replacements"

    replacement_id = Column(Integer, primary_key=True, autoincrement=True)
    original_bottle_id = Column(Integer, ForeignKey("bottles.bottle_id"), nullable=False)
    replacement_bottle_id = Column(Integer, ForeignKey("bottles.bottle_id"), nullable=False)
    replacement_datetime = Column(DateTime, default=utcnow)
    reason = Column(String(255), nullable=True)
    notes = Column(Text, nullable=True)

    original_bottle = relationship("Bottle", foreign_keys=[original_bottle_id])
    replacement_bottle = relationship("Bottle", foreign_keys=[replacement_bottle_id])
