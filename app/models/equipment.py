from sqlalchemy import Column, Integer, String, Boolean, Text, CheckConstraint
from app.db.base_class import Base

SENSOR_STATUSES = ("operational", "maintenance", "broken", "retired")
NISKIN_STATUSES = ("ready", "deployed", "maintenance", "broken")


def _in_list(column: str, values) -> str:
    return f"{column} IN (" + ", ".join(f"'{v}'" for v in values) + ")"


class SensorInventory(Base):
    __tablename__ = "sensor_inventory"
    __table_args__ = (
        CheckConstraint(
            _in_list("status", SENSOR_STATUSES),
            name="ck_sensor_inventory_status",
        ),
    )

    sensor_id = Column(Integer, primary_key=True, autoincrement=True)
    sensor_type = Column(String(100), nullable=False)
    vin_number = Column(String(100), unique=True, nullable=True)
    status = Column(String(20), nullable=False, default="operational")
    in_use = Column(Boolean, nullable=False, default=False)
    backup_available = Column(Boolean, nullable=False, default=False)
    active = Column(Boolean, nullable=False, default=True)
    notes = Column(Text, nullable=True)


class NiskinBottle(Base):
    __tablename__ = "niskin_bottles"
    __table_args__ = (
        CheckConstraint(
            _in_list("status", NISKIN_STATUSES),
            name="ck_niskin_bottles_status",
        ),
    )

    niskin_id = Column(Integer, primary_key=True, autoincrement=True)
    niskin_number = Column(Integer, unique=True, nullable=False)
    active = Column(Boolean, nullable=False, default=True)
    status = Column(String(20), nullable=False, default="ready")
    notes = Column(Text, nullable=True)
