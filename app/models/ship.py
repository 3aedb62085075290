from sqlalchemy import Column, Integer, String, Boolean
from app.db.base_class import Base


class Ship(Base):
    __tablename__ = "ships"

    ship_id = Column(Integer, primary_key=True, autoincrement=True)
    ship_name = Column(String(100), unique=True, nullable=False)
    ship_number = Column(Integer, unique=True, nullable=True)
    ship_abbreviation = Column(String(20), nullable=True)
    active = Column(Boolean, nullable=False, default=True)
