from sqlalchemy import Column, Integer, String, Boolean
from sqlalchemy.orm import relationship
from app.db.base_class import Base


class Cruise(Base):
    __tablename__ = "cruises"

    cruise_id = Column(Integer, primary_key=True, autoincrement=True)
    cruise_number = Column(Integer, nullable=False)
    cruise_name = Column(String(100), nullable=False)
    cruise_abbreviation = Column(String(20), nullable=True)
    active = Column(Boolean, nullable=False, default=True)

    stations = relationship("Station", back_populates="cruise")
