from sqlalchemy import Column, Integer, String, Boolean, Text
from app.db.base_class import Base


class SampleType(Base):
    __tablename__ = "sample_types"

    sample_type_id = Column(Integer, primary_key=True, autoincrement=True)
    type_name = Column(String(100), unique=True, nullable=False)
    abbreviation = Column(String(20), nullable=True)
    description = Column(Text, nullable=True)
    active = Column(Boolean, nullable=False, default=True)
