from typing import Optional, Type

from sqlalchemy.orm import Session

from app.core.exceptions import NotFoundError
from app.db.base_class import Base


def get_or_404(db: Session, model: Type[Base], entity_id: int, label: Optional[str] = None):
    """Fetch a row by primary key or raise NotFoundError."""
    obj = db.get(model, entity_id)
    if obj is None:
        raise NotFoundError(label or model.__name__, entity_id)
    return obj


def to_dict(obj) -> Optional[dict]:
    """Column values of a mapped row keyed by their database column name."""
    if obj is None:
        return None
    return {
        col.name: getattr(obj, attr.key)
        for attr in obj.__mapper__.column_attrs
        for col in attr.columns
    }
