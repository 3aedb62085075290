import json
import logging
from pathlib import Path
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.db.session import SessionLocal
from app.models.sample_type import SampleType
from app.models.user import Role
from app.services.auth_service import create_default_admin

logger = logging.getLogger(__name__)

REFERENCE_JSON = Path(__file__).resolve().parent.parent / "data" / "reference_data.json"


def load_reference_json(json_path: Path = REFERENCE_JSON) -> dict:
    if not json_path.exists():
        logger.warning(f"File not found: {json_path}")
        return {}
    with open(json_path, "r", encoding="utf-8") as f:
        return json.load(f)


def seed_reference_data(db: Session, data: Optional[dict] = None) -> dict:
    """
    Insert the default roles and sample types that are missing.
    Existing rows are left untouched, so this is safe on every startup.
    """
    data = data if data is not None else load_reference_json()
    created = {"roles": 0, "sample_types": 0}

    try:
        existing_roles = {name for (name,) in db.query(Role.role_name).all()}
        for role in data.get("roles", []):
            if role["role_name"] not in existing_roles:
                db.add(Role(**role))
                created["roles"] += 1

        existing_types = {name for (name,) in db.query(SampleType.type_name).all()}
        for sample_type in data.get("sample_types", []):
            if sample_type["type_name"] not in existing_types:
                db.add(SampleType(**sample_type, active=True))
                created["sample_types"] += 1

        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to seed reference data: {e}")
        raise

    logger.info(f"Reference data seeded: {created['roles']} roles, {created['sample_types']} sample types")
    return created


def seed_all(db: Optional[Session] = None) -> None:
    """Roles, sample types and the default admin account."""
    own_session = db is None
    db = db or SessionLocal()
    try:
        seed_reference_data(db)
        create_default_admin(db, settings.DEFAULT_ADMIN_USERNAME, settings.DEFAULT_ADMIN_PASSWORD)
    finally:
        if own_session:
            db.close()
    logger.info("Seeding process completed.")
