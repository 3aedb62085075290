import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient
from dotenv import load_dotenv

from app.core.permissions import RoleName
from app.core.security import create_access_token
from app.db.base import Base
from app.db.seed_data import seed_reference_data
from app.db.session import get_db
from app.main import app
from app.services import auth_service, reference_service
from app.services.cast_service import create_cast

load_dotenv()


@pytest.fixture
def db_engine():
    """
    Fresh in-memory SQLite database per test, with foreign keys enforced.
    StaticPool keeps the single connection shared with the TestClient threads.
    """
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(db_engine):
    """Session on the test database with roles and sample types seeded."""
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = TestingSessionLocal()
    seed_reference_data(session)
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(db):
    """
    Provides a TestClient whose requests use the test session.
    The lifespan is not entered, so startup never touches the real database.
    """
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    """Factory creating an active user with the given roles."""
    counter = {"n": 0}

    def _make_user(*roles, username=None, password="secret-pass"):
        counter["n"] += 1
        return auth_service.create_user(
            db,
            {
                "username": username or f"user{counter['n']}",
                "password": password,
                "first_name": "Test",
                "last_name": f"User{counter['n']}",
                "roles": [RoleName(r) for r in roles],
            },
        )

    return _make_user


@pytest.fixture
def context_for(db):
    """Build the request context of a user, as the bearer dependency would."""
    def _context_for(user):
        return auth_service.build_context(db, user.user_id)

    return _context_for


@pytest.fixture
def auth_headers():
    """Bearer header for a user."""
    def _auth_headers(user):
        token = create_access_token(user.user_id, user.username)
        return {"Authorization": f"Bearer {token}"}

    return _auth_headers


@pytest.fixture
def reference(db):
    """
    One ship, one cruise with a station planned at 100 dbar (seq 1) and
    50 dbar (seq 2), a second station, three niskins and one operational sensor.
    """
    ship = reference_service.create_ship(db, {"ship_name": "Ronald H. Brown", "ship_number": 1, "ship_abbreviation": "RB"})
    cruise = reference_service.create_cruise(db, {"cruise_number": 2401, "cruise_name": "GOMECC-4", "cruise_abbreviation": "GM4"})
    station = reference_service.create_station(
        db,
        {"cruise_id": cruise.cruise_id, "station_number": "001", "station_name": "Florida Straits", "latitude": 25.5, "longitude": -80.1},
    )
    other_station = reference_service.create_station(
        db, {"cruise_id": cruise.cruise_id, "station_number": "002", "station_name": "Dry Tortugas"}
    )
    deep = reference_service.add_target_depth(db, station.station_id, {"target_pressure": 100, "sequence_order": 1})
    shallow = reference_service.add_target_depth(db, station.station_id, {"target_pressure": 50, "sequence_order": 2})
    other_target = reference_service.add_target_depth(
        db, other_station.station_id, {"target_pressure": 10, "sequence_order": 1}
    )
    niskins = [reference_service.create_niskin(db, {"niskin_number": n}) for n in (1, 2, 3)]
    sensor = reference_service.create_sensor(db, {"sensor_type": "SBE 43 Oxygen", "vin_number": "43-0001"})

    return {
        "ship_id": ship.ship_id,
        "cruise_id": cruise.cruise_id,
        "station_id": station.station_id,
        "other_station_id": other_station.station_id,
        "deep_target_id": deep.target_depth_id,
        "shallow_target_id": shallow.target_depth_id,
        "other_target_id": other_target.target_depth_id,
        "niskin_ids": [n.niskin_id for n in niskins],
        "sensor_id": sensor.sensor_id,
    }


@pytest.fixture
def observer(make_user):
    return make_user("observer", username="observer1")


@pytest.fixture
def admin(make_user):
    return make_user("admin", username="chief")


@pytest.fixture
def cast(db, reference, observer, context_for):
    """A freshly created cast at the reference station, logged by the observer."""
    return create_cast(
        db,
        {
            "ship_id": reference["ship_id"],
            "station_id": reference["station_id"],
            "cruise_id": reference["cruise_id"],
            "cast_number": 1,
        },
        context_for(observer),
    )
