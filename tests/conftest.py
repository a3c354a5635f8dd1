from datetime import date, time, timedelta

import pytest
from fastapi.testclient import TestClient

from healthlife.auth.jwt_handler import create_access_token
from healthlife.database import Base, create_db_engine, create_session_factory
from healthlife.main import create_app
from healthlife.models.availability import DoctorAvailability
from healthlife.models.enums import UserRole
from healthlife.models.user import User


def upcoming(day_of_week: int) -> date:
    """Next date strictly after today falling on a Sunday-first day of week."""
    today = date.today()
    offset = (day_of_week - (today.weekday() + 1) % 7) % 7 or 7
    return today + timedelta(days=offset)


def seed(session_factory, *objects) -> list[int]:
    with session_factory() as session:
        session.add_all(objects)
        session.commit()
        return [obj.id for obj in objects]


def make_user(email: str, role: UserRole, first_name: str = 'Test', last_name: str = 'User') -> User:
    return User(email=email, role=role.value, first_name=first_name, last_name=last_name)


def make_window(doctor_id: int, day: int, start=time(9, 0), end=time(17, 0), is_available: bool = True):
    return DoctorAvailability(
        doctor_id=doctor_id,
        day_of_week=day,
        start_time=start,
        end_time=end,
        is_available=is_available,
    )


def auth_headers(email: str) -> dict:
    return {'Authorization': f'Bearer {create_access_token(subject=email)}'}


@pytest.fixture
def engine(tmp_path):
    engine = create_db_engine(f'sqlite:///{tmp_path / "healthlife.db"}')
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(tmp_path):
    app = create_app(database_url=f'sqlite:///{tmp_path / "api.db"}')
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def api_session_factory(client):
    return client.app.state.session_factory
