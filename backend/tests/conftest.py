import os
from datetime import date, timedelta

os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402
from sqlmodel import Session, SQLModel, create_engine  # noqa: E402

from competition_scheduler.database import get_session  # noqa: E402
from competition_scheduler.main import app  # noqa: E402
from competition_scheduler.services.schedule_types import (  # noqa: E402
    Athlete,
    Category,
    EventDay,
    Roster,
    Wod,
)

TEST_DATABASE_URL = "sqlite:///:memory:"

# ============================================================================
# Test Database Setup with StaticPool
# ============================================================================
# 1. sqlite:///:memory: with StaticPool so ALL sessions share the same DB
# 2. check_same_thread=False required for TestClient/threaded access
# 3. Models imported before create_all() (see session_fixture)
# 4. App dependency overridden to use test_engine (see client_fixture)
# 5. Tables dropped after each test so tests stay isolated
test_engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


def override_get_session():
    """Override session to use test engine"""
    with Session(test_engine) as session:
        yield session


@pytest.fixture(name="session", scope="function")
def session_fixture():
    """Provide a test database session on fresh tables"""
    from competition_scheduler.models.match_result_record import MatchResultRecord  # noqa: F401
    from competition_scheduler.models.schedule_record import ScheduleRecord  # noqa: F401

    SQLModel.metadata.create_all(test_engine)

    with Session(test_engine) as session:
        yield session

    SQLModel.metadata.drop_all(test_engine)


@pytest.fixture(name="other_session")
def other_session_fixture(session: Session):
    """A second session on the same tables, for interleaved writers"""
    with Session(test_engine) as other:
        yield other


@pytest.fixture(name="client")
def client_fixture(session: Session):
    """Provide a test client with overridden database session

    Override MUST be set BEFORE TestClient() and stay in place for the
    entire duration so the app never uses its own engine.
    """
    app.dependency_overrides[get_session] = override_get_session

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()


# ============================================================================
# Roster builders
# ============================================================================


def make_roster(category_sizes, wod_caps=(20,), day_count=1):
    """
    Roster with `category_sizes` = {category_id: athlete count}.

    Athletes are named "<category>-a<n>" in registration order; WODs "wod-<n>".
    """
    categories = [Category(category_id=c, name=c.title()) for c in category_sizes]
    athletes = [
        Athlete(athlete_id=f"{c}-a{i}", first_name="Athlete", last_name=str(i), category_id=c)
        for c, size in category_sizes.items()
        for i in range(1, size + 1)
    ]
    wods = [
        Wod(wod_id=f"wod-{i}", name=f"WOD {i}", time_cap_minutes=cap) for i, cap in enumerate(wod_caps, start=1)
    ]
    first = date(2026, 6, 6)
    days = [EventDay(day_id=f"d{i + 1}", date=first + timedelta(days=i)) for i in range(day_count)]
    return Roster(athletes=athletes, categories=categories, wods=wods, days=days)


@pytest.fixture(name="roster_factory")
def roster_factory_fixture():
    return make_roster
