import sys
from datetime import UTC, date, datetime, timedelta
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

sys.path.append(str(Path(__file__).resolve().parents[1]))

from app.core.rate_limiter import rate_limiter
from app.db.base import Base
from app.db.models import AvailabilityRule, Booking, Category, EventType, User  # noqa: F401
from app.db.session import create_db_engine, get_db
from app.main import app

TEST_DATABASE_URL = "sqlite+pysqlite:///:memory:"
engine = create_db_engine(TEST_DATABASE_URL, poolclass=StaticPool)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

OWNER_PASSWORD = "StrongPass123"


@pytest.fixture(autouse=True)
def reset_database() -> None:
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    rate_limiter.reset()


@pytest.fixture()
def client() -> TestClient:
    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture()
def register_owner(client):
    def _register(email: str = "owner@example.com", full_name: str | None = "Studio Owner") -> dict[str, str]:
        client.post(
            "/auth/register",
            json={"email": email, "password": OWNER_PASSWORD, "full_name": full_name},
        )
        login = client.post("/auth/login", json={"email": email, "password": OWNER_PASSWORD})
        return {"Authorization": f"Bearer {login.json()['access_token']}"}

    return _register


@pytest.fixture()
def owner_headers(register_owner) -> dict[str, str]:
    return register_owner()


@pytest.fixture()
def booking_day() -> date:
    return datetime.now(UTC).date() + timedelta(days=7)


@pytest.fixture()
def make_event_type(client, owner_headers):
    def _make(headers: dict[str, str] | None = None, **overrides) -> dict:
        payload = {
            "title": "Portrait Session",
            "slug": "portrait",
            "duration_minutes": 30,
            "minimum_booking_notice_minutes": 0,
            "timezone": "UTC",
        }
        payload.update(overrides)
        response = client.post("/api/event-types", headers=headers or owner_headers, json=payload)
        assert response.status_code == 201, response.text
        return response.json()

    return _make


@pytest.fixture()
def open_day(client, owner_headers):
    def _open(
        day: date,
        windows: list[tuple[str, str]] = (("09:00", "12:00"),),
        timezone: str = "UTC",
        headers: dict[str, str] | None = None,
    ) -> dict:
        response = client.put(
            f"/api/availability/dates/{day.isoformat()}",
            headers=headers or owner_headers,
            json={
                "windows": [{"start": start, "end": end} for start, end in windows],
                "timezone": timezone,
            },
        )
        assert response.status_code == 200, response.text
        return response.json()

    return _open


@pytest.fixture()
def booking_payload():
    def _payload(event_type: dict, day: date, start: str = "10:00", end: str = "10:30", **overrides) -> dict:
        payload = {
            "event_type_id": event_type["id"],
            "slug": event_type["slug"],
            "start_time": f"{day.isoformat()}T{start}:00Z",
            "end_time": f"{day.isoformat()}T{end}:00Z",
            "date": day.isoformat(),
            "timezone": "UTC",
            "client_name": "Ada Client",
            "client_email": "Ada@Example.com",
            "client_phone": "+1 555 0100",
            "notes": "Outdoor shoot if weather allows",
        }
        payload.update(overrides)
        return payload

    return _payload
