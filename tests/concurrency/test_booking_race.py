import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import UTC, datetime, timedelta

import pytest
from sqlalchemy import func, select
from sqlalchemy.orm import sessionmaker

from app.core.exceptions import SlotTakenError
from app.core.rate_limiter import BookingRequestThrottle, InMemoryRateLimiter
from app.db.base import Base
from app.db.models import Booking, EventType, User
from app.db.session import create_db_engine
from app.schemas.booking import PublicBookingRequest
from app.services.admission_service import admit_booking
from app.services.booking_service import reserve_booking


@pytest.fixture()
def race_db(tmp_path):
    db_file = tmp_path / "race.db"
    engine = create_db_engine(f"sqlite+pysqlite:///{db_file}")
    SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    Base.metadata.create_all(bind=engine)

    seed_session = SessionLocal()
    owner = User(email="race-owner@example.com", hashed_password="x")
    seed_session.add(owner)
    seed_session.flush()
    event_type = EventType(
        user_id=owner.id,
        title="Race Portrait",
        slug="race-portrait",
        duration_minutes=30,
        minimum_booking_notice_minutes=0,
        timezone="UTC",
    )
    seed_session.add(event_type)
    seed_session.commit()
    event_type_id = event_type.id
    seed_session.close()

    try:
        yield SessionLocal, event_type_id
    finally:
        engine.dispose()


def _count_bookings(SessionLocal) -> int:
    check = SessionLocal()
    try:
        return check.scalar(select(func.count(Booking.id)))
    finally:
        check.close()


@pytest.mark.concurrent
def test_two_parallel_overlapping_reservations_only_one_succeeds(race_db):
    SessionLocal, event_type_id = race_db
    start = (datetime.now(UTC) + timedelta(days=3)).replace(hour=10, minute=0, second=0, microsecond=0)
    starts = [start, start + timedelta(minutes=15)]
    barrier = threading.Barrier(len(starts))

    def attempt(start_at: datetime) -> str:
        session = SessionLocal()
        try:
            barrier.wait()
            event_type = session.get(EventType, event_type_id)
            reserve_booking(
                session,
                event_type=event_type,
                start_at=start_at,
                end_at=start_at + timedelta(minutes=30),
                booking_date=start_at.date(),
                timezone="UTC",
                client_name="Racer",
                client_email="racer@example.com",
                client_phone="555-0100",
            )
            return "created"
        except SlotTakenError:
            return "conflict"
        finally:
            session.close()

    with ThreadPoolExecutor(max_workers=len(starts)) as pool:
        results = list(pool.map(attempt, starts))

    assert sorted(results) == ["conflict", "created"]
    assert _count_bookings(SessionLocal) == 1


@pytest.mark.concurrent
def test_parallel_public_admissions_for_the_same_slot_commit_once(race_db):
    SessionLocal, event_type_id = race_db
    day = (datetime.now(UTC) + timedelta(days=3)).date()
    throttle = BookingRequestThrottle(InMemoryRateLimiter(), limit=100, window_seconds=60)
    workers = 6
    barrier = threading.Barrier(workers)

    def attempt(index: int) -> str:
        payload = PublicBookingRequest(
            event_type_id=event_type_id,
            slug="race-portrait",
            start_time=f"{day.isoformat()}T10:00:00Z",
            end_time=f"{day.isoformat()}T10:30:00Z",
            date=day.isoformat(),
            timezone="UTC",
            client_name=f"Racer {index}",
            client_email=f"racer{index}@example.com",
            client_phone="555-0100",
        )
        session = SessionLocal()
        try:
            barrier.wait()
            admit_booking(db=session, payload=payload, client_ip=f"198.51.100.{index}", throttle=throttle)
            return "created"
        except SlotTakenError:
            return "conflict"
        finally:
            session.close()

    with ThreadPoolExecutor(max_workers=workers) as pool:
        results = list(pool.map(attempt, range(workers)))

    assert results.count("created") == 1
    assert results.count("conflict") == workers - 1
    assert _count_bookings(SessionLocal) == 1
