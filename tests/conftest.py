import os
import tempfile
from datetime import timedelta

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["REDIS_URL"] = ""
os.environ["ENV"] = "test"
os.environ["LOG_FILE"] = os.path.join(tempfile.gettempdir(), "rentalbee-tests.log")

import pytest
from fastapi.testclient import TestClient

from app.database import Base, SessionLocal, engine
from app.main import app
from app.models.booking_model import Booking
from app.models.car_model import Car
from app.models.location_model import Location
from app.models.user_model import User
from app.security.auth import create_access_token, get_password_hash
from app.utils.booking_rules import BookingStatus
from app.utils.datetime_utils import utcnow

PASSWORD = "Password123!"
_password_hash = get_password_hash(PASSWORD)


@pytest.fixture(autouse=True)
def reset_database():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


def make_user(db, email, role="CLIENT", verified=True, first_name="Test", last_name="User"):
    user = User(
        first_name=first_name,
        last_name=last_name,
        email=email,
        password_hash=_password_hash,
        role=role,
    )
    if verified:
        user.aadhaar_document_url = "https://docs.example.com/aadhaar.pdf"
        user.aadhaar_status = "VERIFIED"
        user.license_document_url = "https://docs.example.com/license.pdf"
        user.license_status = "VERIFIED"
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def auth_headers(user):
    token, _ = create_access_token(data={"sub": str(user.id)})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def client_user(db):
    return make_user(db, "alice@example.com", first_name="Alice", last_name="Walker")


@pytest.fixture
def other_user(db):
    return make_user(db, "bob@example.com", first_name="Bob", last_name="Stone")


@pytest.fixture
def agent(db):
    return make_user(db, "agent@example.com", role="SUPPORT_AGENT", verified=False)


@pytest.fixture
def admin(db):
    return make_user(db, "admin@example.com", role="ADMIN", verified=False)


@pytest.fixture
def locations(db):
    kyiv = Location(location_name="Kyiv", location_address="khreshchatyk st, 1")
    lviv = Location(location_name="Lviv", location_address="rynok sq, 10")
    odesa = Location(location_name="Odesa", location_address="deribasivska st, 5")
    db.add_all([kyiv, lviv, odesa])
    db.commit()
    for location in (kyiv, lviv, odesa):
        db.refresh(location)
    return kyiv, lviv, odesa


@pytest.fixture
def car(db, locations):
    kyiv, lviv, _ = locations
    db_car = Car(
        model="Toyota Corolla 2022",
        category="ECONOMY",
        gear_box_type="AUTOMATIC",
        fuel_type="PETROL",
        passenger_capacity=5,
        price_per_day=45.0,
        images=["https://img.example.com/corolla.jpg"],
        locations=[kyiv, lviv],
    )
    db.add(db_car)
    db.commit()
    db.refresh(db_car)
    return db_car


def future(days=3, hours=0):
    """A whole-hour naive UTC datetime safely past the booking lead time"""
    return (utcnow() + timedelta(days=days, hours=hours)).replace(minute=0, second=0, microsecond=0)


def booking_payload(user, car, pickup, dropoff, pickup_location=None, dropoff_location=None):
    location_id = str(car.location_ids[0])
    return {
        "carId": str(car.id),
        "clientId": str(user.id),
        "pickupDateTime": pickup.isoformat(),
        "dropOffDateTime": dropoff.isoformat(),
        "pickupLocationId": str(pickup_location or location_id),
        "dropOffLocationId": str(dropoff_location or location_id),
    }


def insert_booking(
        db, user, car, pickup, dropoff, status=BookingStatus.BOOKED, number="0001", created_at=None
):
    """Store a booking directly, bypassing creation checks"""
    location_id = car.location_ids[0]
    booking = Booking(
        booking_number=number,
        car_id=car.id,
        client_id=user.id,
        pickup_location_id=location_id,
        dropoff_location_id=location_id,
        pickup_datetime=pickup,
        dropoff_datetime=dropoff,
        status=BookingStatus(status).value,
    )
    if created_at is not None:
        booking.created_at = created_at
    db.add(booking)
    db.commit()
    db.refresh(booking)
    return booking
