import uuid
from datetime import timedelta
from unittest.mock import Mock

import pytest

from app.errors import BookingError
from app.models.booking_model import Booking
from app.models.user_model import User
from app.schemas.booking_schema import BookingCreate
from app.services.booking_crud import booking_crud
from app.utils.booking_rules import BookingStatus
from app.utils.datetime_utils import utcnow
from tests.conftest import auth_headers, booking_payload, future, insert_booking, make_user


def error_code(response):
    return response.json()["error"]["code"]


def test_create_booking(client, db, client_user, car):
    pickup = future(days=3)
    payload = booking_payload(client_user, car, pickup, pickup + timedelta(days=2))

    response = client.post("/bookings", json=payload, headers=auth_headers(client_user))

    assert response.status_code == 201, response.text
    body = response.json()
    assert body["success"] is True
    assert body["bookingNumber"] == "0001"
    assert "Toyota Corolla 2022 is booked for" in body["message"]
    assert "Your order: #0001" in body["message"]

    booking = db.query(Booking).filter(Booking.id == body["bookingId"]).one()
    assert booking.status == BookingStatus.BOOKED.value
    assert booking.cancel_request_status == "NONE"


def test_missing_fields(client, client_user, car):
    payload = booking_payload(client_user, car, future(3), future(5))
    del payload["dropOffLocationId"]

    response = client.post("/bookings", json=payload, headers=auth_headers(client_user))

    assert response.status_code == 400
    assert response.json() == {
        "success": False,
        "error": {"message": "Missing required booking fields", "code": "MISSING_FIELDS"},
    }


def test_unknown_client_is_rejected(db, car):
    payload = BookingCreate(
        car_id=car.id,
        client_id=uuid.uuid4(),
        pickup_datetime=future(3),
        dropoff_datetime=future(5),
        pickup_location_id=car.location_ids[0],
        dropoff_location_id=car.location_ids[0],
    )
    notifier = Mock()

    with pytest.raises(BookingError) as exc_info:
        booking_crud.create_booking(db, payload, notifier)

    assert exc_info.value.status_code == 401
    assert exc_info.value.code == "INVALID_USER"
    notifier.dispatch.assert_not_called()


def test_unverified_documents(client, db, car):
    user = make_user(db, "newbie@example.com", verified=False)
    payload = booking_payload(user, car, future(3), future(5))

    response = client.post("/bookings", json=payload, headers=auth_headers(user))

    assert response.status_code == 400
    assert error_code(response) == "UNVERIFIED_DOCUMENT"


def test_unverified_documents_checked_before_dates(client, db, car):
    user = make_user(db, "newbie@example.com", verified=False)
    payload = booking_payload(user, car, future(5), future(3))

    response = client.post("/bookings", json=payload, headers=auth_headers(user))

    assert error_code(response) == "UNVERIFIED_DOCUMENT"


def test_stale_verification_is_corrected(client, db, client_user, car):
    client_user.license_document_url = None
    db.commit()

    response = client.post(
        "/bookings",
        json=booking_payload(client_user, car, future(3), future(5)),
        headers=auth_headers(client_user),
    )

    assert response.status_code == 400
    assert error_code(response) == "UNVERIFIED_DOCUMENT"
    db.expire_all()
    stored = db.query(User).filter(User.id == client_user.id).one()
    assert stored.license_status == "UNVERIFIED"
    assert stored.aadhaar_status == "VERIFIED"


@pytest.mark.parametrize("hours", [0, -5])
def test_dropoff_must_follow_pickup(client, client_user, car, hours):
    pickup = future(3)
    payload = booking_payload(client_user, car, pickup, pickup + timedelta(hours=hours))

    response = client.post("/bookings", json=payload, headers=auth_headers(client_user))

    assert response.status_code == 400
    assert error_code(response) == "INVALID_DATE_RANGE"


def test_pickup_needs_lead_time(client, client_user, car):
    pickup = utcnow() + timedelta(hours=2)
    payload = booking_payload(client_user, car, pickup, pickup + timedelta(days=1))

    response = client.post("/bookings", json=payload, headers=auth_headers(client_user))

    assert response.status_code == 400
    assert error_code(response) == "INVALID_PICKUP_TIME"
    assert "24 hours" in response.json()["error"]["message"]


def test_unknown_car(client, client_user, car):
    payload = booking_payload(client_user, car, future(3), future(5))
    payload["carId"] = str(uuid.uuid4())

    response = client.post("/bookings", json=payload, headers=auth_headers(client_user))

    assert response.status_code == 404
    assert error_code(response) == "CAR_NOT_FOUND"


def test_location_not_served_by_car(client, client_user, car, locations):
    odesa = locations[2]
    payload = booking_payload(client_user, car, future(3), future(5), dropoff_location=odesa.id)

    response = client.post("/bookings", json=payload, headers=auth_headers(client_user))

    assert response.status_code == 400
    assert error_code(response) == "INVALID_LOCATION"


def test_different_pickup_and_dropoff_locations(client, client_user, car, locations):
    kyiv, lviv, _ = locations
    payload = booking_payload(
        client_user, car, future(3), future(5), pickup_location=kyiv.id, dropoff_location=lviv.id
    )

    response = client.post("/bookings", json=payload, headers=auth_headers(client_user))

    assert response.status_code == 201, response.text


def test_overlapping_booking_is_rejected(client, db, client_user, other_user, car):
    start = future(days=10)
    insert_booking(db, other_user, car, start, start + timedelta(days=2))
    payload = booking_payload(
        client_user, car, start + timedelta(days=1), start + timedelta(days=3)
    )

    response = client.post("/bookings", json=payload, headers=auth_headers(client_user))

    assert response.status_code == 400
    assert error_code(response) == "OVERLAP"
    assert db.query(Booking).count() == 1


def test_touching_booking_is_allowed(client, db, client_user, other_user, car):
    start = future(days=10)
    insert_booking(db, other_user, car, start, start + timedelta(days=2))
    payload = booking_payload(
        client_user, car, start + timedelta(days=2), start + timedelta(days=4)
    )

    response = client.post("/bookings", json=payload, headers=auth_headers(client_user))

    assert response.status_code == 201, response.text
    assert response.json()["bookingNumber"] == "0002"


@pytest.mark.parametrize(
    "status",
    [BookingStatus.CANCELED, BookingStatus.SERVICEPROVIDED, BookingStatus.SERVICEFINISHED],
)
def test_closed_bookings_do_not_block_creation(client, db, client_user, other_user, car, status):
    start = future(days=10)
    insert_booking(db, other_user, car, start, start + timedelta(days=2), status=status)
    payload = booking_payload(client_user, car, start, start + timedelta(days=2))

    response = client.post("/bookings", json=payload, headers=auth_headers(client_user))

    assert response.status_code == 201, response.text


def test_booking_numbers_are_sequential(client, client_user, car):
    numbers = []
    for offset in (3, 6, 9):
        pickup = future(days=offset)
        response = client.post(
            "/bookings",
            json=booking_payload(client_user, car, pickup, pickup + timedelta(days=1)),
            headers=auth_headers(client_user),
        )
        assert response.status_code == 201, response.text
        numbers.append(response.json()["bookingNumber"])

    assert numbers == ["0001", "0002", "0003"]


def test_cannot_book_for_someone_else(client, client_user, other_user, car):
    payload = booking_payload(other_user, car, future(3), future(5))

    response = client.post("/bookings", json=payload, headers=auth_headers(client_user))

    assert response.status_code == 403


def test_creation_sends_notification(client, client_user, car):
    pickup = future(days=3)
    headers = auth_headers(client_user)
    client.post("/bookings", json=booking_payload(client_user, car, pickup, pickup + timedelta(days=1)),
                headers=headers)

    response = client.get("/notifications", headers=headers)

    assert response.status_code == 200
    titles = [n["title"] for n in response.json()["notifications"]]
    assert titles == ["Reservation request received"]
