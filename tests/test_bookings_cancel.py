import uuid
from datetime import timedelta

from app.models.booking_model import Booking
from app.utils.booking_rules import BookingStatus
from app.utils.datetime_utils import utcnow
from tests.conftest import auth_headers, future, insert_booking


def cancel(client, booking_id, user):
    return client.put(
        f"/bookings/cancel/{booking_id}",
        json={"userId": str(user.id)},
        headers=auth_headers(user),
    )


def reload(db, booking):
    db.expire_all()
    return db.query(Booking).filter(Booking.id == booking.id).one()


def notification_titles(client, user):
    response = client.get("/notifications", headers=auth_headers(user))
    return [n["title"] for n in response.json()["notifications"]]


def test_fresh_booking_is_canceled_by_owner(client, db, client_user, car):
    booking = insert_booking(
        db, client_user, car, future(3), future(5), created_at=utcnow() - timedelta(hours=2)
    )

    response = cancel(client, booking.id, client_user)

    assert response.status_code == 200, response.text
    assert response.json()["message"] == "Booking canceled successfully"
    stored = reload(db, booking)
    assert stored.status == BookingStatus.CANCELED.value
    assert stored.cancel_request_status == "NONE"
    assert notification_titles(client, client_user) == ["Booking Canceled"]


def test_fresh_booking_cannot_be_canceled_by_another_client(client, db, client_user, other_user, car):
    booking = insert_booking(
        db, client_user, car, future(3), future(5), created_at=utcnow() - timedelta(hours=2)
    )

    response = cancel(client, booking.id, other_user)

    assert response.status_code == 403
    assert response.json()["error"]["code"] == "NOT_AUTHORIZED"
    assert reload(db, booking).status == BookingStatus.BOOKED.value


def test_old_booking_cancellation_is_deferred(client, db, client_user, car):
    booking = insert_booking(
        db, client_user, car, future(3), future(5), created_at=utcnow() - timedelta(hours=13)
    )

    response = cancel(client, booking.id, client_user)

    assert response.status_code == 200, response.text
    assert "over 12 hours old" in response.json()["message"]
    stored = reload(db, booking)
    assert stored.status == BookingStatus.BOOKED.value
    assert stored.cancel_request_status == "PENDING"
    assert stored.cancel_requested_at is not None
    assert notification_titles(client, client_user) == ["Cancel Request Pending Review"]


def test_reserved_booking_cancellation_is_deferred(client, db, client_user, car):
    booking = insert_booking(
        db, client_user, car, future(3), future(5), status=BookingStatus.RESERVED
    )

    response = cancel(client, booking.id, client_user)

    assert response.status_code == 200, response.text
    assert response.json()["message"] == "Cancel request submitted successfully for RESERVED booking"
    stored = reload(db, booking)
    assert stored.status == BookingStatus.RESERVED.value
    assert stored.cancel_request_status == "PENDING"
    assert notification_titles(client, client_user) == ["Cancel Request Submitted"]


def test_deferred_booking_still_blocks_the_car(client, db, client_user, car):
    start = future(3)
    booking = insert_booking(
        db, client_user, car, start, start + timedelta(days=2), status=BookingStatus.RESERVED
    )
    cancel(client, booking.id, client_user)

    response = client.get(
        f"/cars/{car.id}/availability",
        params={
            "pickupDateTime": (start + timedelta(hours=1)).isoformat(),
            "dropOffDateTime": (start + timedelta(hours=5)).isoformat(),
        },
    )

    assert response.json()["status"] == "RESERVED"


def test_started_booking_cannot_be_canceled(client, db, client_user, car):
    booking = insert_booking(
        db, client_user, car, future(3), future(5), status=BookingStatus.SERVICESTARTED
    )

    response = cancel(client, booking.id, client_user)

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "INVALID_STATUS"


def test_unknown_booking(client, client_user):
    response = cancel(client, uuid.uuid4(), client_user)

    assert response.status_code == 404
    assert response.json()["error"]["code"] == "BOOKING_NOT_FOUND"


def test_cancel_on_behalf_of_another_user_is_forbidden(client, db, client_user, other_user, car):
    booking = insert_booking(db, client_user, car, future(3), future(5))

    response = client.put(
        f"/bookings/cancel/{booking.id}",
        json={"userId": str(client_user.id)},
        headers=auth_headers(other_user),
    )

    assert response.status_code == 403


def test_reserved_booking_cancel_request_requires_owner(client, db, client_user, other_user, car):
    booking = insert_booking(
        db, client_user, car, future(3), future(5), status=BookingStatus.RESERVED
    )

    response = cancel(client, booking.id, other_user)

    assert response.status_code == 403
    assert response.json()["error"]["code"] == "NOT_AUTHORIZED"
    stored = reload(db, booking)
    assert stored.status == BookingStatus.RESERVED.value
    assert stored.cancel_request_status == "NONE"
    assert notification_titles(client, other_user) == []
    assert notification_titles(client, client_user) == []


def test_old_booking_cancel_request_requires_owner(client, db, client_user, other_user, car):
    booking = insert_booking(
        db, client_user, car, future(3), future(5), created_at=utcnow() - timedelta(hours=13)
    )

    response = cancel(client, booking.id, other_user)

    assert response.status_code == 403
    assert response.json()["error"]["code"] == "NOT_AUTHORIZED"
    stored = reload(db, booking)
    assert stored.status == BookingStatus.BOOKED.value
    assert stored.cancel_request_status == "NONE"
    assert stored.cancel_requested_at is None
