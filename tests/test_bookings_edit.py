from datetime import timedelta
from itertools import combinations

from app.models.booking_model import Booking
from app.utils.booking_rules import NON_BLOCKING_STATUSES, BookingStatus, windows_overlap
from app.utils.datetime_utils import utcnow
from tests.conftest import auth_headers, booking_payload, future, insert_booking

EDIT_FORMAT = "%Y-%m-%d %H:%M"


def edit(client, booking_id, user, **changes):
    payload = {"userId": str(user.id)}
    payload.update(changes)
    return client.put(f"/bookings/edit/{booking_id}", json=payload, headers=auth_headers(user))


def reload(db, booking):
    db.expire_all()
    return db.query(Booking).filter(Booking.id == booking.id).one()


def reserved_booking(db, user, car, start, days=2, number="0001"):
    return insert_booking(
        db, user, car, start, start + timedelta(days=days), status=BookingStatus.RESERVED, number=number
    )


def test_edit_dates(client, db, client_user, car):
    start = future(days=5)
    booking = reserved_booking(db, client_user, car, start)
    new_dropoff = start + timedelta(days=4)

    response = edit(client, booking.id, client_user, dropoffDateTime=new_dropoff.strftime(EDIT_FORMAT))

    assert response.status_code == 200, response.text
    stored = reload(db, booking)
    assert stored.dropoff_datetime == new_dropoff
    assert stored.pickup_datetime == start


def test_edit_locations(client, db, client_user, car, locations):
    booking = reserved_booking(db, client_user, car, future(days=5))
    lviv = locations[1]

    response = edit(client, booking.id, client_user, dropoffLocationId=str(lviv.id))

    assert response.status_code == 200, response.text
    assert reload(db, booking).dropoff_location_id == lviv.id


def test_location_not_served_by_car(client, db, client_user, car, locations):
    booking = reserved_booking(db, client_user, car, future(days=5))
    odesa = locations[2]

    response = edit(client, booking.id, client_user, pickupLocationId=str(odesa.id))

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "INVALID_LOCATION"


def test_only_reserved_bookings_can_be_edited(client, db, client_user, car):
    booking = insert_booking(db, client_user, car, future(5), future(7))

    response = edit(client, booking.id, client_user, dropoffDateTime=future(8).strftime(EDIT_FORMAT))

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "INVALID_STATUS"


def test_owner_only(client, db, client_user, other_user, car):
    booking = reserved_booking(db, client_user, car, future(days=5))

    response = edit(client, booking.id, other_user, dropoffDateTime=future(9).strftime(EDIT_FORMAT))

    assert response.status_code == 403
    assert response.json()["error"]["code"] == "NOT_AUTHORIZED"


def test_malformed_datetime(client, db, client_user, car):
    booking = reserved_booking(db, client_user, car, future(days=5))

    response = edit(client, booking.id, client_user, pickupDateTime="2030-05-10T10:00:00")

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "INVALID_DATE_FORMAT"


def test_merged_window_must_stay_ordered(client, db, client_user, car):
    start = future(days=5)
    booking = reserved_booking(db, client_user, car, start)

    response = edit(
        client, booking.id, client_user,
        pickupDateTime=(start + timedelta(days=3)).strftime(EDIT_FORMAT),
    )

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "INVALID_DATE_RANGE"


def test_new_pickup_needs_lead_time(client, db, client_user, car):
    booking = reserved_booking(db, client_user, car, future(days=5))
    soon = utcnow() + timedelta(hours=3)

    response = edit(client, booking.id, client_user, pickupDateTime=soon.strftime(EDIT_FORMAT))

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "INVALID_PICKUP_TIME"


def test_edit_cannot_overlap_other_bookings(client, db, client_user, other_user, car):
    start = future(days=5)
    booking = reserved_booking(db, client_user, car, start)
    insert_booking(db, other_user, car, start + timedelta(days=3), start + timedelta(days=5), number="0002")

    response = edit(
        client, booking.id, client_user,
        dropoffDateTime=(start + timedelta(days=4)).strftime(EDIT_FORMAT),
    )

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "OVERLAP"
    assert reload(db, booking).dropoff_datetime == start + timedelta(days=2)


def test_edit_may_overlap_its_own_window(client, db, client_user, car):
    start = future(days=5)
    booking = reserved_booking(db, client_user, car, start)

    response = edit(
        client, booking.id, client_user,
        pickupDateTime=(start + timedelta(hours=6)).strftime(EDIT_FORMAT),
        dropoffDateTime=(start + timedelta(days=3)).strftime(EDIT_FORMAT),
    )

    assert response.status_code == 200, response.text


def test_mixed_changes_never_double_book_the_car(client, db, client_user, other_user, agent, car):
    base = future(days=5)

    def day(n):
        return base + timedelta(days=n)

    def create(user, start, end):
        return client.post(
            "/bookings", json=booking_payload(user, car, day(start), day(end)), headers=auth_headers(user)
        )

    def reserve(booking_id):
        response = client.post(
            f"/support/reservations/{booking_id}", json={"status": "RESERVED"}, headers=auth_headers(agent)
        )
        assert response.status_code == 200, response.text

    def move(booking_id, user, start, end):
        return edit(
            client,
            booking_id,
            user,
            pickupDateTime=day(start).strftime(EDIT_FORMAT),
            dropoffDateTime=day(end).strftime(EDIT_FORMAT),
        )

    first = create(client_user, 0, 2)
    assert first.status_code == 201, first.text
    first_id = first.json()["bookingId"]
    assert create(other_user, 1, 3).json()["error"]["code"] == "OVERLAP"
    second = create(other_user, 2, 4)
    assert second.status_code == 201, second.text

    canceled = client.put(
        f"/bookings/cancel/{second.json()['bookingId']}",
        json={"userId": str(other_user.id)},
        headers=auth_headers(other_user),
    )
    assert canceled.status_code == 200, canceled.text

    reserve(first_id)
    assert move(first_id, client_user, 0, 4).status_code == 200
    assert create(other_user, 3, 5).json()["error"]["code"] == "OVERLAP"
    third = create(other_user, 4, 6)
    assert third.status_code == 201, third.text
    third_id = third.json()["bookingId"]

    reserve(third_id)
    assert move(third_id, other_user, 3, 6).json()["error"]["code"] == "OVERLAP"
    assert move(third_id, other_user, 6, 7).status_code == 200
    assert create(client_user, 4, 6).status_code == 201
    assert move(first_id, client_user, 5, 8).json()["error"]["code"] == "OVERLAP"

    db.expire_all()
    blocking = [
        b for b in db.query(Booking).filter(Booking.car_id == car.id).all()
        if BookingStatus(b.status) not in NON_BLOCKING_STATUSES
    ]
    assert len(blocking) == 3
    for a, b in combinations(blocking, 2):
        assert not windows_overlap(a.pickup_datetime, a.dropoff_datetime, b.pickup_datetime, b.dropoff_datetime)
