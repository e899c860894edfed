import uuid
from datetime import datetime

from tests.conftest import auth_headers, future, insert_booking


def test_user_bookings(client, db, client_user, car):
    pickup = datetime(2031, 3, 14, 10, 0)
    insert_booking(db, client_user, car, pickup, datetime(2031, 3, 16, 10, 0), number="0007")

    response = client.get(f"/bookings/{client_user.id}", headers=auth_headers(client_user))

    assert response.status_code == 200, response.text
    assert response.json() == [
        {
            "bookingId": response.json()[0]["bookingId"],
            "carId": str(car.id),
            "bookingStatus": "BOOKED",
            "carImageUrl": "https://img.example.com/corolla.jpg",
            "carModel": "Toyota Corolla 2022",
            "orderDetails": "#0007 (14.03.2031)",
        }
    ]


def test_user_without_bookings_gets_empty_list(client, client_user):
    response = client.get(f"/bookings/{client_user.id}", headers=auth_headers(client_user))

    assert response.status_code == 200
    assert response.json() == []


def test_clients_cannot_list_other_users_bookings(client, client_user, other_user, agent):
    assert client.get(f"/bookings/{other_user.id}", headers=auth_headers(client_user)).status_code == 403
    assert client.get(f"/bookings/{other_user.id}", headers=auth_headers(agent)).status_code == 200


def test_booking_details(client, db, client_user, car, locations):
    booking = insert_booking(db, client_user, car, future(3), future(5))

    response = client.get(f"/bookings/details/{booking.id}", headers=auth_headers(client_user))

    assert response.status_code == 200, response.text
    body = response.json()
    assert body["bookingNumber"] == "0001"
    assert body["car"]["model"] == "Toyota Corolla 2022"
    assert [loc["name"] for loc in body["car"]["locations"]] == ["Kyiv", "Lviv"]
    assert body["pickupLocation"]["name"] == "Kyiv"
    assert body["cancelRequest"]["status"] == "NONE"


def test_booking_details_not_found(client, client_user):
    response = client.get(f"/bookings/details/{uuid.uuid4()}", headers=auth_headers(client_user))

    assert response.status_code == 404
    assert response.json()["error"]["code"] == "BOOKING_NOT_FOUND"


def test_booking_details_hidden_from_other_clients(client, db, client_user, other_user, car):
    booking = insert_booking(db, client_user, car, future(3), future(5))

    response = client.get(f"/bookings/details/{booking.id}", headers=auth_headers(other_user))

    assert response.status_code == 403
