from datetime import datetime

import pytest
import pytz

from debliss import db
from debliss.models import Reservation

ACCRA = pytz.timezone("Africa/Accra")


def at(value):
    return ACCRA.localize(datetime.strptime(value, "%Y-%m-%d %H:%M:%S"))


@pytest.fixture
def clock(monkeypatch):
    """Pin the reservation clock; call the returned setter to move it."""
    state = {"now": at("2025-12-20 12:00:00")}
    monkeypatch.setattr("debliss.services.reservations.current_time", lambda: state["now"])

    def set_now(value):
        state["now"] = at(value)
    return set_now


def booking(**overrides):
    payload = {
        "numberOfTables": 2,
        "chairsPerTable": 4,
        "reservationDate": "2025-12-25",
        "reservationTime": "19:00",
        "customerName": "  Efua Mensah ",
        "customerEmail": "Efua@Example.COM",
        "customerPhone": "0244000000",
        "specialRequests": "Window seat",
    }
    payload.update(overrides)
    return payload


def test_table_booking(client, clock):
    response = client.post("/reservation", json=booking())

    assert response.status_code == 200
    body = response.get_json()
    assert body["success"] is True
    assert body["message"] == "Reservation created successfully"
    reservation = body["reservation"]
    assert body["reservationId"] == reservation["id"]
    assert reservation["totalGuests"] == 8
    assert reservation["status"] == "pending"
    assert reservation["customerName"] == "Efua Mensah"
    assert reservation["customerEmail"] == "efua@example.com"


def test_whole_restaurant_booking_and_conflict(client, clock):
    first = client.post("/reservation", json=booking(
        wholeRestaurant=True, numberOfTables=None, chairsPerTable=None))

    assert first.status_code == 200
    reservation = first.get_json()["reservation"]
    assert reservation["wholeRestaurant"] is True
    assert reservation["numberOfTables"] == 0
    assert reservation["chairsPerTable"] == 0
    assert reservation["totalGuests"] == 100

    second = client.post("/reservation", json=booking(wholeRestaurant=True))
    assert second.status_code == 409
    assert second.get_json()["error"] == "Whole restaurant is already booked for this time slot"
    assert Reservation.query.count() == 1


def test_cancelled_whole_booking_frees_the_slot(client, clock):
    first = client.post("/reservation", json=booking(wholeRestaurant=True)).get_json()
    client.patch(f"/reservation/{first['reservationId']}/cancel")

    again = client.post("/reservation", json=booking(wholeRestaurant=True))
    assert again.status_code == 200


def test_past_slot_is_rejected(client, clock):
    clock("2025-12-25 19:00:00")

    response = client.post("/reservation", json=booking())

    assert response.status_code == 400
    assert Reservation.query.count() == 0


@pytest.mark.parametrize("overrides, field", [
    ({"numberOfTables": 5}, "numberOfTables"),
    ({"numberOfTables": 0}, "numberOfTables"),
    ({"chairsPerTable": 1}, "chairsPerTable"),
    ({"chairsPerTable": 7}, "chairsPerTable"),
    ({"reservationDate": "25/12/2025"}, "reservationDate"),
    ({"reservationTime": "7pm"}, "reservationTime"),
    ({"customerEmail": "not-an-email"}, "customerEmail"),
])
def test_invalid_bookings_are_rejected(client, clock, overrides, field):
    response = client.post("/reservation", json=booking(**overrides))

    assert response.status_code == 400
    assert field in response.get_json()["errors"]


def test_cancel_boundary_is_one_hour_before(client, clock):
    reservation_id = client.post("/reservation", json=booking()).get_json()["reservationId"]

    clock("2025-12-25 18:00:00")
    assert client.patch(f"/reservation/{reservation_id}/cancel").status_code == 409

    clock("2025-12-25 17:59:59")
    response = client.patch(f"/reservation/{reservation_id}/cancel")
    assert response.status_code == 200
    assert response.get_json()["message"] == "Reservation cancelled successfully"
    assert db.session.get(Reservation, reservation_id).status == "cancelled"


def test_terminal_reservations_cannot_be_cancelled(client, clock):
    reservation_id = client.post("/reservation", json=booking()).get_json()["reservationId"]
    client.post("/admin/reservation-status", json={
        "reservationId": reservation_id, "status": "completed"})

    response = client.patch(f"/reservation/{reservation_id}/cancel")

    assert response.status_code == 409
    assert db.session.get(Reservation, reservation_id).status == "completed"


def test_admin_status_update(client, clock):
    reservation_id = client.post("/reservation", json=booking()).get_json()["reservationId"]

    ok = client.post("/admin/reservation-status", json={
        "reservationId": reservation_id, "status": "confirmed"})
    assert ok.status_code == 200
    assert ok.get_json()["reservation"]["status"] == "confirmed"

    bad = client.post("/admin/reservation-status", json={
        "reservationId": reservation_id, "status": "seated"})
    assert bad.status_code == 400
    assert bad.get_json()["error"] == "Invalid status"
    assert db.session.get(Reservation, reservation_id).status == "confirmed"

    missing = client.post("/admin/reservation-status", json={
        "reservationId": 9999, "status": "confirmed"})
    assert missing.status_code == 404


def test_reservation_listings(client, clock, customer):
    mine = client.post("/reservation", json=booking(userId=customer.id)).get_json()
    client.post("/reservation", json=booking(reservationTime="20:00"))

    admin_view = client.get("/admin/reservations").get_json()
    assert admin_view["success"] is True
    assert len(admin_view["reservations"]) == 2
    assert admin_view["reservations"][1]["user"] == {
        "id": customer.id, "name": "ama", "email": "ama@example.com"}

    own = client.get(f"/user/reservations/{customer.id}").get_json()["reservations"]
    assert [r["id"] for r in own] == [mine["reservationId"]]

    detail = client.get(f"/reservation/{mine['reservationId']}")
    assert detail.status_code == 200
    assert client.get("/reservation/9999").status_code == 404


def test_whole_restaurant_conflict_ignores_slot_spelling(client, clock):
    first = client.post("/reservation", json=booking(wholeRestaurant=True))
    assert first.status_code == 200

    second = client.post("/reservation", json=booking(
        wholeRestaurant=True, reservationTime="19:0"))
    third = client.post("/reservation", json=booking(
        wholeRestaurant=True, reservationDate="2025-12-25", reservationTime="19:00"))

    assert second.status_code == 409
    assert third.status_code == 409
    assert Reservation.query.count() == 1


def test_slot_is_stored_zero_padded(client, clock):
    response = client.post("/reservation", json=booking(
        reservationDate="2026-1-5", reservationTime="9:5"))

    assert response.status_code == 200
    reservation = response.get_json()["reservation"]
    assert reservation["reservationDate"] == "2026-01-05"
    assert reservation["reservationTime"] == "09:05"
