import pytest
from sqlalchemy import event
from sqlalchemy.exc import SQLAlchemyError

from debliss import db
from debliss.models import Order, FinishedDelivery, RiderFinishedDelivery


def mark_finished(client, order_id):
    return client.post("/user/mark-finished", json={"orderId": order_id})


@pytest.fixture
def delivered_order(client, place_order, rider):
    order = place_order()
    client.post("/admin/assign-rider", json={"orderId": order["id"], "riderId": rider.id})
    return order


def test_complete_order_archives_for_customer_and_rider(client, delivered_order, customer, rider):
    response = mark_finished(client, delivered_order["id"])

    assert response.status_code == 200
    assert response.get_json() == {
        "success": True,
        "message": "Order moved to finished orders for user and rider.",
    }
    assert db.session.get(Order, delivered_order["id"]) is None

    finished = FinishedDelivery.query.one()
    assert finished.user_id == customer.id
    assert finished.rider_id == rider.id
    assert finished.address == "East Legon"
    assert finished.items == delivered_order["items"]
    assert finished.pending == delivered_order["pending"]

    rider_copy = RiderFinishedDelivery.query.one()
    assert rider_copy.rider_id == rider.id
    assert rider_copy.address == "East Legon"


def test_complete_order_without_rider(client, place_order):
    order = place_order(deliveryMethod="pickup")

    response = mark_finished(client, order["id"])

    assert response.status_code == 200
    assert FinishedDelivery.query.count() == 1
    assert RiderFinishedDelivery.query.count() == 0


def test_complete_unknown_order(client, catalog):
    response = mark_finished(client, 9999)

    assert response.status_code == 404
    assert FinishedDelivery.query.count() == 0


def test_archive_failure_leaves_order_active(client, delivered_order):
    def fail_insert(mapper, connection, target):
        raise SQLAlchemyError("disk full")

    event.listen(RiderFinishedDelivery, "before_insert", fail_insert)
    try:
        response = mark_finished(client, delivered_order["id"])
    finally:
        event.remove(RiderFinishedDelivery, "before_insert", fail_insert)

    assert response.status_code == 500
    assert response.get_json()["error"] == "Failed to move order to finished"
    assert db.session.get(Order, delivered_order["id"]) is not None
    assert FinishedDelivery.query.count() == 0
    assert RiderFinishedDelivery.query.count() == 0


def test_finished_order_listings(client, delivered_order, customer, rider):
    mark_finished(client, delivered_order["id"])

    admin_view = client.get("/admin/finished-orders").get_json()
    assert admin_view[0]["user"]["email"] == "ama@example.com"
    assert admin_view[0]["items"][0]["menuItem"]["name"] == "Banku"

    assert len(client.get(f"/user-finished-orders/{customer.id}").get_json()) == 1
    assert len(client.get(f"/rider/finished-orders/{rider.id}").get_json()) == 1
    assert len(client.get("/admin/rider-finished-deliveries").get_json()) == 1
    assert client.get(f"/user-finished-orders/{rider.id}").get_json() == []


def test_delete_finished_order(client, delivered_order):
    mark_finished(client, delivered_order["id"])
    finished_id = FinishedDelivery.query.one().id

    response = client.delete(f"/admin/finished-orders/{finished_id}")
    assert response.status_code == 200
    assert FinishedDelivery.query.count() == 0
    # The rider's copy is independent
    assert RiderFinishedDelivery.query.count() == 1

    missing = client.delete(f"/admin/finished-orders/{finished_id}")
    assert missing.status_code == 404
    assert missing.get_json()["error"] == "Order not found"
