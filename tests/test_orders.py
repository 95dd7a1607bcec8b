from debliss import db
from debliss.models import Order, OrderStatus


def test_create_order_starts_pending(place_order, catalog):
    order = place_order()

    assert order["pending"] == "⌛ Pending Confirmation"
    for marker in ("confirmed", "preparing", "packing", "outForDelivery"):
        assert order[marker] is None
    assert order["status"] == "pending"
    assert order["schedule"]["isScheduled"] is False
    assert order["items"][0]["accompaniments"] == [{"name": "Okro soup", "price": 70.0}]
    assert [entry["status"] for entry in order["history"]] == ["pending"]


def test_scheduled_order_gets_scheduled_marker(place_order):
    order = place_order(schedule={
        "scheduledTime": "18:30",
        "scheduledDate": "2025-12-24",
        "scheduledFor": "Dec 24, 6:30 PM",
    })

    assert order["schedule"]["isScheduled"] is True
    assert order["pending"] == "⏰ Scheduled for Dec 24, 6:30 PM"


def test_half_schedule_is_not_scheduled(place_order):
    order = place_order(schedule={"scheduledTime": "18:30"})

    assert order["schedule"] == {
        "scheduledTime": None,
        "scheduledDate": None,
        "scheduledFor": None,
        "isScheduled": False,
    }


def test_delivery_method_defaults_to_delivery(place_order):
    order = place_order(deliveryMethod=None)
    assert order["deliveryMethod"] == "delivery"


def test_numeric_string_coordinates_are_coerced(place_order):
    order = place_order(location={"name": "Osu", "lat": "5.55", "lon": "-0.18"})
    assert order["location"] == {"name": "Osu", "lat": 5.55, "lon": -0.18}


def test_malformed_coordinates_are_rejected(client, customer, catalog):
    response = client.post("/order", json={
        "userId": customer.id,
        "userName": customer.name,
        "items": [{"menuItem": catalog["banku"].id}],
        "location": {"name": "Osu", "lat": "north", "lon": -0.18},
    })

    assert response.status_code == 400
    body = response.get_json()
    assert body["success"] is False
    assert "location" in body["errors"]
    assert Order.query.count() == 0


def test_order_requires_items(client, customer):
    response = client.post("/order", json={
        "userId": customer.id,
        "userName": customer.name,
        "items": [],
    })

    assert response.status_code == 400
    assert response.get_json()["error"] == "Order must contain at least one item."


def test_unknown_menu_item_is_rejected(client, customer, catalog):
    response = client.post("/order", json={
        "userId": customer.id,
        "userName": customer.name,
        "items": [{"menuItem": 9999}],
    })

    assert response.status_code == 400
    assert Order.query.count() == 0


def test_accompaniment_not_offered_with_item_is_rejected(client, customer, catalog):
    response = client.post("/order", json={
        "userId": customer.id,
        "userName": customer.name,
        "items": [{
            "menuItem": catalog["banku"].id,
            "accompaniments": [{"name": "Egushie soup"}],
        }],
    })

    assert response.status_code == 400
    assert "Egushie soup" in response.get_json()["error"]


def test_accompaniment_price_comes_from_catalog(place_order, catalog):
    order = place_order(items=[{
        "menuItem": catalog["banku"].id,
        "accompaniments": [{"name": "fresh tilapia light soup", "price": 1}],
    }])

    assert order["items"][0]["accompaniments"] == [
        {"name": "Fresh Tilapia light soup", "price": 100.0}
    ]


def test_unknown_user_is_not_found(client, catalog):
    response = client.post("/order", json={
        "userId": 4242,
        "userName": "ghost",
        "items": [{"menuItem": catalog["banku"].id}],
    })

    assert response.status_code == 404
    assert response.get_json() == {"success": False, "error": "User not found"}


def test_user_orders_are_populated_newest_first(client, customer, place_order):
    first = place_order()
    second = place_order(contact="0550000000")

    response = client.get(f"/user-orders/{customer.id}")

    assert response.status_code == 200
    orders = response.get_json()
    assert [o["id"] for o in orders] == [second["id"], first["id"]]
    assert orders[0]["items"][0]["menuItem"]["name"] == "Banku"
    assert orders[0]["user"] == {"id": customer.id, "name": "ama"}


def test_order_detail(client, place_order):
    order = place_order()

    response = client.get(f"/user/order/{order['id']}")
    assert response.status_code == 200
    assert response.get_json()["id"] == order["id"]

    missing = client.get("/user/order/9999")
    assert missing.status_code == 404
    assert missing.get_json()["error"] == "Order not found"


def test_admin_orders_include_customer_contact(client, customer, place_order):
    place_order()

    orders = client.get("/admin/orders").get_json()

    assert orders[0]["user"] == {
        "id": customer.id,
        "name": "ama",
        "email": "ama@example.com",
        "phone": "0241112222",
    }
    assert orders[0]["rider"] is None


def test_order_status_is_persisted_as_enum(app, place_order):
    order = place_order()
    stored = db.session.get(Order, order["id"])
    assert stored.status is OrderStatus.PENDING


def test_scheduled_order_without_label_uses_date_and_time(place_order):
    order = place_order(schedule={"scheduledTime": "18:30", "scheduledDate": "2025-12-24"})

    assert order["schedule"]["isScheduled"] is True
    assert order["pending"] == "⏰ Scheduled for 2025-12-24 18:30"
