"""Pytest configuration and fixtures."""

import pytest

from config import TestingConfig
from debliss import create_app, db, mail
from debliss.models import User, MenuItem, Accompaniment
from debliss.services.helper import hash_password


@pytest.fixture(scope="function")
def app():
    """Fresh application with an in-memory database."""
    app = create_app(TestingConfig)
    ctx = app.app_context()
    ctx.push()
    yield app
    db.session.remove()
    db.drop_all()
    ctx.pop()


@pytest.fixture(scope="function")
def client(app):
    return app.test_client()


@pytest.fixture
def outbox(app):
    """Messages handed to Flask-Mail while the test runs."""
    with mail.record_messages() as messages:
        yield messages


def make_user(name, email, role="user", password="secret123", phone=None):
    user = User(
        name=name,
        email=email,
        password=hash_password(password),
        phone=phone,
        role=role,
    )
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture
def customer(app):
    return make_user("ama", "ama@example.com", phone="0241112222")


@pytest.fixture
def rider(app):
    return make_user("kofi", "kofi@example.com", role="rider", phone="0203334444")


@pytest.fixture
def admin(app):
    return make_user("admin", "admin@example.com", role="admin")


@pytest.fixture
def catalog(app):
    """Banku with two soups on offer, plus a soup that is not offered with it."""
    okro = Accompaniment(name="Okro soup", price=70, category="soup")
    tilapia = Accompaniment(name="Fresh Tilapia light soup", price=100, category="soup")
    egushie = Accompaniment(name="Egushie soup", price=80, category="soup")
    db.session.add_all([okro, tilapia, egushie])
    db.session.flush()

    banku = MenuItem(
        name="Banku",
        price=5,
        category="BANKU / AKPLE ZONE",
        allowed_accompaniments=[okro.id, tilapia.id],
    )
    db.session.add(banku)
    db.session.commit()
    return {"banku": banku, "okro": okro, "tilapia": tilapia, "egushie": egushie}


@pytest.fixture
def place_order(client, customer, catalog):
    """Place an order through the API and return its JSON."""
    def _place(**overrides):
        payload = {
            "userId": customer.id,
            "userName": customer.name,
            "items": [{
                "menuItem": catalog["banku"].id,
                "quantity": 2,
                "accompaniments": [{"name": "Okro soup"}],
            }],
            "contact": "0241112222",
            "location": {"name": "East Legon", "lat": 5.63, "lon": -0.16},
            "deliveryMethod": "delivery",
        }
        payload.update(overrides)
        response = client.post("/order", json=payload)
        assert response.status_code == 200, response.get_json()
        return response.get_json()["order"]
    return _place
