import itertools

import pytest
from flask_jwt_extended import create_access_token

from unicart import create_app
from unicart.client import ClientConfig, Device
from unicart.config import TestConfig
from unicart.services import order_service

API_URL = "http://unicart.test"

CONTACT = {
    "phone": "9876543210",
    "delivery_location": "SSN CAMPUS IIIT ONGOLE",
    "collection_point": "Hostel Block A gate",
}

BIRYANI = {"id": "1", "name": "Veg Biryani", "price": 120.0}
COKE = {"id": "2", "name": "Coke", "price": 40.0}


@pytest.fixture(autouse=True)
def sequential_order_ids(request, monkeypatch):
    """Deterministic ids so two orders in one millisecond never collide in tests."""
    if "real_order_ids" in request.keywords:
        return
    counter = itertools.count(1)
    monkeypatch.setattr(order_service, "generate_order_id", lambda: f"ORD-{next(counter):04d}-TS")


@pytest.fixture
def app():
    app = create_app(TestConfig)
    yield app


@pytest.fixture
def client(app):
    return app.test_client()


def make_token(app, user_id, role="user", name=None):
    claims = {"role": role}
    if name:
        claims["name"] = name
    with app.app_context():
        return create_access_token(identity=str(user_id), additional_claims=claims)


@pytest.fixture
def admin_headers(app):
    return {"Authorization": f"Bearer {make_token(app, 'admin-1', role='admin', name='Warden')}"}


@pytest.fixture
def open_batch(client, admin_headers):
    r = client.post("/batches", json={"slot_label": "Lunch 12:30"}, headers=admin_headers)
    assert r.status_code == 201
    return r.get_json()["data"]["batch"]


def place(client, items=None, contact=None, headers=None, customer_name=None):
    return client.post("/orders", json={
        "items": items if items is not None else [dict(BIRYANI, quantity=2), dict(COKE, quantity=1)],
        "contact": contact if contact is not None else CONTACT,
        "customer_name": customer_name,
    }, headers=headers or {})


# ---- device client over the Flask test client ------------------------------

class _Response:
    def __init__(self, resp):
        self.status_code = resp.status_code
        self._resp = resp

    def json(self):
        data = self._resp.get_json(silent=True)
        if data is None:
            raise ValueError("response is not JSON")
        return data


class FlaskSession:
    """requests.Session stand-in that routes calls into the Flask test client."""

    def __init__(self, client, base_url=API_URL):
        self.client = client
        self.base_url = base_url
        self.calls = []

    def request(self, method, url, params=None, json=None, headers=None, timeout=None):
        path = url[len(self.base_url):] if url.startswith(self.base_url) else url
        self.calls.append((method, path))
        resp = self.client.open(path, method=method, query_string=params, json=json, headers=headers or {})
        return _Response(resp)


@pytest.fixture
def flask_session(client):
    return FlaskSession(client)


@pytest.fixture
def device(tmp_path, flask_session):
    config = ClientConfig(api_url=API_URL, state_dir=str(tmp_path / "device"), poll_interval=0.05, http_timeout=1)
    return Device(config, session=flask_session)
