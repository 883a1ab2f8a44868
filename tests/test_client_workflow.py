import pytest
import requests

from unicart.client import CartEngine, LocalSessionState, OrderPlacement
from unicart.client.api import ApiClient
from unicart.errors import (
    EmptyCart, MissingContactInfo, NoActiveSlot, OrderNotFound, OrdersClosed, PersistenceFailure,
)
from unicart.model import Order

from conftest import BIRYANI, COKE, CONTACT


class _NoNetwork:
    def request(self, *args, **kwargs):
        raise AssertionError("no request expected")


class _Unreachable:
    def request(self, *args, **kwargs):
        raise requests.ConnectionError("connection refused")


def _offline_placement(tmp_path, session):
    state = LocalSessionState(tmp_path)
    cart = CartEngine(state)
    return OrderPlacement(cart, state, ApiClient("http://unicart.test", session=session)), cart, state


def test_empty_cart_fails_locally(tmp_path):
    placement, _, _ = _offline_placement(tmp_path, _NoNetwork())
    with pytest.raises(EmptyCart):
        placement.place(CONTACT)


def test_missing_contact_fails_locally(tmp_path):
    placement, cart, _ = _offline_placement(tmp_path, _NoNetwork())
    cart.add_item(COKE)
    with pytest.raises(MissingContactInfo) as exc:
        placement.place(dict(CONTACT, delivery_location=""))
    assert exc.value.fields == ["delivery_location"]


def test_transport_failure_keeps_cart(tmp_path):
    placement, cart, state = _offline_placement(tmp_path, _Unreachable())
    cart.add_item(COKE)
    with pytest.raises(PersistenceFailure):
        placement.place(CONTACT)
    assert cart.total_items == 1
    assert state.load_order_ids() == []


def test_successful_placement_records_id_and_clears_cart(app, device, open_batch):
    device.cart.add_item(BIRYANI)
    device.cart.add_item(BIRYANI)
    device.cart.add_item(COKE)
    expected_items = device.cart.snapshot()

    order_id = device.placement.place(CONTACT)

    assert device.cart.is_empty
    assert device.state.load_cart() == []
    assert device.state.load_order_ids() == [order_id]
    with app.app_context():
        orders = Order.query.all()
        assert len(orders) == 1
        assert orders[0].id == order_id
        assert orders[0].items == expected_items
        assert orders[0].batch_id == open_batch["id"]


def test_most_recent_order_id_comes_first(device, open_batch):
    device.cart.add_item(COKE)
    first = device.placement.place(CONTACT)
    device.cart.add_item(BIRYANI)
    second = device.placement.place(CONTACT)
    assert device.state.load_order_ids() == [second, first]


def test_server_rejections_keep_cart(device, client, admin_headers, open_batch):
    device.cart.add_item(COKE)
    client.post(f"/batches/{open_batch['id']}/toggle", headers=admin_headers)

    with pytest.raises(OrdersClosed) as exc:
        device.placement.place(CONTACT)
    assert exc.value.slot_label == "Lunch 12:30"
    assert device.cart.total_items == 1
    assert device.state.load_order_ids() == []


def test_no_active_slot_over_the_wire(device):
    device.cart.add_item(COKE)
    with pytest.raises(NoActiveSlot):
        device.placement.place(CONTACT)


def test_submit_turns_rejections_into_outcomes(device, open_batch):
    outcome = device.placement.submit(CONTACT)
    assert not outcome.ok
    assert isinstance(outcome.error, EmptyCart)
    assert outcome.message == "Your cart is empty"

    device.cart.add_item(COKE)
    outcome = device.placement.submit(CONTACT)
    assert outcome.ok
    assert outcome.error is None
    assert outcome.order_id in outcome.message


def test_current_slot_reflects_the_batch(device, client, admin_headers):
    assert device.placement.current_slot() is None

    batch = client.post("/batches", json={"slot_label": "Lunch 12:30"}, headers=admin_headers).get_json()["data"]["batch"]
    slot = device.placement.current_slot()
    assert (slot["id"], slot["state"]) == (batch["id"], "open")

    client.post(f"/batches/{batch['id']}/toggle", headers=admin_headers)
    assert device.placement.current_slot()["state"] == "closed"


def test_confirmation_after_placement(device, open_batch):
    device.cart.add_item(COKE)
    order_id = device.placement.place(CONTACT)

    confirmation = device.placement.confirmation(order_id)
    assert confirmation["slot_label"] == "Lunch 12:30"
    assert confirmation["order"]["id"] == order_id
    assert confirmation["order"]["total_amount"] == 40.0

    with pytest.raises(OrderNotFound):
        device.placement.confirmation("ORD-0000-XX")
