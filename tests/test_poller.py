import threading
import time

import pytest
import requests

from unicart.client import LocalSessionState, TrackingPoller
from unicart.client.api import ApiClient
from unicart.errors import PersistenceFailure, TrackingUnavailable

from conftest import CONTACT, COKE


class StubApi:
    def __init__(self, step=1, authenticated=False):
        self.step = step
        self.authenticated = authenticated
        self.history_calls = 0
        self.tracking_calls = 0
        self.fail_with = None
        self.history_fails_with = None

    def history(self, local_ids):
        self.history_calls += 1
        if self.history_fails_with is not None:
            raise self.history_fails_with
        ids = list(local_ids)
        return {
            "items": [{"id": i} for i in ids],
            "selected": ids[0] if len(ids) == 1 and not self.authenticated else None,
        }

    def tracking(self, order_id):
        self.tracking_calls += 1
        if self.fail_with is not None:
            raise self.fail_with
        return {"order_id": order_id, "current_step": self.step, "status_message": f"step {self.step}",
                "slot_label": "Lunch", "stages": [], "total_amount": 40.0, "item_count": 1}


def _wait_until(predicate, timeout=2.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


@pytest.fixture
def state(tmp_path):
    return LocalSessionState(tmp_path)


def test_guest_without_orders_is_empty_and_offline(state):
    api = StubApi()
    poller = TrackingPoller(api, state)
    assert poller.load_history() == []
    assert poller.view == "empty"
    assert api.history_calls == 0


def test_guest_with_one_order_goes_to_detail(state):
    state.save_order_ids(["ORD-0001-AA"])
    poller = TrackingPoller(StubApi(), state)
    poller.load_history()
    assert poller.view == "detail"
    assert poller.selected == "ORD-0001-AA"


def test_guest_with_two_orders_sees_list(state):
    state.save_order_ids(["ORD-0002-BB", "ORD-0001-AA"])
    poller = TrackingPoller(StubApi(), state)
    poller.load_history()
    assert poller.view == "list"
    assert poller.selected is None

    poller.select("ORD-0001-AA")
    assert poller.view == "detail"
    poller.back()
    assert poller.view == "list"


def test_unreachable_server_leaves_history_as_it_was(state):
    class Unreachable:
        def request(self, *args, **kwargs):
            raise requests.ConnectionError("connection refused")

    state.save_order_ids(["ORD-0001-AA"])
    poller = TrackingPoller(ApiClient("http://unicart.test", session=Unreachable()), state)
    assert poller.load_history() == []
    assert poller.view == "empty"
    assert isinstance(poller.last_error, PersistenceFailure)


def test_failed_reload_keeps_previous_list(state):
    state.save_order_ids(["ORD-0002-BB", "ORD-0001-AA"])
    api = StubApi()
    poller = TrackingPoller(api, state)
    poller.load_history()

    api.history_fails_with = PersistenceFailure()
    assert [o["id"] for o in poller.load_history()] == ["ORD-0002-BB", "ORD-0001-AA"]
    assert poller.view == "list"
    assert poller.last_error is api.history_fails_with

    api.history_fails_with = None
    poller.load_history()
    assert poller.last_error is None


def test_refresh_picks_up_stage_changes(state):
    api = StubApi(step=2)
    poller = TrackingPoller(api, state)
    poller.select("ORD-0001-AA")
    assert poller.refresh().current_step == 2
    api.step = 3
    assert poller.refresh().current_step == 3
    assert poller.latest.status_message == "step 3"


def test_transient_error_keeps_last_snapshot(state):
    api = StubApi(step=2)
    poller = TrackingPoller(api, state)
    poller.select("ORD-0001-AA")
    poller.refresh()
    api.fail_with = PersistenceFailure()
    assert poller.refresh().current_step == 2


def test_start_requires_a_selection(state):
    with pytest.raises(ValueError):
        TrackingPoller(StubApi(), state).start()


def test_poll_thread_runs_until_stopped(state):
    api = StubApi()
    seen = threading.Event()
    poller = TrackingPoller(api, state, interval=0.01, on_update=lambda snap: seen.set())
    poller.select("ORD-0001-AA")

    poller.start()
    assert seen.wait(2)
    assert _wait_until(lambda: api.tracking_calls >= 2)
    poller.stop()
    assert not poller.is_running()

    calls = api.tracking_calls
    time.sleep(0.05)
    assert api.tracking_calls == calls


def test_unavailable_order_stops_polling(state):
    api = StubApi()
    api.fail_with = TrackingUnavailable("ORD-0001-AA")
    updates = []
    poller = TrackingPoller(api, state, interval=0.01, on_update=updates.append)
    poller.select("ORD-0001-AA")

    poller.start()
    assert _wait_until(lambda: not poller.is_running())
    assert api.tracking_calls == 1
    assert updates[-1].unavailable is True
    assert "no longer trackable" in updates[-1].message


def test_leaving_detail_stops_the_poll(state):
    poller = TrackingPoller(StubApi(), state, interval=0.01)
    poller.select("ORD-0001-AA")
    with poller:
        assert poller.is_running()
        poller.back()
        assert not poller.is_running()
    assert poller.latest is None


def test_device_tracks_a_placed_order_through_stages(device, client, admin_headers, open_batch):
    device.cart.add_item(COKE)
    order_id = device.placement.place(CONTACT)

    tracker = device.tracker()
    tracker.load_history()
    assert tracker.selected == order_id
    assert tracker.refresh().current_step == 1

    client.patch(f"/batches/{open_batch['id']}/stage", json={"current_step": 4, "status_message": "On the way"},
                 headers=admin_headers)
    snap = tracker.refresh()
    assert (snap.current_step, snap.status_message) == (4, "On the way")
    assert [s["state"] for s in snap.stages] == ["completed"] * 3 + ["current", "pending"]

    client.post(f"/batches/{open_batch['id']}/toggle", headers=admin_headers)
    client.delete(f"/batches/{open_batch['id']}", headers=admin_headers)
    assert tracker.refresh().unavailable is True
