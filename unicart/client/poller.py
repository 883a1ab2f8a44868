# unicart/client/poller.py
"""
TrackingPoller: resolves this device's order history and keeps the selected
order's stage fresh by re-fetching it on a background thread.

The thread only runs between start() and stop(); stop() joins it, so a closed
tracking view never leaves a poll behind.
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Callable, Optional

from ..errors import OrderNotFound, TrackingUnavailable, UnicartError
from .api import ApiClient
from .session_state import LocalSessionState

log = logging.getLogger(__name__)

DEFAULT_INTERVAL = 5.0


@dataclass
class TrackingState:
    order_id: str
    current_step: int | None = None
    status_message: str | None = None
    slot_label: str | None = None
    stages: list = field(default_factory=list)
    total_amount: float = 0.0
    item_count: int = 0
    unavailable: bool = False
    message: str | None = None

    @classmethod
    def from_api(cls, data: dict) -> "TrackingState":
        return cls(
            order_id=data["order_id"],
            current_step=data.get("current_step"),
            status_message=data.get("status_message"),
            slot_label=data.get("slot_label"),
            stages=list(data.get("stages") or []),
            total_amount=float(data.get("total_amount") or 0),
            item_count=int(data.get("item_count") or 0),
        )

    @classmethod
    def no_longer_trackable(cls, order_id: str, message: str | None = None) -> "TrackingState":
        return cls(order_id=order_id, unavailable=True, message=message or "This order is no longer trackable.")


class TrackingPoller:
    def __init__(
        self,
        api: ApiClient,
        state: LocalSessionState,
        interval: float = DEFAULT_INTERVAL,
        on_update: Optional[Callable[[TrackingState], None]] = None,
    ) -> None:
        self.api = api
        self.state = state
        self.interval = float(interval)
        self._on_update = on_update

        self.orders: list[dict] = []
        self.selected: str | None = None
        self._latest: TrackingState | None = None
        self.last_error: UnicartError | None = None

        self._lock = threading.RLock()
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    # -------------------- history / selection --------------------

    def load_history(self) -> list[dict]:
        """Fetch the order list for this viewer and apply the initial selection."""
        local_ids = self.state.load_order_ids()
        if not local_ids and not self.api.authenticated:
            self.orders, self.selected = [], None
            return self.orders
        try:
            data = self.api.history(local_ids)
        except UnicartError as e:
            # keep whatever list was showing; the caller renders last_error
            log.warning("loading order history failed: %s", e.message)
            self.last_error = e
            return self.orders
        self.last_error = None
        self.orders = list(data.get("items") or [])
        self.selected = data.get("selected")
        return self.orders

    @property
    def view(self) -> str:
        if self.selected:
            return "detail"
        return "list" if self.orders else "empty"

    def select(self, order_id: str) -> None:
        if order_id == self.selected:
            return
        self.stop()
        with self._lock:
            self.selected = order_id
            self._latest = None

    def back(self) -> None:
        """Leave the detail view."""
        self.stop()
        with self._lock:
            self.selected = None
            self._latest = None

    # -------------------- live stage --------------------

    @property
    def latest(self) -> TrackingState | None:
        with self._lock:
            return self._latest

    def refresh(self) -> TrackingState | None:
        """One fetch of the selected order's stage."""
        order_id = self.selected
        if not order_id:
            return None
        try:
            snapshot = TrackingState.from_api(self.api.tracking(order_id))
        except (TrackingUnavailable, OrderNotFound) as e:
            snapshot = TrackingState.no_longer_trackable(order_id, e.message)
            self._stop_event.set()
        except UnicartError as e:
            log.warning("tracking %s failed: %s", order_id, e.message)
            return self.latest

        with self._lock:
            if order_id != self.selected:
                return self._latest
            self._latest = snapshot
        if self._on_update is not None:
            self._on_update(snapshot)
        return snapshot

    def start(self) -> None:
        if not self.selected:
            raise ValueError("select an order before starting the tracking poll")
        if self.is_running():
            return
        self._stop_event = threading.Event()
        self._thread = threading.Thread(target=self._run, args=(self._stop_event,),
                                        name=f"TrackingPoller-{self.selected}", daemon=True)
        self._thread.start()

    def stop(self, join: bool = True) -> None:
        self._stop_event.set()
        thread = self._thread
        if join and thread is not None and thread is not threading.current_thread():
            thread.join()
        self._thread = None

    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _run(self, stop_event: threading.Event) -> None:
        while not stop_event.is_set():
            try:
                self.refresh()
            except Exception:
                log.exception("tracking poll crashed; stopping")
                break
            if stop_event.wait(self.interval):
                break

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.stop()
