# unicart/client/__init__.py
"""Device-side pieces: local session state, cart, order placement and tracking."""

from .config import ClientConfig
from .session_state import LocalSessionState
from .cart import CartEngine, CartLine
from .api import ApiClient
from .workflow import OrderPlacement, PlacementOutcome
from .poller import TrackingPoller, TrackingState

__all__ = [
    "ClientConfig",
    "LocalSessionState",
    "CartEngine",
    "CartLine",
    "ApiClient",
    "OrderPlacement",
    "PlacementOutcome",
    "TrackingPoller",
    "TrackingState",
    "Device",
]


class Device:
    """Wires the client pieces for one device from a ClientConfig."""

    def __init__(self, config: ClientConfig | None = None, *, token: str | None = None,
                 display_name: str | None = None, session=None):
        self.config = config or ClientConfig()
        self.state = LocalSessionState(self.config.state_dir)
        self.api = ApiClient(self.config.api_url, token=token, session=session, timeout=self.config.http_timeout)
        self.cart = CartEngine(self.state)
        self.placement = OrderPlacement(self.cart, self.state, self.api, customer_name=display_name)

    def tracker(self, on_update=None) -> TrackingPoller:
        return TrackingPoller(self.api, self.state, interval=self.config.poll_interval, on_update=on_update)
