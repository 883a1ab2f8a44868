# unicart/client/config.py
import os
from dataclasses import dataclass, field


def _default_state_dir() -> str:
    return os.environ.get("UNICART_STATE_DIR") or os.path.join(os.path.expanduser("~"), ".unicart")


@dataclass
class ClientConfig:
    """Device-side settings, read from the environment by default."""

    api_url: str = field(default_factory=lambda: os.environ.get("UNICART_API_URL", "http://127.0.0.1:5000"))
    state_dir: str = field(default_factory=_default_state_dir)
    poll_interval: float = field(default_factory=lambda: float(os.environ.get("UNICART_POLL_INTERVAL", "5")))
    http_timeout: float = field(default_factory=lambda: float(os.environ.get("UNICART_HTTP_TIMEOUT", "10")))
