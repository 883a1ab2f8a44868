# unicart/client/api.py
"""HTTP client for the unicart API, as used by a device."""
from __future__ import annotations

import logging

import requests

from ..errors import PersistenceFailure, error_from_payload

log = logging.getLogger(__name__)


class ApiClient:
    def __init__(self, base_url: str, *, token: str | None = None, session=None, timeout: float = 10.0):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.session = session or requests.Session()
        self.timeout = timeout

    @property
    def authenticated(self) -> bool:
        return bool(self.token)

    def _headers(self) -> dict:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _call(self, method: str, path: str, *, params=None, json=None) -> dict:
        url = f"{self.base_url}{path}"
        try:
            resp = self.session.request(
                method, url, params=params, json=json, headers=self._headers(), timeout=self.timeout,
            )
        except requests.RequestException as e:
            log.warning("%s %s failed: %s", method, path, e)
            raise PersistenceFailure("Could not reach the server. Please try again.") from e

        try:
            payload = resp.json()
        except ValueError:
            payload = None

        if resp.status_code >= 400 or not isinstance(payload, dict) or payload.get("status") is False:
            raise error_from_payload(payload if isinstance(payload, dict) else None, resp.status_code)
        return payload.get("data") or {}

    # ---- batches ----
    def current_batch(self) -> dict | None:
        return self._call("GET", "/batches/current").get("batch")

    # ---- orders ----
    def place_order(self, items: list[dict], contact: dict, customer_name: str | None = None) -> str:
        data = self._call("POST", "/orders", json={
            "items": items,
            "contact": contact,
            "customer_name": customer_name,
        })
        return data["order_id"]

    def get_order(self, order_id: str) -> dict:
        return self._call("GET", f"/orders/{order_id}")

    def history(self, local_ids) -> dict:
        return self._call("GET", "/orders/history", params={"ids": ",".join(local_ids or [])})

    def tracking(self, order_id: str) -> dict:
        return self._call("GET", f"/orders/{order_id}/tracking")
