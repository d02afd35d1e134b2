# wager_sync/authority_client.py
"""
Thin HTTP client wrapper for the authority's /api endpoints.

Every failure surfaces as a TransportError subclass:
  - Unreachable: connection error or timeout
  - BadStatus: non-2xx response
  - MalformedPayload: body is not the {success, data, error} envelope or data has the wrong shape
  - ApplicationError: envelope with success=false
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import requests

from .errors import (
    ApplicationError,
    BadStatus,
    MalformedPayload,
    Unreachable,
    ValidationError,
)
from .models import (
    Event,
    User,
    Wager,
    event_from_dict,
    user_from_dict,
    wager_from_dict,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WagerReceipt:
    """Authority's answer to a wager submission."""
    wager: Wager
    new_balance: float


class RemoteAuthorityClient:
    """A minimal client for the authority API base."""

    def __init__(self, base_url: str, timeout: float = 5.0) -> None:
        """Store the base URL and build request headers."""
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._headers = {"Content-Type": "application/json", "User-Agent": "wager-sync/1.0"}

    def request(self, method: str, path: str, body: Optional[Dict[str, Any]] = None) -> Any:
        """
        Execute a request to base_url + path and return the envelope's data.

        Raises:
            TransportError subclasses (see module docstring).
        """
        url = f"{self.base_url}{path}"
        try:
            r = requests.request(method, url, json=body, timeout=self.timeout, headers=self._headers)
        except requests.RequestException as e:
            logger.info("API request failed for %s: %s", path, e)
            raise Unreachable(str(e)) from e

        try:
            envelope = r.json()
        except ValueError:
            envelope = None

        if not (200 <= r.status_code < 300):
            message = envelope.get("error") if isinstance(envelope, dict) else None
            raise BadStatus(r.status_code, message)

        if not isinstance(envelope, dict) or "success" not in envelope:
            raise MalformedPayload(f"{path}: response is not an API envelope")
        if not envelope.get("success"):
            raise ApplicationError(envelope.get("error") or "API request failed")

        return envelope.get("data")

    def _decode(self, path: str, fn, data: Any):
        try:
            return fn(data)
        except (ValidationError, AttributeError, TypeError) as e:
            raise MalformedPayload(f"{path}: {e}") from e

    def fetch_events(self) -> List[Event]:
        """Fetch every event the authority knows about."""
        data = self.request("GET", "/games")
        if not isinstance(data, list):
            raise MalformedPayload("/games: data is not a list")
        return [self._decode("/games", event_from_dict, g) for g in data]

    def fetch_event(self, event_id: str) -> Event:
        path = f"/games/{event_id}"
        return self._decode(path, event_from_dict, self.request("GET", path))

    def submit_wager(self, event_id: str, pick: str, amount: float, user_id: str) -> WagerReceipt:
        """Submit a prediction; the authority computes the new balance."""
        data = self.request(
            "POST",
            "/predictions",
            {"gameId": event_id, "pick": pick, "amount": amount, "userId": user_id},
        )
        if not isinstance(data, dict) or "newBalance" not in data:
            raise MalformedPayload("/predictions: missing prediction/newBalance")
        wager = self._decode("/predictions", wager_from_dict, data.get("prediction"))
        new_balance = data["newBalance"]
        if isinstance(new_balance, bool) or not isinstance(new_balance, (int, float)):
            raise MalformedPayload("/predictions: newBalance is not a number")
        return WagerReceipt(wager=wager, new_balance=float(new_balance))

    def fetch_user(self, user_id: str) -> User:
        path = f"/user/{user_id}"
        return self._decode(path, user_from_dict, self.request("GET", path))

    def health(self) -> Dict[str, Any]:
        """Health check. The reference server puts message/version beside data, not inside it."""
        url = f"{self.base_url}/health"
        try:
            r = requests.get(url, timeout=self.timeout, headers=self._headers)
        except requests.RequestException as e:
            raise Unreachable(str(e)) from e
        if not (200 <= r.status_code < 300):
            raise BadStatus(r.status_code)
        try:
            payload = r.json()
        except ValueError as e:
            raise MalformedPayload(f"/health: {e}") from e
        if not isinstance(payload, dict):
            raise MalformedPayload("/health: response is not an object")
        return {"message": payload.get("message"), "version": payload.get("version")}
