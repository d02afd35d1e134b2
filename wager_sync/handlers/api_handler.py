# wager_sync/handlers/api_handler.py
"""
Handler/controller responsible for building API response envelopes.

Keeps Flask routes simple by concentrating serialization here. Every payload
is wrapped as {success, data?, error?, message?, timestamp?}.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from ..models import event_to_dict, user_to_dict, utc_now, wager_to_dict
from ..services.authority_service import AuthorityService

API_VERSION = "1.0.0"


def envelope(data: Any = None, message: Optional[str] = None) -> Dict[str, Any]:
    """Successful response wrapper."""
    out: Dict[str, Any] = {"success": True, "timestamp": utc_now().isoformat()}
    if data is not None:
        out["data"] = data
    if message:
        out["message"] = message
    return out


def error_envelope(error: str) -> Dict[str, Any]:
    return {"success": False, "error": error}


@dataclass
class ApiHandler:
    """Maps AuthorityService results onto JSON-safe envelopes."""

    service: AuthorityService

    def health(self) -> Dict[str, Any]:
        out = envelope(message="Wager sync API server is running")
        out["version"] = API_VERSION
        return out

    def games(self) -> Dict[str, Any]:
        return envelope([event_to_dict(e) for e in self.service.list_events()])

    def game(self, event_id: str) -> Dict[str, Any]:
        return envelope(event_to_dict(self.service.get_event(event_id)))

    def submit_prediction(self, body: Any) -> Dict[str, Any]:
        wager, new_balance = self.service.submit_wager(body)
        return envelope(
            {
                "prediction": wager_to_dict(wager, include_origin=False),
                "newBalance": new_balance,
            },
            message="Prediction submitted successfully",
        )

    def user(self, user_id: str) -> Dict[str, Any]:
        return envelope(user_to_dict(self.service.get_user(user_id), include_origin=False))
