# wager_sync/errors.py
"""
Error taxonomy shared by the client, the authority and the HTTP layer.

Terminal errors (ValidationError, NotFoundError, BusinessRuleError) are reported
to the caller. TransportError subclasses describe a failed round trip to the
authority and are what the sync coordinator converts into a local fallback.
"""

from __future__ import annotations

from typing import Optional


class WagerSyncError(Exception):
    """Base class for all project errors."""

    status_code = 500


class ValidationError(WagerSyncError):
    """Bad or missing request fields (user-correctable)."""

    status_code = 400


class NotFoundError(WagerSyncError):
    """Unknown event or user."""

    status_code = 404


class BusinessRuleError(WagerSyncError):
    """A wager rule was broken; the message is shown to the end user as-is."""

    status_code = 400


class EventClosedError(BusinessRuleError):
    pass


class InvalidAmountError(BusinessRuleError):
    pass


class InsufficientBalanceError(BusinessRuleError):
    pass


class StorageError(WagerSyncError):
    """Persistence read/write failure."""


class TransportError(WagerSyncError):
    """The authority could not produce a usable answer."""


class Unreachable(TransportError):
    """Connection refused, DNS failure or timeout."""


class BadStatus(TransportError):
    """Non-2xx response from the authority."""

    def __init__(self, code: int, message: Optional[str] = None) -> None:
        self.code = code
        super().__init__(message or f"HTTP error! status: {code}")


class MalformedPayload(TransportError):
    """Response body was not the expected envelope or payload shape."""


class ApplicationError(TransportError):
    """Envelope came back with success=false."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)
