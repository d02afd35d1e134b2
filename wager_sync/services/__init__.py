"""
Services package exports.
"""
from .authority_service import AuthorityService
from .sync_coordinator import SyncCoordinator

__all__ = ["AuthorityService", "SyncCoordinator"]
