# wager_sync/replica.py
"""
Durable local mirror of the event catalog and ledger.

The persistence mechanism is an opaque key/value blob store; ReplicaStore only
knows how to encode a ReplicaSnapshot to JSON text and back.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from importlib import resources
from typing import Dict, Optional, Protocol

from .errors import StorageError, ValidationError
from .models import ReplicaSnapshot, snapshot_from_dict, snapshot_to_dict

logger = logging.getLogger(__name__)

REPLICA_KEY = "appData"


class BlobStore(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...


class MemoryBlobStore:
    """Dict-backed store, used for tests and throwaway sessions."""

    def __init__(self) -> None:
        self._store: Dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self._store.get(key)

    def set(self, key: str, value: str) -> None:
        self._store[key] = value


class FileBlobStore:
    """One JSON file per key under a directory; writes replace the file atomically."""

    def __init__(self, root: str) -> None:
        self.root = root

    def _path(self, key: str) -> str:
        return os.path.join(self.root, f"{key}.json")

    def get(self, key: str) -> Optional[str]:
        path = self._path(key)
        try:
            with open(path, "r", encoding="utf-8") as f:
                return f.read()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageError(f"failed to read {path}: {e}") from e

    def set(self, key: str, value: str) -> None:
        path = self._path(key)
        tmp = None
        try:
            os.makedirs(self.root, exist_ok=True)
            fd, tmp = tempfile.mkstemp(dir=self.root, prefix=f".{key}.", suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(value)
            os.replace(tmp, path)
            tmp = None
        except OSError as e:
            raise StorageError(f"failed to write {path}: {e}") from e
        finally:
            if tmp is not None and os.path.exists(tmp):
                os.unlink(tmp)


def encode_snapshot(snapshot: ReplicaSnapshot) -> str:
    return json.dumps(snapshot_to_dict(snapshot), indent=2)


def decode_snapshot(raw: str) -> ReplicaSnapshot:
    try:
        return snapshot_from_dict(json.loads(raw))
    except (json.JSONDecodeError, ValidationError) as e:
        raise StorageError(f"stored snapshot is unreadable: {e}") from e


def bundled_seed() -> ReplicaSnapshot:
    """The sample snapshot shipped with the package (wager_sync/data/seed.json)."""
    raw = resources.files("wager_sync").joinpath("data/seed.json").read_text(encoding="utf-8")
    return decode_snapshot(raw)


class ReplicaStore:
    """Reads and writes the {games, user} snapshot under a single key."""

    def __init__(self, store: BlobStore, key: str = REPLICA_KEY) -> None:
        self.store = store
        self.key = key

    def read(self) -> Optional[ReplicaSnapshot]:
        """Return the stored snapshot, or None if nothing has been written yet."""
        raw = self.store.get(self.key)
        if raw is None:
            return None
        return decode_snapshot(raw)

    def write(self, snapshot: ReplicaSnapshot) -> None:
        self.store.set(self.key, encode_snapshot(snapshot))
        logger.debug("replica written (%d events, %d wagers)",
                     len(snapshot.events), len(snapshot.user.predictions))
