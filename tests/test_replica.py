import pytest

from wager_sync.errors import StorageError
from wager_sync.models import FINAL, IN_PROGRESS
from wager_sync.replica import (
    REPLICA_KEY,
    FileBlobStore,
    MemoryBlobStore,
    ReplicaStore,
    bundled_seed,
)


def test_empty_store_reads_none() -> None:
    assert ReplicaStore(MemoryBlobStore()).read() is None


def test_memory_round_trip(snapshot) -> None:
    store = ReplicaStore(MemoryBlobStore())
    store.write(snapshot)
    assert store.read() == snapshot


def test_file_round_trip(tmp_path, snapshot) -> None:
    store = ReplicaStore(FileBlobStore(str(tmp_path / "replica")))
    store.write(snapshot)

    assert (tmp_path / "replica" / f"{REPLICA_KEY}.json").exists()
    assert ReplicaStore(FileBlobStore(str(tmp_path / "replica"))).read() == snapshot


def test_unreadable_blob_raises_storage_error() -> None:
    blobs = MemoryBlobStore()
    blobs.set(REPLICA_KEY, "{not json")
    with pytest.raises(StorageError):
        ReplicaStore(blobs).read()


def test_invalid_document_raises_storage_error() -> None:
    blobs = MemoryBlobStore()
    blobs.set(REPLICA_KEY, '{"games": "nope", "user": {}}')
    with pytest.raises(StorageError):
        ReplicaStore(blobs).read()


def test_file_write_failure_raises_storage_error(tmp_path, snapshot) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("a file, not a directory")
    with pytest.raises(StorageError):
        ReplicaStore(FileBlobStore(str(blocker))).write(snapshot)


def test_failed_replace_leaves_no_temp_file(tmp_path, monkeypatch, snapshot) -> None:
    root = tmp_path / "replica"

    def fail_replace(src, dst):
        raise OSError("disk full")

    monkeypatch.setattr("wager_sync.replica.os.replace", fail_replace)
    with pytest.raises(StorageError, match="disk full"):
        ReplicaStore(FileBlobStore(str(root))).write(snapshot)

    assert list(root.iterdir()) == []


def test_bundled_seed_is_valid() -> None:
    seed = bundled_seed()
    statuses = {e.status for e in seed.events}
    assert IN_PROGRESS in statuses
    assert FINAL in statuses
    assert seed.user.balance > 0
    assert seed.user.stats.total == len(seed.user.predictions)
