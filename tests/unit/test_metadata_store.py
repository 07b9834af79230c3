"""Tests for metadata persistence backends."""

import json
from datetime import datetime, timedelta, timezone

import pytest

from keywarden.errors import MetadataError, PersistenceError
from keywarden.metadata import InMemoryMetadataStore, JsonFileMetadataStore
from keywarden.models import KeyMetadata, KeyRecord, KeyStatus

T0 = datetime(2026, 1, 1, tzinfo=timezone.utc)


def _metadata() -> KeyMetadata:
    return KeyMetadata(
        keys=[
            KeyRecord(
                kid="old",
                status=KeyStatus.EXPIRED,
                created_at=T0,
                expires_at=T0 + timedelta(days=28),
                deprecated_at=T0 + timedelta(days=7),
                expired_at=T0 + timedelta(days=28),
                removed_at=T0 + timedelta(days=30),
                key_path=None,
            ),
            KeyRecord(
                kid="current",
                status=KeyStatus.ACTIVE,
                created_at=T0 + timedelta(days=7),
                expires_at=T0 + timedelta(days=35),
                key_path="/keys/current.pem",
            ),
        ]
    )


def test_missing_file_loads_empty(tmp_path):
    store = JsonFileMetadataStore(tmp_path / "metadata.json")
    assert store.load() == KeyMetadata()


def test_save_then_load_round_trip(tmp_path):
    store = JsonFileMetadataStore(tmp_path / "metadata.json")
    metadata = _metadata()
    store.save(metadata)
    assert store.load() == metadata


def test_saved_document_uses_camel_case(tmp_path):
    path = tmp_path / "metadata.json"
    JsonFileMetadataStore(path).save(_metadata())
    document = json.loads(path.read_text())
    record = document["keys"][1]
    assert record["kid"] == "current"
    assert record["status"] == "active"
    assert record["keyPath"] == "/keys/current.pem"
    assert record["deprecatedAt"] is None
    assert "createdAt" in record and "expiresAt" in record
    assert not (tmp_path / "metadata.json.tmp").exists()


def test_save_overwrites_whole_document(tmp_path):
    store = JsonFileMetadataStore(tmp_path / "metadata.json")
    store.save(_metadata())
    store.save(KeyMetadata())
    assert store.load().keys == []


def test_missing_optional_fields_default_to_none(tmp_path):
    path = tmp_path / "metadata.json"
    path.write_text(
        json.dumps(
            {
                "keys": [
                    {
                        "kid": "a",
                        "status": "deprecated",
                        "createdAt": 1767225600000,
                        "expiresAt": 1769644800000,
                        "somethingElse": True,
                    }
                ]
            }
        )
    )
    record = JsonFileMetadataStore(path).load().keys[0]
    assert record.status is KeyStatus.DEPRECATED
    assert record.created_at == T0
    assert record.expires_at == T0 + timedelta(days=28)
    assert record.deprecated_at is None
    assert record.revoked_at is None
    assert record.key_path is None


@pytest.mark.parametrize(
    "content",
    [
        "{not json",
        json.dumps({"keys": [{"kid": "a"}]}),
        json.dumps({"keys": [{"kid": "a", "status": "lost", "createdAt": 0, "expiresAt": 0}]}),
        json.dumps({"keys": "nope"}),
        json.dumps(
            {"keys": [{"kid": "a", "status": "active", "createdAt": 2000, "expiresAt": 1000}]}
        ),
    ],
)
def test_malformed_document_is_fatal(tmp_path, content):
    path = tmp_path / "metadata.json"
    path.write_text(content)
    with pytest.raises(MetadataError):
        JsonFileMetadataStore(path).load()


def test_write_failure_raises_persistence_error(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("")
    store = JsonFileMetadataStore(blocker / "metadata.json")
    with pytest.raises(PersistenceError):
        store.save(_metadata())


def test_inmemory_store_isolates_saved_copy():
    store = InMemoryMetadataStore()
    metadata = _metadata()
    store.save(metadata)
    metadata.keys[1].status = KeyStatus.REVOKED

    loaded = store.load()
    assert loaded.keys[1].status is KeyStatus.ACTIVE
    assert store.save_count == 1


def _write_keys(path, keys) -> None:
    path.write_text(json.dumps({"keys": keys}))


def test_two_active_keys_are_rejected(tmp_path):
    path = tmp_path / "metadata.json"
    _write_keys(
        path,
        [
            {"kid": "a", "status": "active", "createdAt": "2026-01-01T00:00:00Z", "expiresAt": "2026-02-01T00:00:00Z"},
            {"kid": "b", "status": "active", "createdAt": "2026-01-02T00:00:00Z", "expiresAt": "2026-02-02T00:00:00Z"},
        ],
    )
    with pytest.raises(MetadataError, match="more than one active key"):
        JsonFileMetadataStore(path).load()


def test_naive_timestamps_are_rejected(tmp_path):
    path = tmp_path / "metadata.json"
    _write_keys(
        path,
        [{"kid": "a", "status": "active", "createdAt": "2026-01-01T00:00:00", "expiresAt": "2026-02-01T00:00:00"}],
    )
    with pytest.raises(MetadataError):
        JsonFileMetadataStore(path).load()


def test_mixed_naive_and_aware_timestamps_are_rejected(tmp_path):
    path = tmp_path / "metadata.json"
    _write_keys(
        path,
        [{"kid": "a", "status": "active", "createdAt": "2026-01-01T00:00:00", "expiresAt": "2026-02-01T00:00:00+00:00"}],
    )
    with pytest.raises(MetadataError):
        JsonFileMetadataStore(path).load()


def test_failed_replace_removes_temp_file(tmp_path, monkeypatch):
    path = tmp_path / "metadata.json"
    store = JsonFileMetadataStore(path)
    store.save(_metadata())

    def fail_replace(src, dst):
        raise OSError("read-only file system")

    monkeypatch.setattr("keywarden.metadata.file.os.replace", fail_replace)
    with pytest.raises(PersistenceError):
        store.save(KeyMetadata())

    assert not (tmp_path / "metadata.json.tmp").exists()
    assert store.load() == _metadata()
