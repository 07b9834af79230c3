"""Tests for deriving the published key set from metadata."""

import logging
from datetime import datetime, timedelta, timezone

import pytest

from keywarden.crypto import PemCryptoGateway
from keywarden.errors import UnknownKeyError
from keywarden.models import KeyRecord, KeyStatus
from keywarden.publisher import JwksPublisher

T0 = datetime(2026, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
def pem_gateway(tmp_path) -> PemCryptoGateway:
    return PemCryptoGateway(tmp_path / "keys")


def _record(gateway: PemCryptoGateway, kid: str, status: KeyStatus) -> KeyRecord:
    pair = gateway.generate_key_pair("EdDSA")
    ref = gateway.store_material(kid, gateway.encode_public_key(pair.public_key))
    return KeyRecord(
        kid=kid,
        status=status,
        created_at=T0,
        expires_at=T0 + timedelta(days=28),
        key_path=ref,
    )


def test_publishes_only_trusted_keys_in_order(pem_gateway):
    records = [
        _record(pem_gateway, "expired", KeyStatus.EXPIRED),
        _record(pem_gateway, "deprecated", KeyStatus.DEPRECATED),
        _record(pem_gateway, "revoked", KeyStatus.REVOKED),
        _record(pem_gateway, "active", KeyStatus.ACTIVE),
    ]
    publisher = JwksPublisher(pem_gateway, "EdDSA")
    publisher.rebuild(records)

    assert publisher.kids == ["deprecated", "active"]
    document = publisher.document()
    assert [jwk["kid"] for jwk in document["keys"]] == ["deprecated", "active"]
    assert all(jwk["use"] == "sig" and jwk["alg"] == "EdDSA" for jwk in document["keys"])


def test_revoked_keys_published_when_policy_enabled(pem_gateway):
    records = [
        _record(pem_gateway, "revoked", KeyStatus.REVOKED),
        _record(pem_gateway, "expired", KeyStatus.EXPIRED),
    ]
    publisher = JwksPublisher(pem_gateway, "EdDSA", publish_revoked=True)
    publisher.rebuild(records)
    assert publisher.kids == ["revoked"]


def test_unusable_material_is_skipped(pem_gateway, tmp_path, caplog):
    no_ref = _record(pem_gateway, "no-ref", KeyStatus.DEPRECATED)
    no_ref.key_path = None
    missing = _record(pem_gateway, "missing", KeyStatus.DEPRECATED)
    (tmp_path / "keys" / "missing.pem").unlink()
    corrupt = _record(pem_gateway, "corrupt", KeyStatus.DEPRECATED)
    (tmp_path / "keys" / "corrupt.pem").write_bytes(b"garbage")
    good = _record(pem_gateway, "good", KeyStatus.ACTIVE)

    publisher = JwksPublisher(pem_gateway, "EdDSA")
    with caplog.at_level(logging.WARNING, logger="keywarden.publisher"):
        publisher.rebuild([no_ref, missing, corrupt, good])

    assert publisher.kids == ["good"]
    assert len(caplog.records) == 3


def test_lookup_index_follows_document(pem_gateway):
    active = _record(pem_gateway, "active", KeyStatus.ACTIVE)
    publisher = JwksPublisher(pem_gateway, "EdDSA")
    publisher.rebuild([active])
    assert publisher.get_key("active") is not None

    active.status = KeyStatus.REVOKED
    publisher.rebuild([active])
    with pytest.raises(UnknownKeyError):
        publisher.get_key("active")
    assert publisher.document() == {"keys": []}


def test_document_is_a_copy(pem_gateway):
    publisher = JwksPublisher(pem_gateway, "EdDSA")
    publisher.rebuild([_record(pem_gateway, "active", KeyStatus.ACTIVE)])

    document = publisher.document()
    document["keys"][0]["kid"] = "tampered"
    document["keys"].clear()

    assert publisher.kids == ["active"]


def test_rebuild_swaps_snapshot(pem_gateway):
    publisher = JwksPublisher(pem_gateway, "EdDSA")
    before = publisher.snapshot
    after = publisher.rebuild([_record(pem_gateway, "active", KeyStatus.ACTIVE)])
    assert before is not after
    assert publisher.snapshot is after
    assert before.keys == ()
    assert set(after.index) == {"active"}
