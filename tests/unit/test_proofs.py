from __future__ import annotations

import base64

import pytest

from ledgerbook.core.config import Settings
from ledgerbook.services.errors import ValidationError
from ledgerbook.services.proofs import ProofImageStore, decode_proof_image


def test_decode_accepts_data_url_and_bare_base64() -> None:
    encoded = base64.b64encode(b"jpeg-bytes").decode("ascii")

    from_url = decode_proof_image(f"data:image/jpeg;base64,{encoded}", max_bytes=1024)
    bare = decode_proof_image(encoded, max_bytes=1024)

    assert from_url.content_type == "image/jpeg"
    assert from_url.body == b"jpeg-bytes"
    assert bare.content_type == "application/octet-stream"
    assert bare.body == b"jpeg-bytes"


@pytest.mark.parametrize("payload", [None, "", "   ", "data:image/png;base64,"])
def test_decode_rejects_empty_payloads(payload: str | None) -> None:
    with pytest.raises(ValidationError):
        decode_proof_image(payload, max_bytes=1024)


def test_decode_enforces_size_limit() -> None:
    payload = base64.b64encode(b"x" * 33).decode("ascii")

    with pytest.raises(ValidationError):
        decode_proof_image(payload, max_bytes=32)


def test_store_writes_under_owner_prefix(s3_client) -> None:
    store = ProofImageStore(settings=Settings(proof_image_bucket="proofs-test", proof_image_prefix="claims"))
    payload = "data:image/webp;base64," + base64.b64encode(b"webp").decode("ascii")

    stored = store.store(owner_id="owner-1", claim_id="claim-1", payload=payload)

    assert stored.key.startswith("claims/owner-1/")
    assert stored.key.endswith("/claim-1.webp")
    assert stored.location == f"s3://proofs-test/{stored.key}"
    assert stored.size == 4
    assert s3_client.buckets["proofs-test"][stored.key] == b"webp"

    store.delete(stored.key)
    assert stored.key not in s3_client.buckets["proofs-test"]


def test_store_uses_injected_client_factory() -> None:
    calls: list[dict[str, object]] = []

    class RecordingClient:
        def head_bucket(self, **_: object) -> None:
            return None

        def put_object(self, **kwargs: object) -> None:
            calls.append(kwargs)

    store = ProofImageStore(settings=Settings(), s3_client_factory=RecordingClient)
    store.store(owner_id="o", claim_id="c", payload=base64.b64encode(b"raw").decode("ascii"))

    assert len(calls) == 1
    assert calls[0]["Metadata"] == {"owner_id": "o", "claim_id": "c"}
    assert calls[0]["ContentType"] == "application/octet-stream"
