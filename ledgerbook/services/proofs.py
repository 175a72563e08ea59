"""Object storage for payment proof images."""
from __future__ import annotations

import base64
import binascii
import logging
import re
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

import boto3
from botocore.exceptions import ClientError  # type: ignore[import-untyped]

from ledgerbook.core.config import Settings, get_settings
from ledgerbook.services.errors import ValidationError

logger = logging.getLogger(__name__)

_DATA_URL_PATTERN = re.compile(r"^data:(?P<content_type>[\w.+-]+/[\w.+-]+)?(;[^,]*)?;base64,(?P<data>.*)$", re.S)

_EXTENSIONS = {
    "image/png": "png",
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/gif": "gif",
    "image/webp": "webp",
}


@dataclass(slots=True, frozen=True)
class DecodedProof:
    content_type: str
    body: bytes


@dataclass(slots=True, frozen=True)
class StoredProof:
    key: str
    location: str
    size: int


def decode_proof_image(payload: str | None, *, max_bytes: int) -> DecodedProof:
    """Decode a base64 payload, optionally wrapped in a ``data:`` URL."""

    text = (payload or "").strip()
    if not text:
        raise ValidationError("Payment proof image is required")

    content_type = "application/octet-stream"
    match = _DATA_URL_PATTERN.match(text)
    if match:
        content_type = match.group("content_type") or content_type
        text = match.group("data")
    try:
        body = base64.b64decode(text, validate=False)
    except (binascii.Error, ValueError) as exc:
        raise ValidationError("Payment proof image is not valid base64") from exc
    if not body:
        raise ValidationError("Payment proof image is required")
    if len(body) > max_bytes:
        raise ValidationError(f"Payment proof image exceeds {max_bytes} bytes")
    return DecodedProof(content_type=content_type, body=body)


class ProofImageStore:
    """Writes proof images to S3 under a per-owner prefix."""

    def __init__(
        self,
        *,
        settings: Settings | None = None,
        s3_client_factory: Callable[[], Any] | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._s3_client_factory = s3_client_factory or self._default_s3_client
        self._s3_client: Any | None = None
        self._bucket_ready = False

    def _default_s3_client(self) -> Any:
        return boto3.client(
            "s3",
            region_name=self._settings.aws_region,
            endpoint_url=self._settings.s3_endpoint_url,
        )

    def _get_s3_client(self) -> Any:
        if self._s3_client is None:
            self._s3_client = self._s3_client_factory()
        return self._s3_client

    def _ensure_bucket(self) -> None:
        if self._bucket_ready:
            return
        client = self._get_s3_client()
        bucket = self._settings.proof_image_bucket
        try:
            client.head_bucket(Bucket=bucket)
        except ClientError:
            client.create_bucket(Bucket=bucket)
        self._bucket_ready = True

    def store(self, *, owner_id: str, claim_id: str, payload: str | None) -> StoredProof:
        proof = decode_proof_image(payload, max_bytes=self._settings.proof_image_max_bytes)
        self._ensure_bucket()
        key = (
            f"{self._settings.proof_image_prefix}/{owner_id}/"
            f"{datetime.now(timezone.utc):%Y/%m/%d}/{claim_id}"
        )
        extension = _EXTENSIONS.get(proof.content_type.lower())
        if extension:
            key = f"{key}.{extension}"

        self._get_s3_client().put_object(
            Bucket=self._settings.proof_image_bucket,
            Key=key,
            Body=proof.body,
            ContentType=proof.content_type,
            Metadata={"owner_id": owner_id, "claim_id": claim_id},
        )
        location = f"s3://{self._settings.proof_image_bucket}/{key}"
        logger.info(
            "stored payment proof",
            extra={"owner_id": owner_id, "claim_id": claim_id, "size": len(proof.body)},
        )
        return StoredProof(key=key, location=location, size=len(proof.body))

    def delete(self, key: str) -> None:
        self._get_s3_client().delete_object(Bucket=self._settings.proof_image_bucket, Key=key)


__all__ = ["DecodedProof", "ProofImageStore", "StoredProof", "decode_proof_image"]
