"""S3-compatible object storage helper for phoneme audio and cover images.

Provides a minimal wrapper to upload objects and generate pre-signed URLs
against an S3-compatible endpoint (the BaaS storage API or MinIO).
"""

import re
from typing import Any

from .config import get_settings
import boto3
from botocore.client import Config as BotoConfig

_UNSAFE = re.compile(r"[^A-Za-z0-9_.-]")


def phoneme_audio_key(language_id: str, symbol: str, extension: str = "webm") -> str:
    """Object key for a phoneme recording; the symbol is hex-encoded to stay path-safe."""
    encoded = symbol.encode("utf-8").hex()
    return f"languages/{_UNSAFE.sub('_', language_id)}/phonemes/{encoded}.{extension}"


class ObjectStorage:
    """Thin client around boto3 S3 for put & presign operations."""

    def __init__(self, client: Any = None, bucket: str | None = None) -> None:
        """Initialize S3 client and target bucket from application settings.

        Args:
            client: Pre-built S3 client; when omitted one is built from settings.
            bucket: Bucket override; defaults to `S3_BUCKET`.
        """
        s = get_settings()
        self.bucket = bucket or s.S3_BUCKET
        self._client = client or boto3.client(
            "s3",
            endpoint_url=s.S3_ENDPOINT,
            aws_access_key_id=s.S3_ACCESS_KEY,
            aws_secret_access_key=s.S3_SECRET_KEY,
            config=BotoConfig(signature_version="s3v4"),
            region_name="us-east-1",
        )

    def put(self, key: str, data: bytes, content_type: str = "application/octet-stream") -> str:
        """Upload bytes to the configured bucket.

        Returns:
            A simple locator string in the form "{bucket}/{key}".
        """
        self._client.put_object(Bucket=self.bucket, Key=key, Body=data, ContentType=content_type)
        return f"{self.bucket}/{key}"

    def key_of(self, locator: str) -> str:
        """Object key of a locator returned by `put`."""
        prefix = f"{self.bucket}/"
        return locator[len(prefix):] if locator.startswith(prefix) else locator

    def presign(self, key: str, expires: int = 3600) -> str:
        """Generate a time-limited pre-signed GET URL for an object."""
        return self._client.generate_presigned_url(
            "get_object",
            Params={"Bucket": self.bucket, "Key": key},
            ExpiresIn=expires,
        )
