"""
Delivery of run outputs: statistics payload and heatmap images.

- Stats are POSTed as JSON to the stats endpoint; only HTTP 201 is success.
- Images go to an object store with public-read visibility (S3 via minio,
  or a local directory).
"""

from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import Protocol
from urllib.parse import quote

import httpx
import urllib3
from minio import Minio
from minio.error import MinioException

from matchlens.errors import DeliveryError
from matchlens.models import MatchAggregateResult

logger = logging.getLogger(__name__)

PUBLIC_READ_METADATA = {"x-amz-acl": "public-read"}


def post_stats(
    result: MatchAggregateResult,
    endpoint: str,
    client: httpx.Client | None = None,
    timeout: float = 30.0,
) -> None:
    """POST the statistics payload to ``endpoint``."""
    owns_client = client is None
    client = client or httpx.Client(timeout=timeout)

    try:
        response = client.post(endpoint, json=result.to_payload())
    except httpx.HTTPError as e:
        raise DeliveryError(f"Stats POST to {endpoint} failed: {e}") from e
    finally:
        if owns_client:
            client.close()

    if response.status_code != 201:
        raise DeliveryError(
            f"Stats endpoint returned {response.status_code} for match {result.match_id}"
        )
    logger.info(f"Posted stats for match {result.match_id} ({len(result.players)} players)")


def check_object_key(key: str) -> str:
    """Reject keys that would leave a flat namespace (separators, dot segments)."""
    if not key or key in (".", "..") or "/" in key or "\\" in key or "\x00" in key:
        raise DeliveryError(f"Invalid object key: {key!r}")
    return key


class ObjectStore(Protocol):
    """Destination for rendered images."""

    def put(self, key: str, data: bytes, content_type: str = "image/jpeg") -> str:
        """Store ``data`` under ``key`` and return its location."""
        ...


class LocalObjectStore:
    """Writes objects into a directory (CLI and offline runs)."""

    def __init__(self, root: str | Path):
        self.root = Path(root)

    def put(self, key: str, data: bytes, content_type: str = "image/jpeg") -> str:
        path = self.root / check_object_key(key)
        if not path.resolve().is_relative_to(self.root.resolve()):
            raise DeliveryError(f"Object key {key!r} escapes {self.root}")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        except OSError as e:
            raise DeliveryError(f"Failed to write {path}: {e}") from e
        logger.info(f"Wrote {path}")
        return str(path)


class S3ObjectStore:
    """
    Uploads objects to an S3-compatible bucket (DigitalOcean Spaces, MinIO, AWS).

    Objects are written with a public-read ACL and addressed by their
    virtual-host URL ``https://<bucket>.<endpoint>/<key>``.
    """

    def __init__(
        self,
        endpoint: str,
        bucket: str,
        access_key: str | None = None,
        secret_key: str | None = None,
        secure: bool = True,
        client: Minio | None = None,
    ):
        self.endpoint = endpoint
        self.bucket = bucket
        self.secure = secure
        self.client = client or Minio(
            endpoint=endpoint,
            access_key=access_key,
            secret_key=secret_key,
            secure=secure,
        )

    def url_for(self, key: str) -> str:
        scheme = "https" if self.secure else "http"
        return f"{scheme}://{self.bucket}.{self.endpoint}/{quote(key)}"

    def put(self, key: str, data: bytes, content_type: str = "image/jpeg") -> str:
        check_object_key(key)
        try:
            self.client.put_object(
                bucket_name=self.bucket,
                object_name=key,
                data=io.BytesIO(data),
                length=len(data),
                content_type=content_type,
                metadata=PUBLIC_READ_METADATA,
            )
        except (MinioException, urllib3.exceptions.HTTPError) as e:
            raise DeliveryError(f"Upload of {key} to {self.bucket} failed: {e}") from e

        logger.info(f"Uploaded {key} ({len(data)} bytes)")
        return self.url_for(key)
