"""
Blob storage abstraction for S3-compatible object stores and in-memory testing.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Protocol
from urllib.parse import quote, urlparse

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from recipe_backend.errors import StorageError


class BlobStorageClient(Protocol):
    """Defines the operations the API needs from object storage."""

    def upload(self, name: str, data: bytes, content_type: str) -> str:
        ...

    def close(self) -> None:
        ...


@dataclass
class ConnectionSettings:
    """Parsed form of a ``Key=Value;Key=Value`` storage connection string."""

    endpoint: str
    access_key_id: str
    secret_access_key: str
    region: Optional[str] = None
    public_base_url: Optional[str] = None

    @classmethod
    def parse(cls, connection_string: str) -> "ConnectionSettings":
        parts: dict[str, str] = {}
        for chunk in connection_string.split(";"):
            chunk = chunk.strip()
            if not chunk:
                continue
            key, sep, value = chunk.partition("=")
            if not sep:
                raise ValueError(f"Malformed connection string segment: {key!r}")
            parts[key.strip().lower()] = value.strip()

        missing = [
            key
            for key in ("endpoint", "accesskeyid", "secretaccesskey")
            if not parts.get(key)
        ]
        if missing:
            raise ValueError(
                "Connection string is missing: " + ", ".join(sorted(missing))
            )
        return cls(
            endpoint=parts["endpoint"].rstrip("/"),
            access_key_id=parts["accesskeyid"],
            secret_access_key=parts["secretaccesskey"],
            region=parts.get("region") or None,
            public_base_url=(parts.get("publicbaseurl") or "").rstrip("/") or None,
        )


@dataclass
class InMemoryBlobStorageClient:
    """Test double for storage interactions."""

    base_url: str = "https://example.test/recipes"
    stored_objects: dict = field(default_factory=dict)
    content_types: dict = field(default_factory=dict)

    def upload(self, name: str, data: bytes, content_type: str) -> str:
        self.stored_objects[name] = bytes(data)
        self.content_types[name] = content_type
        return f"{self.base_url}/{quote(name)}"

    def get_bytes(self, name: str) -> bytes:
        stored = self.stored_objects.get(name)
        if stored is None:
            raise FileNotFoundError(name)
        return stored

    def reset(self) -> None:
        """Clear all stored blobs (useful in tests)."""
        self.stored_objects.clear()
        self.content_types.clear()

    def close(self) -> None:
        pass


class S3BlobStorageClient:
    """
    S3-compatible blob client authenticated from a connection string.

    The container is used as the bucket; blobs are addressed by name and
    uploaded with an explicit content type so players can stream them.
    """

    def __init__(self, connection_string: str, container: str):
        if not connection_string:
            raise ValueError(
                "STORAGE_CONNECTION_STRING is required for S3BlobStorageClient"
            )
        self.container = container
        self.settings = ConnectionSettings.parse(connection_string)
        # Use virtual-hosted style addressing so object URLs match bucket hosts.
        config = Config(
            s3={"addressing_style": "virtual"},
            signature_version="s3v4",
        )
        self._client = boto3.client(
            "s3",
            endpoint_url=self.settings.endpoint,
            region_name=self.settings.region,
            aws_access_key_id=self.settings.access_key_id,
            aws_secret_access_key=self.settings.secret_access_key,
            config=config,
        )

    def url_for(self, name: str) -> str:
        key = quote(name)
        if self.settings.public_base_url:
            return f"{self.settings.public_base_url}/{key}"
        parsed = urlparse(self.settings.endpoint)
        scheme = parsed.scheme or "https"
        host = parsed.netloc or parsed.path
        return f"{scheme}://{self.container}.{host}/{key}"

    def upload(self, name: str, data: bytes, content_type: str) -> str:
        try:
            self._client.put_object(
                Bucket=self.container,
                Key=name,
                Body=data,
                ContentType=content_type,
            )
        except (BotoCoreError, ClientError) as exc:
            raise StorageError("Blob upload failed", str(exc)) from exc
        return self.url_for(name)

    def close(self) -> None:
        self._client.close()
