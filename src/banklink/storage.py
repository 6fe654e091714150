"""Object store and key/value store handles used by the adapters.

Both stores are external black boxes: we only ``get`` and ``put``/``set``
and never lock locally. The S3 and Redis implementations are for production;
the in-memory ones back tests and the CLI when nothing is configured.
"""

import asyncio
import json
import logging
import time
from typing import Any, Protocol, runtime_checkable

import boto3
import redis.asyncio as redis_async
from botocore.exceptions import ClientError

logger = logging.getLogger(__name__)


@runtime_checkable
class ObjectStore(Protocol):
    """Binary blob storage keyed by path."""

    async def get(self, key: str) -> bytes | None: ...

    async def put(
        self, key: str, data: bytes, content_type: str = "application/octet-stream"
    ) -> None: ...


@runtime_checkable
class KeyValueStore(Protocol):
    """JSON value storage with optional expiry."""

    async def get(self, key: str) -> Any | None: ...

    async def set(self, key: str, value: Any, ttl: int | None = None) -> None: ...


class InMemoryObjectStore:
    """Process-local object store."""

    def __init__(self) -> None:
        self._objects: dict[str, bytes] = {}

    async def get(self, key: str) -> bytes | None:
        return self._objects.get(key)

    async def put(
        self, key: str, data: bytes, content_type: str = "application/octet-stream"
    ) -> None:
        self._objects[key] = data

    def __contains__(self, key: str) -> bool:
        return key in self._objects


class InMemoryKeyValueStore:
    """Process-local key/value store honouring TTLs."""

    def __init__(self) -> None:
        self._values: dict[str, tuple[Any, float | None]] = {}

    async def get(self, key: str) -> Any | None:
        entry = self._values.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at is not None and time.monotonic() >= expires_at:
            del self._values[key]
            return None
        return value

    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        expires_at = time.monotonic() + ttl if ttl and ttl > 0 else None
        self._values[key] = (value, expires_at)


class S3ObjectStore:
    """Object store backed by an S3 bucket.

    boto3 is synchronous, so each call runs in a worker thread.
    """

    def __init__(self, bucket: str, client: Any | None = None):
        self.bucket = bucket
        self._client: Any = client or boto3.client("s3")

    async def get(self, key: str) -> bytes | None:
        try:
            response = await asyncio.to_thread(
                self._client.get_object, Bucket=self.bucket, Key=key
            )
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in ("NoSuchKey", "404"):
                return None
            raise
        return await asyncio.to_thread(response["Body"].read)

    async def put(
        self, key: str, data: bytes, content_type: str = "application/octet-stream"
    ) -> None:
        await asyncio.to_thread(
            self._client.put_object,
            Bucket=self.bucket,
            Key=key,
            Body=data,
            ContentType=content_type,
        )
        logger.debug(f"Stored s3://{self.bucket}/{key} ({len(data)} bytes)")


class RedisKeyValueStore:
    """Key/value store backed by Redis, values stored as JSON."""

    def __init__(self, client: redis_async.Redis, prefix: str = "banklink:"):
        self._client = client
        self.prefix = prefix

    @classmethod
    def from_url(cls, url: str, prefix: str = "banklink:") -> "RedisKeyValueStore":
        """Connect lazily to the Redis server at ``url``."""
        return cls(redis_async.Redis.from_url(url, decode_responses=True), prefix)

    async def get(self, key: str) -> Any | None:
        raw = await self._client.get(self.prefix + key)
        if raw is None:
            return None
        return json.loads(raw)

    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        payload = json.dumps(value, default=str)
        if ttl and ttl > 0:
            await self._client.setex(self.prefix + key, ttl, payload)
        else:
            await self._client.set(self.prefix + key, payload)

    async def aclose(self) -> None:
        await self._client.aclose()


def build_object_store(bucket: str | None) -> ObjectStore:
    """S3 when a bucket is configured, in-memory otherwise."""
    if bucket:
        return S3ObjectStore(bucket)
    return InMemoryObjectStore()


def build_kv_store(redis_url: str | None) -> KeyValueStore:
    """Redis when a URL is configured, in-memory otherwise."""
    if redis_url:
        return RedisKeyValueStore.from_url(redis_url)
    return InMemoryKeyValueStore()
