"""Audit document storage.

Documents live under ``audit:{id}`` as JSON. Writes after creation go through
``compare_and_set`` so a write based on a stale read is rejected instead of
silently overwriting a concurrent update.
"""

import asyncio
from abc import ABC, abstractmethod
from collections.abc import Callable

import orjson
import structlog
from redis import asyncio as aioredis
from redis.exceptions import RedisError, WatchError

from api.config import Settings
from api.exceptions import ConflictError, NotFoundError, StorageError
from api.models.audit import AuditDocument

logger = structlog.get_logger(__name__)

KEY_PREFIX = "audit:"


def audit_key(audit_id: str) -> str:
    return f"{KEY_PREFIX}{audit_id}"


class AuditStore(ABC):
    """Key-value store for audit documents."""

    @abstractmethod
    async def create(self, doc: AuditDocument) -> bool:
        """Store ``doc`` only if its id is unused. Returns False on collision."""

    @abstractmethod
    async def get(self, audit_id: str) -> AuditDocument | None: ...

    @abstractmethod
    async def compare_and_set(self, doc: AuditDocument, expected_version: int) -> bool:
        """Replace the stored document if its version is still ``expected_version``."""

    @abstractmethod
    async def ping(self) -> bool: ...

    async def close(self) -> None:
        return None


class RedisAuditStore(AuditStore):
    """Redis backend. Conditional writes use WATCH/MULTI."""

    def __init__(self, client: aioredis.Redis):
        self._redis = client

    @classmethod
    def from_url(cls, url: str) -> "RedisAuditStore":
        return cls(aioredis.from_url(url, decode_responses=True))

    async def create(self, doc: AuditDocument) -> bool:
        try:
            created = await self._redis.set(audit_key(doc.id), doc.model_dump_json(), nx=True)
        except RedisError as e:
            logger.error("audit_store_failed", operation="create", error=str(e))
            raise StorageError("create") from e
        return bool(created)

    async def get(self, audit_id: str) -> AuditDocument | None:
        try:
            raw = await self._redis.get(audit_key(audit_id))
        except RedisError as e:
            logger.error("audit_store_failed", operation="read", error=str(e))
            raise StorageError("read") from e
        if raw is None:
            return None
        return AuditDocument.model_validate_json(raw)

    async def compare_and_set(self, doc: AuditDocument, expected_version: int) -> bool:
        key = audit_key(doc.id)
        try:
            async with self._redis.pipeline(transaction=True) as pipe:
                await pipe.watch(key)
                raw = await pipe.get(key)
                if raw is None or orjson.loads(raw).get("version") != expected_version:
                    await pipe.unwatch()
                    return False
                pipe.multi()
                pipe.set(key, doc.model_dump_json())
                await pipe.execute()
                return True
        except WatchError:
            return False
        except RedisError as e:
            logger.error("audit_store_failed", operation="write", error=str(e))
            raise StorageError("write") from e

    async def ping(self) -> bool:
        try:
            return bool(await self._redis.ping())
        except RedisError:
            return False

    async def close(self) -> None:
        await self._redis.aclose()


class InMemoryAuditStore(AuditStore):
    """Process-local backend for tests and single-instance development.

    Holds serialized JSON so callers never share mutable documents.
    """

    def __init__(self):
        self._data: dict[str, str] = {}

    async def create(self, doc: AuditDocument) -> bool:
        key = audit_key(doc.id)
        if key in self._data:
            return False
        self._data[key] = doc.model_dump_json()
        return True

    async def get(self, audit_id: str) -> AuditDocument | None:
        raw = self._data.get(audit_key(audit_id))
        return AuditDocument.model_validate_json(raw) if raw is not None else None

    async def compare_and_set(self, doc: AuditDocument, expected_version: int) -> bool:
        key = audit_key(doc.id)
        raw = self._data.get(key)
        if raw is None or orjson.loads(raw).get("version") != expected_version:
            return False
        self._data[key] = doc.model_dump_json()
        return True

    async def ping(self) -> bool:
        return True


def build_store(settings: Settings) -> AuditStore:
    if settings.store_backend == "memory":
        return InMemoryAuditStore()
    return RedisAuditStore.from_url(str(settings.redis_url))


async def update_with_retry(
    store: AuditStore,
    audit_id: str,
    mutate: Callable[[AuditDocument], None],
    max_attempts: int = 3,
) -> AuditDocument:
    """Load, mutate and conditionally write a document.

    On a version conflict the document is reloaded and ``mutate`` re-applied
    to the fresh copy. Raises ConflictError once ``max_attempts`` is spent.
    """
    for attempt in range(max_attempts):
        doc = await store.get(audit_id)
        if doc is None:
            raise NotFoundError("Audit", audit_id)

        expected = doc.version
        mutate(doc)
        doc.version = expected + 1
        if await store.compare_and_set(doc, expected):
            return doc

        if attempt < max_attempts - 1:
            logger.warning("audit_write_conflict", audit_id=audit_id, attempt=attempt + 1)
            await asyncio.sleep(0.1 * (attempt + 1))

    logger.error("audit_write_failed", audit_id=audit_id, reason="max_retries_exceeded")
    raise ConflictError(f"Audit '{audit_id}' was modified concurrently; try again")
