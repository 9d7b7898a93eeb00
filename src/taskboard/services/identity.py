"""Session cache manager: TTL identity cache with timeout race and stale fallback."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum

from ..core.clock import Clock, monotonic_clock
from ..core.config import Settings
from ..core.retry import RetryPolicy
from ..remote import RemoteStore
from ..schemas import Identity

logger = logging.getLogger(__name__)


class CacheMetrics:
    """Counters describing identity cache behaviour."""

    def __init__(self) -> None:
        self.reset()

    def reset(self) -> None:
        self.hits = 0
        self.misses = 0
        self.stores = 0
        self.evictions = 0
        self.stale_served = 0
        self.timeouts = 0

    def snapshot(self) -> dict[str, int]:
        return {
            "hits": self.hits,
            "misses": self.misses,
            "stores": self.stores,
            "evictions": self.evictions,
            "stale_served": self.stale_served,
            "timeouts": self.timeouts,
        }


@dataclass(frozen=True, slots=True)
class CacheEntry:
    identity: Identity
    cached_at: float


class IdentityCache:
    """Identity entries keyed by user id, stale once older than ``ttl`` seconds.

    One instance is built per process and handed to every consumer. The clock
    is injectable so expiry can be driven deterministically in tests.
    """

    def __init__(self, ttl: float, *, clock: Clock = monotonic_clock) -> None:
        self._ttl = ttl
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self.metrics = CacheMetrics()

    @property
    def ttl(self) -> float:
        return self._ttl

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, user_id: object) -> bool:
        return user_id in self._entries

    def get(self, user_id: str) -> CacheEntry | None:
        return self._entries.get(user_id)

    def age(self, user_id: str) -> float | None:
        entry = self._entries.get(user_id)
        if entry is None:
            return None
        return self._clock() - entry.cached_at

    def is_fresh(self, entry: CacheEntry) -> bool:
        return self._clock() - entry.cached_at < self._ttl

    def put(self, identity: Identity) -> CacheEntry:
        entry = CacheEntry(identity=identity, cached_at=self._clock())
        self._entries[identity.id] = entry
        self.metrics.stores += 1
        return entry

    def evict(self, user_id: str) -> bool:
        removed = self._entries.pop(user_id, None) is not None
        if removed:
            self.metrics.evictions += 1
        return removed

    def clear(self) -> None:
        self.metrics.evictions += len(self._entries)
        self._entries.clear()


class ResolutionStatus(str, Enum):
    OK = "ok"
    STALE = "stale"
    NOT_FOUND = "not_found"
    TIMEOUT = "timeout"


@dataclass(frozen=True, slots=True)
class IdentityResolution:
    """Result of ``SessionCacheManager.resolve``; ``identity`` is set for OK and STALE."""

    status: ResolutionStatus
    identity: Identity | None = None

    @property
    def found(self) -> bool:
        return self.identity is not None


class SessionCacheManager:
    """Resolve identities through the cache, falling back to the remote ``users`` table."""

    def __init__(
        self,
        remote: RemoteStore,
        cache: IdentityCache,
        *,
        timeout: float = 8.0,
        retry: RetryPolicy | None = None,
    ) -> None:
        self._remote = remote
        self._cache = cache
        self._timeout = timeout
        self._retry = retry or RetryPolicy()
        self._abandoned: set[asyncio.Future[Identity | None]] = set()

    @classmethod
    def from_settings(
        cls,
        remote: RemoteStore,
        settings: Settings,
        *,
        cache: IdentityCache | None = None,
        clock: Clock = monotonic_clock,
    ) -> "SessionCacheManager":
        return cls(
            remote,
            cache or IdentityCache(settings.identity_cache_ttl_seconds, clock=clock),
            timeout=settings.identity_fetch_timeout_seconds,
            retry=RetryPolicy(
                retries=settings.identity_fetch_retries,
                delay=settings.identity_retry_delay_seconds,
            ),
        )

    @property
    def cache(self) -> IdentityCache:
        return self._cache

    @property
    def pending_fetches(self) -> int:
        """Number of fetches abandoned by a timeout that have not finished yet."""
        return len(self._abandoned)

    async def _fetch(self, user_id: str) -> Identity | None:
        record = await self._remote.get_user(user_id)
        return record.to_identity() if record is not None else None

    async def _fetch_with_retry(self, user_id: str) -> Identity | None:
        return await self._retry.run(
            lambda: self._fetch(user_id),
            description=f"identity fetch for {user_id}",
        )

    def _abandon(self, fetch: asyncio.Future[Identity | None]) -> None:
        self._abandoned.add(fetch)
        fetch.add_done_callback(self._forget)

    def _forget(self, fetch: asyncio.Future[Identity | None]) -> None:
        self._abandoned.discard(fetch)
        if not fetch.cancelled() and fetch.exception() is not None:
            logger.info("Abandoned identity fetch finished with %r", fetch.exception())

    async def resolve(self, user_id: str) -> IdentityResolution:
        """Return the identity for ``user_id``.

        A fresh cache entry is returned without any remote call. Otherwise the
        remote fetch (retried on transient failures) is raced against the
        timeout; when the timer wins the fetch is abandoned and the stale entry
        is served if there is one. A missing row yields ``NOT_FOUND`` and is
        never retried; transient failures that outlive the retry budget
        propagate.
        """

        entry = self._cache.get(user_id)
        if entry is not None and self._cache.is_fresh(entry):
            self._cache.metrics.hits += 1
            logger.debug("Identity cache hit for %s", user_id)
            return IdentityResolution(ResolutionStatus.OK, entry.identity)

        self._cache.metrics.misses += 1
        logger.debug("Identity cache miss for %s", user_id, extra={"stale_entry": entry is not None})

        fetch = asyncio.ensure_future(self._fetch_with_retry(user_id))
        try:
            identity = await asyncio.wait_for(
                asyncio.shield(fetch),
                timeout=self._timeout if self._timeout > 0 else None,
            )
        except asyncio.TimeoutError:
            self._abandon(fetch)
            self._cache.metrics.timeouts += 1
            if entry is not None:
                self._cache.metrics.stale_served += 1
                logger.warning(
                    "Identity fetch for %s timed out; serving cached entry",
                    user_id,
                    extra={"timeout_seconds": self._timeout},
                )
                return IdentityResolution(ResolutionStatus.STALE, entry.identity)
            logger.warning(
                "Identity fetch for %s timed out with nothing cached",
                user_id,
                extra={"timeout_seconds": self._timeout},
            )
            return IdentityResolution(ResolutionStatus.TIMEOUT)
        except asyncio.CancelledError:
            fetch.cancel()
            raise

        if identity is None:
            self._cache.evict(user_id)
            logger.info("No identity row for %s yet", user_id)
            return IdentityResolution(ResolutionStatus.NOT_FOUND)

        self._cache.put(identity)
        return IdentityResolution(ResolutionStatus.OK, identity)

    def invalidate(self, user_id: str) -> None:
        self._cache.evict(user_id)

    async def drain(self) -> None:
        """Wait for abandoned fetches to settle."""
        if self._abandoned:
            await asyncio.gather(*self._abandoned, return_exceptions=True)


__all__ = [
    "CacheEntry",
    "CacheMetrics",
    "IdentityCache",
    "IdentityResolution",
    "ResolutionStatus",
    "SessionCacheManager",
]
