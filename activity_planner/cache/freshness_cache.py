"""
Freshness-gated read-through cache over the local SQLite store.

One component, instantiated per entity type by the services:

    FreshnessCache(
        name           = "weather",
        read_cached    = query -> list[V]            (sync, repository read)
        fetch_upstream = query -> Awaitable[list[R]] (async, provider call)
        upsert         = R -> V                      (sync, natural-key upsert)
        is_fresh       = V -> bool
    )

``resolve(query, min_count, require_all_fresh)``
-------------------------------------------------
1. Read cached entries for ``query``.
2. Cache hit when the fresh entries number at least ``min_count``; with
   ``require_all_fresh`` additionally every cached entry must be fresh (one
   stale row invalidates the whole set).  A hit never touches upstream.
3. Otherwise fetch upstream and upsert each item.  An item whose upsert raises
   ``PersistenceWriteFailed`` is logged and skipped; the successfully stored
   subset is returned.  If every item fails and the cache holds entries, the
   cached entries are returned as ``STALE_FALLBACK``.
4. Upstream failure:
     UpstreamRejected     → always re-raised (a cached answer would hide a bad request)
     UpstreamUnavailable  → cached entries returned as a degraded result, even
                            if stale; re-raised only when the cache is empty.

Concurrent resolves for the same key may both refetch and upsert; the
repositories' ``ON CONFLICT ... DO UPDATE`` keeps that last-writer-wins.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import Generic, TypeVar

from activity_planner.errors import PersistenceWriteFailed, UpstreamUnavailable

logger = logging.getLogger(__name__)

Q = TypeVar("Q")   # query key
R = TypeVar("R")   # upstream record
V = TypeVar("V")   # stored entity


class CacheOrigin(StrEnum):
    """Where a resolved result came from."""

    CACHE = "cache"
    """Served from the local store; no upstream call."""

    UPSTREAM = "upstream"
    """Freshly fetched and persisted."""

    STALE_FALLBACK = "stale_fallback"
    """Upstream failed, or none of its entries could be stored; cached
    (possibly stale) entries returned instead."""


@dataclass(frozen=True)
class CacheResult(Generic[V]):
    """Entries returned by ``FreshnessCache.resolve`` plus their origin.

    Attributes:
        entries: Resolved entities, in the order the source produced them.
        origin:  ``CacheOrigin`` of ``entries``.
        skipped: Upstream items dropped because their upsert failed.
    """

    entries: list[V]
    origin: CacheOrigin
    skipped: int = 0

    @property
    def is_degraded(self) -> bool:
        return self.origin is CacheOrigin.STALE_FALLBACK


class FreshnessCache(Generic[Q, R, V]):
    """Read-through cache with upsert persistence and stale fallback.

    Args:
        name:           Label used in log lines, e.g. ``"city-search"``.
        read_cached:    Returns cached entries matching a query.
        fetch_upstream: Async provider call returning records for a query.
        upsert:         Persists one upstream record, returning the stored
                        entity; raises ``PersistenceWriteFailed`` on failure.
        is_fresh:       Freshness predicate over a stored entity.
    """

    def __init__(
        self,
        name: str,
        read_cached: Callable[[Q], list[V]],
        fetch_upstream: Callable[[Q], Awaitable[list[R]]],
        upsert: Callable[[R], V],
        is_fresh: Callable[[V], bool],
    ) -> None:
        self.name           = name
        self.read_cached    = read_cached
        self.fetch_upstream = fetch_upstream
        self.upsert         = upsert
        self.is_fresh       = is_fresh

    def is_hit(self, cached: list[V], min_count: int, require_all_fresh: bool) -> bool:
        """Return ``True`` if ``cached`` can be served without a refetch."""
        fresh = sum(1 for entry in cached if self.is_fresh(entry))
        if require_all_fresh and fresh != len(cached):
            return False
        return fresh >= max(min_count, 1)

    async def resolve(
        self,
        query: Q,
        min_count: int = 1,
        require_all_fresh: bool = False,
    ) -> CacheResult[V]:
        """Resolve ``query`` from cache or upstream.

        Args:
            query: Cache key passed to ``read_cached`` / ``fetch_upstream``.
            min_count: Minimum number of fresh cached entries for a hit.
            require_all_fresh: Treat any stale cached entry as a miss.

        Returns:
            ``CacheResult`` with entries and origin.

        Raises:
            UpstreamUnavailable: Upstream failed and nothing is cached.
            UpstreamRejected: Upstream rejected the request.
        """
        cached = self.read_cached(query)

        if self.is_hit(cached, min_count, require_all_fresh):
            logger.debug("%s cache hit for %r (%d entries).", self.name, query, len(cached))
            return CacheResult(entries=cached, origin=CacheOrigin.CACHE)

        logger.debug(
            "%s cache miss for %r (%d cached); fetching upstream.",
            self.name, query, len(cached),
        )
        try:
            records = await self.fetch_upstream(query)
        except UpstreamUnavailable as exc:
            if cached:
                logger.warning(
                    "%s upstream unavailable for %r; serving %d cached entries: %s",
                    self.name, query, len(cached), exc.reason,
                    extra=self._log_fields(CacheOrigin.STALE_FALLBACK),
                )
                return CacheResult(entries=cached, origin=CacheOrigin.STALE_FALLBACK)
            logger.error("%s upstream unavailable for %r and cache empty.", self.name, query)
            raise UpstreamUnavailable(
                exc.provider, {**exc.query, self.name: query}, exc.reason
            ) from exc

        stored, skipped = self._upsert_all(records)
        if records and not stored and cached:
            logger.warning(
                "%s: none of %d upstream entries for %r could be stored; "
                "serving %d cached entries.",
                self.name, len(records), query, len(cached),
                extra=self._log_fields(CacheOrigin.STALE_FALLBACK),
            )
            return CacheResult(
                entries=cached, origin=CacheOrigin.STALE_FALLBACK, skipped=skipped
            )
        logger.debug(
            "%s stored %d/%d upstream entries for %r.",
            self.name, len(stored), len(records), query,
        )
        return CacheResult(entries=stored, origin=CacheOrigin.UPSTREAM, skipped=skipped)

    def _log_fields(self, origin: CacheOrigin) -> dict[str, str]:
        return {"cache": self.name, "origin": origin.value}

    def _upsert_all(self, records: list[R]) -> tuple[list[V], int]:
        """Upsert each record, skipping (and logging) individual failures."""
        stored: list[V] = []
        skipped = 0
        for record in records:
            try:
                stored.append(self.upsert(record))
            except PersistenceWriteFailed as exc:
                skipped += 1
                logger.warning("%s: %s", self.name, exc)
        return stored, skipped
