"""On-disk cache for exported vector store snapshots.

Embedding a documentation corpus is the slow part of a cold start.  The
:class:`SnapshotCache` keeps the JSON produced by
:meth:`~sqldocs.services.vector_store.InMemoryVectorStore.export_snapshot`
on disk, one file per embedding provider, so a restart can import vectors
instead of recomputing them.  Keying by provider name means switching
providers never loads vectors of the wrong dimension.

Each file holds an envelope::

    {"provider": "...", "timestamp": 1718000000.0, "snapshot": "<export json>"}

Entries older than ``ttl_seconds`` are deleted when read.  Disk errors are
logged and reported as a cache miss; the cache is an optimisation and
never the reason a retrieval fails.
"""

from __future__ import annotations

import json
import re
import time
from pathlib import Path
from typing import Callable

import structlog

from sqldocs.models.rag import SnapshotCacheStats

logger = structlog.get_logger(logger_name=__name__)

DEFAULT_TTL_SECONDS = 7 * 24 * 60 * 60
CACHE_FILE_SUFFIX = ".snapshot.json"

_UNSAFE_KEY_CHARS = re.compile(r"[^A-Za-z0-9_.-]")


class SnapshotCache:
    """TTL-bounded snapshot files under *cache_dir*.

    Parameters
    ----------
    cache_dir:
        Directory holding the cache files; created on first write.
    ttl_seconds:
        Maximum age of an entry before it is treated as expired.
    clock:
        Source of the current time in seconds.  Defaults to
        :func:`time.time`.
    """

    def __init__(
        self,
        cache_dir: str | Path,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._cache_dir = Path(cache_dir)
        self._ttl = ttl_seconds
        self._clock = clock

    @property
    def cache_dir(self) -> Path:
        return self._cache_dir

    def get(self, provider_name: str) -> str | None:
        """Return the cached snapshot JSON for *provider_name*, or ``None``."""
        path = self._path_for(provider_name)
        if not path.is_file():
            return None
        try:
            envelope = json.loads(path.read_text(encoding="utf-8"))
            timestamp = float(envelope["timestamp"])
            snapshot = envelope["snapshot"]
        except (OSError, ValueError, KeyError, TypeError) as exc:
            logger.warning("snapshot_cache_read_failed", path=str(path), error=str(exc))
            return None

        if self._clock() - timestamp > self._ttl:
            logger.debug("snapshot_cache_expired", provider=provider_name)
            self.delete(provider_name)
            return None
        if not isinstance(snapshot, str):
            logger.warning("snapshot_cache_read_failed", path=str(path), error="snapshot is not a string")
            return None

        logger.debug("snapshot_cache_hit", provider=provider_name, bytes=len(snapshot))
        return snapshot

    def set(self, provider_name: str, snapshot: str) -> bool:
        """Write *snapshot* for *provider_name*; ``False`` if the write failed."""
        path = self._path_for(provider_name)
        envelope = {
            "provider": provider_name,
            "timestamp": self._clock(),
            "snapshot": snapshot,
        }
        try:
            self._cache_dir.mkdir(parents=True, exist_ok=True)
            path.write_text(json.dumps(envelope), encoding="utf-8")
        except OSError as exc:
            logger.warning("snapshot_cache_write_failed", path=str(path), error=str(exc))
            return False
        logger.info("snapshot_cached", provider=provider_name, path=str(path))
        return True

    def delete(self, provider_name: str) -> None:
        path = self._path_for(provider_name)
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            logger.warning("snapshot_cache_delete_failed", path=str(path), error=str(exc))

    def clear(self) -> int:
        """Delete every cache file; returns how many were removed."""
        removed = 0
        for path in self._cache_files():
            try:
                path.unlink()
                removed += 1
            except OSError as exc:
                logger.warning("snapshot_cache_delete_failed", path=str(path), error=str(exc))
        logger.info("snapshot_cache_cleared", removed=removed)
        return removed

    def get_stats(self) -> SnapshotCacheStats:
        files = self._cache_files()
        total_bytes = 0
        for path in files:
            try:
                total_bytes += path.stat().st_size
            except OSError:
                continue
        return SnapshotCacheStats(
            entries=len(files),
            total_bytes=total_bytes,
            cache_dir=str(self._cache_dir),
        )

    def _path_for(self, provider_name: str) -> Path:
        safe = _UNSAFE_KEY_CHARS.sub("_", provider_name) or "default"
        return self._cache_dir / f"{safe}{CACHE_FILE_SUFFIX}"

    def _cache_files(self) -> list[Path]:
        if not self._cache_dir.is_dir():
            return []
        return sorted(self._cache_dir.glob(f"*{CACHE_FILE_SUFFIX}"))
