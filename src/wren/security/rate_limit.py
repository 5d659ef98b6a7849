"""Fixed-window rate limiting.

Each client key owns a ``RateWindow(start, count)``. A request either
starts a fresh window (no window yet, or ``now - start > window_seconds``)
or increments the current one. The window is persisted on every hit,
including the one that trips the limit. Once the post-increment count
exceeds the limit the request is rejected with a ``Retry-After`` of the
seconds left in the window.

Windows live in a ``WindowStore``:

- ``MemoryWindowStore``: a dict, for single-process deployments and tests
- ``FileWindowStore``: one JSON file per key, for hosts that recycle
  worker processes between requests

Both serialize the read-modify-write of a key with a ``threading.Lock``.
Locking across processes is not attempted.

Expired windows are swept out of the store by the limiter, at most once
per ``window_seconds``, so idle clients do not accumulate.
"""

import hashlib
import json
import logging
import math
import os
import tempfile
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from wren.errors import TooManyRequests

_log = logging.getLogger("wren.security")


@dataclass(frozen=True, slots=True)
class RateWindow:
    """One client's current window."""

    start: float
    count: int


@dataclass(frozen=True, slots=True)
class RateDecision:
    """Outcome of a single hit."""

    allowed: bool
    count: int
    limit: int
    retry_after: int

    @property
    def remaining(self) -> int:
        return max(0, self.limit - self.count)


class WindowStore(Protocol):
    """Persistence for rate windows.

    ``update`` must apply *advance* to the stored window and save the
    result atomically with respect to other updates of the same key.
    ``prune`` drops every window that started before *cutoff* and returns
    how many were dropped.
    """

    def get(self, key: str) -> RateWindow | None: ...

    def update(self, key: str, advance: Callable[[RateWindow | None], RateWindow]) -> RateWindow: ...

    def prune(self, cutoff: float) -> int: ...


class MemoryWindowStore:
    """In-process window store."""

    __slots__ = ("_lock", "_windows")

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._windows: dict[str, RateWindow] = {}

    def get(self, key: str) -> RateWindow | None:
        with self._lock:
            return self._windows.get(key)

    def update(self, key: str, advance: Callable[[RateWindow | None], RateWindow]) -> RateWindow:
        with self._lock:
            window = advance(self._windows.get(key))
            self._windows[key] = window
            return window

    def prune(self, cutoff: float) -> int:
        with self._lock:
            expired = [key for key, window in self._windows.items() if window.start < cutoff]
            for key in expired:
                del self._windows[key]
            return len(expired)

    def __len__(self) -> int:
        return len(self._windows)

    def clear(self) -> None:
        with self._lock:
            self._windows.clear()


class FileWindowStore:
    """One ``rate_<sha256>.json`` file per key under *directory*.

    File contents are ``{"count": int, "start": float}``. A file that
    cannot be read or parsed counts as no window and is overwritten on
    the next hit. Writes go through a temp file and ``os.replace``.

    Files share a fixed pool of locks, picked by file name, so the lock
    table stays the same size however many clients are seen.
    """

    __slots__ = ("_directory", "_locks")

    LOCK_STRIPES = 64

    def __init__(self, directory: str | Path) -> None:
        self._directory = Path(directory)
        self._directory.mkdir(parents=True, exist_ok=True)
        self._locks = tuple(threading.Lock() for _ in range(self.LOCK_STRIPES))

    @property
    def directory(self) -> Path:
        return self._directory

    def path_for(self, key: str) -> Path:
        digest = hashlib.sha256(key.encode("utf-8")).hexdigest()
        return self._directory / f"rate_{digest}.json"

    def _lock_for(self, path: Path) -> threading.Lock:
        return self._locks[hash(path.name) % len(self._locks)]

    def _read(self, path: Path) -> RateWindow | None:
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        try:
            data = json.loads(raw)
            return RateWindow(start=float(data["start"]), count=int(data["count"]))
        except (ValueError, KeyError, TypeError) as exc:
            _log.warning("Ignoring unreadable rate window %s: %s", path.name, exc)
            return None

    def _write(self, path: Path, window: RateWindow) -> None:
        payload = json.dumps({"count": window.count, "start": window.start})
        fd, tmp = tempfile.mkstemp(dir=self._directory, prefix=".rate_", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(payload)
            os.replace(tmp, path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise

    def get(self, key: str) -> RateWindow | None:
        return self._read(self.path_for(key))

    def update(self, key: str, advance: Callable[[RateWindow | None], RateWindow]) -> RateWindow:
        path = self.path_for(key)
        with self._lock_for(path):
            window = advance(self._read(path))
            self._write(path, window)
            return window

    def prune(self, cutoff: float) -> int:
        removed = 0
        for path in self._directory.glob("rate_*.json"):
            with self._lock_for(path):
                window = self._read(path)
                if window is None or window.start < cutoff:
                    path.unlink(missing_ok=True)
                    removed += 1
        return removed


class FixedWindowLimiter:
    """Count hits per key within a fixed window.

    Usage::

        limiter = FixedWindowLimiter(MemoryWindowStore(), limit=2, window_seconds=60)
        limiter.check("203.0.113.7")  # ok
        limiter.check("203.0.113.7")  # ok
        limiter.check("203.0.113.7")  # raises TooManyRequests(retry_after=60)

    ``limit`` and ``window_seconds`` can be overridden per call, and a
    ``scope`` keeps per-endpoint windows apart from the global one.
    """

    __slots__ = (
        "_clock",
        "_longest_window",
        "_next_sweep",
        "_sweep_lock",
        "limit",
        "store",
        "window_seconds",
    )

    def __init__(
        self,
        store: WindowStore | None = None,
        *,
        limit: int = 100,
        window_seconds: int = 60,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.store: WindowStore = store if store is not None else MemoryWindowStore()
        self.limit = limit
        self.window_seconds = window_seconds
        self._clock = clock
        self._sweep_lock = threading.Lock()
        self._longest_window = window_seconds
        self._next_sweep = clock() + window_seconds

    def _maybe_sweep(self, now: float, window_seconds: int) -> None:
        """Drop windows older than the longest window in use."""
        with self._sweep_lock:
            self._longest_window = max(self._longest_window, window_seconds)
            if now < self._next_sweep:
                return
            self._next_sweep = now + self.window_seconds
            cutoff = now - self._longest_window
        removed = self.store.prune(cutoff)
        if removed:
            _log.debug("Pruned %d expired rate windows", removed)

    def hit(
        self,
        client_id: str,
        *,
        limit: int | None = None,
        window_seconds: int | None = None,
        scope: str = "",
    ) -> RateDecision:
        """Record one request for *client_id* and report whether it may proceed."""
        limit = self.limit if limit is None else limit
        window_seconds = self.window_seconds if window_seconds is None else window_seconds
        key = f"{scope}:{client_id}" if scope else client_id
        now = self._clock()
        self._maybe_sweep(now, window_seconds)

        def advance(current: RateWindow | None) -> RateWindow:
            if current is None or now - current.start > window_seconds:
                return RateWindow(start=now, count=1)
            return RateWindow(start=current.start, count=current.count + 1)

        window = self.store.update(key, advance)
        elapsed = max(0.0, now - window.start)
        retry_after = max(1, math.ceil(window_seconds - elapsed))
        allowed = window.count <= limit
        return RateDecision(allowed=allowed, count=window.count, limit=limit, retry_after=retry_after)

    def check(
        self,
        client_id: str,
        *,
        limit: int | None = None,
        window_seconds: int | None = None,
        scope: str = "",
    ) -> RateDecision:
        """Like ``hit`` but raises ``TooManyRequests`` when over the limit."""
        decision = self.hit(client_id, limit=limit, window_seconds=window_seconds, scope=scope)
        if not decision.allowed:
            _log.info(
                "Rate limit exceeded for %s (%d/%d, retry after %ds)",
                client_id,
                decision.count,
                decision.limit,
                decision.retry_after,
            )
            raise TooManyRequests(decision.retry_after)
        return decision
