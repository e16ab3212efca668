"""Shared HTTP plumbing for the upstream API adapters."""

from __future__ import annotations

import json
import logging
import socket
import threading
import time
import urllib.error
import urllib.request
from collections.abc import Callable, Hashable, Mapping
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 15.0
DEFAULT_TTL = 300.0
USER_AGENT = "stable-flow-lab/0.1"


class UpstreamError(RuntimeError):
    """Raised when an upstream API cannot produce a usable response."""

    def __init__(self, message: str, *, url: str | None = None, status: int | None = None) -> None:
        super().__init__(message)
        self.url = url
        self.status = status


def fetch_json(
    url: str,
    *,
    headers: Mapping[str, str] | None = None,
    data: Any = None,
    method: str | None = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> Any:
    """Request ``url`` and decode the JSON body.

    Timeouts, connection failures, non-2xx statuses and undecodable bodies are
    all reported as :class:`UpstreamError`.  No retries are attempted.
    """

    req_headers = {"User-Agent": USER_AGENT, "Accept": "application/json"}
    if headers:
        req_headers.update(headers)
    body = None
    if data is not None:
        body = json.dumps(data).encode()
        req_headers.setdefault("Content-Type", "application/json")
    req = urllib.request.Request(url, data=body, headers=req_headers, method=method)
    try:
        with urllib.request.urlopen(req, timeout=timeout) as resp:
            status = getattr(resp, "status", 200)
            if not 200 <= status < 300:
                raise UpstreamError(f"HTTP error! status: {status}", url=url, status=status)
            return json.load(resp)
    except urllib.error.HTTPError as exc:
        raise UpstreamError(
            f"HTTP error! status: {exc.code} {exc.reason}", url=url, status=exc.code
        ) from exc
    except (TimeoutError, socket.timeout) as exc:
        raise UpstreamError(f"Request timeout: {url}", url=url) from exc
    except urllib.error.URLError as exc:
        raise UpstreamError(f"Request failed: {exc.reason}", url=url) from exc
    except ValueError as exc:
        # JSONDecodeError and UnicodeDecodeError
        raise UpstreamError(f"Malformed JSON from {url}", url=url) from exc


class TTLCache:
    """Thread-safe in-memory cache whose entries expire after ``ttl`` seconds."""

    def __init__(self, ttl: float = DEFAULT_TTL, *, clock: Callable[[], float] = time.monotonic) -> None:
        self.ttl = ttl
        self._clock = clock
        self._entries: dict[Hashable, tuple[float, Any]] = {}
        self._lock = threading.Lock()

    def get(self, key: Hashable) -> Any | None:
        with self._lock:
            hit = self._entries.get(key)
            if hit is None:
                return None
            stored_at, value = hit
            if self._clock() - stored_at >= self.ttl:
                del self._entries[key]
                return None
            return value

    def _purge(self, now: float) -> None:
        expired = [k for k, (stored_at, _) in self._entries.items() if now - stored_at >= self.ttl]
        for key in expired:
            del self._entries[key]

    def set(self, key: Hashable, value: Any) -> None:
        """Store ``value``, dropping every entry that has already expired."""

        with self._lock:
            now = self._clock()
            self._purge(now)
            self._entries[key] = (now, value)

    def get_or_load(self, key: Hashable, loader: Callable[[], Any]) -> Any:
        cached = self.get(key)
        if cached is not None:
            return cached
        value = loader()
        self.set(key, value)
        logger.debug("Cached %s for %.0fs", key, self.ttl)
        return value

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


__all__ = ["DEFAULT_TIMEOUT", "DEFAULT_TTL", "TTLCache", "UpstreamError", "fetch_json"]
