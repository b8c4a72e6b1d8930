import ipaddress
import logging
import math
import time
from collections import deque
from dataclasses import dataclass
from threading import Lock
from typing import Optional

from fastapi import HTTPException, Request

from portfolio.core.config import get_settings

logger = logging.getLogger(__name__)

_MAX_KEYS = 50_000
_SWEEP_INTERVAL_SECONDS = 60


@dataclass(frozen=True)
class RateDecision:
    allowed: bool
    used: int
    retry_after: int = 0


class SlidingWindowRateLimiter:
    """In-process per-key sliding window. Not shared between workers."""

    def __init__(self, *, max_keys: int = _MAX_KEYS, sweep_interval_seconds: int = _SWEEP_INTERVAL_SECONDS) -> None:
        self._hits: dict[str, deque[float]] = {}
        self._lock = Lock()
        self._max_keys = max_keys
        self._sweep_interval = max(1, int(sweep_interval_seconds))
        self._last_sweep = 0.0

    def hit(self, key: str, limit: int, window_seconds: int) -> RateDecision:
        if limit <= 0 or window_seconds <= 0:
            return RateDecision(allowed=True, used=0)
        now = time.monotonic()
        cutoff = now - window_seconds
        with self._lock:
            if len(self._hits) > self._max_keys or now - self._last_sweep >= self._sweep_interval:
                self._sweep(cutoff)
                self._last_sweep = now

            hits = self._hits.setdefault(key, deque())
            while hits and hits[0] <= cutoff:
                hits.popleft()
            if len(hits) >= limit:
                retry_after = max(1, math.ceil(hits[0] + window_seconds - now))
                return RateDecision(allowed=False, used=len(hits), retry_after=retry_after)
            hits.append(now)
            return RateDecision(allowed=True, used=len(hits))

    def _sweep(self, cutoff: float) -> None:
        # Caller holds the lock.
        for key in list(self._hits):
            hits = self._hits[key]
            while hits and hits[0] <= cutoff:
                hits.popleft()
            if not hits:
                del self._hits[key]

    def tracked_keys(self) -> int:
        with self._lock:
            return len(self._hits)

    def reset(self) -> None:
        with self._lock:
            self._hits.clear()
            self._last_sweep = 0.0


contact_limiter = SlidingWindowRateLimiter()


def _in_networks(ip: str, networks: list[str]) -> bool:
    try:
        address = ipaddress.ip_address(ip)
    except ValueError:
        return ip in networks
    for entry in networks:
        try:
            if address in ipaddress.ip_network(entry, strict=False):
                return True
        except ValueError:
            if entry == ip:
                return True
    return False


def get_client_ip(request: Request, trusted_proxy_cidrs: Optional[list[str]] = None) -> Optional[str]:
    """Client address, honouring ``X-Forwarded-For`` only from trusted proxy peers."""
    peer_ip = request.client.host if request.client else None
    trusted = trusted_proxy_cidrs if trusted_proxy_cidrs is not None else get_settings().trusted_proxy_cidrs
    if not (peer_ip and trusted and _in_networks(peer_ip, trusted)):
        return peer_ip

    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        # Rightmost entry was appended by our own proxy.
        parts = [part.strip() for part in forwarded.split(",") if part.strip()]
        if parts:
            return parts[-1]
    real_ip = request.headers.get("x-real-ip")
    return real_ip.strip() if real_ip else peer_ip


def enforce_contact_rate_limit(request: Request) -> None:
    """FastAPI dependency guarding the public inquiry form."""
    settings = get_settings()
    if not settings.rate_limit_contact_enabled:
        return
    ip = get_client_ip(request) or "unknown"
    decision = contact_limiter.hit(
        f"contact:{ip}",
        settings.rate_limit_contact_per_window,
        settings.rate_limit_contact_window_seconds,
    )
    if not decision.allowed:
        logger.info("contact_rate_limited used=%d retry_after=%d", decision.used, decision.retry_after)
        raise HTTPException(
            429,
            "Too many inquiries from this address, please try again later.",
            headers={"Retry-After": str(decision.retry_after)},
        )
