from datetime import datetime, timedelta
from threading import Lock
from typing import Protocol

from inkpost.rules.models import RateLimitRules


class TimePort(Protocol):
    """Protocol for time operations (enables testing with deterministic time)."""

    def now_utc(self) -> datetime:
        """Return current UTC time."""
        ...


class RateLimiter:
    """Sliding-window limiter kept in process memory."""

    def __init__(self, rules: RateLimitRules, time_port: TimePort):
        self.rules = rules
        self._time = time_port
        self._history: dict[str, list[datetime]] = {}
        self._lock = Lock()

    def _cleanup(self, key: str, window: int) -> None:
        cutoff = self._time.now_utc() - timedelta(seconds=window)
        if key in self._history:
            self._history[key] = [t for t in self._history[key] if t > cutoff]
            if not self._history[key]:
                del self._history[key]

    def allow_request(self, key: str, window: int, limit: int) -> bool:
        """
        Check if request is allowed.
        If allowed, records the attempt and returns True.
        If denied, returns False.
        """
        if limit <= 0:
            return False

        with self._lock:
            self._cleanup(key, window)
            if len(self._history.get(key, [])) >= limit:
                return False
            self._history.setdefault(key, []).append(self._time.now_utc())
            return True

    def check_image_delete(self, user_id: str) -> bool:
        cfg = self.rules.image_delete
        limit = cfg.max_requests if cfg.max_requests is not None else 10
        return self.allow_request(f"image_delete:{user_id}", cfg.window_seconds, limit)
