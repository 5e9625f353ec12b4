"""Client-side sliding-window rate limiter for report submissions.

The window is a list of epoch-millisecond timestamps kept in the session's
local store. It is a UX throttle, not a security boundary: unreadable
storage fails open.
"""

from __future__ import annotations

import logging
import math
import time
from typing import Callable

from echosphere.client.session import ClientSession
from echosphere.config import get_settings

logger = logging.getLogger(__name__)


class AdmissionController:
    def __init__(
        self,
        session: ClientSession,
        max_requests: int | None = None,
        window_seconds: float | None = None,
        clock: Callable[[], float] = time.time,
    ):
        if max_requests is None or window_seconds is None:
            cfg = get_settings().rate_limit
            max_requests = cfg.max_requests if max_requests is None else max_requests
            window_seconds = cfg.window_seconds if window_seconds is None else window_seconds
        self.session = session
        self.max_requests = max_requests
        self.window_ms = window_seconds * 1000
        self._clock = clock

    def _now_ms(self) -> float:
        return self._clock() * 1000

    def _load(self) -> list[float]:
        """Stored timestamps; raises on corrupt data."""
        stored = self.session.store.get(self.session.rate_limit_key)
        if stored is None:
            return []
        timestamps = stored["timestamps"]
        if not isinstance(timestamps, list):
            raise TypeError("timestamps is not a list")
        return [float(ts) for ts in timestamps]

    def check(self) -> bool:
        """Whether one more action is permitted now. Never writes."""
        try:
            timestamps = self._load()
        except (OSError, ValueError, TypeError, KeyError):
            logger.warning("Unreadable rate-limit window, allowing submission", exc_info=True)
            return True
        now = self._now_ms()
        return sum(1 for ts in timestamps if now - ts < self.window_ms) < self.max_requests

    def record(self) -> None:
        """Append the current time after a successful action."""
        now = self._now_ms()
        try:
            try:
                timestamps = self._load()
            except (ValueError, TypeError, KeyError):
                timestamps = []
            valid = [ts for ts in timestamps if now - ts < self.window_ms]
            valid.append(now)
            self.session.store.set(self.session.rate_limit_key, {"timestamps": valid})
        except OSError:
            logger.warning("Rate limit storage failed", exc_info=True)

    def time_until_reset(self) -> int:
        """Whole seconds until the oldest stored timestamp leaves the window."""
        try:
            timestamps = self._load()
        except (OSError, ValueError, TypeError, KeyError):
            return 0
        if not timestamps:
            return 0
        diff = self.window_ms - (self._now_ms() - min(timestamps))
        return max(0, math.ceil(diff / 1000))

    def reset(self) -> None:
        try:
            self.session.store.remove(self.session.rate_limit_key)
        except OSError:
            logger.warning("Could not clear the rate-limit window", exc_info=True)
