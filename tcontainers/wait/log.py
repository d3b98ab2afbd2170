"""Wait until a given text shows up in the container logs."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Optional

from tcontainers.wait.strategy import (
    Strategy,
    StrategyTarget,
    default_poll_interval,
    default_startup_timeout,
)


@dataclass
class LogStrategy(Strategy):
    """Polls the logs until ``log`` occurs at least ``occurrence`` times."""

    log: str
    occurrence: int = 1
    startup_timeout: float = field(default_factory=default_startup_timeout)
    poll_interval: float = field(default_factory=default_poll_interval)

    def with_startup_timeout(self, startup_timeout: float) -> "LogStrategy":
        self.startup_timeout = startup_timeout
        return self

    def with_poll_interval(self, poll_interval: float) -> "LogStrategy":
        self.poll_interval = poll_interval
        return self

    def with_occurrence(self, occurrence: int) -> "LogStrategy":
        self.occurrence = occurrence if occurrence > 0 else 1
        return self

    def wait_until_ready(
        self, target: StrategyTarget, deadline: Optional[float] = None
    ) -> None:
        deadline = self._limit(deadline, self.startup_timeout)
        while True:
            self._check(deadline)
            try:
                raw = target.logs()
            except Exception:
                time.sleep(self.poll_interval)
                continue
            text = raw.decode("utf-8", errors="replace")
            if text.count(self.log) >= self.occurrence:
                return
            time.sleep(self.poll_interval)


def for_log(log: str) -> LogStrategy:
    """Wait until ``log`` appears in the container output."""
    return LogStrategy(log)