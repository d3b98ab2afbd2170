"""Wait until the container reports itself healthy."""

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
class HealthStrategy(Strategy):
    """Polls the container state until its health status is ``healthy``."""

    startup_timeout: float = field(default_factory=default_startup_timeout)
    poll_interval: float = field(default_factory=default_poll_interval)

    def with_startup_timeout(self, startup_timeout: float) -> "HealthStrategy":
        self.startup_timeout = startup_timeout
        return self

    def with_poll_interval(self, poll_interval: float) -> "HealthStrategy":
        self.poll_interval = poll_interval
        return self

    def wait_until_ready(
        self, target: StrategyTarget, deadline: Optional[float] = None
    ) -> None:
        deadline = self._limit(deadline, self.startup_timeout)
        while True:
            self._check(deadline)
            health = target.state().health
            if health is not None and health.status == "healthy":
                return
            time.sleep(self.poll_interval)


def for_health_check() -> HealthStrategy:
    """Wait until the container's health check passes."""
    return HealthStrategy()