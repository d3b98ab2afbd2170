"""Wait until the container has stopped running."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Optional

from tcontainers.wait.strategy import Strategy, StrategyTarget, default_poll_interval


@dataclass
class ExitStrategy(Strategy):
    """Polls the container state until it is no longer running.

    There is no timeout unless one is set with ``with_exit_timeout``.
    """

    exit_timeout: Optional[float] = None
    poll_interval: float = field(default_factory=default_poll_interval)

    def with_exit_timeout(self, exit_timeout: float) -> "ExitStrategy":
        self.exit_timeout = exit_timeout
        return self

    def with_poll_interval(self, poll_interval: float) -> "ExitStrategy":
        self.poll_interval = poll_interval
        return self

    def wait_until_ready(
        self, target: StrategyTarget, deadline: Optional[float] = None
    ) -> None:
        if self.exit_timeout is not None and self.exit_timeout > 0:
            deadline = self._limit(deadline, self.exit_timeout)
        while True:
            self._check(deadline)
            try:
                state = target.state()
            except Exception as exc:
                if "No such container" in str(exc):
                    return
                raise
            if not state.running:
                return
            time.sleep(self.poll_interval)


def for_exit() -> ExitStrategy:
    """Wait until the container exits."""
    return ExitStrategy()