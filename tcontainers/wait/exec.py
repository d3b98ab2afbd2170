"""Wait until a command run inside the container succeeds."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Optional

from tcontainers.wait.strategy import (
    Strategy,
    StrategyTarget,
    default_poll_interval,
    default_startup_timeout,
)


def _default_exit_code_matcher(exit_code: int) -> bool:
    return exit_code == 0


@dataclass
class ExecStrategy(Strategy):
    """Polls a command until its exit code satisfies the matcher."""

    cmd: list[str]
    startup_timeout: float = field(default_factory=default_startup_timeout)
    exit_code_matcher: Callable[[int], bool] = _default_exit_code_matcher
    poll_interval: float = field(default_factory=default_poll_interval)

    def with_startup_timeout(self, startup_timeout: float) -> "ExecStrategy":
        self.startup_timeout = startup_timeout
        return self

    def with_exit_code_matcher(
        self, exit_code_matcher: Callable[[int], bool]
    ) -> "ExecStrategy":
        self.exit_code_matcher = exit_code_matcher
        return self

    def with_poll_interval(self, poll_interval: float) -> "ExecStrategy":
        self.poll_interval = poll_interval
        return self

    def wait_until_ready(
        self, target: StrategyTarget, deadline: Optional[float] = None
    ) -> None:
        deadline = self._limit(deadline, self.startup_timeout)
        while True:
            self._pause(deadline, self.poll_interval)
            exit_code, _ = target.exec(self.cmd)
            self._check(deadline)
            if self.exit_code_matcher(exit_code):
                return


def for_exec(cmd: list[str]) -> ExecStrategy:
    """Wait until ``cmd`` exits with a matching code."""
    return ExecStrategy(list(cmd))