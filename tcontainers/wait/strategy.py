"""Core types shared by all wait strategies.

Durations are float seconds. A deadline is an absolute value of
``time.monotonic()``, or ``None`` when the caller sets no limit.
"""

from __future__ import annotations

import errno
import sys
import time
from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Optional

_WSAECONNREFUSED = 10061


def default_startup_timeout() -> float:
    """Return the default startup timeout in seconds."""
    return 60.0


def default_poll_interval() -> float:
    """Return the default polling interval in seconds."""
    return 0.1


class WaitTimeoutError(TimeoutError):
    """Raised when a strategy runs past its deadline."""

    def __init__(self, message: str = "context deadline exceeded") -> None:
        super().__init__(message)


@dataclass(frozen=True, order=True)
class Port:
    """A container port with its protocol, written as ``"80/tcp"``."""

    number: int
    proto: str = "tcp"

    def __post_init__(self) -> None:
        if not 0 <= self.number <= 65535:
            raise ValueError(f"invalid port number {self.number}")
        if not self.proto:
            raise ValueError("port protocol must not be empty")

    @classmethod
    def parse(cls, value: str) -> "Port":
        """Parse ``"80/tcp"`` or ``"80"``; the protocol defaults to tcp."""
        number, _, proto = value.partition("/")
        if not (number.isascii() and number.isdigit()):
            raise ValueError(f"invalid port {value!r}")
        return cls(int(number), proto.lower() or "tcp")

    def __str__(self) -> str:
        return f"{self.number}/{self.proto}"


@dataclass
class ContainerHealth:
    """Health check status of a container."""

    status: str = ""
    failing_streak: int = 0


@dataclass
class ContainerState:
    """Runtime state of a container."""

    status: str = ""
    running: bool = False
    paused: bool = False
    restarting: bool = False
    oom_killed: bool = False
    dead: bool = False
    pid: int = 0
    exit_code: int = 0
    error: str = ""
    started_at: str = ""
    finished_at: str = ""
    health: Optional[ContainerHealth] = None


class StrategyTarget(ABC):
    """What a strategy can ask of the container it waits for."""

    @abstractmethod
    def host(self) -> str:
        """Return the host address the container is reachable on."""

    @abstractmethod
    def ports(self) -> Mapping[Port, Sequence]:
        """Return the container's exposed ports and their bindings."""

    @abstractmethod
    def mapped_port(self, port: Port) -> Optional[Port]:
        """Return the host port mapped to ``port``, or None if not yet mapped."""

    @abstractmethod
    def logs(self) -> bytes:
        """Return the container's log output."""

    @abstractmethod
    def exec(self, cmd: Sequence[str]) -> tuple[int, bytes]:
        """Run ``cmd`` in the container and return its exit code and output."""

    @abstractmethod
    def state(self) -> ContainerState:
        """Return the container's current state."""


class Strategy(ABC):
    """Something that blocks until a container is ready."""

    @abstractmethod
    def wait_until_ready(
        self, target: StrategyTarget, deadline: Optional[float] = None
    ) -> None:
        """Block until ``target`` is ready or raise."""

    @staticmethod
    def _limit(deadline: Optional[float], timeout: float) -> float:
        limit = time.monotonic() + timeout
        return limit if deadline is None else min(deadline, limit)

    @staticmethod
    def _check(deadline: Optional[float]) -> None:
        if deadline is not None and time.monotonic() >= deadline:
            raise WaitTimeoutError()

    @staticmethod
    def _pause(deadline: Optional[float], interval: float) -> None:
        """Sleep for ``interval``, raising if the deadline comes first."""
        if deadline is None:
            time.sleep(interval)
            return
        remaining = deadline - time.monotonic()
        if remaining <= interval:
            time.sleep(max(remaining, 0.0))
            raise WaitTimeoutError()
        time.sleep(interval)


def is_conn_refused_error(error: BaseException) -> bool:
    """Tell whether ``error`` is a refused connection."""
    if isinstance(error, ConnectionRefusedError):
        return True
    if not isinstance(error, OSError):
        return False
    if sys.platform == "win32":
        return getattr(error, "winerror", None) == _WSAECONNREFUSED
    return error.errno == errno.ECONNREFUSED


@dataclass
class MultiStrategy(Strategy):
    """Runs several strategies one after another under one timeout."""

    strategies: list[Strategy] = field(default_factory=list)
    startup_timeout: float = field(default_factory=default_startup_timeout)

    def with_startup_timeout(self, startup_timeout: float) -> "MultiStrategy":
        self.startup_timeout = startup_timeout
        return self

    def wait_until_ready(
        self, target: StrategyTarget, deadline: Optional[float] = None
    ) -> None:
        deadline = self._limit(deadline, self.startup_timeout)
        if not self.strategies:
            raise ValueError("no wait strategy supplied")
        for strategy in self.strategies:
            strategy.wait_until_ready(target, deadline)


def for_all(*args: Strategy) -> MultiStrategy:
    """Wait for every given strategy in turn."""
    return MultiStrategy(strategies=list(args))