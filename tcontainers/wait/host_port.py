"""Wait until a container port accepts connections, outside and inside."""

from __future__ import annotations

import logging
import socket
import time
from dataclasses import dataclass, field
from typing import Optional, Union

from tcontainers.wait.strategy import (
    Port,
    Strategy,
    StrategyTarget,
    WaitTimeoutError,
    default_poll_interval,
    default_startup_timeout,
    is_conn_refused_error,
)

_log = logging.getLogger(__name__)

_INTERNAL_CHECK_TEMPLATE = (
    "(\n"
    "\t\t\t\t\tcat /proc/net/tcp* | awk '{{print $2}}' | grep -i :{port:04x} ||\n"
    "\t\t\t\t\tnc -vz -w 1 localhost {port:d} ||\n"
    "\t\t\t\t\t/bin/sh -c '</dev/tcp/localhost/{port:d}'\n"
    "\t\t\t\t)\n"
    "\t\t\t\t"
)


def _coerce_port(port: Union[Port, str]) -> Port:
    return port if isinstance(port, Port) else Port.parse(port)


def _await_mapped_port(
    target: StrategyTarget, port: Port, deadline: float, interval: float
) -> Port:
    """Poll ``target`` until ``port`` has a host mapping or the deadline passes."""
    last_error: Optional[BaseException] = None
    attempt = 0

    def lookup() -> Optional[Port]:
        nonlocal last_error
        try:
            mapped = target.mapped_port(port)
        except Exception as exc:  # the target may not be ready yet
            last_error = exc
            _log.debug("(%d) mapping %s failed: %s", attempt, port, exc)
            return None
        last_error = None
        return mapped

    mapped = lookup()
    while mapped is None:
        attempt += 1
        try:
            Strategy._pause(deadline, interval)
        except WaitTimeoutError:
            if last_error is not None:
                raise WaitTimeoutError(
                    f"context deadline exceeded:{last_error}"
                ) from last_error
            raise
        mapped = lookup()
    return mapped


def build_internal_check_command(internal_port: int) -> str:
    """Build the shell command that checks a port is listening inside the container."""
    return "true && " + _INTERNAL_CHECK_TEMPLATE.format(port=internal_port)


def _dial(proto: str, host: str, port: int, timeout: float) -> None:
    if proto == "tcp":
        with socket.create_connection((host, port), timeout=timeout):
            return
    if proto == "udp":
        family, kind, sock_proto, _, address = socket.getaddrinfo(
            host, port, type=socket.SOCK_DGRAM
        )[0]
        with socket.socket(family, kind, sock_proto) as sock:
            sock.settimeout(timeout)
            sock.connect(address)
        return
    raise ValueError(f"unknown network {proto}")


@dataclass
class HostPortStrategy(Strategy):
    """Waits for a port to be reachable from the host and listening inside.

    When none is given, the container's first exposed one is chosen.
    """

    port: Optional[Port] = None
    startup_timeout: float = field(default_factory=default_startup_timeout)
    poll_interval: float = field(default_factory=default_poll_interval)

    def with_startup_timeout(self, startup_timeout: float) -> "HostPortStrategy":
        self.startup_timeout = startup_timeout
        return self

    def with_poll_interval(self, poll_interval: float) -> "HostPortStrategy":
        self.poll_interval = poll_interval
        return self

    def wait_until_ready(
        self, target: StrategyTarget, deadline: Optional[float] = None
    ) -> None:
        deadline = self._limit(deadline, self.startup_timeout)
        ip_address = target.host()

        internal_port = self.port
        if internal_port is None:
            internal_port = next(iter(target.ports() or {}), None)
        if internal_port is None:
            raise ValueError("no port to wait for")

        mapped = _await_mapped_port(
            target, internal_port, deadline, self.poll_interval
        )
        self._dial_until_open(ip_address, mapped, deadline)
        self._check_inside(target, internal_port, deadline)

    def _dial_until_open(self, host: str, port: Port, deadline: float) -> None:
        while True:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise WaitTimeoutError()
            try:
                _dial(port.proto, host, port.number, remaining)
                return
            except OSError as exc:
                if is_conn_refused_error(exc):
                    self._pause(deadline, self.poll_interval)
                    continue
                if isinstance(exc, TimeoutError) and time.monotonic() >= deadline:
                    raise WaitTimeoutError() from exc
                raise

    def _check_inside(
        self, target: StrategyTarget, internal_port: Port, deadline: float
    ) -> None:
        command = build_internal_check_command(internal_port.number)
        while True:
            self._check(deadline)
            try:
                exit_code, _ = target.exec(["/bin/sh", "-c", command])
            except Exception as exc:
                raise RuntimeError(f"{exc}, host port waiting failed") from exc
            if exit_code == 0:
                return
            if exit_code == 126:
                raise RuntimeError("/bin/sh command not executable")


def for_listening_port(port: Union[Port, str]) -> HostPortStrategy:
    """Wait until ``port`` is listening."""
    return HostPortStrategy(port=_coerce_port(port))


def for_exposed_port() -> HostPortStrategy:
    """Wait until the container's first exposed port is listening."""
    return HostPortStrategy(port=None)