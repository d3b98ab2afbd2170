"""Wait until a database in the container answers a query."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Optional, Union

from tcontainers.wait.host_port import _await_mapped_port, _coerce_port
from tcontainers.wait.strategy import (
    Port,
    Strategy,
    StrategyTarget,
    default_poll_interval,
    default_startup_timeout,
)

DEFAULT_SQL_QUERY = "SELECT 1"


@dataclass
class SQLStrategy(Strategy):
    """Repeatedly runs ``query`` over a DB-API connection until it succeeds.

    ``connect`` takes the URL built by ``url(host, port)`` and returns a
    DB-API connection.
    """

    port: Port
    connect: Callable[[str], Any]
    url: Callable[[str, Port], str]
    startup_timeout: float = field(default_factory=default_startup_timeout)
    poll_interval: float = field(default_factory=default_poll_interval)
    query: str = DEFAULT_SQL_QUERY

    def timeout(self, duration: float) -> "SQLStrategy":
        """Deprecated alias of ``with_startup_timeout``."""
        return self.with_startup_timeout(duration)

    def with_startup_timeout(self, startup_timeout: float) -> "SQLStrategy":
        self.startup_timeout = startup_timeout
        return self

    def with_poll_interval(self, poll_interval: float) -> "SQLStrategy":
        self.poll_interval = poll_interval
        return self

    def with_query(self, query: str) -> "SQLStrategy":
        self.query = query
        return self

    def _run_query(self, connection: Any) -> None:
        cursor = connection.cursor()
        try:
            cursor.execute(self.query)
        finally:
            cursor.close()

    def wait_until_ready(
        self, target: StrategyTarget, deadline: Optional[float] = None
    ) -> None:
        deadline = self._limit(deadline, self.startup_timeout)
        host = target.host()
        mapped = _await_mapped_port(target, self.port, deadline, self.poll_interval)
        dsn = self.url(host, mapped)

        connection = None
        try:
            while True:
                self._pause(deadline, self.poll_interval)
                try:
                    if connection is None:
                        connection = self.connect(dsn)
                    self._run_query(connection)
                except Exception:
                    continue
                return
        finally:
            if connection is not None:
                connection.close()


def for_sql(
    port: Union[Port, str],
    connect: Callable[[str], Any],
    url: Callable[[str, Port], str],
) -> SQLStrategy:
    """Wait until a database reachable through ``connect`` answers a query."""
    return SQLStrategy(port=_coerce_port(port), connect=connect, url=url)