"""Create several containers at once on a pool of worker threads."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, TypeVar

DEFAULT_WORKERS_COUNT = 8

R = TypeVar("R")
C = TypeVar("C")


@dataclass
class ParallelContainersRequestError:
    """A request that failed, with the error it failed with."""

    request: Any
    error: BaseException

    def __str__(self) -> str:
        return f"{self.request!r}: {self.error}"


class ParallelContainersError(Exception):
    """Raised when one or more requests failed.

    ``containers`` holds the containers that were created successfully.
    """

    def __init__(
        self,
        errors: list[ParallelContainersRequestError],
        containers: list[Any] | None = None,
    ) -> None:
        self.errors = list(errors)
        self.containers = list(containers or [])
        super().__init__("[" + ", ".join(str(e) for e in self.errors) + "]")


def parallel_containers(
    requests: Iterable[R],
    create: Callable[[R], C],
    workers_count: int = 0,
) -> list[C]:
    """Run ``create`` for every request on up to ``workers_count`` threads.

    A count of zero means the default of eight workers. Results keep the
    order of the requests that succeeded.
    """
    if workers_count < 0:
        raise ValueError("workers_count must not be negative")
    workers = workers_count or DEFAULT_WORKERS_COUNT
    pending = list(requests)
    if not pending:
        return []

    containers: list[C] = []
    errors: list[ParallelContainersRequestError] = []
    with ThreadPoolExecutor(max_workers=min(workers, len(pending))) as pool:
        futures = [(request, pool.submit(create, request)) for request in pending]
        for request, future in futures:
            try:
                containers.append(future.result())
            except Exception as exc:
                errors.append(ParallelContainersRequestError(request, exc))

    if errors:
        raise ParallelContainersError(errors, containers)
    return containers