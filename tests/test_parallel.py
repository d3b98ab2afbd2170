import threading

import pytest

from tcontainers.parallel import (
    DEFAULT_WORKERS_COUNT,
    ParallelContainersError,
    parallel_containers,
)


def _create(request):
    if request.startswith("bad"):
        raise RuntimeError(f"cannot create {request}")
    return f"container-{request}"


def test_all_succeed():
    result = parallel_containers(["nginx", "redis"], _create)
    assert sorted(result) == ["container-nginx", "container-redis"]


def test_one_error():
    with pytest.raises(ParallelContainersError) as info:
        parallel_containers(["nginx", "bad bad bad"], _create)
    assert len(info.value.errors) == 1
    assert info.value.errors[0].request == "bad bad bad"
    assert isinstance(info.value.errors[0].error, RuntimeError)
    assert info.value.containers == ["container-nginx"]


def test_all_errors():
    with pytest.raises(ParallelContainersError) as info:
        parallel_containers(["bad bad bad", "bad bad bad"], _create)
    assert len(info.value.errors) == 2
    assert info.value.containers == []
    assert "cannot create bad bad bad" in str(info.value)


def test_empty_requests():
    assert parallel_containers([], _create) == []


def test_negative_workers_rejected():
    with pytest.raises(ValueError):
        parallel_containers(["nginx"], _create, workers_count=-1)


def test_workers_run_concurrently():
    barrier = threading.Barrier(2, timeout=5)

    def create(request):
        barrier.wait()
        return request

    result = parallel_containers(["a", "b", "c", "d"], create, workers_count=2)
    assert sorted(result) == ["a", "b", "c", "d"]


def test_default_worker_limit_is_respected():
    lock = threading.Lock()
    active = 0
    peak = 0

    def create(request):
        nonlocal active, peak
        with lock:
            active += 1
            peak = max(peak, active)
        threading.Event().wait(0.02)
        with lock:
            active -= 1
        return request

    result = parallel_containers(range(20), create)
    assert len(result) == 20
    assert 1 <= peak <= DEFAULT_WORKERS_COUNT


def test_explicit_worker_limit_is_respected():
    lock = threading.Lock()
    active = 0
    peak = 0

    def create(request):
        nonlocal active, peak
        with lock:
            active += 1
            peak = max(peak, active)
        threading.Event().wait(0.01)
        with lock:
            active -= 1
        return request

    result = parallel_containers(range(6), create, workers_count=2)
    assert sorted(result) == [0, 1, 2, 3, 4, 5]
    assert 1 <= peak <= 2