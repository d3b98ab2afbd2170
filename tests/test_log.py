import io

import pytest

from tcontainers.wait.log import LogStrategy, for_log
from tcontainers.wait.strategy import ContainerState, StrategyTarget, WaitTimeoutError


class _LogTarget(StrategyTarget):
    def __init__(self, data, failures=0):
        self.stream = io.BytesIO(data)
        self.failures = failures
        self.calls = 0

    def host(self):
        return ""

    def ports(self):
        return {}

    def mapped_port(self, port):
        return port

    def logs(self):
        self.calls += 1
        if self.failures:
            self.failures -= 1
            raise OSError("logs unavailable")
        return self.stream.read()

    def exec(self, cmd):
        return 0, b""

    def state(self):
        return ContainerState()


def test_wait_for_log():
    target = _LogTarget(b"docker")
    LogStrategy("docker").with_startup_timeout(100e-6).wait_until_ready(target)
    assert target.calls == 1


def test_wait_with_exact_number_of_occurrences():
    target = _LogTarget(b"kubernetes\r\ndocker\n\rdocker")
    strategy = LogStrategy("docker").with_startup_timeout(100e-6).with_occurrence(2)
    strategy.wait_until_ready(target)
    assert target.calls == 1


def test_wait_with_occurrences_that_never_happen():
    target = _LogTarget(b"kubernetes\r\ndocker")
    strategy = LogStrategy("containerd").with_startup_timeout(100e-6).with_occurrence(2)
    with pytest.raises(WaitTimeoutError):
        strategy.wait_until_ready(target)


def test_wait_should_fail_with_exact_number_of_occurrences():
    target = _LogTarget(b"kubernetes\r\ndocker")
    strategy = LogStrategy("docker").with_startup_timeout(100e-6).with_occurrence(2)
    with pytest.raises(WaitTimeoutError):
        strategy.wait_until_ready(target)


@pytest.mark.parametrize("value", [0, -3])
def test_non_positive_occurrence_becomes_one(value):
    assert for_log("x").with_occurrence(value).occurrence == 1


def test_log_errors_are_retried():
    target = _LogTarget(b"ready", failures=2)
    for_log("ready").with_poll_interval(0.01).wait_until_ready(target)
    assert target.calls == 3