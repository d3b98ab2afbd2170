import socket

import pytest

from tcontainers.wait.host_port import (
    HostPortStrategy,
    build_internal_check_command,
    for_exposed_port,
    for_listening_port,
)
from tcontainers.wait.strategy import (
    ContainerState,
    Port,
    StrategyTarget,
    WaitTimeoutError,
)


class FakeTarget(StrategyTarget):
    def __init__(self, host_port, exposed=None, exit_codes=(0,), mapped=True, exec_error=None):
        self.host_port = host_port
        self.exposed = exposed or {}
        self.exit_codes = list(exit_codes)
        self.mapped = mapped
        self.exec_error = exec_error
        self.exec_calls = []
        self.mapped_requests = []

    def host(self):
        return "127.0.0.1"

    def ports(self):
        return self.exposed

    def mapped_port(self, port):
        self.mapped_requests.append(port)
        if not self.mapped:
            return None
        return Port(self.host_port, port.proto)

    def logs(self):
        return b""

    def exec(self, cmd):
        self.exec_calls.append(list(cmd))
        if self.exec_error is not None:
            raise self.exec_error
        code = self.exit_codes.pop(0) if len(self.exit_codes) > 1 else self.exit_codes[0]
        return code, b""

    def state(self):
        return ContainerState(running=True)


@pytest.fixture
def listening_port():
    server = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    server.bind(("127.0.0.1", 0))
    server.listen(16)
    yield server.getsockname()[1]
    server.close()


@pytest.fixture
def closed_port():
    probe = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    probe.bind(("127.0.0.1", 0))
    port = probe.getsockname()[1]
    probe.close()
    return port


def test_internal_check_command_shape():
    command = build_internal_check_command(8080)
    assert command.startswith("true && (")
    assert "grep -i :1f90" in command
    assert "nc -vz -w 1 localhost 8080" in command
    assert "/bin/sh -c '</dev/tcp/localhost/8080'" in command


def test_internal_check_command_pads_hex():
    assert ":0050 " in build_internal_check_command(80)


def test_for_listening_port_parses_string():
    strategy = for_listening_port("8080/tcp")
    assert strategy.port == Port(8080, "tcp")
    assert strategy.startup_timeout == 60.0
    assert strategy.poll_interval == 0.1


def test_for_exposed_port_has_no_port():
    assert for_exposed_port().port is None


def test_builders_chain():
    strategy = for_listening_port(Port(80)).with_startup_timeout(5).with_poll_interval(0.5)
    assert (strategy.startup_timeout, strategy.poll_interval) == (5, 0.5)


def test_waits_for_open_port(listening_port):
    target = FakeTarget(listening_port)
    for_listening_port("80/tcp").with_startup_timeout(5).wait_until_ready(target)
    assert len(target.exec_calls) == 1
    assert target.exec_calls[0][:2] == ["/bin/sh", "-c"]
    assert target.mapped_requests[0] == Port(80, "tcp")


def test_retries_internal_check_until_zero(listening_port):
    target = FakeTarget(listening_port, exit_codes=(1, 1, 0))
    for_listening_port("80/tcp").with_startup_timeout(5).wait_until_ready(target)
    assert len(target.exec_calls) == 3


def test_exposed_port_uses_first_exposed(listening_port):
    target = FakeTarget(listening_port, exposed={Port(6379): []})
    for_exposed_port().with_startup_timeout(5).wait_until_ready(target)
    assert target.mapped_requests[0] == Port(6379)


def test_no_port_to_wait_for(listening_port):
    target = FakeTarget(listening_port)
    with pytest.raises(ValueError, match="no port to wait for"):
        for_exposed_port().wait_until_ready(target)


def test_shell_not_executable(listening_port):
    target = FakeTarget(listening_port, exit_codes=(126,))
    with pytest.raises(RuntimeError, match="/bin/sh command not executable"):
        for_listening_port("80/tcp").with_startup_timeout(5).wait_until_ready(target)


def test_exec_failure_is_reported(listening_port):
    target = FakeTarget(listening_port, exec_error=OSError("boom"))
    with pytest.raises(RuntimeError, match="boom, host port waiting failed"):
        for_listening_port("80/tcp").with_startup_timeout(5).wait_until_ready(target)


def test_refused_connection_times_out(closed_port):
    target = FakeTarget(closed_port)
    strategy = HostPortStrategy(port=Port(80)).with_startup_timeout(0.4).with_poll_interval(0.05)
    with pytest.raises(WaitTimeoutError):
        strategy.wait_until_ready(target)
    assert target.exec_calls == []


def test_unmapped_port_times_out(listening_port):
    target = FakeTarget(listening_port, mapped=False)
    strategy = for_listening_port("80/tcp").with_startup_timeout(0.3).with_poll_interval(0.05)
    with pytest.raises(WaitTimeoutError):
        strategy.wait_until_ready(target)
    assert len(target.mapped_requests) > 1