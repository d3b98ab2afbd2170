"""Wait until an HTTP endpoint in the container answers as expected."""

from __future__ import annotations

import http.client
import ssl
import time
import urllib.error
import urllib.request
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import IO, Optional, Union

from tcontainers.wait.host_port import _await_mapped_port, _coerce_port
from tcontainers.wait.strategy import (
    Port,
    Strategy,
    StrategyTarget,
    default_poll_interval,
    default_startup_timeout,
)

_VALID_METHODS = frozenset(
    {"GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "CONNECT", "OPTIONS", "TRACE"}
)
_REQUEST_TIMEOUT = 1.0

Body = Union[bytes, str, IO[bytes], IO[str]]


def _default_status_code_matcher(status: int) -> bool:
    return status == 200


def _accept_any_response(body: bytes) -> bool:
    return True


def _join_host_port(host: str, port: int) -> str:
    if ":" in host:
        return f"[{host}]:{port}"
    return f"{host}:{port}"


@dataclass
class HTTPStrategy(Strategy):
    """Polls an HTTP endpoint until status and body satisfy the matchers.

    The response matcher receives the whole response body as bytes.
    """

    path: str
    port: Port = field(default_factory=lambda: Port(80, "tcp"))
    status_code_matcher: Optional[Callable[[int], bool]] = _default_status_code_matcher
    response_matcher: Optional[Callable[[bytes], bool]] = _accept_any_response
    use_tls: bool = False
    allow_insecure: bool = False
    tls_config: Optional[ssl.SSLContext] = None
    method: str = "GET"
    body: Optional[Body] = None
    startup_timeout: float = field(default_factory=default_startup_timeout)
    poll_interval: float = field(default_factory=default_poll_interval)

    def with_startup_timeout(self, startup_timeout: float) -> "HTTPStrategy":
        self.startup_timeout = startup_timeout
        return self

    def with_port(self, port: Union[Port, str]) -> "HTTPStrategy":
        self.port = _coerce_port(port)
        return self

    def with_status_code_matcher(
        self, status_code_matcher: Optional[Callable[[int], bool]]
    ) -> "HTTPStrategy":
        self.status_code_matcher = status_code_matcher
        return self

    def with_response_matcher(
        self, matcher: Optional[Callable[[bytes], bool]]
    ) -> "HTTPStrategy":
        self.response_matcher = matcher
        return self

    def with_tls(
        self, use_tls: bool, tls_config: Optional[ssl.SSLContext] = None
    ) -> "HTTPStrategy":
        self.use_tls = use_tls
        if use_tls and tls_config is not None:
            self.tls_config = tls_config
        return self

    def with_allow_insecure(self, allow_insecure: bool) -> "HTTPStrategy":
        self.allow_insecure = allow_insecure
        return self

    def with_method(self, method: str) -> "HTTPStrategy":
        self.method = method
        return self

    def with_body(self, body: Optional[Body]) -> "HTTPStrategy":
        self.body = body
        return self

    def with_poll_interval(self, poll_interval: float) -> "HTTPStrategy":
        self.poll_interval = poll_interval
        return self

    def _resolve_method(self) -> str:
        if self.method not in _VALID_METHODS:
            if self.method:
                raise ValueError(f'invalid http method "{self.method}"')
            self.method = "GET"
        return self.method

    def _build_opener(self) -> tuple[str, urllib.request.OpenerDirector]:
        if not self.use_tls:
            return "http", urllib.request.build_opener()
        context = self.tls_config
        if self.allow_insecure:
            if context is None:
                context = ssl.create_default_context()
            context.check_hostname = False
            context.verify_mode = ssl.CERT_NONE
        if context is None:
            context = ssl.create_default_context()
        return "https", urllib.request.build_opener(
            urllib.request.HTTPSHandler(context=context)
        )

    def _read_body(self) -> bytes:
        body = self.body
        if body is None:
            return b""
        if hasattr(body, "read"):
            body = body.read()
        if isinstance(body, str):
            body = body.encode("utf-8")
        return bytes(body)

    def _attempt(
        self,
        opener: urllib.request.OpenerDirector,
        endpoint: str,
        payload: bytes,
        deadline: float,
    ) -> bool:
        timeout = max(min(_REQUEST_TIMEOUT, deadline - time.monotonic()), 0.001)
        request = urllib.request.Request(
            endpoint, data=payload or None, method=self.method
        )
        try:
            try:
                response = opener.open(request, timeout=timeout)
            except urllib.error.HTTPError as exc:
                response = exc
            with response:
                status = response.getcode()
                content = response.read()
        except (OSError, http.client.HTTPException, ValueError):
            return False
        if self.status_code_matcher is not None and not self.status_code_matcher(status):
            return False
        if self.response_matcher is not None and not self.response_matcher(content):
            return False
        return True

    def wait_until_ready(
        self, target: StrategyTarget, deadline: Optional[float] = None
    ) -> None:
        deadline = self._limit(deadline, self.startup_timeout)
        ip_address = target.host()
        mapped = _await_mapped_port(target, self.port, deadline, self.poll_interval)
        if mapped.proto != "tcp":
            raise ValueError("Cannot use HTTP client on non-TCP ports")
        self._resolve_method()

        scheme, opener = self._build_opener()
        address = _join_host_port(ip_address, mapped.number)
        endpoint = f"{scheme}://{address}{self.path}"
        payload = self._read_body()

        while True:
            self._pause(deadline, self.poll_interval)
            if self._attempt(opener, endpoint, payload, deadline):
                return


def for_http(path: str) -> HTTPStrategy:
    """Wait until ``path`` answers with status 200 on port 80/tcp."""
    return HTTPStrategy(path)