"""Talk to the sidecar container that removes resources after a session."""

from __future__ import annotations

import os
import socket
import threading
from dataclasses import dataclass
from typing import Any, Optional
from urllib.parse import unquote, urlsplit

TESTCONTAINER_LABEL = "org.testcontainers.python"
TESTCONTAINER_LABEL_SESSION_ID = TESTCONTAINER_LABEL + ".sessionId"
TESTCONTAINER_LABEL_IS_REAPER = TESTCONTAINER_LABEL + ".reaper"

REAPER_DEFAULT_IMAGE = "docker.io/testcontainers/ryuk:0.3.4"

DEFAULT_DOCKER_SOCKET = "/var/run/docker.sock"
SOCKET_OVERRIDE_ENV = "TESTCONTAINERS_DOCKER_SOCKET_OVERRIDE"

_CONNECT_TIMEOUT = 10.0
_RETRY_LIMIT = 3


def extract_docker_host(docker_host: Optional[str] = None) -> str:
    """Return the Docker socket path to mount into the reaper.

    The override environment variable wins; otherwise a ``unix://`` host
    gives its path, and anything else gives the default socket.
    """
    override = os.environ.get(SOCKET_OVERRIDE_ENV, "")
    if override:
        return override
    if not docker_host:
        return DEFAULT_DOCKER_SOCKET
    try:
        parts = urlsplit(docker_host)
    except ValueError:
        return DEFAULT_DOCKER_SOCKET
    if parts.scheme == "unix":
        return unquote(parts.path)
    return DEFAULT_DOCKER_SOCKET


def reaper_image(reaper_image_name: Optional[str] = None) -> str:
    """Return the reaper image, falling back to the default one."""
    return reaper_image_name or REAPER_DEFAULT_IMAGE


def _split_endpoint(endpoint: str) -> tuple[str, int]:
    host, sep, port = endpoint.rpartition(":")
    if not sep or not port.isdigit():
        raise ValueError(f"invalid endpoint {endpoint!r}")
    return host.strip("[]"), int(port)


class ReaperConnection:
    """An open connection to the reaper, kept until ``stop`` is called.

    On creation it registers the label filters in the background, trying
    up to three times until the reaper acknowledges them.
    """

    def __init__(self, sock: socket.socket, filters: str) -> None:
        self._sock = sock
        self._payload = (filters + "\n").encode("utf-8")
        self._terminate = threading.Event()
        self.acknowledged = False
        self._thread = threading.Thread(target=self._run, daemon=True)
        self._thread.start()

    def _register(self) -> None:
        with self._sock.makefile("rb") as reader:
            for _ in range(_RETRY_LIMIT):
                try:
                    self._sock.sendall(self._payload)
                    response = reader.readline()
                except OSError:
                    continue
                if response == b"ACK\n":
                    self.acknowledged = True
                    return

    def _run(self) -> None:
        try:
            self._register()
            self._terminate.wait()
        finally:
            self._sock.close()

    def stop(self) -> None:
        """Close the connection, letting the reaper start its cleanup."""
        self._terminate.set()
        self._thread.join()

    def __enter__(self) -> "ReaperConnection":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.stop()


@dataclass
class Reaper:
    """Handle on a running reaper container for one session."""

    session_id: str
    endpoint: str = ""
    provider: Any = None

    def labels(self) -> dict[str, str]:
        """Return the labels that mark containers for this reaper to remove."""
        return {
            TESTCONTAINER_LABEL: "true",
            TESTCONTAINER_LABEL_SESSION_ID: self.session_id,
        }

    def connect(self) -> ReaperConnection:
        """Connect to the reaper and register this session's labels."""
        try:
            host, port = _split_endpoint(self.endpoint)
            sock = socket.create_connection((host, port), timeout=_CONNECT_TIMEOUT)
        except (OSError, ValueError) as exc:
            raise ConnectionError(
                f"{exc}: Connecting to Ryuk on {self.endpoint} failed"
            ) from exc
        sock.settimeout(None)
        filters = "&".join(
            f"label={key}={value}" for key, value in self.labels().items()
        )
        return ReaperConnection(sock, filters)