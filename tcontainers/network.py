"""Network requests and the default-network provider option."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass
class NetworkRequest:
    """Parameters used to create or look up a network."""

    driver: str = ""
    check_duplicate: bool = False
    internal: bool = False
    enable_ipv6: bool = False
    name: str = ""
    labels: dict[str, str] = field(default_factory=dict)
    attachable: bool = False
    ipam: Optional[dict[str, Any]] = None
    skip_reaper: bool = False
    reaper_image: str = ""


@dataclass(frozen=True)
class DefaultNetwork:
    """Provider option that sets the network containers join by default.

    Calling it with an options object stores the name in that object's
    ``default_network`` attribute.
    """

    name: str

    def __call__(self, options: Any) -> None:
        options.default_network = self.name

    def __str__(self) -> str:
        return self.name