"""Transport interfaces."""

from __future__ import annotations

from collections.abc import AsyncIterator, Mapping
from dataclasses import dataclass
from typing import Protocol

from speakerctl.core.model import DeviceDescription


@dataclass(frozen=True)
class HttpResponse:
    status: int
    body: str = ""

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


class HttpTransport(Protocol):
    async def request(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        data: bytes | None = None,
        timeout_s: float = 5.0,
    ) -> HttpResponse:
        """Send one HTTP request and return the status and decoded body."""


class DeviceHandle(Protocol):
    @property
    def host(self) -> str: ...

    async def describe(self) -> DeviceDescription:
        """Fetch the device's metadata."""


class DiscoverySource(Protocol):
    def discover(self) -> AsyncIterator[DeviceHandle]:
        """Yield raw device handles until the search window closes."""
