"""SSDP discovery of Sonos zone players.

An M-SEARCH is multicast once the datagram endpoint is up; each responding
host is yielded as a handle whose `describe()` fetches and parses the UPnP
device description advertised in the LOCATION header.
"""

from __future__ import annotations

import asyncio
import logging
import xml.etree.ElementTree as ET
from collections.abc import AsyncIterator
from dataclasses import dataclass
from urllib.parse import urlparse

from speakerctl.core.errors import DescriptionError, DiscoveryError
from speakerctl.core.model import DeviceDescription
from speakerctl.transports.base import HttpTransport

SSDP_MULTICAST_ADDRESS = "239.255.255.250"
SSDP_PORT = 1900
ZONE_PLAYER_TARGET = "urn:schemas-upnp-org:device:ZonePlayer:1"
_DEVICE_NS = "{urn:schemas-upnp-org:device-1-0}"
LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class SsdpResponse:
    host: str
    location: str
    headers: dict[str, str]


def build_search_request(search_target: str = ZONE_PLAYER_TARGET, mx: int = 1) -> bytes:
    lines = [
        "M-SEARCH * HTTP/1.1",
        f"HOST: {SSDP_MULTICAST_ADDRESS}:{SSDP_PORT}",
        'MAN: "ssdp:discover"',
        f"MX: {mx}",
        f"ST: {search_target}",
        "",
        "",
    ]
    return "\r\n".join(lines).encode("ascii")


def parse_search_response(data: bytes, addr: tuple[str, int]) -> SsdpResponse | None:
    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError:
        return None

    lines = text.split("\r\n")
    if not lines or not lines[0].upper().startswith("HTTP/1.1 200"):
        return None

    headers: dict[str, str] = {}
    for line in lines[1:]:
        name, sep, value = line.partition(":")
        if sep:
            headers[name.strip().upper()] = value.strip()

    location = headers.get("LOCATION")
    if not location:
        return None
    host = urlparse(location).hostname or addr[0]
    return SsdpResponse(host=host, location=location, headers=headers)


def _text(device: ET.Element, tag: str) -> str | None:
    value = device.findtext(f"{_DEVICE_NS}{tag}")
    if value is None:
        return None
    return value.strip() or None


def parse_device_description(document: str) -> DeviceDescription:
    try:
        root = ET.fromstring(document)
    except ET.ParseError as exc:
        raise DescriptionError(f"Invalid device description XML: {exc}") from exc

    device = root.find(f"{_DEVICE_NS}device")
    if device is None:
        raise DescriptionError("Device description has no <device> element")

    return DeviceDescription(
        unique_id=_text(device, "UDN"),
        display_name=_text(device, "roomName"),
        hardware_id=_text(device, "MACAddress"),
        serial_number=_text(device, "serialNum"),
    )


class SsdpDeviceHandle:
    def __init__(self, host: str, location: str, http: HttpTransport, *, timeout_s: float = 5.0) -> None:
        self.host = host
        self.location = location
        self.http = http
        self.timeout_s = timeout_s

    async def describe(self) -> DeviceDescription:
        response = await self.http.request("GET", self.location, timeout_s=self.timeout_s)
        if not response.ok:
            raise DescriptionError(
                f"Device description at {self.location} returned HTTP status {response.status}"
            )
        return parse_device_description(response.body)


class _SsdpProtocol(asyncio.DatagramProtocol):
    """Pushes parsed search responses onto a queue."""

    def __init__(self, queue: asyncio.Queue[SsdpResponse]) -> None:
        self.queue = queue

    def datagram_received(self, data: bytes, addr: tuple[str, int]) -> None:
        response = parse_search_response(data, addr)
        if response is not None:
            self.queue.put_nowait(response)

    def error_received(self, exc: Exception) -> None:
        LOGGER.debug("SSDP socket error: %s", exc)


class SsdpDiscovery:
    def __init__(
        self,
        http: HttpTransport,
        *,
        search_target: str = ZONE_PLAYER_TARGET,
        timeout_s: float = 5.0,
        describe_timeout_s: float = 5.0,
        mx: int = 1,
    ) -> None:
        self.http = http
        self.search_target = search_target
        self.timeout_s = timeout_s
        self.describe_timeout_s = describe_timeout_s
        self.mx = mx

    async def discover(self) -> AsyncIterator[SsdpDeviceHandle]:
        loop = asyncio.get_running_loop()
        queue: asyncio.Queue[SsdpResponse] = asyncio.Queue()
        try:
            transport, _ = await loop.create_datagram_endpoint(
                lambda: _SsdpProtocol(queue),
                local_addr=("0.0.0.0", 0),
            )
        except OSError as exc:
            raise DiscoveryError(f"Could not open SSDP socket: {exc}") from exc

        try:
            LOGGER.info("Starting Sonos device discovery...")
            transport.sendto(
                build_search_request(self.search_target, self.mx),
                (SSDP_MULTICAST_ADDRESS, SSDP_PORT),
            )
            deadline = loop.time() + self.timeout_s
            seen: set[str] = set()
            while True:
                remaining = deadline - loop.time()
                if remaining <= 0:
                    break
                try:
                    response = await asyncio.wait_for(queue.get(), timeout=remaining)
                except asyncio.TimeoutError:
                    break
                if response.host in seen:
                    continue
                seen.add(response.host)
                LOGGER.debug("Discovered a Sonos device at: %s", response.host)
                yield SsdpDeviceHandle(
                    response.host,
                    response.location,
                    self.http,
                    timeout_s=self.describe_timeout_s,
                )
        finally:
            transport.close()
