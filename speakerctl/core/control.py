"""RenderingControl SetEQ client.

Builds the SOAP request the device firmware expects and sends it over an
injected `HttpTransport`. The client keeps no state between calls; callers
own the switch state and update it only after `set_eq` returns.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from speakerctl.core.errors import ControlRequestError, ControlTransportError, TransportError
from speakerctl.core.model import DeviceDescriptor, EqCommand
from speakerctl.transports.base import HttpTransport

CONTROL_PORT = 1400
RENDERING_CONTROL_PATH = "/MediaRenderer/RenderingControl/Control"
RENDERING_CONTROL_SERVICE = "urn:schemas-upnp-org:service:RenderingControl:1"
SET_EQ_ACTION = f"{RENDERING_CONTROL_SERVICE}#SetEQ"
SOAP_ENVELOPE_NS = "http://schemas.xmlsoap.org/soap/envelope/"
SOAP_ENCODING_STYLE = "http://schemas.xmlsoap.org/soap/encoding/"
LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class ControlRequest:
    url: str
    headers: dict[str, str]
    body: bytes


def build_set_eq_request(host: str, command: EqCommand) -> ControlRequest:
    action = (
        f'<u:SetEQ xmlns:u="{RENDERING_CONTROL_SERVICE}">'
        "<InstanceID>0</InstanceID>"
        f"<EQType>{command.kind.value}</EQType>"
        f"<DesiredValue>{command.wire_value}</DesiredValue>"
        "</u:SetEQ>"
    )
    envelope = (
        f'<s:Envelope xmlns:s="{SOAP_ENVELOPE_NS}" s:encodingStyle="{SOAP_ENCODING_STYLE}">'
        f"<s:Body>{action}</s:Body>"
        "</s:Envelope>"
    )
    return ControlRequest(
        url=f"http://{host}:{CONTROL_PORT}{RENDERING_CONTROL_PATH}",
        headers={
            "CONTENT-TYPE": 'text/xml; charset="utf-8"',
            "SOAPACTION": f'"{SET_EQ_ACTION}"',
        },
        body=envelope.encode("utf-8"),
    )


class RenderingControlClient:
    def __init__(
        self,
        transport: HttpTransport,
        *,
        timeout_s: float = 5.0,
        retries: int = 1,
        retry_backoff_s: float = 0.5,
    ) -> None:
        self.transport = transport
        self.timeout_s = timeout_s
        self.retries = max(0, retries)
        self.retry_backoff_s = retry_backoff_s

    async def set_eq(self, device: DeviceDescriptor, command: EqCommand) -> None:
        request = build_set_eq_request(device.host, command)
        attempt = 0
        while True:
            try:
                response = await asyncio.wait_for(
                    self.transport.request(
                        "POST",
                        request.url,
                        headers=request.headers,
                        data=request.body,
                        timeout_s=self.timeout_s,
                    ),
                    timeout=self.timeout_s,
                )
            except (TransportError, asyncio.TimeoutError) as exc:
                if attempt < self.retries:
                    delay = self.retry_backoff_s * (2**attempt)
                    LOGGER.warning(
                        "SetEQ %s on %s failed (%s); retrying in %.1fs",
                        command.kind.value,
                        device.host,
                        str(exc) or type(exc).__name__,
                        delay,
                    )
                    attempt += 1
                    await asyncio.sleep(delay)
                    continue
                error = ControlTransportError(device.host, exc)
                LOGGER.error("Error setting EQ: %s", error)
                raise error from exc

            if not response.ok:
                error = ControlRequestError(device.host, response.status)
                LOGGER.error("Error setting EQ: %s", error)
                raise error

            LOGGER.debug("SetEQ %s to %s success", command.kind.value, command.desired_value)
            return
