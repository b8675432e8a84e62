from __future__ import annotations

import asyncio
from collections.abc import Mapping

import pytest

from speakerctl.core.control import RenderingControlClient, build_set_eq_request
from speakerctl.core.errors import (
    ControlRequestError,
    ControlTransportError,
    TransportConnectError,
    TransportError,
)
from speakerctl.core.model import DeviceDescriptor, EqCommand, EqType
from speakerctl.transports.base import HttpResponse

DEVICE = DeviceDescriptor(host="192.168.1.50", unique_id="uuid:RINCON_1", display_name="Arc")


class FakeHttp:
    def __init__(self, *responses: HttpResponse | BaseException) -> None:
        self.responses = list(responses) or [HttpResponse(status=200)]
        self.calls: list[tuple[str, str, dict[str, str], bytes | None, float]] = []

    async def request(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        data: bytes | None = None,
        timeout_s: float = 5.0,
    ) -> HttpResponse:
        self.calls.append((method, url, dict(headers or {}), data, timeout_s))
        result = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(result, BaseException):
            raise result
        return result


class HangingHttp:
    async def request(self, method: str, url: str, **kwargs: object) -> HttpResponse:
        await asyncio.sleep(10)
        return HttpResponse(status=200)


def test_night_mode_on_wire_format() -> None:
    request = build_set_eq_request("192.168.1.50", EqCommand(EqType.NIGHT_MODE, True))
    body = request.body.decode("utf-8")

    assert request.url == "http://192.168.1.50:1400/MediaRenderer/RenderingControl/Control"
    assert request.headers["SOAPACTION"] == '"urn:schemas-upnp-org:service:RenderingControl:1#SetEQ"'
    assert request.headers["CONTENT-TYPE"] == 'text/xml; charset="utf-8"'
    assert "<EQType>NightMode</EQType>" in body
    assert "<DesiredValue>1</DesiredValue>" in body
    assert "<InstanceID>0</InstanceID>" in body
    assert body == (
        '<s:Envelope xmlns:s="http://schemas.xmlsoap.org/soap/envelope/" '
        's:encodingStyle="http://schemas.xmlsoap.org/soap/encoding/">'
        "<s:Body>"
        '<u:SetEQ xmlns:u="urn:schemas-upnp-org:service:RenderingControl:1">'
        "<InstanceID>0</InstanceID><EQType>NightMode</EQType><DesiredValue>1</DesiredValue>"
        "</u:SetEQ>"
        "</s:Body>"
        "</s:Envelope>"
    )


def test_dialog_level_off_wire_format() -> None:
    body = build_set_eq_request("10.0.0.2", EqCommand(EqType.DIALOG_LEVEL, False)).body.decode("utf-8")
    assert "<EQType>DialogLevel</EQType>" in body
    assert "<DesiredValue>0</DesiredValue>" in body


def test_set_eq_posts_request() -> None:
    http = FakeHttp()
    client = RenderingControlClient(http, timeout_s=2.0)

    asyncio.run(client.set_eq(DEVICE, EqCommand(EqType.DIALOG_LEVEL, True)))

    assert len(http.calls) == 1
    method, url, headers, data, timeout_s = http.calls[0]
    assert method == "POST"
    assert url == "http://192.168.1.50:1400/MediaRenderer/RenderingControl/Control"
    assert "SetEQ" in headers["SOAPACTION"]
    assert data is not None and b"<EQType>DialogLevel</EQType>" in data
    assert timeout_s == 2.0


def test_error_status_raises_and_is_not_retried() -> None:
    http = FakeHttp(HttpResponse(status=500, body="<s:Fault/>"))
    client = RenderingControlClient(http, retries=1, retry_backoff_s=0)

    with pytest.raises(ControlRequestError) as exc:
        asyncio.run(client.set_eq(DEVICE, EqCommand(EqType.NIGHT_MODE, True)))

    assert exc.value.status == 500
    assert len(http.calls) == 1


def test_transport_failure_retries_once_then_raises() -> None:
    http = FakeHttp(TransportConnectError("connection refused"))
    client = RenderingControlClient(http, retries=1, retry_backoff_s=0)

    with pytest.raises(ControlTransportError) as exc:
        asyncio.run(client.set_eq(DEVICE, EqCommand(EqType.NIGHT_MODE, True)))

    assert isinstance(exc.value.cause, TransportError)
    assert len(http.calls) == 2


def test_transport_failure_recovers_on_retry() -> None:
    http = FakeHttp(TransportConnectError("reset"), HttpResponse(status=200))
    client = RenderingControlClient(http, retries=1, retry_backoff_s=0)

    asyncio.run(client.set_eq(DEVICE, EqCommand(EqType.NIGHT_MODE, False)))

    assert len(http.calls) == 2


def test_no_retry_when_disabled() -> None:
    http = FakeHttp(TransportConnectError("unreachable"))
    client = RenderingControlClient(http, retries=0)

    with pytest.raises(ControlTransportError):
        asyncio.run(client.set_eq(DEVICE, EqCommand(EqType.NIGHT_MODE, True)))

    assert len(http.calls) == 1


def test_hung_request_times_out() -> None:
    client = RenderingControlClient(HangingHttp(), timeout_s=0.05, retries=0)

    with pytest.raises(ControlTransportError) as exc:
        asyncio.run(client.set_eq(DEVICE, EqCommand(EqType.NIGHT_MODE, True)))

    assert isinstance(exc.value.cause, asyncio.TimeoutError)
