"""HTTP transport implementation using aiohttp."""

from __future__ import annotations

import asyncio
from collections.abc import Mapping

import aiohttp

from speakerctl.core.errors import TransportConnectError, TransportTimeoutError
from speakerctl.transports.base import HttpResponse


class AiohttpTransport:
    async def request(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        data: bytes | None = None,
        timeout_s: float = 5.0,
    ) -> HttpResponse:
        timeout = aiohttp.ClientTimeout(total=timeout_s)
        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.request(method, url, headers=dict(headers or {}), data=data) as resp:
                    body = await resp.text(errors="replace")
                    return HttpResponse(status=resp.status, body=body)
        except asyncio.TimeoutError as exc:
            raise TransportTimeoutError(f"{method} {url} timed out after {timeout_s}s") from exc
        except (aiohttp.ClientError, OSError) as exc:
            raise TransportConnectError(f"{method} {url} failed: {exc}") from exc
