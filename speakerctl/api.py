"""Stable public API for building tooling on top of speakerctl.

This module is the supported integration surface for third-party callers.
Avoid importing from private/internal modules unless intentionally depending on
non-stable internals.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

from speakerctl.core.accessory import SpeakerAccessory
from speakerctl.core.config import AppConfig, load_config
from speakerctl.core.errors import (
    AccessorySelectionError,
    ConfigurationEmptyError,
    ConfigurationError,
    ControlError,
    ControlRequestError,
    ControlTransportError,
    DescribeError,
    DescriptionError,
    DiscoveryError,
    SpeakerctlError,
    StoreError,
    TransportConnectError,
    TransportError,
    TransportTimeoutError,
)
from speakerctl.core.model import (
    AccessoryRecord,
    ControlState,
    DeviceDescriptor,
    EqCommand,
    EqType,
    FilterRule,
    LegacyNames,
    StrictRules,
    Switch,
    SwitchResult,
)
from speakerctl.core.service import DiscoveryReport, SpeakerService
from speakerctl.core.store import AccessoryStore, JsonAccessoryStore, MemoryAccessoryStore
from speakerctl.transports.base import DiscoverySource, HttpTransport

__all__ = [
    "SpeakerctlError",
    "AccessorySelectionError",
    "ConfigurationError",
    "ConfigurationEmptyError",
    "ControlError",
    "ControlRequestError",
    "ControlTransportError",
    "DescribeError",
    "DescriptionError",
    "DiscoveryError",
    "StoreError",
    "TransportError",
    "TransportConnectError",
    "TransportTimeoutError",
    "AccessoryRecord",
    "AppConfig",
    "ControlState",
    "DeviceDescriptor",
    "DiscoveryReport",
    "EqCommand",
    "EqType",
    "FilterRule",
    "LegacyNames",
    "StrictRules",
    "Switch",
    "SwitchResult",
    "AccessoryStore",
    "JsonAccessoryStore",
    "MemoryAccessoryStore",
    "SpeakerAccessory",
    "Client",
]


class Client:
    """Public client for interacting with speakerctl core capabilities.

    A `Client` instance wraps configuration loading, discovery, accessory
    reconciliation, and SetEQ control behind a synchronous API intended for
    scripts and other tools. Each call runs its own event loop.
    """

    def __init__(
        self,
        *,
        config: AppConfig | None = None,
        config_path: Path | None = None,
        store: AccessoryStore | None = None,
        discovery: DiscoverySource | None = None,
        http_transport: HttpTransport | None = None,
    ) -> None:
        self._service = SpeakerService(
            config=config or load_config(config_path),
            store=store,
            discovery=discovery,
            http_transport=http_transport,
        )

    def discover(self) -> DiscoveryReport:
        return asyncio.run(self._service.run_discovery())

    def list_accessories(self) -> list[SpeakerAccessory]:
        return self._service.list_accessories()

    def resolve_accessory(self, accessory_hint: str | None = None) -> SpeakerAccessory:
        return self._service.resolve_accessory(accessory_hint)

    def set_switch(self, switch: Switch, value: bool, *, accessory_hint: str | None = None) -> SwitchResult:
        return asyncio.run(self._service.set_switch(switch, value, accessory_hint))

    def get_switch(self, switch: Switch, *, accessory_hint: str | None = None) -> SwitchResult:
        return self._service.get_switch(switch, accessory_hint)
