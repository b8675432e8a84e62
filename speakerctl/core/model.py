"""Core data models used across discovery, reconciliation, control, and CLI."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

DEFAULT_DISPLAY_NAME = "Sonos Device"


def derive_hardware_id(serial_number: str | None) -> str | None:
    """Derive a MAC-like id from a serial number such as ``00-0E-58-AA-BB-CC:E``.

    Only the segment before the first ``:`` is kept. Devices that report no
    MACAddress are matched against this value by strict filter rules.
    """
    if not serial_number:
        return None
    return serial_number.split(":")[0]


class EqType(str, Enum):
    NIGHT_MODE = "NightMode"
    DIALOG_LEVEL = "DialogLevel"


class Switch(str, Enum):
    NIGHT_SOUND = "night-sound"
    SPEECH_ENHANCEMENT = "speech-enhancement"

    @property
    def eq_type(self) -> EqType:
        if self is Switch.NIGHT_SOUND:
            return EqType.NIGHT_MODE
        return EqType.DIALOG_LEVEL

    @property
    def state_field(self) -> str:
        return self.value.replace("-", "_")

    @property
    def label(self) -> str:
        return self.value.replace("-", " ").title()


@dataclass(frozen=True)
class DeviceDescription:
    """Raw metadata returned by a device handle's describe step."""

    unique_id: str | None = None
    display_name: str | None = None
    hardware_id: str | None = None
    serial_number: str | None = None


@dataclass(frozen=True)
class DeviceDescriptor:
    host: str
    unique_id: str
    display_name: str
    hardware_id: str | None = None
    serial_fallback: str | None = None

    @classmethod
    def from_description(cls, host: str, description: DeviceDescription) -> DeviceDescriptor:
        return cls(
            host=host,
            unique_id=description.unique_id or host,
            display_name=description.display_name or DEFAULT_DISPLAY_NAME,
            hardware_id=description.hardware_id or None,
            serial_fallback=description.serial_number or None,
        )

    @property
    def mac_address(self) -> str | None:
        return self.hardware_id or derive_hardware_id(self.serial_fallback)

    def to_dict(self) -> dict[str, Any]:
        return {
            "host": self.host,
            "unique_id": self.unique_id,
            "display_name": self.display_name,
            "hardware_id": self.hardware_id,
            "serial_fallback": self.serial_fallback,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DeviceDescriptor:
        return cls(
            host=data["host"],
            unique_id=data.get("unique_id") or data["host"],
            display_name=data.get("display_name") or DEFAULT_DISPLAY_NAME,
            hardware_id=data.get("hardware_id"),
            serial_fallback=data.get("serial_fallback"),
        )


@dataclass(frozen=True)
class FilterRule:
    name: str
    ip: str | None = None
    mac: str | None = None


@dataclass(frozen=True)
class LegacyNames:
    names: frozenset[str]


@dataclass(frozen=True)
class StrictRules:
    rules: tuple[FilterRule, ...]


FilterConfig = LegacyNames | StrictRules


@dataclass
class ControlState:
    night_sound: bool = False
    speech_enhancement: bool = False

    def get(self, switch: Switch) -> bool:
        return getattr(self, switch.state_field)

    def set(self, switch: Switch, value: bool) -> None:
        setattr(self, switch.state_field, value)


@dataclass
class AccessoryRecord:
    identity: str
    display_name: str
    device: DeviceDescriptor
    control_state: ControlState = field(default_factory=ControlState)

    def to_dict(self) -> dict[str, Any]:
        return {
            "identity": self.identity,
            "display_name": self.display_name,
            "device": self.device.to_dict(),
            "control_state": {
                "night_sound": self.control_state.night_sound,
                "speech_enhancement": self.control_state.speech_enhancement,
            },
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AccessoryRecord:
        state = data.get("control_state") or {}
        return cls(
            identity=data["identity"],
            display_name=data["display_name"],
            device=DeviceDescriptor.from_dict(data["device"]),
            control_state=ControlState(
                night_sound=bool(state.get("night_sound", False)),
                speech_enhancement=bool(state.get("speech_enhancement", False)),
            ),
        )


@dataclass(frozen=True)
class EqCommand:
    kind: EqType
    desired_value: bool

    @property
    def wire_value(self) -> int:
        return 1 if self.desired_value else 0


@dataclass(frozen=True)
class CreateAndRegister:
    record: AccessoryRecord


@dataclass(frozen=True)
class UpdateExisting:
    record: AccessoryRecord


Action = CreateAndRegister | UpdateExisting


@dataclass(frozen=True)
class AccessoryInformation:
    manufacturer: str
    model: str
    serial_number: str


@dataclass(frozen=True)
class SwitchResult:
    record: AccessoryRecord
    switch: Switch
    value: bool
