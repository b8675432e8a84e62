"""Accessory exposing the Night Sound and Speech Enhancement switches of one speaker."""

from __future__ import annotations

from speakerctl.core.control import RenderingControlClient
from speakerctl.core.model import AccessoryInformation, AccessoryRecord, EqCommand, Switch


class SpeakerAccessory:
    """Switch handlers for one accessory record.

    Reads return the last value set through this accessory; the device is never
    queried, so state changed elsewhere (e.g. the vendor app) is not reflected.
    """

    def __init__(self, record: AccessoryRecord, control: RenderingControlClient) -> None:
        self.record = record
        self.control = control

    @property
    def identity(self) -> str:
        return self.record.identity

    @property
    def display_name(self) -> str:
        return self.record.display_name

    @property
    def information(self) -> AccessoryInformation:
        return AccessoryInformation(
            manufacturer="Sonos",
            model="Sonos Speaker",
            serial_number=self.record.device.host,
        )

    async def set_switch(self, switch: Switch, value: bool) -> None:
        command = EqCommand(kind=switch.eq_type, desired_value=value)
        await self.control.set_eq(self.record.device, command)
        self.record.control_state.set(switch, value)

    def get_switch(self, switch: Switch) -> bool:
        return self.record.control_state.get(switch)

    async def set_night_sound(self, value: bool) -> None:
        await self.set_switch(Switch.NIGHT_SOUND, value)

    def get_night_sound(self) -> bool:
        return self.get_switch(Switch.NIGHT_SOUND)

    async def set_speech_enhancement(self, value: bool) -> None:
        await self.set_switch(Switch.SPEECH_ENHANCEMENT, value)

    def get_speech_enhancement(self) -> bool:
        return self.get_switch(Switch.SPEECH_ENHANCEMENT)
