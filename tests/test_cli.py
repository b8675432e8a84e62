from __future__ import annotations

from pathlib import Path

import pytest
from typer.testing import CliRunner

from speakerctl import cli
from speakerctl.core.accessory import SpeakerAccessory
from speakerctl.core.errors import ControlTransportError, DescribeError
from speakerctl.core.model import AccessoryRecord, DeviceDescriptor, SwitchResult
from speakerctl.core.service import DiscoveryReport


def _record() -> AccessoryRecord:
    return AccessoryRecord(
        identity="6f1c2f4e-0000-5000-8000-000000000001",
        display_name="Living Room",
        device=DeviceDescriptor(host="192.168.1.50", unique_id="uuid:RINCON_1", display_name="Living Room"),
    )


class FakeService:
    def __init__(self, *, config=None) -> None:
        self.config = config
        self.record = _record()

    async def run_discovery(self) -> DiscoveryReport:
        return DiscoveryReport(
            registered=(self.record,),
            rejected=(DeviceDescriptor(host="192.168.1.51", unique_id="uuid:2", display_name="Garage"),),
            failures=(DescribeError("192.168.1.52", TimeoutError()),),
        )

    def list_accessories(self) -> list[SpeakerAccessory]:
        return [SpeakerAccessory(self.record, control=None)]

    async def set_switch(self, switch, value, accessory_hint=None) -> SwitchResult:
        self.record.control_state.set(switch, value)
        return SwitchResult(record=self.record, switch=switch, value=value)

    def get_switch(self, switch, accessory_hint=None) -> SwitchResult:
        return SwitchResult(record=self.record, switch=switch, value=self.record.control_state.get(switch))


runner = CliRunner()


@pytest.fixture(autouse=True)
def _isolated_config(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "cfg"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))


def test_discover_command(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(cli, "SpeakerService", FakeService)
    result = runner.invoke(cli.app, ["discover"])
    assert result.exit_code == 0
    assert "Added Living Room (192.168.1.50)" in result.stdout
    assert "Ignored Garage (192.168.1.51)" in result.stdout
    assert "Warning: Could not describe device at 192.168.1.52: TimeoutError" in result.stderr


def test_discover_without_config_warns() -> None:
    result = runner.invoke(cli.app, ["discover"])
    assert result.exit_code == 0
    assert "Warning: No devices configured" in result.stderr
    assert result.stdout == ""


def test_accessories_command(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(cli, "SpeakerService", FakeService)
    result = runner.invoke(cli.app, ["accessories"])
    assert result.exit_code == 0
    assert "Living Room (192.168.1.50)" in result.stdout
    assert "night-sound: off" in result.stdout
    assert "speech-enhancement: off" in result.stdout


def test_set_command(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(cli, "SpeakerService", FakeService)
    result = runner.invoke(cli.app, ["set", "night-sound", "on", "--accessory", "living"])
    assert result.exit_code == 0
    assert "Set night-sound=on on Living Room (192.168.1.50)" in result.stdout


def test_set_command_rejects_bad_value(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(cli, "SpeakerService", FakeService)
    result = runner.invoke(cli.app, ["set", "night-sound", "loud"])
    assert result.exit_code == 1
    assert "Value must be 'on' or 'off'" in result.stderr


def test_get_command(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(cli, "SpeakerService", FakeService)
    result = runner.invoke(cli.app, ["get", "speech-enhancement"])
    assert result.exit_code == 0
    assert "Living Room Speech Enhancement: off" in result.stdout


def test_set_command_error_is_clean(monkeypatch: pytest.MonkeyPatch) -> None:
    class FailingService(FakeService):
        async def set_switch(self, switch, value, accessory_hint=None):
            raise ControlTransportError("192.168.1.50", OSError("Network Error"))

    monkeypatch.setattr(cli, "SpeakerService", FailingService)
    result = runner.invoke(cli.app, ["set", "night-sound", "on"])
    assert result.exit_code == 1
    assert "Error: SOAP request to 192.168.1.50 failed: Network Error" in result.stderr
    assert "Traceback" not in result.stdout
    assert "Traceback" not in result.stderr


def test_config_option_is_used(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    seen = {}

    class ConfigService(FakeService):
        def __init__(self, *, config=None) -> None:
            super().__init__(config=config)
            seen["config"] = config

    config_path = tmp_path / "custom.yaml"
    config_path.write_text("deviceNames: [Living Room]\n", encoding="utf-8")
    monkeypatch.setattr(cli, "SpeakerService", ConfigService)

    result = runner.invoke(cli.app, ["--config", str(config_path), "discover"])

    assert result.exit_code == 0
    assert seen["config"].source == config_path


def test_invalid_config_is_reported(tmp_path: Path) -> None:
    config_path = tmp_path / "bad.yaml"
    config_path.write_text("devices: [{ipAddress: 10.0.0.1}]\n", encoding="utf-8")

    result = runner.invoke(cli.app, ["--config", str(config_path), "accessories"])

    assert result.exit_code == 1
    assert "Error: Schema validation failed" in result.stderr

