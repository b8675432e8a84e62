from __future__ import annotations

import asyncio

from speakerctl.core.model import (
    AccessoryRecord,
    ControlState,
    CreateAndRegister,
    DeviceDescriptor,
    UpdateExisting,
)
from speakerctl.core.reconcile import AccessoryReconciler, derive_identity


def _device(unique_id: str = "uuid:RINCON_1", host: str = "192.168.1.50", name: str = "Arc") -> DeviceDescriptor:
    return DeviceDescriptor(host=host, unique_id=unique_id, display_name=name)


def test_identity_is_stable_for_same_unique_id() -> None:
    a = _device(host="192.168.1.50")
    b = _device(host="192.168.1.99", name="Renamed")
    assert derive_identity(a) == derive_identity(b)


def test_identity_differs_between_devices() -> None:
    assert derive_identity(_device("uuid:RINCON_1")) != derive_identity(_device("uuid:RINCON_2"))


def test_identity_falls_back_to_host() -> None:
    device = DeviceDescriptor(host="192.168.1.50", unique_id="", display_name="Arc")
    assert derive_identity(device) == derive_identity(_device(unique_id="192.168.1.50", host="10.0.0.1"))


def test_first_sighting_creates_then_updates() -> None:
    reconciler = AccessoryReconciler()

    async def _run() -> tuple[object, object]:
        first = await reconciler.reconcile(_device(), reconciler.begin_pass())
        second = await reconciler.reconcile(_device(host="192.168.1.51"), reconciler.begin_pass())
        return first, second

    first, second = asyncio.run(_run())

    assert isinstance(first, CreateAndRegister)
    assert first.record.control_state == ControlState()
    assert isinstance(second, UpdateExisting)
    assert second.record is first.record
    assert second.record.device.host == "192.168.1.51"


def test_cached_record_is_updated_not_recreated() -> None:
    device = _device()
    cached = AccessoryRecord(
        identity=derive_identity(device),
        display_name="Arc",
        device=_device(host="10.0.0.1"),
        control_state=ControlState(night_sound=True),
    )
    reconciler = AccessoryReconciler([cached])
    pass_ = reconciler.begin_pass()

    action = asyncio.run(reconciler.reconcile(device, pass_))

    assert isinstance(action, UpdateExisting)
    assert action.record is cached
    assert cached.device == device
    assert cached.control_state.night_sound is True
    assert pass_.created == []
    assert pass_.updated == [cached]


def test_duplicate_sighting_in_one_pass_yields_one_action() -> None:
    reconciler = AccessoryReconciler()
    pass_ = reconciler.begin_pass()

    async def _run() -> list[object]:
        return await asyncio.gather(
            reconciler.reconcile(_device(host="192.168.1.50"), pass_),
            reconciler.reconcile(_device(host="192.168.1.50"), pass_),
            reconciler.reconcile(_device(host="192.168.1.52"), pass_),
        )

    actions = asyncio.run(_run())

    assert all(isinstance(a, CreateAndRegister) for a in actions)
    assert len(pass_.created) == 1
    assert pass_.updated == []
    assert len(reconciler.records()) == 1
    assert pass_.created[0].device.host == "192.168.1.52"


def test_get_returns_cached_record() -> None:
    reconciler = AccessoryReconciler()
    action = asyncio.run(reconciler.reconcile(_device(), reconciler.begin_pass()))
    assert reconciler.get(action.record.identity) is action.record
    assert reconciler.get("missing") is None
