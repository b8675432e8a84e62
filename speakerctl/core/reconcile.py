"""Accessory reconciliation: one accessory per physical device, across passes and restarts."""

from __future__ import annotations

import asyncio
import logging
import uuid
from collections.abc import Iterable
from dataclasses import dataclass, field

from speakerctl.core.model import (
    AccessoryRecord,
    Action,
    CreateAndRegister,
    DeviceDescriptor,
    UpdateExisting,
)

_IDENTITY_NAMESPACE = uuid.uuid5(uuid.NAMESPACE_DNS, "speakerctl.accessory")
LOGGER = logging.getLogger(__name__)


def derive_identity(device: DeviceDescriptor) -> str:
    return str(uuid.uuid5(_IDENTITY_NAMESPACE, device.unique_id or device.host))


@dataclass
class ReconcilePass:
    """Lifecycle actions taken during one discovery pass, keyed by identity."""

    actions: dict[str, Action] = field(default_factory=dict)

    @property
    def created(self) -> list[AccessoryRecord]:
        return [a.record for a in self.actions.values() if isinstance(a, CreateAndRegister)]

    @property
    def updated(self) -> list[AccessoryRecord]:
        return [a.record for a in self.actions.values() if isinstance(a, UpdateExisting)]


class AccessoryReconciler:
    def __init__(self, records: Iterable[AccessoryRecord] = ()) -> None:
        self._cache: dict[str, AccessoryRecord] = {}
        for record in records:
            self._cache[record.identity] = record
        self._lock = asyncio.Lock()

    def records(self) -> list[AccessoryRecord]:
        return list(self._cache.values())

    def get(self, identity: str) -> AccessoryRecord | None:
        return self._cache.get(identity)

    def begin_pass(self) -> ReconcilePass:
        return ReconcilePass()

    async def reconcile(self, device: DeviceDescriptor, pass_: ReconcilePass) -> Action:
        identity = derive_identity(device)
        # No awaits inside: the cache and pass must change together or not at all.
        async with self._lock:
            previous = pass_.actions.get(identity)
            if previous is not None:
                # Seen twice in one pass: keep the first action, refresh the context.
                previous.record.device = device
                return previous

            record = self._cache.get(identity)
            if record is not None:
                LOGGER.info("Restoring existing accessory from cache: %s", record.display_name)
                record.device = device
                action: Action = UpdateExisting(record)
            else:
                LOGGER.info("Adding new accessory: %s", device.display_name)
                record = AccessoryRecord(
                    identity=identity,
                    display_name=device.display_name,
                    device=device,
                )
                self._cache[identity] = record
                action = CreateAndRegister(record)

            pass_.actions[identity] = action
            return action
