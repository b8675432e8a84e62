"""Service layer used by the CLI and the public API."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from speakerctl.core.accessory import SpeakerAccessory
from speakerctl.core.config import AppConfig, load_config
from speakerctl.core.control import RenderingControlClient
from speakerctl.core.device_match import decide
from speakerctl.core.errors import AccessorySelectionError, ConfigurationEmptyError, DescribeError
from speakerctl.core.model import (
    AccessoryRecord,
    DeviceDescriptor,
    FilterConfig,
    Switch,
    SwitchResult,
)
from speakerctl.core.reconcile import AccessoryReconciler, ReconcilePass
from speakerctl.core.store import AccessoryStore, JsonAccessoryStore
from speakerctl.transports.base import DeviceHandle, DiscoverySource, HttpTransport
from speakerctl.transports.http import AiohttpTransport
from speakerctl.transports.ssdp import SsdpDiscovery

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class DiscoveryReport:
    registered: tuple[AccessoryRecord, ...] = ()
    updated: tuple[AccessoryRecord, ...] = ()
    rejected: tuple[DeviceDescriptor, ...] = ()
    failures: tuple[DescribeError, ...] = ()
    warnings: tuple[str, ...] = ()
    skipped: bool = False


@dataclass
class _PassOutcome:
    rejected: list[DeviceDescriptor]
    failures: list[DescribeError]


class SpeakerService:
    def __init__(
        self,
        *,
        config: AppConfig | None = None,
        store: AccessoryStore | None = None,
        discovery: DiscoverySource | None = None,
        http_transport: HttpTransport | None = None,
    ) -> None:
        self.config = config or load_config()
        self.http_transport = http_transport or AiohttpTransport()
        self.store = store or JsonAccessoryStore()
        self.discovery = discovery or SsdpDiscovery(
            self.http_transport,
            timeout_s=self.config.discovery.search_timeout_s,
            describe_timeout_s=self.config.discovery.describe_timeout_s,
        )
        self.control = RenderingControlClient(
            self.http_transport,
            timeout_s=self.config.control.timeout_s,
            retries=self.config.control.retries,
            retry_backoff_s=self.config.control.retry_backoff_s,
        )

        cached = self.store.list_cached_accessories()
        self.reconciler = AccessoryReconciler(cached)
        self.accessories: dict[str, SpeakerAccessory] = {}
        for record in cached:
            LOGGER.info("Loading accessory from cache: %s", record.display_name)
            self.accessories[record.identity] = SpeakerAccessory(record, self.control)

    async def run_discovery(self) -> DiscoveryReport:
        try:
            filter_config = self.config.require_filter()
        except ConfigurationEmptyError as exc:
            LOGGER.warning("%s", exc)
            return DiscoveryReport(warnings=(str(exc),), skipped=True)

        pass_ = self.reconciler.begin_pass()
        outcome = _PassOutcome(rejected=[], failures=[])
        hosts: list[str] = []
        tasks: list[asyncio.Task[None]] = []
        try:
            async for handle in self.discovery.discover():
                hosts.append(handle.host)
                tasks.append(asyncio.create_task(self._process(handle, filter_config, pass_, outcome)))
        finally:
            results = await asyncio.gather(*tasks, return_exceptions=True)
            # Reconciled identities are already cached; flush them even when discovery fails.
            created, updated = self._commit_pass(pass_)
            for host, result in zip(hosts, results):
                if isinstance(result, Exception):
                    LOGGER.error("Error processing device at %s: %s", host, result, exc_info=result)
                elif isinstance(result, BaseException):
                    raise result

        return DiscoveryReport(
            registered=tuple(created),
            updated=tuple(updated),
            rejected=tuple(outcome.rejected),
            failures=tuple(outcome.failures),
        )

    def _commit_pass(self, pass_: ReconcilePass) -> tuple[list[AccessoryRecord], list[AccessoryRecord]]:
        created = pass_.created
        updated = pass_.updated
        if created:
            self.store.register_new(created)
        if updated:
            self.store.notify_updated(updated)
        for record in created + updated:
            if record.identity not in self.accessories:
                self.accessories[record.identity] = SpeakerAccessory(record, self.control)
        return created, updated

    async def _process(
        self,
        handle: DeviceHandle,
        filter_config: FilterConfig,
        pass_: ReconcilePass,
        outcome: _PassOutcome,
    ) -> None:
        try:
            device = await self._describe(handle)
        except DescribeError as exc:
            LOGGER.error("Error getting device description for device at %s: %s", exc.host, exc.cause)
            outcome.failures.append(exc)
            return

        if not decide(device, filter_config):
            outcome.rejected.append(device)
            return

        await self.reconciler.reconcile(device, pass_)

    async def _describe(self, handle: DeviceHandle) -> DeviceDescriptor:
        host = handle.host
        try:
            description = await asyncio.wait_for(
                handle.describe(),
                timeout=self.config.discovery.describe_timeout_s,
            )
        except Exception as exc:
            raise DescribeError(host, exc) from exc
        return DeviceDescriptor.from_description(host, description)

    def list_accessories(self) -> list[SpeakerAccessory]:
        return sorted(self.accessories.values(), key=lambda a: (a.display_name, a.identity))

    def resolve_accessory(self, accessory_hint: str | None) -> SpeakerAccessory:
        accessories = self.list_accessories()
        if not accessories:
            raise AccessorySelectionError("No accessories registered. Run 'speakerctl discover' first.")

        candidates = accessories
        if accessory_hint:
            hint = accessory_hint.lower()
            candidates = [
                a
                for a in accessories
                if a.identity.startswith(hint)
                or a.record.device.host == accessory_hint
                or hint in a.display_name.lower()
            ]
            if not candidates:
                raise AccessorySelectionError(f"No accessory found matching '{accessory_hint}'")

        if len(candidates) > 1:
            exact = [a for a in candidates if a.display_name == accessory_hint]
            if len(exact) == 1:
                return exact[0]
            candidate_desc = ", ".join(f"{a.display_name} ({a.record.device.host})" for a in candidates)
            raise AccessorySelectionError(
                f"Multiple accessories found: {candidate_desc}. Use --accessory to choose one."
            )

        return candidates[0]

    async def set_switch(self, switch: Switch, value: bool, accessory_hint: str | None = None) -> SwitchResult:
        accessory = self.resolve_accessory(accessory_hint)
        await accessory.set_switch(switch, value)
        self.store.notify_updated([accessory.record])
        return SwitchResult(record=accessory.record, switch=switch, value=value)

    def get_switch(self, switch: Switch, accessory_hint: str | None = None) -> SwitchResult:
        accessory = self.resolve_accessory(accessory_hint)
        return SwitchResult(record=accessory.record, switch=switch, value=accessory.get_switch(switch))
