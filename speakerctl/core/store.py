"""Persisted accessory cache."""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Sequence
from pathlib import Path
from typing import Protocol

from speakerctl.core.errors import StoreError
from speakerctl.core.model import AccessoryRecord

_STORE_VERSION = 1
LOGGER = logging.getLogger(__name__)


class AccessoryStore(Protocol):
    def list_cached_accessories(self) -> list[AccessoryRecord]:
        """Return every accessory known from previous runs."""

    def register_new(self, records: Sequence[AccessoryRecord]) -> None:
        """Persist accessories created during a discovery pass."""

    def notify_updated(self, records: Sequence[AccessoryRecord]) -> None:
        """Persist changes to accessories that are already registered."""


def default_store_path() -> Path:
    xdg_data = Path(os.environ.get("XDG_DATA_HOME", Path.home() / ".local/share"))
    return xdg_data / "speakerctl" / "accessories.json"


class MemoryAccessoryStore:
    def __init__(self, records: Sequence[AccessoryRecord] = ()) -> None:
        self._records: dict[str, AccessoryRecord] = {r.identity: r for r in records}

    def list_cached_accessories(self) -> list[AccessoryRecord]:
        return list(self._records.values())

    def register_new(self, records: Sequence[AccessoryRecord]) -> None:
        for record in records:
            if record.identity in self._records:
                raise StoreError(f"Accessory {record.identity} is already registered")
        for record in records:
            self._records[record.identity] = record

    def notify_updated(self, records: Sequence[AccessoryRecord]) -> None:
        for record in records:
            self._records[record.identity] = record


class JsonAccessoryStore:
    def __init__(self, path: Path | None = None) -> None:
        self.path = path or default_store_path()
        self._records: dict[str, AccessoryRecord] | None = None

    def _load(self) -> dict[str, AccessoryRecord]:
        if self._records is not None:
            return self._records

        records: dict[str, AccessoryRecord] = {}
        if self.path.exists():
            try:
                doc = json.loads(self.path.read_text(encoding="utf-8"))
            except OSError as exc:
                raise StoreError(f"Could not read accessory store {self.path}: {exc}") from exc
            except json.JSONDecodeError as exc:
                raise StoreError(f"Accessory store {self.path} is not valid JSON: {exc}") from exc

            if not isinstance(doc, dict) or not isinstance(doc.get("accessories"), list):
                raise StoreError(f"Accessory store {self.path} must contain an 'accessories' list")

            for entry in doc["accessories"]:
                try:
                    record = AccessoryRecord.from_dict(entry)
                except (KeyError, TypeError) as exc:
                    raise StoreError(f"Malformed accessory entry in {self.path}: {exc}") from exc
                records[record.identity] = record

        self._records = records
        return records

    def _save(self) -> None:
        records = self._load()
        doc = {
            "version": _STORE_VERSION,
            "accessories": [record.to_dict() for record in records.values()],
        }
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(json.dumps(doc, indent=2) + "\n", encoding="utf-8")
            os.replace(tmp_path, self.path)
        except OSError as exc:
            raise StoreError(f"Could not write accessory store {self.path}: {exc}") from exc

    def list_cached_accessories(self) -> list[AccessoryRecord]:
        return list(self._load().values())

    def register_new(self, records: Sequence[AccessoryRecord]) -> None:
        stored = self._load()
        for record in records:
            if record.identity in stored:
                raise StoreError(f"Accessory {record.identity} is already registered")
        for record in records:
            stored[record.identity] = record
        self._save()
        LOGGER.debug("Registered %d accessories in %s", len(records), self.path)

    def notify_updated(self, records: Sequence[AccessoryRecord]) -> None:
        stored = self._load()
        for record in records:
            stored[record.identity] = record
        self._save()
        LOGGER.debug("Updated %d accessories in %s", len(records), self.path)
