"""Configuration loading and validation for speakerctl."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from importlib import resources
from pathlib import Path
from typing import Any

import yaml
from jsonschema import ValidationError, validators

from speakerctl.core.errors import ConfigurationEmptyError, ConfigurationError
from speakerctl.core.model import FilterConfig, FilterRule, LegacyNames, StrictRules

LOGGER = logging.getLogger(__name__)


class UniqueKeyLoader(yaml.SafeLoader):
    """YAML loader that rejects duplicate mapping keys."""


def _construct_mapping(loader: UniqueKeyLoader, node: yaml.Node, deep: bool = False) -> dict[str, Any]:
    mapping: dict[str, Any] = {}
    for key_node, value_node in node.value:
        key = loader.construct_object(key_node, deep=deep)
        if key in mapping:
            raise ConfigurationError(f"Duplicate key '{key}' in YAML document")
        mapping[key] = loader.construct_object(value_node, deep=deep)
    return mapping


UniqueKeyLoader.add_constructor(
    yaml.resolver.BaseResolver.DEFAULT_MAPPING_TAG,
    _construct_mapping,
)


@dataclass(frozen=True)
class DiscoverySettings:
    search_timeout_s: float = 5.0
    describe_timeout_s: float = 5.0


@dataclass(frozen=True)
class ControlSettings:
    timeout_s: float = 5.0
    retries: int = 1
    retry_backoff_s: float = 0.5


@dataclass(frozen=True)
class AppConfig:
    filter: FilterConfig | None = None
    discovery: DiscoverySettings = field(default_factory=DiscoverySettings)
    control: ControlSettings = field(default_factory=ControlSettings)
    source: Path | None = None

    def require_filter(self) -> FilterConfig:
        if self.filter is None:
            raise ConfigurationEmptyError(
                'No devices configured in "deviceNames" or "devices". No Sonos devices will be added. '
                'Add your Sonos room names to "deviceNames" or use "devices" for strict filtering.'
            )
        return self.filter


def _load_schema_validator() -> Any:
    schema_text = resources.files("speakerctl.schemas").joinpath("config.schema.json").read_text(
        encoding="utf-8"
    )
    schema = json.loads(schema_text)
    validator_cls = validators.validator_for(schema)
    validator_cls.check_schema(schema)
    return validator_cls(schema)


def default_config_path() -> Path:
    xdg_config = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))
    return xdg_config / "speakerctl" / "config.yaml"


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError(f"Could not read config file {path}: {exc}") from exc

    try:
        loaded = yaml.load(content, Loader=UniqueKeyLoader)
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Invalid YAML in {path}: {exc}") from exc

    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ConfigurationError(f"Config file {path} must contain a mapping at root")
    return loaded


def _optional(value: str | None) -> str | None:
    return value or None


def resolve_filter(doc: dict[str, Any]) -> FilterConfig | None:
    strict = doc.get("devices") or []
    names = doc.get("deviceNames") or []

    if strict:
        if names:
            LOGGER.info('Strict "devices" filtering is active; "deviceNames" is ignored.')
        return StrictRules(
            rules=tuple(
                FilterRule(
                    name=entry["deviceName"],
                    ip=_optional(entry.get("ipAddress")),
                    mac=_optional(entry.get("macAddress")),
                )
                for entry in strict
            )
        )
    if names:
        return LegacyNames(names=frozenset(names))
    return None


def build_config(doc: dict[str, Any], source: Path | None = None) -> AppConfig:
    validator = _load_schema_validator()
    try:
        validator.validate(doc)
    except ValidationError as exc:
        path = ".".join(str(p) for p in exc.path)
        where = f" ({path})" if path else ""
        origin = source or "<config>"
        raise ConfigurationError(f"Schema validation failed for {origin}{where}: {exc.message}") from exc

    discovery = doc.get("discovery", {})
    control = doc.get("control", {})
    return AppConfig(
        filter=resolve_filter(doc),
        discovery=DiscoverySettings(
            search_timeout_s=float(discovery.get("searchTimeout", 5.0)),
            describe_timeout_s=float(discovery.get("describeTimeout", 5.0)),
        ),
        control=ControlSettings(
            timeout_s=float(control.get("timeout", 5.0)),
            retries=int(control.get("retries", 1)),
            retry_backoff_s=float(control.get("retryBackoff", 0.5)),
        ),
        source=source,
    )


def load_config(path: Path | None = None) -> AppConfig:
    config_path = path or default_config_path()
    if not config_path.exists():
        if path is not None:
            raise ConfigurationError(f"Config file {config_path} does not exist")
        LOGGER.debug("No config file at %s; using an empty configuration", config_path)
        return AppConfig()
    return build_config(_read_yaml(config_path), source=config_path)
