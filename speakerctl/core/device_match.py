"""Device filtering against the configured name list or strict device rules."""

from __future__ import annotations

import logging

from speakerctl.core.model import DeviceDescriptor, FilterConfig, FilterRule, LegacyNames, StrictRules

LOGGER = logging.getLogger(__name__)


def _rule_matches(device: DeviceDescriptor, rule: FilterRule) -> bool:
    if rule.name != device.display_name:
        return False
    if rule.ip and rule.ip != device.host:
        return False
    if rule.mac and rule.mac != device.mac_address:
        return False
    return True


def matching_rule(device: DeviceDescriptor, rules: tuple[FilterRule, ...]) -> FilterRule | None:
    for rule in rules:
        if _rule_matches(device, rule):
            return rule
    return None


def decide(device: DeviceDescriptor, config: FilterConfig) -> bool:
    if isinstance(config, StrictRules):
        if matching_rule(device, config.rules) is not None:
            return True
        LOGGER.debug(
            'Ignoring discovered device "%s" (IP: %s, MAC: %s) as it does not match any entry in "devices".',
            device.display_name,
            device.host,
            device.mac_address,
        )
        return False

    if isinstance(config, LegacyNames):
        if device.display_name in config.names:
            return True
        LOGGER.debug(
            'Ignoring discovered device "%s" as it is not in the "deviceNames" list.',
            device.display_name,
        )
        return False

    raise TypeError(f"Unsupported filter configuration: {config!r}")
