"""
Accessory and characteristic selection policy.

Selection is an ordered list of matchers. Each matcher is evaluated against
the whole accessory list before the next one is tried, so a weaker heuristic
can never shadow a stronger one that matches a later accessory.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable, Optional, Sequence

from ..core.errors import AccessoryNotFound
from .schemas import HubAccessory, HubCharacteristic, HubService


@dataclass(frozen=True)
class AccessoryMatcher:
    description: str
    predicate: Callable[[HubAccessory], bool]

    def __call__(self, accessory: HubAccessory) -> bool:
        return self.predicate(accessory)


@dataclass(frozen=True)
class CharacteristicMatcher:
    description: str
    predicate: Callable[[HubService, HubCharacteristic], bool]

    def __call__(self, service: HubService, characteristic: HubCharacteristic) -> bool:
        return self.predicate(service, characteristic)


def _contains_any(text: Optional[str], keywords: Iterable[str]) -> bool:
    if not text:
        return False
    lowered = text.lower()
    return any(k.lower() in lowered for k in keywords)


def configured(name: Optional[str], accessory_id: Optional[str]) -> Optional[AccessoryMatcher]:
    """Exact match on the configured display name or id; None when neither is set."""
    if not name and not accessory_id:
        return None

    def _match(a: HubAccessory) -> bool:
        if name and a.display_name == name:
            return True
        if accessory_id and a.id == accessory_id:
            return True
        return False

    return AccessoryMatcher(f"configured name={name!r} id={accessory_id!r}", _match)


def by_plugin(vendor_keywords: Sequence[str]) -> AccessoryMatcher:
    return AccessoryMatcher(
        f"plugin contains one of {list(vendor_keywords)}",
        lambda a: _contains_any(a.plugin, vendor_keywords),
    )


def by_keyword(keywords: Sequence[str]) -> AccessoryMatcher:
    def _match(a: HubAccessory) -> bool:
        for service in a.services:
            if _contains_any(service.type, keywords) or _contains_any(service.name, keywords):
                return True
            if any(_contains_any(c.type, keywords) for c in service.characteristics):
                return True
        return False

    return AccessoryMatcher(f"service or characteristic mentions {list(keywords)}", _match)


def accessory_policy(
    *,
    name: Optional[str],
    accessory_id: Optional[str],
    vendor_keywords: Sequence[str],
    keywords: Sequence[str],
) -> list[AccessoryMatcher]:
    matchers = [configured(name, accessory_id), by_plugin(vendor_keywords), by_keyword(keywords)]
    return [m for m in matchers if m is not None]


def select_accessory(
    accessories: Sequence[HubAccessory],
    matchers: Sequence[AccessoryMatcher],
    label: str,
) -> tuple[HubAccessory, AccessoryMatcher]:
    for matcher in matchers:
        for accessory in accessories:
            if matcher(accessory):
                return accessory, matcher
    raise AccessoryNotFound(
        f"{label} accessory not found among {len(accessories)} accessories. "
        "Ensure the plugin is installed and the accessory is visible in Homebridge."
    )


def characteristic_type_is(*types: str) -> CharacteristicMatcher:
    wanted = {t.lower() for t in types}
    return CharacteristicMatcher(
        f"characteristic type in {sorted(wanted)}",
        lambda _s, c: (c.type or "").lower() in wanted,
    )


def characteristic_type_contains(keyword: str) -> CharacteristicMatcher:
    return CharacteristicMatcher(
        f"characteristic type contains {keyword!r}",
        lambda _s, c: _contains_any(c.type, [keyword]),
    )


def find_characteristic(
    accessory: HubAccessory,
    matchers: Sequence[CharacteristicMatcher],
) -> Optional[tuple[HubService, HubCharacteristic]]:
    for matcher in matchers:
        for service in accessory.services:
            for characteristic in service.characteristics:
                if matcher(service, characteristic):
                    return service, characteristic
    return None
