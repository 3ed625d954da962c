from __future__ import annotations

import logging
from typing import Any, Optional

from ..core.errors import CharacteristicMissing, InvalidValue
from .homebridge_client import HomebridgeClient
from .matching import accessory_policy, characteristic_type_is, find_characteristic, select_accessory
from .schemas import HubAccessory, HubCharacteristic

logger = logging.getLogger(__name__)

VENDOR_KEYWORDS = ("meross",)
HUMIDIFIER_KEYWORDS = ("humidifier",)
POWER_CHARACTERISTICS = (
    characteristic_type_is("On"),
    characteristic_type_is("Active"),
)


def parse_power_state(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1")
    raise InvalidValue(f"Power value is not a boolean: {value!r}")


class MerossHumidifier:
    """Meross humidifier (or smart plug) power, switched through Homebridge."""

    def __init__(
        self,
        client: HomebridgeClient,
        accessory_name: Optional[str] = None,
        device_id: Optional[str] = None,
    ) -> None:
        self._client = client
        self._matchers = accessory_policy(
            name=accessory_name,
            accessory_id=device_id,
            vendor_keywords=VENDOR_KEYWORDS,
            keywords=HUMIDIFIER_KEYWORDS,
        )
        self.actuator_id = accessory_name or device_id or "meross_humidifier"

    async def _locate(self) -> tuple[HubAccessory, HubCharacteristic]:
        accessories = await self._client.list_accessories()
        accessory, matcher = select_accessory(accessories, self._matchers, label="Meross humidifier")
        logger.debug("Meross accessory %s matched by %s", accessory.display_name, matcher.description)

        found = find_characteristic(accessory, POWER_CHARACTERISTICS)
        if found is None:
            raise CharacteristicMissing(
                f"Meross accessory {accessory.display_name!r} has no On/Active power characteristic. "
                "Check the homebridge-meross plugin setup."
            )
        return accessory, found[1]

    async def verify(self) -> None:
        accessory, characteristic = await self._locate()
        logger.info("Verified power control on %s (%s)", accessory.display_name, characteristic.type)

    async def read_power_state(self) -> bool:
        accessory, characteristic = await self._locate()
        is_on = parse_power_state(characteristic.value)
        logger.debug("Meross power state %s on %s", "ON" if is_on else "OFF", accessory.display_name)
        return is_on

    async def set_power(self, on: bool) -> None:
        accessory, characteristic = await self._locate()
        await self._client.set_characteristic(accessory.id, characteristic.type, on)
        logger.info(
            "Meross humidifier %s via Homebridge (%s).", "ON" if on else "OFF", accessory.display_name
        )
