from __future__ import annotations

import logging
import math
from typing import Any, Optional

from ..core.errors import CharacteristicMissing, InvalidValue
from .homebridge_client import HomebridgeClient
from .matching import (
    accessory_policy,
    characteristic_type_contains,
    characteristic_type_is,
    find_characteristic,
    select_accessory,
)
from .schemas import HubAccessory, HubCharacteristic

logger = logging.getLogger(__name__)

VENDOR_KEYWORDS = ("acinfinity", "ac-infinity", "ac infinity")
HUMIDITY_KEYWORDS = ("humidity",)
HUMIDITY_CHARACTERISTICS = (
    characteristic_type_is("CurrentRelativeHumidity"),
    characteristic_type_contains("humidity"),
)


def normalize_humidity(value: Any) -> float:
    """
    Convert a raw characteristic value to percent.

    Values in (0, 1] are treated as a fraction and scaled by 100, so 0.45
    reads as 45%. This is a heuristic: a genuine 0.5% reading is
    indistinguishable from 50%.
    """
    if isinstance(value, bool) or value is None:
        raise InvalidValue(f"Humidity value is not numeric: {value!r}")
    try:
        humidity = float(value)
    except (TypeError, ValueError) as e:
        raise InvalidValue(f"Humidity value is not numeric: {value!r}") from e
    if not math.isfinite(humidity):
        raise InvalidValue(f"Humidity value is not finite: {value!r}")

    if 0 < humidity <= 1:
        logger.debug("Rescaling fractional humidity %s to percent", humidity)
        humidity *= 100
    return humidity


class AcInfinitySensor:
    """AC Infinity controller humidity, read through Homebridge."""

    def __init__(
        self,
        client: HomebridgeClient,
        accessory_name: Optional[str] = None,
        controller_id: Optional[str] = None,
    ) -> None:
        self._client = client
        self._matchers = accessory_policy(
            name=accessory_name,
            accessory_id=controller_id,
            vendor_keywords=VENDOR_KEYWORDS,
            keywords=HUMIDITY_KEYWORDS,
        )
        self.sensor_id = accessory_name or controller_id or "ac_infinity"

    async def _locate(self) -> tuple[HubAccessory, HubCharacteristic]:
        accessories = await self._client.list_accessories()
        accessory, matcher = select_accessory(accessories, self._matchers, label="AC Infinity")
        logger.debug("AC Infinity accessory %s matched by %s", accessory.display_name, matcher.description)

        found = find_characteristic(accessory, HUMIDITY_CHARACTERISTICS)
        if found is None:
            raise CharacteristicMissing(
                f"AC Infinity accessory {accessory.display_name!r} does not expose a humidity characteristic. "
                "Enable exposeSensors in the homebridge-acinfinity plugin config."
            )
        return accessory, found[1]

    async def verify(self) -> None:
        accessory, characteristic = await self._locate()
        logger.info(
            "Verified humidity sensor %s (%s)", accessory.display_name, characteristic.type
        )

    async def read_humidity(self) -> float:
        accessory, characteristic = await self._locate()
        humidity = normalize_humidity(characteristic.value)
        logger.info("AC Infinity humidity read: %.1f%% from %s", humidity, accessory.display_name)
        return humidity
