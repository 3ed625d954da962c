"""Pytest configuration and shared fakes for humidity_control tests."""

import asyncio
from typing import Callable, Optional

import pytest

from humidity_control.domain.models import Thresholds


class FakeSensor:
    """Scripted humidity sensor. Readings may include exceptions to raise."""

    sensor_id = "fake-sensor"

    def __init__(self, readings, verify_errors=()):
        self.readings = list(readings)
        self.verify_errors = list(verify_errors)
        self.verify_calls = 0
        self.read_calls = 0
        self.on_exhausted: Optional[Callable[[], object]] = None
        self.read_event = asyncio.Event()

    async def verify(self) -> None:
        self.verify_calls += 1
        if self.verify_errors:
            raise self.verify_errors.pop(0)

    async def read_humidity(self) -> float:
        self.read_calls += 1
        self.read_event.set()
        last = len(self.readings) == 1
        item = self.readings[0] if last else self.readings.pop(0)
        if last and self.on_exhausted is not None:
            self.on_exhausted()
        if isinstance(item, Exception):
            raise item
        return item


class FakeHumidifier:
    """Humidifier that records writes. power_reads overrides read_power_state in order."""

    actuator_id = "fake-humidifier"

    def __init__(self, is_on=False, power_reads=(), verify_errors=()):
        self.is_on = is_on
        self.power_reads = list(power_reads)
        self.verify_errors = list(verify_errors)
        self.verify_calls = 0
        self.set_calls = []

    async def verify(self) -> None:
        self.verify_calls += 1
        if self.verify_errors:
            raise self.verify_errors.pop(0)

    async def read_power_state(self) -> bool:
        if self.power_reads:
            value = self.power_reads.pop(0)
            if isinstance(value, Exception):
                raise value
            return value
        return self.is_on

    async def set_power(self, on: bool) -> None:
        self.set_calls.append(on)
        self.is_on = on


class FakeBackup:
    def __init__(self, error: Optional[Exception] = None):
        self.error = error
        self.calls = []

    def start(self) -> None:
        self.calls.append("start")

    async def stop(self) -> None:
        self.calls.append("stop")

    async def run_once(self) -> None:
        self.calls.append("run_once")
        if self.error is not None:
            raise self.error


class FakeHubClient:
    """Stands in for HomebridgeClient at the connector seam."""

    def __init__(self, accessories):
        self.accessories = accessories
        self.writes = []

    async def list_accessories(self):
        return self.accessories

    async def set_characteristic(self, accessory_id, characteristic_type, value):
        self.writes.append((accessory_id, characteristic_type, value))


@pytest.fixture
def thresholds() -> Thresholds:
    return Thresholds(target_humidity=62, tolerance=3)


@pytest.fixture
def hub_accessories_payload() -> list[dict]:
    """Accessory records as returned by GET /api/accessories."""
    return [
        {
            "aid": 1,
            "uuid": "ac-uuid",
            "displayName": "AC Infinity Grow Tent",
            "plugin": "homebridge-acinfinity",
            "services": [
                {
                    "iid": 1,
                    "type": "HumiditySensor",
                    "name": "Tent Humidity",
                    "characteristics": [
                        {"iid": 2, "type": "Name", "value": "Tent Humidity"},
                        {"iid": 3, "type": "CurrentRelativeHumidity", "value": 45},
                    ],
                }
            ],
        },
        {
            "aid": 2,
            "uuid": "meross-uuid",
            "displayName": "Meross Humidifier",
            "plugin": "homebridge-meross",
            "services": [
                {
                    "iid": 3,
                    "type": "Fan",
                    "name": "Humidifier Fan",
                    "characteristics": [{"iid": 4, "type": "On", "value": False}],
                }
            ],
        },
    ]
