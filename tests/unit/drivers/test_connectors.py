"""Tests for the AC Infinity sensor and Meross humidifier connectors."""

import pytest

from humidity_control.core.errors import AccessoryNotFound, CharacteristicMissing, InvalidValue
from humidity_control.drivers.ac_infinity_sensor import AcInfinitySensor, normalize_humidity
from humidity_control.drivers.meross_humidifier import MerossHumidifier, parse_power_state
from humidity_control.drivers.schemas import HubAccessory
from tests.conftest import FakeHubClient


def _accessories(payload):
    return [HubAccessory.model_validate(a) for a in payload]


def _with_characteristic_value(payload, index, value):
    payload[index]["services"][0]["characteristics"][-1]["value"] = value
    return _accessories(payload)


@pytest.mark.asyncio
async def test_sensor_verifies_and_reads_humidity(hub_accessories_payload):
    client = FakeHubClient(_accessories(hub_accessories_payload))
    sensor = AcInfinitySensor(client)

    await sensor.verify()
    assert await sensor.read_humidity() == 45


@pytest.mark.asyncio
async def test_sensor_rescales_fractional_humidity(hub_accessories_payload):
    client = FakeHubClient(_with_characteristic_value(hub_accessories_payload, 0, 0.45))
    assert await AcInfinitySensor(client).read_humidity() == pytest.approx(45)


@pytest.mark.asyncio
async def test_sensor_rejects_non_numeric_humidity(hub_accessories_payload):
    client = FakeHubClient(_with_characteristic_value(hub_accessories_payload, 0, "n/a"))
    with pytest.raises(InvalidValue):
        await AcInfinitySensor(client).read_humidity()


@pytest.mark.asyncio
async def test_sensor_missing_characteristic_mentions_expose_sensors():
    client = FakeHubClient(
        _accessories(
            [
                {
                    "uuid": "ac-uuid",
                    "displayName": "AC Infinity Grow Tent",
                    "plugin": "homebridge-acinfinity",
                    "services": [{"type": "AccessoryInformation", "characteristics": []}],
                }
            ]
        )
    )
    with pytest.raises(CharacteristicMissing, match="exposeSensors"):
        await AcInfinitySensor(client).verify()


@pytest.mark.asyncio
async def test_sensor_not_found():
    client = FakeHubClient(
        _accessories([{"uuid": "x", "displayName": "Lamp", "services": [{"type": "Lightbulb"}]}])
    )
    with pytest.raises(AccessoryNotFound):
        await AcInfinitySensor(client).verify()


@pytest.mark.asyncio
async def test_humidifier_verifies_and_sets_power(hub_accessories_payload):
    client = FakeHubClient(_accessories(hub_accessories_payload))
    humidifier = MerossHumidifier(client)

    await humidifier.verify()
    await humidifier.set_power(True)

    assert client.writes == [("meross-uuid", "On", True)]


@pytest.mark.asyncio
async def test_humidifier_reads_numeric_power_state(hub_accessories_payload):
    client = FakeHubClient(_with_characteristic_value(hub_accessories_payload, 1, 1))
    assert await MerossHumidifier(client).read_power_state() is True


@pytest.mark.asyncio
async def test_humidifier_prefers_configured_name(hub_accessories_payload):
    hub_accessories_payload.append(
        {
            "uuid": "second-meross",
            "displayName": "Bedroom Humidifier",
            "plugin": "homebridge-meross",
            "services": [{"type": "Switch", "characteristics": [{"type": "On", "value": True}]}],
        }
    )
    client = FakeHubClient(_accessories(hub_accessories_payload))
    humidifier = MerossHumidifier(client, accessory_name="Bedroom Humidifier")

    await humidifier.set_power(False)

    assert client.writes == [("second-meross", "On", False)]


@pytest.mark.asyncio
async def test_humidifier_missing_power_characteristic():
    client = FakeHubClient(
        _accessories(
            [
                {
                    "uuid": "meross-uuid",
                    "displayName": "Meross Humidifier",
                    "plugin": "homebridge-meross",
                    "services": [{"type": "AccessoryInformation", "characteristics": [{"type": "Model", "value": "MSXH0"}]}],
                }
            ]
        )
    )
    with pytest.raises(CharacteristicMissing):
        await MerossHumidifier(client).verify()


@pytest.mark.parametrize(
    "raw, expected",
    [
        (45, 45.0),
        ("55.5", 55.5),
        (0.45, 45.0),
        (1, 100.0),
        (0, 0.0),
        (100, 100.0),
    ],
)
def test_normalize_humidity(raw, expected):
    assert normalize_humidity(raw) == pytest.approx(expected)


@pytest.mark.parametrize("raw", [None, True, "abc", float("nan"), float("inf"), {"v": 1}])
def test_normalize_humidity_rejects(raw):
    with pytest.raises(InvalidValue):
        normalize_humidity(raw)


@pytest.mark.parametrize(
    "raw, expected",
    [
        (True, True),
        (False, False),
        (1, True),
        (0, False),
        ("TRUE", True),
        ("1", True),
        ("false", False),
        ("off", False),
    ],
)
def test_parse_power_state(raw, expected):
    assert parse_power_state(raw) is expected


@pytest.mark.parametrize("raw", [None, [True], {"on": True}])
def test_parse_power_state_rejects(raw):
    with pytest.raises(InvalidValue):
        parse_power_state(raw)
