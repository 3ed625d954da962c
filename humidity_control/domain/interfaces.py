from __future__ import annotations
from typing import Protocol, runtime_checkable


@runtime_checkable
class HumiditySensor(Protocol):
    sensor_id: str

    async def verify(self) -> None:
        ...

    async def read_humidity(self) -> float:
        ...


@runtime_checkable
class Humidifier(Protocol):
    actuator_id: str

    async def verify(self) -> None:
        ...

    async def read_power_state(self) -> bool:
        ...

    async def set_power(self, on: bool) -> None:
        ...


@runtime_checkable
class BackupTask(Protocol):
    def start(self) -> None:
        ...

    async def stop(self) -> None:
        ...

    async def run_once(self) -> None:
        ...
