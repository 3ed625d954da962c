from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


class HumidifierAction(str, Enum):
    TURN_ON = "turnOn"
    TURN_OFF = "turnOff"
    HOLD = "hold"


@dataclass(frozen=True)
class Thresholds:
    target_humidity: float
    tolerance: float  # allowed swing around the target, >= 0

    @property
    def lower(self) -> float:
        return self.target_humidity - self.tolerance

    @property
    def upper(self) -> float:
        return self.target_humidity + self.tolerance


@dataclass(frozen=True)
class DeviceState:
    is_on: bool = False
    last_toggled_at: Optional[datetime] = None


@dataclass(frozen=True)
class HumiditySample:
    timestamp: datetime
    humidity: float


@dataclass(frozen=True)
class Decision:
    action: HumidifierAction
    reason: str

    @property
    def is_toggle(self) -> bool:
        return self.action is not HumidifierAction.HOLD


@dataclass(frozen=True)
class SimulationAction:
    at: datetime
    humidity: float
    action: HumidifierAction
    reason: str


@dataclass(frozen=True)
class SimulationResult:
    samples: tuple[HumiditySample, ...] = field(default_factory=tuple)
    actions: tuple[SimulationAction, ...] = field(default_factory=tuple)
