from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional, Sequence

from ..core.timeutil import now_utc
from ..domain.controller import decide
from ..domain.models import (
    DeviceState,
    HumidifierAction,
    HumiditySample,
    SimulationAction,
    SimulationResult,
    Thresholds,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DryRunOptions:
    thresholds: Thresholds
    sensor_label: str
    humidifier_label: str
    humidity_sequence: Sequence[float]
    sample_interval_minutes: float


def simulate(
    options: DryRunOptions,
    initial_state: DeviceState,
    start: Optional[datetime] = None,
) -> SimulationResult:
    """Replay a humidity sequence through the decision engine without touching devices."""
    start = start or now_utc()
    state = initial_state
    samples: list[HumiditySample] = []
    actions: list[SimulationAction] = []

    logger.info("Starting dry run for %s -> %s", options.sensor_label, options.humidifier_label)
    logger.info(
        "Target %s%% ± %s%% with %sm intervals.",
        options.thresholds.target_humidity,
        options.thresholds.tolerance,
        options.sample_interval_minutes,
    )

    for index, reading in enumerate(options.humidity_sequence):
        sample = HumiditySample(
            timestamp=start + timedelta(minutes=index * options.sample_interval_minutes),
            humidity=float(reading),
        )
        samples.append(sample)

        decision = decide(sample.humidity, options.thresholds, state)
        if decision.is_toggle:
            state = DeviceState(is_on=decision.action is HumidifierAction.TURN_ON, last_toggled_at=sample.timestamp)

        actions.append(
            SimulationAction(
                at=sample.timestamp,
                humidity=sample.humidity,
                action=decision.action,
                reason=decision.reason,
            )
        )
        logger.info(
            "Sample %d: humidity %s%% -> action=%s (%s)",
            index + 1, sample.humidity, decision.action.value, decision.reason,
        )

    logger.info("Dry run finished.")
    return SimulationResult(samples=tuple(samples), actions=tuple(actions))
