from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional

from ..core.errors import HubError
from ..core.timeutil import now_utc
from ..domain.controller import decide
from ..domain.interfaces import BackupTask, Humidifier, HumiditySensor
from ..domain.models import Decision, DeviceState, HumidifierAction, Thresholds

logger = logging.getLogger(__name__)


class LoopState(str, Enum):
    NOT_READY = "not_ready"
    READY = "ready"
    STOPPING = "stopping"
    STOPPED = "stopped"


@dataclass
class LiveState:
    last_humidity: Optional[float] = None
    last_decision: Optional[Decision] = None
    ticks: int = 0
    failed_ticks: int = 0
    bootstrap_attempts: int = 0


class ControlLoop:
    """
    Polls the sensor, runs the decision engine and switches the humidifier.

    The loop starts NOT_READY and only leaves that state once both devices
    have been verified and the humidifier's power state has been read. Any
    error during a tick drops it back to NOT_READY, so the next iteration
    re-verifies before doing anything else. Nothing raised by the devices
    ever escapes run().
    """

    def __init__(
        self,
        sensor: HumiditySensor,
        humidifier: Humidifier,
        thresholds: Thresholds,
        poll_interval_seconds: float = 60,
        backup: Optional[BackupTask] = None,
        final_backup: bool = True,
    ) -> None:
        self._sensor = sensor
        self._humidifier = humidifier
        self._thresholds = thresholds
        self._poll_interval = poll_interval_seconds
        self._backup = backup
        self._final_backup = final_backup

        self._stop = asyncio.Event()
        self._ready = False
        self._stopped = False

        self.device_state = DeviceState()
        self.live = LiveState()

    @property
    def state(self) -> LoopState:
        if self._stopped:
            return LoopState.STOPPED
        if self._stop.is_set():
            return LoopState.STOPPING
        return LoopState.READY if self._ready else LoopState.NOT_READY

    def request_stop(self) -> bool:
        """Ask the loop to shut down. Safe to call repeatedly and from signal handlers."""
        if self._stop.is_set():
            logger.info("Shutdown already in progress; ignoring repeated request")
            return False
        logger.info("Shutdown requested")
        self._stop.set()
        return True

    async def run(self) -> None:
        logger.info(
            "Starting background loop. Target %s%% ± %s%%. Polling every %ss.",
            self._thresholds.target_humidity,
            self._thresholds.tolerance,
            self._poll_interval,
        )
        if self._backup is not None:
            self._backup.start()

        try:
            while not self._stop.is_set():
                if not self._ready:
                    await self._bootstrap()

                if self._ready and not self._stop.is_set():
                    await self._tick()

                # sleep with cancellation awareness
                try:
                    await asyncio.wait_for(self._stop.wait(), timeout=self._poll_interval)
                except asyncio.TimeoutError:
                    pass
        finally:
            await self._finish()

    async def _bootstrap(self) -> None:
        self.live.bootstrap_attempts += 1
        try:
            await self._sensor.verify()
            await self._humidifier.verify()
            is_on = await self._humidifier.read_power_state()
        except HubError as e:
            logger.warning("Devices not reachable yet, retrying in %ss: %s", self._poll_interval, e)
            return
        except Exception as e:
            logger.exception("Unexpected error while verifying devices: %s", e)
            return

        self.device_state = replace(self.device_state, is_on=is_on)
        self._ready = True
        logger.info(
            "Devices verified (%s -> %s); humidifier is %s",
            self._sensor.sensor_id,
            self._humidifier.actuator_id,
            "ON" if is_on else "OFF",
        )

    async def _tick(self) -> None:
        try:
            await self._step()
        except HubError as e:
            self._demote()
            logger.warning("Loop error, re-verifying devices next cycle: %s", e)
        except Exception as e:
            self._demote()
            logger.exception("Unexpected loop error, re-verifying devices next cycle: %s", e)
        else:
            self.live.ticks += 1

    def _demote(self) -> None:
        self._ready = False
        self.live.failed_ticks += 1

    async def _step(self) -> None:
        # 1) Observe the real power state; a human may have toggled it.
        is_on = await self._humidifier.read_power_state()
        if is_on != self.device_state.is_on:
            logger.info(
                "Humidifier was switched %s outside the loop", "ON" if is_on else "OFF"
            )
            self.device_state = replace(self.device_state, is_on=is_on)

        # 2) Read sensor
        humidity = await self._sensor.read_humidity()
        self.live.last_humidity = humidity

        # 3) Decide
        decision = decide(humidity, self._thresholds, self.device_state)
        self.live.last_decision = decision
        logger.info(
            "Decision: humidity=%s%% -> %s (%s)", humidity, decision.action.value, decision.reason
        )

        # 4) Apply (only when the decision toggles)
        if decision.is_toggle:
            desired = decision.action is HumidifierAction.TURN_ON
            await self._humidifier.set_power(desired)
            self.device_state = DeviceState(is_on=desired, last_toggled_at=now_utc())

    async def _finish(self) -> None:
        self._ready = False
        if self._backup is not None:
            # Recurring backups must be finished before the final one starts.
            try:
                await self._backup.stop()
            except Exception as e:
                logger.exception("Stopping recurring backups failed: %s", e)
            if self._final_backup:
                try:
                    logger.info("Running final backup before exit")
                    await self._backup.run_once()
                except Exception as e:
                    logger.exception("Final backup failed: %s", e)

        self._stopped = True
        logger.info("Control loop stopped")
