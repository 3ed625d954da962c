"""
Tent humidity controller.

Reads humidity from an AC Infinity controller and switches a Meross
humidifier through the Homebridge UI API to keep humidity inside
TARGET_HUMIDITY ± HUMIDITY_TOLERANCE.

Usage:
    humidity-control                      # run the control loop (default)
    humidity-control dry-run --sequence 70,65,62,58 --interval 5
    humidity-control backup               # back up the Homebridge data dir
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys
from typing import Callable, Optional, Sequence

from .core.config import Settings, load_settings
from .core.errors import BackupError, ConfigurationError
from .core.log import configure_logging
from .domain.models import DeviceState
from .drivers.ac_infinity_sensor import AcInfinitySensor
from .drivers.homebridge_client import HomebridgeClient
from .drivers.meross_humidifier import MerossHumidifier
from .services.backup import BackupService
from .services.control_loop import ControlLoop
from .services.simulator import DryRunOptions, simulate

logger = logging.getLogger(__name__)

DEFAULT_SEQUENCE = "70,65,62,58,60,63,66,61,59,62"


def install_signal_handlers(request_stop: Callable[[], object]) -> None:
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, request_stop)


def build_backup(settings: Settings) -> BackupService:
    return BackupService(
        source_dir=settings.homebridge_data_dir,
        destination_dir=settings.backup_dir,
        retention=settings.backup_retention,
        interval_minutes=settings.backup_interval_minutes,
    )


async def run_service(settings: Settings) -> int:
    settings.require_hub_credentials()

    backup = None
    if settings.backup_interval_minutes > 0 or settings.backup_on_shutdown:
        backup = build_backup(settings)

    async with HomebridgeClient(
        base_url=settings.homebridge_base_url,
        username=settings.homebridge_username,
        password=settings.homebridge_password,
        timeout=settings.homebridge_timeout_seconds,
    ) as client:
        control_loop = ControlLoop(
            sensor=AcInfinitySensor(
                client,
                accessory_name=settings.ac_infinity_accessory_name,
                controller_id=settings.ac_infinity_controller_id,
            ),
            humidifier=MerossHumidifier(
                client,
                accessory_name=settings.meross_accessory_name,
                device_id=settings.meross_device_id,
            ),
            thresholds=settings.thresholds(),
            poll_interval_seconds=settings.poll_interval_seconds,
            backup=backup,
            final_backup=settings.backup_on_shutdown,
        )
        install_signal_handlers(control_loop.request_stop)
        await control_loop.run()
    return 0


def run_dry_run(settings: Settings, sequence: Sequence[float], interval: float, initially_on: bool) -> int:
    result = simulate(
        DryRunOptions(
            thresholds=settings.thresholds(),
            sensor_label=settings.ac_infinity_controller_id or "AC Infinity Controller",
            humidifier_label=settings.meross_device_id or "Meross Humidifier",
            humidity_sequence=sequence,
            sample_interval_minutes=interval,
        ),
        DeviceState(is_on=initially_on),
    )

    logger.info("Action timeline:")
    for action in result.actions:
        logger.info(
            "%s | humidity=%s%% | action=%s | reason=%s",
            action.at.isoformat(), action.humidity, action.action.value, action.reason,
        )
    return 0


async def run_backup(settings: Settings) -> int:
    service = build_backup(settings)
    try:
        await service.run_once()
    except BackupError as e:
        logger.error("Backup failed: %s", e)
        return 1

    if service.recurring:
        install_signal_handlers(service.request_stop)
        service.start()
        await service.wait_stopped()
    return 0


def _parse_sequence(raw: str) -> list[float]:
    try:
        return [float(part) for part in raw.split(",") if part.strip()]
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid humidity sequence: {raw}")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Homebridge humidity controller")
    p.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    sub = p.add_subparsers(dest="command")

    sub.add_parser("run", help="Run the control loop (default)")

    dry = sub.add_parser("dry-run", help="Simulate decisions over a humidity sequence")
    dry.add_argument("--sequence", type=_parse_sequence, default=DEFAULT_SEQUENCE,
                     help="Comma-separated humidity readings")
    dry.add_argument("--interval", type=float, default=5.0, help="Minutes between samples")
    dry.add_argument("--initially-on", action="store_true", help="Start with the humidifier on")

    sub.add_parser("backup", help="Back up the Homebridge data directory")
    return p


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = build_parser().parse_args(argv)

    try:
        settings = load_settings()
    except ConfigurationError as e:
        configure_logging()
        logger.error("Fatal error: %s", e)
        sys.exit(1)

    configure_logging(
        level="DEBUG" if args.verbose else settings.log_level,
        log_file=settings.log_file,
    )
    logger.info("Environment summary: %s", settings.summary())

    command = args.command or "run"
    try:
        if command == "dry-run":
            code = run_dry_run(settings, args.sequence, args.interval, args.initially_on)
        elif command == "backup":
            code = asyncio.run(run_backup(settings))
        else:
            code = asyncio.run(run_service(settings))
    except ConfigurationError as e:
        logger.error("Fatal error: %s", e)
        code = 1

    sys.exit(code)


if __name__ == "__main__":
    main()
