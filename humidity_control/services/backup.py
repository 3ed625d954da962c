from __future__ import annotations

import asyncio
import logging
import shutil
from pathlib import Path
from typing import Optional

from ..core.errors import BackupError
from ..core.timeutil import now_utc

logger = logging.getLogger(__name__)

BACKUP_PREFIX = "homebridge-backup-"


def _timestamp_suffix() -> str:
    return now_utc().strftime("%Y-%m-%dT%H-%M-%S-%fZ")


def copy_backup(source_dir: Path, destination_dir: Path, retention: int) -> Path:
    """Copy source_dir into a timestamped folder under destination_dir, then prune."""
    if not source_dir.is_dir():
        raise BackupError(f"Homebridge data directory not found at {source_dir}.")

    target = destination_dir / f"{BACKUP_PREFIX}{_timestamp_suffix()}"
    logger.info("Creating backup from %s to %s ...", source_dir, target)
    try:
        destination_dir.mkdir(parents=True, exist_ok=True)
        shutil.copytree(source_dir, target, dirs_exist_ok=True)
    except OSError as e:
        raise BackupError(f"Backup of {source_dir} failed: {e}") from e
    logger.info("Backup completed.")

    prune_backups(destination_dir, retention)
    return target


def prune_backups(directory: Path, retention: int) -> list[Path]:
    """Delete all but the newest `retention` backups. Returns the removed paths."""
    backups = sorted(
        (p for p in directory.iterdir() if p.is_dir() and p.name.startswith(BACKUP_PREFIX)),
        key=lambda p: p.name[len(BACKUP_PREFIX):],
        reverse=True,
    )
    removed = []
    for old in backups[retention:]:
        logger.info("Pruning old backup %s", old)
        try:
            shutil.rmtree(old)
        except OSError as e:
            raise BackupError(f"Could not prune {old}: {e}") from e
        removed.append(old)
    return removed


class BackupService:
    """Backs up the Homebridge data directory once, or on a recurring timer."""

    def __init__(
        self,
        source_dir: str | Path,
        destination_dir: str | Path,
        retention: int = 5,
        interval_minutes: float = 0,
    ) -> None:
        self._source = Path(source_dir).resolve()
        self._destination = Path(destination_dir).resolve()
        self._retention = retention
        self._interval_s = interval_minutes * 60

        self._task: Optional[asyncio.Task] = None
        self._stop = asyncio.Event()

    @property
    def recurring(self) -> bool:
        return self._interval_s > 0

    async def run_once(self) -> Path:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            None, copy_backup, self._source, self._destination, self._retention
        )

    def start(self) -> None:
        if not self.recurring or self._task is not None:
            return
        self._stop.clear()
        self._task = asyncio.create_task(self._run(), name="backup_loop")

    def request_stop(self) -> None:
        self._stop.set()

    async def stop(self) -> None:
        self.request_stop()
        await self.wait_stopped()

    async def wait_stopped(self) -> None:
        if self._task:
            await self._task
            self._task = None

    async def _run(self) -> None:
        logger.info("Scheduling recurring backups every %s minute(s).", self._interval_s / 60)
        while not self._stop.is_set():
            try:
                await asyncio.wait_for(self._stop.wait(), timeout=self._interval_s)
            except asyncio.TimeoutError:
                pass
            if self._stop.is_set():
                break

            try:
                await self.run_once()
            except Exception as e:
                logger.exception("Recurring backup failed: %s", e)

        logger.info("Recurring backups stopped")
