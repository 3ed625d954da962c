import logging
from logging.handlers import RotatingFileHandler
from typing import Optional


def configure_logging(level: str = "INFO", log_file: Optional[str] = "humidity-control.log") -> None:
    logger = logging.getLogger()
    logger.setLevel(level.upper())

    fmt = logging.Formatter(
        "%(asctime)s %(levelname)s %(name)s - %(message)s"
    )

    # Console
    ch = logging.StreamHandler()
    ch.setFormatter(fmt)
    logger.addHandler(ch)

    # Rotating file (long-running service on a small box)
    if log_file:
        fh = RotatingFileHandler(
            log_file, maxBytes=2_000_000, backupCount=5
        )
        fh.setFormatter(fmt)
        logger.addHandler(fh)

    # Silence noisy httpx request logging
    logging.getLogger("httpx").setLevel(logging.WARNING)
