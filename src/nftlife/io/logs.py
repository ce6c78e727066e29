"""
Logging setup for nftlife (loguru).

Library modules log through ``from loguru import logger`` and never configure sinks;
entry points (the CLI, applications embedding the ledger) call
``configure_logging`` once.

Sinks
- stderr, human-readable, at ``level``.
- Optionally ``<log_dir>/nftlife-{time:YYYY-MM-DD}.log`` with daily rotation and
  30-day retention, enqueued so several processes can share a directory.
"""

from __future__ import annotations

import os
import sys

from loguru import logger

__all__ = ["configure_logging", "LOG_FORMAT"]

LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function} | {message}"

_configured = False


def configure_logging(
    level: str = "INFO",
    log_dir: str | None = None,
    *,
    rotation: str = "1 day",
    retention: str = "30 days",
    force: bool = False,
) -> None:
    """
    Install the nftlife sinks on the global loguru logger.

    Args:
        level (str): Minimum level for every sink ("DEBUG", "INFO", ...).
        log_dir (str | None): Directory for rotated log files; stderr only when None.
        rotation (str): loguru rotation spec for the file sink.
        retention (str): loguru retention spec for the file sink.
        force (bool): Reconfigure even if logging was configured before.

    Notes:
        Calling it again without ``force`` is a no-op, so entry points can call it
        unconditionally.
    """
    global _configured
    if _configured and not force:
        return

    logger.remove()
    logger.add(sys.stderr, level=level.upper(), format=LOG_FORMAT, backtrace=False)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        logger.add(
            os.path.join(log_dir, "nftlife-{time:YYYY-MM-DD}.log"),
            level=level.upper(),
            format=LOG_FORMAT,
            rotation=rotation,
            retention=retention,
            enqueue=True,
            backtrace=True,
            diagnose=False,
        )
    _configured = True
    logger.debug("logging configured (level={}, log_dir={})", level.upper(), log_dir)
