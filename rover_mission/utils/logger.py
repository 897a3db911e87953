"""
Logging configuration

Mission states log their lifecycle (entering, cancelling, finished) at
INFO, so the default INFO level gives a readable trace of a mission.
Per-message traffic on the bus and action channels is DEBUG only.
"""

import logging
import sys
from pathlib import Path
from typing import Optional, Union

DEFAULT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

# Loggers that emit one record per message on the bus
CHANNEL_LOGGERS = (
    "rover_mission.interfaces.bus",
    "rover_mission.interfaces.action_client",
)


def _resolve_level(level: Union[int, str]) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level: {level}")
    return resolved


def setup_logging(level: Union[int, str] = logging.INFO,
                  log_file: Optional[str] = None,
                  log_format: Optional[str] = None,
                  trace_channels: bool = False):
    """
    Configure the root logger for a mission run

    Args:
        level: Logging level as int or name ("DEBUG", "info", ...)
        log_file: Optional path to a log file, parent directories are created
        log_format: Optional custom format string
        trace_channels: Let per-message channel records through; by
            default the channel loggers stay at INFO or above
    """
    level = _resolve_level(level)
    formatter = logging.Formatter(log_format or DEFAULT_FORMAT,
                                  datefmt="%Y-%m-%d %H:%M:%S")

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)

    channel_level = logging.NOTSET if trace_channels else max(level, logging.INFO)
    for name in CHANNEL_LOGGERS:
        logging.getLogger(name).setLevel(channel_level)


def setup_logging_from_config(config, debug: bool = False) -> None:
    """Apply the logging section of a Config (debug forces DEBUG with channel tracing)"""
    if debug:
        setup_logging(logging.DEBUG, config.logging.log_file or None, trace_channels=True)
    else:
        setup_logging(config.logging.level, config.logging.log_file or None)
