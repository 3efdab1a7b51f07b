"""
Logging setup for graphalign.
Console output plus an optional per-run log file.
"""
import logging
import sys
from pathlib import Path
from typing import Optional, Union

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
CONSOLE_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"

# Marker attribute for handlers installed here, so repeated setup replaces them.
_HANDLER_FLAG = "_graphalign_handler"


def setup_logging(
    run_dir: Optional[Path] = None,
    log_file: str = "graphalign.log",
    level: Union[int, str] = logging.INFO,
    console: bool = True,
) -> logging.Logger:
    """
    Configure the ``graphalign`` package logger.

    Args:
        run_dir: Directory for the log file (no file logging when None)
        log_file: Log file name inside ``run_dir``
        level: Logging level (int or name)
        console: Also log to stdout

    Returns:
        The configured package logger
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    logger = logging.getLogger("graphalign")
    logger.setLevel(level)

    for handler in list(logger.handlers):
        if getattr(handler, _HANDLER_FLAG, False):
            logger.removeHandler(handler)
            handler.close()

    if console:
        stream_handler = logging.StreamHandler(sys.stdout)
        stream_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt="%H:%M:%S"))
        stream_handler.setLevel(level)
        setattr(stream_handler, _HANDLER_FLAG, True)
        logger.addHandler(stream_handler)

    if run_dir is not None:
        run_dir = Path(run_dir)
        run_dir.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(run_dir / log_file, mode="a", encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        file_handler.setLevel(logging.DEBUG if level <= logging.DEBUG else level)
        setattr(file_handler, _HANDLER_FLAG, True)
        logger.addHandler(file_handler)

    return logger


def release_file_logging(run_dir: Optional[Path] = None):
    """
    Detach and close file handlers installed by ``setup_logging``.

    Only handlers writing under ``run_dir`` are released when it is given.
    Console handlers stay in place.
    """
    logger = logging.getLogger("graphalign")
    prefix = str(Path(run_dir).resolve()) if run_dir is not None else None
    for handler in list(logger.handlers):
        if not getattr(handler, _HANDLER_FLAG, False) or not isinstance(handler, logging.FileHandler):
            continue
        if prefix is not None and not str(Path(handler.baseFilename).resolve()).startswith(prefix):
            continue
        logger.removeHandler(handler)
        handler.close()
