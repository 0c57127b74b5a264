import os
import sys
from pathlib import Path

from loguru import logger

LOG_FORMAT = "{time} | {level} | {file.path}:{line} | {message}"

_console_sink = None


def pygevcam_home() -> Path:
    return Path(os.environ.get("PYGEVCAM_HOME", Path.home() / ".pygevcam"))


def set_console_level(level="WARNING"):
    """Replace the stderr sink, the examples print their own report on stdout"""
    global _console_sink
    if _console_sink is None:
        # drop the loguru default handler
        logger.remove()
    else:
        logger.remove(_console_sink)
    _console_sink = logger.add(sys.stderr, level=level)
    return _console_sink


def add_logfile(log_dir=None):
    log_dir = Path(log_dir) if log_dir is not None else pygevcam_home() / "logs"
    if not log_dir.exists():
        log_dir.mkdir(parents=True)

    logfile_path = log_dir / "log.txt"
    sink_id = logger.add(
        logfile_path,
        rotation="10 MB",
        # use gz compression for the very redundant text messages
        compression="gz",
        format=LOG_FORMAT,
    )
    logger.info(f"logger - opened logfile at {logfile_path!s}")
    return sink_id
