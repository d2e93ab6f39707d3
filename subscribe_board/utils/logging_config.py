"""
Process-wide logging for the subscribe board.

``setup_logging`` is called once by the entry point. Everything goes to the
root logger: a file under ``log_dir`` that rolls over at midnight, plus stderr
so container logs carry the same lines. uvicorn's own loggers are routed to
the same handlers instead of its default config.

Rolled files are renamed ``{prefix}_YYYY_MM_DD.log``.
"""
import logging
import sys
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import Callable, List

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(filename)s:%(lineno)d - %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"
ROLLOVER_SUFFIX = "%Y_%m_%d"

# let these propagate to root so they land in the board log
_UVICORN_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")


def rotated_namer(prefix: str) -> Callable[[str], str]:
    """``board.log.2025_12_28`` -> ``board_2025_12_28.log`` in the same directory."""
    def namer(default_name: str) -> str:
        path = Path(default_name)
        day = path.name.rsplit(".", 1)[-1]
        return str(path.with_name(f"{prefix}_{day}.log"))
    return namer


def build_file_handler(log_dir: Path, prefix: str, backup_count: int, use_utc: bool) -> TimedRotatingFileHandler:
    log_dir.mkdir(parents=True, exist_ok=True)
    handler = TimedRotatingFileHandler(
        filename=str(log_dir / f"{prefix}.log"),
        when="midnight",
        backupCount=backup_count,
        utc=use_utc,
        encoding="utf-8",
    )
    handler.suffix = ROLLOVER_SUFFIX
    handler.namer = rotated_namer(prefix)
    return handler


def setup_logging(
    log_file_prefix: str = "subscribe_board",
    log_dir: str | Path = "data",
    backup_count: int = 30,
    log_level: int | str = logging.INFO,
    use_utc: bool = True,
    console: bool = True,
) -> logging.Logger:
    """
    Replace the root handlers with the board's file (and console) handlers.

    Args:
        log_file_prefix: active file is ``{prefix}.log``
        log_dir: created if missing
        backup_count: rolled files kept, one per day
        log_level: level number or name such as ``"DEBUG"``
        use_utc: roll over at UTC midnight instead of local midnight
        console: also write to stderr
    """
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATEFMT)

    handlers: List[logging.Handler] = [build_file_handler(Path(log_dir), log_file_prefix, backup_count, use_utc)]
    if console:
        handlers.append(logging.StreamHandler(sys.stderr))

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()
    for handler in handlers:
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)

    for name in _UVICORN_LOGGERS:
        uvicorn_logger = logging.getLogger(name)
        uvicorn_logger.handlers.clear()
        uvicorn_logger.propagate = True

    return logging.getLogger(__name__)
