"""Logging configuration: an optional log file, trimmed at startup."""
import logging
import os
from typing import Optional

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def trim_log(path: str, max_bytes: int, percent: int) -> bool:
    """Drop the oldest `percent`% of lines once the file exceeds max_bytes."""
    try:
        if os.path.getsize(path) <= max_bytes:
            return False
        with open(path, encoding='utf-8', errors='replace') as f:
            lines = f.readlines()
    except OSError:
        return False

    percent = max(0, min(percent, 100))
    drop = len(lines) * percent // 100
    drop = min(drop, len(lines) - 1) if lines else 0
    if drop <= 0:
        return False

    with open(path, 'w', encoding='utf-8') as f:
        f.writelines(lines[drop:])
    return True


def setup_logging(log_path: Optional[str] = None, enabled: bool = False,
                  max_kb: int = 1024, trim_percent: int = 50,
                  level: int = logging.DEBUG) -> None:
    """Configure the root logger (idempotent).

    Without a log file nothing is emitted: the menus own the terminal.
    """
    root_logger = logging.getLogger()
    if root_logger.handlers:
        return

    logging.addLevelName(logging.WARNING, "WARN")

    if not enabled or not log_path:
        root_logger.addHandler(logging.NullHandler())
        return

    os.makedirs(os.path.dirname(os.path.abspath(log_path)), exist_ok=True)
    trimmed = trim_log(log_path, max_kb * 1024, trim_percent)

    file_handler = logging.FileHandler(log_path, encoding="utf-8")
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT))

    root_logger.setLevel(level)
    root_logger.addHandler(file_handler)

    if trimmed:
        logging.getLogger(__name__).info(
            "Trimmed oldest %d%% of %s", trim_percent, log_path)
