"""Logger setup shared by the docsmith CLIs."""

import logging
import os
from typing import Optional

_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
_configured = False


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
) -> None:
    """Attach a console handler, and a file handler when asked, to the docsmith logger.

    Only the first call per process takes effect. DOCSMITH_LOG_LEVEL and
    DOCSMITH_LOG_FILE override the arguments; an unopenable log file falls
    back to console output with a warning.
    """
    global _configured
    if _configured:
        return

    log_level = getattr(logging, level.upper(), logging.INFO)

    env_level = os.getenv("DOCSMITH_LOG_LEVEL")
    if env_level:
        log_level = getattr(logging, env_level.upper(), log_level)

    env_file = os.getenv("DOCSMITH_LOG_FILE")
    if env_file is not None:
        log_file = env_file

    root = logging.getLogger("docsmith")
    root.setLevel(log_level)
    root.handlers.clear()

    formatter = logging.Formatter(_LOG_FORMAT)

    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(log_level)
    stream_handler.setFormatter(formatter)
    root.addHandler(stream_handler)

    if log_file:
        try:
            file_handler = logging.FileHandler(log_file, encoding="utf-8")
            file_handler.setLevel(log_level)
            file_handler.setFormatter(formatter)
            root.addHandler(file_handler)
        except OSError:
            root.warning("Could not open log file %s, logging to stderr only", log_file)

    _configured = True


def get_logger(name: str) -> logging.Logger:
    """Logger for ``name``, prefixed with ``docsmith.`` unless it already is."""
    if name.startswith("docsmith.") or name == "docsmith":
        return logging.getLogger(name)
    return logging.getLogger(f"docsmith.{name}")
