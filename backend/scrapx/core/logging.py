"""
Logging setup: console plus optional rotating file output, driven by settings
"""

import logging
import os
from logging.handlers import RotatingFileHandler

from ..config import settings

_configured = False


def setup_logging() -> None:
    """Configure the root logger once from settings"""
    global _configured
    if _configured:
        return

    level = getattr(logging, settings.log_level.upper(), logging.INFO)
    formatter = logging.Formatter(settings.log_format)

    root = logging.getLogger()
    root.setLevel(level)

    if settings.log_to_console:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        root.addHandler(console_handler)

    if settings.log_to_file:
        log_dir = os.path.dirname(settings.log_file_path)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        file_handler = RotatingFileHandler(
            settings.log_file_path,
            maxBytes=settings.log_max_size_mb * 1024 * 1024,
            backupCount=settings.log_backup_count,
        )
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    # SQL echo is handled by the engine; keep third-party chatter down in minimal mode
    if settings.log_verbosity != "full":
        for noisy in ("httpx", "httpcore", "urllib3", "web3", "botocore"):
            logging.getLogger(noisy).setLevel(logging.WARNING)

    _configured = True


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
