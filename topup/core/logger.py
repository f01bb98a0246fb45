# topup/core/logger.py - centralized logging configuration
import os
import logging
from logging.handlers import RotatingFileHandler

from topup.core import config

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level=None, log_dir=None):
    """Attach console (and optionally rotating file) handlers to the root logger."""
    level = level or config.LOG_LEVEL
    log_dir = log_dir if log_dir is not None else config.LOG_DIR

    root = logging.getLogger()
    root.setLevel(level)

    # Avoid adding handlers multiple times
    if getattr(root, "_topup_configured", False):
        return root

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(console_handler)

    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        file_handler = RotatingFileHandler(
            os.path.join(log_dir, "topup.log"),
            maxBytes=1024 * 1024,
            backupCount=10
        )
        file_handler.setFormatter(logging.Formatter(
            LOG_FORMAT + " [in %(pathname)s:%(lineno)d]"
        ))
        root.addHandler(file_handler)

    root._topup_configured = True
    return root
