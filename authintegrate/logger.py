# =======================================================================================
# authintegrate/logger.py - Logging Setup
# =======================================================================================
import logging
import sys

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def setup_logging(debug: bool = False) -> logging.Logger:
    """
    Configure the package logger once and return it.

    Child loggers (``authintegrate.serial``, ``authintegrate.events`` ...)
    propagate here, so modules just call ``logging.getLogger(__name__)``.
    """
    log = logging.getLogger("authintegrate")
    log.setLevel(logging.DEBUG if debug else logging.INFO)

    # Avoid duplicate handlers when create_app() runs more than once
    if not log.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        log.addHandler(handler)

    return log
