# =======================================================================================
# authintegrate/workers/__init__.py - Workers Package
# =======================================================================================
from .serial_worker import SerialWorker

__all__ = ["SerialWorker"]
