# =======================================================================================
# authintegrate/client/__init__.py - Dashboard Client Package
# =======================================================================================
from .analytics import calculate_success_rate, daily_trend, status_distribution, user_summary
from .dashboard import ConnectionState, DashboardSession
from .local_store import JsonFileStore, MemoryStore
from .reconciliation import LogReconciliationCache

__all__ = [
    "calculate_success_rate", "daily_trend", "status_distribution", "user_summary",
    "ConnectionState", "DashboardSession", "JsonFileStore", "MemoryStore",
    "LogReconciliationCache",
]
