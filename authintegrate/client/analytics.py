# =======================================================================================
# authintegrate/client/analytics.py - Dashboard Analytics
# =======================================================================================
import math
from datetime import date, timedelta
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from ..models.enums import ACCESS_RESULTS
from ..models.schemas import AccessLogWithUser, SystemStats


def _count(value: Any) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


def calculate_success_rate(stats: Union[SystemStats, Mapping[str, Any], None]) -> int:
    """Today's granted share of granted + denied attempts, as a whole percent (0 with no attempts)."""
    if stats is None:
        return 0
    if isinstance(stats, SystemStats):
        stats = stats.model_dump()
    granted = _count(stats.get("accessGrantedToday"))
    denied = _count(stats.get("accessDeniedToday"))
    attempts = granted + denied
    if attempts == 0:
        return 0
    # half-up, like the dashboard's Math.round
    return int(math.floor(granted / attempts * 100 + 0.5))


def status_distribution(logs: Iterable[AccessLogWithUser]) -> Dict[str, int]:
    counts = {result: 0 for result in ACCESS_RESULTS}
    for log in logs:
        counts[log.result] += 1
    return counts


def daily_trend(
    logs: Iterable[AccessLogWithUser], days: int = 7, today: Optional[date] = None
) -> List[Dict[str, Any]]:
    """Per-day granted/denied/registered counts for the last ``days`` days, oldest first."""
    today = today or date.today()
    buckets = {}
    for offset in range(days - 1, -1, -1):
        day = today - timedelta(days=offset)
        buckets[day] = {"date": day.strftime("%b %d"), "granted": 0, "denied": 0, "registered": 0}

    for log in logs:
        bucket = buckets.get(log.createdAt.date())
        if bucket is not None:
            bucket[log.result.lower()] += 1

    return list(buckets.values())


def user_summary(logs: Iterable[AccessLogWithUser], user_id: int) -> Dict[str, int]:
    own = [log for log in logs if log.userId == user_id]
    return {
        "total": len(own),
        "granted": sum(1 for log in own if log.result == "GRANTED"),
        "denied": sum(1 for log in own if log.result == "DENIED"),
    }
