# =======================================================================================
# authintegrate/client/reconciliation.py - Dashboard Recent-Events Cache
# =======================================================================================
import logging
import time
from typing import Any, Callable, Dict, Iterable, List, Optional, Set, Union

from pydantic import ValidationError

from .local_store import LocalStore, MemoryStore
from ..models.schemas import AccessLogWithUser, UserProfile, UserWithProfile

logger = logging.getLogger(__name__)

STORAGE_KEY = "liveAccessLogs"
PLACEHOLDER_NAME = "Unknown"
LIVE_LIMIT = 20
DISPLAY_LIMIT = 50
HIGHLIGHT_SECONDS = 3.0

LogLike = Union[AccessLogWithUser, Dict[str, Any]]
UserLike = Union[UserWithProfile, Dict[str, Any]]


def _is_unresolved(log: AccessLogWithUser) -> bool:
    return not log.name or log.name == PLACEHOLDER_NAME


class LogReconciliationCache:
    """
    Authoritative "recent events" view for one dashboard.

    Three inputs feed it: pushed events (``apply_push``), the polled recent
    log list (``apply_snapshot``) and the polled user roster
    (``apply_roster``), which is only used to resolve display names.

    Pushed entries are kept in a separate live list that survives reloads
    through the local store. ``entries()`` merges live and snapshot, keeps
    the first copy of each id (live wins), sorts newest first and truncates.
    Every operation is safe to repeat with the same input.
    """

    def __init__(
        self,
        store: Optional[LocalStore] = None,
        live_limit: int = LIVE_LIMIT,
        display_limit: int = DISPLAY_LIMIT,
        highlight_seconds: float = HIGHLIGHT_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.store = store if store is not None else MemoryStore()
        self.live_limit = live_limit
        self.display_limit = display_limit
        self.highlight_seconds = highlight_seconds
        self._clock = clock

        self._live: List[AccessLogWithUser] = self._rehydrate()
        self._snapshot: List[AccessLogWithUser] = []
        self._roster: Dict[int, UserProfile] = {}
        self._highlight_until: Dict[int, float] = {}

    # ---------- persistence ----------

    def _rehydrate(self) -> List[AccessLogWithUser]:
        try:
            saved = self.store.get(STORAGE_KEY)
        except (OSError, ValueError) as e:
            logger.warning("Could not read saved live logs: %s", e)
            return []
        if not isinstance(saved, list):
            return []

        live = []
        for item in saved:
            try:
                live.append(AccessLogWithUser.model_validate(item))
            except ValidationError:
                logger.debug("Dropping malformed saved log entry: %r", item)
        return live[: self.live_limit]

    def _persist(self) -> None:
        self.store.set(STORAGE_KEY, [log.model_dump(mode="json") for log in self._live])

    # ---------- inputs ----------

    def _enrich(self, log: AccessLogWithUser) -> AccessLogWithUser:
        if not _is_unresolved(log) or log.userId is None:
            return log
        profile = self._roster.get(log.userId)
        if profile is None:
            return log
        return log.model_copy(update={"name": profile.name, "email": profile.email})

    def apply_push(self, log: LogLike) -> bool:
        """Add one pushed event. Returns False when the id is already live."""
        log = AccessLogWithUser.model_validate(log)
        if any(existing.id == log.id for existing in self._live):
            return False

        self._live = [self._enrich(log)] + self._live
        del self._live[self.live_limit:]
        self._persist()
        now = self._clock()
        self._prune_highlights(now)
        self._highlight_until[log.id] = now + self.highlight_seconds
        return True

    def apply_snapshot(self, logs: Iterable[LogLike]) -> None:
        """Replace the polled snapshot with the latest REST result."""
        self._snapshot = [AccessLogWithUser.model_validate(log) for log in logs]

    def apply_roster(self, users: Iterable[UserLike]) -> int:
        """
        Replace the roster and back-fill live entries that still lack a name.
        Returns how many entries were healed.
        """
        roster: Dict[int, UserProfile] = {}
        for user in users:
            user = UserWithProfile.model_validate(user)
            if user.profile is not None:
                roster[user.id] = user.profile
        self._roster = roster

        healed = 0
        updated = []
        for log in self._live:
            enriched = self._enrich(log)
            if enriched is not log:
                healed += 1
            updated.append(enriched)

        if healed:
            self._live = updated
            self._persist()
        return healed

    # ---------- views ----------

    @property
    def live(self) -> List[AccessLogWithUser]:
        return list(self._live)

    @property
    def snapshot(self) -> List[AccessLogWithUser]:
        return list(self._snapshot)

    def entries(self) -> List[AccessLogWithUser]:
        seen: Set[int] = set()
        merged = []
        for log in self._live + self._snapshot:
            if log.id in seen:
                continue
            seen.add(log.id)
            merged.append(log)
        # stable: equal timestamps keep live-first order
        merged.sort(key=lambda log: log.createdAt, reverse=True)
        return merged[: self.display_limit]

    def display_name(self, log: AccessLogWithUser) -> str:
        if not _is_unresolved(log):
            return log.name
        profile = self._roster.get(log.userId) if log.userId is not None else None
        return profile.name if profile is not None else PLACEHOLDER_NAME

    def highlighted_ids(self, now: Optional[float] = None) -> Set[int]:
        """Ids that arrived by push within the highlight window."""
        now = self._clock() if now is None else now
        self._prune_highlights(now)
        return set(self._highlight_until)

    def _prune_highlights(self, now: float) -> None:
        for log_id in [i for i, until in self._highlight_until.items() if until <= now]:
            del self._highlight_until[log_id]
