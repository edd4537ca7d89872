# =======================================================================================
# authintegrate/services/storage_service.py - Persistence Gateway
# =======================================================================================
from datetime import date, datetime, time
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy import DateTime, bindparam, text

from ..database import DatabaseManager
from ..models.schemas import (
    AccessEvent,
    AccessLogWithUser,
    HardwareUser,
    ProfileRecord,
    SystemStats,
    UserProfile,
    UserWithProfile,
)

# Columns shared by every joined log query
_LOG_SELECT = """
    SELECT
        l.id          AS log_id,
        l.user_id     AS user_id,
        l.result      AS result,
        l.note        AS note,
        l.created_at  AS created_at,
        p.name        AS p_name,
        p.email       AS p_email,
        p.mobile      AS p_mobile
    FROM access_logs l
    LEFT JOIN user_profiles p ON l.user_id = p.user_id
"""

_USER_SELECT = """
    SELECT
        u.id            AS id,
        u.finger_id     AS finger_id,
        u.created_at    AS created_at,
        p.id            AS profile_id,
        p.user_id       AS p_user_id,
        p.name          AS p_name,
        p.email         AS p_email,
        p.mobile        AS p_mobile,
        p.role          AS p_role,
        p.created_at    AS p_created_at
    FROM users u
    LEFT JOIN user_profiles p ON u.id = p.user_id
"""

_PROFILE_COLUMNS = "id, user_id, name, email, mobile, role, password_hash, created_at"

UPDATABLE_PROFILE_FIELDS = ("name", "email", "mobile", "role")


class StorageService:
    """
    CRUD surface over hardware users, profiles and access logs.

    Every method opens its own transaction. Store failures
    (``SQLAlchemyError`` and subclasses) are not caught here; the caller
    decides how to report them.
    """

    def __init__(self, db: DatabaseManager):
        self.db = db

    # ---------- helpers ----------

    @staticmethod
    def _now() -> datetime:
        return datetime.now()

    @staticmethod
    def _map_log(row: Mapping[str, Any]) -> AccessLogWithUser:
        return AccessLogWithUser(
            id=row["log_id"],
            userId=row["user_id"],
            result=row["result"],
            note=row["note"],
            createdAt=row["created_at"],
            name=row["p_name"],
            email=row["p_email"],
            mobile=row["p_mobile"],
        )

    @staticmethod
    def _map_user(row: Mapping[str, Any]) -> UserWithProfile:
        profile = None
        if row["profile_id"] is not None:
            profile = UserProfile(
                id=row["profile_id"],
                userId=row["p_user_id"],
                name=row["p_name"],
                email=row["p_email"],
                mobile=row["p_mobile"],
                role=row["p_role"],
                createdAt=row["p_created_at"],
            )
        return UserWithProfile(
            id=row["id"],
            fingerId=row["finger_id"],
            createdAt=row["created_at"],
            profile=profile,
        )

    @staticmethod
    def _map_profile(row: Mapping[str, Any]) -> ProfileRecord:
        return ProfileRecord(
            id=row["id"],
            userId=row["user_id"],
            name=row["name"],
            email=row["email"],
            mobile=row["mobile"],
            role=row["role"],
            passwordHash=row["password_hash"],
            createdAt=row["created_at"],
        )

    def _fetch_logs(self, where: str, params: Dict[str, Any], limit: Optional[int] = None) -> List[AccessLogWithUser]:
        sql = _LOG_SELECT + where + " ORDER BY l.created_at DESC, l.id DESC"
        if limit is not None:
            sql += " LIMIT :limit"
            params = {**params, "limit": limit}
        with self.db.get_connection() as conn:
            rows = conn.execute(
                text(sql).columns(created_at=DateTime), params
            ).mappings().all()
        return [self._map_log(row) for row in rows]

    # ---------- hardware users ----------

    def get_hardware_user(self, user_id: int) -> Optional[HardwareUser]:
        with self.db.get_connection() as conn:
            row = conn.execute(
                text("SELECT id, finger_id, created_at FROM users WHERE id = :id").columns(
                    created_at=DateTime
                ),
                {"id": user_id},
            ).mappings().first()
        if not row:
            return None
        return HardwareUser(id=row["id"], fingerId=row["finger_id"], createdAt=row["created_at"])

    def create_hardware_user(self, user_id: int, finger_id: int, credential: Optional[str] = None) -> HardwareUser:
        """``credential`` is an already-hashed device PIN (or None)."""
        created_at = self._now()
        with self.db.get_connection() as conn:
            conn.execute(
                text(
                    """
                    INSERT INTO users (id, finger_id, pin_hash, created_at)
                    VALUES (:id, :finger_id, :pin_hash, :created_at)
                    """
                ).bindparams(bindparam("created_at", type_=DateTime)),
                {"id": user_id, "finger_id": finger_id, "pin_hash": credential, "created_at": created_at},
            )
        return HardwareUser(id=user_id, fingerId=finger_id, createdAt=created_at)

    def delete_hardware_user(self, user_id: int) -> bool:
        """Delete a hardware user together with its profile and access logs."""
        with self.db.get_connection() as conn:
            # explicit child deletes so stores without FK enforcement behave the same
            conn.execute(text("DELETE FROM access_logs WHERE user_id = :id"), {"id": user_id})
            conn.execute(text("DELETE FROM user_profiles WHERE user_id = :id"), {"id": user_id})
            result = conn.execute(text("DELETE FROM users WHERE id = :id"), {"id": user_id})
            return result.rowcount > 0

    # ---------- profiles ----------

    def get_profile_by_user_id(self, user_id: int) -> Optional[ProfileRecord]:
        with self.db.get_connection() as conn:
            row = conn.execute(
                text(f"SELECT {_PROFILE_COLUMNS} FROM user_profiles WHERE user_id = :uid").columns(
                    created_at=DateTime
                ),
                {"uid": user_id},
            ).mappings().first()
        return self._map_profile(row) if row else None

    def get_profile_by_email(self, email: str) -> Optional[ProfileRecord]:
        with self.db.get_connection() as conn:
            row = conn.execute(
                text(f"SELECT {_PROFILE_COLUMNS} FROM user_profiles WHERE email = :email").columns(
                    created_at=DateTime
                ),
                {"email": email},
            ).mappings().first()
        return self._map_profile(row) if row else None

    def create_profile(
        self,
        user_id: int,
        name: str,
        email: str,
        password_hash: str,
        mobile: Optional[str] = None,
        role: str = "user",
    ) -> int:
        with self.db.get_connection() as conn:
            result = conn.execute(
                text(
                    """
                    INSERT INTO user_profiles (user_id, name, email, mobile, password_hash, role, created_at)
                    VALUES (:uid, :name, :email, :mobile, :password_hash, :role, :created_at)
                    """
                ).bindparams(bindparam("created_at", type_=DateTime)),
                {
                    "uid": user_id,
                    "name": name,
                    "email": email,
                    "mobile": mobile or None,
                    "password_hash": password_hash,
                    "role": role,
                    "created_at": self._now(),
                },
            )
            return result.lastrowid

    def update_profile(self, user_id: int, **fields) -> bool:
        """Update name/email/mobile/role. Returns False when there is no profile."""
        unknown = set(fields) - set(UPDATABLE_PROFILE_FIELDS)
        if unknown:
            raise ValueError(f"Cannot update profile fields: {sorted(unknown)}")
        if not fields:
            return self.get_profile_by_user_id(user_id) is not None

        assignments = ", ".join(f"{name} = :{name}" for name in fields)
        with self.db.get_connection() as conn:
            result = conn.execute(
                text(f"UPDATE user_profiles SET {assignments} WHERE user_id = :uid"),
                {**fields, "uid": user_id},
            )
            return result.rowcount > 0

    # ---------- joined user views ----------

    def get_user_with_profile(self, user_id: int) -> Optional[UserWithProfile]:
        with self.db.get_connection() as conn:
            row = conn.execute(
                text(_USER_SELECT + " WHERE u.id = :id").columns(
                    created_at=DateTime, p_created_at=DateTime
                ),
                {"id": user_id},
            ).mappings().first()
        return self._map_user(row) if row else None

    def get_all_users_with_profiles(self) -> List[UserWithProfile]:
        with self.db.get_connection() as conn:
            rows = conn.execute(
                text(_USER_SELECT + " ORDER BY u.id").columns(
                    created_at=DateTime, p_created_at=DateTime
                )
            ).mappings().all()
        return [self._map_user(row) for row in rows]

    # ---------- access logs ----------

    def create_access_log(self, event: AccessEvent) -> int:
        """Insert one access log row; the timestamp is assigned here. Returns the new id."""
        with self.db.get_connection() as conn:
            result = conn.execute(
                text(
                    """
                    INSERT INTO access_logs (user_id, result, note, created_at)
                    VALUES (:uid, :result, :note, :created_at)
                    """
                ).bindparams(bindparam("created_at", type_=DateTime)),
                {
                    "uid": event.userId,
                    "result": event.outcome,
                    "note": event.note,
                    "created_at": self._now(),
                },
            )
            return result.lastrowid

    def get_access_log(self, log_id: int) -> Optional[AccessLogWithUser]:
        logs = self._fetch_logs(" WHERE l.id = :id", {"id": log_id})
        return logs[0] if logs else None

    def get_recent_access_logs(self, limit: int = 50) -> List[AccessLogWithUser]:
        return self._fetch_logs("", {}, limit=limit)

    def get_user_access_logs(self, user_id: int) -> List[AccessLogWithUser]:
        return self._fetch_logs(" WHERE l.user_id = :uid", {"uid": user_id})

    # ---------- stats ----------

    def get_system_stats(self, today: Optional[date] = None) -> SystemStats:
        """Counts for the stats cards. ``hardwareConnected`` is filled in by the caller."""
        since = datetime.combine(today or date.today(), time.min)
        with self.db.get_connection() as conn:
            user_row = conn.execute(
                text("SELECT COUNT(*) AS total_users FROM users")
            ).mappings().first()
            log_row = conn.execute(
                text(
                    """
                    SELECT
                      COUNT(*) AS total_logs,
                      SUM(CASE WHEN result = 'GRANTED' AND created_at >= :since THEN 1 ELSE 0 END) AS granted_today,
                      SUM(CASE WHEN result = 'DENIED'  AND created_at >= :since THEN 1 ELSE 0 END) AS denied_today
                    FROM access_logs
                    """
                ).bindparams(bindparam("since", type_=DateTime)),
                {"since": since},
            ).mappings().first()

        return SystemStats(
            totalUsers=int(user_row["total_users"] or 0),
            totalAccessLogs=int(log_row["total_logs"] or 0),
            accessGrantedToday=int(log_row["granted_today"] or 0),
            accessDeniedToday=int(log_row["denied_today"] or 0),
        )
