"""Persistence gateway tests against a temporary SQLite database."""

from datetime import date, datetime, timedelta

import pytest
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError

from authintegrate.models.schemas import AccessEvent


class TestHardwareUsers:
    def test_create_and_get(self, storage):
        created = storage.create_hardware_user(5, 55)
        fetched = storage.get_hardware_user(5)

        assert fetched.id == 5
        assert fetched.fingerId == 55
        assert isinstance(fetched.createdAt, datetime)
        assert created.fingerId == fetched.fingerId

    def test_missing_user(self, storage):
        assert storage.get_hardware_user(999) is None

    def test_duplicate_finger_id_rejected(self, storage):
        storage.create_hardware_user(5, 55)
        with pytest.raises(IntegrityError):
            storage.create_hardware_user(6, 55)

    def test_delete_cascades_to_profile_and_logs(self, storage):
        storage.create_hardware_user(5, 55)
        storage.create_profile(5, "Eve", "eve@example.com", "hash")
        storage.create_access_log(AccessEvent(userId=5, outcome="GRANTED"))

        assert storage.delete_hardware_user(5) is True

        assert storage.get_hardware_user(5) is None
        assert storage.get_profile_by_user_id(5) is None
        assert storage.get_user_access_logs(5) == []

    def test_delete_unknown_user(self, storage):
        assert storage.delete_hardware_user(404) is False

    def test_foreign_key_cascade_in_store(self, storage, db):
        storage.create_hardware_user(5, 55)
        storage.create_access_log(AccessEvent(userId=5, outcome="DENIED"))
        with db.get_connection() as conn:
            conn.execute(text("DELETE FROM users WHERE id = 5"))
        assert storage.get_recent_access_logs() == []


class TestProfiles:
    def test_profile_requires_hardware_user(self, storage):
        with pytest.raises(IntegrityError):
            storage.create_profile(77, "Ghost", "ghost@example.com", "hash")

    def test_one_profile_per_user(self, storage):
        storage.create_hardware_user(5, 55)
        storage.create_profile(5, "Eve", "eve@example.com", "hash")
        with pytest.raises(IntegrityError):
            storage.create_profile(5, "Eve Again", "eve2@example.com", "hash")

    def test_update_profile(self, storage):
        storage.create_hardware_user(5, 55)
        storage.create_profile(5, "Eve", "eve@example.com", "hash")

        assert storage.update_profile(5, name="Eve Adams", role="admin") is True

        profile = storage.get_profile_by_user_id(5)
        assert profile.name == "Eve Adams"
        assert profile.role == "admin"
        assert profile.passwordHash == "hash"

    def test_update_rejects_unknown_fields(self, storage):
        with pytest.raises(ValueError):
            storage.update_profile(5, password_hash="x")

    def test_update_without_profile(self, storage):
        storage.create_hardware_user(5, 55)
        assert storage.update_profile(5, name="Nobody") is False

    def test_joined_user_views(self, storage):
        storage.create_hardware_user(5, 55)
        storage.create_hardware_user(6, 66)
        storage.create_profile(6, "Frank", "frank@example.com", "hash", mobile="0700")

        users = storage.get_all_users_with_profiles()

        assert [u.id for u in users] == [5, 6]
        assert users[0].profile is None
        assert users[1].profile.name == "Frank"
        assert users[1].profile.mobile == "0700"
        assert not hasattr(users[1].profile, "passwordHash")


class TestAccessLogs:
    def test_log_joined_with_profile(self, storage):
        storage.create_hardware_user(5, 55)
        storage.create_profile(5, "Eve", "eve@example.com", "hash")
        log_id = storage.create_access_log(AccessEvent(userId=5, outcome="GRANTED", note="front door"))

        log = storage.get_access_log(log_id)

        assert log.id == log_id
        assert log.userId == 5
        assert log.result == "GRANTED"
        assert log.note == "front door"
        assert log.name == "Eve"
        assert log.email == "eve@example.com"

    def test_log_without_profile_has_no_name(self, storage):
        storage.create_hardware_user(5, 55)
        log = storage.get_access_log(storage.create_access_log(AccessEvent(userId=5, outcome="DENIED")))
        assert log.name is None

    def test_recent_logs_newest_first_with_limit(self, storage):
        storage.create_hardware_user(5, 55)
        ids = [storage.create_access_log(AccessEvent(userId=5, outcome="DENIED")) for _ in range(4)]

        recent = storage.get_recent_access_logs(limit=3)

        assert [log.id for log in recent] == list(reversed(ids))[:3]

    def test_user_logs_filtered(self, storage):
        storage.create_hardware_user(5, 55)
        storage.create_hardware_user(6, 66)
        storage.create_access_log(AccessEvent(userId=5, outcome="GRANTED"))
        storage.create_access_log(AccessEvent(userId=6, outcome="DENIED"))

        assert [log.userId for log in storage.get_user_access_logs(6)] == [6]


class TestStats:
    def test_counts_only_todays_attempts(self, storage, db):
        storage.create_hardware_user(5, 55)
        storage.create_access_log(AccessEvent(userId=5, outcome="GRANTED"))
        storage.create_access_log(AccessEvent(userId=5, outcome="GRANTED"))
        storage.create_access_log(AccessEvent(userId=5, outcome="DENIED"))
        storage.create_access_log(AccessEvent(userId=5, outcome="REGISTERED"))

        stats = storage.get_system_stats()
        assert stats.totalUsers == 1
        assert stats.totalAccessLogs == 4
        assert stats.accessGrantedToday == 2
        assert stats.accessDeniedToday == 1

        # same rows counted against tomorrow: nothing happened "today"
        tomorrow = storage.get_system_stats(today=date.today() + timedelta(days=1))
        assert tomorrow.totalAccessLogs == 4
        assert tomorrow.accessGrantedToday == 0
        assert tomorrow.accessDeniedToday == 0

    def test_empty_store(self, storage):
        stats = storage.get_system_stats()
        assert (stats.totalUsers, stats.totalAccessLogs) == (0, 0)
        assert stats.hardwareConnected is False
