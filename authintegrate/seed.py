# =======================================================================================
# authintegrate/seed.py - Development Seed Data
# =======================================================================================
import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError

from .config import Config, config as default_config
from .database import DatabaseManager
from .logger import setup_logging
from .services.auth_service import pwd_context
from .services.storage_service import StorageService

logger = logging.getLogger(__name__)

HARDWARE_USERS = [
    {"id": 1, "finger_id": 101},
    {"id": 2, "finger_id": 102},
    {"id": 3, "finger_id": 103},
]

PROFILES = [
    {
        "user_id": 1,
        "name": "Admin",
        "email": "admin@example.com",
        "mobile": "9999999999",
        "password": "123456",
        "role": "admin",
    },
    {
        "user_id": 2,
        "name": "Demo User",
        "email": "user@example.com",
        "mobile": "8888888888",
        "password": "654321",
        "role": "user",
    },
]


def seed(settings: Optional[Config] = None, db: Optional[DatabaseManager] = None) -> StorageService:
    """Create the schema and insert demo users; existing rows are left alone."""
    db = db or DatabaseManager(settings or default_config)
    db.create_schema()
    storage = StorageService(db)

    for user in HARDWARE_USERS:
        if storage.get_hardware_user(user["id"]) is None:
            storage.create_hardware_user(user["id"], user["finger_id"], pwd_context.hash("000000"))

    for profile in PROFILES:
        if storage.get_profile_by_user_id(profile["user_id"]) is not None:
            continue
        try:
            storage.create_profile(
                user_id=profile["user_id"],
                name=profile["name"],
                email=profile["email"],
                mobile=profile["mobile"],
                password_hash=pwd_context.hash(profile["password"]),
                role=profile["role"],
            )
        except IntegrityError as e:
            logger.warning("Skipping profile for user %s: %s", profile["user_id"], e.orig)

    logger.info("Seeded %d users and %d profiles", len(HARDWARE_USERS), len(PROFILES))
    return storage


def main() -> None:
    setup_logging(default_config.API_DEBUG)
    seed()


if __name__ == "__main__":
    main()
