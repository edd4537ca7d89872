# =======================================================================================
# authintegrate/models/tables.py - Table Definitions
# =======================================================================================
from sqlalchemy import (
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    MetaData,
    String,
    Table,
    Text,
)

from .enums import ACCESS_RESULTS, USER_ROLES

metadata = MetaData()

# Hardware-level users. The id is assigned by the device, not by the database.
users = Table(
    "users",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=False),
    Column("finger_id", Integer, nullable=False, unique=True),
    Column("pin_hash", Text, nullable=True),
    Column("created_at", DateTime, nullable=False),
)

access_logs = Table(
    "access_logs",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("user_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=True, index=True),
    Column("result", Enum(*ACCESS_RESULTS, name="access_result"), nullable=False),
    Column("note", String(100), nullable=True),
    Column("created_at", DateTime, nullable=False, index=True),
)

# Web-facing identity, at most one per hardware user
user_profiles = Table(
    "user_profiles",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column(
        "user_id",
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    ),
    Column("name", String(255), nullable=False),
    Column("email", String(255), nullable=False, unique=True),
    Column("mobile", String(20), nullable=True),
    Column("password_hash", Text, nullable=False),
    Column("role", Enum(*USER_ROLES, name="user_role"), nullable=False, server_default="user"),
    Column("created_at", DateTime, nullable=False),
)
