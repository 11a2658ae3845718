"""SQLAlchemy table definitions for the CRM user store.

These tables match the schema created by the Alembic migrations. Ids are
stored as text: user ids are whatever the auth provider hands out.
"""

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    ForeignKey,
    Index,
    MetaData,
    String,
    Table,
    Text,
    UniqueConstraint,
    func,
    text,
)
from sqlalchemy.dialects.postgresql import JSONB, TIMESTAMP

metadata = MetaData()


def _timestamps() -> tuple[Column, Column]:
    return (
        Column("created_at", TIMESTAMP(timezone=True), nullable=False, server_default=text("NOW()")),
        Column("updated_at", TIMESTAMP(timezone=True), nullable=False, server_default=text("NOW()")),
    )


# USERS TABLE (one row per person per tenant)
users_table = Table(
    "users",
    metadata,
    Column("id", Text, primary_key=True),  # Equals the auth identity id
    Column("tenant_id", String(100), nullable=False),
    Column("email", String(255), nullable=False),
    Column("name", String(255), nullable=True),
    Column("role", String(20), nullable=False, server_default="regular"),
    Column("is_active", Boolean, nullable=False, server_default="false"),
    Column("credential_material", Text, nullable=True),
    Column(
        "user_metadata", JSONB, nullable=False, server_default=text("'{}'::jsonb")
    ),
    Column("last_login", TIMESTAMP(timezone=True), nullable=True),
    *_timestamps(),
    UniqueConstraint("tenant_id", "email", name="uq_users_tenant_email"),
    CheckConstraint("role IN ('regular', 'super_user')", name="ck_users_role"),
)

Index("idx_users_tenant_id", users_table.c.tenant_id)
Index(
    "idx_users_tenant_lower_email",
    users_table.c.tenant_id,
    func.lower(users_table.c.email),
)

# USER SETTINGS TABLE
user_settings_table = Table(
    "user_settings",
    metadata,
    Column("id", Text, primary_key=True),
    Column(
        "user_id",
        Text,
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
    ),
    Column("tenant_id", String(100), nullable=False),
    Column("theme", String(20), nullable=False, server_default="auto"),
    Column(
        "preferences", JSONB, nullable=False, server_default=text("'{}'::jsonb")
    ),
    *_timestamps(),
)

Index("idx_user_settings_user_id", user_settings_table.c.user_id)

# USER PROFILES TABLE
user_profiles_table = Table(
    "user_profiles",
    metadata,
    Column("id", Text, primary_key=True),
    Column(
        "user_id",
        Text,
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
    ),
    Column("tenant_id", String(100), nullable=False),
    Column("display_name", String(255), nullable=True),
    Column("avatar_url", Text, nullable=True),
    Column("encrypted_api_key", Text, nullable=True),
    *_timestamps(),
    UniqueConstraint("user_id", name="uq_user_profiles_user_id"),
)

# TENANT BOOTSTRAPS TABLE (first-user claim)
tenant_bootstraps_table = Table(
    "tenant_bootstraps",
    metadata,
    Column("tenant_id", String(100), primary_key=True),
    Column(
        "user_id",
        Text,
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
    ),
    Column(
        "claimed_at",
        TIMESTAMP(timezone=True),
        nullable=False,
        server_default=text("NOW()"),
    ),
)
