"""create_user_store

Create the tenant-scoped user store:
- Users (one row per person per tenant, id equals the auth identity id)
- User settings and user profiles (RESTRICT foreign keys to users)
- Tenant bootstraps (first-user claim per tenant)

Revision ID: 5c1e9a7d3b20
Revises:
Create Date: 2026-10-19 09:12:44.318205

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = "5c1e9a7d3b20"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
        sa.Column(
            "updated_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
    ]


def upgrade() -> None:
    """Upgrade schema."""
    # ========================================================================
    # USERS table
    # ========================================================================
    op.create_table(
        "users",
        sa.Column("id", sa.Text(), nullable=False),
        sa.Column("tenant_id", sa.String(100), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("name", sa.String(255), nullable=True),
        sa.Column("role", sa.String(20), nullable=False, server_default="regular"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("credential_material", sa.Text(), nullable=True),
        sa.Column(
            "user_metadata",
            postgresql.JSONB(),
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        sa.Column("last_login", sa.TIMESTAMP(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="users_pkey"),
        sa.UniqueConstraint("tenant_id", "email", name="uq_users_tenant_email"),
        sa.CheckConstraint("role IN ('regular', 'super_user')", name="ck_users_role"),
    )
    op.create_index("idx_users_tenant_id", "users", ["tenant_id"])
    op.create_index(
        "idx_users_tenant_lower_email",
        "users",
        ["tenant_id", sa.text("lower(email)")],
    )

    # ========================================================================
    # USER_SETTINGS table
    # ========================================================================
    op.create_table(
        "user_settings",
        sa.Column("id", sa.Text(), nullable=False),
        sa.Column("user_id", sa.Text(), nullable=False),
        sa.Column("tenant_id", sa.String(100), nullable=False),
        sa.Column("theme", sa.String(20), nullable=False, server_default="auto"),
        sa.Column(
            "preferences",
            postgresql.JSONB(),
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["user_id"],
            ["users.id"],
            name="user_settings_user_id_fkey",
            ondelete="RESTRICT",
        ),
        sa.PrimaryKeyConstraint("id", name="user_settings_pkey"),
    )
    op.create_index("idx_user_settings_user_id", "user_settings", ["user_id"])

    # ========================================================================
    # USER_PROFILES table
    # ========================================================================
    op.create_table(
        "user_profiles",
        sa.Column("id", sa.Text(), nullable=False),
        sa.Column("user_id", sa.Text(), nullable=False),
        sa.Column("tenant_id", sa.String(100), nullable=False),
        sa.Column("display_name", sa.String(255), nullable=True),
        sa.Column("avatar_url", sa.Text(), nullable=True),
        sa.Column("encrypted_api_key", sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["user_id"],
            ["users.id"],
            name="user_profiles_user_id_fkey",
            ondelete="RESTRICT",
        ),
        sa.PrimaryKeyConstraint("id", name="user_profiles_pkey"),
        sa.UniqueConstraint("user_id", name="uq_user_profiles_user_id"),
    )

    # ========================================================================
    # TENANT_BOOTSTRAPS table (first-user claim)
    # ========================================================================
    op.create_table(
        "tenant_bootstraps",
        sa.Column("tenant_id", sa.String(100), nullable=False),
        sa.Column("user_id", sa.Text(), nullable=False),
        sa.Column(
            "claimed_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
        sa.ForeignKeyConstraint(
            ["user_id"],
            ["users.id"],
            name="tenant_bootstraps_user_id_fkey",
            ondelete="RESTRICT",
        ),
        sa.PrimaryKeyConstraint("tenant_id", name="tenant_bootstraps_pkey"),
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table("tenant_bootstraps")
    op.drop_table("user_profiles")
    op.drop_index("idx_user_settings_user_id", table_name="user_settings")
    op.drop_table("user_settings")
    op.drop_index("idx_users_tenant_lower_email", table_name="users")
    op.drop_index("idx_users_tenant_id", table_name="users")
    op.drop_table("users")
