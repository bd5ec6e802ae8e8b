"""
Download grants: profiles, wallpapers, download events, rate-limit config, admin audit.

- `downloads` is append-only and indexed for per-user rolling-window counts.
- `wallpapers.download_count` is only ever bumped atomically by the usage writer.
- Seeds the `free_downloads_per_hour` setting (10).
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# Revision identifiers, used by Alembic.
revision = "20260110_01_download_grants"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "profiles",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("email", sa.String(length=320), nullable=True),
        sa.Column("plan_type", sa.String(length=16), nullable=False, server_default=sa.text("'free'")),
        sa.Column("premium_expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("is_admin", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint("plan_type IN ('free','premium')", name="ck_profiles_plan_type"),
        sa.UniqueConstraint("user_id", name="uq_profiles_user_id"),
    )
    op.create_index("ix_profiles_user_id", "profiles", ["user_id"], unique=False)

    op.create_table(
        "wallpapers",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("is_premium", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("download_url", sa.Text(), nullable=True),
        sa.Column("resolution_1080p", sa.Text(), nullable=True),
        sa.Column("resolution_4k", sa.Text(), nullable=True),
        sa.Column("resolution_8k", sa.Text(), nullable=True),
        sa.Column("download_count", sa.BigInteger(), nullable=False, server_default=sa.text("0")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint("download_count >= 0", name="ck_wallpapers_download_count_non_negative"),
    )
    op.create_index("ix_wallpapers_is_premium", "wallpapers", ["is_premium"], unique=False)

    op.create_table(
        "downloads",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column(
            "wallpaper_id",
            sa.BigInteger(),
            sa.ForeignKey("wallpapers.id", ondelete="CASCADE", name="fk_downloads_wallpaper_id_wallpapers"),
            nullable=False,
        ),
        sa.Column("resolution", sa.String(length=16), nullable=False),
        sa.Column("ip_address", postgresql.INET(), nullable=True),
        sa.Column("user_agent", sa.String(length=1024), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_downloads_wallpaper_id", "downloads", ["wallpaper_id"], unique=False)
    op.create_index("ix_downloads_user_created_desc", "downloads", ["user_id", sa.text("created_at DESC")], unique=False)

    rate_limit_config = op.create_table(
        "rate_limit_config",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("setting_name", sa.String(length=100), nullable=False),
        sa.Column("setting_value", sa.Integer(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint("setting_value >= -1", name="ck_rate_limit_config_value_range"),
        sa.CheckConstraint("length(btrim(setting_name)) > 0", name="ck_rate_limit_config_name_not_blank"),
        sa.UniqueConstraint("setting_name", name="uq_rate_limit_config_setting_name"),
    )

    op.create_table(
        "admin_audit_log",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("admin_user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("action", sa.String(length=64), nullable=False),
        sa.Column("resource_type", sa.String(length=64), nullable=True),
        sa.Column("resource_id", sa.String(length=128), nullable=True),
        sa.Column("details", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint("length(btrim(action)) > 0", name="ck_admin_audit_log_action_not_blank"),
    )
    op.create_index("ix_admin_audit_log_admin_user_id", "admin_audit_log", ["admin_user_id"], unique=False)
    op.create_index(
        "ix_admin_audit_log_admin_ts_desc", "admin_audit_log", ["admin_user_id", sa.text("created_at DESC")], unique=False
    )

    op.bulk_insert(
        rate_limit_config,
        [
            {
                "setting_name": "free_downloads_per_hour",
                "setting_value": 10,
                "description": "Downloads per rolling hour for free-plan users",
                "is_active": True,
            }
        ],
    )


def downgrade() -> None:
    op.drop_index("ix_admin_audit_log_admin_ts_desc", table_name="admin_audit_log")
    op.drop_index("ix_admin_audit_log_admin_user_id", table_name="admin_audit_log")
    op.drop_table("admin_audit_log")
    op.drop_table("rate_limit_config")
    op.drop_index("ix_downloads_user_created_desc", table_name="downloads")
    op.drop_index("ix_downloads_wallpaper_id", table_name="downloads")
    op.drop_table("downloads")
    op.drop_index("ix_wallpapers_is_premium", table_name="wallpapers")
    op.drop_table("wallpapers")
    op.drop_index("ix_profiles_user_id", table_name="profiles")
    op.drop_table("profiles")
