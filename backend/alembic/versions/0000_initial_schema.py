"""Create initial schema

Revision ID: 0000_initial_schema
Revises:
Create Date: 2026-10-18
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = "0000_initial_schema"
down_revision = None
branch_labels = None
depends_on = None

USER_ROLES = ("STANDARD_USER", "EVENT_ADMIN", "ULTIMATE_ADMIN")
EVENT_STATUSES = ("PENDING_APPROVAL", "PUBLISHED", "REJECTED")
APPLICATION_STATUSES = ("PENDING", "APPROVED", "REJECTED")


def _enum(bind, values, name):
    if bind.dialect.name == "postgresql":
        enum_type = postgresql.ENUM(*values, name=name, create_type=False)
        enum_type.create(bind, checkfirst=True)
        return enum_type
    return sa.Enum(*values, name=name)


def upgrade() -> None:
    bind = op.get_bind()
    user_role_enum = _enum(bind, USER_ROLES, "userrole")
    event_status_enum = _enum(bind, EVENT_STATUSES, "eventstatus")
    application_status_enum = _enum(bind, APPLICATION_STATUSES, "applicationstatus")

    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("firebase_uid", sa.String(length=128), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("full_name", sa.String(length=255), nullable=True),
        sa.Column("photo_url", sa.String(length=1000), nullable=True),
        sa.Column("is_student", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("college_name", sa.String(length=255), nullable=True),
        sa.Column("role", user_role_enum, nullable=False),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )
    op.create_index("ix_users_id", "users", ["id"], unique=False)
    op.create_index("ix_users_firebase_uid", "users", ["firebase_uid"], unique=True)

    op.create_table(
        "event_categories",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("slug", sa.String(length=100), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("name", name="uq_event_categories_name"),
        sa.UniqueConstraint("slug", name="uq_event_categories_slug"),
    )
    op.create_index("ix_event_categories_id", "event_categories", ["id"], unique=False)

    op.create_table(
        "user_interests",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("category_id", sa.Integer(), sa.ForeignKey("event_categories.id"), nullable=False),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("user_id", "category_id", name="uq_user_interest"),
    )
    op.create_index("ix_user_interests_id", "user_interests", ["id"], unique=False)
    op.create_index("ix_user_interests_user_id", "user_interests", ["user_id"], unique=False)

    op.create_table(
        "events",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("time", sa.String(length=50), nullable=False),
        sa.Column("location", sa.String(length=255), nullable=False),
        sa.Column("district", sa.String(length=100), nullable=False),
        sa.Column("google_maps_link", sa.String(length=1000), nullable=True),
        sa.Column("primary_category_id", sa.Integer(), sa.ForeignKey("event_categories.id"), nullable=False),
        sa.Column("entry_fee", sa.Numeric(10, 2), nullable=True),
        sa.Column("is_free", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("prize_details", sa.Text(), nullable=True),
        sa.Column("contact_email", sa.String(length=255), nullable=False),
        sa.Column("contact_phone", sa.String(length=50), nullable=False),
        sa.Column("external_registration_link", sa.String(length=1000), nullable=True),
        sa.Column("how_to_register_link", sa.String(length=1000), nullable=True),
        sa.Column("instagram_url", sa.String(length=1000), nullable=True),
        sa.Column("facebook_url", sa.String(length=1000), nullable=True),
        sa.Column("youtube_url", sa.String(length=1000), nullable=True),
        sa.Column("banner_url", sa.String(length=1000), nullable=True),
        sa.Column("status", event_status_enum, nullable=False),
        sa.Column("rejection_reason", sa.Text(), nullable=True),
        sa.Column("created_by_user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_events_id", "events", ["id"], unique=False)
    op.create_index("ix_events_date", "events", ["date"], unique=False)
    op.create_index("ix_events_district", "events", ["district"], unique=False)
    op.create_index("ix_events_primary_category_id", "events", ["primary_category_id"], unique=False)
    op.create_index("ix_events_status", "events", ["status"], unique=False)
    op.create_index("ix_events_created_by_user_id", "events", ["created_by_user_id"], unique=False)

    op.create_table(
        "event_additional_categories",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("event_id", sa.Integer(), sa.ForeignKey("events.id"), nullable=False),
        sa.Column("category_id", sa.Integer(), sa.ForeignKey("event_categories.id"), nullable=False),
        sa.UniqueConstraint("event_id", "category_id", name="uq_event_additional_category"),
    )
    op.create_index("ix_event_additional_categories_id", "event_additional_categories", ["id"], unique=False)
    op.create_index(
        "ix_event_additional_categories_event_id", "event_additional_categories", ["event_id"], unique=False
    )
    op.create_index(
        "ix_event_additional_categories_category_id", "event_additional_categories", ["category_id"], unique=False
    )

    op.create_table(
        "event_likes",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("event_id", sa.Integer(), sa.ForeignKey("events.id"), nullable=False),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("user_id", "event_id", name="uq_event_like"),
    )
    op.create_index("ix_event_likes_id", "event_likes", ["id"], unique=False)
    op.create_index("ix_event_likes_event_id", "event_likes", ["event_id"], unique=False)

    op.create_table(
        "event_registrations",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("event_id", sa.Integer(), sa.ForeignKey("events.id"), nullable=False),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("user_id", "event_id", name="uq_event_registration"),
    )
    op.create_index("ix_event_registrations_id", "event_registrations", ["id"], unique=False)
    op.create_index("ix_event_registrations_event_id", "event_registrations", ["event_id"], unique=False)

    op.create_table(
        "admin_applications",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("motivation_text", sa.Text(), nullable=False),
        sa.Column("status", application_status_enum, nullable=False),
        sa.Column("reviewed_by_user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("reviewed_at", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_admin_applications_id", "admin_applications", ["id"], unique=False)
    op.create_index("ix_admin_applications_user_id", "admin_applications", ["user_id"], unique=False)
    op.create_index("ix_admin_applications_status", "admin_applications", ["status"], unique=False)
    op.create_index(
        "uq_admin_application_pending",
        "admin_applications",
        ["user_id"],
        unique=True,
        sqlite_where=sa.text("status = 'PENDING'"),
        postgresql_where=sa.text("status = 'PENDING'"),
    )


def downgrade() -> None:
    op.drop_index("uq_admin_application_pending", table_name="admin_applications")
    op.drop_table("admin_applications")
    op.drop_table("event_registrations")
    op.drop_table("event_likes")
    op.drop_table("event_additional_categories")
    op.drop_table("events")
    op.drop_table("user_interests")
    op.drop_table("event_categories")
    op.drop_table("users")

    bind = op.get_bind()
    if bind.dialect.name == "postgresql":
        for name in ("applicationstatus", "eventstatus", "userrole"):
            postgresql.ENUM(name=name).drop(bind, checkfirst=True)
