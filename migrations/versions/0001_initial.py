"""initial

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-18 00:00:00.000000
"""

from alembic import op
import sqlalchemy as sa


revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


class GUID(sa.TypeDecorator):
    impl = sa.CHAR
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            from sqlalchemy.dialects.postgresql import UUID

            return dialect.type_descriptor(UUID(as_uuid=True))
        return dialect.type_descriptor(sa.CHAR(36))


def upgrade() -> None:
    op.create_table(
        "stores",
        sa.Column("id", GUID(), primary_key=True),
        sa.Column("ace_store_number", sa.String(length=32), nullable=False),
        sa.Column("pos_store_number", sa.String(length=32), nullable=False),
        sa.Column("store_name", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("address_line1", sa.String(length=255), nullable=True),
        sa.Column("address_line2", sa.String(length=255), nullable=True),
        sa.Column("city", sa.String(length=120), nullable=True),
        sa.Column("state", sa.String(length=64), nullable=True),
        sa.Column("postal_code", sa.String(length=32), nullable=True),
        sa.Column("country", sa.String(length=64), nullable=True),
        sa.Column("date_opened", sa.Date(), nullable=True),
        sa.Column("timezone", sa.String(length=64), nullable=True),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="active"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("ace_store_number", name="uq_stores_ace_store_number"),
    )
    op.create_index("ix_stores_sort_order_name", "stores", ["sort_order", "store_name"], unique=False)

    op.create_table(
        "user_profiles",
        sa.Column("id", GUID(), primary_key=True),
        sa.Column("full_name", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("role", sa.String(length=20), nullable=False, server_default="Employee"),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="active"),
        sa.Column("home_store_id", GUID(), sa.ForeignKey("stores.id"), nullable=True),
        sa.Column("must_reset_password", sa.Boolean(), nullable=False, server_default=sa.text("1")),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_user_profiles_email", "user_profiles", ["email"], unique=False)

    op.create_table(
        "user_store_access",
        sa.Column("user_id", GUID(), sa.ForeignKey("user_profiles.id"), primary_key=True),
        sa.Column("store_id", GUID(), sa.ForeignKey("stores.id"), primary_key=True),
        sa.Column("assigned_by", GUID(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_user_store_access_store_id", "user_store_access", ["store_id"], unique=False)

    op.create_table(
        "identity_accounts",
        sa.Column("id", GUID(), primary_key=True),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("hashed_password", sa.String(length=255), nullable=False),
        sa.Column("email_confirmed", sa.Boolean(), nullable=False, server_default=sa.text("0")),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_identity_accounts_email", "identity_accounts", ["email"], unique=True)

    op.create_table(
        "identity_outbox",
        sa.Column("id", GUID(), primary_key=True),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("kind", sa.String(length=20), nullable=False),
        sa.Column("redirect_to", sa.String(length=1024), nullable=True),
        sa.Column("action_link", sa.String(length=2048), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_identity_outbox_email", "identity_outbox", ["email"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_identity_outbox_email", table_name="identity_outbox")
    op.drop_table("identity_outbox")
    op.drop_index("ix_identity_accounts_email", table_name="identity_accounts")
    op.drop_table("identity_accounts")
    op.drop_index("ix_user_store_access_store_id", table_name="user_store_access")
    op.drop_table("user_store_access")
    op.drop_index("ix_user_profiles_email", table_name="user_profiles")
    op.drop_table("user_profiles")
    op.drop_index("ix_stores_sort_order_name", table_name="stores")
    op.drop_table("stores")
