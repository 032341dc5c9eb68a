"""Initial schema: users, scope groups, views and ownerships

Revision ID: a001
Revises:
Create Date: 2026-10-01 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "a001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # === users ===
    op.create_table(
        "users",
        sa.Column("id", sa.BigInteger(), sa.Identity(), nullable=False),
        sa.Column("email", sa.String(255), nullable=False, comment="Login and notification address, stored lower-case"),
        sa.Column("password", sa.String(255), nullable=True, comment="Password hash for users not using SSO"),
        sa.Column("sso_id", sa.String(255), nullable=True, comment="Single sign-on ID, stored upper-case"),
        sa.Column("company", sa.String(255), nullable=False),
        sa.Column("department", sa.String(255), nullable=False, server_default=""),
        sa.Column("created", sa.DateTime(timezone=True), nullable=False),
        sa.Column("last_login", sa.DateTime(timezone=True), nullable=False),
        sa.Column("logout_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("active", sa.Boolean(), nullable=False),
        sa.Column("admin", sa.Boolean(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("surname", sa.String(255), nullable=False),
        sa.Column("gender", sa.String(1), nullable=False, server_default=""),
        sa.Column("certificate", sa.LargeBinary(), nullable=False),
        sa.Column("db_password", sa.String(255), nullable=False, server_default=""),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email", name="uq_users_email"),
        sa.UniqueConstraint("sso_id", name="uq_users_sso_id"),
    )
    op.create_index("ix_users_admin", "users", ["admin"])

    # === scope_groups ===
    op.create_table(
        "scope_groups",
        sa.Column("id", sa.BigInteger(), sa.Identity(), nullable=False),
        sa.Column("name", sa.String(255), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )

    # === views ===
    op.create_table(
        "views",
        sa.Column("id", sa.BigInteger(), sa.Identity(), nullable=False),
        sa.Column(
            "group_id",
            sa.BigInteger(),
            sa.ForeignKey("scope_groups.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("filters", postgresql.JSONB(), nullable=False, server_default="{}"),
        sa.Column("created", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("created_by", sa.String(255), nullable=False, server_default=""),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_views_group_id", "views", ["group_id"])

    # === ownerships ===
    op.create_table(
        "ownerships",
        sa.Column("id", sa.BigInteger(), sa.Identity(), nullable=False),
        sa.Column("user_id", sa.BigInteger(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("view_id", sa.BigInteger(), sa.ForeignKey("views.id", ondelete="CASCADE"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "view_id", name="uq_ownerships_user_view"),
    )
    op.create_index("ix_ownerships_user_id", "ownerships", ["user_id"])
    op.create_index("ix_ownerships_view_id", "ownerships", ["view_id"])


def downgrade() -> None:
    op.drop_table("ownerships")
    op.drop_table("views")
    op.drop_table("scope_groups")
    op.drop_table("users")
