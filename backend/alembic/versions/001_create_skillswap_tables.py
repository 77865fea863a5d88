"""Create skillswap tables

Revision ID: 001
Revises: None
Create Date: 2026-10-18 00:00:00.000000+00:00

What:  Creates users, skills, the two skill-set association tables,
       connections and messages.
How:   Generic UUID and timezone-aware timestamps, so the same migration
       runs on PostgreSQL and SQLite. IDs and timestamps are generated by
       the ORM, not by server defaults.

Rollback: downgrade() drops every table (destructive, all data lost).
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def _skill_set_table(table_name: str) -> None:
    op.create_table(
        table_name,
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("skill_id", sa.Uuid(), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["skill_id"], ["skills.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("user_id", "skill_id"),
    )


def upgrade() -> None:
    op.create_table(
        "skills",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column(
            "name",
            sa.String(100),
            nullable=False,
            comment="Display name, trimmed, original case",
        ),
        sa.Column(
            "name_key",
            sa.String(100),
            nullable=False,
            comment="Case-folded name used for lookups and uniqueness",
        ),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name_key"),
    )

    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(128), nullable=True),
        sa.Column("photo_url", sa.String(2048), nullable=False),
        sa.Column("points", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column(
            "has_received_free_points",
            sa.Boolean(),
            nullable=False,
            server_default=sa.false(),
        ),
        sa.Column("oauth_provider", sa.String(20), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        # Exactly one way to sign in: a password or an OAuth provider
        sa.CheckConstraint(
            "(password_hash IS NULL) <> (oauth_provider IS NULL)",
            name="ck_users_password_xor_oauth",
        ),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    _skill_set_table("user_teach_skills")
    _skill_set_table("user_learn_skills")

    op.create_table(
        "connections",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("requester_id", sa.Uuid(), nullable=False),
        sa.Column("recipient_id", sa.Uuid(), nullable=False),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("message", sa.String(500), nullable=True),
        # Unordered pair key: at most one connection per pair of users
        sa.Column("user_low_id", sa.Uuid(), nullable=False),
        sa.Column("user_high_id", sa.Uuid(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["requester_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["recipient_id"], ["users.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("user_low_id", "user_high_id", name="uq_connections_pair"),
        sa.CheckConstraint("requester_id <> recipient_id", name="ck_connections_not_self"),
    )
    op.create_index("ix_connections_requester_id", "connections", ["requester_id"])
    op.create_index("ix_connections_recipient_id", "connections", ["recipient_id"])
    op.create_index("idx_connections_created_at", "connections", ["created_at"])

    op.create_table(
        "messages",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("sender_id", sa.Uuid(), nullable=False),
        sa.Column("recipient_id", sa.Uuid(), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("read", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["sender_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["recipient_id"], ["users.id"], ondelete="CASCADE"),
    )
    # Conversation reads filter on the pair and sort by time
    op.create_index(
        "idx_messages_pair_created_at",
        "messages",
        ["sender_id", "recipient_id", "created_at"],
    )


def downgrade() -> None:
    """Drop all tables, children first."""
    op.drop_index("idx_messages_pair_created_at", table_name="messages")
    op.drop_table("messages")
    op.drop_index("idx_connections_created_at", table_name="connections")
    op.drop_index("ix_connections_recipient_id", table_name="connections")
    op.drop_index("ix_connections_requester_id", table_name="connections")
    op.drop_table("connections")
    op.drop_table("user_learn_skills")
    op.drop_table("user_teach_skills")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
    op.drop_table("skills")
