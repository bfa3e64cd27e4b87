"""Add chat_message and persona tables

Revision ID: 20261018_add_chat_tables
Revises:
Create Date: 2026-10-18 10:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "20261018_add_chat_tables"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Message log; sessions are derived from it at query time
    op.create_table(
        "chat_message",
        sa.Column("seq", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("user", sa.String(255), nullable=False),
        sa.Column("persona", sa.String(255), nullable=False),
        sa.Column("session_id", sa.String(255), nullable=False),
        sa.Column("user_message", sa.Text(), nullable=False),
        sa.Column("ai_response", sa.Text(), nullable=False),
        sa.Column(
            "timestamp",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.Column(
            "archived", sa.Boolean(), nullable=False, server_default=sa.false()
        ),
        sa.Column("file_url", sa.String(2048), nullable=True),
        sa.Column("file_type", sa.String(255), nullable=True),
        sa.UniqueConstraint("id", name="uq_chat_message_id"),
    )

    # Read-only persona directory
    op.create_table(
        "persona",
        sa.Column("id", sa.String(255), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("role", sa.String(255), nullable=True),
        sa.Column("department", sa.String(255), nullable=True),
        sa.Column("avatar", sa.String(2048), nullable=True),
        sa.Column(
            "has_start_chat", sa.Boolean(), nullable=False, server_default=sa.false()
        ),
        sa.Column("traits", sa.JSON(), nullable=True),
        sa.Column(
            "updated_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
    )

    # Indexes for per-user history and recency queries
    op.create_index(
        "ix_chat_message_user_persona_timestamp",
        "chat_message",
        ["user", "persona", "timestamp"],
    )
    op.create_index(
        "ix_chat_message_user_session", "chat_message", ["user", "session_id"]
    )


def downgrade() -> None:
    op.drop_index("ix_chat_message_user_session", table_name="chat_message")
    op.drop_index("ix_chat_message_user_persona_timestamp", table_name="chat_message")
    op.drop_table("persona")
    op.drop_table("chat_message")
