"""create support, reviews, purchases, narrator_requests

Revision ID: 9d3b5f2e8a61
Revises: 4c1e9a7d2b30
Create Date: 2026-09-28 10:40:07.532916
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "9d3b5f2e8a61"
down_revision: Union[str, Sequence[str], None] = "4c1e9a7d2b30"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _now(name: str) -> sa.Column:
    return sa.Column(name, sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=True)


def upgrade() -> None:
    op.create_table(
        "support_tickets",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("user_id", sa.String(length=36), sa.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False),
        sa.Column("audiobook_id", sa.Integer(), sa.ForeignKey("audiobooks.id", ondelete="SET NULL"), nullable=True),
        sa.Column("type", sa.String(length=20), nullable=False, server_default="other"),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="open"),
        sa.Column("subject", sa.String(length=300), nullable=False),
        sa.Column("last_admin_id", sa.String(length=36), sa.ForeignKey("profiles.id"), nullable=True),
        _now("last_message_at"),
        _now("created_at"),
        _now("updated_at"),
    )
    op.create_index("ix_support_tickets_user_id", "support_tickets", ["user_id"])
    op.create_index("ix_support_tickets_status", "support_tickets", ["status"])

    op.create_table(
        "support_messages",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column(
            "ticket_id",
            sa.Integer(),
            sa.ForeignKey("support_tickets.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("sender_type", sa.String(length=10), nullable=False),
        sa.Column("sender_id", sa.String(length=36), sa.ForeignKey("profiles.id"), nullable=False),
        sa.Column("message_text", sa.Text(), nullable=False),
        _now("created_at"),
    )
    op.create_index("ix_support_messages_ticket_id", "support_messages", ["ticket_id"])

    op.create_table(
        "reviews",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("user_id", sa.String(length=36), sa.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False),
        sa.Column("audiobook_id", sa.Integer(), sa.ForeignKey("audiobooks.id", ondelete="CASCADE"), nullable=False),
        sa.Column("rating", sa.Integer(), nullable=False),
        sa.Column("comment", sa.Text(), nullable=True),
        sa.Column("is_approved", sa.Boolean(), nullable=False, server_default=sa.false()),
        _now("created_at"),
        sa.UniqueConstraint("user_id", "audiobook_id", name="uq_reviews_user_audiobook"),
        sa.CheckConstraint("rating >= 1 AND rating <= 5", name="ck_reviews_rating_range"),
    )
    op.create_index("ix_reviews_user_id", "reviews", ["user_id"])
    op.create_index("ix_reviews_audiobook_id", "reviews", ["audiobook_id"])

    op.create_table(
        "purchases",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("user_id", sa.String(length=36), sa.ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True),
        sa.Column("audiobook_id", sa.Integer(), sa.ForeignKey("audiobooks.id", ondelete="SET NULL"), nullable=True),
        sa.Column("amount", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="completed"),
        _now("created_at"),
    )
    op.create_index("ix_purchases_user_id", "purchases", ["user_id"])

    op.create_table(
        "narrator_requests",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("user_id", sa.String(length=36), sa.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False),
        sa.Column("experience_text", sa.Text(), nullable=False),
        sa.Column("voice_sample_path", sa.String(length=1024), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("reviewed_by", sa.String(length=36), nullable=True),
        sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("admin_feedback", sa.Text(), nullable=True),
        _now("created_at"),
        _now("updated_at"),
    )
    op.create_index("ix_narrator_requests_user_id", "narrator_requests", ["user_id"])
    op.create_index("ix_narrator_requests_status", "narrator_requests", ["status"])
    op.create_index("ix_narrator_requests_created_at", "narrator_requests", ["created_at"])


def downgrade() -> None:
    # Use IF EXISTS so downgrade doesn't fail when objects are missing
    op.execute("DROP TABLE IF EXISTS narrator_requests;")
    op.execute("DROP TABLE IF EXISTS purchases;")
    op.execute("DROP TABLE IF EXISTS reviews;")
    op.execute("DROP TABLE IF EXISTS support_messages;")
    op.execute("DROP TABLE IF EXISTS support_tickets;")
