"""Initial rhythm planner schema."""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "202610190900"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column("last_planned_at", sa.DateTime(timezone=True), nullable=True),
    )

    op.create_table(
        "user_rhythms",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column(
            "blocks",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default=sa.text("'[]'::jsonb"),
        ),
        sa.Column("block_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("complexity_level", sa.String(length=32), nullable=True),
        sa.Column("fitness", sa.Float(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_user_rhythms_user_id", "user_rhythms", ["user_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_user_rhythms_user_id", table_name="user_rhythms")
    op.drop_table("user_rhythms")
    op.drop_table("users")
