"""Initial schema - users, feedbacks, audit_logs

Revision ID: 001
Revises: None
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Enums are stored as plain strings (non-native), so no CREATE TYPE here.

    # Users table. manager_id is not a foreign key.
    op.create_table(
        "users",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("username", sa.String(100), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("role", sa.String(10), nullable=False, server_default="USER"),
        sa.Column("manager_id", sa.String(64), nullable=True),
        sa.Column("is_approved", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("NOW()")),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("username"),
    )
    op.create_index("ix_users_username", "users", ["username"])
    op.create_index("ix_users_manager_id", "users", ["manager_id"])

    # Feedback reports
    op.create_table(
        "feedbacks",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("from_user_id", sa.String(64), nullable=False),
        sa.Column("to_user_id", sa.String(64), nullable=False),
        sa.Column("report_date", sa.Date(), nullable=False),
        sa.Column("order_number", sa.String(50), nullable=False, server_default=""),
        sa.Column("case_number", sa.String(50), nullable=False, server_default=""),
        sa.Column("fault_description", sa.Text(), nullable=False),
        sa.Column("process_type", sa.String(50), nullable=False),
        sa.Column("scenario_tag", sa.String(50), nullable=True),
        sa.Column("resolution_status", sa.String(20), nullable=False, server_default="Open"),
        sa.Column("approval_status", sa.String(10), nullable=False, server_default="Pending"),
        sa.Column("priority", sa.String(10), nullable=False, server_default="Medium"),
        sa.Column("feedback_content", sa.Text(), nullable=False, server_default=""),
        sa.Column("additional_notes", sa.Text(), nullable=False, server_default=""),
        sa.Column("resolution_date", sa.Date(), nullable=True),
        sa.Column("ai_analysis", sa.Text(), nullable=True),
        sa.Column("manager_notes", sa.Text(), nullable=True),
        sa.Column("manager_note_to_reporter", sa.Text(), nullable=True),
        sa.Column("manager_note_to_receiver", sa.Text(), nullable=True),
        sa.Column("manager_name", sa.String(100), nullable=True),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("NOW()")),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_feedbacks_from_user", "feedbacks", ["from_user_id"])
    op.create_index("idx_feedbacks_to_user", "feedbacks", ["to_user_id"])
    op.create_index("idx_feedbacks_timestamp", "feedbacks", ["timestamp"])

    # Append-only audit trail; user fields are copied at write time
    op.create_table(
        "audit_logs",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("user_name", sa.String(100), nullable=False),
        sa.Column("user_role", sa.String(10), nullable=False),
        sa.Column("action", sa.String(50), nullable=False),
        sa.Column("details", sa.Text(), nullable=False, server_default=""),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("NOW()")),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_audit_logs_user_id", "audit_logs", ["user_id"])
    op.create_index("idx_audit_logs_timestamp", "audit_logs", ["timestamp"])


def downgrade() -> None:
    op.drop_table("audit_logs")
    op.drop_table("feedbacks")
    op.drop_table("users")
