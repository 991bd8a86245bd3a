"""Create audit_log table

Revision ID: 001
Revises: None
Create Date: 2026-10-19 00:00:00.000000+00:00

What:  Creates the `audit_log` table the request pipeline writes faults to.
How:   Portable column types (UUID, TIMESTAMP WITH TIME ZONE) so the same
       migration runs on PostgreSQL and on SQLite for local checks.

After upgrade, set DATABASE_INSTALLED=true to enable audit writes.
Rollback: downgrade() drops the table entirely (destructive).
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the audit_log table and its created_at index (see storegate/models/audit_log.py)."""
    op.create_table(
        "audit_log",
        sa.Column("id", sa.Uuid(), nullable=False, comment="Unique identifier"),
        sa.Column(
            "level",
            sa.String(20),
            nullable=False,
            server_default=sa.text("'ERROR'"),
            comment="Severity of the entry",
        ),
        sa.Column(
            "short_message",
            sa.Text(),
            nullable=False,
            comment="Fault message or summary line",
        ),
        sa.Column(
            "full_message",
            sa.Text(),
            nullable=True,
            comment="Formatted traceback of the fault, if any",
        ),
        sa.Column(
            "actor_id",
            sa.String(64),
            nullable=True,
            comment="Identifier of the actor the request ran as",
        ),
        sa.Column("ip_address", sa.String(64), nullable=True),
        sa.Column("page_url", sa.Text(), nullable=True),
        sa.Column("referrer_url", sa.Text(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
            comment="When this entry was written (UTC)",
        ),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_index(
        "idx_audit_log_created_at",
        "audit_log",
        [sa.text("created_at DESC")],
    )


def downgrade() -> None:
    """Drop the audit_log table. All recorded faults are lost."""
    op.drop_index("idx_audit_log_created_at", table_name="audit_log")
    op.drop_table("audit_log")
