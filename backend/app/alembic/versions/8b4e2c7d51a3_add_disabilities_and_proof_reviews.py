"""Add applicant disability flags and proof review records

Revision ID: 8b4e2c7d51a3
Revises: 3c1f0a9d2e71
Create Date: 2026-10-18 14:30:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "8b4e2c7d51a3"
down_revision = "3c1f0a9d2e71"
branch_labels = None
depends_on = None

DISABILITY_COLUMNS = (
    "hearing_disability",
    "vision_disability",
    "speech_disability",
    "mobility_disability",
    "cognition_disability",
)


def upgrade():
    with op.batch_alter_table("user") as batch_op:
        for name in DISABILITY_COLUMNS:
            batch_op.add_column(
                sa.Column(name, sa.Boolean(), nullable=False, server_default=sa.false())
            )

    op.create_table(
        "proof_review",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("proof_type", sa.String(length=32), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("rejection_reason", sa.String(length=64), nullable=True),
        sa.Column("notes", sa.String(length=2000), nullable=True),
        sa.Column("submission_method", sa.String(length=32), nullable=False),
        sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("application_id", sa.Uuid(), nullable=False),
        sa.Column("admin_id", sa.Uuid(), nullable=True),
        sa.ForeignKeyConstraint(
            ["application_id"], ["paper_application.id"], ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(["admin_id"], ["user.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_proof_review_application_id"), "proof_review", ["application_id"]
    )


def downgrade():
    op.drop_index(op.f("ix_proof_review_application_id"), table_name="proof_review")
    op.drop_table("proof_review")
    with op.batch_alter_table("user") as batch_op:
        for name in reversed(DISABILITY_COLUMNS):
            batch_op.drop_column(name)
