"""Create paper application intake tables

Revision ID: 3c1f0a9d2e71
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "3c1f0a9d2e71"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "user",
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("is_superuser", sa.Boolean(), nullable=False),
        sa.Column("full_name", sa.String(length=255), nullable=True),
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("hashed_password", sa.String(), nullable=True),
        sa.Column("role", sa.String(length=32), nullable=False),
        sa.Column("first_name", sa.String(length=128), nullable=True),
        sa.Column("last_name", sa.String(length=128), nullable=True),
        sa.Column("phone", sa.String(length=32), nullable=True),
        sa.Column("physical_address_1", sa.String(length=255), nullable=True),
        sa.Column("physical_address_2", sa.String(length=255), nullable=True),
        sa.Column("city", sa.String(length=128), nullable=True),
        sa.Column("state", sa.String(length=32), nullable=True),
        sa.Column("zip_code", sa.String(length=16), nullable=True),
        sa.Column("uses_guardian_email", sa.Boolean(), nullable=False),
        sa.Column("uses_guardian_phone", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_user_email"), "user", ["email"], unique=True)

    op.create_table(
        "policy",
        sa.Column("key", sa.String(length=64), nullable=False),
        sa.Column("value", sa.Integer(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("key"),
    )

    op.create_table(
        "proof_blob",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("filename", sa.String(length=255), nullable=False),
        sa.Column("content_type", sa.String(length=100), nullable=False),
        sa.Column("byte_size", sa.Integer(), nullable=False),
        sa.Column("checksum", sa.String(length=64), nullable=False),
        sa.Column("storage_path", sa.String(length=1024), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "guardian_relationship",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("relationship_type", sa.String(length=64), nullable=False),
        sa.Column("guardian_id", sa.Uuid(), nullable=False),
        sa.Column("dependent_id", sa.Uuid(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["guardian_id"], ["user.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["dependent_id"], ["user.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "paper_application",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("submission_method", sa.String(length=32), nullable=False),
        sa.Column("household_size", sa.Integer(), nullable=False),
        sa.Column("annual_income", sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column("income_threshold", sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column("income_proof_status", sa.String(length=32), nullable=False),
        sa.Column("income_proof_rejection_reason", sa.String(length=64), nullable=True),
        sa.Column("income_proof_blob_id", sa.Uuid(), nullable=True),
        sa.Column("residency_proof_status", sa.String(length=32), nullable=False),
        sa.Column(
            "residency_proof_rejection_reason", sa.String(length=64), nullable=True
        ),
        sa.Column("residency_proof_blob_id", sa.Uuid(), nullable=True),
        sa.Column("notes", sa.String(length=2000), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("applicant_id", sa.Uuid(), nullable=False),
        sa.Column("managing_guardian_id", sa.Uuid(), nullable=True),
        sa.Column("created_by_id", sa.Uuid(), nullable=True),
        sa.ForeignKeyConstraint(
            ["income_proof_blob_id"], ["proof_blob.id"], ondelete="SET NULL"
        ),
        sa.ForeignKeyConstraint(
            ["residency_proof_blob_id"], ["proof_blob.id"], ondelete="SET NULL"
        ),
        sa.ForeignKeyConstraint(["applicant_id"], ["user.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(
            ["managing_guardian_id"], ["user.id"], ondelete="SET NULL"
        ),
        sa.ForeignKeyConstraint(["created_by_id"], ["user.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "application_audit_event",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("action", sa.String(length=64), nullable=False),
        sa.Column("reason", sa.String(length=1000), nullable=True),
        sa.Column("event_metadata", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("actor_user_id", sa.Uuid(), nullable=True),
        sa.Column("application_id", sa.Uuid(), nullable=False),
        sa.ForeignKeyConstraint(["actor_user_id"], ["user.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(
            ["application_id"], ["paper_application.id"], ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("id"),
    )


def downgrade():
    op.drop_table("application_audit_event")
    op.drop_table("paper_application")
    op.drop_table("guardian_relationship")
    op.drop_table("proof_blob")
    op.drop_table("policy")
    op.drop_index(op.f("ix_user_email"), table_name="user")
    op.drop_table("user")
