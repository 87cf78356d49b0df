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


def upgrade() -> None:
    op.create_table(
        "identities",
        sa.Column("uid", sa.String(length=36), primary_key=True),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("hashed_password", sa.String(length=255), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_identities_email", "identities", ["email"], unique=True)
    op.create_table(
        "identity_sessions",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("uid", sa.String(length=36), sa.ForeignKey("identities.uid"), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_identity_sessions_uid", "identity_sessions", ["uid"], unique=False)
    op.create_table(
        "documents",
        sa.Column("path", sa.String(length=512), primary_key=True),
        sa.Column("collection", sa.String(length=512), nullable=False),
        sa.Column("doc_id", sa.String(length=128), nullable=False),
        sa.Column("data", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_documents_collection", "documents", ["collection"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_documents_collection", table_name="documents")
    op.drop_table("documents")
    op.drop_index("ix_identity_sessions_uid", table_name="identity_sessions")
    op.drop_table("identity_sessions")
    op.drop_index("ix_identities_email", table_name="identities")
    op.drop_table("identities")
