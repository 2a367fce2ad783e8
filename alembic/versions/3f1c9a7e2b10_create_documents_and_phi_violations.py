"""Create documents and phi_violations tables.

phi_violations is append-only and keyed independently of documents, so
deleting a document never removes the audit rows that describe it.
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = "3f1c9a7e2b10"
down_revision = None
branch_labels = None
depends_on = None


UUIDType = postgresql.UUID(as_uuid=True).with_variant(sa.String(length=36), "sqlite")
JSONType = postgresql.JSONB().with_variant(sa.JSON(), "sqlite")


def upgrade() -> None:
    op.create_table(
        "documents",
        sa.Column("path", sa.String(length=1024), nullable=False),
        sa.Column("collection_path", sa.String(length=1024), nullable=False),
        sa.Column("doc_id", sa.String(length=255), nullable=False),
        sa.Column("data", JSONType, nullable=False),
        sa.Column("create_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("update_time", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("path"),
    )
    op.create_index("ix_documents_collection_path", "documents", ["collection_path"])
    op.create_index("ix_documents_create_time", "documents", ["create_time"])

    op.create_table(
        "phi_violations",
        sa.Column("id", UUIDType, nullable=False),
        sa.Column("scope_id", sa.String(length=255), nullable=False),
        sa.Column("owner_id", sa.String(length=255), nullable=False),
        sa.Column("shift_id", sa.String(length=255), nullable=False),
        sa.Column("entity_id", sa.String(length=255), nullable=False),
        sa.Column("entity_kind", sa.String(length=50), nullable=False),
        sa.Column("document_path", sa.String(length=1024), nullable=True),
        sa.Column("timestamp_server", sa.DateTime(timezone=True), nullable=False),
        sa.Column("findings", JSONType, nullable=False),
        sa.Column("action", sa.String(length=32), nullable=False),
        sa.Column("severity", sa.String(length=16), nullable=False),
        sa.Column("dedupe_key", sa.String(length=64), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("dedupe_key"),
    )
    op.create_index("ix_phi_violations_scope_id", "phi_violations", ["scope_id"])
    op.create_index("ix_phi_violations_owner_id", "phi_violations", ["owner_id"])
    op.create_index("ix_phi_violations_timestamp_server", "phi_violations", ["timestamp_server"])


def downgrade() -> None:
    op.drop_index("ix_phi_violations_timestamp_server", table_name="phi_violations")
    op.drop_index("ix_phi_violations_owner_id", table_name="phi_violations")
    op.drop_index("ix_phi_violations_scope_id", table_name="phi_violations")
    op.drop_table("phi_violations")
    op.drop_index("ix_documents_create_time", table_name="documents")
    op.drop_index("ix_documents_collection_path", table_name="documents")
    op.drop_table("documents")
