"""Initial schema baseline

Revision ID: 001
Revises:
Create Date: 2026-10-19

This migration creates the baseline schema matching Base.metadata.create_all().
For databases created by init_db(), mark this migration as complete without
running it:
    alembic stamp 001
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # records table
    op.create_table(
        "records",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("url", sa.Text(), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("title_translated", sa.Text(), nullable=True),
        sa.Column("authors", sa.Text(), nullable=True),
        sa.Column("source", sa.Text(), nullable=True),
        sa.Column("date", sa.Text(), nullable=True),
        sa.Column("published_at", sa.Text(), nullable=True),
        sa.Column("abstract", sa.Text(), nullable=True),
        sa.Column("category", sa.Text(), nullable=True),
        sa.Column("provider", sa.Text(), nullable=True),
        sa.Column("importance", sa.Integer(), nullable=True),
        sa.Column("importance_level", sa.Text(), nullable=True),
        sa.Column("fetched_at", sa.Integer(), nullable=False),
        sa.Column("updated_at", sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("url"),
    )
    op.create_index("idx_records_category", "records", ["category"])
    op.create_index("idx_records_provider", "records", ["provider"])
    op.create_index("idx_records_date", "records", ["date"])
    op.create_index("idx_records_published_at", "records", ["published_at"])
    op.create_index("idx_records_importance", "records", ["importance"])
    op.create_index("idx_records_fetched_at", "records", ["fetched_at"])

    # subscribers table
    op.create_table(
        "subscribers",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("email", sa.Text(), nullable=False),
        sa.Column("name", sa.Text(), nullable=True),
        sa.Column("active", sa.Boolean(), nullable=True),
        sa.Column("created_at", sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
    )

    # collections table
    op.create_table(
        "collections",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("icon", sa.Text(), nullable=True),
        sa.Column("rules", sa.Text(), nullable=True),
        sa.Column("is_preset", sa.Boolean(), nullable=True),
        sa.Column("created_at", sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
    )

    # collection_items table
    op.create_table(
        "collection_items",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("collection_id", sa.Integer(), nullable=False),
        sa.Column("record_id", sa.Integer(), nullable=False),
        sa.Column("added_by", sa.Text(), nullable=True),
        sa.Column("added_at", sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["collection_id"], ["collections.id"]),
        sa.ForeignKeyConstraint(["record_id"], ["records.id"]),
        sa.UniqueConstraint("collection_id", "record_id", name="uq_collection_record"),
    )
    op.create_index("idx_collection_items_record", "collection_items", ["record_id"])


def downgrade() -> None:
    op.drop_index("idx_collection_items_record", table_name="collection_items")
    op.drop_table("collection_items")
    op.drop_table("collections")
    op.drop_table("subscribers")
    op.drop_index("idx_records_fetched_at", table_name="records")
    op.drop_index("idx_records_importance", table_name="records")
    op.drop_index("idx_records_published_at", table_name="records")
    op.drop_index("idx_records_date", table_name="records")
    op.drop_index("idx_records_provider", table_name="records")
    op.drop_index("idx_records_category", table_name="records")
    op.drop_table("records")
