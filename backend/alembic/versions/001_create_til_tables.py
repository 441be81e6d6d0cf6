"""Create TIL tables

Revision ID: 001
Revises: None
Create Date: 2026-10-19 00:00:00.000000+00:00

What:  users, tokens, acronyms, categories and the acronym↔category pivot.
How:   Generic sa.Uuid ids (native UUID on PostgreSQL, CHAR(32) elsewhere);
       every foreign key cascades on delete.

Deletion behaviour:
    delete user     → their tokens and acronyms go, then those pivot rows
    delete acronym  → its pivot rows go
    delete category → its pivot rows go; acronyms stay
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("username", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False, server_default=""),
        sa.Column(
            "external_identity",
            sa.String(255),
            nullable=True,
            comment="Provider-verified identity, e.g. google:<id>",
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("external_identity", name="uq_users_external_identity"),
    )
    op.create_index("ix_users_username", "users", ["username"], unique=True)

    op.create_table(
        "tokens",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("value", sa.String(64), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_tokens_value", "tokens", ["value"], unique=True)
    op.create_index("ix_tokens_user_id", "tokens", ["user_id"])

    op.create_table(
        "acronyms",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("short", sa.String(255), nullable=False),
        sa.Column("long", sa.String(1024), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_acronyms_short", "acronyms", ["short"])
    op.create_index("ix_acronyms_user_id", "acronyms", ["user_id"])

    op.create_table(
        "categories",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False, comment="Case-sensitive tag name"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name", name="uq_categories_name"),
    )

    op.create_table(
        "acronym_category_pivot",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("acronym_id", sa.Uuid(), nullable=False),
        sa.Column("category_id", sa.Uuid(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["acronym_id"], ["acronyms.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["category_id"], ["categories.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("acronym_id", "category_id", name="uq_acronym_category"),
    )
    op.create_index("ix_acronym_category_pivot_category_id", "acronym_category_pivot", ["category_id"])


def downgrade() -> None:
    """Drop every TIL table. Destructive: all data is lost."""
    op.drop_index("ix_acronym_category_pivot_category_id", table_name="acronym_category_pivot")
    op.drop_table("acronym_category_pivot")
    op.drop_table("categories")
    op.drop_index("ix_acronyms_user_id", table_name="acronyms")
    op.drop_index("ix_acronyms_short", table_name="acronyms")
    op.drop_table("acronyms")
    op.drop_index("ix_tokens_user_id", table_name="tokens")
    op.drop_index("ix_tokens_value", table_name="tokens")
    op.drop_table("tokens")
    op.drop_index("ix_users_username", table_name="users")
    op.drop_table("users")
