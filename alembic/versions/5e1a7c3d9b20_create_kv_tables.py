"""Create key-value record and index set tables

Revision ID: 5e1a7c3d9b20
Revises:
Create Date: 2026-10-19

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "5e1a7c3d9b20"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "kv_records",
        sa.Column("key", sa.String(), nullable=False),
        sa.Column("value", sa.JSON(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("key"),
    )
    op.create_table(
        "kv_set_members",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("set_key", sa.String(), nullable=False),
        sa.Column("member", sa.String(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("set_key", "member", name="uq_kv_set_member"),
    )
    op.create_index(op.f("ix_kv_set_members_set_key"), "kv_set_members", ["set_key"], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index(op.f("ix_kv_set_members_set_key"), table_name="kv_set_members")
    op.drop_table("kv_set_members")
    op.drop_table("kv_records")
