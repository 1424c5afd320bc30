"""bureau_unique_role_index

Revision ID: 0003_bureau_unique_role_index
Revises: 0002_add_enrollment_number
Create Date: 2025-01-08 09:03:55.870412

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0003_bureau_unique_role_index'
down_revision: Union[str, None] = '0002_add_enrollment_number'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

UNIQUE_ROLE_PREDICATE = "status IN ('president', 'vice_president', 'secretary', 'treasurer')"


def upgrade() -> None:
    # Fails if duplicate role holders already exist; resolve them before upgrading
    op.create_index(
        'uq_members_unique_role',
        'members',
        ['status'],
        unique=True,
        sqlite_where=sa.text(UNIQUE_ROLE_PREDICATE),
        postgresql_where=sa.text(UNIQUE_ROLE_PREDICATE),
    )


def downgrade() -> None:
    op.drop_index('uq_members_unique_role', table_name='members')
