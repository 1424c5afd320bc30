"""add_enrollment_number_to_members

Revision ID: 0002_add_enrollment_number
Revises: 0001_initial_membership_schema
Create Date: 2024-10-14 18:40:07.221954

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0002_add_enrollment_number'
down_revision: Union[str, None] = '0001_initial_membership_schema'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Enrollment number (N° inscription), distinct from the student id
    op.add_column('members', sa.Column('enrollment_number', sa.String(length=50), nullable=True))
    op.create_index('ix_members_enrollment_number', 'members', ['enrollment_number'], unique=False)


def downgrade() -> None:
    op.drop_index('ix_members_enrollment_number', table_name='members')
    with op.batch_alter_table('members') as batch_op:
        batch_op.drop_column('enrollment_number')
