"""initial_membership_schema

Revision ID: 0001_initial_membership_schema
Revises:
Create Date: 2024-09-02 10:12:41.503118

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001_initial_membership_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

MEMBER_STATUSES = (
    'pending', 'active', 'honor', 'rejected', 'expired',
    'president', 'vice_president', 'secretary', 'treasurer', 'honorary_president',
)


def _status_type():
    return sa.Enum(*MEMBER_STATUSES, name='memberstatus', native_enum=False, length=32)


def upgrade() -> None:
    op.create_table(
        'members',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('first_name', sa.String(length=100), nullable=False),
        sa.Column('last_name', sa.String(length=100), nullable=False),
        sa.Column('email', sa.String(length=254), nullable=False),
        sa.Column('student_id', sa.String(length=50), nullable=True),
        sa.Column('enrollment_track', sa.String(length=100), nullable=False),
        sa.Column('phone', sa.String(length=30), nullable=True),
        sa.Column('telegram', sa.String(length=100), nullable=True),
        sa.Column('discord', sa.String(length=100), nullable=True),
        sa.Column('status', _status_type(), nullable=False, server_default='pending'),
        sa.Column('approved_at', sa.DateTime(), nullable=True),
        sa.Column('expires_at', sa.Date(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_members_email', 'members', ['email'], unique=True)
    op.create_index('ix_members_status', 'members', ['status'], unique=False)

    op.create_table(
        'membership_history',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('member_id', sa.Integer(), nullable=False),
        sa.Column('old_status', _status_type(), nullable=True),
        sa.Column('new_status', _status_type(), nullable=False),
        sa.Column('changed_by', sa.String(length=100), nullable=True),
        sa.Column('reason', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.ForeignKeyConstraint(['member_id'], ['members.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_membership_history_member_id', 'membership_history', ['member_id'], unique=False)

    settings_table = op.create_table(
        'settings',
        sa.Column('key', sa.String(length=100), nullable=False),
        sa.Column('value', sa.Text(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.PrimaryKeyConstraint('key'),
    )
    op.bulk_insert(settings_table, [
        {'key': 'membership_open', 'value': 'true'},
        {'key': 'current_year', 'value': '2024-2025'},
        {
            'key': 'enrollment_tracks',
            'value': '["L1 Informatique", "L2 Informatique", "L3 Informatique", '
                     '"M1 Informatique", "M2 Informatique", "Autre"]',
        },
    ])


def downgrade() -> None:
    op.drop_table('settings')
    op.drop_index('ix_membership_history_member_id', table_name='membership_history')
    op.drop_table('membership_history')
    op.drop_index('ix_members_status', table_name='members')
    op.drop_index('ix_members_email', table_name='members')
    op.drop_table('members')
