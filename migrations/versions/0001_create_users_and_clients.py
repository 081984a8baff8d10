"""create users and clients

Revision ID: 0001_create_users_and_clients
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '0001_create_users_and_clients'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the staff users table and the Notion-linked clients table."""
    op.create_table(
        'users',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('name', sa.String(), nullable=True),
        sa.Column('role', sa.String(), nullable=False, server_default='VIEWER'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint("role IN ('ADMIN', 'IT_ENGINEER', 'VIEWER')", name='check_user_role'),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'clients',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('notion_page_id', sa.String(), nullable=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('status', sa.String(), nullable=False, server_default='ACTIVE'),
        sa.Column('priority', sa.String(), nullable=True),
        sa.Column('default_cadence', sa.String(), nullable=False, server_default='MONTHLY'),
        sa.Column('system_engineer_name', sa.String(), nullable=True),
        sa.Column('primary_consultant_name', sa.String(), nullable=True),
        sa.Column('secondary_consultant_names', sa.JSON(), nullable=False),
        sa.Column('it_manager_name', sa.String(), nullable=True),
        sa.Column('grce_engineer_name', sa.String(), nullable=True),
        sa.Column('poc_email', sa.String(), nullable=True),
        sa.Column('office_address', sa.Text(), nullable=True),
        sa.Column('hours_per_month', sa.Float(), nullable=True),
        sa.Column('it_syncs_frequency', sa.String(), nullable=True),
        sa.Column('onsites_frequency', sa.String(), nullable=True),
        sa.Column('compliance_frameworks', sa.JSON(), nullable=False),
        sa.Column('teams', sa.JSON(), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=True),
        sa.Column('website_url', sa.String(), nullable=True),
        sa.Column('it_glue_url', sa.String(), nullable=True),
        sa.Column('zendesk_url', sa.String(), nullable=True),
        sa.Column('notion_last_synced', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint(
            "status IN ('ACTIVE', 'INACTIVE', 'ON_HOLD', 'OFFBOARDING', 'AS_NEEDED')",
            name='check_client_status',
        ),
    )
    op.create_index('ix_clients_notion_page_id', 'clients', ['notion_page_id'], unique=True)


def downgrade() -> None:
    op.drop_index('ix_clients_notion_page_id', table_name='clients')
    op.drop_table('clients')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')
