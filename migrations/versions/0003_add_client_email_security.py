"""add email security columns to clients

Revision ID: 0003_add_client_email_security
Revises: 0002_create_integration_settings
Create Date: 2026-10-19 09:20:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '0003_add_client_email_security'
down_revision: Union[str, None] = '0002_create_integration_settings'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

COLUMNS = [
    ('dmarc', sa.String()),
    ('dmarc_record', sa.Text()),
    ('dmarc_last_checked', sa.DateTime()),
    ('spf', sa.String()),
    ('spf_record', sa.Text()),
    ('spf_last_checked', sa.DateTime()),
    ('dkim', sa.String()),
    ('dkim_selector', sa.String()),
    ('dkim_record', sa.Text()),
    ('dkim_last_checked', sa.DateTime()),
]


def upgrade() -> None:
    """Store the latest DMARC, SPF and DKIM lookup results per client."""
    with op.batch_alter_table('clients') as batch_op:
        for name, column_type in COLUMNS:
            batch_op.add_column(sa.Column(name, column_type, nullable=True))


def downgrade() -> None:
    with op.batch_alter_table('clients') as batch_op:
        for name, _ in reversed(COLUMNS):
            batch_op.drop_column(name)
