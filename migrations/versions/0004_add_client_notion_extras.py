"""add remaining Notion directory columns to clients

Revision ID: 0004_add_client_notion_extras
Revises: 0003_add_client_email_security
Create Date: 2026-10-20 10:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '0004_add_client_notion_extras'
down_revision: Union[str, None] = '0003_add_client_email_security'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

NULLABLE_COLUMNS = [
    ('trello_url', sa.String()),
    ('one_password_url', sa.String()),
    ('shared_drive_url', sa.String()),
    ('access_requests', sa.String()),
    ('user_access_reviews', sa.String()),
    ('accepted_password_policy', sa.Boolean()),
    ('estimation', sa.Text()),
]
LIST_COLUMNS = ['hr_processes', 'policies']


def upgrade() -> None:
    """Links, access review and HR/policy fields synced from Notion."""
    with op.batch_alter_table('clients') as batch_op:
        for name, column_type in NULLABLE_COLUMNS:
            batch_op.add_column(sa.Column(name, column_type, nullable=True))
        for name in LIST_COLUMNS:
            # Existing rows need a value before the NOT NULL applies
            batch_op.add_column(sa.Column(name, sa.JSON(), nullable=False, server_default=sa.text("'[]'")))


def downgrade() -> None:
    with op.batch_alter_table('clients') as batch_op:
        for name in reversed(LIST_COLUMNS):
            batch_op.drop_column(name)
        for name, _ in reversed(NULLABLE_COLUMNS):
            batch_op.drop_column(name)
