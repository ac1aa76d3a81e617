"""Add approaches table

Revision ID: 002
Revises: 001
Create Date: 2026-10-19 12:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '002'
down_revision: Union[str, Sequence[str], None] = '001'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ENUMS = {
    'approachtype': ('COMPANY', 'FREELANCE'),
    'approachstatus': ('DRAFT', 'SENT', 'OPENED', 'REPLIED', 'PENDING', 'ACCEPTED', 'REJECTED'),
}


def upgrade() -> None:
    """Create the approaches table and its enums."""
    for name, values in ENUMS.items():
        labels = ', '.join(f"'{v}'" for v in values)
        op.execute(
            f"DO $$ BEGIN CREATE TYPE {name} AS ENUM ({labels}); "
            "EXCEPTION WHEN duplicate_object THEN null; END $$;"
        )

    op.create_table('approaches',
        sa.Column('id', sa.UUID(), server_default=sa.text('uuidv7()'), nullable=False),
        sa.Column('approach_type', postgresql.ENUM(*ENUMS['approachtype'], name='approachtype', create_type=False), nullable=False),
        sa.Column('to_company_id', sa.UUID(), nullable=True),
        sa.Column('target_name', sa.String(length=255), nullable=True),
        sa.Column('recipient_email', sa.String(length=255), nullable=True),
        sa.Column('engineer_ids', sa.JSON(), nullable=False),
        sa.Column('subject', sa.String(length=255), nullable=False),
        sa.Column('message_content', sa.Text(), nullable=False),
        sa.Column('project_details', sa.Text(), nullable=True),
        sa.Column('status', postgresql.ENUM(*ENUMS['approachstatus'], name='approachstatus', create_type=False), nullable=False),
        sa.Column('sent_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_by', sa.UUID(), nullable=False),
        sa.Column('sent_by', sa.UUID(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('company_id', sa.UUID(), nullable=False),
        sa.Column('is_deleted', sa.Boolean(), nullable=False),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['company_id'], ['companies.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['to_company_id'], ['companies.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_approaches_id', 'approaches', ['id'], unique=False)
    op.create_index('ix_approaches_company_id', 'approaches', ['company_id'], unique=False)
    op.create_index('ix_approaches_is_deleted', 'approaches', ['is_deleted'], unique=False)
    op.create_index('ix_approaches_to_company_id', 'approaches', ['to_company_id'], unique=False)
    op.create_index('idx_approach_company_sent_at', 'approaches', ['company_id', 'sent_at'], unique=False)


def downgrade() -> None:
    """Drop the approaches table and its enums."""
    op.drop_table('approaches')
    for name in reversed(list(ENUMS)):
        op.execute(f"DROP TYPE IF EXISTS {name}")
