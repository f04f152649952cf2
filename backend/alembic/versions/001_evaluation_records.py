"""Evaluation history

Revision ID: 001
Revises:
Create Date: 2026-10-17

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Create ENUM types
    op.execute("CREATE TYPE application_type AS ENUM ('NEW', 'EXTENSION', 'CHANGE')")
    op.execute("CREATE TYPE evaluation_status AS ENUM ('COMPLETED', 'FAILED')")

    # Create evaluation_records table
    op.create_table(
        'evaluation_records',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('visa_type', sa.String(length=10), nullable=False),
        sa.Column('application_type', postgresql.ENUM(name='application_type', create_type=False), nullable=False),
        sa.Column('user_id', sa.String(length=100), nullable=True),
        sa.Column('evaluation_id', sa.String(length=100), nullable=True),
        sa.Column('status', postgresql.ENUM(name='evaluation_status', create_type=False), nullable=False),
        sa.Column('pass_pre_screening', sa.Boolean(), nullable=True),
        sa.Column('success_probability', sa.Integer(), nullable=True),
        sa.Column('rule_set_version', sa.String(length=20), nullable=True),
        sa.Column('result', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('error', sa.Text(), nullable=True),
    )
    op.create_index('ix_evaluation_records_visa_type', 'evaluation_records', ['visa_type'])
    op.create_index('ix_evaluation_records_user_id', 'evaluation_records', ['user_id'])
    op.create_index('ix_evaluation_records_evaluation_id', 'evaluation_records', ['evaluation_id'])
    op.create_index('ix_evaluation_records_status', 'evaluation_records', ['status'])


def downgrade() -> None:
    op.drop_index('ix_evaluation_records_status', table_name='evaluation_records')
    op.drop_index('ix_evaluation_records_evaluation_id', table_name='evaluation_records')
    op.drop_index('ix_evaluation_records_user_id', table_name='evaluation_records')
    op.drop_index('ix_evaluation_records_visa_type', table_name='evaluation_records')
    op.drop_table('evaluation_records')

    # Drop ENUM types
    op.execute('DROP TYPE evaluation_status')
    op.execute('DROP TYPE application_type')
