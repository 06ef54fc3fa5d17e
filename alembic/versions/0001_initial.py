"""initial schema

Revision ID: 0001
Revises:
Create Date: 2026-10-01 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'profiles',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('hashed_password', sa.String(length=255), nullable=False),
        sa.Column('full_name', sa.String(length=255), nullable=True),
        sa.Column('role', sa.String(length=50), nullable=False, server_default='supervisor'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email'),
    )

    op.create_table(
        'guards',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('full_name', sa.String(length=255), nullable=False),
        sa.Column('employment_type', sa.String(length=20), nullable=False, server_default='w2'),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='active'),
        sa.Column('site_id', sa.String(length=100), nullable=True),
        sa.Column('contact_email', sa.String(length=255), nullable=True),
        sa.Column('contact_phone', sa.String(length=50), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table(
        'violation_types',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('label', sa.String(length=255), nullable=False),
        sa.Column('slug', sa.String(length=100), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('slug'),
    )

    op.create_table(
        'posts',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table(
        'violations',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('guard_id', sa.Uuid(), nullable=False),
        sa.Column('type_id', sa.Uuid(), nullable=False),
        sa.Column('occurred_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('shift', sa.String(length=20), nullable=True),
        sa.Column('post', sa.String(length=255), nullable=True),
        sa.Column('lane', sa.String(length=50), nullable=True),
        sa.Column('supervisor_note', sa.Text(), nullable=False),
        sa.Column('witness_name', sa.String(length=255), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='open'),
        sa.Column('doc_status', sa.String(length=20), nullable=True),
        sa.Column('documentation_due_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('breach_days', sa.Integer(), nullable=True),
        sa.Column('eligible_return_date', sa.Date(), nullable=True),
        sa.Column('supervisor_id', sa.Uuid(), nullable=True),
        sa.Column('created_by', sa.Uuid(), nullable=True),
        sa.Column('supervisor_attested_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('supervisor_signature_name', sa.String(length=255), nullable=True),
        sa.Column('approved_by', sa.Uuid(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['guard_id'], ['guards.id']),
        sa.ForeignKeyConstraint(['type_id'], ['violation_types.id']),
        sa.ForeignKeyConstraint(['supervisor_id'], ['profiles.id']),
        sa.ForeignKeyConstraint(['created_by'], ['profiles.id']),
        sa.ForeignKeyConstraint(['approved_by'], ['profiles.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_violations_occurred_at', 'violations', ['occurred_at'])

    op.create_table(
        'violation_files',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('violation_id', sa.Uuid(), nullable=False),
        sa.Column('file_path', sa.String(length=1000), nullable=False),
        sa.Column('uploaded_by', sa.Uuid(), nullable=True),
        sa.Column('uploaded_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['violation_id'], ['violations.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['uploaded_by'], ['profiles.id']),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table(
        'audit_types',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('label', sa.String(length=255), nullable=False),
        sa.Column('slug', sa.String(length=100), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('slug'),
    )

    op.create_table(
        'audits',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('guard_id', sa.Uuid(), nullable=False),
        sa.Column('audit_type_id', sa.Uuid(), nullable=True),
        sa.Column('occurred_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('post', sa.String(length=255), nullable=True),
        sa.Column('lane', sa.String(length=50), nullable=True),
        sa.Column('shift', sa.String(length=20), nullable=True),
        sa.Column('pass', sa.Boolean(), nullable=True),
        sa.Column('score', sa.Numeric(precision=5, scale=1), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_by', sa.Uuid(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['guard_id'], ['guards.id']),
        sa.ForeignKeyConstraint(['audit_type_id'], ['audit_types.id']),
        sa.ForeignKeyConstraint(['created_by'], ['profiles.id']),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table(
        'contractor_breaches',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('guard_id', sa.Uuid(), nullable=True),
        sa.Column('contractor_name', sa.String(length=255), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('eligible_return_date', sa.Date(), nullable=False),
        sa.Column('violation_code', sa.String(length=100), nullable=True),
        sa.Column('reason', sa.Text(), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='active'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['guard_id'], ['guards.id']),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table(
        'announcements',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('body', sa.Text(), nullable=False),
        sa.Column('author', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )


def downgrade() -> None:
    op.drop_table('announcements')
    op.drop_table('contractor_breaches')
    op.drop_table('audits')
    op.drop_table('audit_types')
    op.drop_table('violation_files')
    op.drop_index('ix_violations_occurred_at', table_name='violations')
    op.drop_table('violations')
    op.drop_table('posts')
    op.drop_table('violation_types')
    op.drop_table('guards')
    op.drop_table('profiles')
