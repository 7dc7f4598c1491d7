"""Initial migration

Revision ID: 001_initial
Revises:
Create Date: 2026-10-19

Users, magic-link tokens, forms, their fields and submitted responses.
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = '001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

FIELD_TYPES = (
    'TEXT', 'TEXTAREA', 'SELECT', 'RADIO', 'CHECKBOX', 'EMAIL',
    'PHONE', 'NUMBER', 'RATING', 'FILE', 'DATE', 'TIME',
)


def upgrade() -> None:
    fieldtype_enum = sa.Enum(*FIELD_TYPES, name='fieldtype')
    fieldtype_enum.create(op.get_bind(), checkfirst=True)

    # Users table
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('email', sa.String(255), unique=True, nullable=False, index=True),
        sa.Column('name', sa.String(100)),
        sa.Column('image', sa.String(500)),
        sa.Column('email_verified', sa.Boolean(), server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True)),
    )

    # Magic link tokens (hash only)
    op.create_table(
        'verification_tokens',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False, index=True),
        sa.Column('token_hash', sa.String(64), unique=True, nullable=False, index=True),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('used_at', sa.DateTime(timezone=True)),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # Forms table
    op.create_table(
        'forms',
        sa.Column('id', sa.String(64), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('slug', sa.String(100), unique=True, nullable=False, index=True),
        sa.Column('estimated_time', sa.String(50)),
        sa.Column('is_draft', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('is_published', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('published_at', sa.DateTime(timezone=True)),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_forms_user_updated', 'forms', ['user_id', 'updated_at'])

    # Fields table; rows are replaced wholesale on every save
    op.create_table(
        'fields',
        sa.Column('pk', sa.Integer(), primary_key=True),
        sa.Column('id', sa.String(64), nullable=False, index=True),
        sa.Column('form_id', sa.String(64), sa.ForeignKey('forms.id', ondelete='CASCADE'), nullable=False),
        sa.Column('type', sa.Enum(*FIELD_TYPES, name='fieldtype', create_type=False), nullable=False),
        sa.Column('question', sa.Text(), nullable=False),
        sa.Column('required', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('order', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('placeholder', sa.String(255)),
        sa.Column('options', sa.Text()),
        sa.Column('rows', sa.Integer()),
        sa.Column('min_value', sa.Float()),
        sa.Column('max_value', sa.Float()),
        sa.Column('step', sa.Float()),
        sa.Column('min_length', sa.Integer()),
        sa.Column('max_length', sa.Integer()),
        sa.Column('min_bound', sa.String(32)),
        sa.Column('max_bound', sa.String(32)),
    )
    op.create_index('ix_fields_form_order', 'fields', ['form_id', 'order'])

    # Responses table
    op.create_table(
        'responses',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('form_id', sa.String(64), sa.ForeignKey('forms.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('answers', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )


def downgrade() -> None:
    op.drop_table('responses')
    op.drop_index('ix_fields_form_order', table_name='fields')
    op.drop_table('fields')
    op.drop_index('ix_forms_user_updated', table_name='forms')
    op.drop_table('forms')
    op.drop_table('verification_tokens')
    op.drop_table('users')
    sa.Enum(name='fieldtype').drop(op.get_bind(), checkfirst=True)
