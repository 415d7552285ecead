"""Initial schema

Revision ID: 0001
Revises:
Create Date: 2024-01-01 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '0001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # Create users table
    op.create_table(
        'users',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('username', sa.String(50), nullable=False, unique=True),
        sa.Column('email', sa.String(100), nullable=True, unique=True),
        sa.Column('full_name', sa.String(200), nullable=True),
        sa.Column('hashed_password', sa.String(128), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('locale', sa.String(20), nullable=False, server_default='fa-IR'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
    )
    op.create_index('ix_users_username', 'users', ['username'])
    op.create_index('ix_users_email', 'users', ['email'])

    # Create user_settings table
    op.create_table(
        'user_settings',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('user_id', postgresql.UUID(as_uuid=True),
                  sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, unique=True),
        sa.Column('telegram_chat_id', sa.Text(), nullable=True),
        sa.Column('execution_module_settings', postgresql.JSON, nullable=False),
        sa.Column('notification_settings', postgresql.JSON, nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    )
    op.create_index('ix_user_settings_user_id', 'user_settings', ['user_id'])

    # Create items table
    op.create_table(
        'items',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('user_id', postgresql.UUID(as_uuid=True),
                  sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('title', sa.String(500), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('type', sa.String(20), nullable=False, server_default='TASK'),
        sa.Column('status', sa.String(20), nullable=False, server_default='TODO'),
        sa.Column('importance', sa.String(20), nullable=False, server_default='MEDIUM'),
        sa.Column('tags', postgresql.JSON, nullable=False),
        sa.Column('due_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    )
    op.create_index('ix_items_user_id', 'items', ['user_id'])
    op.create_index('ix_items_type', 'items', ['type'])
    op.create_index('ix_items_status', 'items', ['status'])
    op.create_index('ix_items_user_updated', 'items', ['user_id', 'updated_at'])

    # Create item_relations table
    op.create_table(
        'item_relations',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('from_item_id', postgresql.UUID(as_uuid=True),
                  sa.ForeignKey('items.id', ondelete='CASCADE'), nullable=False),
        sa.Column('to_item_id', postgresql.UUID(as_uuid=True),
                  sa.ForeignKey('items.id', ondelete='CASCADE'), nullable=False),
        sa.Column('relation_type', sa.String(20), nullable=False),
    )
    op.create_index('ix_item_relations_from_item_id', 'item_relations', ['from_item_id'])
    op.create_index('ix_item_relations_to_item_id', 'item_relations', ['to_item_id'])

    # Create comments table
    op.create_table(
        'comments',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('item_id', postgresql.UUID(as_uuid=True),
                  sa.ForeignKey('items.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', postgresql.UUID(as_uuid=True),
                  sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    )
    op.create_index('ix_comments_item_id', 'comments', ['item_id'])

    # Create ai_models table
    op.create_table(
        'ai_models',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('model_type', sa.String(30), nullable=False, server_default='OLLAMA_LOCAL'),
        sa.Column('endpoint', sa.String(500), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('parameters', postgresql.JSON, nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
        sa.UniqueConstraint('name', 'model_type', name='uq_ai_models_name_type'),
    )

    # Create ai_processing_logs table
    op.create_table(
        'ai_processing_logs',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('item_id', postgresql.UUID(as_uuid=True),
                  sa.ForeignKey('items.id', ondelete='CASCADE'), nullable=False),
        sa.Column('model_id', postgresql.UUID(as_uuid=True),
                  sa.ForeignKey('ai_models.id', ondelete='SET NULL'), nullable=True),
        sa.Column('log_level', sa.String(20), nullable=False, server_default='INFO'),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('details', postgresql.JSON, nullable=False),
        sa.Column('timestamp', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('is_deleted', sa.Boolean(), nullable=False, server_default=sa.false()),
    )
    op.create_index('ix_ai_processing_logs_item_id', 'ai_processing_logs', ['item_id'])
    op.create_index('ix_ai_processing_logs_item_level', 'ai_processing_logs', ['item_id', 'log_level'])

    # Create ai_analysis_results table
    op.create_table(
        'ai_analysis_results',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('item_id', postgresql.UUID(as_uuid=True),
                  sa.ForeignKey('items.id', ondelete='CASCADE'), nullable=False),
        sa.Column('model_id', postgresql.UUID(as_uuid=True),
                  sa.ForeignKey('ai_models.id', ondelete='SET NULL'), nullable=True),
        sa.Column('title', sa.String(500), nullable=False),
        sa.Column('content', postgresql.JSON, nullable=False),
        sa.Column('processing_strategy', sa.String(40), nullable=False),
        sa.Column('is_visible_in_overview', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    )
    op.create_index('ix_ai_analysis_results_item_id', 'ai_analysis_results', ['item_id'])

    # Create notifications table
    op.create_table(
        'notifications',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('user_id', postgresql.UUID(as_uuid=True),
                  sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('item_id', postgresql.UUID(as_uuid=True),
                  sa.ForeignKey('items.id', ondelete='CASCADE'), nullable=True),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('interaction_type', sa.String(20), nullable=False, server_default='INFO'),
        sa.Column('interaction_data', postgresql.JSON, nullable=False),
        sa.Column('response', postgresql.JSON, nullable=True),
        sa.Column('channels', postgresql.JSON, nullable=False),
        sa.Column('is_read', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('read_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    )
    op.create_index('ix_notifications_user_id', 'notifications', ['user_id'])
    op.create_index('ix_notifications_item_id', 'notifications', ['item_id'])
    op.create_index('ix_notifications_is_read', 'notifications', ['is_read'])
    op.create_index('ix_notifications_created_at', 'notifications', ['created_at'])
    op.create_index('ix_notifications_user_unread', 'notifications', ['user_id', 'is_read', 'created_at'])


def downgrade() -> None:
    op.drop_table('notifications')
    op.drop_table('ai_analysis_results')
    op.drop_table('ai_processing_logs')
    op.drop_table('ai_models')
    op.drop_table('comments')
    op.drop_table('item_relations')
    op.drop_table('items')
    op.drop_table('user_settings')
    op.drop_table('users')
