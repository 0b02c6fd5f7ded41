"""Initial schema - CRM, ticketing and email categorization tables

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19

Portable DDL (no Postgres extensions); enums are stored as their value strings.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001_initial'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    """Create all tables."""

    # ==========================================================================
    # Customers / Agents
    # ==========================================================================
    op.create_table(
        'customers',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('email', sa.String(320), nullable=False),
        sa.Column('phone', sa.String(50), nullable=True),
        sa.Column('company', sa.String(255), nullable=True),
        *_timestamps(),
    )
    op.create_index('idx_customers_email', 'customers', ['email'])

    op.create_table(
        'agents',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('email', sa.String(320), nullable=False),
        sa.Column('status', sa.String(32), nullable=False),
        sa.Column('max_concurrent_tickets', sa.Integer(), nullable=False),
        sa.Column('assigned_categories', sa.JSON(), nullable=False),
        sa.Column(
            'supervisor_id',
            sa.Uuid(),
            sa.ForeignKey('agents.id', ondelete='SET NULL'),
            nullable=True,
        ),
        *_timestamps(),
    )
    op.create_index('idx_agents_email', 'agents', ['email'])

    # ==========================================================================
    # Tickets
    # ==========================================================================
    op.create_table(
        'tickets',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('title', sa.String(500), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('status', sa.String(32), nullable=False),
        sa.Column('priority', sa.String(32), nullable=False),
        sa.Column('category', sa.String(32), nullable=False),
        sa.Column(
            'customer_id',
            sa.Uuid(),
            sa.ForeignKey('customers.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column(
            'assigned_agent_id',
            sa.Uuid(),
            sa.ForeignKey('agents.id', ondelete='SET NULL'),
            nullable=True,
        ),
        sa.Column('email_thread_id', sa.String(512), nullable=True),
        sa.Column('last_email_received_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index(
        'idx_tickets_customer_category_status',
        'tickets',
        ['customer_id', 'category', 'status'],
    )
    op.create_index('idx_tickets_assigned_agent', 'tickets', ['assigned_agent_id'])

    op.create_table(
        'ticket_activities',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column(
            'ticket_id',
            sa.Uuid(),
            sa.ForeignKey('tickets.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column('agent_id', sa.String(64), nullable=False),
        sa.Column('type', sa.String(32), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('old_value', sa.String(255), nullable=True),
        sa.Column('new_value', sa.String(255), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index(
        'idx_ticket_activities_ticket_created',
        'ticket_activities',
        ['ticket_id', 'created_at'],
    )

    op.create_table(
        'comments',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column(
            'ticket_id',
            sa.Uuid(),
            sa.ForeignKey('tickets.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column('author_id', sa.String(64), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('idx_comments_ticket_created', 'comments', ['ticket_id', 'created_at'])

    # ==========================================================================
    # Email categorization
    # ==========================================================================
    op.create_table(
        'incoming_emails',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('from_address', sa.String(320), nullable=False),
        sa.Column('to_address', sa.String(320), nullable=True),
        sa.Column('subject', sa.Text(), nullable=False),
        sa.Column('body', sa.Text(), nullable=False),
        sa.Column(
            'customer_id',
            sa.Uuid(),
            sa.ForeignKey('customers.id', ondelete='SET NULL'),
            nullable=True,
        ),
        sa.Column('received_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('idx_incoming_emails_from', 'incoming_emails', ['from_address'])

    op.create_table(
        'email_categorizations',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column(
            'incoming_email_id',
            sa.Uuid(),
            sa.ForeignKey('incoming_emails.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column('category', sa.String(32), nullable=False),
        sa.Column('language', sa.String(32), nullable=False),
        sa.Column('confidence', sa.Float(), nullable=False),
        sa.Column('is_category_correct', sa.Boolean(), nullable=True),
        sa.Column('is_language_correct', sa.Boolean(), nullable=True),
        sa.Column('corrected_category', sa.String(32), nullable=True),
        sa.Column('corrected_language', sa.String(32), nullable=True),
        sa.Column('feedback_sent_to_llm', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('feedback_sent_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('llm_suggestion', sa.Text(), nullable=True),
        sa.Column('llm_suggestion_category', sa.String(32), nullable=True),
        sa.Column('llm_suggestion_language', sa.String(32), nullable=True),
        *_timestamps(),
    )
    op.create_index(
        'idx_email_categorizations_email',
        'email_categorizations',
        ['incoming_email_id'],
    )
    op.create_index(
        'idx_email_categorizations_feedback',
        'email_categorizations',
        ['feedback_sent_to_llm'],
    )


def downgrade() -> None:
    """Drop all tables."""
    op.drop_table('email_categorizations')
    op.drop_table('incoming_emails')
    op.drop_table('comments')
    op.drop_table('ticket_activities')
    op.drop_table('tickets')
    op.drop_table('agents')
    op.drop_table('customers')
