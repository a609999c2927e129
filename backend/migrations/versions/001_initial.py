"""Initial migration - create all tables

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-19

Creates all database tables for the Adaptive Diagnostic Service:
- learners: Learner profiles with latest fundamental scores
- questions: Question bank with difficulty and fundamental weights
- attempts: Diagnostic attempts with answer documents and aggregates
- practice_sessions: Practice generated for weak fundamentals

Also creates indexes for common query patterns.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers
revision: str = '001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # ── Learners Table ────────────────────────────────────────
    op.create_table(
        'learners',
        sa.Column('id', sa.String(128), primary_key=True),
        sa.Column('full_name', sa.Text(), nullable=True),
        sa.Column('email', sa.Text(), nullable=True),
        sa.Column('fundamental_scores', postgresql.JSONB(), nullable=False, server_default='{}'),
        sa.Column('overall_score', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True),
                  server_default=sa.func.now(), nullable=False),
    )

    # ── Questions Table ───────────────────────────────────────
    op.create_table(
        'questions',
        sa.Column('id', sa.String(128), primary_key=True),
        sa.Column('text', sa.Text(), nullable=False),
        sa.Column('difficulty', sa.Integer(), nullable=False, server_default='3'),
        sa.Column('options', postgresql.JSONB(), nullable=False, server_default='[]'),
        sa.Column('correct_choice', sa.Integer(), nullable=True),
        sa.Column('explanation', sa.Text(), nullable=True),
        sa.Column('fundamentals', postgresql.JSONB(), nullable=False, server_default='{}'),
        sa.Column('created_at', sa.DateTime(timezone=True),
                  server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint('difficulty BETWEEN 1 AND 5', name='ck_questions_difficulty_range'),
    )
    op.create_index('ix_questions_difficulty', 'questions', ['difficulty'])

    # ── Attempts Table ────────────────────────────────────────
    op.create_table(
        'attempts',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('learner_id', sa.String(128),
                  sa.ForeignKey('learners.id'), nullable=False),
        sa.Column('status', sa.Text(), nullable=False, server_default='OPEN'),
        sa.Column('started_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('answers', postgresql.JSONB(), nullable=False, server_default='[]'),
        sa.Column('expected_question_count', sa.Integer(), nullable=True),
        sa.Column('last_served_question_id', sa.String(128), nullable=True),
        sa.Column('prior_score', sa.Integer(), nullable=True),
        sa.Column('aggregates', postgresql.JSONB(), nullable=False, server_default='{}'),
        sa.Column('overall_score', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('weak_fundamentals', postgresql.JSONB(), nullable=False, server_default='[]'),
        sa.Column('version', sa.Integer(), nullable=False, server_default='1'),
    )

    op.create_index('ix_attempts_learner_id', 'attempts', ['learner_id'])
    op.create_index('ix_attempts_started_at', 'attempts', ['started_at'])

    # ── Practice Sessions Table ───────────────────────────────
    op.create_table(
        'practice_sessions',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('learner_id', sa.String(128),
                  sa.ForeignKey('learners.id'), nullable=False),
        sa.Column('attempt_id', postgresql.UUID(as_uuid=True),
                  sa.ForeignKey('attempts.id'), nullable=True),
        sa.Column('fundamental', sa.Text(), nullable=False),
        sa.Column('question_ids', postgresql.JSONB(), nullable=False, server_default='[]'),
        sa.Column('answers', postgresql.JSONB(), nullable=False, server_default='[]'),
        sa.Column('score', sa.Integer(), nullable=True),
        sa.Column('completed', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('started_at', sa.DateTime(timezone=True),
                  server_default=sa.func.now(), nullable=False),
        sa.Column('ended_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('version', sa.Integer(), nullable=False, server_default='1'),
    )

    op.create_index('ix_practice_sessions_learner_id', 'practice_sessions', ['learner_id'])


def downgrade() -> None:
    """Drop all tables in reverse dependency order."""
    op.drop_index('ix_practice_sessions_learner_id', table_name='practice_sessions')
    op.drop_table('practice_sessions')
    op.drop_index('ix_attempts_started_at', table_name='attempts')
    op.drop_index('ix_attempts_learner_id', table_name='attempts')
    op.drop_table('attempts')
    op.drop_index('ix_questions_difficulty', table_name='questions')
    op.drop_table('questions')
    op.drop_table('learners')
