"""library schema: courses, specializations, resources

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19
"""
from __future__ import annotations
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '20261019_0001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'courses',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column(
            'created_at', sa.DateTime(),
            server_default=sa.text('CURRENT_TIMESTAMP')
        ),
    )
    op.create_index('ix_courses_name', 'courses', ['name'], unique=True)

    op.create_table(
        'specializations',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column(
            'course_id',
            sa.Integer(),
            sa.ForeignKey('courses.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column(
            'created_at', sa.DateTime(),
            server_default=sa.text('CURRENT_TIMESTAMP')
        ),
        sa.UniqueConstraint(
            'name', 'course_id', name='uq_specializations_name_course'
        ),
    )
    op.create_index(
        'ix_specializations_course_id', 'specializations', ['course_id']
    )

    op.create_table(
        'resources',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('title', sa.String(length=100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('file_name', sa.String(length=255), nullable=False),
        sa.Column('file_url', sa.Text(), nullable=False),
        sa.Column('file_type', sa.String(length=100), nullable=False),
        sa.Column('category', sa.String(length=50), nullable=False),
        sa.Column('course', sa.String(length=50), nullable=True),
        sa.Column('specialization', sa.String(length=50), nullable=True),
        sa.Column(
            'created_at', sa.DateTime(),
            server_default=sa.text('CURRENT_TIMESTAMP')
        ),
    )
    op.create_index('ix_resources_category', 'resources', ['category'])
    op.create_index('ix_resources_course', 'resources', ['course'])
    op.create_index(
        'ix_resources_specialization', 'resources', ['specialization']
    )
    op.create_index('ix_resources_created_at', 'resources', ['created_at'])


def downgrade() -> None:
    op.drop_index('ix_resources_created_at', table_name='resources')
    op.drop_index('ix_resources_specialization', table_name='resources')
    op.drop_index('ix_resources_course', table_name='resources')
    op.drop_index('ix_resources_category', table_name='resources')
    op.drop_table('resources')
    op.drop_index(
        'ix_specializations_course_id', table_name='specializations'
    )
    op.drop_table('specializations')
    op.drop_index('ix_courses_name', table_name='courses')
    op.drop_table('courses')
