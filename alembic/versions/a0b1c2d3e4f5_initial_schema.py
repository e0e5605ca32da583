"""initial_schema

Revision ID: a0b1c2d3e4f5
Revises:
Create Date: 2026-10-19 09:00:00.000000

초기 스키마: 사용자, 토큰, 뉴스, 강좌, 프로모션, 캘린더 이벤트.
Initial schema: users, tokens, news, courses, promotions and calendar events.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID


# revision identifiers, used by Alembic.
revision: str = 'a0b1c2d3e4f5'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    ]


def upgrade() -> None:
    # users — 사용자 계정 (role stored on the row)
    op.create_table(
        'users',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False, unique=True),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('role', sa.String(20), server_default='student', nullable=False),
        sa.Column('first_name', sa.String(100), nullable=False),
        sa.Column('last_name', sa.String(100), nullable=False),
        sa.Column('department', sa.String(100), nullable=True),
        sa.Column('student_id', sa.String(50), nullable=True),
        sa.Column('bio', sa.Text(), nullable=True),
        sa.Column('preferences', sa.JSON(), nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default=sa.text('true'), nullable=False),
        sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_role', 'users', ['role'])

    # refresh_tokens / password_reset_tokens — 토큰 (Session and reset tokens)
    op.create_table(
        'refresh_tokens',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('user_id', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('token', sa.String(512), nullable=False, unique=True),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_table(
        'password_reset_tokens',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('user_id', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('token', sa.String(128), nullable=False, unique=True),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('used', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # news_articles — 뉴스 기사 (author name/role snapshotted)
    op.create_table(
        'news_articles',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('title', sa.String(300), nullable=False),
        sa.Column('slug', sa.String(350), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('summary', sa.String(500), nullable=True),
        sa.Column('category', sa.String(20), server_default='general', nullable=False),
        sa.Column('tags', sa.JSON(), nullable=False),
        sa.Column('author_id', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('author_name', sa.String(200), nullable=False),
        sa.Column('author_role', sa.String(20), nullable=False),
        sa.Column('is_published', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.Column('is_pinned', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.Column('published_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('view_count', sa.Integer(), server_default='0', nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_news_articles_slug', 'news_articles', ['slug'], unique=True)
    op.create_index('ix_news_articles_category', 'news_articles', ['category'])

    # courses / course_enrollments — 강좌 및 수강 (Courses and enrollments)
    op.create_table(
        'courses',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('code', sa.String(20), nullable=False),
        sa.Column('title', sa.String(200), nullable=False),
        sa.Column('description', sa.Text(), server_default='', nullable=False),
        sa.Column('category', sa.String(50), server_default='general', nullable=False),
        sa.Column('level', sa.String(20), server_default='beginner', nullable=False),
        sa.Column('status', sa.String(20), server_default='draft', nullable=False),
        sa.Column('instructor_id', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('instructor_name', sa.String(200), server_default='', nullable=False),
        sa.Column('tags', sa.JSON(), nullable=False),
        sa.Column('capacity', sa.Integer(), server_default='30', nullable=False),
        sa.Column('credits', sa.Integer(), server_default='3', nullable=False),
        sa.Column('start_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('end_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('is_active', sa.Boolean(), server_default=sa.text('true'), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_courses_code', 'courses', ['code'], unique=True)
    op.create_index('ix_courses_category', 'courses', ['category'])
    op.create_index('ix_courses_status', 'courses', ['status'])
    op.create_index('ix_courses_instructor_id', 'courses', ['instructor_id'])

    op.create_table(
        'course_enrollments',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('course_id', UUID(as_uuid=True), sa.ForeignKey('courses.id', ondelete='CASCADE'), nullable=False),
        sa.Column('student_id', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('status', sa.String(20), server_default='active', nullable=False),
        sa.Column('progress', sa.Integer(), server_default='0', nullable=False),
        sa.Column('time_spent', sa.Integer(), server_default='0', nullable=False),
        sa.Column('enrolled_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_course_enrollments_course_id', 'course_enrollments', ['course_id'])
    op.create_index('ix_course_enrollments_student_id', 'course_enrollments', ['student_id'])
    # 학생당 강좌 1회 수강 — One enrollment per student per course
    op.create_unique_constraint('uq_enrollment_course_student', 'course_enrollments', ['course_id', 'student_id'])

    # events / event_attendees — 캘린더 이벤트 (Calendar events and RSVPs)
    op.create_table(
        'events',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('title', sa.String(200), nullable=False),
        sa.Column('description', sa.String(1000), nullable=True),
        sa.Column('location', sa.String(100), nullable=True),
        sa.Column('type', sa.String(20), server_default='event', nullable=False),
        sa.Column('start_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('end_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('linked_course_id', UUID(as_uuid=True), sa.ForeignKey('courses.id', ondelete='SET NULL'), nullable=True),
        sa.Column('is_recurring', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.Column('recurrence', sa.JSON(), nullable=True),
        sa.Column('capacity', sa.Integer(), nullable=True),
        sa.Column('is_public', sa.Boolean(), server_default=sa.text('true'), nullable=False),
        sa.Column('color', sa.String(7), server_default='#3b82f6', nullable=False),
        sa.Column('created_by', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_events_start_date', 'events', ['start_date'])
    op.create_index('ix_events_end_date', 'events', ['end_date'])
    op.create_index('ix_events_created_by', 'events', ['created_by'])

    op.create_table(
        'event_attendees',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('event_id', UUID(as_uuid=True), sa.ForeignKey('events.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('status', sa.String(20), server_default='accepted', nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_unique_constraint('uq_event_attendee', 'event_attendees', ['event_id', 'user_id'])

    # promotions + 연결 테이블 — Promotions and their membership/event links
    op.create_table(
        'promotions',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('semester', sa.Integer(), nullable=False),
        sa.Column('intake', sa.String(20), nullable=False),
        sa.Column('academic_year', sa.String(9), nullable=False),
        sa.Column('start_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('end_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('status', sa.String(20), server_default='draft', nullable=False),
        sa.Column('department', sa.String(100), nullable=True),
        sa.Column('level', sa.String(50), nullable=True),
        sa.Column('max_students', sa.Integer(), server_default='100', nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('created_by', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_promotions_semester', 'promotions', ['semester'])
    op.create_index('ix_promotions_academic_year', 'promotions', ['academic_year'])

    op.create_table(
        'promotion_students',
        sa.Column('promotion_id', UUID(as_uuid=True), sa.ForeignKey('promotions.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('student_id', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), primary_key=True),
    )
    op.create_table(
        'promotion_events',
        sa.Column('promotion_id', UUID(as_uuid=True), sa.ForeignKey('promotions.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('event_id', UUID(as_uuid=True), sa.ForeignKey('events.id', ondelete='CASCADE'), primary_key=True),
    )

    # student_validations — 학기 검증 결정 (Semester validation decisions)
    op.create_table(
        'student_validations',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('promotion_id', UUID(as_uuid=True), sa.ForeignKey('promotions.id', ondelete='CASCADE'), nullable=False),
        sa.Column('student_id', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('semester', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('overall_score', sa.Integer(), server_default='0', nullable=False),
        sa.Column('reason', sa.String(500), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('validated_by', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('validated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_student_validations_promotion_id', 'student_validations', ['promotion_id'])
    op.create_unique_constraint('uq_student_validation', 'student_validations', ['promotion_id', 'student_id'])


def downgrade() -> None:
    op.drop_index('ix_student_validations_promotion_id', table_name='student_validations')
    op.drop_table('student_validations')
    op.drop_table('promotion_events')
    op.drop_table('promotion_students')
    op.drop_index('ix_promotions_academic_year', table_name='promotions')
    op.drop_index('ix_promotions_semester', table_name='promotions')
    op.drop_table('promotions')
    op.drop_table('event_attendees')
    op.drop_table('events')
    op.drop_table('course_enrollments')
    op.drop_table('courses')
    op.drop_table('news_articles')
    op.drop_table('password_reset_tokens')
    op.drop_table('refresh_tokens')
    op.drop_table('users')
