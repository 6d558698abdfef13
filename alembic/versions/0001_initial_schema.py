"""initial academy schema

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-17 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ACTIVE_ENROLLMENT = sa.text("status IN ('pending', 'approved')")


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
    ]


def upgrade() -> None:
    op.create_table(
        'seasons',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=True),
        sa.Column('end_date', sa.Date(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_by', sa.String(64), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_seasons_is_active', 'seasons', ['is_active'])

    op.create_table(
        'students',
        sa.Column('id', sa.String(80), primary_key=True),
        sa.Column('name', sa.String(50), nullable=False),
        sa.Column('phone', sa.String(4), nullable=False),
        sa.Column('birth_date', sa.String(20), nullable=False),
        sa.Column('class_name', sa.String(50), nullable=True),
        sa.Column('enrollment_open', sa.Boolean(), nullable=False),
        sa.Column('change_start_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('change_end_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_by', sa.String(64), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_students_name', 'students', ['name'])
    op.create_index('ix_students_class_name', 'students', ['class_name'])

    op.create_table(
        'courses',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('season_id', sa.Uuid(), sa.ForeignKey('seasons.id'), nullable=True),
        sa.Column('title', sa.String(200), nullable=False),
        sa.Column('instructor', sa.String(100), nullable=False),
        sa.Column('category', sa.String(20), nullable=False),
        sa.Column('level', sa.String(20), nullable=False),
        sa.Column('room', sa.String(50), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('capacity', sa.Integer(), nullable=False),
        sa.Column('enrolled', sa.Integer(), nullable=False),
        sa.Column('schedules', sa.JSON(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_by', sa.String(64), nullable=True),
        *_timestamps(),
        sa.CheckConstraint('enrolled >= 0', name='ck_courses_enrolled_non_negative'),
        sa.CheckConstraint('capacity >= 0', name='ck_courses_capacity_non_negative'),
    )
    op.create_index('ix_courses_season_id', 'courses', ['season_id'])
    op.create_index('ix_courses_is_active', 'courses', ['is_active'])

    op.create_table(
        'enrollments',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('student_id', sa.String(80), sa.ForeignKey('students.id', ondelete='CASCADE'), nullable=False),
        sa.Column('course_id', sa.Uuid(), sa.ForeignKey('courses.id'), nullable=False),
        sa.Column('season_id', sa.Uuid(), sa.ForeignKey('seasons.id'), nullable=True),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('enrolled_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('approved_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('approved_by', sa.String(64), nullable=True),
        sa.Column('rejected_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('rejected_by', sa.String(64), nullable=True),
        sa.Column('rejection_reason', sa.Text(), nullable=True),
        sa.Column('cancelled_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('cancelled_by', sa.String(64), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_enrollments_student_id', 'enrollments', ['student_id'])
    op.create_index('ix_enrollments_course_id', 'enrollments', ['course_id'])
    op.create_index('ix_enrollments_season_id', 'enrollments', ['season_id'])
    op.create_index('ix_enrollments_status', 'enrollments', ['status'])
    op.create_index('ix_enrollments_enrolled_at', 'enrollments', ['enrolled_at'])
    op.create_index(
        'uq_enrollments_active_student_course',
        'enrollments',
        ['student_id', 'course_id'],
        unique=True,
        postgresql_where=ACTIVE_ENROLLMENT,
        sqlite_where=ACTIVE_ENROLLMENT,
    )

    op.create_table(
        'classes',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('season_id', sa.Uuid(), sa.ForeignKey('seasons.id'), nullable=True),
        sa.Column('name', sa.String(50), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('capacity', sa.Integer(), nullable=False),
        sa.Column('student_count', sa.Integer(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_by', sa.String(64), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_classes_name', 'classes', ['name'], unique=True)
    op.create_index('ix_classes_season_id', 'classes', ['season_id'])
    op.create_index('ix_classes_is_active', 'classes', ['is_active'])

    op.create_table(
        'notifications',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('student_id', sa.String(80), sa.ForeignKey('students.id', ondelete='CASCADE'), nullable=False),
        sa.Column('type', sa.String(20), nullable=False),
        sa.Column('title', sa.String(200), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('course_id', sa.Uuid(), nullable=True),
        sa.Column('course_name', sa.String(200), nullable=True),
        sa.Column('read', sa.Boolean(), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_notifications_student_id', 'notifications', ['student_id'])
    op.create_index('ix_notifications_read', 'notifications', ['read'])

    op.create_table(
        'attendance',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('course_id', sa.Uuid(), sa.ForeignKey('courses.id', ondelete='CASCADE'), nullable=False),
        sa.Column('student_id', sa.String(80), sa.ForeignKey('students.id', ondelete='CASCADE'), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('status', sa.String(10), nullable=False),
        sa.Column('note', sa.Text(), nullable=False),
        sa.Column('checked_by', sa.String(64), nullable=True),
        sa.Column('checked_at', sa.DateTime(timezone=True), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint('course_id', 'student_id', 'date', name='uq_attendance_course_student_date'),
    )
    op.create_index('ix_attendance_course_id', 'attendance', ['course_id'])
    op.create_index('ix_attendance_student_id', 'attendance', ['student_id'])
    op.create_index('ix_attendance_date', 'attendance', ['date'])

    op.create_table(
        'admins',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('email', sa.String(100), nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('role', sa.String(20), nullable=False),
        sa.Column('password_hash', sa.String(255), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_admins_email', 'admins', ['email'], unique=True)

    op.create_table(
        'auth_sessions',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('token', sa.String(64), nullable=False),
        sa.Column('subject_type', sa.String(10), nullable=False),
        sa.Column('subject_id', sa.String(80), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_auth_sessions_token', 'auth_sessions', ['token'], unique=True)
    op.create_index('ix_auth_sessions_subject_id', 'auth_sessions', ['subject_id'])


def downgrade() -> None:
    for table in (
        'auth_sessions', 'admins', 'attendance', 'notifications',
        'classes', 'enrollments', 'courses', 'students', 'seasons',
    ):
        op.drop_table(table)
