"""create_lms_quiz_tables

Revision ID: e1a2b3c4d5f6
Revises:
Create Date: 2026-10-16 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


revision: str = 'e1a2b3c4d5f6'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


quiz_status = postgresql.ENUM('DRAFT', 'PUBLISHED', 'CLOSED', name='quiz_status', create_type=False)
question_type = postgresql.ENUM('MULTIPLE_CHOICE', 'TRUE_FALSE', 'SHORT_ANSWER', name='question_type', create_type=False)
question_difficulty = postgresql.ENUM('EASY', 'MEDIUM', 'HARD', name='question_difficulty', create_type=False)
attempt_status = postgresql.ENUM('IN_PROGRESS', 'SUBMITTED', 'GRADED', name='attempt_status', create_type=False)


def _base_columns():
    return [
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    bind = op.get_bind()
    for enum_type in (quiz_status, question_type, question_difficulty, attempt_status):
        enum_type.create(bind, checkfirst=True)

    op.create_table(
        'users',
        *_base_columns(),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('full_name', sa.String(150), nullable=False),
        sa.Column('academic_id', sa.String(50), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.UniqueConstraint('academic_id', name='uq_users_academic_id'),
    )
    op.create_index('ix_users_id', 'users', ['id'])
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'course_offerings',
        *_base_columns(),
        sa.Column('code', sa.String(50), nullable=False),
        sa.Column('course_name', sa.String(200), nullable=False),
        sa.Column('section', sa.String(20), nullable=False, server_default='1'),
        sa.Column('semester_name', sa.String(100), nullable=False),
        sa.Column('is_current_semester', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('max_students', sa.Integer(), nullable=False, server_default='50'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('instructor_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='RESTRICT'), nullable=False),
    )
    op.create_index('ix_course_offerings_id', 'course_offerings', ['id'])
    op.create_index('ix_course_offerings_code', 'course_offerings', ['code'], unique=True)
    op.create_index('ix_course_offerings_instructor_id', 'course_offerings', ['instructor_id'])

    op.create_table(
        'enrollments',
        *_base_columns(),
        sa.Column('student_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('offering_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('course_offerings.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('enrolled_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('dropped_at', sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint('student_id', 'offering_id', name='uq_enrollment_student_offering'),
    )
    op.create_index('ix_enrollments_id', 'enrollments', ['id'])
    op.create_index('ix_enrollments_student_id', 'enrollments', ['student_id'])
    op.create_index('ix_enrollments_offering_id', 'enrollments', ['offering_id'])

    op.create_table(
        'quizzes',
        *_base_columns(),
        sa.Column('offering_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('course_offerings.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('creator_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('title', sa.String(200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('status', quiz_status, nullable=False, server_default='DRAFT'),
        sa.Column('duration_minutes', sa.Integer(), nullable=False, server_default='30'),
        sa.Column('passing_score', sa.Float(), nullable=False, server_default='60'),
        sa.Column('shuffle_questions', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('shuffle_options', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('show_results', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('allow_review', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('start_time', sa.DateTime(timezone=True), nullable=True),
        sa.Column('end_time', sa.DateTime(timezone=True), nullable=True),
        sa.Column('total_points', sa.Float(), nullable=False, server_default='0'),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_quizzes_id', 'quizzes', ['id'])
    op.create_index('ix_quizzes_offering_id', 'quizzes', ['offering_id'])
    op.create_index('ix_quizzes_creator_id', 'quizzes', ['creator_id'])
    op.create_index('ix_quizzes_status', 'quizzes', ['status'])

    op.create_table(
        'quiz_questions',
        *_base_columns(),
        sa.Column('quiz_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('quizzes.id', ondelete='CASCADE'), nullable=False),
        sa.Column('question_type', question_type, nullable=False),
        sa.Column('difficulty', question_difficulty, nullable=False, server_default='MEDIUM'),
        sa.Column('question_text', sa.Text(), nullable=False),
        sa.Column('explanation', sa.Text(), nullable=True),
        sa.Column('points', sa.Float(), nullable=False, server_default='1'),
        sa.Column('display_order', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('is_ai_generated', sa.Boolean(), nullable=False, server_default=sa.false()),
    )
    op.create_index('ix_quiz_questions_id', 'quiz_questions', ['id'])
    op.create_index('ix_quiz_questions_quiz_id', 'quiz_questions', ['quiz_id'])

    op.create_table(
        'question_options',
        *_base_columns(),
        sa.Column('question_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('quiz_questions.id', ondelete='CASCADE'), nullable=False),
        sa.Column('option_text', sa.String(1000), nullable=False),
        sa.Column('is_correct', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('display_order', sa.Integer(), nullable=False, server_default='0'),
    )
    op.create_index('ix_question_options_id', 'question_options', ['id'])
    op.create_index('ix_question_options_question_id', 'question_options', ['question_id'])

    op.create_table(
        'quiz_attempts',
        *_base_columns(),
        sa.Column('quiz_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('quizzes.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('student_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('status', attempt_status, nullable=False, server_default='IN_PROGRESS'),
        sa.Column('score', sa.Float(), nullable=True),
        sa.Column('percentage', sa.Float(), nullable=True),
        sa.Column('started_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('submitted_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('graded_at', sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint('quiz_id', 'student_id', name='uq_quiz_attempt_quiz_student'),
    )
    op.create_index('ix_quiz_attempts_id', 'quiz_attempts', ['id'])
    op.create_index('ix_quiz_attempts_quiz_id', 'quiz_attempts', ['quiz_id'])
    op.create_index('ix_quiz_attempts_student_id', 'quiz_attempts', ['student_id'])
    op.create_index('ix_quiz_attempts_status', 'quiz_attempts', ['status'])

    op.create_table(
        'quiz_answers',
        *_base_columns(),
        sa.Column('attempt_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('quiz_attempts.id', ondelete='CASCADE'), nullable=False),
        sa.Column('question_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('quiz_questions.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('selected_option_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('question_options.id', ondelete='SET NULL'), nullable=True),
        sa.Column('text_answer', sa.Text(), nullable=True),
        sa.Column('is_correct', sa.Boolean(), nullable=True),
        sa.Column('points_earned', sa.Float(), nullable=False, server_default='0'),
        sa.Column('answered_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint('attempt_id', 'question_id', name='uq_quiz_answer_attempt_question'),
    )
    op.create_index('ix_quiz_answers_id', 'quiz_answers', ['id'])
    op.create_index('ix_quiz_answers_attempt_id', 'quiz_answers', ['attempt_id'])
    op.create_index('ix_quiz_answers_question_id', 'quiz_answers', ['question_id'])

    op.create_table(
        'notifications',
        *_base_columns(),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('body', sa.Text(), nullable=True),
        sa.Column('type', sa.String(50), nullable=False, server_default='INFO'),
        sa.Column('link', sa.String(500), nullable=True),
        sa.Column('is_read', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('read_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('data', sa.Text(), nullable=True),
    )
    op.create_index('ix_notifications_id', 'notifications', ['id'])
    op.create_index('ix_notifications_user_id', 'notifications', ['user_id'])


def downgrade() -> None:
    for table in (
        'notifications',
        'quiz_answers',
        'quiz_attempts',
        'question_options',
        'quiz_questions',
        'quizzes',
        'enrollments',
        'course_offerings',
        'users',
    ):
        op.drop_table(table)

    bind = op.get_bind()
    for enum_type in (attempt_status, question_difficulty, question_type, quiz_status):
        enum_type.drop(bind, checkfirst=True)
