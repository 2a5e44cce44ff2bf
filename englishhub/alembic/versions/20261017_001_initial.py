"""EnglishHub 初始化数据库结构

Revision ID: 001
Revises:
Create Date: 2026-10-17

创建账户、课程、课时、选课、题库、试卷、答卷、通知与业务配置表。
枚举字段以字符串存储（非数据库原生枚举）。
"""

from collections.abc import Sequence

import sqlalchemy as sa
import sqlmodel
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _string(length: int) -> sqlmodel.sql.sqltypes.AutoString:
    return sqlmodel.sql.sqltypes.AutoString(length=length)


def upgrade() -> None:
    """创建所有数据库表"""

    # ==================== 账户 ====================

    op.create_table(
        "accounts",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("email", _string(150), nullable=False),
        sa.Column("hashed_password", _string(255), nullable=False),
        sa.Column("full_name", _string(100), nullable=False),
        sa.Column("role", sa.String(length=7), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default="true"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_accounts_email", "accounts", ["email"], unique=True)
    op.create_index("ix_accounts_role", "accounts", ["role"])

    # ==================== 课程 ====================

    op.create_table(
        "courses",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("teacher_id", sa.Integer(), nullable=True),
        sa.Column("created_by", sa.Integer(), nullable=True),
        sa.Column("title", _string(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("thumbnail_url", _string(2048), nullable=True),
        sa.Column(
            "price", sa.Numeric(precision=10, scale=2), nullable=False, server_default="0"
        ),
        sa.Column("level", sa.String(length=12), nullable=False),
        sa.Column("category", _string(100), nullable=True),
        sa.Column("approval_status", sa.String(length=14), nullable=False),
        sa.Column("rejection_reason", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["teacher_id"], ["accounts.id"]),
        sa.ForeignKeyConstraint(["created_by"], ["accounts.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_courses_teacher_id", "courses", ["teacher_id"])
    op.create_index("ix_courses_title", "courses", ["title"])
    op.create_index("ix_courses_level", "courses", ["level"])
    op.create_index("ix_courses_category", "courses", ["category"])
    op.create_index("ix_courses_approval_status", "courses", ["approval_status"])

    op.create_table(
        "lessons",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("course_id", sa.Integer(), nullable=False),
        sa.Column("title", _string(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("content_type", sa.String(length=5), nullable=False),
        sa.Column("content_url", _string(2048), nullable=True),
        sa.Column("duration_minutes", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("order_index", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_free", sa.Boolean(), nullable=False, server_default="false"),
        sa.ForeignKeyConstraint(["course_id"], ["courses.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_lessons_course_id", "lessons", ["course_id"])

    op.create_table(
        "enrollments",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("learner_id", sa.Integer(), nullable=False),
        sa.Column("course_id", sa.Integer(), nullable=False),
        sa.Column("enrolled_at", sa.DateTime(), nullable=False),
        sa.Column("progress_percent", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("status", sa.String(length=9), nullable=False),
        sa.ForeignKeyConstraint(["learner_id"], ["accounts.id"]),
        sa.ForeignKeyConstraint(["course_id"], ["courses.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "learner_id", "course_id", name="uq_enrollments_learner_course"
        ),
    )
    op.create_index("ix_enrollments_learner_id", "enrollments", ["learner_id"])
    op.create_index("ix_enrollments_course_id", "enrollments", ["course_id"])

    # ==================== 题库与试卷 ====================

    op.create_table(
        "questions",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("creator_id", sa.Integer(), nullable=False),
        sa.Column("skill", sa.String(length=10), nullable=False),
        sa.Column("type", sa.String(length=15), nullable=False),
        sa.Column("level", sa.String(length=2), nullable=False),
        sa.Column("content_text", sa.Text(), nullable=False),
        sa.Column("options", sa.JSON(), nullable=True),
        sa.Column("correct_answer", sa.Text(), nullable=True),
        sa.Column("explanation", sa.Text(), nullable=True),
        sa.Column("media_url", _string(2048), nullable=True),
        sa.Column("media_type", sa.String(length=5), nullable=False),
        sa.Column("points", sa.Float(), nullable=False, server_default="1"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["creator_id"], ["accounts.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_questions_creator_id", "questions", ["creator_id"])
    op.create_index("ix_questions_skill", "questions", ["skill"])
    op.create_index("ix_questions_type", "questions", ["type"])
    op.create_index("ix_questions_level", "questions", ["level"])

    op.create_table(
        "exams",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("creator_id", sa.Integer(), nullable=False),
        sa.Column("title", _string(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("duration_minutes", sa.Integer(), nullable=False, server_default="60"),
        sa.Column("pass_score", sa.Integer(), nullable=True),
        sa.Column("grading_method", sa.String(length=6), nullable=False),
        sa.Column("status", sa.String(length=9), nullable=False),
        sa.Column("approval_status", sa.String(length=14), nullable=False),
        sa.Column("rejection_reason", sa.Text(), nullable=True),
        sa.Column("list_question_ids", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["creator_id"], ["accounts.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_exams_creator_id", "exams", ["creator_id"])
    op.create_index("ix_exams_title", "exams", ["title"])
    op.create_index("ix_exams_status", "exams", ["status"])
    op.create_index("ix_exams_approval_status", "exams", ["approval_status"])

    # ==================== 答卷 ====================

    op.create_table(
        "exam_submissions",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("exam_id", sa.Integer(), nullable=False),
        sa.Column("learner_id", sa.Integer(), nullable=False),
        sa.Column("started_at", sa.DateTime(), nullable=False),
        sa.Column("submitted_at", sa.DateTime(), nullable=True),
        sa.Column("total_score", sa.Float(), nullable=False, server_default="0"),
        sa.Column("max_score", sa.Float(), nullable=False, server_default="0"),
        sa.Column("status", sa.String(length=11), nullable=False),
        sa.Column("teacher_general_feedback", sa.Text(), nullable=True),
        sa.Column(
            "time_spent_seconds", sa.Integer(), nullable=False, server_default="0"
        ),
        sa.ForeignKeyConstraint(["exam_id"], ["exams.id"]),
        sa.ForeignKeyConstraint(["learner_id"], ["accounts.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_exam_submissions_exam_id", "exam_submissions", ["exam_id"])
    op.create_index(
        "ix_exam_submissions_learner_id", "exam_submissions", ["learner_id"]
    )
    op.create_index("ix_exam_submissions_status", "exam_submissions", ["status"])
    # 同一学员同一试卷最多一份作答中的答卷
    op.create_index(
        "uq_exam_submissions_active",
        "exam_submissions",
        ["exam_id", "learner_id"],
        unique=True,
        postgresql_where=sa.text("status = 'in_progress'"),
    )

    op.create_table(
        "submission_answers",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("submission_id", sa.Integer(), nullable=False),
        sa.Column("question_id", sa.Integer(), nullable=False),
        sa.Column("answer_text", sa.Text(), nullable=True),
        sa.Column("is_correct", sa.Boolean(), nullable=True),
        sa.Column("score", sa.Float(), nullable=True),
        sa.Column("teacher_feedback", sa.Text(), nullable=True),
        sa.Column("graded_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(
            ["submission_id"], ["exam_submissions.id"], ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(["question_id"], ["questions.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "submission_id", "question_id", name="uq_submission_answers_question"
        ),
    )
    op.create_index(
        "ix_submission_answers_submission_id", "submission_answers", ["submission_id"]
    )
    op.create_index(
        "ix_submission_answers_question_id", "submission_answers", ["question_id"]
    )

    # ==================== 通知 ====================

    op.create_table(
        "notifications",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("account_id", sa.Integer(), nullable=False),
        sa.Column("sender_id", sa.Integer(), nullable=True),
        sa.Column("title", _string(255), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("type", sa.String(length=7), nullable=False),
        sa.Column("category", sa.String(length=13), nullable=False),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("related_id", sa.Integer(), nullable=True),
        sa.Column("related_type", _string(50), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["account_id"], ["accounts.id"]),
        sa.ForeignKeyConstraint(["sender_id"], ["accounts.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_notifications_account_id", "notifications", ["account_id"])
    op.create_index("ix_notifications_is_read", "notifications", ["is_read"])

    # ==================== 业务配置 ====================

    op.create_table(
        "system_configs",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("key", _string(100), nullable=False),
        sa.Column("value", _string(500), nullable=False),
        sa.Column("group", _string(50), nullable=False),
        sa.Column("updated_by", sa.Integer(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["updated_by"], ["accounts.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_system_configs_key", "system_configs", ["key"], unique=True)
    op.create_index("ix_system_configs_group", "system_configs", ["group"])

    op.create_table(
        "config_audit_logs",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("account_id", sa.Integer(), nullable=True),
        sa.Column("account_email", _string(150), nullable=False),
        sa.Column("config_key", _string(100), nullable=False),
        sa.Column("old_value", _string(500), nullable=True),
        sa.Column("new_value", _string(500), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["account_id"], ["accounts.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_config_audit_logs_account_id", "config_audit_logs", ["account_id"]
    )
    op.create_index(
        "ix_config_audit_logs_config_key", "config_audit_logs", ["config_key"]
    )


def downgrade() -> None:
    """删除所有数据库表"""
    op.drop_table("config_audit_logs")
    op.drop_table("system_configs")
    op.drop_table("notifications")
    op.drop_table("submission_answers")
    op.drop_table("exam_submissions")
    op.drop_table("exams")
    op.drop_table("questions")
    op.drop_table("enrollments")
    op.drop_table("lessons")
    op.drop_table("courses")
    op.drop_table("accounts")
