"""管理员服务"""

import logging

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from englishhub.app.core.exceptions import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
)
from englishhub.app.core.security import get_password_hash
from englishhub.app.core.utils import utc_now_naive
from englishhub.app.models.account import Account, AccountRole
from englishhub.app.models.base import ApprovalStatus
from englishhub.app.models.course import Course, Enrollment
from englishhub.app.models.course_review import CourseReview
from englishhub.app.models.exam import Exam
from englishhub.app.models.notification import Notification
from englishhub.app.models.question import Question
from englishhub.app.models.submission import (
    ExamSubmission,
    SubmissionAnswer,
    SubmissionStatus,
)
from englishhub.app.models.system_config import ConfigAuditLog, SystemConfig
from englishhub.app.services.course_service import CourseService
from englishhub.app.services.progress_service import ProgressService

logger = logging.getLogger(__name__)


class AdminService:
    """管理员服务类"""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create_admin(self, email: str, password: str, full_name: str) -> Account:
        """创建管理员账户（初始化脚本使用）"""
        stmt = select(Account).where(Account.email == email.lower())
        result = await self.session.execute(stmt)
        if result.scalar_one_or_none():
            raise ValueError("Email đã được sử dụng")

        admin = Account(
            email=email.lower(),
            hashed_password=get_password_hash(password),
            full_name=full_name,
            role=AccountRole.ADMIN,
        )
        self.session.add(admin)
        await self.session.flush()
        await self.session.refresh(admin)
        return admin

    # ==================== 统计数据 ====================

    async def _count(self, model, *conditions) -> int:
        stmt = select(func.count()).select_from(model).where(*conditions)
        result = await self.session.execute(stmt)
        return result.scalar() or 0

    async def get_system_stats(self) -> dict:
        """获取系统统计数据"""
        role_stmt = select(Account.role, func.count()).group_by(Account.role)
        role_result = await self.session.execute(role_stmt)
        role_counts = {role: count for role, count in role_result.all()}

        return {
            "learner_count": role_counts.get(AccountRole.LEARNER, 0),
            "teacher_count": role_counts.get(AccountRole.TEACHER, 0),
            "admin_count": role_counts.get(AccountRole.ADMIN, 0),
            "inactive_teacher_count": await self._count(
                Account,
                Account.role == AccountRole.TEACHER,
                Account.is_active.is_(False),
            ),
            "courses": await CourseService(self.session).get_course_stats(),
            "exam_count": await self._count(Exam),
            "pending_exam_count": await self._count(
                Exam, Exam.approval_status == ApprovalStatus.PENDING_REVIEW
            ),
            "question_count": await self._count(Question),
            "enrollment_count": await self._count(Enrollment),
            "submission_count": await self._count(
                ExamSubmission, ExamSubmission.status != SubmissionStatus.IN_PROGRESS
            ),
            "grading_submission_count": await self._count(
                ExamSubmission, ExamSubmission.status == SubmissionStatus.GRADING
            ),
        }

    # ==================== 账户管理 ====================

    async def list_accounts(
        self,
        role: AccountRole | None = None,
        search: str | None = None,
        skip: int = 0,
        limit: int = 50,
    ) -> tuple[list[Account], int]:
        """获取账户列表"""
        conditions = []
        if role:
            conditions.append(Account.role == role)
        if search:
            pattern = f"%{search}%"
            conditions.append(
                or_(Account.email.ilike(pattern), Account.full_name.ilike(pattern))
            )

        total = await self._count(Account, *conditions)

        stmt = (
            select(Account)
            .where(*conditions)
            .order_by(Account.created_at.desc(), Account.id.desc())
            .offset(skip)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all()), total

    async def _get_other_account(self, account_id: int, current_admin: Account) -> Account:
        if account_id == current_admin.id:
            raise PermissionDeniedError("Không thể thao tác trên tài khoản của chính mình")
        account = await self.session.get(Account, account_id)
        if not account:
            raise NotFoundError("Không tìm thấy tài khoản")
        return account

    async def set_account_status(
        self, account_id: int, is_active: bool, current_admin: Account
    ) -> Account:
        """启用/停用账户（不能操作自己）"""
        account = await self._get_other_account(account_id, current_admin)
        account.is_active = is_active
        account.updated_at = utc_now_naive()
        await self.session.flush()
        await self.session.refresh(account)
        logger.info(
            f"账户状态变更: {account.email} -> "
            f"{'active' if is_active else 'inactive'} by {current_admin.email}"
        )
        return account

    async def delete_account(self, account_id: int, current_admin: Account) -> None:
        """
        删除账户（不能删除自己）

        仍拥有课程、试卷或题目的账户需先处理其内容；
        学员的选课、学习记录、评价、答卷与通知随账户一并删除。
        """
        account = await self._get_other_account(account_id, current_admin)

        owned = (
            await self._count(Course, Course.teacher_id == account_id)
            + await self._count(Exam, Exam.creator_id == account_id)
            + await self._count(Question, Question.creator_id == account_id)
        )
        if owned:
            raise ConflictError(
                "Tài khoản đang sở hữu khóa học, đề thi hoặc câu hỏi, không thể xóa"
            )

        submission_ids = select(ExamSubmission.id).where(
            ExamSubmission.learner_id == account_id
        )
        await self.session.execute(
            delete(SubmissionAnswer).where(
                SubmissionAnswer.submission_id.in_(submission_ids)
            )
        )
        await self.session.execute(
            delete(ExamSubmission).where(ExamSubmission.learner_id == account_id)
        )
        await ProgressService(self.session).delete_for_enrollments(
            select(Enrollment.id).where(Enrollment.learner_id == account_id)
        )
        await self.session.execute(
            delete(Enrollment).where(Enrollment.learner_id == account_id)
        )
        await self.session.execute(
            delete(CourseReview).where(CourseReview.learner_id == account_id)
        )
        await self.session.execute(
            delete(Notification).where(Notification.account_id == account_id)
        )
        await self.session.execute(
            update(Notification)
            .where(Notification.sender_id == account_id)
            .values(sender_id=None)
        )
        await self.session.execute(
            update(Course).where(Course.created_by == account_id).values(created_by=None)
        )
        await self.session.execute(
            update(SystemConfig)
            .where(SystemConfig.updated_by == account_id)
            .values(updated_by=None)
        )
        await self.session.execute(
            update(ConfigAuditLog)
            .where(ConfigAuditLog.account_id == account_id)
            .values(account_id=None)
        )

        await self.session.delete(account)
        await self.session.flush()
        logger.info(f"账户已删除: {account.email} by {current_admin.email}")

    # ==================== 审核队列 ====================

    async def get_pending_reviews(self) -> dict:
        """待审核的课程与试卷（最早提交在前）"""
        course_stmt = (
            select(Course)
            .where(Course.approval_status == ApprovalStatus.PENDING_REVIEW)
            .order_by(Course.updated_at, Course.id)
        )
        course_result = await self.session.execute(course_stmt)

        exam_stmt = (
            select(Exam)
            .where(Exam.approval_status == ApprovalStatus.PENDING_REVIEW)
            .order_by(Exam.created_at, Exam.id)
        )
        exam_result = await self.session.execute(exam_stmt)

        return {
            "courses": list(course_result.scalars().all()),
            "exams": list(exam_result.scalars().all()),
        }
