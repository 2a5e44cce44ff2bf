"""试卷服务"""

import logging

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from englishhub.app.core.exceptions import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
)
from englishhub.app.models.account import Account, AccountRole
from englishhub.app.models.base import ApprovalStatus
from englishhub.app.models.exam import Exam, ExamStatus
from englishhub.app.models.notification import NotificationCategory, NotificationType
from englishhub.app.models.question import Question
from englishhub.app.models.submission import ExamSubmission, SubmissionAnswer
from englishhub.app.schemas.exam import ExamCreate, ExamDetail, ExamResponse, ExamUpdate
from englishhub.app.services.config_service import get_config_int
from englishhub.app.services.notification_service import NotificationService
from englishhub.app.services.question_service import QuestionService, question_view
from englishhub.app.services.review import ensure_transition, rejection_reason_or_default

logger = logging.getLogger(__name__)

# 影响已交答卷成绩的字段
SCORING_FIELDS = ("list_question_ids", "grading_method", "pass_score")


class ExamService:
    """试卷服务类"""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    # ==================== 校验 ====================

    async def validate_question_ids(self, question_ids: list[int]) -> None:
        """题目 ID 必须存在且不重复"""
        seen: set[int] = set()
        duplicates = []
        for qid in question_ids:
            if qid in seen and qid not in duplicates:
                duplicates.append(qid)
            seen.add(qid)
        if duplicates:
            raise ValueError(
                f"Danh sách câu hỏi bị trùng: {', '.join(map(str, duplicates))}"
            )

        found = await QuestionService(self.session).get_questions_by_ids(question_ids)
        missing = [qid for qid in question_ids if qid not in found]
        if missing:
            raise ValueError(
                f"Câu hỏi không tồn tại: {', '.join(map(str, missing))}"
            )

    @staticmethod
    def validate_duration(duration_minutes: int) -> None:
        max_duration = get_config_int("max_exam_duration_minutes")
        if max_duration > 0 and duration_minutes > max_duration:
            raise ValueError(f"Thời lượng tối đa là {max_duration} phút")

    # ==================== 查询 ====================

    async def get_exam_by_id(self, exam_id: int) -> Exam | None:
        stmt = select(Exam).where(Exam.id == exam_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_exam_or_404(self, exam_id: int) -> Exam:
        exam = await self.get_exam_by_id(exam_id)
        if not exam:
            raise NotFoundError("Không tìm thấy đề thi")
        return exam

    @staticmethod
    def can_manage(exam: Exam, account: Account | None) -> bool:
        """试卷创建者或管理员"""
        if account is None:
            return False
        return account.role == AccountRole.ADMIN or exam.creator_id == account.id

    async def get_manageable_exam(self, exam_id: int, account: Account) -> Exam:
        exam = await self.get_exam_or_404(exam_id)
        if not self.can_manage(exam, account):
            raise PermissionDeniedError("Bạn không có quyền quản lý đề thi này")
        return exam

    async def list_exams(
        self,
        account: Account,
        *,
        status: ExamStatus | None = None,
        approval_status: ApprovalStatus | None = None,
        search: str | None = None,
        skip: int = 0,
        limit: int = 20,
    ) -> tuple[list[Exam], int]:
        """教师只看自己的试卷，管理员看全部"""
        conditions = []
        if account.role != AccountRole.ADMIN:
            conditions.append(Exam.creator_id == account.id)
        if status:
            conditions.append(Exam.status == status)
        if approval_status:
            conditions.append(Exam.approval_status == approval_status)
        if search:
            conditions.append(Exam.title.ilike(f"%{search}%"))
        return await self._paginate(conditions, skip, limit)

    async def list_published_exams(
        self, skip: int = 0, limit: int = 20
    ) -> tuple[list[Exam], int]:
        conditions = [
            Exam.status == ExamStatus.PUBLISHED,
            Exam.approval_status == ApprovalStatus.APPROVED,
        ]
        return await self._paginate(conditions, skip, limit)

    async def _paginate(
        self, conditions: list, skip: int, limit: int
    ) -> tuple[list[Exam], int]:
        count_stmt = select(func.count()).select_from(Exam).where(*conditions)
        total = (await self.session.execute(count_stmt)).scalar() or 0

        stmt = (
            select(Exam)
            .where(*conditions)
            .order_by(Exam.created_at.desc(), Exam.id.desc())
            .offset(skip)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all()), total

    async def get_exam_questions(self, exam: Exam) -> list[Question]:
        """按试卷中的顺序返回题目"""
        by_id = await QuestionService(self.session).get_questions_by_ids(
            exam.list_question_ids
        )
        return [by_id[qid] for qid in exam.list_question_ids if qid in by_id]

    async def get_exam_detail(
        self, exam_id: int, viewer: Account | None = None
    ) -> ExamDetail:
        """试卷详情；学员与匿名用户看不到答案"""
        exam = await self.get_exam_or_404(exam_id)
        can_manage = self.can_manage(exam, viewer)
        if exam.status != ExamStatus.PUBLISHED and not can_manage:
            raise NotFoundError("Không tìm thấy đề thi")

        questions = await self.get_exam_questions(exam)
        return ExamDetail(
            **ExamResponse.model_validate(exam).model_dump(),
            questions=[question_view(q, reveal_answer=can_manage) for q in questions],
        )

    # ==================== 增删改 ====================

    async def create_exam(self, data: ExamCreate, account: Account) -> Exam:
        """创建试卷：教师创建为草稿待审，管理员创建直接通过"""
        await self.validate_question_ids(data.list_question_ids)
        self.validate_duration(data.duration_minutes)

        is_admin = account.role == AccountRole.ADMIN
        exam = Exam(
            creator_id=account.id,
            title=data.title,
            description=data.description,
            duration_minutes=data.duration_minutes,
            pass_score=data.pass_score,
            grading_method=data.grading_method,
            list_question_ids=list(data.list_question_ids),
            status=data.status if is_admin else ExamStatus.DRAFT,
            approval_status=(
                ApprovalStatus.APPROVED if is_admin else ApprovalStatus.DRAFT
            ),
        )
        self.session.add(exam)
        await self.session.flush()
        await self.session.refresh(exam)
        logger.info(
            f"试卷创建: id={exam.id} by {account.email}, "
            f"题目数 {len(exam.list_question_ids)}"
        )
        return exam

    async def count_submissions(self, exam_id: int) -> int:
        stmt = (
            select(func.count())
            .select_from(ExamSubmission)
            .where(ExamSubmission.exam_id == exam_id)
        )
        return (await self.session.execute(stmt)).scalar() or 0

    async def update_exam(self, exam_id: int, data: ExamUpdate, account: Account) -> Exam:
        exam = await self.get_manageable_exam(exam_id, account)
        update_data = data.model_dump(exclude_unset=True)

        # 已有答卷时题目、评分方式与及格线固定
        changed = [
            field
            for field in SCORING_FIELDS
            if field in update_data
            and update_data[field] != getattr(exam, field)
            and (update_data[field] is not None or field == "pass_score")
        ]
        if changed and await self.count_submissions(exam_id):
            logger.warning(f"试卷 {exam_id} 已有答卷，拒绝修改 {changed}")
            raise ConflictError(
                "Đề thi đã có bài làm, không thể thay đổi câu hỏi, cách chấm hoặc điểm đạt"
            )

        if update_data.get("list_question_ids") is not None:
            await self.validate_question_ids(update_data["list_question_ids"])
        else:
            update_data.pop("list_question_ids", None)
        if update_data.get("duration_minutes") is not None:
            self.validate_duration(update_data["duration_minutes"])

        new_status = update_data.pop("status", None)
        if new_status is not None:
            self._apply_status(exam, new_status, account)

        for field, value in update_data.items():
            if value is None and field in ("title", "duration_minutes", "grading_method"):
                continue
            setattr(exam, field, value)

        await self.session.flush()
        await self.session.refresh(exam)
        return exam

    def _apply_status(self, exam: Exam, new_status: ExamStatus, account: Account) -> None:
        """管理员发布即视为审核通过；教师只能发布已通过审核的试卷"""
        if new_status == ExamStatus.PUBLISHED:
            if account.role == AccountRole.ADMIN:
                exam.approval_status = ApprovalStatus.APPROVED
                exam.rejection_reason = None
            elif exam.approval_status != ApprovalStatus.APPROVED:
                raise ConflictError("Đề thi cần được duyệt trước khi xuất bản")
        exam.status = new_status

    async def delete_exam(self, exam_id: int, account: Account) -> None:
        """删除试卷及其全部答卷"""
        exam = await self.get_manageable_exam(exam_id, account)

        submission_ids = select(ExamSubmission.id).where(
            ExamSubmission.exam_id == exam_id
        )
        await self.session.execute(
            delete(SubmissionAnswer).where(
                SubmissionAnswer.submission_id.in_(submission_ids)
            )
        )
        await self.session.execute(
            delete(ExamSubmission).where(ExamSubmission.exam_id == exam_id)
        )
        await self.session.delete(exam)
        await self.session.flush()
        logger.info(f"试卷已删除: id={exam_id} by {account.email}")

    # ==================== 审核 ====================

    async def submit_for_review(self, exam_id: int, account: Account) -> Exam:
        """创建者提交审核（至少一道题）"""
        exam = await self.get_exam_or_404(exam_id)
        if exam.creator_id != account.id:
            raise PermissionDeniedError("Chỉ người tạo đề mới được gửi duyệt")

        ensure_transition(exam.approval_status, ApprovalStatus.PENDING_REVIEW)
        if not exam.list_question_ids:
            raise ValueError("Đề thi cần ít nhất 1 câu hỏi trước khi gửi duyệt")

        exam.approval_status = ApprovalStatus.PENDING_REVIEW
        await self.session.flush()

        await NotificationService(self.session).notify_admins(
            "Đề thi chờ duyệt",
            f"Đề thi \"{exam.title}\" vừa được gửi duyệt",
            category=NotificationCategory.EXAM_REVIEW,
            sender_id=account.id,
            related_id=exam.id,
            related_type="exam",
        )
        logger.info(f"试卷提交审核: id={exam.id} by {account.email}")
        await self.session.refresh(exam)
        return exam

    async def approve_exam(self, exam_id: int, admin: Account) -> Exam:
        """审核通过并发布"""
        exam = await self.get_exam_or_404(exam_id)
        ensure_transition(exam.approval_status, ApprovalStatus.APPROVED)

        exam.approval_status = ApprovalStatus.APPROVED
        exam.status = ExamStatus.PUBLISHED
        exam.rejection_reason = None
        await self.session.flush()

        await NotificationService(self.session).notify(
            exam.creator_id,
            "Đề thi đã được duyệt",
            f"Đề thi \"{exam.title}\" đã được duyệt và xuất bản",
            type=NotificationType.SUCCESS,
            category=NotificationCategory.EXAM_REVIEW,
            sender_id=admin.id,
            related_id=exam.id,
            related_type="exam",
        )
        logger.info(f"试卷审核通过: id={exam.id} by {admin.email}")
        await self.session.refresh(exam)
        return exam

    async def reject_exam(
        self, exam_id: int, admin: Account, reason: str | None = None
    ) -> Exam:
        exam = await self.get_exam_or_404(exam_id)
        ensure_transition(exam.approval_status, ApprovalStatus.REJECTED)

        exam.approval_status = ApprovalStatus.REJECTED
        exam.rejection_reason = rejection_reason_or_default(reason)
        await self.session.flush()

        await NotificationService(self.session).notify(
            exam.creator_id,
            "Đề thi bị từ chối",
            f"Đề thi \"{exam.title}\" bị từ chối: {exam.rejection_reason}",
            type=NotificationType.WARNING,
            category=NotificationCategory.EXAM_REVIEW,
            sender_id=admin.id,
            related_id=exam.id,
            related_type="exam",
        )
        logger.info(
            f"试卷审核驳回: id={exam.id} by {admin.email}, 原因: {exam.rejection_reason}"
        )
        await self.session.refresh(exam)
        return exam
