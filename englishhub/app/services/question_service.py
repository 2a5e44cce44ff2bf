"""题库服务"""

import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from englishhub.app.core.exceptions import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
)
from englishhub.app.models.account import Account, AccountRole
from englishhub.app.models.base import CEFRLevel
from englishhub.app.models.exam import Exam
from englishhub.app.models.question import Question, QuestionSkill, QuestionType
from englishhub.app.models.submission import SubmissionAnswer
from englishhub.app.schemas.question import (
    QuestionCreate,
    QuestionPublic,
    QuestionResponse,
    QuestionUpdate,
    check_choice_answer,
)

logger = logging.getLogger(__name__)

# 决定判分结果的字段，已有作答后不可修改
ANSWER_KEY_FIELDS = ("type", "options", "correct_answer", "points")


def question_view(question: Question, reveal_answer: bool) -> QuestionPublic:
    """按查看者身份决定是否带标准答案与解析"""
    if reveal_answer:
        return QuestionResponse.model_validate(question)
    return QuestionPublic.model_validate(question)


class QuestionService:
    """题库服务类"""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create_question(self, data: QuestionCreate, creator_id: int) -> Question:
        question = Question(creator_id=creator_id, **data.model_dump())
        self.session.add(question)
        await self.session.flush()
        await self.session.refresh(question)
        return question

    async def get_question_by_id(self, question_id: int) -> Question | None:
        stmt = select(Question).where(Question.id == question_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_question_or_404(self, question_id: int) -> Question:
        question = await self.get_question_by_id(question_id)
        if not question:
            raise NotFoundError("Không tìm thấy câu hỏi")
        return question

    async def get_questions_by_ids(self, question_ids: list[int]) -> dict[int, Question]:
        """批量获取题目，返回 id → 题目"""
        if not question_ids:
            return {}
        stmt = select(Question).where(Question.id.in_(set(question_ids)))
        result = await self.session.execute(stmt)
        return {q.id: q for q in result.scalars().all()}

    async def list_questions(
        self,
        *,
        skill: QuestionSkill | None = None,
        type: QuestionType | None = None,
        level: CEFRLevel | None = None,
        creator_id: int | None = None,
        search: str | None = None,
        skip: int = 0,
        limit: int = 20,
    ) -> tuple[list[Question], int]:
        conditions = []
        if skill:
            conditions.append(Question.skill == skill)
        if type:
            conditions.append(Question.type == type)
        if level:
            conditions.append(Question.level == level)
        if creator_id is not None:
            conditions.append(Question.creator_id == creator_id)
        if search:
            conditions.append(Question.content_text.ilike(f"%{search}%"))

        count_stmt = select(func.count()).select_from(Question).where(*conditions)
        total = (await self.session.execute(count_stmt)).scalar() or 0

        stmt = (
            select(Question)
            .where(*conditions)
            .order_by(Question.created_at.desc(), Question.id.desc())
            .offset(skip)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all()), total

    def _ensure_can_modify(self, question: Question, account: Account) -> None:
        if account.role != AccountRole.ADMIN and question.creator_id != account.id:
            raise PermissionDeniedError("Bạn chỉ được sửa câu hỏi do mình tạo")

    async def update_question(
        self, question_id: int, data: QuestionUpdate, account: Account
    ) -> Question:
        """更新题目；合并后重新校验题型、选项与答案的一致性"""
        question = await self.get_question_or_404(question_id)
        self._ensure_can_modify(question, account)

        update_data = data.model_dump(exclude_unset=True)
        for field in ("skill", "type", "level", "content_text", "media_type", "points"):
            if field in update_data and update_data[field] is None:
                update_data.pop(field)

        changed = [
            field
            for field in ANSWER_KEY_FIELDS
            if field in update_data and update_data[field] != getattr(question, field)
        ]
        if changed and await self.count_answers(question_id):
            logger.warning(f"题目 {question_id} 已有作答，拒绝修改 {changed}")
            raise ConflictError(
                "Câu hỏi đã có bài làm của học viên, không thể đổi loại, đáp án hoặc điểm"
            )

        new_type = update_data.get("type", question.type)
        options = update_data.get("options", question.options)
        correct_answer = update_data.get("correct_answer", question.correct_answer)
        if new_type == QuestionType.MULTIPLE_CHOICE:
            check_choice_answer(options, correct_answer)
            update_data["options"] = options
            update_data["correct_answer"] = correct_answer.strip().upper()
        else:
            update_data["options"] = None

        for field, value in update_data.items():
            setattr(question, field, value)

        await self.session.flush()
        await self.session.refresh(question)
        return question

    async def count_answers(self, question_id: int) -> int:
        """已有多少条作答引用该题目"""
        stmt = (
            select(func.count())
            .select_from(SubmissionAnswer)
            .where(SubmissionAnswer.question_id == question_id)
        )
        return (await self.session.execute(stmt)).scalar() or 0

    async def find_exams_using(self, question_id: int) -> list[Exam]:
        """引用该题目的试卷（JSON 列在 Python 侧过滤）"""
        result = await self.session.execute(select(Exam))
        return [
            exam
            for exam in result.scalars().all()
            if question_id in (exam.list_question_ids or [])
        ]

    async def delete_question(self, question_id: int, account: Account) -> None:
        """删除题目；仍被试卷引用时拒绝"""
        question = await self.get_question_or_404(question_id)
        self._ensure_can_modify(question, account)

        exams = await self.find_exams_using(question_id)
        if exams:
            titles = ", ".join(exam.title for exam in exams[:3])
            logger.warning(f"题目 {question_id} 仍被试卷引用，拒绝删除: {titles}")
            raise ConflictError(f"Câu hỏi đang được dùng trong đề thi: {titles}")

        if await self.count_answers(question_id):
            raise ConflictError("Câu hỏi đã có bài làm của học viên, không thể xóa")

        await self.session.delete(question)
        await self.session.flush()
