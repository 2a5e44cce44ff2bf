"""课程/试卷审核状态流转"""

from englishhub.app.core.exceptions import ConflictError
from englishhub.app.models.base import ApprovalStatus

DEFAULT_REJECTION_REASON = "Không đạt yêu cầu"

# 允许的状态流转：当前状态 → 可到达状态
ALLOWED_TRANSITIONS: dict[ApprovalStatus, frozenset[ApprovalStatus]] = {
    ApprovalStatus.DRAFT: frozenset({ApprovalStatus.PENDING_REVIEW}),
    ApprovalStatus.REJECTED: frozenset(
        {ApprovalStatus.PENDING_REVIEW, ApprovalStatus.APPROVED}
    ),
    ApprovalStatus.PENDING_REVIEW: frozenset(
        {ApprovalStatus.APPROVED, ApprovalStatus.REJECTED}
    ),
    ApprovalStatus.APPROVED: frozenset(),
}

_STATUS_NAMES = {
    ApprovalStatus.DRAFT: "nháp",
    ApprovalStatus.PENDING_REVIEW: "chờ duyệt",
    ApprovalStatus.APPROVED: "đã duyệt",
    ApprovalStatus.REJECTED: "bị từ chối",
}


def can_transition(current: ApprovalStatus, target: ApprovalStatus) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, frozenset())


def ensure_transition(current: ApprovalStatus, target: ApprovalStatus) -> None:
    """非法流转抛出 ConflictError"""
    if not can_transition(current, target):
        raise ConflictError(
            f"Không thể chuyển từ trạng thái {_STATUS_NAMES[current]} "
            f"sang {_STATUS_NAMES[target]}"
        )


def rejection_reason_or_default(reason: str | None) -> str:
    reason = (reason or "").strip()
    return reason or DEFAULT_REJECTION_REASON
