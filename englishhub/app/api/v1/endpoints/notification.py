"""站内通知 API"""

from fastapi import APIRouter, HTTPException, Query

from englishhub.app.api.v1.deps import CurrentAccount, SessionDep
from englishhub.app.core.exceptions import status_code_for
from englishhub.app.schemas.notification import (
    NotificationListResponse,
    NotificationResponse,
)
from englishhub.app.services.notification_service import NotificationService

router = APIRouter()


@router.get("/", response_model=NotificationListResponse)
async def list_notifications(
    session: SessionDep,
    account: CurrentAccount,
    unread_only: bool = False,
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
) -> NotificationListResponse:
    notification_service = NotificationService(session)
    items, total, unread = await notification_service.list_notifications(
        account.id, unread_only=unread_only, skip=skip, limit=limit
    )
    return NotificationListResponse(
        items=[NotificationResponse.model_validate(n) for n in items],
        total=total,
        unread_count=unread,
    )


@router.get("/unread-count")
async def unread_count(session: SessionDep, account: CurrentAccount) -> dict:
    notification_service = NotificationService(session)
    return {"unread_count": await notification_service.unread_count(account.id)}


@router.patch("/read-all")
async def mark_all_read(session: SessionDep, account: CurrentAccount) -> dict:
    notification_service = NotificationService(session)
    updated = await notification_service.mark_all_read(account.id)
    return {"updated": updated}


@router.patch("/{notification_id}/read", response_model=NotificationResponse)
async def mark_read(
    notification_id: int,
    session: SessionDep,
    account: CurrentAccount,
) -> NotificationResponse:
    notification_service = NotificationService(session)
    try:
        notification = await notification_service.mark_read(notification_id, account.id)
        return NotificationResponse.model_validate(notification)
    except ValueError as e:
        raise HTTPException(status_code=status_code_for(e), detail=str(e))
