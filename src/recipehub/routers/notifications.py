"""API routes for the caller's notifications."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from recipehub.auth import get_current_user
from recipehub.database import get_db
from recipehub.models import User
from recipehub.schemas import ApiResponse, NotificationOut, Pagination
from recipehub.services import notifications as service
from recipehub.services.recipes import clamp_page

router = APIRouter(prefix="/api/notifications", tags=["notifications"])


@router.get("", response_model=ApiResponse)
async def list_notifications(
    page: int = 1,
    limit: int = 20,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse:
    """List notifications, newest first, with the unread count."""
    page, limit = clamp_page(page, limit, default_limit=20)
    notifications, total = await service.list_notifications(db, user, page=page, limit=limit)
    unread = await service.unread_count(db, user)
    return ApiResponse(
        data={
            "notifications": [NotificationOut.model_validate(n) for n in notifications],
            "unreadCount": unread,
            "pagination": Pagination.build(page, limit, total),
        }
    )


@router.get("/unread-count", response_model=ApiResponse)
async def get_unread_count(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse:
    return ApiResponse(data={"count": await service.unread_count(db, user)})


@router.put("/read-all", response_model=ApiResponse)
async def mark_all_notifications_read(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse:
    await service.mark_all_read(db, user)
    return ApiResponse(message="All notifications marked as read")


@router.put("/{notification_id}/read", response_model=ApiResponse)
async def mark_notification_read(
    notification_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse:
    notification = await service.mark_read(db, user, notification_id)
    return ApiResponse(data={"notification": NotificationOut.model_validate(notification)})
