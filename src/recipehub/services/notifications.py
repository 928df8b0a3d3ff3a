"""User notifications."""

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from recipehub.errors import NotFoundError
from recipehub.logging_config import get_logger
from recipehub.models import Notification, User

logger = get_logger(__name__)

NOTIFICATION_TYPES = ("new_review", "new_follower", "recipe_saved", "made_it")


async def notify(
    db: AsyncSession,
    recipient_id: str,
    sender: User,
    type: str,
    message: str,
    recipe_id: str | None = None,
    review_id: str | None = None,
) -> Notification | None:
    """
    Queue a notification in the current transaction.

    Nothing is created when the sender is the recipient. The caller commits.
    """
    if recipient_id == sender.id:
        return None
    if type not in NOTIFICATION_TYPES:
        raise ValueError(f"Unknown notification type: {type}")

    notification = Notification(
        recipient_id=recipient_id,
        sender_id=sender.id,
        type=type,
        message=message[:500],
        recipe_id=recipe_id,
        review_id=review_id,
    )
    db.add(notification)
    logger.debug(f"Queued {type} notification for user {recipient_id}")
    return notification


async def list_notifications(
    db: AsyncSession, user: User, page: int = 1, limit: int = 20
) -> tuple[list[Notification], int]:
    base = select(Notification).where(Notification.recipient_id == user.id)
    total = await db.scalar(select(func.count()).select_from(base.subquery()))
    result = await db.execute(
        base.order_by(Notification.created_at.desc()).offset((page - 1) * limit).limit(limit)
    )
    return list(result.scalars().all()), total or 0


async def unread_count(db: AsyncSession, user: User) -> int:
    count = await db.scalar(
        select(func.count())
        .select_from(Notification)
        .where(Notification.recipient_id == user.id, Notification.read.is_(False))
    )
    return count or 0


async def mark_read(db: AsyncSession, user: User, notification_id: str) -> Notification:
    result = await db.execute(
        select(Notification).where(
            Notification.id == notification_id, Notification.recipient_id == user.id
        )
    )
    notification = result.scalar_one_or_none()
    if notification is None:
        raise NotFoundError.for_entity("Notification")

    notification.read = True
    await db.commit()
    return notification


async def mark_all_read(db: AsyncSession, user: User) -> int:
    result = await db.execute(
        update(Notification)
        .where(Notification.recipient_id == user.id, Notification.read.is_(False))
        .values(read=True)
        .execution_options(synchronize_session=False)
    )
    await db.commit()
    logger.info(f"Marked {result.rowcount} notifications read for user {user.id}")
    return result.rowcount
