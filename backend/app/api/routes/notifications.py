import uuid
from typing import Any, Optional

from fastapi import APIRouter

from app.api.deps import LimitDep, SessionDep, SkipDep
from app.core.config import settings
from app.models import (
    Message,
    NotificationInfo,
    NotificationsPublic,
    NotificationStatusUpdate,
)
from app.services.notifications import NotificationStore

router_notifications = APIRouter(prefix="/notifications", tags=["notifications"])


@router_notifications.get("/", response_model=NotificationsPublic)
def read_notifications(
    session: SessionDep,
    user_id: uuid.UUID,
    status: Optional[str] = None,
    skip: SkipDep = 0,
    limit: LimitDep = settings.DEFAULT_PAGE_LIMIT,
) -> Any:
    """
    Notifications of a user, newest first, optionally filtered by status.
    """
    items, count = NotificationStore(session).list_for_user(
        user_id, status=status, limit=limit, offset=skip
    )
    return NotificationsPublic(data=items, count=count)


@router_notifications.patch("/")
def update_all_notifications(
    *, session: SessionDep, user_id: uuid.UUID, status_in: NotificationStatusUpdate
) -> Message:
    updated = NotificationStore(session).update_all_status_for_user(user_id, status_in.status)
    return Message(message=f"{updated} notifications updated")


@router_notifications.get("/{notification_id}", response_model=NotificationInfo)
def read_notification(notification_id: uuid.UUID, session: SessionDep) -> Any:
    return NotificationStore(session).get_info(notification_id)


@router_notifications.patch("/{notification_id}")
def update_notification(
    *, session: SessionDep, notification_id: uuid.UUID, status_in: NotificationStatusUpdate
) -> Message:
    NotificationStore(session).update_status(notification_id, status_in.status)
    return Message(message="Notification updated successfully")
