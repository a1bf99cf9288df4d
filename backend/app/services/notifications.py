import logging
import uuid
from typing import Optional

from sqlmodel import Session

from app import crud
from app.core.errors import InvalidInputError, NoContentError
from app.models.breakage_models import (
    NotificationInfo,
    NotificationListItem,
    NotificationStatus,
)

logger = logging.getLogger(__name__)


def parse_status(value: NotificationStatus | str) -> NotificationStatus:
    if isinstance(value, NotificationStatus):
        return value
    try:
        return NotificationStatus(value.strip().lower())
    except ValueError as exc:
        allowed = ", ".join(s.value for s in NotificationStatus)
        raise InvalidInputError(
            f"unknown notification status {value!r}, expected one of: {allowed}"
        ) from exc


class NotificationStore:
    def __init__(self, session: Session):
        self.session = session

    def update_status(self, notification_id: uuid.UUID, status: NotificationStatus | str) -> None:
        new_status = parse_status(status)
        updated = crud.update_notification_status(
            session=self.session, notification_id=notification_id, status=new_status
        )
        if updated == 0:
            raise NoContentError(f"notification {notification_id} not found")
        logger.debug(f"Notification {notification_id} -> {new_status.value}")

    def update_all_status_for_user(
        self, user_id: uuid.UUID, status: NotificationStatus | str
    ) -> int:
        new_status = parse_status(status)
        updated = crud.update_notifications_status_for_user(
            session=self.session, user_id=user_id, status=new_status
        )
        if updated == 0:
            raise NoContentError(f"no notifications found for user {user_id}")
        logger.debug(f"{updated} notifications of user {user_id} -> {new_status.value}")
        return updated

    def get_info(self, notification_id: uuid.UUID) -> NotificationInfo:
        info = crud.get_notification_info(session=self.session, notification_id=notification_id)
        if not info:
            raise NoContentError(f"notification {notification_id} not found")
        return info

    def list_for_user(
        self,
        user_id: uuid.UUID,
        status: Optional[NotificationStatus | str] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[NotificationListItem], int]:
        """Notifications of a user, newest first; ``status=None`` returns every status."""
        if limit <= 0 or offset < 0:
            raise InvalidInputError("limit must be positive and offset non-negative")
        status_filter = parse_status(status) if status is not None else None
        return crud.get_notifications_by_user(
            session=self.session,
            user_id=user_id,
            status=status_filter,
            skip=offset,
            limit=limit,
        )
