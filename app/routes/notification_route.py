from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from uuid import UUID
from app.services.notification_service import notification_service
from app.schemas.notification_schema import NotificationList, NotificationOut
from app.database import get_db
from app.security.auth import get_current_active_user
from app.models.user_model import User
from app.logger import get_logger

notification_router = APIRouter()
logger = get_logger(__name__)


def _notification_out(notification) -> NotificationOut:
    return NotificationOut(
        id=notification.id,
        title=notification.title,
        message=notification.message,
        type=notification.type,
        is_read=notification.is_read,
        created_at=notification.created_at,
    )


@notification_router.get("/notifications", response_model=NotificationList, status_code=status.HTTP_200_OK)
def get_notifications(
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db),
):
    """Unread notifications of the current user, newest first"""
    try:
        notifications = notification_service.get_unread(db, current_user.id)
        return NotificationList(notifications=[_notification_out(n) for n in notifications])
    except Exception as e:
        logger.error(f"Error fetching notifications for {current_user.email}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error occurred while fetching notifications",
        )


@notification_router.patch(
    "/notifications/{notification_id}/read",
    response_model=NotificationOut,
    status_code=status.HTTP_200_OK,
)
def mark_notification_read(
    notification_id: UUID,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db),
):
    notification = notification_service.mark_read(db, notification_id, current_user.id)
    return _notification_out(notification)


@notification_router.delete("/notifications/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_notification(
    notification_id: UUID,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db),
):
    notification_service.delete_notification(db, notification_id, current_user.id)
    logger.info(f"Notification {notification_id} deleted by {current_user.email}")
