from typing import Callable, List
from uuid import UUID
from fastapi import BackgroundTasks, HTTPException, status
from sqlalchemy.orm import Session
from app import config
from app.database import SessionLocal
from app.models.notification_model import Notification
from app.models.user_model import User
from app.logger import get_logger

logger = get_logger(__name__)


class NotificationService:
    @staticmethod
    def create_notification(db: Session, user_id, title: str, message: str, type: str = "info") -> Notification:
        """Persist an in-app notification for a user"""
        user = db.query(User).filter(User.id == str(user_id)).first()
        if not user:
            raise ValueError(f"Cannot notify unknown user {user_id}")

        notification = Notification(user_id=str(user_id), title=title, message=message, type=type)
        db.add(notification)
        db.commit()
        db.refresh(notification)
        logger.info(f"Notification '{title}' stored for user {user.email}")
        return notification

    @staticmethod
    def get_unread(db: Session, user_id: UUID) -> List[Notification]:
        return (
            db.query(Notification)
            .filter(Notification.user_id == str(user_id), Notification.is_read == False)
            .order_by(Notification.created_at.desc())
            .all()
        )

    @staticmethod
    def _get_owned(db: Session, notification_id: UUID, user_id: UUID) -> Notification:
        notification = db.query(Notification).filter(Notification.id == str(notification_id)).first()
        if not notification:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found"
            )
        if notification.user_id != str(user_id):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Not authorized to access this notification",
            )
        return notification

    @staticmethod
    def mark_read(db: Session, notification_id: UUID, user_id: UUID) -> Notification:
        notification = NotificationService._get_owned(db, notification_id, user_id)
        try:
            notification.is_read = True
            db.commit()
            db.refresh(notification)
            return notification
        except Exception as e:
            db.rollback()
            logger.error(f"Error marking notification {notification_id} read: {str(e)}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Error occurred while updating notification",
            )

    @staticmethod
    def delete_notification(db: Session, notification_id: UUID, user_id: UUID) -> None:
        notification = NotificationService._get_owned(db, notification_id, user_id)
        try:
            db.delete(notification)
            db.commit()
        except Exception as e:
            db.rollback()
            logger.error(f"Error deleting notification {notification_id}: {str(e)}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Error occurred while deleting notification",
            )


notification_service = NotificationService()


def deliver_notification(
    session_factory: Callable[[], Session],
    user_id,
    title: str,
    message: str,
    type: str = "info",
    max_attempts: int = config.NOTIFICATION_MAX_ATTEMPTS,
) -> bool:
    """Background job: store a notification, retrying on failure.

    Never raises; a notification that cannot be delivered is only logged.
    """
    for attempt in range(1, max_attempts + 1):
        db = None
        try:
            db = session_factory()
            notification_service.create_notification(db, user_id, title, message, type)
            return True
        except Exception as e:
            if db is not None:
                db.rollback()
            logger.error(
                f"Failed to deliver notification '{title}' to user {user_id} "
                f"(attempt {attempt}/{max_attempts}): {str(e)}"
            )
        finally:
            if db is not None:
                db.close()
    return False


class NotificationDispatcher:
    """Hands notifications to FastAPI background tasks, run after the response is sent"""

    def __init__(self, background_tasks: BackgroundTasks, session_factory: Callable[[], Session] = SessionLocal):
        self.background_tasks = background_tasks
        self.session_factory = session_factory

    def dispatch(self, user_id, title: str, message: str, type: str = "info") -> None:
        self.background_tasks.add_task(
            deliver_notification, self.session_factory, str(user_id), title, message, type
        )


def get_notifier(background_tasks: BackgroundTasks) -> NotificationDispatcher:
    return NotificationDispatcher(background_tasks)
