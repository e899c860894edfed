from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session
from app.errors import BookingError
from app.services.review_crud import review_crud
from app.schemas.review_schema import FeedbackCreate, FeedbackResult, RecentFeedbackList
from app.database import get_db
from app.security.auth import get_current_active_user, require_self
from app.models.user_model import User
from app.logger import get_logger

feedback_router = APIRouter()
logger = get_logger(__name__)


@feedback_router.post("/feedbacks", response_model=FeedbackResult, status_code=status.HTTP_201_CREATED)
def create_feedback(
    feedback: FeedbackCreate,
    response: Response,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db),
):
    """Leave feedback on a finished rental, or update the feedback already left"""
    try:
        if feedback.client_id is not None:
            require_self(current_user, feedback.client_id)
        logger.info(f"User {current_user.email} sending feedback for booking {feedback.booking_id}")
        review, created = review_crud.create_or_update_feedback(db, feedback)
        if not created:
            response.status_code = status.HTTP_200_OK
        return FeedbackResult(
            feedback_id=review.id,
            system_message="Feedback has been successfully created" if created
            else "Feedback has been successfully updated",
        )

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error saving feedback: {str(e)}")
        raise BookingError(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Failed to create/update feedback",
            "SERVER_ERROR",
        )


@feedback_router.get("/feedbacks/recent", response_model=RecentFeedbackList, status_code=status.HTTP_200_OK)
def get_recent_feedback(db: Session = Depends(get_db)):
    """Latest five reviews for the home page"""
    try:
        return RecentFeedbackList(content=review_crud.get_recent_feedback(db, limit=5))
    except Exception as e:
        logger.error(f"Error fetching recent feedback: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error occurred while fetching feedback",
        )
