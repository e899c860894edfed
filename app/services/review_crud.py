from math import ceil
from typing import List, Tuple
from uuid import UUID
from fastapi import status
from sqlalchemy import func
from sqlalchemy.orm import Session
from app.errors import BookingError
from app.models.review_model import Review
from app.models.booking_model import Booking
from app.models.car_model import Car
from app.schemas.review_schema import FeedbackCreate
from app.services.car_crud import car_crud
from app.utils.booking_rules import BookingStatus, FEEDBACK_TRANSITIONS
from app.logger import get_logger

logger = get_logger(__name__)


def _feedback_date(value) -> str:
    return value.strftime("%d.%m.%Y")


class ReviewCRUD:
    @staticmethod
    def _refresh_car_rating(db: Session, car_id: str) -> None:
        average = db.query(func.avg(Review.rating)).filter(Review.car_id == car_id).scalar()
        car = db.query(Car).filter(Car.id == car_id).first()
        if car:
            car.car_rating = round(float(average), 1) if average is not None else 0.0

    @staticmethod
    def create_or_update_feedback(db: Session, feedback: FeedbackCreate) -> Tuple[Review, bool]:
        """Create the review that closes a booking, or edit an existing one.

        A first review is accepted only for a SERVICEPROVIDED booking and moves
        it to SERVICEFINISHED in the same commit; later edits require the
        booking to be SERVICEFINISHED. Returns (review, created).
        """
        required = (
            feedback.booking_id,
            feedback.car_id,
            feedback.client_id,
            feedback.feedback_text,
            feedback.rating,
        )
        if any(value is None or value == "" for value in required):
            raise BookingError(
                status.HTTP_400_BAD_REQUEST, "Missing required fields for feedback", "MISSING_FIELDS"
            )

        if not 1 <= feedback.rating <= 5:
            raise BookingError(
                status.HTTP_400_BAD_REQUEST, "Rating must be a number between 1 and 5", "INVALID_RATING"
            )

        booking_id = str(feedback.booking_id)
        car_id = str(feedback.car_id)
        client_id = str(feedback.client_id)

        booking = db.query(Booking).filter(Booking.id == booking_id).first()
        if not booking:
            raise BookingError(
                status.HTTP_404_NOT_FOUND,
                "Invalid booking ID. Booking does not exist.",
                "BOOKING_NOT_FOUND",
            )
        if booking.client_id != client_id:
            raise BookingError(
                status.HTTP_403_FORBIDDEN,
                "You are not authorized to review this booking",
                "NOT_AUTHORIZED",
            )
        if booking.car_id != car_id:
            raise BookingError(
                status.HTTP_400_BAD_REQUEST, "Car does not match the booking", "INVALID_CAR"
            )

        existing = db.query(Review).filter(Review.booking_id == booking_id).first()

        if existing:
            if booking.status != BookingStatus.SERVICEFINISHED.value:
                raise BookingError(
                    status.HTTP_400_BAD_REQUEST,
                    "Feedback can only be updated when booking is in SERVICEFINISHED state",
                    "INVALID_STATUS",
                )
            try:
                existing.feedback = feedback.feedback_text.strip()
                existing.rating = float(feedback.rating)
                db.flush()
                ReviewCRUD._refresh_car_rating(db, car_id)
                db.commit()
                db.refresh(existing)
            except Exception as e:
                db.rollback()
                logger.error(f"Error updating feedback {existing.id}: {str(e)}")
                raise BookingError(
                    status.HTTP_500_INTERNAL_SERVER_ERROR,
                    "Failed to create/update feedback",
                    "SERVER_ERROR",
                )
            car_crud.invalidate(car_id)
            logger.info(f"Feedback updated: {existing.id} for booking {booking_id}")
            return existing, False

        closing = FEEDBACK_TRANSITIONS.get(BookingStatus(booking.status), frozenset())
        if BookingStatus.SERVICEFINISHED not in closing:
            raise BookingError(
                status.HTTP_400_BAD_REQUEST,
                "Feedback can only be added when booking is in SERVICEPROVIDED state",
                "INVALID_STATUS",
            )

        try:
            db_review = Review(
                booking_id=booking_id,
                car_id=car_id,
                client_id=client_id,
                feedback=feedback.feedback_text.strip(),
                rating=float(feedback.rating),
            )
            db.add(db_review)
            booking.status = BookingStatus.SERVICEFINISHED.value
            db.flush()
            ReviewCRUD._refresh_car_rating(db, car_id)
            db.commit()
            db.refresh(db_review)
        except Exception as e:
            db.rollback()
            logger.error(f"Error creating feedback for booking {booking_id}: {str(e)}")
            raise BookingError(
                status.HTTP_500_INTERNAL_SERVER_ERROR,
                "Failed to create/update feedback",
                "SERVER_ERROR",
            )

        car_crud.invalidate(car_id)
        logger.info(f"Feedback created: {db_review.id}, booking {booking_id} finished")
        return db_review, True

    @staticmethod
    def get_recent_feedback(db: Session, limit: int = 5) -> List[dict]:
        reviews = db.query(Review).order_by(Review.created_at.desc()).limit(limit).all()

        content = []
        for review in reviews:
            if not (review.client and review.car and review.booking):
                continue
            date = _feedback_date(review.created_at)
            last_initial = review.client.last_name[:1] if review.client.last_name else ""
            content.append({
                "author": f"{review.client.first_name} {last_initial}.",
                "car_image_url": review.car.images[0] if review.car.images else None,
                "car_model": review.car.model,
                "date": date,
                "feedback_id": review.id,
                "feedback_text": review.feedback,
                "order_history": f"#{review.booking.booking_number} ({date})",
                "rating": f"{review.rating:.1f}",
            })
        return content

    @staticmethod
    def get_car_reviews(
            db: Session, car_id: UUID, page: int = 0, size: int = 10, newest_first: bool = True
    ) -> dict:
        query = db.query(Review).filter(Review.car_id == str(car_id))
        total_elements = query.count()
        order = Review.created_at.desc() if newest_first else Review.created_at.asc()
        reviews = query.order_by(order).offset(page * size).limit(size).all()

        content = []
        for review in reviews:
            client = review.client
            last_initial = client.last_name[:1] if client and client.last_name else ""
            content.append({
                "author": f"{client.first_name} {last_initial}." if client else "Anonymous",
                "author_image_url": (client.image_url or "") if client else "",
                "date": _feedback_date(review.created_at),
                "rental_experience": f"{review.rating:.1f}",
                "text": review.feedback,
            })

        return {
            "content": content,
            "current_page": page,
            "total_elements": total_elements,
            "total_pages": ceil(total_elements / size) if total_elements else 0,
        }


review_crud = ReviewCRUD()
