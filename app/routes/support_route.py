from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from uuid import UUID
from typing import Optional
from app.errors import BookingError
from app.services.booking_crud import booking_crud
from app.services.user_crud import user_crud
from app.services.notification_service import NotificationDispatcher, get_notifier
from app.schemas.booking_schema import (
    BookingPage,
    BookingResponse,
    ReservationStatusChange,
    booking_response,
)
from app.schemas.base_schema import CamelModel
from app.schemas.user_schema import DocumentReview, DocumentType, UserDocuments
from app.database import get_db
from app.security.auth import get_current_support_agent
from app.utils.booking_rules import BookingStatus
from app.models.user_model import User
from app.logger import get_logger

support_router = APIRouter()
logger = get_logger(__name__)


class ReservationStatusResult(CamelModel):
    success: bool = True
    message: str
    booking: BookingResponse


# SUPPORT AGENT ENDPOINTS


@support_router.get("/support/orders", response_model=BookingPage, status_code=status.HTTP_200_OK)
def get_orders(
    booking_status: Optional[BookingStatus] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    current_user: User = Depends(get_current_support_agent),
    db: Session = Depends(get_db),
):
    """All bookings, newest first, optionally filtered by status"""
    try:
        logger.info(f"Agent {current_user.email} fetching orders page {page}")
        bookings, total, total_pages = booking_crud.get_bookings_page(db, booking_status, page, limit)
        return BookingPage(
            total=total,
            current_page=page,
            total_pages=total_pages,
            bookings=[booking_response(booking) for booking in bookings],
        )

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error fetching orders: {str(e)}")
        raise BookingError(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Error occurred while fetching orders",
            "SERVER_ERROR",
        )


@support_router.post(
    "/support/reservations/{booking_id}",
    response_model=ReservationStatusResult,
    status_code=status.HTTP_200_OK,
)
def change_reservation_status(
    booking_id: UUID,
    body: ReservationStatusChange,
    current_user: User = Depends(get_current_support_agent),
    notifier: NotificationDispatcher = Depends(get_notifier),
    db: Session = Depends(get_db),
):
    """Move a booking along its lifecycle, or cancel it on the client's behalf"""
    try:
        logger.info(f"Agent {current_user.email} setting booking {booking_id} to {body.status}")
        booking = booking_crud.change_reservation_status(
            db, booking_id, body.status, current_user.id, notifier
        )
        return ReservationStatusResult(
            message=f"Booking status updated to {booking.status}",
            booking=booking_response(booking),
        )

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error changing status of booking {booking_id}: {str(e)}")
        raise BookingError(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Error occurred while changing reservation status",
            "SERVER_ERROR",
        )


@support_router.patch(
    "/support/users/{user_id}/documents/{doc_type}",
    response_model=UserDocuments,
    status_code=status.HTTP_200_OK,
)
def review_document(
    user_id: UUID,
    doc_type: DocumentType,
    review: DocumentReview,
    current_user: User = Depends(get_current_support_agent),
    db: Session = Depends(get_db),
):
    """Mark a client's document VERIFIED or UNVERIFIED"""
    logger.info(f"Agent {current_user.email} reviewing {doc_type.value} of user {user_id}")
    db_user = user_crud.review_document(db, user_id, doc_type, review.status)
    return UserDocuments(**user_crud.get_documents(db_user))
