from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from uuid import UUID
from typing import List
from app.errors import BookingError
from app.services.booking_crud import booking_crud
from app.services.notification_service import NotificationDispatcher, get_notifier
from app.schemas.booking_schema import (
    BookingCreate,
    BookingCreateResponse,
    BookingCancel,
    BookingEdit,
    BookingDetails,
    MessageResponse,
    UserBookingSummary,
    booking_details,
    user_booking_summary,
)
from app.database import get_db
from app.security.auth import get_current_active_user, require_self, require_self_or_staff
from app.models.user_model import User
from app.logger import get_logger

booking_router = APIRouter()
logger = get_logger(__name__)


@booking_router.post(
    "/bookings", response_model=BookingCreateResponse, status_code=status.HTTP_201_CREATED
)
def create_booking(
    booking: BookingCreate,
    current_user: User = Depends(get_current_active_user),
    notifier: NotificationDispatcher = Depends(get_notifier),
    db: Session = Depends(get_db),
):
    """Create a booking for a car (status BOOKED)"""
    try:
        if booking.client_id is not None:
            require_self(current_user, booking.client_id)
        logger.info(f"User {current_user.email} creating booking for car {booking.car_id}")
        db_booking = booking_crud.create_booking(db, booking, notifier)
        return BookingCreateResponse(
            success=True,
            message=booking_crud.creation_message(db_booking),
            booking_id=db_booking.id,
            booking_number=db_booking.booking_number,
        )

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error creating booking: {str(e)}")
        raise BookingError(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Error occurred while creating booking",
            "SERVER_ERROR",
        )


@booking_router.get(
    "/bookings/details/{booking_id}",
    response_model=BookingDetails,
    status_code=status.HTTP_200_OK,
)
def get_booking_details(
    booking_id: UUID,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db),
):
    """Get booking with its car and locations (owner or staff)"""
    try:
        booking = booking_crud.get_booking_by_id(db, booking_id)
        if not booking:
            raise BookingError(status.HTTP_404_NOT_FOUND, "Booking not found", "BOOKING_NOT_FOUND")
        require_self_or_staff(current_user, booking.client_id)
        return booking_details(booking)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error fetching booking {booking_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error occurred while fetching booking",
        )


@booking_router.get(
    "/bookings/{user_id}",
    response_model=List[UserBookingSummary],
    status_code=status.HTTP_200_OK,
)
def get_user_bookings(
    user_id: UUID,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db),
):
    """Get a user's bookings, newest first (owner or staff)"""
    try:
        require_self_or_staff(current_user, user_id)
        bookings = booking_crud.get_user_bookings(db, user_id)
        return [user_booking_summary(booking) for booking in bookings]

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error fetching bookings of user {user_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error occurred while fetching bookings",
        )


@booking_router.put(
    "/bookings/cancel/{booking_id}",
    response_model=MessageResponse,
    status_code=status.HTTP_200_OK,
)
def cancel_booking(
    booking_id: UUID,
    body: BookingCancel,
    current_user: User = Depends(get_current_active_user),
    notifier: NotificationDispatcher = Depends(get_notifier),
    db: Session = Depends(get_db),
):
    """Cancel a booking, or file a cancel request when it cannot be canceled at once"""
    try:
        require_self(current_user, body.user_id)
        logger.info(f"User {current_user.email} canceling booking: {booking_id}")
        _, message = booking_crud.cancel_booking(db, booking_id, body.user_id, notifier)
        return MessageResponse(message=message)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error canceling booking {booking_id}: {str(e)}")
        raise BookingError(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Error occurred while canceling booking",
            "SERVER_ERROR",
        )


@booking_router.put(
    "/bookings/edit/{booking_id}",
    response_model=MessageResponse,
    status_code=status.HTTP_200_OK,
)
def edit_booking(
    booking_id: UUID,
    body: BookingEdit,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db),
):
    """Change dates or locations of a RESERVED booking (owner only)"""
    try:
        require_self(current_user, body.user_id)
        logger.info(f"User {current_user.email} editing booking: {booking_id}")
        booking_crud.edit_booking(db, booking_id, body)
        return MessageResponse(message="Your booking has been successfully updated")

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error editing booking {booking_id}: {str(e)}")
        raise BookingError(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Error occurred while updating booking",
            "SERVER_ERROR",
        )
