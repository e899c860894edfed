from datetime import datetime, timedelta
from math import ceil
from typing import List, Optional, Tuple
from uuid import UUID
from fastapi import status
from sqlalchemy import Integer, cast, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload
from app import config
from app.errors import BookingError
from app.models.booking_model import Booking
from app.models.car_model import Car
from app.models.user_model import User
from app.schemas.booking_schema import BookingCreate, BookingEdit
from app.services.notification_service import NotificationDispatcher
from app.services.user_crud import user_crud
from app.utils.booking_rules import (
    AvailabilityStatus,
    BookingStatus,
    CancelRequestStatus,
    CLIENT_CANCELABLE_STATUSES,
    EDITABLE_STATUSES,
    NON_BLOCKING_STATUSES,
    SUPPORT_SETTABLE_STATUSES,
    can_review_transition,
    can_support_transition,
    classify_availability,
    format_booking_number,
)
from app.utils.keyed_lock import car_locks
from app.utils.datetime_utils import (
    hours_between,
    parse_edit_datetime,
    short_date,
    to_naive_utc,
    utcnow,
)
from app.logger import get_logger

logger = get_logger(__name__)

NON_BLOCKING_VALUES = [s.value for s in NON_BLOCKING_STATUSES]
BOOKING_NUMBER_ATTEMPTS = 3

SUPPORT_STATUS_MESSAGES = {
    BookingStatus.RESERVED: (
        "Reservation Confirmed",
        "Your booking #{number} for {car} from {start} to {end} is now reserved.",
        "success",
    ),
    BookingStatus.SERVICESTARTED: (
        "Rental Started",
        "Your rental of {car} (booking #{number}) has started. Have a safe trip!",
        "info",
    ),
    BookingStatus.SERVICEPROVIDED: (
        "Rental Completed",
        "Your rental of {car} (booking #{number}) is complete. Please share your feedback.",
        "info",
    ),
    BookingStatus.CANCELED: (
        "Booking Canceled",
        "Your booking #{number} for {car} from {start} to {end} has been canceled.",
        "warning",
    ),
}


class BookingCRUD:
    @staticmethod
    def _lock_car(db: Session, car_id: str) -> Optional[Car]:
        """Load a car holding a row lock, serializing bookings for that car.

        The lock is taken on databases with SELECT ... FOR UPDATE support and
        released on commit or rollback.
        """
        return (
            db.query(Car)
            .options(selectinload(Car.locations))
            .filter(Car.id == car_id)
            .with_for_update(of=Car)
            .first()
        )

    @staticmethod
    def _has_time_conflict(
            db: Session,
            car_id: str,
            pickup: datetime,
            dropoff: datetime,
            exclude_booking_id: Optional[str] = None,
    ) -> bool:
        """Check whether [pickup, dropoff) overlaps a blocking booking of the car"""
        query = db.query(Booking.id).filter(
            Booking.car_id == car_id,
            Booking.status.notin_(NON_BLOCKING_VALUES),
            Booking.pickup_datetime < dropoff,
            Booking.dropoff_datetime > pickup,
        )

        # Exclude current booking if editing
        if exclude_booking_id:
            query = query.filter(Booking.id != exclude_booking_id)

        return query.first() is not None

    @staticmethod
    def _next_booking_number(db: Session) -> str:
        current = db.query(func.max(cast(Booking.booking_number, Integer))).scalar()
        return format_booking_number((current or 0) + 1, config.BOOKING_NUMBER_WIDTH)

    @staticmethod
    def _validate_window(pickup: datetime, dropoff: datetime) -> None:
        if pickup >= dropoff:
            raise BookingError(
                status.HTTP_400_BAD_REQUEST, "Dropoff must be after pickup", "INVALID_DATE_RANGE"
            )
        min_pickup = utcnow() + timedelta(hours=config.BOOKING_MIN_LEAD_HOURS)
        if pickup < min_pickup:
            raise BookingError(
                status.HTTP_400_BAD_REQUEST,
                f"Pickup time must be at least {config.BOOKING_MIN_LEAD_HOURS} hours from now.",
                "INVALID_PICKUP_TIME",
            )

    @staticmethod
    def _validate_locations(car: Car, *location_ids: Optional[str]) -> None:
        allowed = {str(location_id) for location_id in car.location_ids}
        if any(location_id is not None and str(location_id) not in allowed for location_id in location_ids):
            raise BookingError(
                status.HTTP_400_BAD_REQUEST,
                "Selected pickup or dropoff location is not available for this car",
                "INVALID_LOCATION",
            )

    @staticmethod
    def _get_booking_or_404(db: Session, booking_id) -> Booking:
        booking = db.query(Booking).filter(Booking.id == str(booking_id)).first()
        if not booking:
            raise BookingError(status.HTTP_404_NOT_FOUND, "Booking not found", "BOOKING_NOT_FOUND")
        return booking

    @staticmethod
    def create_booking(db: Session, booking: BookingCreate, notifier: NotificationDispatcher) -> Booking:
        """Create a booking after checking every precondition in order"""
        required = (
            booking.car_id,
            booking.client_id,
            booking.pickup_datetime,
            booking.dropoff_datetime,
            booking.pickup_location_id,
            booking.dropoff_location_id,
        )
        if any(value is None for value in required):
            raise BookingError(
                status.HTTP_400_BAD_REQUEST, "Missing required booking fields", "MISSING_FIELDS"
            )

        car_id = str(booking.car_id)
        client_id = str(booking.client_id)

        user = db.query(User).filter(User.id == client_id).first()
        if not user:
            raise BookingError(status.HTTP_401_UNAUTHORIZED, "Invalid user", "INVALID_USER")

        if not user_crud.sync_document_status(db, user):
            raise BookingError(
                status.HTTP_400_BAD_REQUEST, "Your documents are not verified", "UNVERIFIED_DOCUMENT"
            )

        pickup = to_naive_utc(booking.pickup_datetime)
        dropoff = to_naive_utc(booking.dropoff_datetime)
        BookingCRUD._validate_window(pickup, dropoff)

        # Serialize check-then-insert per car; the row lock alone is a no-op on SQLite
        with car_locks.hold(car_id):
            for attempt in range(1, BOOKING_NUMBER_ATTEMPTS + 1):
                car = BookingCRUD._lock_car(db, car_id)
                if not car:
                    raise BookingError(status.HTTP_404_NOT_FOUND, "Car not found", "CAR_NOT_FOUND")

                try:
                    BookingCRUD._validate_locations(car, booking.pickup_location_id, booking.dropoff_location_id)

                    if BookingCRUD._has_time_conflict(db, car_id, pickup, dropoff):
                        raise BookingError(
                            status.HTTP_400_BAD_REQUEST,
                            "This car is already booked during the selected time period.",
                            "OVERLAP",
                        )
                except BookingError:
                    db.rollback()
                    raise

                try:
                    db_booking = Booking(
                        car_id=car_id,
                        client_id=client_id,
                        pickup_location_id=str(booking.pickup_location_id),
                        dropoff_location_id=str(booking.dropoff_location_id),
                        pickup_datetime=pickup,
                        dropoff_datetime=dropoff,
                        booking_number=BookingCRUD._next_booking_number(db),
                        status=BookingStatus.BOOKED.value,
                        cancel_request_status=CancelRequestStatus.NONE.value,
                    )
                    db.add(db_booking)
                    db.commit()
                    db.refresh(db_booking)
                    break
                except IntegrityError as e:
                    # Another request took the same booking number; retry with a fresh one
                    db.rollback()
                    logger.warning(f"Booking number collision (attempt {attempt}): {str(e)}")
                    if attempt == BOOKING_NUMBER_ATTEMPTS:
                        raise BookingError(
                            status.HTTP_409_CONFLICT,
                            "Could not allocate a booking number, please retry",
                            "DUPLICATE_BOOKING_NUMBER",
                        )
                except Exception as e:
                    db.rollback()
                    logger.error(f"Error creating booking: {str(e)}")
                    raise BookingError(
                        status.HTTP_500_INTERNAL_SERVER_ERROR,
                        "Error occurred while creating booking",
                        "SERVER_ERROR",
                    )

        logger.info(f"Booking #{db_booking.booking_number} created: {db_booking.id} by user {client_id}")
        notifier.dispatch(
            client_id,
            "Reservation request received",
            f"Your booking request for {car.model} from {short_date(pickup)} to {short_date(dropoff)} "
            f"has been received and we will notify you upon successful reservation.",
            "info",
        )
        return db_booking

    @staticmethod
    def creation_message(db_booking: Booking) -> str:
        pickup = db_booking.pickup_datetime
        dropoff = db_booking.dropoff_datetime
        return (
            f"New booking was successfully created.\n"
            f"{db_booking.car.model} is booked for {short_date(pickup)} - {short_date(dropoff)}.\n"
            f"Your order: #{db_booking.booking_number} ({pickup.strftime('%d.%m.%y')})"
        )

    @staticmethod
    def _request_cancellation(db: Session, booking: Booking) -> None:
        if not can_review_transition(booking.cancel_request_status, CancelRequestStatus.PENDING):
            raise BookingError(
                status.HTTP_400_BAD_REQUEST,
                "A cancellation for this booking has already been approved",
                "INVALID_STATUS",
            )
        try:
            booking.cancel_request_status = CancelRequestStatus.PENDING.value
            booking.cancel_requested_at = utcnow()
            booking.cancel_reviewed_at = None
            booking.cancel_reviewed_by = None
            db.commit()
            db.refresh(booking)
        except Exception as e:
            db.rollback()
            logger.error(f"Error recording cancel request for booking {booking.id}: {str(e)}")
            raise BookingError(
                status.HTTP_500_INTERNAL_SERVER_ERROR,
                "Error occurred while canceling booking",
                "SERVER_ERROR",
            )

    @staticmethod
    def cancel_booking(
            db: Session, booking_id: UUID, user_id: UUID, notifier: NotificationDispatcher
    ) -> Tuple[Booking, str]:
        """Client cancellation: immediate within the free window, deferred otherwise.

        Returns the booking and the message for the client.
        """
        booking = BookingCRUD._get_booking_or_404(db, booking_id)

        if BookingStatus(booking.status) not in CLIENT_CANCELABLE_STATUSES:
            raise BookingError(
                status.HTTP_400_BAD_REQUEST,
                "Only bookings with RESERVED or BOOKED status can be canceled",
                "INVALID_STATUS",
            )

        # Only the owner may cancel or ask for a cancellation
        if booking.client_id != str(user_id):
            raise BookingError(
                status.HTTP_403_FORBIDDEN,
                "You are not authorized to cancel this booking",
                "NOT_AUTHORIZED",
            )

        if booking.status == BookingStatus.RESERVED.value:
            BookingCRUD._request_cancellation(db, booking)
            logger.info(f"Cancel request recorded for reserved booking {booking.id}")
            notifier.dispatch(
                booking.client_id,
                "Cancel Request Submitted",
                f"Your cancel request for reservation #{booking.booking_number} has been submitted successfully.",
                "info",
            )
            return booking, "Cancel request submitted successfully for RESERVED booking"

        elapsed = hours_between(booking.created_at, utcnow())
        if elapsed > config.FREE_CANCELLATION_HOURS:
            BookingCRUD._request_cancellation(db, booking)
            logger.info(f"Cancel request recorded for booking {booking.id} ({elapsed:.1f}h old)")
            notifier.dispatch(
                booking.client_id,
                "Cancel Request Pending Review",
                f"Your cancel request for booking #{booking.booking_number} has been recorded and is awaiting review.",
                "warning",
            )
            return booking, (
                f"Cancel request recorded (cannot auto-cancel as it's over "
                f"{config.FREE_CANCELLATION_HOURS} hours old)"
            )

        try:
            booking.status = BookingStatus.CANCELED.value
            db.commit()
            db.refresh(booking)
        except Exception as e:
            db.rollback()
            logger.error(f"Error canceling booking {booking.id}: {str(e)}")
            raise BookingError(
                status.HTTP_500_INTERNAL_SERVER_ERROR,
                "Error occurred while canceling booking",
                "SERVER_ERROR",
            )

        car_name = booking.car.model if booking.car else "the selected car"
        logger.info(f"Booking {booking.id} canceled by owner")
        notifier.dispatch(
            booking.client_id,
            "Booking Canceled",
            f"Your booking for {car_name} from {short_date(booking.pickup_datetime)} to "
            f"{short_date(booking.dropoff_datetime)} has been successfully canceled.",
            "success",
        )
        return booking, "Booking canceled successfully"

    @staticmethod
    def edit_booking(db: Session, booking_id: UUID, booking_edit: BookingEdit) -> Booking:
        """Change the window and/or locations of a RESERVED booking"""
        booking = BookingCRUD._get_booking_or_404(db, booking_id)

        if booking.client_id != str(booking_edit.user_id):
            raise BookingError(
                status.HTTP_403_FORBIDDEN,
                "You are not authorized to edit this booking.",
                "NOT_AUTHORIZED",
            )

        if BookingStatus(booking.status) not in EDITABLE_STATUSES:
            raise BookingError(
                status.HTTP_400_BAD_REQUEST,
                f'Cannot edit booking with status "{booking.status}". Only "RESERVED" bookings can be edited.',
                "INVALID_STATUS",
            )

        new_pickup = new_dropoff = None
        try:
            if booking_edit.pickup_datetime:
                new_pickup = parse_edit_datetime(booking_edit.pickup_datetime)
            if booking_edit.dropoff_datetime:
                new_dropoff = parse_edit_datetime(booking_edit.dropoff_datetime)
        except ValueError:
            raise BookingError(
                status.HTTP_400_BAD_REQUEST,
                'Invalid date format. Use "YYYY-MM-DD HH:mm".',
                "INVALID_DATE_FORMAT",
            )

        effective_pickup = new_pickup or booking.pickup_datetime
        effective_dropoff = new_dropoff or booking.dropoff_datetime
        window_changed = new_pickup is not None or new_dropoff is not None
        if window_changed:
            BookingCRUD._validate_window(effective_pickup, effective_dropoff)

        with car_locks.hold(booking.car_id):
            car = BookingCRUD._lock_car(db, booking.car_id)
            try:
                if not car:
                    raise BookingError(
                        status.HTTP_404_NOT_FOUND, "Associated car not found.", "CAR_NOT_FOUND"
                    )
                BookingCRUD._validate_locations(
                    car, booking_edit.pickup_location_id, booking_edit.dropoff_location_id
                )
                if window_changed and BookingCRUD._has_time_conflict(
                        db, booking.car_id, effective_pickup, effective_dropoff, booking.id
                ):
                    raise BookingError(
                        status.HTTP_400_BAD_REQUEST,
                        "This car is already booked during the selected time period.",
                        "OVERLAP",
                    )
            except BookingError:
                db.rollback()
                raise

            try:
                booking.pickup_datetime = effective_pickup
                booking.dropoff_datetime = effective_dropoff
                if booking_edit.pickup_location_id:
                    booking.pickup_location_id = str(booking_edit.pickup_location_id)
                if booking_edit.dropoff_location_id:
                    booking.dropoff_location_id = str(booking_edit.dropoff_location_id)
                db.commit()
                db.refresh(booking)
                logger.info(f"Booking updated: {booking.id}")
                return booking
            except Exception as e:
                db.rollback()
                logger.error(f"Error updating booking {booking.id}: {str(e)}")
                raise BookingError(
                    status.HTTP_500_INTERNAL_SERVER_ERROR,
                    "Error occurred while updating booking",
                    "SERVER_ERROR",
                )

    @staticmethod
    def change_reservation_status(
            db: Session,
            booking_id: UUID,
            new_status: Optional[BookingStatus],
            agent_id: UUID,
            notifier: NotificationDispatcher,
    ) -> Booking:
        """Support agent moves a booking along its lifecycle"""
        if new_status is None:
            raise BookingError(
                status.HTTP_400_BAD_REQUEST, "Booking ID and status are required", "MISSING_FIELDS"
            )
        new_status = BookingStatus(new_status)
        if new_status not in SUPPORT_SETTABLE_STATUSES:
            raise BookingError(
                status.HTTP_400_BAD_REQUEST, "Invalid status provided", "INVALID_STATUS"
            )

        booking = BookingCRUD._get_booking_or_404(db, booking_id)
        if not can_support_transition(booking.status, new_status):
            raise BookingError(
                status.HTTP_400_BAD_REQUEST,
                f"Cannot change booking status from {booking.status} to {new_status.value}",
                "INVALID_TRANSITION",
            )

        now = utcnow()
        try:
            booking.status = new_status.value
            if new_status == BookingStatus.CANCELED:
                booking.cancel_request_status = CancelRequestStatus.APPROVED.value
                booking.cancel_reviewed_at = now
                booking.cancel_reviewed_by = str(agent_id)
                if booking.cancel_requested_at is None:
                    booking.cancel_requested_at = now
            elif booking.cancel_request_status == CancelRequestStatus.PENDING.value:
                # Moving the booking forward turns down the open request
                booking.cancel_request_status = CancelRequestStatus.REJECTED.value
                booking.cancel_reviewed_at = now
                booking.cancel_reviewed_by = str(agent_id)
            db.commit()
            db.refresh(booking)
        except Exception as e:
            db.rollback()
            logger.error(f"Error changing reservation status for {booking_id}: {str(e)}")
            raise BookingError(
                status.HTTP_500_INTERNAL_SERVER_ERROR,
                "Error occurred while changing reservation status",
                "SERVER_ERROR",
            )

        logger.info(f"Booking {booking.id} status set to {new_status.value} by agent {agent_id}")
        title, template, kind = SUPPORT_STATUS_MESSAGES[new_status]
        notifier.dispatch(
            booking.client_id,
            title,
            template.format(
                number=booking.booking_number,
                car=booking.car.model if booking.car else "your car",
                start=short_date(booking.pickup_datetime),
                end=short_date(booking.dropoff_datetime),
            ),
            kind,
        )
        return booking

    @staticmethod
    def get_booking_by_id(db: Session, booking_id: UUID) -> Optional[Booking]:
        return db.query(Booking).filter(Booking.id == str(booking_id)).first()

    @staticmethod
    def get_user_bookings(db: Session, user_id: UUID) -> List[Booking]:
        return (
            db.query(Booking)
            .filter(Booking.client_id == str(user_id))
            .order_by(Booking.created_at.desc())
            .all()
        )

    @staticmethod
    def get_bookings_page(
            db: Session, booking_status: Optional[BookingStatus] = None, page: int = 1, limit: int = 20
    ) -> Tuple[List[Booking], int, int]:
        """Paginated bookings for the back office; returns (bookings, total, total_pages)"""
        query = db.query(Booking)
        if booking_status:
            query = query.filter(Booking.status == BookingStatus(booking_status).value)

        total = query.count()
        bookings = (
            query.order_by(Booking.created_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return bookings, total, ceil(total / limit) if total else 0

    @staticmethod
    def get_car_bookings(db: Session, car_id: UUID, blocking_only: bool = True) -> List[Booking]:
        query = db.query(Booking).filter(Booking.car_id == str(car_id))
        if blocking_only:
            query = query.filter(Booking.status.notin_(NON_BLOCKING_VALUES))
        return query.all()

    @staticmethod
    def check_availability(
            db: Session, car_id: UUID, start: datetime, end: datetime
    ) -> AvailabilityStatus:
        """Classify a window for one car; recomputed on every call"""
        bookings = BookingCRUD.get_car_bookings(db, car_id)
        return classify_availability(bookings, to_naive_utc(start), to_naive_utc(end))


booking_crud = BookingCRUD()

