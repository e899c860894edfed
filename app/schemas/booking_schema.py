from pydantic import Field
from typing import List, Optional
from uuid import UUID
from datetime import datetime
from app.utils.booking_rules import BookingStatus, CancelRequestStatus
from app.schemas.base_schema import CamelModel


class BookingCreate(CamelModel):
    # Every field is optional here so that missing ones surface as MISSING_FIELDS
    car_id: Optional[UUID] = Field(None, alias="carId")
    client_id: Optional[UUID] = Field(None, alias="clientId")
    pickup_datetime: Optional[datetime] = Field(None, alias="pickupDateTime")
    dropoff_datetime: Optional[datetime] = Field(None, alias="dropOffDateTime")
    pickup_location_id: Optional[UUID] = Field(None, alias="pickupLocationId")
    dropoff_location_id: Optional[UUID] = Field(None, alias="dropOffLocationId")


class BookingCreateResponse(CamelModel):
    success: bool = True
    message: str
    booking_id: UUID = Field(..., alias="bookingId")
    booking_number: str = Field(..., alias="bookingNumber")


class BookingCancel(CamelModel):
    user_id: UUID = Field(..., alias="userId")


class BookingEdit(CamelModel):
    user_id: UUID = Field(..., alias="userId")
    pickup_datetime: Optional[str] = Field(
        None, alias="pickupDateTime", description='New pickup time, "YYYY-MM-DD HH:mm"'
    )
    dropoff_datetime: Optional[str] = Field(
        None, alias="dropoffDateTime", description='New dropoff time, "YYYY-MM-DD HH:mm"'
    )
    pickup_location_id: Optional[UUID] = Field(None, alias="pickupLocationId")
    dropoff_location_id: Optional[UUID] = Field(None, alias="dropoffLocationId")


class ReservationStatusChange(CamelModel):
    status: Optional[BookingStatus] = None


class MessageResponse(CamelModel):
    message: str


class CancelRequestOut(CamelModel):
    requested_at: Optional[datetime] = Field(None, alias="requestedAt")
    status: CancelRequestStatus = CancelRequestStatus.NONE
    reviewed_at: Optional[datetime] = Field(None, alias="reviewedAt")
    reviewed_by: Optional[UUID] = Field(None, alias="reviewedBy")


class LocationBrief(CamelModel):
    id: UUID
    location_name: str = Field(..., alias="name")
    location_address: str = Field(..., alias="address")


class BookingResponse(CamelModel):
    id: UUID = Field(..., alias="bookingId")
    booking_number: str = Field(..., alias="bookingNumber")
    car_id: UUID = Field(..., alias="carId")
    client_id: UUID = Field(..., alias="clientId")
    pickup_location_id: UUID = Field(..., alias="pickupLocationId")
    dropoff_location_id: UUID = Field(..., alias="dropoffLocationId")
    pickup_datetime: datetime = Field(..., alias="pickupDateTime")
    dropoff_datetime: datetime = Field(..., alias="dropoffDateTime")
    status: BookingStatus
    cancel_request: CancelRequestOut = Field(..., alias="cancelRequest")
    created_at: datetime = Field(..., alias="createdAt")


class UserBookingSummary(CamelModel):
    booking_id: UUID = Field(..., alias="bookingId")
    car_id: UUID = Field(..., alias="carId")
    booking_status: BookingStatus = Field(..., alias="bookingStatus")
    car_image_url: str = Field("", alias="carImageUrl")
    car_model: Optional[str] = Field(None, alias="carModel")
    order_details: str = Field(..., alias="orderDetails")


class BookingCarDetails(CamelModel):
    id: UUID
    model: str
    price_per_day: float = Field(..., alias="pricePerDay")
    image: Optional[str] = None
    locations: List[LocationBrief]


class BookingDetails(BookingResponse):
    car: BookingCarDetails
    pickup_location: LocationBrief = Field(..., alias="pickupLocation")
    dropoff_location: LocationBrief = Field(..., alias="dropoffLocation")


class BookingPage(CamelModel):
    success: bool = True
    total: int
    current_page: int = Field(..., alias="currentPage")
    total_pages: int = Field(..., alias="totalPages")
    bookings: List[BookingResponse]


class AvailabilityResponse(CamelModel):
    car_id: UUID = Field(..., alias="carId")
    pickup_datetime: datetime = Field(..., alias="pickupDateTime")
    dropoff_datetime: datetime = Field(..., alias="dropOffDateTime")
    status: str


def cancel_request_out(booking) -> CancelRequestOut:
    return CancelRequestOut(**booking.cancel_request)


def booking_response(booking) -> BookingResponse:
    return BookingResponse(
        id=booking.id,
        booking_number=booking.booking_number,
        car_id=booking.car_id,
        client_id=booking.client_id,
        pickup_location_id=booking.pickup_location_id,
        dropoff_location_id=booking.dropoff_location_id,
        pickup_datetime=booking.pickup_datetime,
        dropoff_datetime=booking.dropoff_datetime,
        status=booking.status,
        cancel_request=cancel_request_out(booking),
        created_at=booking.created_at,
    )


def _location_brief(location) -> LocationBrief:
    return LocationBrief(
        id=location.id,
        location_name=location.location_name,
        location_address=location.location_address,
    )


def booking_details(booking) -> BookingDetails:
    car = booking.car
    return BookingDetails(
        **booking_response(booking).model_dump(),
        car=BookingCarDetails(
            id=car.id,
            model=car.model,
            price_per_day=car.price_per_day,
            image=car.images[0] if car.images else None,
            locations=[_location_brief(location) for location in car.locations],
        ),
        pickup_location=_location_brief(booking.pickup_location),
        dropoff_location=_location_brief(booking.dropoff_location),
    )


def user_booking_summary(booking) -> UserBookingSummary:
    car = booking.car
    return UserBookingSummary(
        booking_id=booking.id,
        car_id=booking.car_id,
        booking_status=booking.status,
        car_image_url=car.images[0] if car and car.images else "",
        car_model=car.model if car else None,
        order_details=f"#{booking.booking_number} ({booking.pickup_datetime.strftime('%d.%m.%Y')})",
    )
