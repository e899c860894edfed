from datetime import datetime
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from uuid import UUID
from typing import Optional
from app.errors import BookingError
from app.services.booking_crud import booking_crud
from app.services.car_crud import car_crud
from app.services.review_crud import review_crud
from app.schemas.booking_schema import AvailabilityResponse
from app.schemas.car_schema import BookedDays, CarCreate, CarDetails, CarList, CarPage
from app.schemas.review_schema import ClientReviewPage
from app.database import get_db
from app.security.auth import get_current_admin_user
from app.models.user_model import User
from app.logger import get_logger

car_router = APIRouter()
logger = get_logger(__name__)


@car_router.get("/cars", response_model=CarPage, status_code=status.HTTP_200_OK)
def get_cars(
    pickup_location_id: Optional[UUID] = Query(None, alias="pickupLocationId"),
    dropoff_location_id: Optional[UUID] = Query(None, alias="dropOffLocationId"),
    pickup_datetime: Optional[datetime] = Query(None, alias="pickupDateTime"),
    dropoff_datetime: Optional[datetime] = Query(None, alias="dropOffDateTime"),
    category: Optional[str] = None,
    gear_box_type: Optional[str] = Query(None, alias="gearBoxType"),
    fuel_type: Optional[str] = Query(None, alias="fuelType"),
    min_price: Optional[float] = Query(None, ge=0, alias="minPrice"),
    max_price: Optional[float] = Query(None, ge=0, alias="maxPrice"),
    page: int = Query(1, ge=1),
    size: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
):
    """Filtered car listing; each car carries its status for the requested window"""
    if pickup_datetime and dropoff_datetime and pickup_datetime >= dropoff_datetime:
        raise BookingError(
            status.HTTP_400_BAD_REQUEST, "Dropoff must be after pickup", "INVALID_DATE_RANGE"
        )
    try:
        return car_crud.get_cars(
            db,
            pickup_location_id=pickup_location_id,
            dropoff_location_id=dropoff_location_id,
            pickup_datetime=pickup_datetime,
            dropoff_datetime=dropoff_datetime,
            category=category,
            gear_box_type=gear_box_type,
            fuel_type=fuel_type,
            min_price=min_price,
            max_price=max_price,
            page=page,
            size=size,
        )
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error fetching cars: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error occurred while fetching cars",
        )


@car_router.post("/cars", response_model=CarDetails, status_code=status.HTTP_201_CREATED)
def create_car(
    car: CarCreate,
    current_user: User = Depends(get_current_admin_user),
    db: Session = Depends(get_db),
):
    """Add a car to the fleet (admin only)"""
    logger.info(f"Admin {current_user.email} adding car {car.model}")
    db_car = car_crud.create_car(db, car)
    return car_crud.get_car_details(db, db_car.id)


@car_router.get("/cars/popular", response_model=CarList, status_code=status.HTTP_200_OK)
def get_popular_cars(db: Session = Depends(get_db)):
    """All cars with today's availability"""
    try:
        return car_crud.get_popular_cars(db)
    except Exception as e:
        logger.error(f"Error fetching popular cars: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch cars",
        )


@car_router.get("/cars/{car_id}", response_model=CarDetails, status_code=status.HTTP_200_OK)
def get_car(car_id: UUID, db: Session = Depends(get_db)):
    try:
        return car_crud.get_car_details(db, car_id)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error fetching car {car_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error occurred while fetching car",
        )


@car_router.get(
    "/cars/{car_id}/availability",
    response_model=AvailabilityResponse,
    status_code=status.HTTP_200_OK,
)
def check_availability(
    car_id: UUID,
    pickup_datetime: datetime = Query(..., alias="pickupDateTime"),
    dropoff_datetime: datetime = Query(..., alias="dropOffDateTime"),
    db: Session = Depends(get_db),
):
    """Whether the car is free for [pickupDateTime, dropOffDateTime)"""
    if pickup_datetime >= dropoff_datetime:
        raise BookingError(
            status.HTTP_400_BAD_REQUEST, "Dropoff must be after pickup", "INVALID_DATE_RANGE"
        )
    if not car_crud.get_car(db, car_id):
        raise BookingError(status.HTTP_404_NOT_FOUND, "Car not found", "CAR_NOT_FOUND")

    availability = booking_crud.check_availability(db, car_id, pickup_datetime, dropoff_datetime)
    return AvailabilityResponse(
        car_id=car_id,
        pickup_datetime=pickup_datetime,
        dropoff_datetime=dropoff_datetime,
        status=availability.value,
    )


@car_router.get("/cars/{car_id}/booked-days", response_model=BookedDays, status_code=status.HTTP_200_OK)
def get_booked_days(car_id: UUID, db: Session = Depends(get_db)):
    return BookedDays(content=car_crud.get_booked_days(db, car_id))


@car_router.get(
    "/cars/{car_id}/client-review",
    response_model=ClientReviewPage,
    status_code=status.HTTP_200_OK,
)
def get_client_reviews(
    car_id: UUID,
    page: int = Query(0, ge=0),
    size: int = Query(10, ge=1, le=100),
    sort: str = Query("date,desc"),
    db: Session = Depends(get_db),
):
    """Paginated reviews of a car (pages start at 0)"""
    try:
        return review_crud.get_car_reviews(
            db, car_id, page=page, size=size, newest_first=not sort.lower().endswith(",asc")
        )
    except Exception as e:
        logger.error(f"Error fetching reviews of car {car_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error occurred while fetching reviews",
        )
