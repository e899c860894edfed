from datetime import datetime, time, timedelta
from math import ceil
from typing import List, Optional, Tuple
from uuid import UUID
from fastapi import HTTPException, status
from sqlalchemy.orm import Session, selectinload
from app.cache import cache
from app.models.car_model import Car
from app.models.location_model import Location
from app.schemas.car_schema import CarCreate
from app.services.booking_crud import booking_crud
from app.utils.datetime_utils import day_range, to_naive_utc, utcnow
from app.logger import get_logger

logger = get_logger(__name__)


def _car_cache_key(car_id) -> str:
    return f"car:{car_id}"


def today_window() -> Tuple[datetime, datetime]:
    today = utcnow().date()
    return datetime.combine(today, time.min), datetime.combine(today, time.max)


def listing_window(
        pickup: Optional[datetime], dropoff: Optional[datetime]
) -> Tuple[datetime, datetime]:
    """Window used to classify cars in a listing.

    Without bounds this is today. A single bound is widened by one day on the
    missing side so the window never ends before it starts.
    """
    if pickup is None and dropoff is None:
        return today_window()
    if dropoff is None:
        start = to_naive_utc(pickup)
        return start, start + timedelta(days=1)
    if pickup is None:
        end = to_naive_utc(dropoff)
        return end - timedelta(days=1), end
    return to_naive_utc(pickup), to_naive_utc(dropoff)


class CarCRUD:
    @staticmethod
    def _location_text(car: Car) -> str:
        if not car.locations:
            return "Unknown"
        first = car.locations[0]
        return f"{first.location_name}, {first.location_address}"

    @staticmethod
    def serialize(car: Car) -> dict:
        """Static car attributes; availability is never part of the cached data"""
        return {
            "carId": str(car.id),
            "carRating": car.car_rating,
            "imageUrl": car.images[0] if car.images else "",
            "location": CarCRUD._location_text(car),
            "model": car.model,
            "pricePerDay": car.price_per_day,
            "serviceRating": car.service_rating,
            "category": car.category,
            "gearBoxType": car.gear_box_type,
            "fuelType": car.fuel_type,
            "passengerCapacity": car.passenger_capacity,
            "images": list(car.images or []),
            "locationIds": [str(location_id) for location_id in car.location_ids],
        }

    @staticmethod
    def get_car(db: Session, car_id: UUID) -> Optional[Car]:
        return (
            db.query(Car)
            .options(selectinload(Car.locations))
            .filter(Car.id == str(car_id))
            .first()
        )

    @staticmethod
    def get_car_details(db: Session, car_id: UUID) -> dict:
        """Car details with today's availability status"""
        data = cache.get_json(_car_cache_key(car_id))
        if data is None:
            car = CarCRUD.get_car(db, car_id)
            if not car:
                raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Car not found")
            data = CarCRUD.serialize(car)
            cache.set_json(_car_cache_key(car_id), data)

        start, end = today_window()
        data["status"] = booking_crud.check_availability(db, car_id, start, end).value
        return data

    @staticmethod
    def get_cars(
            db: Session,
            pickup_location_id: Optional[UUID] = None,
            dropoff_location_id: Optional[UUID] = None,
            pickup_datetime: Optional[datetime] = None,
            dropoff_datetime: Optional[datetime] = None,
            category: Optional[str] = None,
            gear_box_type: Optional[str] = None,
            fuel_type: Optional[str] = None,
            min_price: Optional[float] = None,
            max_price: Optional[float] = None,
            page: int = 1,
            size: int = 10,
    ) -> dict:
        """Filtered, paginated car listing with availability for the requested window"""
        query = db.query(Car).options(selectinload(Car.locations))

        location_ids = [str(i) for i in (pickup_location_id, dropoff_location_id) if i is not None]
        if location_ids:
            query = query.filter(Car.locations.any(Location.id.in_(location_ids)))

        if category:
            query = query.filter(Car.category == category.upper())
        if gear_box_type:
            query = query.filter(Car.gear_box_type == gear_box_type.upper())
        if fuel_type:
            query = query.filter(Car.fuel_type == fuel_type.upper())

        if min_price is not None:
            query = query.filter(Car.price_per_day >= min_price)
        if max_price is not None:
            query = query.filter(Car.price_per_day <= max_price)

        total_elements = query.count()
        cars = query.order_by(Car.model).offset((page - 1) * size).limit(size).all()

        start, end = listing_window(pickup_datetime, dropoff_datetime)

        content = []
        for car in cars:
            item = CarCRUD.serialize(car)
            item["status"] = booking_crud.check_availability(db, car.id, start, end).value
            content.append(item)

        return {
            "content": content,
            "current_page": page,
            "total_elements": total_elements,
            "total_pages": ceil(total_elements / size) if total_elements else 0,
        }

    @staticmethod
    def get_popular_cars(db: Session) -> dict:
        """Every car with its status for today"""
        cars = db.query(Car).options(selectinload(Car.locations)).order_by(Car.model).all()
        start, end = today_window()
        content = []
        for car in cars:
            item = CarCRUD.serialize(car)
            item["status"] = booking_crud.check_availability(db, car.id, start, end).value
            content.append(item)
        return {"content": content}

    @staticmethod
    def get_booked_days(db: Session, car_id: UUID) -> List[str]:
        """Sorted calendar days covered by the car's blocking bookings"""
        if not db.query(Car.id).filter(Car.id == str(car_id)).first():
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Car not found")

        days = set()
        for booking in booking_crud.get_car_bookings(db, car_id):
            days.update(day_range(booking.pickup_datetime, booking.dropoff_datetime))
        return sorted(days)

    @staticmethod
    def create_car(db: Session, car: CarCreate) -> Car:
        location_ids = [str(location_id) for location_id in car.location_ids]
        locations = db.query(Location).filter(Location.id.in_(location_ids)).all()
        if len(locations) != len(set(location_ids)):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="One or more locations do not exist",
            )

        try:
            db_car = Car(
                model=car.model,
                category=car.category.upper(),
                gear_box_type=car.gear_box_type.upper() if car.gear_box_type else None,
                fuel_type=car.fuel_type.upper() if car.fuel_type else None,
                passenger_capacity=car.passenger_capacity,
                price_per_day=car.price_per_day,
                images=car.images,
                service_rating=car.service_rating,
                locations=locations,
            )
            db.add(db_car)
            db.commit()
            db.refresh(db_car)
            logger.info(f"Car created: {db_car.model} ({db_car.id})")
            return db_car
        except Exception as e:
            db.rollback()
            logger.error(f"Error creating car: {str(e)}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Error occurred while creating car",
            )

    @staticmethod
    def invalidate(car_id) -> None:
        cache.delete(_car_cache_key(car_id))


car_crud = CarCRUD()
