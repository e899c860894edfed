from typing import List
from fastapi import HTTPException, status
from sqlalchemy.orm import Session
from app.cache import cache
from app.models.location_model import Location
from app.schemas.location_schema import LocationCreate
from app.logger import get_logger

logger = get_logger(__name__)

LOCATIONS_CACHE_KEY = "locations:all"


class LocationCRUD:
    @staticmethod
    def serialize(location: Location) -> dict:
        return {
            "locationId": str(location.id),
            "locationName": location.location_name,
            "locationAddress": location.location_address,
            "locationUrl": location.location_url,
        }

    @staticmethod
    def get_locations(db: Session) -> List[dict]:
        """All pickup/dropoff locations, served from cache when possible"""
        cached = cache.get_json(LOCATIONS_CACHE_KEY)
        if cached is not None:
            return cached

        locations = db.query(Location).order_by(Location.location_name).all()
        content = [LocationCRUD.serialize(location) for location in locations]
        cache.set_json(LOCATIONS_CACHE_KEY, content)
        return content

    @staticmethod
    def create_location(db: Session, location: LocationCreate) -> Location:
        address = location.location_address.strip().lower()
        if db.query(Location).filter(Location.location_address == address).first():
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="A location with this address already exists",
            )
        try:
            db_location = Location(
                location_name=location.location_name,
                location_address=address,
                location_url=location.location_url,
            )
            db.add(db_location)
            db.commit()
            db.refresh(db_location)
        except Exception as e:
            db.rollback()
            logger.error(f"Error creating location: {str(e)}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Error occurred while creating location",
            )
        cache.delete(LOCATIONS_CACHE_KEY)
        logger.info(f"Location created: {db_location.id}")
        return db_location


location_crud = LocationCRUD()
