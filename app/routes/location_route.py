from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from app.services.location_crud import location_crud
from app.schemas.location_schema import LocationCreate, LocationList, LocationOut
from app.database import get_db
from app.security.auth import get_current_admin_user
from app.models.user_model import User
from app.logger import get_logger

location_router = APIRouter()
logger = get_logger(__name__)


@location_router.get("/home/locations", response_model=LocationList, status_code=status.HTTP_200_OK)
def get_locations(db: Session = Depends(get_db)):
    try:
        return LocationList(content=location_crud.get_locations(db))
    except Exception as e:
        logger.error(f"Error fetching locations: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error occurred while fetching locations",
        )


@location_router.post("/home/locations", response_model=LocationOut, status_code=status.HTTP_201_CREATED)
def create_location(
    location: LocationCreate,
    current_user: User = Depends(get_current_admin_user),
    db: Session = Depends(get_db),
):
    """Add a pickup/dropoff location (admin only)"""
    try:
        logger.info(f"Admin {current_user.email} creating location {location.location_name}")
        db_location = location_crud.create_location(db, location)
        return LocationOut(**location_crud.serialize(db_location))

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error creating location: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error occurred while creating location",
        )
