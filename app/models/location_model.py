import uuid
from sqlalchemy import Column, String, DateTime, Uuid
from sqlalchemy.orm import relationship
from app.database import Base
from app.models.car_model import car_locations
from app.utils.datetime_utils import utcnow


class Location(Base):
    __tablename__ = "locations"

    id = Column(Uuid(as_uuid=False), primary_key=True, default=lambda: str(uuid.uuid4()), index=True)
    location_name = Column(String, nullable=False)
    location_address = Column(String, unique=True, nullable=False)
    location_url = Column(String, nullable=True)
    created_at = Column(DateTime, default=utcnow)

    cars = relationship("Car", secondary=car_locations, back_populates="locations")
