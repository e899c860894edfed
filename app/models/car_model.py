import uuid
from sqlalchemy import Column, String, Float, Integer, DateTime, ForeignKey, JSON, Table, Uuid
from sqlalchemy.orm import relationship
from app.database import Base
from app.utils.datetime_utils import utcnow

car_locations = Table(
    "car_locations",
    Base.metadata,
    Column("car_id", Uuid(as_uuid=False), ForeignKey("cars.id"), primary_key=True),
    Column("location_id", Uuid(as_uuid=False), ForeignKey("locations.id"), primary_key=True),
)


class Car(Base):
    __tablename__ = "cars"

    id = Column(Uuid(as_uuid=False), primary_key=True, default=lambda: str(uuid.uuid4()), index=True)
    model = Column(String, nullable=False, index=True)
    category = Column(String, nullable=False)
    gear_box_type = Column(String, nullable=True)
    fuel_type = Column(String, nullable=True)
    passenger_capacity = Column(Integer, nullable=True)
    price_per_day = Column(Float, nullable=False)
    images = Column(JSON, default=list)
    car_rating = Column(Float, default=0.0, nullable=False)
    service_rating = Column(Integer, default=5, nullable=False)
    created_at = Column(DateTime, default=utcnow)

    # Relationships
    locations = relationship(
        "Location", secondary=car_locations, back_populates="cars", order_by="Location.location_name"
    )
    bookings = relationship("Booking", back_populates="car")
    reviews = relationship("Review", back_populates="car")

    @property
    def location_ids(self) -> list:
        return [location.id for location in self.locations]
