import uuid
from sqlalchemy import Column, Float, DateTime, ForeignKey, Text, CheckConstraint, Uuid
from sqlalchemy.orm import relationship
from app.database import Base
from app.utils.datetime_utils import utcnow


class Review(Base):
    __tablename__ = "reviews"

    id = Column(Uuid(as_uuid=False), primary_key=True, default=lambda: str(uuid.uuid4()), index=True)
    booking_id = Column(Uuid(as_uuid=False), ForeignKey("bookings.id"), nullable=False,
                        unique=True)  # One review per booking
    car_id = Column(Uuid(as_uuid=False), ForeignKey("cars.id"), nullable=False, index=True)
    client_id = Column(Uuid(as_uuid=False), ForeignKey("users.id"), nullable=False)
    feedback = Column(Text, nullable=False)
    rating = Column(Float, nullable=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    booking = relationship("Booking", back_populates="review")
    car = relationship("Car", back_populates="reviews")
    client = relationship("User", back_populates="reviews")

    __table_args__ = (
        CheckConstraint('rating >= 1 AND rating <= 5', name='check_rating_range'),
    )
