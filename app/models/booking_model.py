import uuid
from sqlalchemy import Column, String, DateTime, ForeignKey, Uuid, Index
from sqlalchemy.orm import relationship
from app.database import Base
from app.utils.booking_rules import BookingStatus, CancelRequestStatus
from app.utils.datetime_utils import utcnow


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(Uuid(as_uuid=False), primary_key=True, default=lambda: str(uuid.uuid4()), index=True)
    booking_number = Column(String(16), unique=True, nullable=False, index=True)
    car_id = Column(Uuid(as_uuid=False), ForeignKey("cars.id"), nullable=False)
    client_id = Column(Uuid(as_uuid=False), ForeignKey("users.id"), nullable=False)
    pickup_location_id = Column(Uuid(as_uuid=False), ForeignKey("locations.id"), nullable=False)
    dropoff_location_id = Column(Uuid(as_uuid=False), ForeignKey("locations.id"), nullable=False)
    pickup_datetime = Column(DateTime, nullable=False)
    dropoff_datetime = Column(DateTime, nullable=False)
    status = Column(String, nullable=False, default=BookingStatus.BOOKED.value)

    # Cancellation review, tracked apart from status
    cancel_request_status = Column(String, nullable=False, default=CancelRequestStatus.NONE.value)
    cancel_requested_at = Column(DateTime, nullable=True)
    cancel_reviewed_at = Column(DateTime, nullable=True)
    cancel_reviewed_by = Column(Uuid(as_uuid=False), ForeignKey("users.id"), nullable=True)

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    car = relationship("Car", back_populates="bookings")
    client = relationship("User", foreign_keys=[client_id], back_populates="bookings")
    pickup_location = relationship("Location", foreign_keys=[pickup_location_id])
    dropoff_location = relationship("Location", foreign_keys=[dropoff_location_id])
    review = relationship("Review", back_populates="booking", uselist=False)

    __table_args__ = (
        Index("ix_bookings_car_window", "car_id", "pickup_datetime", "dropoff_datetime"),
    )

    @property
    def cancel_request(self) -> dict:
        return {
            "requested_at": self.cancel_requested_at,
            "status": self.cancel_request_status or CancelRequestStatus.NONE.value,
            "reviewed_at": self.cancel_reviewed_at,
            "reviewed_by": self.cancel_reviewed_by,
        }
