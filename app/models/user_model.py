import uuid
from sqlalchemy import Column, String, DateTime, Boolean, Uuid
from sqlalchemy.orm import relationship
from app.database import Base
from app.utils.datetime_utils import utcnow


class User(Base):
    __tablename__ = "users"

    id = Column(Uuid(as_uuid=False), primary_key=True, default=lambda: str(uuid.uuid4()), index=True)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    email = Column(String, unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    phone_number = Column(String, nullable=True)
    image_url = Column(String, nullable=True)
    status = Column(String, default="active")
    role = Column(String, default="CLIENT")
    is_active = Column(Boolean, default=True)

    # Identity document and driving license, verified independently
    aadhaar_document_url = Column(String, nullable=True)
    aadhaar_status = Column(String, default="UNVERIFIED", nullable=False)
    license_document_url = Column(String, nullable=True)
    license_status = Column(String, default="UNVERIFIED", nullable=False)

    created_at = Column(DateTime, default=utcnow)

    # Relationships
    bookings = relationship("Booking", foreign_keys="Booking.client_id", back_populates="client")
    reviews = relationship("Review", back_populates="client")
    notifications = relationship("Notification", back_populates="user")

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part)
