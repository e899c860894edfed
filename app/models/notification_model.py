import uuid
from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, Text, Uuid
from sqlalchemy.orm import relationship
from app.database import Base
from app.utils.datetime_utils import utcnow


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(Uuid(as_uuid=False), primary_key=True, default=lambda: str(uuid.uuid4()), index=True)
    user_id = Column(Uuid(as_uuid=False), ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String, nullable=False)
    message = Column(Text, nullable=False)
    type = Column(String, default="info")
    is_read = Column(Boolean, default=False)
    created_at = Column(DateTime, default=utcnow)

    user = relationship("User", back_populates="notifications")
