import uuid
from sqlalchemy import Column, String, DateTime, Uuid
from app.database import Base
from app.utils.datetime_utils import utcnow


class TokenBlacklist(Base):
    __tablename__ = "token_blacklist"

    id = Column(Uuid(as_uuid=False), primary_key=True, default=lambda: str(uuid.uuid4()), index=True)
    jti = Column(String, unique=True, nullable=False, index=True)  # JWT ID
    expires_at = Column(DateTime, nullable=False)
    blacklisted_at = Column(DateTime, default=utcnow)
