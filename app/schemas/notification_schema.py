from pydantic import Field
from typing import List
from uuid import UUID
from datetime import datetime
from enum import Enum
from app.schemas.base_schema import CamelModel


class NotificationType(str, Enum):
    info = "info"
    success = "success"
    warning = "warning"
    error = "error"


class NotificationOut(CamelModel):
    id: UUID
    title: str
    message: str
    type: NotificationType
    is_read: bool = Field(..., alias="isRead")
    created_at: datetime = Field(..., alias="createdAt")


class NotificationList(CamelModel):
    success: bool = True
    notifications: List[NotificationOut]
