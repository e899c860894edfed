from pydantic import EmailStr, Field
from enum import Enum
from typing import Optional
from datetime import datetime
from uuid import UUID
from app.schemas.base_schema import CamelModel


class Role(str, Enum):
    client = "CLIENT"
    admin = "ADMIN"
    support_agent = "SUPPORT_AGENT"


class DocumentType(str, Enum):
    aadhaar_card = "aadhaarCard"
    driving_license = "drivingLicense"


class DocumentStatus(str, Enum):
    verified = "VERIFIED"
    unverified = "UNVERIFIED"


class UserBase(CamelModel):
    email: EmailStr
    first_name: str = Field(..., alias="firstName")
    last_name: str = Field(..., alias="lastName")
    phone_number: Optional[str] = Field(None, alias="phoneNumber")


class UserCreate(UserBase):
    password: str = Field(..., min_length=8)


class UserOut(UserBase):
    id: UUID
    role: Role
    status: str
    is_active: bool = Field(..., alias="isActive")
    image_url: Optional[str] = Field(None, alias="imageUrl")
    created_at: datetime = Field(..., alias="createdAt")

    class Config:
        from_attributes = True
        populate_by_name = True


class UserUpdate(CamelModel):
    first_name: Optional[str] = Field(None, alias="firstName")
    last_name: Optional[str] = Field(None, alias="lastName")
    phone_number: Optional[str] = Field(None, alias="phoneNumber")
    image_url: Optional[str] = Field(None, alias="imageUrl")
    password: Optional[str] = Field(None, min_length=8)


class UserLogin(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=8)


class LoginResponse(CamelModel):
    access_token: str
    refresh_token: str
    token_type: str
    user: UserOut


class RefreshTokenRequest(CamelModel):
    refresh_token: str


class RefreshTokenResponse(CamelModel):
    access_token: str
    refresh_token: str
    token_type: str


class LogoutResponse(CamelModel):
    message: str


class DocumentUpload(CamelModel):
    document_url: str = Field(..., min_length=1, alias="documentUrl")


class DocumentReview(CamelModel):
    status: DocumentStatus


class DocumentInfo(CamelModel):
    document_url: Optional[str] = Field(None, alias="documentUrl")
    status: DocumentStatus


class UserDocuments(CamelModel):
    aadhaar_card: DocumentInfo = Field(..., alias="aadhaarCard")
    driving_license: DocumentInfo = Field(..., alias="drivingLicense")
    verified: bool


class ChangePassword(CamelModel):
    current_password: str = Field(..., min_length=1, alias="currentPassword")
    new_password: str = Field(..., alias="newPassword")


class ChangePasswordResponse(CamelModel):
    message: str
