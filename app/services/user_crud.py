import re
from fastapi import HTTPException, status
from typing import List, Optional
from uuid import UUID
from app.schemas.user_schema import UserCreate, UserUpdate, DocumentType, DocumentStatus, ChangePassword
from app.models.user_model import User
from sqlalchemy.orm import Session
from app.security.auth import get_password_hash, verify_password
from app.utils.datetime_utils import utcnow
from app.logger import get_logger

logger = get_logger(__name__)

# Document type -> (url column, status column)
DOCUMENT_FIELDS = {
    DocumentType.aadhaar_card: ("aadhaar_document_url", "aadhaar_status"),
    DocumentType.driving_license: ("license_document_url", "license_status"),
}


def password_problems(password: str) -> List[str]:
    problems = []
    if re.search(r"\s", password):
        problems.append("Password should not contain spaces")
    if not re.search(r"[A-Z]", password):
        problems.append("Password should contain an uppercase letter")
    if not re.search(r"[0-9]", password):
        problems.append("Password should contain a number")
    if not re.search(r"[!@#$%^&*]", password):
        problems.append("Password should contain a special character")
    if len(password) < 8:
        problems.append("Password should be at least 8 characters long")
    if len(password) > 100:
        problems.append("Password is too long")
    return problems


class UserCRUD:
    @staticmethod
    def get_user_id(db: Session, user_id: UUID) -> Optional[User]:
        return db.query(User).filter(User.id == str(user_id)).first()

    @staticmethod
    def get_user_by_email(db: Session, email: str) -> Optional[User]:
        return db.query(User).filter(User.email == email.lower()).first()

    @staticmethod
    def get_users(db: Session, skip: int = 0, limit: int = 100) -> List[User]:
        return db.query(User).offset(skip).limit(limit).all()

    @staticmethod
    def create_user(db: Session, user: UserCreate) -> User:
        email = user.email.lower()
        existing_user = db.query(User).filter(User.email == email).first()
        if existing_user:
            if existing_user.is_active:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="User with the email already exist"
                )
            # Reactivate the existing inactive user instead of creating new one
            existing_user.first_name = user.first_name
            existing_user.last_name = user.last_name
            existing_user.phone_number = user.phone_number
            existing_user.password_hash = get_password_hash(user.password)
            existing_user.status = "active"
            existing_user.is_active = True
            existing_user.created_at = utcnow()
            db.commit()
            db.refresh(existing_user)
            return existing_user

        # Self-registration always yields a client; agents are promoted by an admin
        db_user = User(
            first_name=user.first_name,
            last_name=user.last_name,
            email=email,
            phone_number=user.phone_number,
            password_hash=get_password_hash(user.password),
            role="CLIENT",
            status="active",
            is_active=True
        )
        db.add(db_user)
        db.commit()
        db.refresh(db_user)
        return db_user

    @staticmethod
    def update_user(db: Session, user_id: UUID, user_update: UserUpdate) -> User:
        db_user = db.query(User).filter(User.id == str(user_id)).first()
        if not db_user:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="User not found: This user does not exist in the database"
            )

        for key, value in user_update.model_dump(exclude_unset=True).items():
            if value is not None:
                if key == "password":
                    setattr(db_user, "password_hash", get_password_hash(value))
                else:
                    setattr(db_user, key, value)

        db.commit()
        db.refresh(db_user)
        return db_user

    @staticmethod
    def change_password(db: Session, user: User, change: ChangePassword) -> User:
        if not verify_password(change.current_password, user.password_hash):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Incorrect current password. Please try again."
            )

        problems = password_problems(change.new_password)
        if problems:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=" | ".join(problems))

        user.password_hash = get_password_hash(change.new_password)
        db.commit()
        db.refresh(user)
        logger.info(f"Password changed for user {user.email}")
        return user

    @staticmethod
    def delete_user(db: Session, user_id: UUID) -> User:
        db_user = db.query(User).filter(User.id == str(user_id)).first()
        if not db_user:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="User not found: This user does not exist in the database"
            )
        # Soft delete by setting is_active to False
        db_user.is_active = False
        db.commit()
        db.refresh(db_user)
        return db_user

    @staticmethod
    def sync_document_status(db: Session, user: User) -> bool:
        """Re-derive document verification from URL presence.

        A document without a URL can never count as verified; a stale VERIFIED
        flag is corrected and persisted. Returns True when both documents are
        verified.
        """
        changed = False
        for url_field, status_field in DOCUMENT_FIELDS.values():
            if not getattr(user, url_field) and getattr(user, status_field) != DocumentStatus.unverified.value:
                setattr(user, status_field, DocumentStatus.unverified.value)
                changed = True

        if changed:
            db.commit()
            db.refresh(user)
            logger.info(f"Document status corrected for user {user.id}")

        return all(
            getattr(user, status_field) == DocumentStatus.verified.value
            for _, status_field in DOCUMENT_FIELDS.values()
        )

    @staticmethod
    def get_documents(user: User) -> dict:
        aadhaar_url, aadhaar_status = DOCUMENT_FIELDS[DocumentType.aadhaar_card]
        license_url, license_status = DOCUMENT_FIELDS[DocumentType.driving_license]
        aadhaar = {"document_url": getattr(user, aadhaar_url), "status": getattr(user, aadhaar_status)}
        driving = {"document_url": getattr(user, license_url), "status": getattr(user, license_status)}
        return {
            "aadhaar_card": aadhaar,
            "driving_license": driving,
            "verified": aadhaar["status"] == driving["status"] == DocumentStatus.verified.value,
        }

    @staticmethod
    def upload_document(db: Session, user_id: UUID, doc_type: DocumentType, document_url: str) -> User:
        """Store a document reference; a new document always needs a fresh review"""
        db_user = db.query(User).filter(User.id == str(user_id)).first()
        if not db_user:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

        url_field, status_field = DOCUMENT_FIELDS[DocumentType(doc_type)]
        try:
            setattr(db_user, url_field, document_url)
            setattr(db_user, status_field, DocumentStatus.unverified.value)
            db.commit()
            db.refresh(db_user)
            logger.info(f"Document {doc_type.value} uploaded for user {user_id}")
            return db_user
        except Exception as e:
            db.rollback()
            logger.error(f"Error uploading document for user {user_id}: {str(e)}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Error occurred while uploading document"
            )

    @staticmethod
    def review_document(
            db: Session, user_id: UUID, doc_type: DocumentType, new_status: DocumentStatus
    ) -> User:
        """Support agent sets a document's verification status"""
        db_user = db.query(User).filter(User.id == str(user_id)).first()
        if not db_user:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

        url_field, status_field = DOCUMENT_FIELDS[DocumentType(doc_type)]
        if new_status == DocumentStatus.verified and not getattr(db_user, url_field):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Cannot verify a document that has not been uploaded"
            )

        try:
            setattr(db_user, status_field, DocumentStatus(new_status).value)
            db.commit()
            db.refresh(db_user)
            logger.info(f"Document {doc_type.value} of user {user_id} set to {new_status.value}")
            return db_user
        except Exception as e:
            db.rollback()
            logger.error(f"Error reviewing document for user {user_id}: {str(e)}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Error occurred while reviewing document"
            )


user_crud = UserCRUD()
