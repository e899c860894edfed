from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session
from typing import Annotated, List
from app.services.user_crud import user_crud
from app.schemas.user_schema import UserCreate, UserOut, UserUpdate, UserLogin, LoginResponse, \
    LogoutResponse, RefreshTokenRequest, RefreshTokenResponse, DocumentType, DocumentUpload, UserDocuments, \
    ChangePassword, ChangePasswordResponse
from app.database import get_db
from app.security.auth import oauth2_scheme, get_current_user, get_current_active_user, get_current_admin_user
from app.utils.user_app_service import user_app_service
from app.models.user_model import User
from app.logger import get_logger


user_router = APIRouter()
logger = get_logger(__name__)


# AUTH ENDPOINTS

@user_router.post("/auth/sign-up", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def sign_up(user: UserCreate, db: Session = Depends(get_db)):
    """Register a new client"""
    try:
        logger.info(f"Registering user: {user.email}")
        db_user = user_crud.create_user(db, user)
        logger.info(f"User registered successfully: {user.email}")
        return UserOut.model_validate(db_user)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error registering user {user.email}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error occurred while registering user"
        )


@user_router.post("/token", response_model=LoginResponse)
def user_token(
        form_data: Annotated[OAuth2PasswordRequestForm, Depends()],
        db: Session = Depends(get_db),
):
    logger.info(f"Token request for user: {form_data.username}")
    user_login = UserLogin(email=form_data.username, password=form_data.password)

    try:
        return user_app_service.login_user(db, user_login)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error during token generation for {form_data.username}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error occurred during token generation"
        )


@user_router.post("/auth/sign-in", response_model=LoginResponse, status_code=status.HTTP_200_OK)
def sign_in(user_login: UserLogin, db: Session = Depends(get_db)):
    """Login user and return access and refresh tokens"""
    try:
        logger.info(f"Login attempt for user: {user_login.email}")
        return user_app_service.login_user(db, user_login)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error during login for {user_login.email}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error occurred during login"
        )


@user_router.post("/auth/logout", response_model=LogoutResponse, status_code=status.HTTP_200_OK)
def logout_user(
        refresh_request: RefreshTokenRequest,
        current_user: User = Depends(get_current_user),
        token: str = Depends(oauth2_scheme),
        db: Session = Depends(get_db)
):
    """Logout user by blacklisting both access and refresh tokens"""
    try:
        return user_app_service.logout_user(db, current_user, token, refresh_request.refresh_token)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error during logout for user {current_user.email}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error occurred during logout"
        )


@user_router.post("/auth/refresh", response_model=RefreshTokenResponse, status_code=status.HTTP_200_OK)
def refresh_access_token(refresh_request: RefreshTokenRequest, db: Session = Depends(get_db)):
    """Refresh access token using valid refresh token"""
    logger.info("Refreshing access token")
    return user_app_service.refresh_access_token(db, refresh_request)


# USER PROFILE ENDPOINTS

@user_router.get("/users/me", response_model=UserOut, status_code=status.HTTP_200_OK)
def get_current_user_profile(current_user: User = Depends(get_current_active_user)):
    """Get current user profile"""
    return UserOut.model_validate(current_user)


@user_router.patch("/users/me", response_model=UserOut, status_code=status.HTTP_200_OK)
def update_current_user_profile(
        user_update: UserUpdate,
        current_user: User = Depends(get_current_active_user),
        db: Session = Depends(get_db)
):
    """Update current user profile"""
    try:
        logger.info(f"User updating profile: {current_user.email}")
        updated_user = user_crud.update_user(db, current_user.id, user_update)
        logger.info(f"User profile updated: {current_user.email}")
        return UserOut.model_validate(updated_user)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error updating profile for {current_user.email}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error occurred while updating profile"
        )


@user_router.put(
    "/users/change-password", response_model=ChangePasswordResponse, status_code=status.HTTP_200_OK
)
def change_password(
        change: ChangePassword,
        current_user: User = Depends(get_current_active_user),
        db: Session = Depends(get_db)
):
    """Replace the password after checking the current one"""
    try:
        user_crud.change_password(db, current_user, change)
        return ChangePasswordResponse(message="Password changed successfully")
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error changing password for {current_user.email}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error occurred while changing password"
        )


@user_router.get("/users/me/documents", response_model=UserDocuments, status_code=status.HTTP_200_OK)
def get_my_documents(
        current_user: User = Depends(get_current_active_user),
        db: Session = Depends(get_db)
):
    """Document references and their verification status"""
    user_crud.sync_document_status(db, current_user)
    return UserDocuments(**user_crud.get_documents(current_user))


@user_router.put(
    "/users/me/documents/{doc_type}", response_model=UserDocuments, status_code=status.HTTP_200_OK
)
def upload_my_document(
        doc_type: DocumentType,
        document: DocumentUpload,
        current_user: User = Depends(get_current_active_user),
        db: Session = Depends(get_db)
):
    """Submit a document URL; the document goes back to UNVERIFIED until reviewed"""
    db_user = user_crud.upload_document(db, current_user.id, doc_type, document.document_url)
    return UserDocuments(**user_crud.get_documents(db_user))


# ADMIN ENDPOINTS

@user_router.get("/users", response_model=List[UserOut], status_code=status.HTTP_200_OK)
def get_all_users(
        skip: int = 0,
        limit: int = 100,
        current_user: User = Depends(get_current_admin_user),
        db: Session = Depends(get_db)
):
    """Get all users (admin only)"""
    try:
        logger.info(f"Admin {current_user.email} fetching users list")
        users = user_crud.get_users(db, skip=skip, limit=limit)
        return [UserOut.model_validate(user) for user in users]

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error fetching users: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error occurred while fetching users"
        )
