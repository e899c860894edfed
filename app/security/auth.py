from jose import jwt
from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import uuid4
from passlib.context import CryptContext
from fastapi import HTTPException, Depends, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session
from app import config
from app.models.user_model import User
from app.database import get_db

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/token")


def verify_password(plain_password, hashed_password):
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password):
    return pwd_context.hash(password)


def authenticate_user(db: Session, email: str, password: str):
    user = db.query(User).filter(User.email == email.lower(), User.is_active == True).first()
    if not user or not verify_password(password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


def _create_token(data: dict, token_type: str, expires_delta: timedelta):
    to_encode = data.copy()
    now = datetime.now(timezone.utc)
    expire = now + expires_delta

    to_encode.update({
        "exp": expire,
        "jti": str(uuid4()),  # Unique identifier for this token
        "iat": now,
        "type": token_type,
    })
    encoded_jwt = jwt.encode(to_encode, config.SECRET_KEY, algorithm=config.ALGORITHM)
    return encoded_jwt, expire  # Return both token and expiration


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None):
    return _create_token(
        data, "access", expires_delta or timedelta(minutes=config.ACCESS_TOKEN_EXPIRE_MINUTES)
    )


def create_refresh_token(data: dict, expires_delta: Optional[timedelta] = None):
    return _create_token(
        data, "refresh", expires_delta or timedelta(days=config.REFRESH_TOKEN_EXPIRE_DAYS)
    )


def _user_from_token(token: str, db: Session, expected_type: str, invalid_detail: str) -> User:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=invalid_detail,
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = jwt.decode(token, config.SECRET_KEY, algorithms=[config.ALGORITHM])
        user_id: str = payload.get("sub")
        jti: str = payload.get("jti")
        token_type: str = payload.get("type")

        if user_id is None or jti is None or token_type != expected_type:
            raise credentials_exception

        # Check if token is blacklisted
        from app.utils.token_blacklist import token_blacklist_service
        if token_blacklist_service.is_token_blacklisted(db, jti):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Token has been revoked",
                headers={"WWW-Authenticate": "Bearer"},
            )

    except jwt.JWTError:
        raise credentials_exception

    user = db.query(User).filter(User.id == user_id, User.is_active == True).first()
    if user is None:
        raise credentials_exception
    return user


def verify_refresh_token(token: str, db: Session) -> User:
    """Verify refresh token and return user"""
    return _user_from_token(token, db, "refresh", "Invalid refresh token")


def get_current_user(token: str = Depends(oauth2_scheme), db: Session = Depends(get_db)):
    return _user_from_token(token, db, "access", "Could not validate credentials")


def get_current_active_user(current_user: User = Depends(get_current_user)):
    """Get current user and ensure they are active (not logged out)"""
    if current_user.status != "active":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User is currently logged out"
        )
    return current_user


def get_current_admin_user(current_user: User = Depends(get_current_active_user)):
    """Get current user and ensure they are admin"""
    if current_user.role != "ADMIN":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required"
        )
    return current_user


def get_current_support_agent(current_user: User = Depends(get_current_active_user)):
    """Get current user and ensure they are a support agent"""
    if current_user.role != "SUPPORT_AGENT":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied: Support Agent role required"
        )
    return current_user


def is_staff(user: User) -> bool:
    return user.role in ("SUPPORT_AGENT", "ADMIN")


def require_self(current_user: User, user_id) -> None:
    """Reject requests acting on behalf of another user"""
    if str(current_user.id) != str(user_id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only act on your own behalf",
        )


def require_self_or_staff(current_user: User, user_id) -> None:
    if not is_staff(current_user):
        require_self(current_user, user_id)
