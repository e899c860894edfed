from datetime import datetime
from sqlalchemy.orm import Session
from app.models.token_blacklist import TokenBlacklist
from app.utils.datetime_utils import to_naive_utc, utcnow
from jose import jwt
from app.logger import get_logger

logger = get_logger(__name__)


class TokenBlacklistService:
    @staticmethod
    def blacklist_token(db: Session, token: str, expires_at: datetime) -> None:
        """Add a token to the blacklist"""
        try:
            # Decode token to get JTI (without verification since we're blacklisting it anyway)
            payload = jwt.get_unverified_claims(token)
            jti = payload.get("jti")

            if not jti:
                logger.warning("Token without JTI cannot be blacklisted")
                return

            existing = db.query(TokenBlacklist).filter(TokenBlacklist.jti == jti).first()
            if existing:
                logger.info(f"Token with JTI {jti} already blacklisted")
                return

            db.add(TokenBlacklist(jti=jti, expires_at=to_naive_utc(expires_at)))
            db.commit()

            logger.info(f"Token with JTI {jti} blacklisted successfully")

        except Exception as e:
            logger.error(f"Error blacklisting token: {str(e)}")
            db.rollback()
            raise

    @staticmethod
    def is_token_blacklisted(db: Session, jti: str) -> bool:
        """Check if a token is blacklisted"""
        blacklisted_token = db.query(TokenBlacklist).filter(
            TokenBlacklist.jti == jti,
            TokenBlacklist.expires_at > utcnow()  # Only check non-expired tokens
        ).first()

        return blacklisted_token is not None


token_blacklist_service = TokenBlacklistService()
