from datetime import datetime, timedelta, timezone
from typing import Optional
import bcrypt
import re
from jose import jwt, JWTError
from famli.core.config import settings

class AuthService:
    """Service for handling authentication operations"""

    @staticmethod
    def hash_password(password: str) -> str:
        """Hash a password using bcrypt"""
        salt = bcrypt.gensalt()
        hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
        return hashed.decode('utf-8')

    @staticmethod
    def verify_password(plain_password: str, hashed_password: str) -> bool:
        """Verify a password against its hash"""
        return bcrypt.checkpw(
            plain_password.encode('utf-8'),
            hashed_password.encode('utf-8')
        )

    @staticmethod
    def session_duration() -> timedelta:
        """Parse JWT_EXPIRES_IN (e.g., "7d" -> 7 days, "12h" -> 12 hours)"""
        expires_in = settings.JWT_EXPIRES_IN.strip().lower()
        try:
            if expires_in.endswith('d'):
                return timedelta(days=int(expires_in[:-1]))
            if expires_in.endswith('h'):
                return timedelta(hours=int(expires_in[:-1]))
        except ValueError:
            pass
        # Default to 7 days
        return timedelta(days=7)

    @staticmethod
    def create_jwt_token(user_id: str, email: str, now: Optional[datetime] = None) -> str:
        """Create a JWT token for a user"""
        now = now or datetime.now(timezone.utc)
        payload = {
            'sub': str(user_id),
            'email': email,
            'iat': now,
            'nbf': now,
            'exp': now + AuthService.session_duration(),
        }

        return jwt.encode(
            payload,
            settings.JWT_SECRET,
            algorithm=settings.JWT_ALGORITHM
        )

    @staticmethod
    def verify_jwt_token(token: str) -> Optional[dict]:
        """Verify and decode a JWT token (None if invalid or expired)"""
        try:
            payload = jwt.decode(
                token,
                settings.JWT_SECRET,
                algorithms=[settings.JWT_ALGORITHM]
            )
        except JWTError:
            return None

        if not payload.get('sub') or 'exp' not in payload:
            return None
        return payload

    @staticmethod
    def needs_renewal(payload: dict, now: Optional[datetime] = None) -> bool:
        """True when the session expires within JWT_RENEWAL_THRESHOLD_HOURS"""
        now = now or datetime.now(timezone.utc)
        expires_at = datetime.fromtimestamp(int(payload['exp']), tz=timezone.utc)
        threshold = timedelta(hours=settings.JWT_RENEWAL_THRESHOLD_HOURS)
        return expires_at - now < threshold

    @staticmethod
    def validate_password(password: str) -> tuple[bool, str]:
        """Validate password strength"""
        if len(password) < 8:
            return False, "A senha deve ter no mínimo 8 caracteres"
        if not re.search(r'[A-Za-z]', password) or not re.search(r'\d', password):
            return False, "A senha deve conter letras e números"

        return True, ""
