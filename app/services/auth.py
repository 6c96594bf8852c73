"""
Account and session handling for the platform ``auth`` namespace.

Passwords are hashed with passlib; access tokens are JWTs whose ``jti`` is
tracked in ``user_sessions`` so that signing out revokes them.
"""
import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Tuple

import jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import AuthenticationError, ValidationError
from app.models.user import User, UserSession

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> Tuple[str, str, datetime]:
    """Returns ``(token, token_id, expires_at)``."""
    expires_at = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    token_id = uuid.uuid4().hex
    payload = {**data, "exp": expires_at, "jti": token_id, "type": "access"}
    token = jwt.encode(payload, settings.secret_key, algorithm=ALGORITHM)
    return token, token_id, expires_at


def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """
    Decode a token. Returns None for invalid tokens and
    ``{"error": "TOKEN_EXPIRED"}`` for expired ones.
    """
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[ALGORITHM])
    except jwt.ExpiredSignatureError:
        return {"error": "TOKEN_EXPIRED"}
    except jwt.InvalidTokenError:
        return None


class AuthService:
    def __init__(self, db: Session):
        self.db = db

    def sign_up(self, email: str, username: str, password: str) -> User:
        if self.db.query(User).filter(User.email == email).first():
            raise ValidationError("An account with this email already exists")
        user = User(
            email=email,
            username=username,
            hashed_password=get_password_hash(password),
            is_active=True,
        )
        self.db.add(user)
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(user)
        logger.info(f"Created account {user.uuid}")
        return user

    def sign_in(self, email: str, password: str) -> Tuple[str, User]:
        user = self.db.query(User).filter(User.email == email).first()
        if not user or not verify_password(password, user.hashed_password):
            logger.warning("Sign in failed: invalid credentials")
            raise AuthenticationError("Incorrect email or password")
        if not user.is_active:
            raise AuthenticationError("User is inactive")

        token, token_id, expires_at = create_access_token({"sub": user.uuid})
        self.db.add(UserSession(user_id=user.id, token_id=token_id, expires_at=expires_at))
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        return token, user

    def sign_out(self, token: str) -> None:
        session = self._session_for(token)
        if session is None:
            raise AuthenticationError("Not signed in")
        session.is_revoked = True
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    def resolve_user(self, token: Optional[str]) -> Optional[User]:
        """The user a live token belongs to, or None when signed out."""
        if not token:
            return None
        session = self._session_for(token)
        if session is None or session.is_revoked:
            return None
        user = session.user
        if user is None or not user.is_active:
            return None
        return user

    def _session_for(self, token: str) -> Optional[UserSession]:
        payload = decode_access_token(token)
        if payload is None or "error" in payload or payload.get("type") != "access":
            return None
        return self.db.query(UserSession).filter(UserSession.token_id == payload.get("jti")).first()
