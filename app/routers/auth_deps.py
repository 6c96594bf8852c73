"""
Request dependencies: one PlatformStore per request, bound to the caller's token.
"""
import logging
from typing import Optional, TypeVar

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from app.core.exceptions import AuthenticationError
from app.database import get_db
from app.services.platform_store import SDK_UNAVAILABLE, PlatformStore

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/sign-in", auto_error=False)

T = TypeVar("T")


def get_store(token: Optional[str] = Depends(oauth2_scheme), db: Session = Depends(get_db)) -> PlatformStore:
    """
    The request's store. The platform is installed at startup, so there is
    nothing to wait for here: an absent SDK is reported immediately.
    """
    store = PlatformStore(db, token)
    store.init(timeout=0)
    return store


def require_user(store: PlatformStore = Depends(get_store)) -> PlatformStore:
    if not store.platform_ready:
        raise store.error_exception(SDK_UNAVAILABLE)
    if not store.auth.is_authenticated:
        logger.info("Rejected unauthenticated request")
        raise AuthenticationError("Not signed in")
    return store


def require_resume_viewer(resume_id: str, store: PlatformStore = Depends(get_store)) -> PlatformStore:
    """Like ``require_user`` but tells the client where to return after sign-in."""
    if not store.platform_ready:
        raise store.error_exception(SDK_UNAVAILABLE)
    if not store.auth.is_authenticated:
        raise AuthenticationError("Not signed in", details={"next": f"/resume/{resume_id}"})
    return store


def platform_result(store: PlatformStore, value: Optional[T], default: str) -> T:
    """Unwrap a store call, turning a None result with a recorded error into an HTTP error."""
    if value is None and store.error:
        raise store.error_exception(default)
    return value
