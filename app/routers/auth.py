from fastapi import APIRouter, Depends, Request, status
import logging

from app.core.limiter import limiter
from app.routers.auth_deps import get_store, platform_result, require_user
from app.schemas.auth import AuthStatus, PlatformUser, SignInRequest, SignUpRequest, Token
from app.services.platform_store import PlatformStore

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/auth",
    tags=["auth"]
)

@router.post("/sign-up", response_model=PlatformUser, status_code=status.HTTP_201_CREATED)
@limiter.limit("5/minute")
def sign_up(request: Request, payload: SignUpRequest, store: PlatformStore = Depends(get_store)):
    user = store.auth.sign_up(payload.email, payload.username, payload.password)
    return platform_result(store, user, "Sign up failed")

@router.post("/sign-in", response_model=Token)
@limiter.limit("10/minute")
def sign_in(request: Request, payload: SignInRequest, store: PlatformStore = Depends(get_store)):
    # JSON credentials rather than form-data for frontend compatibility
    token = platform_result(store, store.auth.sign_in(payload.email, payload.password), "Sign in failed")
    return Token(access_token=token, user=store.auth.get_user())

@router.post("/sign-out", status_code=status.HTTP_204_NO_CONTENT)
def sign_out(store: PlatformStore = Depends(require_user)):
    store.auth.sign_out()
    if store.error:
        raise store.error_exception("Sign out failed")

@router.get("/me", response_model=AuthStatus)
def me(store: PlatformStore = Depends(get_store)):
    if store.error and store.error_status == 503:
        raise store.error_exception("Platform unavailable")
    return AuthStatus(is_authenticated=store.auth.is_authenticated, user=store.auth.get_user())
