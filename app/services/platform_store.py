"""
Application state store for one request.

``PlatformStore`` wraps the Platform SDK behind the ``auth``, ``fs``, ``kv``
and ``ai`` namespaces and owns the shared ``is_loading`` / ``error`` flags.
Methods never raise for platform failures: they return None (False for
``check_auth_status``) and record a user-facing message in ``error``.
"""
import logging
import time
from typing import Callable, List, Optional, Tuple, TypeVar, Union

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import AppException, AuthenticationError
from app.schemas.auth import PlatformUser
from app.schemas.platform import AIResponse, ChatOptions, FSItem, KVItem
from app.schemas.resume import GenerateResumeOptions, GeneratedResumeResult
from app.services import resume_ai
from app.services.ai_orchestrator import Prompt
from app.services.platform_sdk import PlatformSDK, get_platform

logger = logging.getLogger(__name__)

SDK_UNAVAILABLE = "Platform SDK not available"

# Failures the platform reports; anything else is a bug and propagates
PLATFORM_ERRORS = (AppException, SQLAlchemyError, OSError)

T = TypeVar("T")

PlatformProvider = Callable[[Session, Optional[str]], Optional[PlatformSDK]]


def _message(exc: Exception, default: str) -> str:
    if isinstance(exc, AppException):
        return exc.message
    return str(exc) or default


def _status(exc: Exception) -> int:
    return exc.status_code if isinstance(exc, AppException) else 502


class AuthState:
    def __init__(self, store: "PlatformStore"):
        self._store = store
        self.user: Optional[PlatformUser] = None
        self.is_authenticated = False

    def _set_user(self, user: Optional[PlatformUser]):
        self.user = user
        self.is_authenticated = user is not None

    def get_user(self) -> Optional[PlatformUser]:
        return self.user

    def check_auth_status(self) -> bool:
        store = self._store
        sdk = store._platform()
        if sdk is None:
            store._set_error(SDK_UNAVAILABLE, 503)
            return False

        store._begin()
        try:
            if sdk.auth.is_signed_in():
                self._set_user(PlatformUser.model_validate(sdk.auth.get_user()))
                store.is_loading = False
                return True
            self._set_user(None)
            store.is_loading = False
            return False
        except PLATFORM_ERRORS as e:
            store._set_error(_message(e, "Failed to check auth status"), _status(e))
            return False

    def sign_up(self, email: str, username: str, password: str) -> Optional[PlatformUser]:
        store = self._store
        sdk = store._platform()
        if sdk is None:
            store._set_error(SDK_UNAVAILABLE, 503)
            return None

        store._begin()
        try:
            user = PlatformUser.model_validate(sdk.auth.sign_up(email, username, password))
            store.is_loading = False
            return user
        except PLATFORM_ERRORS as e:
            store._set_error(_message(e, "Sign up failed"), _status(e))
            return None

    def sign_in(self, email: str, password: str) -> Optional[str]:
        """Sign in and return the access token, or None on failure."""
        store = self._store
        sdk = store._platform()
        if sdk is None:
            store._set_error(SDK_UNAVAILABLE, 503)
            return None

        store._begin()
        try:
            token = sdk.auth.sign_in(email, password)
        except PLATFORM_ERRORS as e:
            store._set_error(_message(e, "Sign in failed"), _status(e))
            return None
        self.check_auth_status()
        return token

    def sign_out(self) -> None:
        store = self._store
        sdk = store._platform()
        if sdk is None:
            store._set_error(SDK_UNAVAILABLE, 503)
            return

        store._begin()
        try:
            sdk.auth.sign_out()
            self._set_user(None)
            store.is_loading = False
        except PLATFORM_ERRORS as e:
            store._set_error(_message(e, "Sign out failed"), _status(e))

    def refresh_user(self) -> None:
        store = self._store
        sdk = store._platform()
        if sdk is None:
            store._set_error(SDK_UNAVAILABLE, 503)
            return

        store._begin()
        try:
            self._set_user(PlatformUser.model_validate(sdk.auth.get_user()))
            store.is_loading = False
        except PLATFORM_ERRORS as e:
            store._set_error(_message(e, "Failed to refresh user"), _status(e))


class FileSystemNamespace:
    def __init__(self, store: "PlatformStore"):
        self._store = store

    def write(self, path: str, data: Union[str, bytes]) -> Optional[FSItem]:
        return self._store._call(lambda sdk: sdk.fs.write(path, data), "Failed to write file")

    def read(self, path: str) -> Optional[bytes]:
        return self._store._call(lambda sdk: sdk.fs.read(path), "Failed to read file")

    def stat(self, path: str) -> Optional[FSItem]:
        return self._store._call(lambda sdk: sdk.fs.stat(path), "Failed to stat file")

    def upload(self, files: List[Tuple[str, bytes]]) -> Optional[FSItem]:
        return self._store._call(lambda sdk: sdk.fs.upload(files), "Failed to upload file")

    def delete(self, path: str) -> Optional[bool]:
        def _delete(sdk: PlatformSDK) -> bool:
            sdk.fs.delete(path)
            return True
        return self._store._call(_delete, "Failed to delete file")

    def read_dir(self, path: str) -> Optional[List[FSItem]]:
        return self._store._call(lambda sdk: sdk.fs.readdir(path), "Failed to read directory")


class KeyValueNamespace:
    def __init__(self, store: "PlatformStore"):
        self._store = store

    def get(self, key: str) -> Optional[str]:
        return self._store._call(lambda sdk: sdk.kv.get(key), "Failed to read key")

    def set(self, key: str, value: str) -> Optional[bool]:
        return self._store._call(lambda sdk: sdk.kv.set(key, value), "Failed to write key")

    def delete(self, key: str) -> Optional[bool]:
        return self._store._call(lambda sdk: sdk.kv.delete(key), "Failed to delete key")

    def list(self, pattern: str, return_values: bool = False) -> Optional[Union[List[str], List[KVItem]]]:
        return self._store._call(lambda sdk: sdk.kv.list(pattern, return_values), "Failed to list keys")

    def flush(self) -> Optional[bool]:
        return self._store._call(lambda sdk: sdk.kv.flush(), "Failed to flush keys")


class AINamespace:
    def __init__(self, store: "PlatformStore"):
        self._store = store

    def chat(self, prompt: Prompt, options: Optional[ChatOptions] = None) -> Optional[AIResponse]:
        return self._store._call(lambda sdk: sdk.ai.chat(prompt, options), "AI chat failed")

    def feedback(self, path: str, message: str) -> Optional[AIResponse]:
        """Ask the model to review the file at ``path`` following ``message``."""
        messages = [{
            "role": "user",
            "content": [
                {"type": "file", "puter_path": path},
                {"type": "text", "text": message},
            ],
        }]
        return self._store._call(
            lambda sdk: sdk.ai.chat(messages, ChatOptions(model=settings.ai.model_name)),
            "AI feedback failed",
        )

    def img2txt(self, image: bytes, mime_type: str = "image/png") -> Optional[str]:
        return self._store._call(lambda sdk: sdk.ai.img2txt(image, mime_type), "Image to text failed")

    def generate_updated_resume(self, options: GenerateResumeOptions) -> GeneratedResumeResult:
        sdk = self._store._platform()
        if sdk is None:
            return GeneratedResumeResult(success=False, error=SDK_UNAVAILABLE)

        try:
            prompt = resume_ai.build_rewrite_prompt(options)
            response = sdk.ai.chat(prompt, ChatOptions(
                model=settings.ai.model_name,
                max_tokens=settings.ai.max_tokens,
                temperature=settings.ai.temperature,
            ))
            content = resume_ai.extract_message_text(response)
            if not content.strip():
                raise AppException("Generated resume content is empty", status_code=502, error_code="EMPTY_AI_OUTPUT")

            saved_path = resume_ai.updated_resume_path(options.company_name)
            try:
                sdk.fs.write(saved_path, content)
                logger.info(f"Updated resume saved to: {saved_path}")
            except PLATFORM_ERRORS as fs_error:
                logger.warning(f"Failed to save updated resume to filesystem: {fs_error}")

            return GeneratedResumeResult(
                success=True,
                updated_resume_content=content,
                saved_path=saved_path,
            )
        except PLATFORM_ERRORS as e:
            logger.error(f"Error generating updated resume: {e}")
            return GeneratedResumeResult(success=False, error=_message(e, "Unknown error occurred"))


class PlatformStore:
    def __init__(
        self,
        db: Session,
        token: Optional[str] = None,
        platform_provider: PlatformProvider = get_platform,
    ):
        self.db = db
        self._token = token
        self._provider = platform_provider
        self._sdk: Optional[PlatformSDK] = None

        self.is_loading = True
        self.error: Optional[str] = None
        self.error_status: Optional[int] = None
        self.platform_ready = False

        self.auth = AuthState(self)
        self.fs = FileSystemNamespace(self)
        self.kv = KeyValueNamespace(self)
        self.ai = AINamespace(self)

    @property
    def token(self) -> Optional[str]:
        return self._sdk.token if self._sdk is not None else self._token

    def init(self, timeout: Optional[float] = None, poll_interval: float = 0.1) -> bool:
        """
        Wait for the platform to become available, then check auth.
        Gives up with an error after ``timeout`` seconds.
        """
        timeout = settings.platform_init_timeout if timeout is None else timeout
        deadline = time.monotonic() + timeout
        while self._platform() is None:
            if time.monotonic() >= deadline:
                self._set_error(f"Platform SDK failed to load within {timeout:g} seconds", 503)
                return False
            time.sleep(poll_interval)
        self.platform_ready = True
        self.auth.check_auth_status()
        return True

    def clear_error(self) -> None:
        self.error = None
        self.error_status = None

    def error_exception(self, default: str) -> AppException:
        """The recorded error as an exception for the HTTP layer."""
        status_code = self.error_status or 502
        if status_code == 401:
            return AuthenticationError(self.error or default)
        return AppException(self.error or default, status_code=status_code, error_code="PLATFORM_ERROR")

    def _platform(self) -> Optional[PlatformSDK]:
        if self._sdk is None:
            self._sdk = self._provider(self.db, self._token)
        return self._sdk

    def _begin(self):
        self.is_loading = True
        self.clear_error()

    def _set_error(self, message: str, status_code: Optional[int] = None):
        logger.warning(f"Platform store error: {message}")
        self.error = message
        self.error_status = status_code
        self.is_loading = False
        self.auth._set_user(None)

    def _call(self, fn: Callable[[PlatformSDK], T], default_message: str) -> Optional[T]:
        sdk = self._platform()
        if sdk is None:
            self._set_error(SDK_UNAVAILABLE, 503)
            return None
        try:
            return fn(sdk)
        except AuthenticationError as e:
            self._set_error(e.message, e.status_code)
            return None
        except PLATFORM_ERRORS as e:
            logger.warning(f"{default_message}: {e}")
            self.error = _message(e, default_message)
            self.error_status = _status(e)
            return None
