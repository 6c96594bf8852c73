"""
Platform SDK: the auth, fs, kv and ai services the application talks to.

An SDK instance is bound to one database session and one bearer token. The
application installs a factory at startup; until then (or after a failed
startup) ``get_platform`` returns None and callers must treat the platform
as unavailable.
"""
import base64
import logging
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from sqlalchemy.orm import Session

from app.core import prompts
from app.core.config import settings
from app.core.exceptions import AuthenticationError
from app.models.user import User
from app.schemas.platform import AIResponse, ChatOptions, ChatMessage, FSItem, KVItem
from app.services.ai_orchestrator import AIOrchestrator, Prompt, to_messages
from app.services.auth import AuthService
from app.services.document_text import extract_text
from app.services.file_storage import FileStorage
from app.services.kv_store import KeyValueStore

logger = logging.getLogger(__name__)


class PlatformAuth:
    def __init__(self, sdk: "PlatformSDK"):
        self._sdk = sdk
        self._service = AuthService(sdk.db)

    def sign_up(self, email: str, username: str, password: str) -> User:
        return self._service.sign_up(email, username, password)

    def sign_in(self, email: str, password: str) -> str:
        token, user = self._service.sign_in(email, password)
        self._sdk.token = token
        self._sdk._user = user
        return token

    def sign_out(self) -> None:
        if not self._sdk.token:
            raise AuthenticationError("Not signed in")
        self._service.sign_out(self._sdk.token)
        self._sdk.token = None
        self._sdk._user = None

    def is_signed_in(self) -> bool:
        return self._sdk.current_user() is not None

    def get_user(self) -> User:
        user = self._sdk.current_user()
        if user is None:
            raise AuthenticationError("Not signed in")
        return user


class PlatformFS:
    def __init__(self, sdk: "PlatformSDK"):
        self._sdk = sdk

    def _storage(self) -> FileStorage:
        return FileStorage(self._sdk.storage_root, self._sdk.require_user())

    def write(self, path: str, data: Union[str, bytes]) -> FSItem:
        return self._storage().write(path, data)

    def read(self, path: str) -> bytes:
        return self._storage().read(path)

    def stat(self, path: str) -> FSItem:
        return self._storage().stat(path)

    def upload(self, files: List[Tuple[str, bytes]]) -> FSItem:
        return self._storage().upload(files)

    def delete(self, path: str) -> None:
        self._storage().delete(path)

    def readdir(self, path: str) -> Optional[List[FSItem]]:
        return self._storage().readdir(path)


class PlatformKV:
    def __init__(self, sdk: "PlatformSDK"):
        self._sdk = sdk

    def _store(self) -> KeyValueStore:
        return KeyValueStore(self._sdk.db, self._sdk.require_user())

    def get(self, key: str) -> Optional[str]:
        return self._store().get(key)

    def set(self, key: str, value: str) -> bool:
        return self._store().set(key, value)

    def delete(self, key: str) -> bool:
        return self._store().delete(key)

    def list(self, pattern: str, return_values: bool = False) -> Union[List[str], List[KVItem]]:
        return self._store().list(pattern, return_values)

    def flush(self) -> bool:
        return self._store().flush()


class PlatformAI:
    def __init__(self, sdk: "PlatformSDK"):
        self._sdk = sdk

    def chat(self, prompt: Prompt, options: Optional[ChatOptions] = None) -> AIResponse:
        self._sdk.require_user()
        messages = [self._resolve_files(m) for m in to_messages(prompt)]
        return self._sdk.ai_client.chat(messages, options)

    def img2txt(self, image: bytes, mime_type: str = "image/png") -> str:
        encoded = base64.b64encode(image).decode("ascii")
        message = ChatMessage(
            role="user",
            content=[
                {"type": "image_url", "image_url": {"url": f"data:{mime_type};base64,{encoded}"}},
                {"type": "text", "text": prompts.IMG2TXT_PROMPT},
            ],
        )
        response = self.chat([message])
        content = response.message.content
        if isinstance(content, str):
            return content
        return "".join(block.text or "" for block in content)

    def _resolve_files(self, message: Dict[str, Any]) -> Dict[str, Any]:
        """Replace ``{"type": "file", "puter_path": ...}`` blocks with the file's text."""
        content = message.get("content")
        if not isinstance(content, list):
            return message
        blocks = []
        for block in content:
            if block.get("type") == "file" and block.get("puter_path"):
                path = block["puter_path"]
                text = extract_text(self._sdk.fs.read(path), path)
                blocks.append({
                    "type": "text",
                    "text": prompts.get_prompt(
                        prompts.FEEDBACK_FILE_TEMPLATE, filename=Path(path).name, resume_text=text
                    ),
                })
            else:
                blocks.append({k: v for k, v in block.items() if v is not None and k != "puter_path"})
        return {**message, "content": blocks}


class PlatformSDK:
    def __init__(
        self,
        db: Session,
        token: Optional[str] = None,
        ai_client: Any = AIOrchestrator,
        storage_root: Optional[Union[str, Path]] = None,
    ):
        self.db = db
        self.token = token
        self.ai_client = ai_client
        self.storage_root = storage_root or settings.storage.root
        self._user: Optional[User] = None

        self.auth = PlatformAuth(self)
        self.fs = PlatformFS(self)
        self.kv = PlatformKV(self)
        self.ai = PlatformAI(self)

    def current_user(self) -> Optional[User]:
        if self._user is None and self.token:
            self._user = AuthService(self.db).resolve_user(self.token)
        return self._user

    def require_user(self) -> User:
        user = self.current_user()
        if user is None:
            raise AuthenticationError("Not signed in")
        return user


PlatformFactory = Callable[[Session, Optional[str]], PlatformSDK]

_factory: Optional[PlatformFactory] = None


def install_platform(factory: PlatformFactory = PlatformSDK) -> None:
    global _factory
    _factory = factory
    logger.info("Platform SDK installed")


def uninstall_platform() -> None:
    global _factory
    _factory = None


def get_platform(db: Session, token: Optional[str] = None) -> Optional[PlatformSDK]:
    """The SDK bound to ``db`` and ``token``, or None when not installed."""
    if _factory is None:
        return None
    return _factory(db, token)
