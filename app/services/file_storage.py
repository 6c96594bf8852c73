"""
Per-user file storage for the platform ``fs`` namespace.

Files live on disk under ``<storage root>/<user uuid>/``. Platform paths are
POSIX-style (``/resumes/updated/x.txt``) and never escape the user's root.
"""
import logging
import mimetypes
import os
import posixpath
import shutil
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Tuple, Union

from app.core.exceptions import NotFoundError, PlatformError, ValidationError
from app.models.user import User
from app.schemas.platform import FSItem

logger = logging.getLogger(__name__)

UPLOAD_DIR = "/uploads"


def normalize_path(path: str) -> str:
    """Canonical platform path, always absolute; rejects traversal."""
    if not path or not path.strip():
        raise ValidationError("Path is required")
    parts = [p for p in path.strip().replace("\\", "/").split("/") if p not in ("", ".")]
    if any(p == ".." for p in parts):
        raise ValidationError(f"Invalid path: {path}")
    return "/" + "/".join(parts)


def safe_filename(name: str) -> str:
    base = posixpath.basename((name or "").replace("\\", "/")).strip()
    return base or "file"


class FileStorage:
    def __init__(self, root: Union[str, Path], user: User):
        self.root = Path(root) / user.uuid
        self.user = user

    def _disk_path(self, path: str) -> Path:
        return self.root / normalize_path(path).lstrip("/")

    def _item(self, disk_path: Path) -> FSItem:
        stat = disk_path.stat()
        relative = "/" + disk_path.relative_to(self.root).as_posix()
        is_dir = disk_path.is_dir()
        return FSItem(
            name=disk_path.name,
            path=relative,
            is_dir=is_dir,
            size=0 if is_dir else stat.st_size,
            mime_type=None if is_dir else (mimetypes.guess_type(disk_path.name)[0] or "application/octet-stream"),
            modified=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
        )

    def write(self, path: str, data: Union[str, bytes]) -> FSItem:
        target = self._disk_path(path)
        if target.is_dir():
            raise ValidationError(f"{normalize_path(path)} is a directory")
        payload = data.encode("utf-8") if isinstance(data, str) else data
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(payload)
        except OSError as e:
            logger.error(f"Failed to write {path}: {e}")
            raise PlatformError(f"Failed to write file: {normalize_path(path)}")
        return self._item(target)

    def read(self, path: str) -> bytes:
        target = self._disk_path(path)
        if not target.is_file():
            raise NotFoundError(f"File not found: {normalize_path(path)}")
        return target.read_bytes()

    def stat(self, path: str) -> FSItem:
        target = self._disk_path(path)
        if not target.exists():
            raise NotFoundError(f"File not found: {normalize_path(path)}")
        return self._item(target)

    def upload(self, files: List[Tuple[str, bytes]]) -> FSItem:
        """
        Store ``(filename, content)`` pairs under ``/uploads`` with unique
        names and return the item for the first one.
        """
        if not files:
            raise ValidationError("No files to upload")
        items = []
        for filename, content in files:
            name = f"{uuid.uuid4().hex[:12]}_{safe_filename(filename)}"
            items.append(self.write(f"{UPLOAD_DIR}/{name}", content))
        logger.info(f"Uploaded {len(items)} file(s) for user {self.user.uuid}")
        return items[0]

    def delete(self, path: str) -> None:
        target = self._disk_path(path)
        if not target.exists():
            raise NotFoundError(f"File not found: {normalize_path(path)}")
        if target.is_dir():
            shutil.rmtree(target)
        else:
            os.remove(target)

    def readdir(self, path: str) -> Optional[List[FSItem]]:
        target = self._disk_path(path)
        if not target.exists():
            return None
        if not target.is_dir():
            raise ValidationError(f"{normalize_path(path)} is not a directory")
        return [self._item(child) for child in sorted(target.iterdir())]
