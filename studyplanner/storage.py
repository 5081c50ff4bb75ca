import logging
import re
from pathlib import Path
from uuid import uuid4

from studyplanner.config import settings
from studyplanner.errors import NotFoundError, UpstreamServiceError, ValidationError

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def safe_file_name(file_name: str) -> str:
    """Reduce an uploaded name to a filesystem-safe basename"""
    name = Path(file_name or "upload").name
    name = _UNSAFE_CHARS.sub("_", name).strip("._")
    return name or "upload"


class LocalObjectStorage:
    """
    Object storage backed by a local directory.

    Objects are addressed by "<user_id>/<uuid>_<file name>" paths, the same
    key layout the hosted bucket uses, so metadata rows stay portable.
    """

    def __init__(self, root: str = None):
        self.root = Path(root or settings.storage_dir).resolve()

    def _resolve(self, file_path: str) -> Path:
        target = (self.root / file_path).resolve()
        if self.root not in target.parents:
            raise ValidationError(f"Invalid file path: {file_path}")
        return target

    def save(self, user_id: str, file_name: str, data: bytes) -> str:
        """Store bytes and return the object path"""
        file_path = f"{safe_file_name(user_id)}/{uuid4().hex}_{safe_file_name(file_name)}"
        target = self._resolve(file_path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        except OSError as e:
            raise UpstreamServiceError(f"Failed to store {file_path}: {e}", "Failed to upload file") from e
        logger.info("Stored object %s (%d bytes)", file_path, len(data))
        return file_path

    def download(self, file_path: str) -> bytes:
        target = self._resolve(file_path)
        if not target.is_file():
            raise NotFoundError(f"File not found: {file_path}")
        try:
            return target.read_bytes()
        except OSError as e:
            raise UpstreamServiceError(f"Failed to download {file_path}: {e}", "Failed to download file") from e

    def delete(self, file_path: str) -> None:
        target = self._resolve(file_path)
        try:
            target.unlink(missing_ok=True)
        except OSError as e:
            raise UpstreamServiceError(f"Failed to delete {file_path}: {e}", "Failed to delete file") from e
