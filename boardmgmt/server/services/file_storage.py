"""
Local disk file storage.

Files are written to ``<uploads_root>/<yyyy>/<mm>/<stem>-<uuid><ext>`` and served by
the ``/uploads`` static mount, so the public URL mirrors the relative path.
"""

from __future__ import annotations

import asyncio
import mimetypes
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path, PurePosixPath
from typing import Optional

from boardmgmt.core.exceptions import NotFoundError, ValidationFailedError
from boardmgmt.core.logging_config import get_logger
from boardmgmt.core.models.domain.text import safe_file_stem
from boardmgmt.server.core.config import settings
from boardmgmt.server.core.constant import UPLOADS_URL_PREFIX

logger = get_logger(__name__)


@dataclass
class UploadedFile:
    """File received from a client, independent of the web framework."""

    file_name: str
    content: bytes
    content_type: Optional[str] = None


@dataclass
class StoredFile:
    file_name: str
    url: str
    size: int
    content_type: str


class FileStorage:
    """Store blobs below a root directory and address them by ``/uploads/...`` URLs."""

    def __init__(self, root: Optional[str | Path] = None) -> None:
        self.root = Path(root or settings.uploads_root).resolve()

    @staticmethod
    def guess_content_type(file_name: str, declared: Optional[str] = None) -> str:
        if declared and declared != "application/octet-stream":
            return declared
        return mimetypes.guess_type(file_name)[0] or "application/octet-stream"

    async def save(self, upload: UploadedFile, subdir: Optional[str] = None) -> StoredFile:
        original = PurePosixPath((upload.file_name or "").replace("\\", "/")).name
        if not original:
            raise ValidationFailedError.for_field("file", "File name is required.")

        now = datetime.now(timezone.utc)
        relative = PurePosixPath(subdir) if subdir else PurePosixPath(f"{now:%Y}", f"{now:%m}")
        suffix = PurePosixPath(original).suffix.lower()
        file_name = f"{safe_file_stem(PurePosixPath(original).stem)}-{uuid.uuid4().hex}{suffix}"

        target = self.root.joinpath(*relative.parts, file_name)
        await asyncio.to_thread(self._write, target, upload.content)
        logger.debug(f"Stored {original} as {target}")
        return StoredFile(
            file_name=file_name,
            url=f"{UPLOADS_URL_PREFIX}/{relative.as_posix()}/{file_name}",
            size=len(upload.content),
            content_type=self.guess_content_type(original, upload.content_type),
        )

    async def write_text(self, relative_path: str, text: str) -> str:
        """Write a generated text file and return its public URL."""
        target = self.root.joinpath(*PurePosixPath(relative_path).parts)
        await asyncio.to_thread(self._write, target, text.encode("utf-8"))
        return f"{UPLOADS_URL_PREFIX}/{PurePosixPath(relative_path).as_posix()}"

    @staticmethod
    def _write(target: Path, content: bytes) -> None:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(content)

    def resolve(self, url: str) -> Path:
        """Map a public URL to a path below the root; refuses anything outside it."""
        relative = url
        if relative.startswith(UPLOADS_URL_PREFIX + "/"):
            relative = relative[len(UPLOADS_URL_PREFIX) + 1 :]
        path = self.root.joinpath(*PurePosixPath(relative.lstrip("/")).parts).resolve()
        if path != self.root and self.root not in path.parents:
            raise ValidationFailedError.for_field("url", "Path is outside the storage root.")
        return path

    def open(self, url: str) -> Path:
        path = self.resolve(url)
        if not path.is_file():
            raise NotFoundError("File not found.")
        return path

    async def delete(self, url: Optional[str]) -> None:
        if not url:
            return
        path = self.resolve(url)
        try:
            await asyncio.to_thread(path.unlink, True)
        except OSError as e:
            logger.warning(f"Could not delete stored file {path}: {e}")


def get_file_storage() -> FileStorage:
    return FileStorage()
