"""Unit tests for local file storage."""

import re

import pytest

from boardmgmt.core.exceptions import NotFoundError, ValidationFailedError
from boardmgmt.server.services.file_storage import FileStorage, UploadedFile

pytestmark = pytest.mark.asyncio


async def test_save_uses_dated_folder_and_unique_name(storage: FileStorage):
    stored = await storage.save(UploadedFile("Board Minutes.PDF", b"%PDF", None))

    assert re.fullmatch(r"/uploads/\d{4}/\d{2}/Board-Minutes-[0-9a-f]{32}\.pdf", stored.url)
    assert stored.size == 4
    assert stored.content_type == "application/pdf"
    assert storage.open(stored.url).read_bytes() == b"%PDF"


async def test_save_strips_client_directories(storage: FileStorage):
    stored = await storage.save(UploadedFile("C:\\Users\\me\\notes.txt", b"x", "text/plain"), subdir="inbox")
    assert stored.url.startswith("/uploads/inbox/notes-")


async def test_save_requires_file_name(storage: FileStorage):
    with pytest.raises(ValidationFailedError):
        await storage.save(UploadedFile("", b"x"))


async def test_paths_outside_root_are_rejected(storage: FileStorage):
    with pytest.raises(ValidationFailedError):
        storage.resolve("/uploads/../../etc/passwd")


async def test_delete_and_missing_file(storage: FileStorage):
    url = await storage.write_text("reports/r-1.html", "<html/>")
    assert url == "/uploads/reports/r-1.html"
    assert storage.open(url).read_text() == "<html/>"

    await storage.delete(url)
    await storage.delete(url)
    await storage.delete(None)
    with pytest.raises(NotFoundError):
        storage.open(url)


async def test_declared_content_type_wins_unless_generic():
    assert FileStorage.guess_content_type("a.txt", "text/markdown") == "text/markdown"
    assert FileStorage.guess_content_type("a.png", "application/octet-stream") == "image/png"
    assert FileStorage.guess_content_type("blob", None) == "application/octet-stream"
