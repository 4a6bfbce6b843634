from __future__ import annotations

import logging
import mimetypes
import os
import tempfile
from typing import Optional

import magic
from starlette.datastructures import UploadFile

from app.core.config import CHUNK_SIZE, MIME_EXTENSIONS

log = logging.getLogger("storage")

_UNSET = object()


class UploadedFile:
    """
    A file the client already sent, sitting at a temporary path.

    Used as a context manager: on exit the temporary file is removed
    unless something moved it away first.
    """

    def __init__(self, path: str, client_filename: str = ""):
        self.path = path
        self.client_filename = client_filename or ""
        self._extension = _UNSET

    def mime_type(self) -> Optional[str]:
        try:
            return magic.Magic(mime=True).from_file(self.path)
        except (OSError, magic.MagicException) as e:
            log.warning("MIME sniffing failed for %s: %s", self.path, e)
            return None

    def guess_extension(self) -> Optional[str]:
        """Extension derived from the content, e.g. 'png'; None if unknown."""
        if self._extension is _UNSET:
            self._extension = _extension_for(self.mime_type())
        return self._extension

    def close(self) -> None:
        if os.path.exists(self.path):
            os.remove(self.path)

    def __enter__(self) -> "UploadedFile":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"UploadedFile({self.client_filename!r}, path={self.path!r})"


def _extension_for(mime: Optional[str]) -> Optional[str]:
    if not mime:
        return None
    ext = MIME_EXTENSIONS.get(mime)
    if ext:
        return ext
    guessed = mimetypes.guess_extension(mime)
    return guessed.lstrip(".") if guessed else None


def spool_upload(file: UploadFile) -> UploadedFile:
    """Copy a multipart upload to a temporary file we control."""
    with tempfile.NamedTemporaryFile(delete=False, prefix="upload-") as tmp:
        file.file.seek(0)
        while True:
            chunk = file.file.read(CHUNK_SIZE)
            if not chunk:
                break
            tmp.write(chunk)
        tmp_path = tmp.name
    return UploadedFile(tmp_path, file.filename or "")
