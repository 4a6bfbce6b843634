# app/services/uploader.py
from __future__ import annotations

import contextlib
import logging
import os
import shutil
import threading
from typing import Callable, Iterable, Mapping, Optional, Tuple

from starlette.datastructures import UploadFile

from app.core.config import ALLOWED_EXTENSIONS, PUBLIC_PREFIX
from app.utils.hashing import DigestIndex, file_md5, scan_for_digest
from app.utils.naming import slugify, unique_token
from app.utils.storage import UploadedFile, spool_upload

log = logging.getLogger("uploader")


class UploadError(RuntimeError):
    ...


class UnsupportedType(UploadError):
    ...


class MoveError(UploadError):
    ...


class Uploader:
    """
    Stores uploaded images in one flat directory.

    Identical content is stored once: an upload whose bytes match a file
    already in the directory returns that file's path instead of a new one.
    """

    def __init__(
        self,
        target_directory: str,
        slugger: Callable[[str], str] = slugify,
        allowed_extensions: Optional[Iterable[str]] = None,
        index: Optional[DigestIndex] = None,
    ):
        self._target_directory = target_directory
        self.slugger = slugger
        self.allowed_extensions = frozenset(
            ALLOWED_EXTENSIONS if allowed_extensions is None else allowed_extensions
        )
        self.index = index
        self._lock = threading.Lock()

    @property
    def target_directory(self) -> str:
        return self._target_directory

    def validate(self, file: UploadedFile) -> None:
        ext = file.guess_extension()
        if ext not in self.allowed_extensions:
            log.warning("Rejected %r: sniffed extension %r", file.client_filename, ext)
            accepted = ", ".join(sorted(self.allowed_extensions))
            raise UnsupportedType(
                f"Unsupported file type. Please upload an image in one of: {accepted}"
            )

    def find_existing(self, file: UploadedFile) -> Optional[str]:
        """Name of a stored file with the same bytes as `file`, if any."""
        return self._lookup(file_md5(file.path))

    def _lookup(self, digest: str) -> Optional[str]:
        if self.index is not None:
            return self.index.lookup(digest)
        return scan_for_digest(self.target_directory, digest)

    def generate_name(self, file: UploadedFile) -> str:
        stem = os.path.splitext(file.client_filename)[0]
        return f"{self.slugger(stem)}-{unique_token()}.{file.guess_extension()}"

    def store(self, file: UploadedFile) -> Tuple[str, bool]:
        """
        Validate, dedupe and move `file` into the target directory.
        Returns (public path, whether an existing file was reused).
        """
        self.validate(file)

        with self._lock:
            digest = file_md5(file.path)
            existing = self._lookup(digest)
            if existing:
                log.info("Duplicate of %s: %r", existing, file.client_filename)
                return self._public_path(existing), True

            name = self.generate_name(file)
            dest = os.path.join(self.target_directory, name)
            try:
                os.makedirs(self.target_directory, exist_ok=True)
                shutil.move(file.path, dest)
            except OSError as e:
                log.error("Moving %s to %s failed: %s", file.path, dest, e)
                # a cross-device move may have copied part or all of the file already
                with contextlib.suppress(OSError):
                    os.remove(dest)
                raise MoveError(f"Failed to move file: {e}") from e

            if self.index is not None:
                self.index.add(digest, name)

        log.info("Stored %r as %s", file.client_filename, name)
        return self._public_path(name), False

    def upload(self, field_name: str, form: Mapping) -> Optional[str]:
        """
        Store the file submitted under `field_name`.
        Returns None when the field is missing or is not a file.
        """
        result = self.upload_with_status(field_name, form)
        return result[0] if result else None

    def upload_with_status(self, field_name: str, form: Mapping) -> Optional[Tuple[str, bool]]:
        value = form.get(field_name)
        if isinstance(value, UploadedFile):
            return self.store(value)
        if isinstance(value, UploadFile):
            with spool_upload(value) as file:
                return self.store(file)
        return None

    @staticmethod
    def _public_path(name: str) -> str:
        return f"{PUBLIC_PREFIX}/{name}"
