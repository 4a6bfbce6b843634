from __future__ import annotations

import hashlib
import logging
import os
import threading
from typing import Dict, Iterator, Optional, Tuple

from app.core.config import CHUNK_SIZE

log = logging.getLogger("hashing")


def file_md5(path: str, chunk_size: int = CHUNK_SIZE) -> str:
    # Content digest for duplicate detection only, not integrity
    h = hashlib.md5()
    with open(path, "rb") as f:
        while True:
            chunk = f.read(chunk_size)
            if not chunk:
                break
            h.update(chunk)
    return h.hexdigest()


def iter_digests(directory: str) -> Iterator[Tuple[str, str]]:
    """
    Yield (filename, md5) for every regular file in `directory`, in listing order.
    A missing directory yields nothing.
    """
    try:
        names = os.listdir(directory)
    except FileNotFoundError:
        return
    for name in names:
        path = os.path.join(directory, name)
        if not os.path.isfile(path):
            continue
        yield name, file_md5(path)


def scan_for_digest(directory: str, digest: str) -> Optional[str]:
    for name, existing in iter_digests(directory):
        if existing == digest:
            return name
    return None


class DigestIndex:
    """
    In-memory digest -> filename map for one storage directory.

    Built from a full scan on first use. Entries whose file has since
    disappeared are dropped on lookup; files written by other processes
    are only picked up by rebuild().
    """

    def __init__(self, directory: str):
        self.directory = directory
        self._by_digest: Optional[Dict[str, str]] = None
        self._lock = threading.Lock()

    def rebuild(self) -> None:
        by_digest: Dict[str, str] = {}
        for name, digest in iter_digests(self.directory):
            # first name seen wins, same as the plain scan
            by_digest.setdefault(digest, name)
        with self._lock:
            self._by_digest = by_digest
        log.info("Indexed %d stored files in %s", len(by_digest), self.directory)

    def _entries(self) -> Dict[str, str]:
        if self._by_digest is None:
            self.rebuild()
        return self._by_digest

    def lookup(self, digest: str) -> Optional[str]:
        entries = self._entries()
        with self._lock:
            name = entries.get(digest)
            if name is None:
                return None
            if not os.path.isfile(os.path.join(self.directory, name)):
                log.info("Dropping stale index entry %s", name)
                del entries[digest]
                return None
            return name

    def add(self, digest: str, name: str) -> None:
        entries = self._entries()
        with self._lock:
            entries.setdefault(digest, name)

    def __len__(self) -> int:
        return len(self._entries())
