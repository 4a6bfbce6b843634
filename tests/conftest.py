# tests/conftest.py
from __future__ import annotations
import struct
import zlib

import pytest
from fastapi.testclient import TestClient

from app.main import app
from app.core import config
from app.api import routes_upload

# --------------------------------------------------------------------
# Each test gets its own upload directory so stored files never leak
# --------------------------------------------------------------------
@pytest.fixture
def upload_dir(tmp_path, monkeypatch) -> str:
    d = tmp_path / "uploads"
    d.mkdir()
    monkeypatch.setattr(config, "UPLOAD_DIR", str(d))
    monkeypatch.setattr(routes_upload, "_uploaders", {})
    return str(d)

# --------------------------------------------------------------------
# FastAPI test client available as fixture `client`
# --------------------------------------------------------------------
@pytest.fixture
def client(upload_dir) -> TestClient:
    return TestClient(app)

# --------------------------------------------------------------------
# Helpers to build small, real image payloads in memory
# --------------------------------------------------------------------
def _png_chunk(kind: bytes, data: bytes) -> bytes:
    body = kind + data
    return struct.pack(">I", len(data)) + body + struct.pack(">I", zlib.crc32(body) & 0xFFFFFFFF)

def png_bytes(color: tuple[int, int, int] = (255, 0, 0)) -> bytes:
    """1x1 RGB PNG; different colours give different bytes."""
    ihdr = struct.pack(">IIBBBBB", 1, 1, 8, 2, 0, 0, 0)
    raw = b"\x00" + bytes(color)
    return (
        b"\x89PNG\r\n\x1a\n"
        + _png_chunk(b"IHDR", ihdr)
        + _png_chunk(b"IDAT", zlib.compress(raw))
        + _png_chunk(b"IEND", b"")
    )

def jpeg_bytes(marker: bytes = b"") -> bytes:
    """JFIF header followed by filler; enough for libmagic to call it image/jpeg."""
    app0 = b"JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00"
    return (
        b"\xff\xd8\xff\xe0" + struct.pack(">H", len(app0) + 2) + app0
        + b"\xff\xfe" + struct.pack(">H", len(marker) + 2) + marker
        + b"\xff\xd9"
    )

def gif_bytes() -> bytes:
    return (
        b"GIF89a\x01\x00\x01\x00\x80\x00\x00\xff\xff\xff\x00\x00\x00"
        b"!\xf9\x04\x01\x00\x00\x00\x00,\x00\x00\x00\x00\x01\x00\x01\x00\x00\x02\x02D\x01\x00;"
    )

@pytest.fixture
def make_upload(tmp_path):
    """Write bytes to a temp file and wrap them as an UploadedFile handle."""
    from app.utils.storage import UploadedFile

    counter = {"n": 0}

    def _make(data: bytes, client_filename: str = "photo.png") -> UploadedFile:
        counter["n"] += 1
        spool = tmp_path / "spool"
        spool.mkdir(exist_ok=True)
        path = spool / f"php{counter['n']}"
        path.write_bytes(data)
        return UploadedFile(str(path), client_filename)

    return _make
