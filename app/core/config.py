import os

MAX_UPLOAD_BYTES = 10 * 1024 * 1024  # 10 MB soft cap
CHUNK_SIZE = 1 << 20  # 1 MB

# Stored files land here; clients address them as f"{PUBLIC_PREFIX}/<name>"
UPLOAD_DIR = os.getenv("UPLOAD_DIR", os.path.join("public", "uploads"))
PUBLIC_PREFIX = "uploads"

# Compared against the sniffed extension, case-sensitive
ALLOWED_EXTENSIONS = {"jpeg", "png", "jpg"}

# libmagic MIME -> extension; anything else goes through mimetypes
MIME_EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/pjpeg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
    "image/webp": "webp",
    "image/bmp": "bmp",
    "image/svg+xml": "svg",
    "image/tiff": "tiff",
    "application/pdf": "pdf",
    "text/plain": "txt",
}

# Keep a digest -> filename map in memory instead of rehashing the directory
UPLOAD_USE_INDEX = os.getenv("UPLOAD_USE_INDEX", "0").lower() in ("1", "true", "yes")
