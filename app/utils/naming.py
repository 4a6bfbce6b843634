import re
import threading
import time

from werkzeug.utils import secure_filename

_NON_ALNUM = re.compile(r"[^a-z0-9]+")

_token_lock = threading.Lock()
_last_token_us = 0


def slugify(text: str) -> str:
    """
    Filesystem- and URL-safe form of a human-readable name:
    accents stripped, lowercased, every run of other characters turned into '-'.
    Scripts with no ASCII decomposition (Greek, Cyrillic, CJK) are dropped,
    so a name written only in them comes out as "file".
    """
    ascii_name = secure_filename(text or "")
    slug = _NON_ALNUM.sub("-", ascii_name.lower()).strip("-")
    return slug or "file"


def unique_token() -> str:
    """
    Time-based token: 8 hex digits of seconds + 5 of microseconds.
    Not random; strictly increasing within the process.
    """
    global _last_token_us
    with _token_lock:
        now_us = time.time_ns() // 1000
        if now_us <= _last_token_us:
            now_us = _last_token_us + 1
        _last_token_us = now_us
    sec, usec = divmod(now_us, 1_000_000)
    return f"{sec:08x}{usec:05x}"
