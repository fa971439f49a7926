"""
Helpers to generate and validate blob keys.

Why:
    Keys travel inside the site document as plain strings and, for the
    filesystem store, become file names. Keep their shape boring and testable:
    ``{uuid_hex}{.ext}`` where the extension comes from the upload's filename.

Security:
    - Extensions are lowercased and filtered to alphanumerics.
    - `is_valid_blob_key` rejects anything outside ``[a-f0-9]{32}(.ext)?`` so
      a key can never escape the store's directory.
"""
from __future__ import annotations

import os
import re
from uuid import uuid4

BLOB_KEY_RE = re.compile(r"[a-f0-9]{32}(?:\.[a-z0-9]{1,10})?")


def _sanitize_ext_from_filename(filename: str | None) -> str:
    if not filename:
        return ""
    _, ext = os.path.splitext(os.path.basename(filename))
    ext = "".join(ch for ch in ext.lower() if ch.isalnum())
    return f".{ext[:10]}" if ext else ""


def make_blob_key(*, filename: str | None = None, uuid_hex: str | None = None) -> str:
    """Build a fresh blob key.

    Returns: {uuid}.{ext} (extension omitted when the filename has none)
    """
    hexpart = (uuid_hex or "").strip().lower() or uuid4().hex
    return f"{hexpart}{_sanitize_ext_from_filename(filename)}"


def is_valid_blob_key(key: str) -> bool:
    return bool(key) and BLOB_KEY_RE.fullmatch(key) is not None


__all__ = ["make_blob_key", "is_valid_blob_key", "BLOB_KEY_RE"]
