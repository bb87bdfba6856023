"""
Core Utilities.

Shared utility functions used across the backend.
All modules should import utilities from this module.
"""

import re
import unicodedata
from datetime import datetime, timezone
from pathlib import PurePosixPath, PureWindowsPath


def utc_now() -> datetime:
    """
    Return current UTC time as timezone-naive datetime.

    All datetime values in the application should be timezone-naive
    and assumed to be UTC. This ensures consistent behavior across
    the codebase and simplifies database storage.

    Returns:
        Current UTC time with tzinfo stripped
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


def normalize_tags(tags: list[str] | None) -> list[str]:
    """
    Normalize a tag list to its stored form.

    Tags are trimmed and lowercased; blanks are dropped and duplicates
    collapsed, keeping first-seen order.
    """
    if not tags:
        return []
    seen: dict[str, None] = {}
    for tag in tags:
        cleaned = tag.strip().lower()
        if cleaned:
            seen.setdefault(cleaned, None)
    return list(seen)


def sanitize_filename(filename: str | None, *, max_len: int = 255) -> str:
    """
    Make a client-supplied filename safe to store and echo back.

    Drops any directory components (POSIX or Windows), control characters
    and characters that break Content-Disposition headers.
    """
    if not filename:
        return "file"

    name = PureWindowsPath(PurePosixPath(filename).name).name
    name = unicodedata.normalize("NFKC", name)
    name = "".join(ch for ch in name if unicodedata.category(ch)[0] != "C")
    name = re.sub(r'[<>:"/\\|?*;]', "_", name)
    name = re.sub(r"\s+", " ", name).strip().lstrip(".")

    if not name:
        return "file"

    if len(name) > max_len:
        stem, dot, ext = name.rpartition(".")
        if dot and len(ext) < 16:
            name = stem[: max_len - len(ext) - 1] + "." + ext
        else:
            name = name[:max_len]
    return name


def file_extension(filename: str) -> str:
    """Return a lowercase, alphanumeric-only extension (with dot) or ''."""
    suffix = PurePosixPath(filename).suffix.lower()
    if not re.fullmatch(r"\.[a-z0-9]{1,15}", suffix):
        return ""
    return suffix
