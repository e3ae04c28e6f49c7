from __future__ import annotations

import os

from .errors import UnsafeEntryPath


def norm_member_path(name: str) -> str:
    """Normalize an archived name to a safe relative path.

    Rules:
    - Strip the trailing slash carried by directory names
    - Remove empty and '.' segments
    - Reject absolute names and '..' segments
    """
    if not name or name.startswith("/"):
        raise UnsafeEntryPath(f"refusing to restore absolute or empty name: {name!r}")
    parts = [q for q in name.split("/") if q not in ("", ".")]
    for q in parts:
        if q == "..":
            raise UnsafeEntryPath(f"refusing to restore name containing '..': {name!r}")
    if not parts:
        raise UnsafeEntryPath(f"refusing to restore empty name: {name!r}")
    return "/".join(parts)


def member_target(dest: str, name: str) -> str:
    return os.path.join(dest, *norm_member_path(name).split("/"))
