from __future__ import annotations

import os
from pathlib import Path


SQLITE_URL_PREFIXES = ("sqlite:///", "sqlite://")


def resolve_local_path(raw_path: str | None) -> str:
    """Normalize a user-provided database path so it works on Windows and Unix.

    - Accepts a bare path or a ``sqlite:///`` URL
    - Leaves ``:memory:`` untouched
    - Expands ~
    - Converts WSL-style paths (/mnt/c/...) to Windows drive paths when running on Windows
    """
    if not raw_path:
        return ""

    path = raw_path.strip()
    for prefix in SQLITE_URL_PREFIXES:
        if path.startswith(prefix):
            path = path[len(prefix):] or ":memory:"
            break

    if path == ":memory:":
        return path

    path = os.path.expanduser(path)
    if os.name != "nt":
        return path

    normalized = path.replace("\\", "/")
    if normalized.startswith("/mnt/"):
        parts = normalized.split("/")
        if len(parts) >= 4 and len(parts[2]) == 1:
            drive_letter = parts[2].upper()
            remainder = Path(*parts[3:])
            path = str(Path(f"{drive_letter}:\\") / remainder)

    return path
