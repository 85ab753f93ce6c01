"""Locate executables on a colon-separated search path."""

import os
import stat

from pipeshell import config

# Any of user/group/other execute
EXEC_BITS = 0o111


def resolve_executable(name: str, search_path: str | None = None) -> str | None:
    """Return the first executable file named `name` on the search path.

    `search_path` defaults to $PATH. Names containing a slash are checked
    directly instead of being searched for.
    """
    if not name:
        return None
    if "/" in name:
        return name if is_executable(name) else None

    if search_path is None:
        search_path = config.search_path()
    for directory in search_path.split(":"):
        candidate = os.path.join(directory, name)
        if is_executable(candidate):
            return candidate
    return None


def is_executable(path: str) -> bool:
    try:
        mode = os.stat(path).st_mode
    except OSError:
        return False
    return stat.S_ISREG(mode) and bool(mode & EXEC_BITS)


def executables_on_path(search_path: str | None = None) -> set[str]:
    """Names of all executable files found in the search path directories."""
    if search_path is None:
        search_path = config.search_path()
    names: set[str] = set()
    for directory in search_path.split(":"):
        try:
            entries = os.listdir(directory or ".")
        except OSError:
            continue
        for entry in entries:
            if is_executable(os.path.join(directory, entry)):
                names.add(entry)
    return names
