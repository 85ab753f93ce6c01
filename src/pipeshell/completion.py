"""Readline tab completion for commands and file paths."""

import os
import readline
from functools import lru_cache

from pipeshell.builtins import Builtin
from pipeshell.resolver import executables_on_path

_matches: list[str] = []


def setup_completion() -> None:
    """Configure readline for tab completion."""
    readline.set_completer(completer)
    readline.set_completer_delims(" \t\n|><")
    readline.parse_and_bind("tab: complete")


def completer(text: str, state: int) -> str | None:
    """Readline completer function.

    On state 0, compute all matches. On subsequent states, return the next.
    """
    global _matches

    if state == 0:
        line = readline.get_line_buffer()
        begidx = readline.get_begidx()
        _matches = complete(line[:begidx], text)

    if state < len(_matches):
        return _matches[state]
    return None


def complete(before_cursor: str, text: str) -> list[str]:
    """Candidates for `text`, given the line content before the word.

    The first word of a stage completes to a command, later words to paths.
    """
    before_cursor = before_cursor.rstrip()
    if not before_cursor or before_cursor.endswith("|"):
        return _complete_command(text)
    return _complete_path(text)


def _complete_command(text: str) -> list[str]:
    """Complete a command name from builtins and PATH executables."""
    matches = [b.value for b in Builtin if b.value.startswith(text)]
    matches.extend(cmd for cmd in _get_path_commands() if cmd.startswith(text))
    return sorted(set(matches))


def _complete_path(text: str) -> list[str]:
    """Complete a file or directory path."""
    dirname = os.path.dirname(text)
    basename = os.path.basename(text)
    search_dir = dirname or "."

    matches: list[str] = []
    try:
        for entry in os.listdir(search_dir):
            if entry.startswith(basename):
                full = os.path.join(dirname, entry) if dirname else entry
                if os.path.isdir(os.path.join(search_dir, entry)):
                    full += "/"
                matches.append(full)
    except OSError:
        pass

    return sorted(matches)


@lru_cache(maxsize=1)
def _get_path_commands() -> frozenset[str]:
    """Get all executable command names from PATH (cached)."""
    return frozenset(executables_on_path())
