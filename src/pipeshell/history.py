"""In-memory command history and its file formats."""

from collections.abc import Iterable, Iterator


class History:
    """Append-only list of accepted input lines.

    `appended` counts the entries already written out by `append_file`, so
    each call only adds what is new since the previous one.
    """

    def __init__(self, entries: Iterable[str] = ()) -> None:
        self.entries: list[str] = list(entries)
        self.appended: int = 0

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self.entries)

    def add(self, line: str) -> None:
        self.entries.append(line)

    def numbered(self, last: int = 0) -> list[tuple[int, str]]:
        """Entries with their 1-based position, limited to the last `last` if
        that is positive and smaller than the history."""
        start = 0
        if 0 < last < len(self.entries):
            start = len(self.entries) - last
        return [(i + 1, self.entries[i]) for i in range(start, len(self.entries))]

    def read_file(self, path: str) -> int:
        """Append the non-empty lines of `path`; returns how many were added."""
        with open(path, encoding="utf-8", errors="surrogateescape") as f:
            lines = [line for line in f.read().split("\n") if line]
        self.entries.extend(lines)
        return len(lines)

    def write_file(self, path: str) -> None:
        with open(path, "w", encoding="utf-8", errors="surrogateescape") as f:
            f.write(_format(self.entries))

    def append_file(self, path: str) -> None:
        with open(path, "a", encoding="utf-8", errors="surrogateescape") as f:
            new = self.entries[self.appended :]
            if new:
                f.write(_format(new))
                self.appended = len(self.entries)


def _format(entries: list[str]) -> str:
    return "".join(f"{entry}\n" for entry in entries)
