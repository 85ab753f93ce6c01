"""Exceptions raised by the shell."""


class ShellError(Exception):
    """Base class for pipeshell errors."""


class ShellExit(ShellError):
    """Raised by the exit builtin; the main loop turns it into the exit status."""

    def __init__(self, code: int = 0) -> None:
        super().__init__(code)
        self.code = code
