"""Main shell loop: prompt, read, parse, execute, repeat."""

import contextlib
import io
import logging
import readline
import sys
import threading
from typing import BinaryIO

from pipeshell import config
from pipeshell.completion import setup_completion
from pipeshell.config import ShellConfig
from pipeshell.errors import ShellExit
from pipeshell.executor import PipelineExecutor
from pipeshell.history import History
from pipeshell.pipeline import parse

log = logging.getLogger(__name__)


class Shell:
    """Session state and main loop.

    Builtins receive the shell itself; `lock` serializes them so stages
    running on pipeline threads never touch the history or the working
    directory at the same time.
    """

    def __init__(self, shell_config: ShellConfig | None = None) -> None:
        self.config = shell_config or ShellConfig()
        self.history = History()
        self.lock = threading.RLock()
        self.executor = PipelineExecutor(self)

    def load_history(self) -> None:
        histfile = config.history_file()
        if not histfile:
            return
        with contextlib.suppress(OSError):
            self.history.read_file(histfile)
        for entry in self.history:
            readline.add_history(entry)

    def save_history(self) -> None:
        histfile = config.history_file()
        if not histfile:
            return
        try:
            self.history.write_file(histfile)
        except OSError as e:
            log.debug("could not save history to %s: %s", histfile, e)

    def run_command(
        self,
        line: str,
        stdin: BinaryIO | None = None,
        stdout: BinaryIO | None = None,
        stderr: BinaryIO | None = None,
    ) -> int:
        """Parse and execute one input line.

        Streams default to the process's own stdin/stdout/stderr.
        Raises ShellExit when the line ran `exit`.
        """
        command = parse(line)
        sys.stdout.flush()
        sys.stderr.flush()
        return self.executor.execute(
            command,
            sys.stdin.buffer if stdin is None else stdin,
            sys.stdout.buffer if stdout is None else stdout,
            sys.stderr.buffer if stderr is None else stderr,
        )

    def run(self) -> int:
        """Main shell loop; returns the process exit status."""
        self.load_history()
        setup_completion()

        while True:
            try:
                line = input(self.config.prompt)
            except (EOFError, KeyboardInterrupt):
                print()
                break

            line = line.strip()
            if not line:
                continue

            self.history.add(line)
            try:
                self.run_command(line)
            except ShellExit as e:
                return e.code

        self.save_history()
        return 0


def main() -> None:
    """Entry point."""
    shell_config = ShellConfig.from_environ()
    config.configure_logging(shell_config.log_level)
    if isinstance(sys.stdin, io.TextIOWrapper):
        # keep undecodable bytes instead of failing in input()
        sys.stdin.reconfigure(errors="surrogateescape")
    sys.exit(Shell(shell_config).run())
