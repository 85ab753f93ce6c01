"""Execute a Command chain: OS pipes between stages, builtins, processes."""

import contextlib
import io
import logging
import os
import shutil
import subprocess
import threading
from collections.abc import Iterator
from typing import IO, TYPE_CHECKING, BinaryIO

from pipeshell.builtins import BUILTIN_REGISTRY, Builtin
from pipeshell.errors import ShellExit
from pipeshell.pipeline import Command, RedirectStream
from pipeshell.resolver import resolve_executable

if TYPE_CHECKING:
    from pipeshell.shell import Shell

log = logging.getLogger(__name__)

ENCODING = "utf-8"
# Undecodable input bytes travel as surrogates and are written back unchanged
ENCODING_ERRORS = "surrogateescape"


class PipelineExecutor:
    """Runs pipelines on behalf of a shell session.

    Every stage except the last runs on its own thread and writes into an OS
    pipe read by the following stage. The last stage runs on the calling
    thread. All stage threads are joined before `execute` returns.
    """

    def __init__(self, shell: "Shell") -> None:
        self.shell = shell

    def execute(
        self,
        command: Command,
        stdin: BinaryIO | None,
        stdout: BinaryIO,
        stderr: BinaryIO,
    ) -> int:
        """Run the chain headed by `command`; returns the last stage's status."""
        stages = command.stages()
        if any(not stage.name for stage in stages):
            return 0
        if len(stages) == 1:
            return self._run_stage(stages[0], stdin, stdout, stderr)
        return self._run_pipeline(stages, stdin, stdout, stderr)

    def _run_pipeline(
        self,
        stages: list[Command],
        stdin: BinaryIO | None,
        stdout: BinaryIO,
        stderr: BinaryIO,
    ) -> int:
        readers: list[BinaryIO] = []
        writers: list[BinaryIO] = []
        for _ in stages[1:]:
            r, w = os.pipe()
            readers.append(os.fdopen(r, "rb"))
            writers.append(os.fdopen(w, "wb"))

        exits: list[ShellExit] = []
        threads: list[threading.Thread] = []
        for i, stage in enumerate(stages[:-1]):
            source = stdin if i == 0 else readers[i - 1]
            thread = threading.Thread(
                target=self._run_upstream,
                args=(stage, source, writers[i], stderr, exits, i > 0),
                name=f"pipeshell-stage-{i}-{stage.name}",
                daemon=True,
            )
            threads.append(thread)

        for thread in threads:
            thread.start()

        try:
            status = self._run_stage(stages[-1], readers[-1], stdout, stderr)
        finally:
            readers[-1].close()
            for thread in threads:
                thread.join()

        if exits:
            raise exits[0]
        return status

    def _run_upstream(
        self,
        stage: Command,
        stdin: BinaryIO | None,
        stdout: BinaryIO,
        stderr: BinaryIO,
        exits: list[ShellExit],
        owns_stdin: bool,
    ) -> None:
        """Thread body for a non-terminal stage; owns its pipe ends."""
        try:
            self._run_stage(stage, stdin, stdout, stderr)
        except ShellExit as e:
            exits.append(e)
        finally:
            _close_quietly(stdout)
            if owns_stdin and stdin is not None:
                _close_quietly(stdin)

    def _run_stage(
        self,
        stage: Command,
        stdin: BinaryIO | None,
        stdout: BinaryIO,
        stderr: BinaryIO,
    ) -> int:
        builtin = Builtin.lookup(stage.name)
        path = None
        if builtin is None:
            path = resolve_executable(stage.name)
            if path is None:
                _write_text(stdout, f"{stage.name}: command not found\n")
                return 0

        try:
            with _redirected(stage, stdout, stderr) as (out, err):
                if builtin is not None:
                    return self._run_builtin(builtin, stage.args, out, err)
                return _run_external(stage, path, stdin, out, err)
        except OSError as e:
            log.debug("stage %s: output error: %s", stage.name, e)
            return 0

    def _run_builtin(
        self, builtin: Builtin, args: list[str], stdout: BinaryIO, stderr: BinaryIO
    ) -> int:
        handler = BUILTIN_REGISTRY[builtin]
        out, err = io.StringIO(), io.StringIO()
        # Only the handler holds the session lock; pipe writes may block
        try:
            with self.shell.lock:
                return handler(args, self.shell, out, err)
        finally:
            _write_text(stdout, out.getvalue())
            _write_text(stderr, err.getvalue())


def _run_external(
    stage: Command,
    path: str,
    stdin: BinaryIO | None,
    stdout: BinaryIO,
    stderr: BinaryIO,
) -> int:
    """Spawn `stage` and wait for it.

    Streams backed by a file descriptor are handed to the child directly;
    anything else (e.g. io.BytesIO) is bridged through a pump thread.
    """
    stdin_fd = subprocess.DEVNULL if stdin is None else _fileno(stdin)
    stdout_fd = _fileno(stdout)
    stderr_fd = _fileno(stderr)
    for stream in (stdout, stderr):
        _flush_quietly(stream)

    try:
        proc = subprocess.Popen(
            [stage.name, *stage.args],
            executable=path,
            stdin=subprocess.PIPE if stdin_fd is None else stdin_fd,
            stdout=subprocess.PIPE if stdout_fd is None else stdout_fd,
            stderr=subprocess.PIPE if stderr_fd is None else stderr_fd,
        )
    except OSError as e:
        log.debug("failed to start %s: %s", path, e)
        return 126

    pumps: list[threading.Thread] = []
    if proc.stdin is not None:
        pumps.append(_start_pump(stdin, proc.stdin, close=proc.stdin))
    if proc.stdout is not None:
        pumps.append(_start_pump(proc.stdout, stdout, close=proc.stdout))
    if proc.stderr is not None:
        pumps.append(_start_pump(proc.stderr, stderr, close=proc.stderr))

    returncode = proc.wait()
    for pump in pumps:
        pump.join()
    return returncode


def _start_pump(src: IO[bytes], dst: IO[bytes], close: IO[bytes]) -> threading.Thread:
    thread = threading.Thread(target=_pump, args=(src, dst, close), daemon=True)
    thread.start()
    return thread


def _pump(src: IO[bytes], dst: IO[bytes], close: IO[bytes]) -> None:
    try:
        shutil.copyfileobj(src, dst)
        dst.flush()
    except OSError as e:
        log.debug("pump stopped: %s", e)
    finally:
        _close_quietly(close)


@contextlib.contextmanager
def _redirected(
    stage: Command, stdout: BinaryIO, stderr: BinaryIO
) -> Iterator[tuple[BinaryIO, BinaryIO]]:
    """Yield the (stdout, stderr) pair a stage should write to.

    The target is opened up front, so it exists (empty) even if the stage
    never writes to the redirected stream. When it cannot be opened the
    redirected output is discarded.
    """
    if stage.redirect_target is None:
        yield stdout, stderr
        return

    mode = "ab" if stage.append else "wb"
    try:
        target = open(stage.redirect_target, mode)  # noqa: SIM115
    except OSError as e:
        log.debug("cannot open %s: %s", stage.redirect_target, e)
        target = open(os.devnull, "wb")  # noqa: SIM115

    with target:
        if stage.redirect_stream is RedirectStream.STDERR:
            yield stdout, target
        else:
            yield target, stderr


def _write_text(stream: BinaryIO, text: str) -> None:
    if not text:
        return
    try:
        stream.write(text.encode(ENCODING, ENCODING_ERRORS))
        stream.flush()
    except OSError as e:
        log.debug("write failed: %s", e)


def _fileno(stream: IO[bytes]) -> int | None:
    try:
        return stream.fileno()
    except (AttributeError, OSError, ValueError):
        return None


def _flush_quietly(stream: IO[bytes]) -> None:
    with contextlib.suppress(OSError, ValueError):
        stream.flush()


def _close_quietly(stream: IO[bytes]) -> None:
    try:
        stream.close()
    except OSError as e:
        log.debug("close failed: %s", e)
