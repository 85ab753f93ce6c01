"""Built-in shell commands."""

import enum
import os
from collections.abc import Callable
from typing import TYPE_CHECKING, TextIO, TypeAlias

from pipeshell import config
from pipeshell.errors import ShellExit
from pipeshell.resolver import resolve_executable

if TYPE_CHECKING:
    from pipeshell.shell import Shell

BuiltinHandler: TypeAlias = Callable[[list[str], "Shell", TextIO, TextIO], int]


class Builtin(enum.StrEnum):
    EXIT = "exit"
    ECHO = "echo"
    TYPE = "type"
    PWD = "pwd"
    CD = "cd"
    HISTORY = "history"

    @classmethod
    def lookup(cls, name: str) -> "Builtin | None":
        try:
            return cls(name)
        except ValueError:
            return None


def builtin_exit(args: list[str], shell: "Shell", out: TextIO, err: TextIO) -> int:
    code = 0
    if args:
        try:
            code = int(args[0])
        except ValueError:
            print(f"exit: {args[0]}: numeric argument required", file=out)
            return 1
    shell.save_history()
    raise ShellExit(code)


def builtin_echo(args: list[str], shell: "Shell", out: TextIO, err: TextIO) -> int:
    print(" ".join(args), file=out)
    return 0


def builtin_type(args: list[str], shell: "Shell", out: TextIO, err: TextIO) -> int:
    if not args:
        print("no command found", file=out)
        return 1

    name = args[0]
    if Builtin.lookup(name) is not None:
        print(f"{name} is a shell builtin", file=out)
        return 0

    path = resolve_executable(name)
    if path is None:
        print(f"{name}: not found", file=out)
        return 1
    print(f"{name} is {path}", file=out)
    return 0


def builtin_pwd(args: list[str], shell: "Shell", out: TextIO, err: TextIO) -> int:
    try:
        print(os.getcwd(), file=out)
    except OSError as e:
        print(f"pwd: {e.strerror}", file=out)
        return 1
    return 0


def builtin_cd(args: list[str], shell: "Shell", out: TextIO, err: TextIO) -> int:
    target = config.home_dir()
    if args and args[0] != "~":
        target = args[0]
    try:
        os.chdir(target)
    except OSError:
        print(f"cd: {target}: No such file or directory", file=err)
        return 1
    return 0


def builtin_history(args: list[str], shell: "Shell", out: TextIO, err: TextIO) -> int:
    history = shell.history
    match args:
        case ["-r" | "-w" | "-a"]:
            print("history: missing argument", file=out)
            return 1
        case [("-r" | "-w" | "-a") as flag, path, *_]:
            try:
                if flag == "-r":
                    history.read_file(path)
                elif flag == "-w":
                    history.write_file(path)
                else:
                    history.append_file(path)
            except OSError as e:
                print(f"history: {path}: {e.strerror}", file=out)
                return 1
            return 0
        case [count, *_]:
            try:
                last = int(count)
            except ValueError:
                print("history: invalid number", file=out)
                return 1
        case _:
            last = 0

    for number, entry in history.numbered(last):
        print(f"    {number}  {entry}", file=out)
    return 0


BUILTIN_REGISTRY: dict[Builtin, BuiltinHandler] = {
    Builtin.EXIT: builtin_exit,
    Builtin.ECHO: builtin_echo,
    Builtin.TYPE: builtin_type,
    Builtin.PWD: builtin_pwd,
    Builtin.CD: builtin_cd,
    Builtin.HISTORY: builtin_history,
}
