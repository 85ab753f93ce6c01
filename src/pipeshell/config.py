"""Shell configuration read from the environment."""

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass

PROMPT = "$ "

PATH_VAR = "PATH"
HOME_VAR = "HOME"
HISTFILE_VAR = "HISTFILE"
LOG_LEVEL_VAR = "PIPESHELL_LOG_LEVEL"

LOG_FORMAT = "%(name)s: %(levelname)s: %(message)s"


@dataclass(frozen=True)
class ShellConfig:
    """Settings fixed for the lifetime of a shell session."""

    prompt: str = PROMPT
    log_level: str = "WARNING"

    @classmethod
    def from_environ(cls, environ: Mapping[str, str] | None = None) -> "ShellConfig":
        env = os.environ if environ is None else environ
        level = env.get(LOG_LEVEL_VAR, "").strip().upper()
        return cls(log_level=level or "WARNING")


def search_path() -> str:
    return os.environ.get(PATH_VAR, "")


def home_dir() -> str:
    return os.environ.get(HOME_VAR, "")


def history_file() -> str | None:
    """Path history is persisted to, or None when $HISTFILE is unset or empty."""
    return os.environ.get(HISTFILE_VAR) or None


def configure_logging(level: str) -> None:
    if level not in logging.getLevelNamesMapping():
        level = "WARNING"
    logging.basicConfig(level=level, format=LOG_FORMAT)
