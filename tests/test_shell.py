"""Tests for the Shell class (session state and loop)."""

import io

import pytest

from pipeshell.config import PROMPT
from pipeshell.errors import ShellExit
from pipeshell.shell import Shell


@pytest.fixture
def shell(monkeypatch):
    monkeypatch.delenv("HISTFILE", raising=False)
    return Shell()


def run_line(shell, line):
    out, err = io.BytesIO(), io.BytesIO()
    shell.run_command(line, io.BytesIO(), out, err)
    return out.getvalue().decode(), err.getvalue().decode()


def feed(monkeypatch, *lines):
    """Make input() return `lines` one by one, then raise EOFError."""
    pending = list(lines)

    def fake_input(prompt=""):
        if not pending:
            raise EOFError
        return pending.pop(0)

    monkeypatch.setattr("builtins.input", fake_input)


class TestShellInit:
    def test_initial_state(self, shell):
        assert len(shell.history) == 0
        assert shell.config.prompt == PROMPT
        assert shell.executor.shell is shell


class TestRunCommand:
    def test_echo(self, shell):
        assert run_line(shell, "echo hello") == ("hello\n", "")

    def test_history_sees_session(self, shell):
        shell.history.add("echo a")
        shell.history.add("history")
        out, _ = run_line(shell, "history")
        assert out == "    1  echo a\n    2  history\n"

    def test_exit_raises(self, shell):
        with pytest.raises(ShellExit):
            run_line(shell, "exit 5")


class TestHistoryPersistence:
    def test_load_history(self, shell, tmp_path, monkeypatch):
        f = tmp_path / "hist"
        f.write_text("old one\nold two\n")
        monkeypatch.setenv("HISTFILE", str(f))
        shell.load_history()
        assert shell.history.entries == ["old one", "old two"]

    def test_load_missing_histfile(self, shell, tmp_path, monkeypatch):
        monkeypatch.setenv("HISTFILE", str(tmp_path / "missing"))
        shell.load_history()
        assert len(shell.history) == 0

    def test_save_history(self, shell, tmp_path, monkeypatch):
        f = tmp_path / "hist"
        monkeypatch.setenv("HISTFILE", str(f))
        shell.history.add("echo a")
        shell.save_history()
        assert f.read_text() == "echo a\n"

    def test_save_unwritable_histfile(self, shell, tmp_path, monkeypatch):
        monkeypatch.setenv("HISTFILE", str(tmp_path / "no" / "dir"))
        shell.history.add("echo a")
        shell.save_history()


class TestRun:
    def test_eof_returns_zero(self, shell, monkeypatch):
        feed(monkeypatch)
        assert shell.run() == 0

    def test_records_non_empty_lines(self, shell, monkeypatch, capfd):
        feed(monkeypatch, "echo one", "", "   ", "echo two")
        shell.run()
        assert shell.history.entries == ["echo one", "echo two"]
        assert "one\ntwo\n" in capfd.readouterr().out

    def test_exit_code(self, shell, monkeypatch):
        feed(monkeypatch, "exit 7", "echo never")
        assert shell.run() == 7
        assert shell.history.entries == ["exit 7"]

    def test_bad_exit_keeps_running(self, shell, monkeypatch, capfd):
        feed(monkeypatch, "exit nope", "echo still here")
        assert shell.run() == 0
        out = capfd.readouterr().out
        assert "exit: nope: numeric argument required" in out
        assert "still here" in out

    def test_eof_saves_history(self, shell, monkeypatch, tmp_path):
        f = tmp_path / "hist"
        monkeypatch.setenv("HISTFILE", str(f))
        feed(monkeypatch, "echo a", "echo b")
        shell.run()
        assert f.read_text() == "echo a\necho b\n"
