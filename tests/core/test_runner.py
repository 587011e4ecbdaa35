"""
Tests for the Command Runner

Runs real child processes through the current interpreter so no external
tools are needed.
"""

import io
import logging
import sys

import pytest

from kbuilder.core.exceptions import CommandError
from kbuilder.core.logger import BuildLog
from kbuilder.core.runner import SPAWN_FAILURE_STATUS, CommandRunner, format_command


def py(code: str):
    return [sys.executable, "-c", code]


@pytest.fixture
def console():
    return io.StringIO()


@pytest.fixture
def build_log(tmp_path, console):
    log = BuildLog(tmp_path / "runner.log", stream=console).open()
    yield log
    log.close()


class TestFormatCommand:
    """Test suite for format_command."""

    def test_quotes_arguments(self):
        """Test arguments with spaces or quotes are shell-quoted."""
        line = format_command(["git", "clone", "--branch", "v6.8", "my repo"])

        assert line == "git clone --branch v6.8 'my repo'"


class TestRun:
    """Test suite for CommandRunner.run."""

    def test_success_returns_zero(self, build_log):
        """Test a zero exit status is returned as-is."""
        runner = CommandRunner(build_log)

        assert runner.run(py("pass")) == 0

    def test_non_zero_status_logs_error(self, build_log, caplog):
        """Test a failing command returns its status and logs an ERROR."""
        caplog.set_level(logging.DEBUG)
        runner = CommandRunner(build_log)

        status = runner.run(py("import sys; sys.exit(3)"))

        assert status == 3
        errors = [r for r in caplog.records if r.levelno == logging.ERROR]
        assert errors and "exit code 3" in errors[-1].getMessage()

    def test_missing_executable_is_127(self, build_log, caplog):
        """Test a command that cannot be spawned collapses to status 127."""
        caplog.set_level(logging.DEBUG)
        runner = CommandRunner(build_log)

        status = runner.run(["definitely-not-a-real-tool-kbuilder"])

        assert status == SPAWN_FAILURE_STATUS
        assert any(r.levelno == logging.ERROR for r in caplog.records)

    def test_silent_output_goes_to_file_only(self, build_log, console, tmp_path):
        """Test show_output=False mirrors output into the log file only."""
        runner = CommandRunner(build_log)

        runner.run(py("print('silent-marker')"))
        build_log.close()

        assert "silent-marker" in (tmp_path / "runner.log").read_text()
        assert "silent-marker" not in console.getvalue()

    def test_show_output_streams_to_console(self, build_log, console, tmp_path):
        """Test show_output=True echoes the command and streams its output."""
        runner = CommandRunner(build_log)

        runner.run(py("print('live-marker')"), show_output=True)
        build_log.close()

        shown = console.getvalue()
        assert "$ " in shown
        assert "live-marker" in shown
        assert "live-marker" in (tmp_path / "runner.log").read_text()

    def test_stderr_is_captured(self, build_log, tmp_path):
        """Test stderr is merged into the mirrored output."""
        runner = CommandRunner(build_log)

        runner.run(py("import sys; sys.stderr.write('err-marker\\n')"))
        build_log.close()

        assert "err-marker" in (tmp_path / "runner.log").read_text()

    def test_cwd_and_env(self, tmp_path):
        """Test per-call working directory and environment."""
        runner = CommandRunner(base_env={"ARCH": "arm64"})
        code = (
            "import os, pathlib; "
            "pathlib.Path('out.txt').write_text(os.environ['ARCH'] + os.environ['CROSS_COMPILE'])"
        )

        status = runner.run(py(code), cwd=tmp_path, env={"CROSS_COMPILE": "aarch64-linux-gnu-"})

        assert status == 0
        assert (tmp_path / "out.txt").read_text() == "arm64aarch64-linux-gnu-"


class TestCheckAndCapture:
    """Test suite for check and capture."""

    def test_check_raises_command_error(self):
        """Test check raises with argv and exit status."""
        runner = CommandRunner()
        argv = py("import sys; sys.exit(2)")

        with pytest.raises(CommandError) as exc_info:
            runner.check(argv, "Failed to build kernel image", show_output=False)

        assert exc_info.value.returncode == 2
        assert exc_info.value.argv == argv
        assert exc_info.value.message == "Failed to build kernel image"

    def test_check_success(self):
        """Test check returns None on success."""
        assert CommandRunner().check(py("pass"), "unused", show_output=False) is None

    def test_capture_returns_output(self):
        """Test capture returns status and combined output."""
        status, output = CommandRunner().capture(py("print('Mali-G610 r0p0')"))

        assert status == 0
        assert "Mali-G610" in output

    def test_capture_missing_executable(self):
        """Test capture of an unspawnable command."""
        status, output = CommandRunner().capture(["definitely-not-a-real-tool-kbuilder"])

        assert status == SPAWN_FAILURE_STATUS
        assert output == ""
