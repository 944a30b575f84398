from __future__ import annotations

import pytest

from confsync.core.errors import CommandError
from confsync.pipeline.commands import run_command


def test_run_command_returns_output():
    assert run_command("echo hello") == "hello\n"


def test_run_command_captures_combined_output():
    with pytest.raises(CommandError) as excinfo:
        run_command("echo out; echo err 1>&2; exit 3")
    assert excinfo.value.returncode == 3
    assert "out" in excinfo.value.output
    assert "err" in excinfo.value.output


def test_run_command_unknown_program():
    with pytest.raises(CommandError) as excinfo:
        run_command("definitely-not-a-command-confsync")
    assert excinfo.value.returncode == 127
