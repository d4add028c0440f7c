"""Unit tests for the p4bridge exception hierarchy."""

from __future__ import annotations

from pathlib import Path

import pytest

from p4bridge.exceptions import (
    ClientRootError,
    ConfigError,
    P4BridgeError,
    PerforceCommandError,
    PerforceError,
    PerforceSpawnError,
    PerforceStderrError,
    RunnerError,
    WorkingDirectoryError,
)


class TestP4BridgeError:
    def test_message_attribute(self) -> None:
        error = P4BridgeError("something broke")

        assert error.message == "something broke"
        assert str(error) == "something broke"


class TestConfigError:
    def test_field_and_value(self) -> None:
        error = ConfigError("bad value", field="queue.max_concurrent", value=0)

        assert error.message == "bad value"
        assert error.field == "queue.max_concurrent"
        assert error.value == 0
        assert isinstance(error, P4BridgeError)

    def test_field_and_value_default_to_none(self) -> None:
        error = ConfigError("bad")

        assert error.field is None
        assert error.value is None


class TestRunnerErrors:
    def test_working_directory_error_keeps_path(self) -> None:
        error = WorkingDirectoryError("missing", path=Path("/nope"))

        assert error.path == Path("/nope")
        assert isinstance(error, RunnerError)
        assert isinstance(error, P4BridgeError)


class TestPerforceErrors:
    def test_command_and_stderr(self) -> None:
        error = PerforceError("failed", command="opened", stderr="oops\n")

        assert error.message == "failed"
        assert error.command == "opened"
        assert error.stderr == "oops\n"

    def test_command_error_keeps_returncode(self) -> None:
        error = PerforceCommandError("exit 1", command="submit", returncode=1)

        assert error.returncode == 1
        assert isinstance(error, PerforceError)

    def test_spawn_error_is_a_command_error(self) -> None:
        error = PerforceSpawnError("Command not found: p4", command="info")

        assert isinstance(error, PerforceCommandError)
        assert error.returncode is None

    def test_stderr_error_is_not_a_command_error(self) -> None:
        error = PerforceStderrError("Your spec is terrible.", command="change")

        assert isinstance(error, PerforceError)
        assert not isinstance(error, PerforceCommandError)

    def test_client_root_error_default_message(self) -> None:
        error = ClientRootError()

        assert error.message == "P4 Info didn't specify a valid Client Root path"
        assert error.command == "info"

    @pytest.mark.parametrize(
        "error",
        [
            PerforceError("a"),
            PerforceCommandError("b"),
            PerforceSpawnError("c"),
            PerforceStderrError("d"),
            ClientRootError(),
        ],
    )
    def test_all_are_p4bridge_errors(self, error: Exception) -> None:
        assert isinstance(error, P4BridgeError)
