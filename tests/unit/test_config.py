from __future__ import annotations

import os
from pathlib import Path

import pytest

from p4bridge.config import (
    P4BridgeConfig,
    PerforceSettings,
    WorkspaceConfig,
    load_config,
)
from p4bridge.exceptions import ConfigError


@pytest.fixture(autouse=True)
def no_user_config(monkeypatch: pytest.MonkeyPatch, temp_dir: Path) -> None:
    """Point the user config at a file that does not exist."""
    monkeypatch.setattr(
        "p4bridge.config.get_user_config_path",
        lambda: temp_dir / "missing" / "config.yaml",
    )


def test_load_defaults_when_no_config(clean_env: None, temp_dir: Path) -> None:
    """Test that defaults are used when no config file exists."""
    os.chdir(temp_dir)

    config = load_config()
    assert isinstance(config, P4BridgeConfig)
    assert config.queue.max_concurrent == 10
    assert config.queue.debug_mode is False
    assert config.fstat_batch_size == 32
    assert config.network_retries == 0
    assert config.perforce.port is None


def test_load_project_config(
    clean_env: None, temp_dir: Path, sample_config_yaml: str
) -> None:
    """Test loading configuration from p4bridge.yaml."""
    os.chdir(temp_dir)
    (temp_dir / "p4bridge.yaml").write_text(sample_config_yaml)

    config = load_config()
    assert config.perforce.port == "ssl:perforce.example.com:1666"
    assert config.perforce.user == "build"
    assert config.queue.max_concurrent == 4
    assert config.queue.debug_mode is True
    assert config.fstat_batch_size == 16
    assert config.network_retries == 2


def test_none_placeholder_means_unset(
    clean_env: None, temp_dir: Path, sample_config_yaml: str
) -> None:
    """Test that the "none" placeholder is read as an unset value."""
    os.chdir(temp_dir)
    (temp_dir / "p4bridge.yaml").write_text(sample_config_yaml)

    config = load_config()
    assert config.perforce.client is None


def test_env_var_overrides(
    clean_env: None, temp_dir: Path, sample_config_yaml: str
) -> None:
    """Test that P4BRIDGE_* environment variables override the YAML file."""
    os.chdir(temp_dir)
    (temp_dir / "p4bridge.yaml").write_text(sample_config_yaml)
    os.environ["P4BRIDGE_PERFORCE__USER"] = "env-user"
    os.environ["P4BRIDGE_QUEUE__MAX_CONCURRENT"] = "2"

    config = load_config()
    assert config.perforce.user == "env-user"
    assert config.queue.max_concurrent == 2
    # Values not overridden still come from the file
    assert config.perforce.port == "ssl:perforce.example.com:1666"


def test_user_config_is_lowest_priority(
    clean_env: None, temp_dir: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Test that the project file wins over the user file."""
    os.chdir(temp_dir)
    user_config = temp_dir / "user.yaml"
    user_config.write_text("perforce:\n  user: user-file\n  port: user:1666\n")
    (temp_dir / "p4bridge.yaml").write_text("perforce:\n  user: project-file\n")
    monkeypatch.setattr("p4bridge.config.get_user_config_path", lambda: user_config)

    config = load_config()
    assert config.perforce.user == "project-file"
    assert config.perforce.port == "user:1666"


def test_invalid_config_raises_config_error(clean_env: None, temp_dir: Path) -> None:
    """Test that an out-of-range value raises ConfigError with the field path."""
    os.chdir(temp_dir)
    os.environ["P4BRIDGE_QUEUE__MAX_CONCURRENT"] = "0"

    with pytest.raises(ConfigError) as exc_info:
        load_config()

    assert exc_info.value.field == "queue.max_concurrent"


def test_fstat_batch_size_cannot_exceed_limit(
    clean_env: None, temp_dir: Path
) -> None:
    os.chdir(temp_dir)
    os.environ["P4BRIDGE_FSTAT_BATCH_SIZE"] = "64"

    with pytest.raises(ConfigError) as exc_info:
        load_config()

    assert exc_info.value.field == "fstat_batch_size"


def test_invalid_yaml_raises_config_error(clean_env: None, temp_dir: Path) -> None:
    os.chdir(temp_dir)
    (temp_dir / "p4bridge.yaml").write_text("perforce: [unclosed\n")

    with pytest.raises(ConfigError, match="Invalid YAML"):
        load_config()


def test_non_mapping_yaml_raises_config_error(clean_env: None, temp_dir: Path) -> None:
    os.chdir(temp_dir)
    (temp_dir / "p4bridge.yaml").write_text("- a\n- b\n")

    with pytest.raises(ConfigError, match="must contain a mapping"):
        load_config()


class TestPerforceSettings:
    def test_empty_string_is_unset(self) -> None:
        settings = PerforceSettings(user="", port="none", client="ws")

        assert settings.user is None
        assert settings.port is None
        assert settings.client == "ws"


class TestWorkspaceConfig:
    def test_local_dir_gets_trailing_slash(self) -> None:
        config = WorkspaceConfig(local_dir="/home/me/depot")

        assert config.local_dir == "/home/me/depot/"

    def test_local_dir_uses_forward_slashes(self) -> None:
        config = WorkspaceConfig(local_dir="C:\\work\\depot")

        assert config.local_dir == "C:/work/depot/"

    def test_matches_root_with_or_without_slash(self) -> None:
        config = WorkspaceConfig(local_dir="/home/me/depot/")

        assert config.matches("/home/me/depot")
        assert config.matches(Path("/home/me/depot"))
        assert not config.matches("/home/me/other")

    def test_local_dir_is_required(self) -> None:
        with pytest.raises(ValueError):
            WorkspaceConfig()  # type: ignore[call-arg]

    def test_none_placeholder_is_unset(self) -> None:
        config = WorkspaceConfig(local_dir="/w", p4_user="none", p4_port="")

        assert config.p4_user is None
        assert config.p4_port is None


def test_empty_project_file_uses_defaults(clean_env: None, temp_dir: Path) -> None:
    os.chdir(temp_dir)
    (temp_dir / "p4bridge.yaml").write_text("")

    config = load_config()
    assert config.queue.max_concurrent == 10
