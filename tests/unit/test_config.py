from __future__ import annotations

import os
from pathlib import Path

import pytest

from vcsgate.config import VcsGateConfig, load_config
from vcsgate.constants import DEFAULT_BRANCH, DEFAULT_COMMAND_TIMEOUT
from vcsgate.exceptions import ConfigError


def test_load_defaults_when_no_config(clean_env: None, temp_dir: Path) -> None:
    """Test that defaults are used when no config file exists."""
    os.chdir(temp_dir)

    config = load_config()

    assert isinstance(config, VcsGateConfig)
    assert config.repository.active_provider is None
    assert config.repository.providers == []
    assert config.debug is False
    assert config.verbosity == "warning"


def test_load_project_config(
    clean_env: None, temp_dir: Path, sample_config_yaml: str
) -> None:
    """Test loading configuration from vcsgate.yaml in the working directory."""
    os.chdir(temp_dir)
    (temp_dir / "vcsgate.yaml").write_text(sample_config_yaml)

    config = load_config()

    assert config.repository.active_provider == "svn-main"
    svn, git, github = config.repository.providers
    assert svn.kind == "svn"
    assert svn.username == "reader"
    assert svn.password.get_secret_value() == "s3cret-pass"
    assert svn.command_timeout == 30
    assert git.working_copy_path == Path("/srv/checkouts/app")
    assert git.repository_url == ""
    assert github.branch == "develop"
    assert config.verbosity == "info"


def test_explicit_config_path(
    clean_env: None, temp_dir: Path, sample_config_yaml: str
) -> None:
    config_path = temp_dir / "custom.yaml"
    config_path.write_text(sample_config_yaml)

    config = load_config(config_path)

    assert len(config.repository.providers) == 3


def test_provider_defaults(clean_env: None, temp_dir: Path) -> None:
    config_path = temp_dir / "vcsgate.yaml"
    config_path.write_text(
        """
repository:
  providers:
    - name: "plain"
      type: " Git "
      repository_url: "  https://git.example.com/app.git  "
      working_copy_path: ""
"""
    )

    provider = load_config(config_path).repository.providers[0]

    assert provider.kind == "git"
    assert provider.repository_url == "https://git.example.com/app.git"
    assert provider.working_copy_path is None
    assert provider.command_timeout == DEFAULT_COMMAND_TIMEOUT
    assert provider.branch == DEFAULT_BRANCH
    assert provider.enable_logging is True
    assert provider.has_credential is False


def test_password_is_not_rendered(
    clean_env: None, temp_dir: Path, sample_config_yaml: str
) -> None:
    config_path = temp_dir / "vcsgate.yaml"
    config_path.write_text(sample_config_yaml)

    config = load_config(config_path)

    assert "s3cret-pass" not in repr(config)


def test_env_var_overrides(
    clean_env: None, temp_dir: Path, sample_config_yaml: str
) -> None:
    """Test that VCSGATE_* environment variables override the YAML file."""
    config_path = temp_dir / "vcsgate.yaml"
    config_path.write_text(sample_config_yaml)
    os.environ["VCSGATE_VERBOSITY"] = "debug"
    os.environ["VCSGATE_DEBUG"] = "true"

    config = load_config(config_path)

    assert config.verbosity == "debug"
    assert config.debug is True
    assert config.repository.active_provider == "svn-main"


def test_invalid_timeout_raises_config_error(clean_env: None, temp_dir: Path) -> None:
    config_path = temp_dir / "vcsgate.yaml"
    config_path.write_text(
        """
repository:
  providers:
    - name: "svn"
      type: "svn"
      command_timeout: 0
"""
    )

    with pytest.raises(ConfigError) as exc_info:
        load_config(config_path)

    assert exc_info.value.field == "repository.providers.0.command_timeout"
    assert exc_info.value.value == 0


def test_invalid_yaml_raises_config_error(clean_env: None, temp_dir: Path) -> None:
    config_path = temp_dir / "vcsgate.yaml"
    config_path.write_text("repository: [unclosed\n")

    with pytest.raises(ConfigError, match="Invalid YAML"):
        load_config(config_path)


def test_empty_file_uses_defaults(clean_env: None, temp_dir: Path) -> None:
    config_path = temp_dir / "vcsgate.yaml"
    config_path.write_text("")

    config = load_config(config_path)

    assert config.repository.providers == []


def test_blank_branch_falls_back_to_default(clean_env: None, temp_dir: Path) -> None:
    config_path = temp_dir / "vcsgate.yaml"
    config_path.write_text(
        """
repository:
  providers:
    - name: "gh"
      type: "github"
      repository_url: "octo/hello"
      branch: "   "
"""
    )

    provider = load_config(config_path).repository.providers[0]

    assert provider.branch == DEFAULT_BRANCH
