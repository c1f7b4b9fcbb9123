from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import (
    BaseModel,
    Field,
    SecretStr,
    ValidationError,
    field_validator,
)
from pydantic.fields import FieldInfo
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from vcsgate.constants import DEFAULT_BRANCH, DEFAULT_COMMAND_TIMEOUT
from vcsgate.exceptions import ConfigError
from vcsgate.logging import get_logger

__all__ = [
    "VcsGateConfig",
    "RepositoryConfig",
    "RepositoryProviderConfig",
    "load_config",
    "get_user_config_path",
]

logger = get_logger(__name__)


class RepositoryProviderConfig(BaseModel):
    """One configured repository connection.

    Attributes:
        name: Identifier of the connection (e.g. ``"svn-production"``).
        type: Provider kind: ``svn`` (alias ``subversion``), ``git`` or ``github``.
        repository_url: Remote address. Optional only for ``git``, which can
            work from a local working copy alone.
        username: Principal for the remote (SVN ``--username``).
        password: Credential. For GitHub this is the personal access token.
        working_copy_path: Local checkout; mandatory for git operations,
            optional for SVN ``status``/``info``.
        command_timeout: Execution budget per operation in seconds.
        enable_logging: Turns backend logging on or off (errors are always logged).
        branch: Default ref for the REST backend.
    """

    name: str
    type: str
    repository_url: str = ""
    username: str = ""
    password: SecretStr = SecretStr("")
    working_copy_path: Path | None = None
    command_timeout: int = Field(default=DEFAULT_COMMAND_TIMEOUT, gt=0, le=3600)
    enable_logging: bool = True
    branch: str = DEFAULT_BRANCH

    @field_validator("repository_url", "username", "branch", mode="before")
    @classmethod
    def strip_strings(cls, v: Any) -> Any:
        if v is None:
            return ""
        return v.strip() if isinstance(v, str) else v

    @field_validator("branch")
    @classmethod
    def blank_branch_is_default(cls, v: str) -> str:
        return v or DEFAULT_BRANCH

    @field_validator("working_copy_path", mode="before")
    @classmethod
    def empty_path_is_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @property
    def kind(self) -> str:
        """Normalised provider kind (lower case, trimmed)."""
        return self.type.strip().lower()

    @property
    def has_credential(self) -> bool:
        return bool(self.password.get_secret_value())


class RepositoryConfig(BaseModel):
    """Settings for repository access.

    Example vcsgate.yaml:
        repository:
          active_provider: "svn-production"
          providers:
            - name: "svn-production"
              type: "svn"
              repository_url: "https://svn.example.com/repos/app"
              username: "reader"
              password: "..."
              command_timeout: 60
    """

    active_provider: str | None = None
    providers: list[RepositoryProviderConfig] = Field(default_factory=list)


class YamlConfigSource(PydanticBaseSettingsSource):
    """Custom settings source that loads from YAML files."""

    def __init__(
        self,
        settings_cls: type[BaseSettings],
        yaml_file: Path | None = None,
    ):
        super().__init__(settings_cls)
        self.yaml_file = yaml_file
        self._config_data: dict[str, Any] = {}
        if yaml_file and yaml_file.exists():
            try:
                with open(yaml_file) as f:
                    loaded = yaml.safe_load(f)
                    if loaded is None:
                        logger.warning("config_file_empty", path=str(yaml_file))
                    elif loaded:
                        self._config_data = loaded
            except yaml.YAMLError as e:
                raise ConfigError(
                    message=f"Invalid YAML in {yaml_file}: {e}",
                    field=None,
                    value=None,
                ) from e

    def get_field_value(
        self, field: FieldInfo, field_name: str
    ) -> tuple[Any, str, bool]:
        """Get value for a specific field from the YAML config."""
        if field_name in self._config_data:
            return self._config_data[field_name], field_name, False
        return None, field_name, False

    def __call__(self) -> dict[str, Any]:
        """Return the complete config data."""
        return self._config_data


class VcsGateConfig(BaseSettings):
    """Root configuration object containing all vcsgate settings."""

    model_config = SettingsConfigDict(
        env_prefix="VCSGATE_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    repository: RepositoryConfig = Field(default_factory=RepositoryConfig)
    debug: bool = False
    verbosity: Literal["error", "warning", "info", "debug"] = "warning"

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Customize the order of settings sources.

        Priority (highest to lowest):
        1. Init settings (explicit keyword arguments)
        2. Environment variables (VCSGATE_*)
        3. Project YAML config (./vcsgate.yaml or the path given to load_config)
        4. User YAML config (~/.config/vcsgate/config.yaml)
        """
        project_config_path = _active_project_path or Path.cwd() / "vcsgate.yaml"

        return (
            init_settings,
            env_settings,
            YamlConfigSource(settings_cls, project_config_path),
            YamlConfigSource(settings_cls, get_user_config_path()),
        )


_active_project_path: Path | None = None


def get_user_config_path() -> Path:
    """Get the path to the user configuration file.

    Returns:
        Path to ~/.config/vcsgate/config.yaml
    """
    return Path.home() / ".config" / "vcsgate" / "config.yaml"


def load_config(config_path: Path | None = None) -> VcsGateConfig:
    """Load configuration with hierarchy: defaults -> user -> project -> env.

    Args:
        config_path: Optional path to project config file. Defaults to ./vcsgate.yaml

    Returns:
        VcsGateConfig instance with merged configuration

    Raises:
        ConfigError: If configuration is invalid
    """
    global _active_project_path

    if config_path is None:
        config_path = Path.cwd() / "vcsgate.yaml"

    if not config_path.exists():
        logger.info("project_config_not_found", path=str(config_path))

    _active_project_path = config_path
    try:
        return VcsGateConfig()
    except ValidationError as e:
        first_error = e.errors()[0]
        field = ".".join(str(loc) for loc in first_error["loc"])
        raise ConfigError(
            message=f"Invalid configuration: {first_error['msg']}",
            field=field,
            value=first_error.get("input"),
        ) from e
    finally:
        _active_project_path = None
