"""Backend factory.

Resolves the active provider block from configuration and returns the
matching :class:`~vcsgate.backends.protocol.VersionControlBackend`.
Construction never starts a process or a network call; the connection
probe only runs when explicitly requested.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from vcsgate.exceptions import MalformedConfigurationError
from vcsgate.logging import get_logger

if TYPE_CHECKING:
    from vcsgate.backends.base import BaseBackend
    from vcsgate.config import RepositoryProviderConfig, VcsGateConfig

__all__ = [
    "create_backend",
    "get_active_provider_config",
    "get_supported_types",
    "is_type_supported",
]

logger = get_logger(__name__)

#: Accepted provider kinds mapped to their canonical kind.
_KIND_ALIASES: dict[str, str] = {
    "svn": "svn",
    "subversion": "svn",
    "git": "git",
    "github": "github",
}

#: Kinds that can operate from a working copy alone.
_URL_OPTIONAL_KINDS = frozenset({"git"})


def get_supported_types() -> list[str]:
    """Return the accepted provider kinds, aliases included."""
    return list(_KIND_ALIASES)


def is_type_supported(kind: str) -> bool:
    return (kind or "").strip().lower() in _KIND_ALIASES


def get_active_provider_config(config: VcsGateConfig) -> RepositoryProviderConfig:
    """Return the provider block named by ``repository.active_provider``.

    Raises:
        MalformedConfigurationError: No active provider is set, or no block
            carries that name.
    """
    active = (config.repository.active_provider or "").strip()
    if not active:
        raise MalformedConfigurationError(
            "repository.active_provider is not configured",
            field="repository.active_provider",
        )
    for provider in config.repository.providers:
        if provider.name == active:
            return provider
    available = ", ".join(p.name for p in config.repository.providers) or "none"
    raise MalformedConfigurationError(
        f"Provider '{active}' not found in repository.providers (available: {available})",
        field="repository.active_provider",
        value=active,
    )


def create_backend(
    config: VcsGateConfig,
    *,
    start_diagnostics: bool = False,
) -> BaseBackend:
    """Create the backend for the active repository provider.

    Args:
        config: Loaded configuration.
        start_diagnostics: Launch the background connection probe after
            construction.

    Returns:
        An SVN, Git or GitHub backend built from a copy of the provider block.

    Raises:
        MalformedConfigurationError: The provider block is missing, names an
            unknown kind, or lacks a repository URL its kind requires.
    """
    provider = get_active_provider_config(config).model_copy(deep=True)
    kind = _KIND_ALIASES.get(provider.kind)
    if kind is None:
        raise MalformedConfigurationError(
            f"Unsupported repository provider type '{provider.type}'. "
            "Supported types: SVN, Git, GitHub",
            field="type",
            value=provider.type,
        )
    if kind not in _URL_OPTIONAL_KINDS and not provider.repository_url:
        raise MalformedConfigurationError(
            f"Provider '{provider.name}' requires repository_url",
            field="repository_url",
        )

    backend: BaseBackend
    if kind == "svn":
        from vcsgate.backends.svn import SvnBackend

        backend = SvnBackend(provider, debug=config.debug)
    elif kind == "git":
        from vcsgate.backends.git import GitBackend

        backend = GitBackend(provider, debug=config.debug)
    else:
        from vcsgate.backends.github import GitHubBackend

        backend = GitHubBackend(provider, debug=config.debug)

    logger.debug("backend_created", provider=backend.provider_name, name=provider.name)
    if start_diagnostics:
        backend.start_diagnostics()
    return backend
