"""Read-only version-control backends.

Example:
    from vcsgate.backends import OperationRequest, create_backend

    backend = create_backend(config)
    text = await backend.execute("log", OperationRequest(limit=5))
"""

from __future__ import annotations

from vcsgate.backends.base import (
    BaseBackend,
    CommandLineBackend,
    ConnectionStatus,
    OperationRequest,
    ProbeState,
)
from vcsgate.backends.capabilities import (
    CapabilityCache,
    ClientCapabilities,
    capability_cache,
)
from vcsgate.backends.factory import (
    create_backend,
    get_active_provider_config,
    get_supported_types,
    is_type_supported,
)
from vcsgate.backends.protocol import VersionControlBackend

__all__ = [
    "BaseBackend",
    "CapabilityCache",
    "ClientCapabilities",
    "CommandLineBackend",
    "ConnectionStatus",
    "OperationRequest",
    "ProbeState",
    "VersionControlBackend",
    "capability_cache",
    "create_backend",
    "get_active_provider_config",
    "get_supported_types",
    "is_type_supported",
]
