"""Shared constants for vcsgate."""

from __future__ import annotations

#: Rendered results longer than this are cut and marked as truncated.
MAX_RESULT_CHARS: int = 5000

#: Marker appended to truncated results.
TRUNCATION_MARKER: str = "\n\n... (truncated)"

#: Default number of entries for history-style operations.
DEFAULT_LIMIT: int = 10

#: Default execution timeout for client commands (seconds).
DEFAULT_COMMAND_TIMEOUT: int = 60

#: Budget for the ``--version`` probe run during client detection (seconds).
CLIENT_DETECTION_TIMEOUT: float = 5.0

#: Budget for the startup connection probe (seconds).
CONNECTION_PROBE_TIMEOUT: float = 10.0

#: "Latest" revision for the command-line backends.
HEAD_REVISION: str = "HEAD"

#: Default ref for the REST backend when none is configured.
DEFAULT_BRANCH: str = "main"

#: Returned when a client succeeds without printing anything.
NO_DATA_MESSAGE: str = "The operation completed successfully but returned no data."

#: Maximum characters of diagnostic text included in probe warnings.
PROBE_ERROR_EXCERPT: int = 200
