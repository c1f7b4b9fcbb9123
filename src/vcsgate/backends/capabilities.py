"""Process-wide record of local client availability.

Probing ``svn --version`` or ``git --version`` spawns a process, so each
command-line backend detects its client once and shares the result with
every later instance in the same process.

Example:
    from vcsgate.backends.capabilities import capability_cache, detect_client

    caps = capability_cache.get_or_detect(
        "svn", lambda: detect_client(["svn", "--version", "--quiet"])
    )
    if caps.installed:
        print(caps.version, caps.major_version)

    # Long-running processes can force a re-probe after upgrading a client
    capability_cache.invalidate("svn")
"""

from __future__ import annotations

import re
import subprocess
import threading
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

from vcsgate.constants import CLIENT_DETECTION_TIMEOUT
from vcsgate.logging import get_logger

if TYPE_CHECKING:
    from vcsgate.runners import CommandRunner

__all__ = [
    "CapabilityCache",
    "ClientCapabilities",
    "capability_cache",
    "detect_client",
    "parse_major_version",
    "probe_client",
]

logger = get_logger(__name__)

_VERSION_PATTERN = re.compile(r"(\d+)(?:\.\d+)*")


@dataclass(frozen=True, slots=True)
class ClientCapabilities:
    """Facts about a local command-line client.

    Attributes:
        installed: True if the executable answered its version probe.
        version: Version string as reported by the client (``""`` if missing).
        major_version: Leading numeric component of ``version`` (0 if unknown).
    """

    installed: bool
    version: str = ""
    major_version: int = 0

    @classmethod
    def missing(cls) -> ClientCapabilities:
        return cls(installed=False)


def parse_major_version(version: str) -> int:
    """Extract the major version number from a client version string.

    Examples:
        >>> parse_major_version("1.14.2 (r1899510)")
        1
        >>> parse_major_version("2.43.0")
        2
        >>> parse_major_version("unknown")
        0
    """
    match = _VERSION_PATTERN.search(version)
    if match is None:
        return 0
    return int(match.group(1))


def detect_client(
    command: Sequence[str],
    *,
    strip_prefix: str = "",
    timeout: float = CLIENT_DETECTION_TIMEOUT,
) -> ClientCapabilities:
    """Run a version probe and describe the client it found.

    Args:
        command: Version command, e.g. ``["git", "--version"]``.
        strip_prefix: Text removed from the front of the reported version
            (``"git version "``).
        timeout: Seconds to wait for the probe.

    Returns:
        :class:`ClientCapabilities`; ``installed`` is False when the
        executable is missing, fails, times out or prints nothing.
    """
    try:
        result = subprocess.run(
            list(command),
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False,
        )
    except FileNotFoundError:
        logger.debug("client_not_found", executable=command[0])
        return ClientCapabilities.missing()
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.warning("client_probe_failed", executable=command[0], error=str(e))
        return ClientCapabilities.missing()

    return _from_version_output(result.returncode, result.stdout, strip_prefix)


async def probe_client(
    runner: CommandRunner,
    command: Sequence[str],
    *,
    strip_prefix: str = "",
    timeout: float = CLIENT_DETECTION_TIMEOUT,
) -> ClientCapabilities:
    """Async counterpart of :func:`detect_client` for use on the event loop.

    The probe runs through *runner*, so the loop keeps serving other
    tasks while the client starts up.
    """
    result = await runner.run(list(command), timeout=timeout)
    if result.not_found:
        logger.debug("client_not_found", executable=command[0])
        return ClientCapabilities.missing()
    if result.timed_out:
        logger.warning("client_probe_failed", executable=command[0], error="timed out")
        return ClientCapabilities.missing()
    return _from_version_output(result.returncode, result.stdout, strip_prefix)


def _from_version_output(
    returncode: int, stdout: str, strip_prefix: str
) -> ClientCapabilities:
    version = stdout.strip()
    if returncode != 0 or not version:
        return ClientCapabilities.missing()

    first_line = version.splitlines()[0]
    if strip_prefix and first_line.startswith(strip_prefix):
        first_line = first_line[len(strip_prefix) :]

    return ClientCapabilities(
        installed=True,
        version=first_line,
        major_version=parse_major_version(first_line),
    )


class CapabilityCache:
    """Thread-safe, lazily filled store of :class:`ClientCapabilities`.

    Entries are keyed by backend kind. :meth:`get_or_detect` runs detection
    at most once per key until :meth:`invalidate` drops it. Async callers
    detect outside the lock and record through :meth:`store`, where the first
    recorded result wins.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: dict[str, ClientCapabilities] = {}

    def get(self, key: str) -> ClientCapabilities | None:
        with self._lock:
            return self._entries.get(key)

    def get_or_detect(
        self,
        key: str,
        detector: Callable[[], ClientCapabilities],
    ) -> ClientCapabilities:
        """Return the cached record for *key*, running *detector* on a miss.

        The lock is held while detecting so concurrent first callers do not
        each spawn a probe process.
        """
        with self._lock:
            cached = self._entries.get(key)
            if cached is not None:
                return cached
            detected = detector()
            self._entries[key] = detected
            return detected

    def store(self, key: str, caps: ClientCapabilities) -> ClientCapabilities:
        """Record *caps* unless another caller already did; return the kept entry."""
        with self._lock:
            return self._entries.setdefault(key, caps)

    def invalidate(self, key: str | None = None) -> None:
        """Forget the record for *key*, or every record when *key* is None."""
        with self._lock:
            if key is None:
                self._entries.clear()
            else:
                self._entries.pop(key, None)


#: Shared cache used by all command-line backends in this process.
capability_cache = CapabilityCache()
