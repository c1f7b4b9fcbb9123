"""vcsgate - read-only access to Subversion, Git and GitHub repositories.

One operation vocabulary per backend, enforced allow-lists and deny-lists,
and a tool handler that turns every request into text for a calling agent.
"""

from __future__ import annotations

__version__ = "0.1.0"

__all__ = ["__version__"]
