"""Command-line interface helpers for vcsgate."""
