"""vcsgate CLI subcommands."""
