"""CLI command modules; importing them registers their commands on the app."""

from . import analysis, plans, sessions  # noqa: F401
