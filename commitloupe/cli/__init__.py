"""commitloupe command-line interface."""

from commitloupe.cli.app import app

__all__ = ["app"]
