"""polyspec command-line interface."""
from __future__ import annotations

from polyspec.cli.main import cli

__all__ = ["cli"]
