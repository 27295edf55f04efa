"""builder — Dependency-aware build runner for Stencila micropublications.

Pipeline for `compile`: Check → Setup (venv) → convert → render → convert.
"""

from builder.cli import main

__all__ = ["main"]
