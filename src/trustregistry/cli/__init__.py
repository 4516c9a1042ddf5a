"""Command-line interface for the trust registry."""

from .trust_cli import main, trustreg

__all__ = ["main", "trustreg"]
