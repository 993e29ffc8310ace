"""Backend HTTP routes."""

from .optimize import optimize_bp

__all__ = ["optimize_bp"]
