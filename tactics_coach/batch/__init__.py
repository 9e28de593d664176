"""Next-batch generation."""

from .generator import BatchGenerator

__all__ = ["BatchGenerator"]
