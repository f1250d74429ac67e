"""Service layer components for the sentiment crawler."""

from .extract import ExtractService

__all__ = [
    "ExtractService",
]
