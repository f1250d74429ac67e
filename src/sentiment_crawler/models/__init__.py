"""Pydantic models for the sentiment crawler."""

from .extraction import OutputFormat, RunConfiguration, RunResult, Syntax

__all__ = [
    "OutputFormat",
    "RunConfiguration",
    "RunResult",
    "Syntax",
]
