"""Pydantic models for extraction runs."""

from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class OutputFormat(str, Enum):
    """Serialization formats a run can write."""
    TURTLE = "turtle"
    NTRIPLES = "ntriples"
    RDFXML = "rdfxml"
    NQUADS = "nquads"
    TRIX = "trix"
    JSON = "json"

    @classmethod
    def parse(cls, name: Optional[str]) -> Optional["OutputFormat"]:
        """Exact, case-sensitive lookup; ``None`` when there is no match."""
        if name is None:
            return None
        try:
            return cls(name)
        except ValueError:
            return None


class Syntax(str, Enum):
    """Structured-data syntaxes found in HTML documents."""
    MICRODATA = "microdata"
    OPENGRAPH = "opengraph"
    JSON_LD = "json-ld"
    MICROFORMAT = "microformat"
    RDFA = "rdfa"
    DUBLINCORE = "dublincore"
    HTML_HEAD = "html-head"
    HTML_REL = "html-rel"


class RunConfiguration(BaseModel):
    """Arguments for a single run, fixed once parsed."""

    uri: Optional[str] = Field(default=None, description="Document to fetch")
    output_dir: Optional[Path] = Field(default=None, description="Directory for the output file")
    output_format: Optional[str] = Field(default=None, description="Requested serialization name")

    model_config = ConfigDict(frozen=True)

    @field_validator("uri")
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            return None
        return v

    @field_validator("output_format")
    @classmethod
    def empty_to_none(cls, v: Optional[str]) -> Optional[str]:
        # only an empty value means "not given"
        return v or None


class RunResult(BaseModel):
    """Outcome of a successful run."""

    uri: str
    document_uri: str
    content_type: Optional[str] = None
    output_format: OutputFormat
    writer: str
    output_path: Path
    bytes_written: int = 0
    triple_count: int = 0
    triples_by_syntax: Dict[str, int] = Field(default_factory=dict)
    serialization_failed: bool = False
    duration: float = 0.0
    completed_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
