"""Core layer components for the sentiment crawler."""

from .engine import ExtractionEngine, ExtractionReport
from .sources import DocumentSource, FetchedDocument, FileDocumentSource, HTTPDocumentSource, open_document_source
from .storage import OutputSink
from .writers import (
    JSONWriter,
    NQuadsWriter,
    NTriplesWriter,
    RDFXMLWriter,
    TriXWriter,
    TripleWriter,
    TurtleWriter,
    WRITERS,
    resolve_output_format,
    select_writer,
)

__all__ = [
    "ExtractionEngine",
    "ExtractionReport",
    "DocumentSource",
    "FetchedDocument",
    "FileDocumentSource",
    "HTTPDocumentSource",
    "open_document_source",
    "OutputSink",
    "TripleWriter",
    "TurtleWriter",
    "NTriplesWriter",
    "RDFXMLWriter",
    "NQuadsWriter",
    "TriXWriter",
    "JSONWriter",
    "WRITERS",
    "resolve_output_format",
    "select_writer",
]
