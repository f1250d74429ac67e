"""Triple writers: one per output serialization, all bound to a byte stream."""

import json
from typing import Any, BinaryIO, Dict, List, Optional, Tuple, Type, Union

from rdflib import BNode, Dataset, Graph, Literal, URIRef
from rdflib.compare import to_canonical_graph
from rdflib.term import Node

from ..foundation.errors import SerializationError
from ..foundation.logging import get_logger
from ..models.extraction import OutputFormat

logger = get_logger(__name__)

# Prefixes bound for Turtle and RDF/XML output
PREFIXES = {
    "rdf": "http://www.w3.org/1999/02/22-rdf-syntax-ns#",
    "rdfs": "http://www.w3.org/2000/01/rdf-schema#",
    "xsd": "http://www.w3.org/2001/XMLSchema#",
    "schema": "http://schema.org/",
    "og": "http://ogp.me/ns#",
    "dc": "http://purl.org/dc/elements/1.1/",
    "dcterms": "http://purl.org/dc/terms/",
    "mf": "http://microformats.org/profile/",
}

ContextGraphs = List[Tuple[Optional[URIRef], Graph]]


def _sort_key(triple: Tuple[Node, Node, Node]) -> Tuple[str, ...]:
    return tuple(term.n3() for term in triple)


def canonical_graph(graph: Graph) -> Graph:
    """Copy ``graph`` with stable blank node labels, inserting triples in sorted order."""
    canonical = Graph(bind_namespaces="core")
    for triple in sorted(to_canonical_graph(graph), key=_sort_key):
        canonical.add(triple)
    return canonical


class TripleWriter:
    """Receives triples during extraction and serializes them on ``close``.

    Triples are grouped by context (the document they came from). Nothing is
    written to ``stream`` until ``close`` is called, and ``close`` writes at
    most once.
    """

    output_format: OutputFormat

    def __init__(self, stream: BinaryIO):
        self.stream = stream
        self.document_uri: Optional[URIRef] = None
        self.triple_count = 0
        self.closed = False
        self._graphs: Dict[Optional[URIRef], Graph] = {}

    def start_document(self, document_uri: str) -> None:
        self.document_uri = URIRef(document_uri)
        logger.debug(f"{self.name} receiving triples for {document_uri}")

    def receive_triple(
        self,
        subject: Node,
        predicate: Node,
        obj: Node,
        context: Optional[Union[str, URIRef]] = None
    ) -> None:
        """Accept one extracted triple."""
        if self.closed:
            raise SerializationError(f"{self.name} is already closed", output_format=self.output_format.value)

        key = URIRef(context) if context is not None else self.document_uri
        graph = self._graphs.get(key)
        if graph is None:
            graph = self._graphs[key] = Graph()
        graph.add((subject, predicate, obj))
        self.triple_count += 1

    def end_document(self, document_uri: str) -> None:
        logger.debug(f"{self.name} received {self.triple_count} triples for {document_uri}")

    def close(self) -> None:
        """Serialize everything received so far into the stream.

        Raises:
            SerializationError: if the triples cannot be serialized
        """
        if self.closed:
            return
        self.closed = True

        try:
            data = self.serialize(self._canonical_graphs())
        except SerializationError:
            raise
        except Exception as e:
            raise SerializationError(
                f"{self.name} failed to serialize {self.triple_count} triples: {e}",
                output_format=self.output_format.value
            ) from e

        self.stream.write(data)

    def serialize(self, graphs: ContextGraphs) -> bytes:
        raise NotImplementedError

    @property
    def name(self) -> str:
        return self.__class__.__name__

    def _canonical_graphs(self) -> ContextGraphs:
        ordered = sorted(self._graphs.items(), key=lambda entry: "" if entry[0] is None else str(entry[0]))
        return [(context, canonical_graph(graph)) for context, graph in ordered]

    def __enter__(self) -> "TripleWriter":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class RDFLibWriter(TripleWriter):
    """Writer backed by one of rdflib's serializer plugins."""

    rdflib_format: str = "turtle"
    # Keep graph names (N-Quads, TriX)
    context_aware: bool = False
    # Line-based formats: order statements by line
    sort_lines: bool = False

    def serialize(self, graphs: ContextGraphs) -> bytes:
        if self.context_aware:
            dataset = Dataset()
            self._bind_prefixes(dataset)
            for context, graph in graphs:
                target = dataset.graph(context) if context is not None else dataset.default_context
                for triple in graph:
                    target.add(triple)
            data = dataset.serialize(format=self.rdflib_format, encoding="utf-8")
        else:
            merged = Graph(bind_namespaces="core")
            self._bind_prefixes(merged)
            for _, graph in graphs:
                for triple in graph:
                    merged.add(triple)
            data = merged.serialize(format=self.rdflib_format, encoding="utf-8")

        if self.sort_lines:
            lines = [line for line in data.splitlines(keepends=True) if line.strip()]
            data = b"".join(sorted(lines))
        return data

    @staticmethod
    def _bind_prefixes(graph: Graph) -> None:
        for prefix, namespace in PREFIXES.items():
            graph.bind(prefix, namespace, override=True, replace=True)


class TurtleWriter(RDFLibWriter):
    output_format = OutputFormat.TURTLE
    rdflib_format = "turtle"


class NTriplesWriter(RDFLibWriter):
    output_format = OutputFormat.NTRIPLES
    rdflib_format = "nt"
    sort_lines = True


class RDFXMLWriter(RDFLibWriter):
    output_format = OutputFormat.RDFXML
    rdflib_format = "xml"


class NQuadsWriter(RDFLibWriter):
    output_format = OutputFormat.NQUADS
    rdflib_format = "nquads"
    context_aware = True
    sort_lines = True


class TriXWriter(RDFLibWriter):
    output_format = OutputFormat.TRIX
    rdflib_format = "trix"
    context_aware = True


class JSONWriter(TripleWriter):
    """Writes ``{"quads": [...]}``, one entry per distinct triple.

    Each entry has ``subject``, ``predicate``, ``object`` and ``graph`` terms;
    a term is ``{"type": "uri" | "bnode" | "literal", "value": ...}`` and
    literals also carry ``lang`` and ``datatype``.
    """

    output_format = OutputFormat.JSON

    def serialize(self, graphs: ContextGraphs) -> bytes:
        quads = []
        for context, graph in graphs:
            for subject, predicate, obj in sorted(graph, key=_sort_key):
                quads.append({
                    "subject": _term_to_json(subject),
                    "predicate": _term_to_json(predicate),
                    "object": _term_to_json(obj),
                    "graph": _term_to_json(context) if context is not None else None,
                })
        return (json.dumps({"quads": quads}, indent=2, ensure_ascii=False) + "\n").encode("utf-8")


def _term_to_json(term: Node) -> Dict[str, Any]:
    if isinstance(term, Literal):
        return {
            "type": "literal",
            "value": str(term),
            "lang": term.language,
            "datatype": str(term.datatype) if term.datatype else None,
        }
    if isinstance(term, BNode):
        return {"type": "bnode", "value": str(term)}
    return {"type": "uri", "value": str(term)}


WRITERS: Dict[OutputFormat, Type[TripleWriter]] = {
    OutputFormat.TURTLE: TurtleWriter,
    OutputFormat.NTRIPLES: NTriplesWriter,
    OutputFormat.RDFXML: RDFXMLWriter,
    OutputFormat.NQUADS: NQuadsWriter,
    OutputFormat.TRIX: TriXWriter,
    OutputFormat.JSON: JSONWriter,
}


def resolve_output_format(
    name: Optional[str],
    default: OutputFormat = OutputFormat.TURTLE
) -> Tuple[OutputFormat, bool]:
    """Map a requested format name to a supported format.

    Returns:
        The format and whether ``name`` was given but not recognized
    """
    output_format = OutputFormat.parse(name)
    if output_format is not None:
        return output_format, False
    return default, bool(name)


def select_writer(
    name: Optional[str],
    stream: BinaryIO,
    default: OutputFormat = OutputFormat.TURTLE
) -> TripleWriter:
    """Return the writer for ``name`` bound to ``stream``; unknown names fall back to ``default``."""
    output_format, unrecognized = resolve_output_format(name, default)
    if unrecognized:
        logger.warning(
            f"No output writer found for type: {name}. "
            f"Defaulting to {WRITERS[output_format].__name__} output serialization"
        )

    writer = WRITERS[output_format](stream)
    logger.info(f"Selected {writer.name} as output writer.")
    return writer
