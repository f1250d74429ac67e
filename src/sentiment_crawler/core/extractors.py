"""Turn the structured data of a document into triples.

HTML documents are decoded once into an ``HTMLPage``; extruct reads the
embedded syntaxes and each converter here maps its output to RDF (JSON-LD and
RDFa through rdflib's JSON-LD parser). Documents that are already RDF are
parsed with rdflib directly.
"""

import json
import re
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple
from urllib.parse import quote, urljoin, urlparse

from rdflib import RDF, BNode, Dataset, Graph, Literal, URIRef
from rdflib.term import Node
from rdflib.util import guess_format

from ..foundation.errors import ExtractionError
from ..foundation.logging import get_logger
from ..models.extraction import Syntax
from .markup import HTMLPage, read_head, read_rel_links
from .sources import FetchedDocument

logger = get_logger(__name__)

MICRODATA_NS = "http://www.w3.org/1999/xhtml/microdata#"
MICROFORMATS_NS = "http://microformats.org/profile/"
ANY23_NS = "http://vocab.sindice.net/any23#"
XFN_NS = "http://gmpg.org/xfn/11#"
DCTERMS_TITLE = URIRef("http://purl.org/dc/terms/title")
XHV_LICENSE = URIRef("http://www.w3.org/1999/xhtml/vocab#license")

LANGUAGE_TAG = re.compile(r"^[a-zA-Z]+(?:-[a-zA-Z0-9]+)*$")


OPENGRAPH_NAMESPACES = {
    "og": "http://ogp.me/ns#",
    "fb": "http://ogp.me/ns/fb#",
    "article": "http://ogp.me/ns/article#",
    "book": "http://ogp.me/ns/book#",
    "profile": "http://ogp.me/ns/profile#",
    "video": "http://ogp.me/ns/video#",
    "music": "http://ogp.me/ns/music#",
}

# Remote contexts that only set the schema.org vocabulary; inlined so parsing
# does not fetch them
SCHEMA_ORG_CONTEXTS = {
    "http://schema.org",
    "http://schema.org/",
    "https://schema.org",
    "https://schema.org/",
}
SCHEMA_ORG_INLINE_CONTEXT = {"@vocab": "http://schema.org/"}

HTML_MEDIA_TYPES = {"text/html", "application/xhtml+xml"}
HTML_SUFFIXES = (".html", ".htm", ".xhtml", ".shtml")

RDF_MEDIA_TYPES = {
    "text/turtle": "turtle",
    "application/x-turtle": "turtle",
    "text/n3": "n3",
    "application/n-triples": "nt",
    "application/rdf+xml": "xml",
    "application/ld+json": "json-ld",
    "application/n-quads": "nquads",
    "application/trig": "trig",
    "application/trix": "trix",
}

DOCUMENT_HTML = "html"
DOCUMENT_RDF = "rdf"


def detect_document_kind(document: FetchedDocument) -> Tuple[str, Optional[str]]:
    """Decide how to extract ``document``.

    Returns:
        ``("html", None)`` or ``("rdf", <rdflib format name>)``

    Raises:
        ExtractionError: when the content is neither HTML nor RDF
    """
    content_type = document.content_type
    if content_type in HTML_MEDIA_TYPES:
        return DOCUMENT_HTML, None
    if content_type in RDF_MEDIA_TYPES:
        return DOCUMENT_RDF, RDF_MEDIA_TYPES[content_type]

    path = urlparse(document.uri).path.lower()
    if path.endswith(HTML_SUFFIXES):
        return DOCUMENT_HTML, None
    rdf_format = guess_format(path) if path else None
    if rdf_format:
        return DOCUMENT_RDF, rdf_format

    head = document.content[:1024].lstrip().lower()
    if head.startswith((b"<!doctype html", b"<html")) or b"<html" in head:
        return DOCUMENT_HTML, None

    raise ExtractionError(
        f"Unsupported content type for {document.uri}: {content_type or 'unknown'}",
        content_type=content_type
    )


def parse_rdf_document(document: FetchedDocument, rdf_format: str) -> Graph:
    """Parse a document that is already RDF, flattening any named graphs."""
    dataset = Dataset(default_union=True)
    try:
        dataset.parse(data=document.content, format=rdf_format, publicID=document.uri)
    except Exception as e:
        raise ExtractionError(
            f"Could not parse {document.uri} as {rdf_format}: {e}",
            syntax=rdf_format,
            content_type=document.content_type
        ) from e

    graph = Graph()
    for triple in dataset.triples((None, None, None)):
        graph.add(triple)
    return graph


def extract_html(
    document: FetchedDocument,
    syntaxes: Iterable[str],
    strict: bool = True
) -> Dict[str, Graph]:
    """Run each enabled syntax over an HTML document.

    Args:
        document: The fetched HTML
        syntaxes: Syntax names, in extraction order
        strict: Raise on the first failing syntax instead of skipping it

    Returns:
        One graph per syntax
    """
    page = HTMLPage(document)
    graphs: Dict[str, Graph] = {}
    for syntax in syntaxes:
        try:
            graphs[syntax] = EXTRACTORS[syntax](page)
        except ExtractionError:
            if strict:
                raise
            logger.warning(f"Skipping {syntax} for {document.uri}", exc_info=True)
            continue
        except Exception as e:
            if strict:
                raise ExtractionError(
                    f"{syntax} extraction failed for {document.uri}: {e}",
                    syntax=syntax,
                    content_type=document.content_type
                ) from e
            logger.warning(f"Skipping {syntax} for {document.uri}: {e}")
            continue

        logger.debug(f"{syntax}: {len(graphs[syntax])} triples")

    return graphs


def jsonld_to_graph(items: List[Any], document_uri: str) -> Graph:
    """Each ``<script type="application/ld+json">`` block is its own document."""
    graph = Graph()
    for item in items:
        _parse_jsonld(graph, _inline_known_contexts(item), document_uri, Syntax.JSON_LD.value)
    return graph


def microdata_to_graph(items: List[Dict[str, Any]], document_uri: str) -> Graph:
    graph = Graph()
    for item in items:
        _add_microdata_item(graph, item, document_uri)
    return graph


def opengraph_to_graph(items: List[Dict[str, Any]], document_uri: str) -> Graph:
    """Open Graph properties describe the page itself."""
    graph = Graph()
    subject = URIRef(document_uri)
    for item in items:
        namespaces = dict(OPENGRAPH_NAMESPACES)
        namespaces.update(item.get("namespace") or {})
        for name, value in item.get("properties") or []:
            prefix, _, local = name.partition(":")
            namespace = namespaces.get(prefix)
            if not namespace or not local:
                logger.debug(f"Ignoring Open Graph property without a known prefix: {name}")
                continue
            graph.add((subject, URIRef(namespace + local), Literal(value)))
    return graph


def microformat_to_graph(items: List[Dict[str, Any]], document_uri: str) -> Graph:
    graph = Graph()
    for item in items:
        _add_microformat_item(graph, item, document_uri)
    return graph


def dublincore_to_graph(items: List[Dict[str, Any]], document_uri: str) -> Graph:
    """``<meta name="DC.title">`` style elements and terms describe the page."""
    graph = Graph()
    subject = URIRef(document_uri)
    for item in items:
        for entry in (item.get("elements") or []) + (item.get("terms") or []):
            predicate = entry.get("URI")
            content = entry.get("content")
            if not predicate or content is None:
                continue
            graph.add((subject, URIRef(predicate), Literal(content)))
    return graph


def rdfa_to_graph(items: List[Any], document_uri: str) -> Graph:
    """extruct hands RDFa over as expanded JSON-LD nodes."""
    graph = Graph()
    if items:
        _parse_jsonld(graph, items, document_uri, Syntax.RDFA.value)
    return graph


def head_to_graph(head: Dict[str, Any], document_uri: str) -> Graph:
    """The page title and its ``<meta name>`` elements describe the page."""
    graph = Graph()
    subject = URIRef(document_uri)
    if head.get("title"):
        graph.add((subject, DCTERMS_TITLE, Literal(head["title"], lang=_language(head.get("lang")))))

    prefixes = head.get("prefixes") or {}
    for name, content, lang in head.get("meta") or []:
        graph.add((subject, _meta_predicate(name, prefixes), Literal(content, lang=_language(lang))))
    return graph


def rel_links_to_graph(links: List[Tuple[str, str]], document_uri: str) -> Graph:
    graph = Graph()
    subject = URIRef(document_uri)
    for rel, href in links:
        predicate = XHV_LICENSE if rel == "license" else URIRef(XFN_NS + rel)
        graph.add((subject, predicate, URIRef(href)))
    return graph


def _extract_jsonld(page: HTMLPage) -> Graph:
    return jsonld_to_graph(page.structured_data(Syntax.JSON_LD.value), page.base)


def _extract_microdata(page: HTMLPage) -> Graph:
    return microdata_to_graph(page.structured_data(Syntax.MICRODATA.value), page.base)


def _extract_opengraph(page: HTMLPage) -> Graph:
    return opengraph_to_graph(page.structured_data(Syntax.OPENGRAPH.value), page.uri)


def _extract_microformats(page: HTMLPage) -> Graph:
    return microformat_to_graph(page.structured_data(Syntax.MICROFORMAT.value), page.base)


def _extract_rdfa(page: HTMLPage) -> Graph:
    return rdfa_to_graph(page.structured_data(Syntax.RDFA.value), page.base)


def _extract_dublincore(page: HTMLPage) -> Graph:
    return dublincore_to_graph(page.structured_data(Syntax.DUBLINCORE.value), page.uri)


def _extract_head(page: HTMLPage) -> Graph:
    return head_to_graph(read_head(page.soup), page.uri)


def _extract_rel_links(page: HTMLPage) -> Graph:
    return rel_links_to_graph(read_rel_links(page.soup, page.base), page.uri)


EXTRACTORS: Dict[str, Callable[[HTMLPage], Graph]] = {
    Syntax.MICRODATA.value: _extract_microdata,
    Syntax.OPENGRAPH.value: _extract_opengraph,
    Syntax.JSON_LD.value: _extract_jsonld,
    Syntax.MICROFORMAT.value: _extract_microformats,
    Syntax.RDFA.value: _extract_rdfa,
    Syntax.DUBLINCORE.value: _extract_dublincore,
    Syntax.HTML_HEAD.value: _extract_head,
    Syntax.HTML_REL.value: _extract_rel_links,
}


def _meta_predicate(name: str, prefixes: Dict[str, str]) -> URIRef:
    if _is_absolute_url(name):
        return URIRef(name)
    prefix, _, local = name.partition(":")
    if local and prefix.lower() in prefixes:
        return URIRef(prefixes[prefix.lower()] + local)
    return URIRef(ANY23_NS + quote(name, safe=":.-_"))


def _language(lang: Optional[str]) -> Optional[str]:
    if lang and LANGUAGE_TAG.match(lang):
        return lang
    return None


def _parse_jsonld(graph: Graph, data: Any, document_uri: str, syntax: str) -> None:
    try:
        graph.parse(data=json.dumps(data), format="json-ld", publicID=document_uri)
    except Exception as e:
        raise ExtractionError(f"Invalid {syntax} data in {document_uri}: {e}", syntax=syntax) from e


def _inline_known_contexts(data: Any) -> Any:
    """Replace schema.org context URLs, at any depth, with an inline vocabulary."""
    if isinstance(data, list):
        return [_inline_known_contexts(value) for value in data]
    if not isinstance(data, dict):
        return data

    result = {}
    for key, value in data.items():
        if key == "@context":
            result[key] = _inline_context_value(value)
        else:
            result[key] = _inline_known_contexts(value)
    return result


def _inline_context_value(value: Any) -> Any:
    if isinstance(value, str) and value.strip() in SCHEMA_ORG_CONTEXTS:
        return dict(SCHEMA_ORG_INLINE_CONTEXT)
    if isinstance(value, list):
        return [_inline_context_value(entry) for entry in value]
    return value


def _is_absolute_url(value: str) -> bool:
    parsed = urlparse(value)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc) and not any(c.isspace() for c in value)


def _value_term(value: Any) -> Node:
    """Values taken from href/src attributes are absolute URLs; keep them as IRIs."""
    if isinstance(value, str) and _is_absolute_url(value):
        return URIRef(value)
    return Literal(value)


def _as_list(value: Any) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def _microdata_vocabulary(types: List[str]) -> str:
    """Properties of a typed item live in the namespace of its first type."""
    for item_type in types:
        if "#" in item_type:
            return item_type.rsplit("#", 1)[0] + "#"
        if "/" in item_type:
            return item_type.rsplit("/", 1)[0] + "/"
    return MICRODATA_NS


def _add_microdata_item(graph: Graph, item: Dict[str, Any], base: str) -> Node:
    subject: Node = URIRef(urljoin(base, item["id"])) if item.get("id") else BNode()
    types = [t for t in _as_list(item.get("type")) if t]
    for item_type in types:
        graph.add((subject, RDF.type, URIRef(item_type)))

    vocabulary = _microdata_vocabulary(types)
    for name, values in (item.get("properties") or {}).items():
        predicate = URIRef(name) if _is_absolute_url(name) else URIRef(vocabulary + name)
        for value in _as_list(values):
            obj = _microdata_value(graph, value, base)
            if obj is not None:
                graph.add((subject, predicate, obj))

    return subject


def _microdata_value(graph: Graph, value: Any, base: str) -> Optional[Node]:
    if isinstance(value, dict):
        if "type" in value or "properties" in value:
            return _add_microdata_item(graph, value, base)
        if value.get("value") is not None:
            return _value_term(value["value"])
        return None
    if value is None:
        return None
    return _value_term(value)


def _add_microformat_item(graph: Graph, item: Dict[str, Any], base: str) -> Node:
    node = BNode()
    for item_type in _as_list(item.get("type")):
        graph.add((node, RDF.type, URIRef(MICROFORMATS_NS + item_type)))

    for name, values in (item.get("properties") or {}).items():
        predicate = URIRef(MICROFORMATS_NS + name)
        for value in _as_list(values):
            obj = _microformat_value(graph, value, base)
            if obj is not None:
                graph.add((node, predicate, obj))

    for child in item.get("children") or []:
        graph.add((node, URIRef(MICROFORMATS_NS + "children"), _add_microformat_item(graph, child, base)))

    return node


def _microformat_value(graph: Graph, value: Any, base: str) -> Optional[Node]:
    if isinstance(value, dict):
        if value.get("type"):
            return _add_microformat_item(graph, value, base)
        # e-* properties carry {"html", "value"}, u-photo may carry {"value", "alt"}
        if value.get("value") is not None:
            return _value_term(value["value"])
        return None
    if value is None:
        return None
    return _value_term(value)
