"""Decode an HTML document once and hand it to the syntax extractors.

Embedded syntaxes (microdata, RDFa, JSON-LD, microformats, Open Graph,
Dublin Core) are read by extruct. The document head and its link relations
are read here with BeautifulSoup.
"""

import re
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urljoin

import extruct
from bs4 import BeautifulSoup
from w3lib.encoding import html_to_unicode
from w3lib.html import get_base_url

from ..foundation.errors import ExtractionError
from .sources import FetchedDocument

PREFIX_DECLARATION = re.compile(r"([A-Za-z_][\w.-]*):\s+(\S+)")

# rel values defined by XHTML Friends Network 1.1
XFN_RELATIONS = {
    "contact", "acquaintance", "friend", "met", "co-worker", "colleague",
    "co-resident", "neighbor", "child", "parent", "sibling", "spouse", "kin",
    "muse", "crush", "date", "sweetheart", "me",
}


class HTMLPage:
    """An HTML document decoded to text, with its base URL resolved."""

    def __init__(self, document: FetchedDocument):
        self.uri = document.uri
        self.content_type = document.content_type
        self.encoding, self.text = html_to_unicode(_content_type_header(document), document.content)
        self.base = get_base_url(self.text, document.uri)
        self._soup: Optional[BeautifulSoup] = None

    @property
    def soup(self) -> BeautifulSoup:
        if self._soup is None:
            try:
                self._soup = BeautifulSoup(self.text, "lxml")
            except Exception as e:
                raise ExtractionError(
                    f"Could not parse {self.uri} as HTML: {e}",
                    content_type=self.content_type
                ) from e
        return self._soup

    def structured_data(self, syntax: str) -> List[Any]:
        """What extruct finds for one syntax, in its non-uniform shape.

        Raises:
            Exception: whatever extruct raises for markup it cannot read
        """
        data = extruct.extract(
            self.text,
            base_url=self.base,
            syntaxes=[syntax],
            uniform=False,
            errors="strict",
        )
        return data.get(syntax) or []


def _content_type_header(document: FetchedDocument) -> Optional[str]:
    if document.encoding:
        return f"{document.content_type or 'text/html'}; charset={document.encoding}"
    return document.content_type


def tokens(value: Any) -> List[str]:
    """Split a space-separated attribute; bs4 already splits ``class`` and ``rel``."""
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [token for token in value if token]
    return str(value).split()


def text_content(element) -> str:
    return " ".join(element.get_text().split())


def parse_prefix_attribute(value: Optional[str]) -> Dict[str, str]:
    """``prefix="og: http://ogp.me/ns# fb: http://ogp.me/ns/fb#"`` as a mapping."""
    if not value:
        return {}
    return {prefix.lower(): iri for prefix, iri in PREFIX_DECLARATION.findall(value)}


def read_head(soup: BeautifulSoup) -> Dict[str, Any]:
    """The page title and ``<meta name content>`` pairs.

    Returns:
        ``{"title", "lang", "prefixes", "meta": [(name, content, lang)]}``
    """
    html = soup.find("html")
    lang = None
    if html is not None:
        lang = (html.get("lang") or "").strip() or None
    prefixes: Dict[str, str] = {}
    for element in (html, soup.find("head")):
        if element is not None:
            prefixes.update(parse_prefix_attribute(element.get("prefix")))

    title = soup.find("title")
    meta: List[Tuple[str, str, Optional[str]]] = []
    for element in soup.find_all("meta", attrs={"name": True, "content": True}):
        name = element["name"].strip()
        if not name:
            continue
        meta.append((name, element["content"], (element.get("lang") or "").strip() or lang))

    return {
        "title": text_content(title) if title is not None else None,
        "lang": lang,
        "prefixes": prefixes,
        "meta": meta,
    }


def read_rel_links(soup: BeautifulSoup, base: str) -> List[Tuple[str, str]]:
    """``(rel, absolute href)`` for every license and XFN relation on ``<a>``/``<link>``."""
    links = []
    for element in soup.find_all(("a", "link"), href=True):
        href = element["href"].strip()
        if not href:
            continue
        for rel in tokens(element.get("rel")):
            rel = rel.lower()
            if rel == "license" or rel in XFN_RELATIONS:
                links.append((rel, urljoin(base, href)))
    return links
