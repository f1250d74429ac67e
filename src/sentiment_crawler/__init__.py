"""
sentiment-crawler - extract structured-data triples from a single document.

Fetches one URL (or local file), extracts the subject, predicate, object
relationships embedded in it (microdata, RDFa, JSON-LD, microformats,
Open Graph, Dublin Core, the page head and its links) and serializes them
as Turtle, N-Triples, RDF/XML, N-Quads, TriX or JSON.
"""

from .version import __version__

__all__ = ["__version__"]
