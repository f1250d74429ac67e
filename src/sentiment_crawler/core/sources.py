"""Document sources: where the bytes of the single document come from."""

import mimetypes
from dataclasses import dataclass
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse
from urllib.request import url2pathname

import requests

from ..foundation.errors import NetworkError, ValidationError
from ..foundation.logging import get_logger

logger = get_logger(__name__)

HTTP_SCHEMES = ("http", "https")


@dataclass
class FetchedDocument:
    """Raw document content plus what we know about its type."""
    uri: str
    content: bytes
    content_type: Optional[str] = None
    encoding: Optional[str] = None

    @property
    def size(self) -> int:
        return len(self.content)


class DocumentSource:
    """A document that can be read exactly once per run."""

    def __init__(self, uri: str):
        self.uri = uri

    @property
    def document_uri(self) -> str:
        return self.uri

    def read(self) -> FetchedDocument:
        raise NotImplementedError

    def close(self) -> None:
        pass


class HTTPDocumentSource(DocumentSource):
    """Fetches the document with a ``requests`` session."""

    def __init__(
        self,
        session: requests.Session,
        uri: str,
        timeout: Optional[float] = None,
        verify_ssl: bool = True
    ):
        super().__init__(uri)
        self.session = session
        self.timeout = timeout
        self.verify_ssl = verify_ssl

    def read(self) -> FetchedDocument:
        logger.info(f"Fetching {self.uri}")
        try:
            response = self.session.get(
                self.uri,
                timeout=self.timeout,
                verify=self.verify_ssl,
                allow_redirects=True
            )
        except requests.Timeout as e:
            raise NetworkError(f"Timed out fetching {self.uri}", url=self.uri) from e
        except requests.RequestException as e:
            raise NetworkError(f"Could not fetch {self.uri}: {e}", url=self.uri) from e

        try:
            response.raise_for_status()
        except requests.HTTPError as e:
            raise NetworkError(
                f"Fetching {self.uri} failed with HTTP {response.status_code}",
                status_code=response.status_code,
                url=self.uri
            ) from e

        content_type = _media_type(response.headers.get("Content-Type"))
        final_uri = response.url or self.uri
        if final_uri != self.uri:
            logger.info(f"Redirected to {final_uri}")

        # Only trust an explicit charset; requests guesses ISO-8859-1 for text/*
        encoding = _charset(response.headers.get("Content-Type"))
        logger.debug(f"Received {len(response.content)} bytes of {content_type or 'unknown type'}")

        return FetchedDocument(
            uri=final_uri,
            content=response.content,
            content_type=content_type,
            encoding=encoding
        )


class FileDocumentSource(DocumentSource):
    """Reads a document from the local filesystem."""

    def __init__(self, path: Path):
        self.path = Path(path)
        super().__init__(self.path.resolve().as_uri())

    def read(self) -> FetchedDocument:
        logger.info(f"Reading {self.path}")
        try:
            content = self.path.read_bytes()
        except FileNotFoundError as e:
            raise NetworkError(f"File not found: {self.path}", url=self.uri) from e
        except OSError as e:
            raise NetworkError(f"Could not read {self.path}: {e}", url=self.uri) from e

        content_type, _ = mimetypes.guess_type(self.path.name)
        return FetchedDocument(uri=self.uri, content=content, content_type=content_type)


def open_document_source(
    uri: Optional[str],
    session: Optional[requests.Session] = None,
    timeout: Optional[float] = None,
    verify_ssl: bool = True
) -> DocumentSource:
    """Pick the source for ``uri``.

    ``http``/``https`` URIs are fetched with ``session``; ``file`` URIs and
    plain paths to existing files are read from disk.

    Raises:
        ValidationError: if the URI is missing or its scheme is unsupported
    """
    if uri is None or not uri.strip():
        raise ValidationError("No URL given; pass one with -url", field="url")

    uri = uri.strip()
    parsed = urlparse(uri)
    scheme = parsed.scheme.lower()

    if scheme in HTTP_SCHEMES:
        if not parsed.netloc:
            raise ValidationError(f"Malformed URL: {uri}", field="url")
        return HTTPDocumentSource(session or requests.Session(), uri, timeout=timeout, verify_ssl=verify_ssl)

    if scheme == "file":
        if parsed.netloc not in ("", "localhost"):
            raise ValidationError(f"Remote file URLs are not supported: {uri}", field="url")
        return FileDocumentSource(Path(url2pathname(parsed.path)))

    # Windows drive letters parse as a one-letter scheme
    if not scheme or len(scheme) == 1:
        path = Path(uri).expanduser()
        if path.is_file():
            return FileDocumentSource(path)
        if not scheme:
            raise ValidationError(f"Not a URL or an existing file: {uri}", field="url")

    raise ValidationError(f"Unsupported URL scheme '{parsed.scheme}': {uri}", field="url")


def _media_type(header: Optional[str]) -> Optional[str]:
    if not header:
        return None
    media_type = header.split(";", 1)[0].strip().lower()
    return media_type or None


def _charset(header: Optional[str]) -> Optional[str]:
    if not header:
        return None
    for param in header.split(";")[1:]:
        name, _, value = param.partition("=")
        if name.strip().lower() == "charset" and value.strip():
            return value.strip().strip('"\'')
    return None
