"""Parsed HTML documents.

Three constructors mirror the ways a page can reach the matcher:

* :meth:`Document.from_bytes` is the authoritative path. BeautifulSoup picks
  the encoding from the argument, a BOM, the page's ``<meta charset>`` or
  detection, in that order.
* :meth:`Document.from_string` parses an already-decoded string. Any charset
  the page declares is ignored, so non-ASCII content can come out
  differently than from the original bytes.
* :meth:`Document.from_uri` fetches the body through :mod:`grokhtml.sources`
  and then parses the bytes.
"""
from __future__ import annotations

import logging
from typing import Optional, Union

from bs4 import BeautifulSoup, FeatureNotFound
from bs4.builder import ParserRejectedMarkup

from . import sources
from .config import Settings
from .errors import AllocationError, DocumentError, MatchError
from .tree import ElementNode, from_soup

logger = logging.getLogger(__name__)


def _parse(markup: Union[bytes, str], settings: Settings, encoding: Optional[str]) -> tuple[ElementNode, Optional[str]]:
    options = {"multi_valued_attributes": None}
    if isinstance(markup, bytes) and encoding:
        options["from_encoding"] = encoding
    try:
        soup = BeautifulSoup(markup, settings.parser, **options)
        root = from_soup(soup)
    except FeatureNotFound as exc:
        raise DocumentError(f"HTML parser {settings.parser!r} is not available") from exc
    except ParserRejectedMarkup as exc:
        raise DocumentError(f"Error opening HTML document: {exc}") from exc
    except MemoryError as exc:
        raise AllocationError("Out of memory while building the document tree") from exc
    return root, soup.original_encoding


class Document:
    """An immutable HTML tree; close it (or use ``with``) when finished."""

    def __init__(self, root: ElementNode, *, source: str = "<memory>", encoding: Optional[str] = None) -> None:
        self._root: Optional[ElementNode] = root
        self.source = source
        self.encoding = encoding

    @classmethod
    def from_bytes(
        cls,
        data: bytes,
        *,
        encoding: Optional[str] = None,
        settings: Optional[Settings] = None,
        source: str = "<bytes>",
    ) -> "Document":
        if not isinstance(data, (bytes, bytearray, memoryview)):
            raise DocumentError(f"Expected a byte buffer, got {type(data).__name__}")
        root, detected = _parse(bytes(data), settings or Settings(), encoding)
        logger.debug("Opened %s (%d bytes, encoding %s)", source, len(data), detected)
        return cls(root, source=source, encoding=detected)

    @classmethod
    def from_string(cls, text: str, *, settings: Optional[Settings] = None, source: str = "<string>") -> "Document":
        if not isinstance(text, str):
            raise DocumentError(f"Expected a string, got {type(text).__name__}")
        root, _ = _parse(text, settings or Settings(), None)
        logger.debug("Opened %s (%d characters)", source, len(text))
        return cls(root, source=source)

    @classmethod
    def from_uri(
        cls,
        uri: str,
        *,
        encoding: Optional[str] = None,
        settings: Optional[Settings] = None,
        fetcher: Optional[sources.Fetcher] = None,
    ) -> "Document":
        settings = settings or Settings()
        body = sources.fetch(uri, settings, fetcher=fetcher)
        return cls.from_bytes(body, encoding=encoding, settings=settings, source=uri)

    @property
    def root(self) -> ElementNode:
        if self._root is None:
            raise MatchError(f"Document {self.source} has been closed")
        return self._root

    @property
    def closed(self) -> bool:
        return self._root is None

    def close(self) -> None:
        self._root = None

    def __enter__(self) -> "Document":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "closed" if self.closed else "open"
        return f"<Document {self.source} ({state})>"


def open_document(source: Union[bytes, str], *, settings: Optional[Settings] = None, **kwargs) -> Document:
    """Open ``source`` as bytes, or as a URI/path when it is a string."""

    if isinstance(source, (bytes, bytearray, memoryview)):
        return Document.from_bytes(source, settings=settings, **kwargs)
    return Document.from_uri(source, settings=settings, **kwargs)
