"""Fetch raw document bytes from a URI.

Fetchers are plain callables ``(uri, settings) -> bytes`` chosen by URI
scheme. ``http``/``https`` go through :mod:`requests`; ``file`` URIs and bare
paths are read from disk. Tests and embedders can pass their own fetcher to
:meth:`grokhtml.document.Document.from_uri`.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Dict, Optional
from urllib.parse import urlparse
from urllib.request import url2pathname

import requests

from .config import Settings
from .errors import DocumentError

logger = logging.getLogger(__name__)

Fetcher = Callable[[str, Settings], bytes]


def fetch_http(uri: str, settings: Settings) -> bytes:
    headers = {"User-Agent": settings.user_agent}
    try:
        response = requests.get(uri, headers=headers, timeout=settings.timeout)
        response.raise_for_status()
    except requests.RequestException as exc:
        raise DocumentError(f"Failed to fetch {uri}: {exc}") from exc
    return response.content


def fetch_file(uri: str, settings: Settings) -> bytes:
    parsed = urlparse(uri)
    path = Path(url2pathname(parsed.path)) if parsed.scheme == "file" else Path(uri)
    try:
        return path.read_bytes()
    except OSError as exc:
        raise DocumentError(f"Failed to read {path}: {exc}") from exc


FETCHERS: Dict[str, Fetcher] = {
    "http": fetch_http,
    "https": fetch_http,
    "file": fetch_file,
    "": fetch_file,
}


def _scheme(uri: str) -> str:
    scheme = urlparse(uri).scheme.lower()
    # "C:\\page.html" parses with scheme "c"
    if len(scheme) == 1:
        return ""
    return scheme


def fetch(uri: str, settings: Optional[Settings] = None, fetcher: Optional[Fetcher] = None) -> bytes:
    """Return the body behind ``uri``, raising :class:`DocumentError` on failure."""

    settings = settings or Settings()
    if fetcher is None:
        scheme = _scheme(uri)
        fetcher = FETCHERS.get(scheme)
        if fetcher is None:
            raise DocumentError(f"Unsupported URI scheme {scheme!r} in {uri}")

    logger.debug("Fetching %s", uri)
    return fetcher(uri, settings)
