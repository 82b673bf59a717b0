"""Opaque-handle interface over machines and documents.

Embedders that cannot hold Python objects (for example a C ABI shim) work
with integer handles instead. Each registry owns the objects behind its
handles; freeing a handle twice, or freeing ``0``, does nothing.
"""
from __future__ import annotations

import itertools
import logging
from typing import Dict, Optional

from .compiler import Machine, compile_expression
from .config import Settings
from .document import Document
from .errors import MatchError
from .runtime import search_document
from .sources import Fetcher

logger = logging.getLogger(__name__)

INVALID_HANDLE = 0


class HandleRegistry:
    def __init__(self, settings: Optional[Settings] = None, fetcher: Optional[Fetcher] = None) -> None:
        self.settings = settings or Settings()
        self.fetcher = fetcher
        self._ids = itertools.count(1)
        self._machines: Dict[int, Machine] = {}
        self._documents: Dict[int, Document] = {}

    # Machines ---------------------------------------------------------------
    def parse_expression(self, expression: str) -> int:
        machine = compile_expression(expression, ignore_case=self.settings.ignore_case)
        handle = next(self._ids)
        self._machines[handle] = machine
        logger.debug("Machine handle %d created for %r", handle, expression)
        return handle

    def free_machine(self, handle: int) -> None:
        if self._machines.pop(handle, None) is None:
            logger.debug("Ignoring free of unknown machine handle %r", handle)

    # Documents --------------------------------------------------------------
    def _register(self, document: Document) -> int:
        handle = next(self._ids)
        self._documents[handle] = document
        logger.debug("Document handle %d created for %s", handle, document.source)
        return handle

    def open_document_from_bytes(self, data: bytes) -> int:
        return self._register(Document.from_bytes(data, settings=self.settings))

    def open_document_from_string(self, text: str) -> int:
        return self._register(Document.from_string(text, settings=self.settings))

    def open_document_from_uri(self, uri: str) -> int:
        return self._register(Document.from_uri(uri, settings=self.settings, fetcher=self.fetcher))

    def free_document(self, handle: int) -> None:
        document = self._documents.pop(handle, None)
        if document is None:
            logger.debug("Ignoring free of unknown document handle %r", handle)
            return
        document.close()

    # Searching --------------------------------------------------------------
    def machine(self, handle: int) -> Machine:
        try:
            return self._machines[handle]
        except KeyError:
            raise MatchError(f"Invalid machine handle {handle!r}") from None

    def document(self, handle: int) -> Document:
        try:
            return self._documents[handle]
        except KeyError:
            raise MatchError(f"Invalid document handle {handle!r}") from None

    def search_document(self, document: int, template: str, machine: int) -> str:
        return search_document(self.document(document), template, self.machine(machine))

    def close(self) -> None:
        """Free every handle still owned by the registry."""

        for handle in list(self._documents):
            self.free_document(handle)
        self._machines.clear()

    def __enter__(self) -> "HandleRegistry":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def __len__(self) -> int:
        return len(self._machines) + len(self._documents)
