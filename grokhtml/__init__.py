"""Extract text from HTML documents with tree expressions."""

from .compiler import AttributeConstraint, ElementStep, Machine, TextStep, compile_expression
from .config import Settings
from .document import Document, open_document
from .errors import (
    AllocationError,
    DocumentError,
    GrokError,
    MatchError,
    ParseError,
    TemplateRangeError,
)
from .resources import HandleRegistry
from .runtime import Match, iter_matches, search, search_document
from .template import render

__all__ = [
    "AllocationError",
    "AttributeConstraint",
    "Document",
    "DocumentError",
    "ElementStep",
    "GrokError",
    "HandleRegistry",
    "Machine",
    "Match",
    "MatchError",
    "ParseError",
    "Settings",
    "TemplateRangeError",
    "TextStep",
    "compile_expression",
    "iter_matches",
    "open_document",
    "render",
    "search",
    "search_document",
]
