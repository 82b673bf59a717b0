"""Run compiled machines against document trees."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterator, Optional, Tuple

from .compiler import Machine, TextStep
from .document import Document
from .errors import AllocationError, MatchError
from .template import render
from .tree import Node

logger = logging.getLogger(__name__)

Captures = Tuple[str, ...]


@dataclass(frozen=True)
class Match:
    """A successful match: the node where the first step matched and the captures."""

    anchor: Node
    captures: Captures = ()

    def render(self, template: str) -> str:
        return render(self.captures, template)


def _captures_from(result) -> Captures:
    whole = result.group(0)
    groups = tuple(group if group is not None else "" for group in result.groups())
    return (whole,) + groups


def match_at(machine: Machine, node: Node, index: int = 0) -> Optional[Captures]:
    """Try to satisfy ``machine.steps[index:]`` starting at ``node``.

    Returns the captures on success and ``None`` otherwise. Element steps
    require each following step to match a direct child, tried in document
    order; the first child that succeeds wins.
    """

    steps = machine.steps
    if index == len(steps):
        return ()

    step = steps[index]
    if isinstance(step, TextStep):
        if node.is_element:
            return None
        result = step.pattern.search(node.content)
        if result is None:
            return None
        return _captures_from(result)

    if not node.is_element or not step.accepts(node.tag, node.attributes):
        return None
    if index + 1 == len(steps):
        return ()
    for child in node.children:
        captures = match_at(machine, child, index + 1)
        if captures is not None:
            return captures
    return None


def iter_matches(machine: Machine, document: Document) -> Iterator[Match]:
    """Yield every anchor at which ``machine`` matches, in document pre-order."""

    root = document.root
    try:
        for node in root.iter_preorder():
            captures = match_at(machine, node)
            if captures is not None:
                yield Match(anchor=node, captures=captures)
    except RecursionError as exc:
        raise MatchError(f"Matcher exhausted the stack on {document.source}") from exc
    except MemoryError as exc:
        raise AllocationError("Out of memory while collecting captures") from exc


def search(machine: Machine, document: Document) -> Optional[Match]:
    """Return the first match in pre-order, or ``None`` when nothing matches."""

    result = next(iter_matches(machine, document), None)
    logger.debug(
        "Search %r on %s: %s",
        machine.expression,
        document.source,
        "matched" if result is not None else "no match",
    )
    return result


def search_document(document: Document, template: str, machine: Machine) -> str:
    """Render the first match of ``machine`` in ``document`` through ``template``.

    Raises :class:`~grokhtml.errors.MatchError` when nothing matches and
    :class:`~grokhtml.errors.TemplateRangeError` when the template refers to
    a capture that does not exist.
    """

    result = search(machine, document)
    if result is None:
        raise MatchError("No match found")
    return result.render(template)
