"""
Rewrite pipeline for Zentree.

Implements:
- unroll: expand repeated nodes into numbered sibling clones
- squash: flatten group nodes and drop empty ones
- Pipeline: ordered pre/post-processor hooks around the two passes
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from .dom import AbbreviationNode
from .exceptions import RunawayInputError
from .parser import parse_abbreviation

logger = logging.getLogger("zentree.core")

Processor = Callable[[AbbreviationNode, dict[str, Any]], None]


def unroll(node: AbbreviationNode) -> AbbreviationNode:
    """
    Replace every repeating child with `repeat_count` clones, recursively.

    The original keeps counter 1; clones are inserted right after it, highest
    counter first, so the final order reads 1..N. Counters propagate to the
    whole subtree and nested repeats are expanded afterwards.
    """
    for i in range(len(node.children) - 1, -1, -1):
        child = node.children[i]
        if not child.is_repeating():
            continue

        count = child.repeat_count
        child.repeat_count = 1
        child.update_property("counter", 1)
        for counter in range(count, 1, -1):
            node.add_child(child.clone(), i + 1).update_property("counter", counter)

    for child in node.children:
        unroll(child)

    return node


def squash(node: AbbreviationNode) -> AbbreviationNode:
    """
    Drop empty children and replace group children with their own children.

    Scans last to first. Nodes spliced in from a group are scanned too, so
    nested groups flatten at the same level. Then recurses into the result.
    """
    i = len(node.children) - 1
    while i >= 0:
        child = node.children[i]
        if child.is_empty():
            child.remove()
        elif child.is_group():
            grandchildren = list(child.children)
            child.replace(grandchildren)
            i += len(grandchildren)
        i -= 1

    for child in node.children:
        squash(child)

    return node


class Pipeline:
    """
    Caller-owned parse pipeline.

    Pre-processors see the raw tree, post-processors the optimized one. Both
    lists keep registration order and ignore a function already present.
    """

    def __init__(self,
                 preprocessors: list[Processor] | None = None,
                 postprocessors: list[Processor] | None = None):
        self._preprocessors: list[Processor] = []
        self._postprocessors: list[Processor] = []
        for fn in preprocessors or []:
            self.add_preprocessor(fn)
        for fn in postprocessors or []:
            self.add_postprocessor(fn)

    @property
    def preprocessors(self) -> list[Processor]:
        return list(self._preprocessors)

    @property
    def postprocessors(self) -> list[Processor]:
        return list(self._postprocessors)

    def add_preprocessor(self, fn: Processor) -> None:
        if not _contains(self._preprocessors, fn):
            self._preprocessors.append(fn)

    def remove_preprocessor(self, fn: Processor) -> None:
        self._preprocessors = [p for p in self._preprocessors if p != fn]

    def add_postprocessor(self, fn: Processor) -> None:
        if not _contains(self._postprocessors, fn):
            self._postprocessors.append(fn)

    def remove_postprocessor(self, fn: Processor) -> None:
        self._postprocessors = [p for p in self._postprocessors if p != fn]

    def parse(self, abbr: str, options: dict[str, Any] | None = None) -> AbbreviationNode:
        """
        Parse `abbr` into an optimized tree.

        `options` is passed untouched to every processor.
        """
        if options is None:
            options = {}

        try:
            tree = parse_abbreviation(abbr)
        except RecursionError as e:
            raise RunawayInputError("Abbreviation nests too deeply to parse") from e
        logger.debug("parsed %r into %d top-level nodes", abbr, len(tree.children))

        for fn in list(self._preprocessors):
            fn(tree, options)

        try:
            tree = squash(unroll(tree))
        except RecursionError as e:
            raise RunawayInputError("Abbreviation tree nests too deeply to optimize") from e
        logger.debug("optimized %r into %d top-level nodes", abbr, len(tree.children))

        for fn in list(self._postprocessors):
            fn(tree, options)

        return tree


def _contains(processors: list[Processor], fn: Processor) -> bool:
    # == so that bound methods of the same object match
    return any(p == fn for p in processors)


def parse(abbr: str, options: dict[str, Any] | None = None,
          pipeline: Pipeline | None = None) -> AbbreviationNode:
    """Parse with `pipeline`, or with no processors when none is given."""
    if pipeline is None:
        pipeline = Pipeline()
    return pipeline.parse(abbr, options)
