"""
Resource resolution.

A ResourceResolver is a pre-processor: it looks up every parsed element name
in a table of known resources and attaches the match to the node, so that
`name` and `attribute_list()` report the resolved element.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from .dom import AbbreviationNode, Resource

logger = logging.getLogger("zentree.resources")


class ResourceResolver:
    """Pre-processor attaching resources by case-insensitive element name."""

    def __init__(self, resources: Mapping[str, Resource] | None = None):
        self._resources: dict[str, Resource] = {}
        for key, resource in (resources or {}).items():
            self.register(key, resource)

    def register(self, key: str, resource: Resource) -> None:
        self._resources[key.lower()] = resource

    def lookup(self, name: str | None) -> Resource | None:
        if not name:
            return None
        return self._resources.get(name.lower())

    def __len__(self) -> int:
        return len(self._resources)

    def __call__(self, tree: AbbreviationNode, options: dict[str, Any]) -> None:
        for node in tree.depth_first():
            if node is tree:
                continue
            resource = self.lookup(node.element_name)
            if resource is not None:
                logger.debug("resolved %r to %s %r", node.element_name, resource.kind, resource.name)
                node.resource = resource

    @classmethod
    def from_mapping(cls, data: Mapping[str, Mapping[str, Any]]) -> ResourceResolver:
        """Build from config data: {key: {name, attributes, kind}}."""
        return cls({key: Resource.from_mapping(key, value) for key, value in data.items()})
