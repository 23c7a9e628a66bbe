"""
DOM - Abbreviation tree for Zentree

Every parsed abbreviation produces a tree of AbbreviationNodes under a
synthetic root. The root only owns top-level children and is never treated
as content.

Key invariant: a non-root node appears exactly once in its parent's children,
and `parent` always points back at that parent. Nodes compare by identity.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from typing import Any

from .attributes import (
    Attribute,
    extract_text,
    optimize_attributes,
    parse_attributes,
    split_multiplier,
)
from .exceptions import InvalidNameError

VALID_NAME_PATTERN = re.compile(r"^[\w\-$:@!]+\+?$", re.ASCII)

NodePredicate = Callable[["AbbreviationNode"], bool]


@dataclass
class Resource:
    """Externally resolved descriptor for an element name."""
    name: str
    attributes: list[Attribute] = field(default_factory=list)
    kind: str = "element"

    @property
    def is_element(self) -> bool:
        return self.kind == "element"

    @classmethod
    def from_mapping(cls, key: str, data: dict[str, Any]) -> Resource:
        """Build from config data: {name = "...", attributes = {k = v}, kind = "..."}."""
        attrs = data.get("attributes", {})
        return cls(
            name=str(data.get("name", key)),
            attributes=[Attribute(name=str(k), value=str(v)) for k, v in attrs.items()],
            kind=str(data.get("kind", "element")),
        )


@dataclass(eq=False)
class AbbreviationNode:
    """A node in the abbreviation tree."""
    abbreviation: str = ""  # raw token attributed to this node, without multiplier
    element_name: str | None = None  # name parsed from the token
    text: str = ""
    attributes: list[Attribute] = field(default_factory=list)
    repeat_count: int = 1
    has_implicit_repeat: bool = False
    counter: int = 1
    data: dict[str, Any] = field(default_factory=dict)
    resource: Resource | None = None
    children: list[AbbreviationNode] = field(default_factory=list)
    parent: AbbreviationNode | None = field(default=None, repr=False)

    # output slots, filled in by a renderer
    start: str = ""
    end: str = ""
    padding: str = ""

    def add_child(self, child: AbbreviationNode | None = None,
                  position: int | None = None) -> AbbreviationNode:
        """Attach `child` (or a fresh node) and return it for chaining."""
        if child is None:
            child = AbbreviationNode()
        child.parent = self
        if position is None:
            self.children.append(child)
        else:
            self.children.insert(position, child)
        return child

    def clone(self) -> AbbreviationNode:
        """Deep copy; the clone has no parent until attached."""
        node = AbbreviationNode(
            abbreviation=self.abbreviation,
            element_name=self.element_name,
            text=self.text,
            attributes=[Attribute(name=a.name, value=a.value) for a in self.attributes],
            repeat_count=self.repeat_count,
            has_implicit_repeat=self.has_implicit_repeat,
            counter=self.counter,
            data=dict(self.data),
            resource=self.resource,
        )
        for child in self.children:
            node.add_child(child.clone())
        return node

    def remove(self) -> AbbreviationNode:
        """Detach from parent's children. No-op for parentless nodes."""
        if self.parent is not None:
            self.parent.children = [c for c in self.parent.children if c is not self]
            self.parent = None
        return self

    def replace(self, *nodes: AbbreviationNode | list[AbbreviationNode]) -> None:
        """
        Put `nodes` in place of this node in its parent's children.

        Accepts nodes and lists of nodes; replacing with nothing removes the
        node. Replacements are reparented to this node's parent.
        """
        parent = self.parent
        if parent is None:
            raise ValueError("Cannot replace a node without a parent")

        items: list[AbbreviationNode] = []
        for item in nodes:
            if isinstance(item, AbbreviationNode):
                items.append(item)
            else:
                items.extend(item)

        ix = self.index()
        parent.children[ix:ix + 1] = items
        for item in items:
            item.parent = parent
        if not any(item is self for item in items):
            self.parent = None

    def index(self) -> int:
        """Position within parent's children, by identity."""
        if self.parent is None:
            raise ValueError("Node has no parent")
        for i, child in enumerate(self.parent.children):
            if child is self:
                return i
        raise ValueError("Node is not among its parent's children")

    def update_property(self, name: str, value: Any) -> None:
        """Set `name` to `value` on this node and every descendant."""
        if not hasattr(self, name):
            raise AttributeError(f"AbbreviationNode has no property {name!r}")
        setattr(self, name, value)
        for child in self.children:
            child.update_property(name, value)

    def find(self, predicate: NodePredicate) -> AbbreviationNode | None:
        """First descendant (depth-first, pre-order) matching `predicate`."""
        for child in self.children:
            if predicate(child):
                return child
            found = child.find(predicate)
            if found is not None:
                return found
        return None

    def find_all(self, predicate: NodePredicate) -> list[AbbreviationNode]:
        """All descendants matching `predicate`, in pre-order."""
        result: list[AbbreviationNode] = []
        for child in self.children:
            if predicate(child):
                result.append(child)
            result.extend(child.find_all(predicate))
        return result

    def find_by_name(self, name: str) -> AbbreviationNode | None:
        return self.find(_name_matcher(name))

    def find_all_by_name(self, name: str) -> list[AbbreviationNode]:
        return self.find_all(_name_matcher(name))

    def depth_first(self) -> Iterator[AbbreviationNode]:
        """Traverse tree depth-first, yielding self then children."""
        yield self
        for child in self.children:
            yield from child.depth_first()

    def deepest_child(self) -> AbbreviationNode | None:
        """Follow the last child down to a leaf. None if this node is a leaf."""
        if not self.children:
            return None
        node = self
        while node.children:
            node = node.children[-1]
        return node

    def set_repeat(self, count: str | int | None) -> None:
        """Apply a multiplier: digits set the count, a bare `*` sets the implicit flag."""
        if count:
            self.repeat_count = int(count) or 1
        else:
            self.has_implicit_repeat = True

    def set_abbreviation(self, abbr: str | None) -> None:
        """Assign a raw token and parse its multiplier, text, name and attributes."""
        abbr, count, implicit = split_multiplier(abbr or "")
        if count is not None or implicit:
            self.set_repeat(count)

        self.abbreviation = abbr

        text_match = extract_text(abbr)
        if text_match is not None:
            abbr = text_match.element
            self.text = text_match.text

        attrs_match = parse_attributes(abbr)
        if attrs_match is not None:
            abbr = attrs_match.element
            self.attributes = attrs_match.attributes

        self.element_name = abbr or None

        if self.element_name and not VALID_NAME_PATTERN.match(self.element_name):
            raise InvalidNameError(f"Invalid abbreviation name: {self.element_name!r}")

    @property
    def name(self) -> str | None:
        """Resolved element name: the matched resource's, else the parsed one."""
        if self.resource is not None and self.resource.is_element:
            return self.resource.name
        return self.element_name

    def attribute_list(self) -> list[Attribute]:
        """Resource attributes followed by own attributes, optimized."""
        attrs: list[Attribute] = []
        if self.resource is not None and self.resource.is_element:
            attrs.extend(self.resource.attributes)
        attrs.extend(self.attributes)
        return optimize_attributes(attrs)

    def attribute(self, name: str) -> str | None:
        for attr in self.attribute_list():
            if attr.name == name:
                return attr.value
        return None

    def is_group(self) -> bool:
        """Node only holds children merged from a group or an empty operand."""
        return not self.abbreviation

    def is_empty(self) -> bool:
        return not self.abbreviation and not self.children

    def is_repeating(self) -> bool:
        return self.repeat_count > 1 or self.has_implicit_repeat

    def is_text_node(self) -> bool:
        return not self.name and bool(self.text)

    def is_element(self) -> bool:
        return not self.is_empty() and not self.is_text_node()

    def has_empty_children(self) -> bool:
        return any(child.is_empty() for child in self.children)

    def has_implicit_name(self) -> bool:
        """No name but has attributes, e.g. `.item`; a renderer picks the tag."""
        return not self.name and bool(self.attributes)

    def to_string(self) -> str:
        inner = "".join(child.to_string() for child in self.children)
        return self.start + self.text + inner + self.end

    def to_dict(self) -> dict[str, Any]:
        """Plain structure of the resolved view, for JSON output and comparisons."""
        return {
            "name": self.name,
            "abbreviation": self.abbreviation,
            "text": self.text,
            "attributes": [{"name": a.name, "value": a.value} for a in self.attribute_list()],
            "counter": self.counter,
            "repeat_count": self.repeat_count,
            "has_implicit_repeat": self.has_implicit_repeat,
            "children": [child.to_dict() for child in self.children],
        }


def _name_matcher(name: str) -> NodePredicate:
    wanted = name.lower()
    return lambda node: (node.name or "").lower() == wanted
