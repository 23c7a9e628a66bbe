"""
Abbreviation parser.

Builds the raw (unoptimized) tree from an abbreviation like
`div#page>(header>h1{Title})+ul.nav>li*3>a[href=#]`.

Structural operators:
- `>`  descend: next token becomes a child of the current one
- `+`  sibling: next token becomes a child of the current one's parent
- `^`  climb: next token becomes a child of the current one's grandparent
- `(...)` group: children of the inner tree merge into the current node;
  a trailing multiplier repeats the current node itself
"""

from __future__ import annotations

import logging
import re
import string

from .attributes import PAIRS, stripped
from .dom import AbbreviationNode
from .exceptions import (
    InvalidAttributeSetError,
    InvalidNameError,
    RunawayInputError,
    UnmatchedDelimiterError,
)
from .stream import StringStream

logger = logging.getLogger("zentree.parser")

# Hard cap on scan steps per (sub)abbreviation
MAX_SCAN_ITERATIONS = 1000

# Hard cap on `(...)` nesting
MAX_GROUP_DEPTH = 100

TOKEN_CHARS = frozenset(string.ascii_letters + string.digits + "#.*:$-_!@|")
OPERATOR_CHARS = frozenset(">+^[](){}")

# characters after which a `+` is an expando marker rather than an operator
EXPANDO_FOLLOWERS = "+>^*"

GROUP_MULTIPLIER_PATTERN = re.compile(r"\*(\d+)?")


def is_token_char(ch: str) -> bool:
    """True if `ch` may appear in a bare abbreviation token."""
    return ch in TOKEN_CHARS


def is_allowed_char(ch: str) -> bool:
    """
    True if `ch` is valid in an abbreviation: a token character or an operator.

    Lets an editor decide, while the user types, whether the text before the
    caret may still be an abbreviation.
    """
    ch = str(ch)
    return len(ch) == 1 and (ch in TOKEN_CHARS or ch in OPERATOR_CHARS)


def parse_abbreviation(abbr: str) -> AbbreviationNode:
    """Parse `abbr` into a raw tree and return its synthetic root."""
    return _parse(abbr, 0)


def _parse(abbr: str, depth: int) -> AbbreviationNode:
    if depth > MAX_GROUP_DEPTH:
        raise RunawayInputError(f"Groups nested deeper than {MAX_GROUP_DEPTH} levels")

    abbr = abbr.strip()

    root = AbbreviationNode()
    context = root.add_child()
    stream = StringStream(abbr)
    loop_protector = MAX_SCAN_ITERATIONS

    while not stream.eol():
        loop_protector -= 1
        if loop_protector <= 0:
            break

        ch = stream.peek()

        if ch == "(":
            context = _consume_group(stream, context, depth)
        elif ch == ">":
            context = context.add_child()
            stream.next()
        elif ch == "+":
            context = _parent_or_self(context).add_child()
            stream.next()
        elif ch == "^":
            parent = _parent_or_self(context)
            context = _parent_or_self(parent).add_child()
            stream.next()
        else:
            _consume_token(stream, context)

    if loop_protector <= 0:
        raise RunawayInputError(
            f"Endless loop detected: reached the limit of {MAX_SCAN_ITERATIONS} scan steps",
            position=stream.pos,
        )

    return root


def _parent_or_self(node: AbbreviationNode) -> AbbreviationNode:
    return node.parent if node.parent is not None else node


def _consume_group(stream: StringStream, context: AbbreviationNode, depth: int) -> AbbreviationNode:
    """Parse a `(...)` group and merge its top-level children into `context`."""
    stream.start = stream.pos
    if not stream.skip_to_pair("(", ")"):
        raise UnmatchedDelimiterError(
            f'Invalid abbreviation: no matching ")" found for character at {stream.pos}',
            position=stream.pos,
        )

    inner = _parse(stripped(stream.current()), depth + 1)

    multiplier = stream.match(GROUP_MULTIPLIER_PATTERN, True)
    if multiplier:
        context.set_repeat(multiplier.group(1))

    for child in list(inner.children):
        context.add_child(child)
    return context


def _consume_token(stream: StringStream, context: AbbreviationNode) -> None:
    """Consume a bare token and assign it to `context`."""
    stream.start = stream.pos

    def accept(c: str) -> bool:
        if c in ("[", "{"):
            if stream.skip_to_pair(c, PAIRS[c]):
                # leave the closing char for eat() to consume
                stream.back_up(1)
                return True
            error = InvalidAttributeSetError if c == "[" else UnmatchedDelimiterError
            raise error(
                f'Invalid abbreviation: no matching "{PAIRS[c]}" found for character at {stream.pos}',
                position=stream.pos,
            )

        if c == "+":
            # `+` at the end or before another operator is part of the name (`ul+`)
            stream.next()
            is_marker = stream.eol() or stream.peek() in EXPANDO_FOLLOWERS
            stream.back_up(1)
            return is_marker

        return c != "(" and is_token_char(c)

    if not stream.eat_while(accept):
        raise InvalidNameError(
            f"Invalid abbreviation: unexpected character {stream.peek()!r} at {stream.pos}",
            position=stream.pos,
        )

    token = stream.current()
    logger.debug("token %r at %d", token, stream.start)
    context.set_abbreviation(token)
    stream.start = stream.pos
