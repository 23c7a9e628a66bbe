"""
Attribute and text sub-parsers.

Work on a single abbreviation token such as `a#top.nav[href=# title="Hi"]{Home}*2`:
- multiplier: trailing `*` with optional digits
- text: first unescaped `{...}` outside of `[...]`/`(...)`
- attributes: `#id`, `.class` and `[name=value ...]` sets; the first marker
  ends the element name
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from .exceptions import (
    InvalidAttributeSetError,
    InvalidAttributeValueError,
    UnmatchedDelimiterError,
)
from .stream import StringStream

# JavaScript-style word characters: ASCII only
WORD_PATTERN = re.compile(r"[\w\-:$]", re.ASCII)

MULTIPLIER_PATTERN = re.compile(r"\*(\d+)?$")

PAIRS = {
    "[": "]",
    "(": ")",
    "{": "}",
}

SHORTHAND_ATTRIBUTES = {
    "#": "id",
    ".": "class",
}


@dataclass
class Attribute:
    """A single (name, value) attribute pair."""
    name: str
    value: str = ""


@dataclass
class TextMatch:
    """Result of text extraction: the token with `{...}` removed, and the text."""
    element: str
    text: str


@dataclass
class AttributesMatch:
    """Result of attribute extraction: element name and optimized attributes."""
    element: str
    attributes: list[Attribute] = field(default_factory=list)


def stripped(value: str) -> str:
    """Drop the first and last character (the delimiters)."""
    return value[1:-1]


def split_multiplier(abbr: str) -> tuple[str, int | None, bool]:
    """
    Remove a trailing multiplier from `abbr`.

    Returns (abbr_without_multiplier, repeat_count, implicit). `repeat_count`
    is None when there is no multiplier or it has no digits; a bare `*`
    reports `implicit=True`. `*0` resolves to 1.
    """
    m = MULTIPLIER_PATTERN.search(abbr)
    if not m:
        return abbr, None, False
    rest = abbr[:m.start()]
    if m.group(1):
        return rest, int(m.group(1)) or 1, False
    return rest, None, True


def consume_quoted_value(stream: StringStream, quote: str) -> bool:
    """Consume up to and including the closing `quote`, honoring backslashes."""
    while True:
        ch = stream.next()
        if not ch:
            return False
        if ch == quote:
            return True
        if ch == "\\":
            stream.next()


def extract_attributes(attr_set: str) -> list[Attribute]:
    """
    Parse the inside of an attribute set: `attr col=3 title="Quoted string"`.

    Values may be double- or single-quoted (backslash escapes the quote) or a
    bare word. An attribute without `=value` gets an empty value.
    """
    stream = StringStream(attr_set.strip())
    result: list[Attribute] = []
    stream.eat_space()

    while not stream.eol():
        stream.start = stream.pos
        if not stream.eat_while(WORD_PATTERN):
            break

        attr_name = stream.current()
        attr_value = ""
        if stream.peek() == "=":
            stream.next()
            stream.start = stream.pos
            quote = stream.next()
            if quote in ('"', "'") and consume_quoted_value(stream, quote):
                attr_value = stripped(stream.current()).replace("\\" + quote, quote)
            elif quote and quote not in ('"', "'") and not quote.isspace():
                # bare value: any leading character, then word characters
                stream.eat_while(WORD_PATTERN)
                attr_value = stream.current()
            else:
                raise InvalidAttributeValueError(
                    f"Invalid attribute value for {attr_name!r} at position {stream.start}",
                    position=stream.start,
                )

        result.append(Attribute(name=attr_name, value=attr_value))
        stream.eat_space()

    return result


def parse_attributes(abbr: str) -> AttributesMatch | None:
    """
    Pull `#id`, `.class` and `[...]` attribute sets out of `abbr`.

    Returns None if the token has no attributes at all.
    """
    result: list[Attribute] = []
    name_end: int | None = None
    stream = StringStream(abbr)

    while not stream.eol():
        ch = stream.peek()
        if ch in SHORTHAND_ATTRIBUTES:
            if name_end is None:
                name_end = stream.pos
            stream.next()
            stream.start = stream.pos
            stream.eat_while(WORD_PATTERN)
            result.append(Attribute(name=SHORTHAND_ATTRIBUTES[ch], value=stream.current()))
        elif ch == "[":
            if name_end is None:
                name_end = stream.pos
            stream.start = stream.pos
            if not stream.skip_to_pair("[", "]"):
                raise InvalidAttributeSetError(
                    f"Invalid attribute set definition at position {stream.pos}",
                    position=stream.pos,
                )
            attrs = extract_attributes(stripped(stream.current()))
            if not attrs:
                raise InvalidAttributeSetError(
                    f"Empty attribute set at position {stream.start}",
                    position=stream.start,
                )
            result.extend(attrs)
        else:
            stream.next()

    if not result:
        return None

    return AttributesMatch(
        element=abbr[:name_end],
        attributes=optimize_attributes(result),
    )


def extract_text(abbr: str) -> TextMatch | None:
    """
    Extract text from `a{hello}` as TextMatch(element="a", text="hello").

    `[...]` and `(...)` spans are skipped without looking inside; a backslash
    escapes the following character. Returns None when there is no text.
    """
    if "{" not in abbr:
        return None

    stream = StringStream(abbr)
    while not stream.eol():
        ch = stream.peek()
        if ch in ("[", "("):
            if not stream.skip_to_pair(ch, PAIRS[ch]):
                stream.next()
        elif ch == "\\":
            stream.next()
            stream.next()
        elif ch == "{":
            stream.start = stream.pos
            if not stream.skip_to_pair("{", "}"):
                raise UnmatchedDelimiterError(
                    f'Invalid abbreviation: no matching "}}" found for character at {stream.pos}',
                    position=stream.pos,
                )
            return TextMatch(
                element=abbr[:stream.start],
                text=stripped(stream.current()),
            )
        else:
            stream.next()

    return None


def optimize_attributes(attrs: list[Attribute]) -> list[Attribute]:
    """
    Merge duplicate attributes, keeping the first occurrence's position.

    `class` values (case-insensitive) are joined with a space; any other
    repeated attribute takes the last value. Input objects are not modified.
    """
    lookup: dict[str, Attribute] = {}
    result: list[Attribute] = []

    for attr in attrs:
        if attr.name not in lookup:
            copy = Attribute(name=attr.name, value=attr.value)
            lookup[attr.name] = copy
            result.append(copy)
            continue

        existing = lookup[attr.name]
        if attr.name.lower() == "class":
            existing.value += (" " if existing.value else "") + attr.value
        else:
            existing.value = attr.value

    return result
