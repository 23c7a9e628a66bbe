"""
Character cursor over an abbreviation string.

Position-tracked view used by the scanner and the attribute sub-parsers.
`start` and `pos` are plain attributes: callers mark a span by setting
`start = pos`, consume, then read `current()`.
"""

from __future__ import annotations

import re
from collections.abc import Callable

Matcher = str | re.Pattern[str] | Callable[[str], bool]

SPACE_PATTERN = re.compile(r"[ \t\xa0]")


class StringStream:
    """Cursor over a string with a marked span start."""

    def __init__(self, string: str):
        self.string = string
        self.pos = 0
        self.start = 0

    def eol(self) -> bool:
        """True when the cursor is at the end of the string."""
        return self.pos >= len(self.string)

    def peek(self) -> str:
        """Current character, or "" at end of string."""
        return self.string[self.pos:self.pos + 1]

    def next(self) -> str:
        """Consume and return current character ("" at end)."""
        ch = self.peek()
        if ch:
            self.pos += 1
        return ch

    def eat(self, match: Matcher) -> str:
        """Consume current character if it satisfies `match`."""
        ch = self.peek()
        if isinstance(match, str):
            ok = ch == match
        elif isinstance(match, re.Pattern):
            ok = bool(ch) and match.match(ch) is not None
        else:
            ok = bool(ch) and match(ch)
        if ok:
            self.pos += 1
            return ch
        return ""

    def eat_while(self, match: Matcher) -> bool:
        """Consume a maximal run of matching characters. True if any consumed."""
        start = self.pos
        while self.eat(match):
            pass
        return self.pos > start

    def eat_space(self) -> bool:
        start = self.pos
        while self.pos < len(self.string) and SPACE_PATTERN.match(self.string[self.pos]):
            self.pos += 1
        return self.pos > start

    def skip_to_pair(self, open_ch: str, close_ch: str) -> bool:
        """
        With the cursor on `open_ch`, move past its balanced `close_ch`.

        Nested pairs of the same kind are counted. Returns False and leaves
        the cursor where it was if no matching close is found.
        """
        brace_count = 0
        pos = self.pos
        length = len(self.string)
        while pos < length:
            ch = self.string[pos]
            pos += 1
            if ch == open_ch:
                brace_count += 1
            elif ch == close_ch:
                brace_count -= 1
                if brace_count < 1:
                    self.pos = pos
                    return True
        return False

    def back_up(self, n: int) -> None:
        self.pos -= n

    def match(self, pattern: str | re.Pattern[str], consume: bool = True,
              case_insensitive: bool = False) -> re.Match[str] | bool | None:
        """
        Match `pattern` at the cursor.

        String patterns are compared literally and return a bool; regex
        patterns return the match object (or None).
        """
        if isinstance(pattern, str):
            candidate = self.string[self.pos:self.pos + len(pattern)]
            if case_insensitive:
                matched = candidate.lower() == pattern.lower()
            else:
                matched = candidate == pattern
            if matched and consume:
                self.pos += len(pattern)
            return matched

        m = pattern.match(self.string, self.pos)
        if m and consume:
            self.pos = m.end()
        return m

    def current(self) -> str:
        """Substring from `start` to `pos`."""
        return self.string[self.start:self.pos]
