"""Line scanner and token readers for hledger journals.

The scanner splits source text into physical lines and provides a
``Cursor`` for reading tokens out of a single line. Whitespace is
structural in journals, so the readers never skip it implicitly: a
field separator is two or more spaces/tabs, a single space belongs to
the surrounding field.
"""

import re
import unicodedata
from collections.abc import Iterator
from dataclasses import dataclass

from . import ast
from .errors import LexicalError, SourceSpan

WHITESPACE = " \t"

DATE_PATTERN = re.compile(
    r"""
    (?:
        (?P<year>\d{4}|\d{1,2}) (?P<sep>[-/.]) (?P<month>\d{1,2}) (?P=sep) (?P<day>\d{1,2})
        |
        (?P<short_month>\d{1,2}) (?P<short_sep>[-/.]) (?P<short_day>\d{1,2})
    )
    (?!\d)
    """,
    re.VERBOSE,
)
QUANTITY_PATTERN = re.compile(r"(?P<sign>[+-]?)(?P<digits>\d+(?:[,. ]\d+)*)")
FIELD_SEPARATOR = re.compile(r"[ \t]{2,}")
SEPARATED_COMMENT = re.compile(r"[ \t]{2,};(?P<text>.*)$")


@dataclass
class Line:
    number: int  # 1-based
    text: str  # without the line terminator
    ending: str  # "\n", "\r\n" or "" for the last line
    offset: int  # offset of the first character in the source

    @property
    def indent(self) -> str:
        return self.text[: len(self.text) - len(self.text.lstrip(WHITESPACE))]

    @property
    def is_indented(self) -> bool:
        return bool(self.indent) and not self.is_blank

    @property
    def is_blank(self) -> bool:
        # Any Unicode whitespace, so form feeds and stray CRs count as blank
        return not self.text.strip()

    @property
    def raw(self) -> str:
        return self.text + self.ending

    def span(self, start_col: int = 1, end_col: int | None = None) -> SourceSpan:
        if end_col is None:
            end_col = len(self.text) + 1
        return SourceSpan(
            start_line=self.number, start_col=start_col, end_line=self.number, end_col=end_col
        )


class Scanner:
    """Splits journal text into physical lines.

    ``lines()`` can be called any number of times; each call returns a new
    lazy iterator starting at the given offset.
    """

    def __init__(self, source: str):
        # A leading BOM is not part of the first line
        self.source = source[1:] if source.startswith("\ufeff") else source

    def lines(self, start: int = 0) -> Iterator[Line]:
        source = self.source
        number = source.count("\n", 0, start) + 1
        pos = start
        while pos < len(source):
            end = source.find("\n", pos)
            if end == -1:
                yield Line(number, source[pos:], "", pos)
                return
            text = source[pos:end]
            if text.endswith("\r"):
                yield Line(number, text[:-1], "\r\n", pos)
            else:
                yield Line(number, text, "\n", pos)
            pos = end + 1
            number += 1

    def __iter__(self) -> Iterator[Line]:
        return self.lines()


class Cursor:
    """Reads tokens from one line, left to right."""

    def __init__(self, line: Line, pos: int = 0):
        self.line = line
        self.text = line.text
        self.pos = pos

    @property
    def col(self) -> int:
        return self.pos + 1

    def peek(self, offset: int = 0) -> str:
        idx = self.pos + offset
        if idx < len(self.text):
            return self.text[idx]
        return ""

    def at(self, *prefixes: str) -> bool:
        return any(self.text.startswith(p, self.pos) for p in prefixes)

    def at_end(self) -> bool:
        """True when only whitespace remains."""
        return not self.text[self.pos :].strip(WHITESPACE)

    def rest(self) -> str:
        return self.text[self.pos :]

    def match(self, pattern: re.Pattern) -> re.Match | None:
        m = pattern.match(self.text, self.pos)
        if m:
            self.pos = m.end()
        return m

    def skip_whitespace(self) -> str:
        start = self.pos
        while self.peek() and self.peek() in WHITESPACE:
            self.pos += 1
        return self.text[start : self.pos]

    def expect_whitespace(self, what: str) -> str:
        ws = self.skip_whitespace()
        if not ws:
            raise self.error(f"expected whitespace before {what}")
        return ws

    def at_separator(self) -> bool:
        return FIELD_SEPARATOR.match(self.text, self.pos) is not None

    def error(self, msg: str) -> LexicalError:
        return LexicalError(msg, self.line.number, self.col)

    def span_from(self, start_col: int) -> SourceSpan:
        return self.line.span(start_col, self.col)

    def read_trailer(self) -> str | None:
        """Read an optional separated ``;`` comment and require end of line.

        Returns the comment text, or None when the line just ends.
        """
        if self.at_end():
            self.pos = len(self.text)
            return None
        m = self.match(SEPARATED_COMMENT)
        if m:
            return m.group("text").strip()
        raise self.error(f"unexpected text {self.rest().strip()!r}")


def is_field_separator(text: str) -> bool:
    return FIELD_SEPARATOR.fullmatch(text) is not None


def split_comment(text: str) -> tuple[str, str | None]:
    """Split ``text`` at the first field separator followed by ``;``."""
    m = SEPARATED_COMMENT.search(text)
    if not m:
        return text, None
    return text[: m.start()], m.group("text").strip()


def read_date(cursor: Cursor) -> ast.Date:
    """Read a date token: Y-M-D with a 4 or 1-2 digit year, or M-D.

    Separators may be ``-``, ``/`` or ``.`` but must be the same throughout.
    """
    start = cursor.pos
    m = cursor.match(DATE_PATTERN)
    if not m:
        raise cursor.error(f"expected a date, got {cursor.rest()[:10]!r}")

    if m.group("year") is not None:
        year = int(m.group("year"))
        month, day, sep = int(m.group("month")), int(m.group("day")), m.group("sep")
    else:
        year = None
        month, day, sep = int(m.group("short_month")), int(m.group("short_day")), m.group("short_sep")

    raw = m.group(0)
    if not 1 <= month <= 12:
        cursor.pos = start
        raise cursor.error(f"invalid month in date {raw!r}")
    if not 1 <= day <= ast.Date.days_in_month(year, month):
        cursor.pos = start
        raise cursor.error(f"invalid day in date {raw!r}")

    return ast.Date(raw=raw, year=year, month=month, day=day, separator=sep)


def starts_with_date(text: str) -> bool:
    return DATE_PATTERN.match(text) is not None


def read_quantity(cursor: Cursor) -> ast.Quantity | None:
    """Read a signed number such as ``-1,000.50`` or ``+10 000``."""
    m = cursor.match(QUANTITY_PATTERN)
    if not m:
        return None
    return ast.Quantity(sign=m.group("sign"), digits=m.group("digits"))


def is_currency_symbol(ch: str) -> bool:
    return unicodedata.category(ch) == "Sc"


def read_commodity(cursor: Cursor) -> ast.Commodity | None:
    """Read a commodity: a run of letters, one currency symbol, or a quoted string.

    Returns None when no commodity starts at the cursor.
    """
    ch = cursor.peek()
    if not ch:
        return None

    if ch == '"':
        end = cursor.text.find('"', cursor.pos + 1)
        if end == -1:
            raise cursor.error("unterminated quoted commodity")
        symbol = cursor.text[cursor.pos + 1 : end]
        cursor.pos = end + 1
        return ast.Commodity(symbol=symbol, quoted=True)

    # str.isalpha() is exactly the Unicode letter categories (Lu, Ll, Lt, Lm, Lo)
    if ch.isalpha():
        start = cursor.pos
        while cursor.peek().isalpha():
            cursor.pos += 1
        return ast.Commodity(symbol=cursor.text[start : cursor.pos])

    if is_currency_symbol(ch):
        cursor.pos += 1
        return ast.Commodity(symbol=ch)

    return None
