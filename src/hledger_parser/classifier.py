"""Line classification.

Decides which journal item a physical line begins, given the current
mode. Classification looks only at the start of the line; the matching
parser validates the rest.
"""

from dataclasses import dataclass
from enum import Enum

from .scanner import WHITESPACE, Line

DIRECTIVE_KEYWORDS = (
    "include",
    "decimal-mark",
    "tag",
    "commodity",
    "P",
    "payee",
    "account",
)

SUBDIRECTIVE_KEYWORDS = ("alias", "note", "check", "assert", "type")

BLOCK_COMMENT_START = "comment"
BLOCK_COMMENT_END = "end comment"


class Mode(Enum):
    TOP_LEVEL = "top-level"
    BLOCK_COMMENT = "inside-block-comment"


class LineKind(Enum):
    BLANK = "blank"
    BLOCK_COMMENT_START = "block_comment_start"
    BLOCK_COMMENT_BODY = "block_comment_body"
    BLOCK_COMMENT_END = "block_comment_end"
    TOP_COMMENT = "top_comment"
    DIRECTIVE = "directive"
    TRANSACTION = "transaction"
    PERIODIC_TRANSACTION = "periodic_transaction"
    INDENTED = "indented"
    SUBDIRECTIVE = "subdirective"
    COMMENT = "comment"
    UNKNOWN = "unknown"


@dataclass
class Classification:
    kind: LineKind
    keyword: str | None = None


def leading_keyword(text: str, keywords: tuple[str, ...]) -> str | None:
    """Return the keyword ``text`` starts with, if it is followed by whitespace or nothing."""
    for keyword in keywords:
        if text.startswith(keyword):
            after = text[len(keyword) : len(keyword) + 1]
            if not after or after in WHITESPACE:
                return keyword
    return None


def classify_line(line: Line, mode: Mode = Mode.TOP_LEVEL) -> Classification:
    """Classify a physical line in the given mode.

    Indented lines are reported as INDENTED; whether they are postings,
    account subdirectives or stray lines depends on the enclosing item.
    """
    text = line.text

    if mode is Mode.BLOCK_COMMENT:
        if text.rstrip(WHITESPACE) == BLOCK_COMMENT_END:
            return Classification(LineKind.BLOCK_COMMENT_END)
        return Classification(LineKind.BLOCK_COMMENT_BODY)

    if line.is_blank:
        return Classification(LineKind.BLANK)
    if line.is_indented:
        return Classification(LineKind.INDENTED)
    if leading_keyword(text, (BLOCK_COMMENT_START,)) is not None:
        return Classification(LineKind.BLOCK_COMMENT_START)
    if text[0] in ";#":
        return Classification(LineKind.TOP_COMMENT)
    if text[0] == "~":
        return Classification(LineKind.PERIODIC_TRANSACTION)
    if text[0].isdigit():
        return Classification(LineKind.TRANSACTION)

    keyword = leading_keyword(text, DIRECTIVE_KEYWORDS)
    if keyword is not None:
        return Classification(LineKind.DIRECTIVE, keyword)

    return Classification(LineKind.UNKNOWN)


def classify_subdirective(line: Line) -> Classification:
    """Classify an indented line inside an ``account`` directive."""
    text = line.text.lstrip(WHITESPACE)
    if text.startswith(";"):
        return Classification(LineKind.COMMENT)
    keyword = leading_keyword(text, SUBDIRECTIVE_KEYWORDS)
    if keyword is not None:
        return Classification(LineKind.SUBDIRECTIVE, keyword)
    return Classification(LineKind.UNKNOWN)
