"""Directive parsers.

Grammar (SEP is two or more spaces/tabs, WS one or more):
    include       = "include" WS file_path [SEP comment]
    decimal_mark  = "decimal-mark" WS ("." | ",") [SEP comment]
    tag           = "tag" WS TAG [SEP comment]
    commodity     = "commodity" WS (amount | commodity) [SEP comment]
    price         = "P" WS date WS commodity WS amount [SEP comment]
    payee         = "payee" WS TEXT [SEP comment]
    account       = "account" WS account [SEP comment] NL subdirective*
    subdirective  = INDENT ("alias" WS ALIAS | "note" WS TEXT | "check" WS TEXT
                           | "assert" WS TEXT | "type" WS TYPE | comment)

Every directive is a single line except ``account``, whose indented
subdirective lines follow it.
"""

import re
from collections.abc import Callable

from . import ast
from .amounts import parse_amount, parse_commodity
from .classifier import LineKind, classify_subdirective
from .errors import LexicalError
from .scanner import WHITESPACE, Cursor, Line, read_date, split_comment
from .transactions import ACCOUNT_PATTERN, block_span

_SEGMENT = r"[^\s\\/]+"
ABSOLUTE_PATH = re.compile(rf"(?:/|[A-Za-z]:[\\/])(?:{_SEGMENT}(?:[\\/]{_SEGMENT})*)?")
RELATIVE_PATH = re.compile(rf"(?:\.\.?/)?{_SEGMENT}(?:[\\/]{_SEGMENT})*")
TAG_PATTERN = re.compile(r"[^\s;]+")
ALIAS_PATTERN = re.compile(r"[^\s;]+")
TEXT_PATTERN = re.compile(r"[^;]+")


def _start(line: Line, keyword: str, what: str) -> Cursor:
    cursor = Cursor(line, len(keyword))
    cursor.expect_whitespace(what)
    return cursor


def _end_of_word(cursor: Cursor) -> bool:
    return cursor.peek() in ("", " ", "\t")


def parse_include(line: Line) -> ast.IncludeDirective:
    cursor = _start(line, "include", "file path")
    m = cursor.match(ABSOLUTE_PATH)
    absolute = m is not None
    if m is None:
        m = cursor.match(RELATIVE_PATH)
    if m is None:
        raise cursor.error("expected a file path")
    comment = cursor.read_trailer()
    return ast.IncludeDirective(
        path=m.group(0), absolute=absolute, comment=comment, span=line.span()
    )


def parse_decimal_mark(line: Line) -> ast.DecimalMarkDirective:
    cursor = _start(line, "decimal-mark", "decimal mark")
    mark = cursor.peek()
    if mark not in (".", ","):
        raise cursor.error(f"decimal mark must be '.' or ',', got {cursor.rest().strip()!r}")
    cursor.pos += 1
    if not _end_of_word(cursor):
        raise cursor.error(f"decimal mark must be '.' or ',', got {cursor.rest().strip()!r}")
    comment = cursor.read_trailer()
    return ast.DecimalMarkDirective(mark=mark, comment=comment, span=line.span())


def parse_tag(line: Line) -> ast.TagDirective:
    cursor = _start(line, "tag", "tag name")
    m = cursor.match(TAG_PATTERN)
    if m is None:
        raise cursor.error("expected a tag name")
    comment = cursor.read_trailer()
    return ast.TagDirective(name=m.group(0), comment=comment, span=line.span())


def parse_commodity_directive(line: Line) -> ast.CommodityDirective:
    """``commodity`` takes a full amount (a display format) or a bare symbol."""
    cursor = _start(line, "commodity", "commodity")
    start = cursor.pos
    try:
        amount = parse_amount(cursor)
        commodity = amount.commodity
    except LexicalError:
        cursor.pos = start
        amount = None
        commodity = parse_commodity(cursor)
    comment = cursor.read_trailer()
    return ast.CommodityDirective(
        commodity=commodity, amount=amount, comment=comment, span=line.span()
    )


def parse_price(line: Line) -> ast.PriceDirective:
    cursor = _start(line, "P", "date")
    date = read_date(cursor)
    cursor.expect_whitespace("commodity")
    commodity = parse_commodity(cursor)
    cursor.expect_whitespace("price amount")
    amount = parse_amount(cursor)
    comment = cursor.read_trailer()
    return ast.PriceDirective(
        date=date, commodity=commodity, amount=amount, comment=comment, span=line.span()
    )


def parse_payee(line: Line) -> ast.PayeeDirective:
    cursor = _start(line, "payee", "payee name")
    body, comment = split_comment(cursor.rest())
    name = body.strip(WHITESPACE)
    if not name:
        raise cursor.error("expected a payee name")
    if ";" in name:
        cursor.pos += body.index(";")
        raise cursor.error("payee name cannot contain ';'")
    return ast.PayeeDirective(name=name, comment=comment, span=line.span())


def _read_subdirective_comment(cursor: Cursor) -> str | None:
    cursor.skip_whitespace()
    if cursor.at(";"):
        return cursor.rest()[1:].strip()
    if not cursor.at_end():
        raise cursor.error(f"unexpected text {cursor.rest().strip()!r}")
    return None


def _read_text(cursor: Cursor, what: str) -> str:
    m = cursor.match(TEXT_PATTERN)
    text = m.group(0).strip(WHITESPACE) if m else ""
    if not text:
        raise cursor.error(f"expected {what}")
    return text


def parse_account_subdirective(line: Line) -> ast.AccountSubdirective:
    """Parse one indented line under an ``account`` directive."""
    cursor = Cursor(line)
    cursor.skip_whitespace()
    start_col = cursor.col
    span = line.span(start_col, len(line.text.rstrip(WHITESPACE)) + 1)

    classification = classify_subdirective(line)
    if classification.kind is LineKind.COMMENT:
        return ast.AccountComment(text=cursor.rest()[1:].strip(), span=span)
    if classification.kind is not LineKind.SUBDIRECTIVE:
        word = (cursor.rest().split() or [cursor.rest()])[0]
        raise cursor.error(f"unknown account subdirective {word!r}")

    keyword = classification.keyword
    cursor.pos += len(keyword)
    cursor.expect_whitespace(f"{keyword} value")

    if keyword == "alias":
        m = cursor.match(ALIAS_PATTERN)
        if m is None:
            raise cursor.error("expected an alias")
        return ast.AliasSubdirective(
            value=m.group(0), comment=_read_subdirective_comment(cursor), span=span
        )
    if keyword == "type":
        account_type = cursor.peek()
        cursor.pos += 1
        if account_type not in ast.ACCOUNT_TYPES or not _end_of_word(cursor):
            cursor.pos -= 1
            raise cursor.error(
                f"account type must be one of {', '.join(ast.ACCOUNT_TYPES)}, "
                f"got {cursor.rest().strip()!r}"
            )
        return ast.TypeSubdirective(
            account_type=account_type, comment=_read_subdirective_comment(cursor), span=span
        )

    node_class = {
        "note": ast.NoteSubdirective,
        "check": ast.CheckSubdirective,
        "assert": ast.AssertSubdirective,
    }[keyword]
    text = _read_text(cursor, f"{keyword} text")
    return node_class(text=text, comment=_read_subdirective_comment(cursor), span=span)


def parse_account(lines: list[Line]) -> ast.AccountDirective:
    """Parse ``account NAME`` and its subdirective lines."""
    line = lines[0]
    cursor = _start(line, "account", "account name")
    m = cursor.match(ACCOUNT_PATTERN)
    if m is None:
        raise cursor.error("expected an account name")

    comment = None
    cursor.skip_whitespace()
    if cursor.at(";"):
        comment = cursor.rest()[1:].strip()
    elif not cursor.at_end():
        raise cursor.error(f"unexpected text {cursor.rest().strip()!r}")

    subdirectives = tuple(
        parse_account_subdirective(sub) for sub in lines[1:] if not sub.is_blank
    )
    return ast.AccountDirective(
        name=m.group(0),
        subdirectives=subdirectives,
        comment=comment,
        span=block_span(lines),
    )


SINGLE_LINE_PARSERS: dict[str, Callable[[Line], ast.DirectiveNode]] = {
    "include": parse_include,
    "decimal-mark": parse_decimal_mark,
    "tag": parse_tag,
    "commodity": parse_commodity_directive,
    "P": parse_price,
    "payee": parse_payee,
}


def takes_subdirectives(keyword: str) -> bool:
    return keyword == "account"


def parse_directive(keyword: str, lines: list[Line]) -> ast.DirectiveNode:
    """Dispatch to the parser for ``keyword``.

    Only ``account`` accepts continuation lines; callers pass the rest
    as a single-element list.
    """
    if takes_subdirectives(keyword):
        return parse_account(lines)
    return SINGLE_LINE_PARSERS[keyword](lines[0])
