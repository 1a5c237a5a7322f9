"""Transaction parsing.

Grammar:
    transaction  = heading [SEP comment] NL posting*
    heading      = date [WS status] [WS code] [WS description]
    description  = payee WS "|" [WS note] | note
    posting      = INDENT (comment | [status WS] account [SEP amount_clause] [SEP comment])
    periodic     = "~" WS period [SEP note] [SEP comment] NL posting*

SEP is a field separator: two or more spaces/tabs. A single space is part
of the field it appears in, which is how account names hold spaces.
A status mark must be followed by whitespace; a description cannot start
with `*` or `!`.
"""

import re
from dataclasses import dataclass

from . import ast
from .amounts import parse_amount_clause
from .errors import SourceSpan, StructuralError
from .scanner import WHITESPACE, Cursor, Line, read_date, split_comment

STATUS_MARKS = ("*", "!")
ACCOUNT_PATTERN = re.compile(r"[^;\s]+(?: [^;\s]+)*")
PERIOD_PATTERN = re.compile(r"[a-zA-Z0-9/.-]+(?: [a-zA-Z0-9/.-]+)*")
PAYEE_SEPARATOR = re.compile(r"(?:^|[ \t])\|(?:[ \t]|$)")


@dataclass
class Heading:
    date: ast.Date
    status: str | None
    code: str | None
    payee: str | None
    note: str | None
    comment: str | None


def block_span(lines: list[Line]) -> SourceSpan:
    """Span from the first line to the end of the last non-blank line."""
    last = next((line for line in reversed(lines) if not line.is_blank), lines[0])
    return SourceSpan(
        start_line=lines[0].number,
        start_col=1,
        end_line=last.number,
        end_col=len(last.text) + 1,
    )


def _read_status(cursor: Cursor) -> str | None:
    ch = cursor.peek()
    if ch in STATUS_MARKS and cursor.peek(1) in ("", " ", "\t"):
        cursor.pos += 1
        cursor.skip_whitespace()
        return ch
    return None


def split_description(text: str) -> tuple[str | None, str | None]:
    """Split a description into (payee, note).

    Only a ``|`` with whitespace (or the line edge) on both sides separates
    the payee from the note. Without one the whole text is the note.
    """
    m = PAYEE_SEPARATOR.search(text)
    if m is None:
        return None, text.strip() or None
    payee = text[: m.start()].strip()
    note = text[m.end() :].strip()
    return payee or None, note or None


def parse_heading(line: Line) -> Heading:
    cursor = Cursor(line)
    date = read_date(cursor)
    if not cursor.at_end() and cursor.peek() not in WHITESPACE:
        raise cursor.error("expected whitespace after date")

    body, comment = split_comment(cursor.rest())
    body_end = cursor.pos + len(body)

    cursor.skip_whitespace()
    status = _read_status(cursor)
    if status is None and cursor.peek() in STATUS_MARKS:
        raise cursor.error(f"expected whitespace after status mark {cursor.peek()!r}")

    code = None
    if cursor.peek() == "(":
        close = cursor.text.find(")", cursor.pos, body_end)
        if close == -1:
            raise cursor.error("unterminated transaction code")
        code = cursor.text[cursor.pos + 1 : close]
        cursor.pos = close + 1
        if cursor.pos < body_end and cursor.peek() not in WHITESPACE:
            raise cursor.error("expected whitespace after transaction code")

    payee, note = split_description(cursor.text[cursor.pos : body_end])
    return Heading(date, status, code, payee, note, comment)


def parse_posting(line: Line) -> ast.Posting:
    """Parse one indented posting line."""
    cursor = Cursor(line)
    if not cursor.skip_whitespace():
        raise StructuralError("posting must be indented", line.number, 1)
    start_col = cursor.col

    if cursor.peek() == ";":
        return ast.Posting(comment=cursor.rest()[1:].strip(), span=line.span(start_col))

    status = _read_status(cursor)
    m = cursor.match(ACCOUNT_PATTERN)
    if not m:
        raise cursor.error("expected an account name")
    account = m.group(0)

    amount = cost = assertion = None
    comment = None
    separator = cursor.skip_whitespace()
    if cursor.at(";"):
        comment = cursor.rest()[1:].strip()
    elif not cursor.at_end():
        if len(separator) < 2:
            raise cursor.error("expected two or more spaces between account and amount")
        amount, cost, assertion = parse_amount_clause(cursor)
        comment = cursor.read_trailer()

    return ast.Posting(
        status=status,
        account=account,
        amount=amount,
        cost=cost,
        assertion=assertion,
        comment=comment,
        span=line.span(start_col, len(line.text.rstrip(WHITESPACE)) + 1),
    )


def _parse_postings(lines: list[Line]) -> tuple[ast.Posting, ...]:
    return tuple(parse_posting(line) for line in lines if not line.is_blank)


def parse_transaction(lines: list[Line]) -> ast.Transaction:
    """Parse a heading line and the indented lines that follow it."""
    heading = parse_heading(lines[0])
    return ast.Transaction(
        date=heading.date,
        status=heading.status,
        code=heading.code,
        payee=heading.payee,
        note=heading.note,
        comment=heading.comment,
        postings=_parse_postings(lines[1:]),
        span=block_span(lines),
    )


def parse_periodic_transaction(lines: list[Line]) -> ast.PeriodicTransaction:
    """Parse ``~ PERIOD [  note] [  ; comment]`` and its postings."""
    cursor = Cursor(lines[0])
    if not cursor.at("~"):
        raise cursor.error("expected '~'")
    cursor.pos += 1
    cursor.expect_whitespace("period expression")

    m = cursor.match(PERIOD_PATTERN)
    if not m:
        raise cursor.error("expected a period expression")

    body, comment = split_comment(cursor.rest())
    separator = body[: len(body) - len(body.lstrip(WHITESPACE))]
    if body.strip(WHITESPACE) and len(separator) < 2:
        raise cursor.error(f"unexpected text {body.strip()!r} after period expression")

    return ast.PeriodicTransaction(
        period=m.group(0),
        note=body.strip() or None,
        comment=comment,
        postings=_parse_postings(lines[1:]),
        span=block_span(lines),
    )
