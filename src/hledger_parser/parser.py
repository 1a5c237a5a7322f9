"""Journal parser: assembles journal items from classified lines.

Each top-level item (transaction, directive, comment) is parsed on its
own. A malformed item is recorded as a diagnostic carrying its raw text
and parsing resumes at the next top-level line, so one bad transaction
never hides the rest of the file.
"""

from collections.abc import Callable
from pathlib import Path

from pydantic import BaseModel, ConfigDict

from . import ast
from .classifier import BLOCK_COMMENT_START, LineKind, Mode, classify_line
from .config import ParserConfig
from .directives import parse_directive, takes_subdirectives
from .errors import (
    Diagnostic,
    LexicalError,
    ParseError,
    Severity,
    SourceSpan,
    StructuralError,
    UnterminatedConstruct,
)
from .logging_setup import get_logger
from .scanner import Line, Scanner
from .transactions import parse_periodic_transaction, parse_transaction

logger = get_logger(__name__)


class ParseResult(BaseModel):
    """The parsed journal plus everything that went wrong along the way."""

    model_config = ConfigDict(frozen=True)

    journal: ast.JournalFile
    diagnostics: tuple[Diagnostic, ...] = ()

    @property
    def errors(self) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.severity is Severity.ERROR]

    @property
    def warnings(self) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.severity is Severity.WARNING]

    @property
    def ok(self) -> bool:
        return not self.errors

    def raise_for_errors(self) -> None:
        """Raise the first error diagnostic as its ParseError subclass."""
        if self.errors:
            raise self.errors[0].to_error()


class JournalParser:
    """Single-pass parser over one journal's text."""

    def __init__(self, source: str, config: ParserConfig | None = None):
        self.config = config or ParserConfig()
        self.scanner = Scanner(source)
        self.lines: list[Line] = []
        self.items: list[ast.JournalItem] = []
        self.diagnostics: list[Diagnostic] = []

    def parse(self) -> ParseResult:
        self.lines = list(self.scanner.lines())
        self.items = []
        self.diagnostics = []

        pos = 0
        while pos < len(self.lines):
            pos = self._parse_at(pos)

        journal = ast.JournalFile(path=self.config.path, items=tuple(self.items))
        logger.info(
            "parsed %s: %d items, %d diagnostics",
            self.config.path or "<string>",
            len(self.items),
            len(self.diagnostics),
        )
        return ParseResult(journal=journal, diagnostics=tuple(self.diagnostics))

    def _parse_at(self, pos: int) -> int:
        """Parse the item starting at line index ``pos``; return the next index."""
        line = self.lines[pos]
        classification = classify_line(line, Mode.TOP_LEVEL)
        kind = classification.kind

        if kind is LineKind.BLANK:
            return pos + 1

        if kind is LineKind.BLOCK_COMMENT_START:
            return self._parse_block_comment(pos)

        if kind is LineKind.TOP_COMMENT:
            self._add(
                ast.TopComment(marker=line.text[0], text=line.text[1:].strip(), span=line.span())
            )
            return pos + 1

        if kind is LineKind.INDENTED:
            self._report(
                StructuralError(
                    "indented line outside of a transaction or account directive",
                    line.number,
                    len(line.indent) + 1,
                ),
                [line],
            )
            return pos + 1

        if kind is LineKind.TRANSACTION:
            end = self._body_end(pos)
            self._parse_item(parse_transaction, self.lines[pos:end])
            return end

        if kind is LineKind.PERIODIC_TRANSACTION:
            end = self._body_end(pos)
            if self.config.periodic_transactions:
                self._parse_item(parse_periodic_transaction, self.lines[pos:end])
            else:
                self._report(
                    StructuralError("periodic transactions are disabled", line.number, 1),
                    self.lines[pos:end],
                )
            return end

        if kind is LineKind.DIRECTIVE:
            keyword = classification.keyword
            end = self._body_end(pos) if takes_subdirectives(keyword) else pos + 1
            self._parse_item(
                lambda lines: parse_directive(keyword, lines), self.lines[pos:end]
            )
            return end

        word = (line.text.split() or [line.text])[0]
        self._report(
            LexicalError(f"unrecognized line starting with {word!r}", line.number, 1), [line]
        )
        return pos + 1

    def _body_end(self, pos: int) -> int:
        """Index after the indented lines belonging to the item at ``pos``.

        Blank lines inside the body are kept; trailing ones are not.
        """
        end = pos + 1
        scan = pos + 1
        while scan < len(self.lines):
            line = self.lines[scan]
            if line.is_blank:
                scan += 1
                continue
            if not line.is_indented:
                break
            scan += 1
            end = scan
        return end

    def _parse_block_comment(self, pos: int) -> int:
        start = self.lines[pos]
        heading = start.text[len(BLOCK_COMMENT_START) :].strip() or None
        for end in range(pos + 1, len(self.lines)):
            if classify_line(self.lines[end], Mode.BLOCK_COMMENT).kind is LineKind.BLOCK_COMMENT_END:
                self._add(
                    ast.BlockComment(
                        body=_join(self.lines[pos + 1 : end]),
                        heading=heading,
                        span=_span(start, self.lines[end]),
                    )
                )
                return end + 1

        # No terminator: the rest of the input is the comment body
        last = self.lines[-1]
        self._add(
            ast.BlockComment(
                body=_join(self.lines[pos + 1 :]),
                heading=heading,
                terminated=False,
                span=_span(start, last),
            )
        )
        severity = None if self.config.allow_unterminated_block_comment else Severity.ERROR
        self._report(
            UnterminatedConstruct(
                "block comment has no 'end comment'; it extends to end of input",
                start.number,
                1,
            ),
            [],
            span=_span(start, last),
            severity=severity,
        )
        return len(self.lines)

    def _parse_item(
        self, parse_fn: Callable[[list[Line]], ast.JournalItem], lines: list[Line]
    ) -> None:
        try:
            item = parse_fn(lines)
        except ParseError as e:
            self._report(e, lines)
            return
        self._add(item)

    def _add(self, item: ast.JournalItem) -> None:
        logger.debug("line %d: %s", item.span.start_line if item.span else 0, item.type)
        self.items.append(item)

    def _report(
        self,
        error: ParseError,
        lines: list[Line],
        span: SourceSpan | None = None,
        severity: Severity | None = None,
    ) -> None:
        if span is None:
            span = _error_span(error, lines)
        diagnostic = Diagnostic.from_error(
            error,
            span,
            path=self.config.path,
            unparsed="".join(line.raw for line in lines) or None,
            severity=severity,
        )
        logger.debug("recovered from %s", diagnostic)
        if self.config.strict and diagnostic.severity is Severity.ERROR:
            raise error
        self.diagnostics.append(diagnostic)


def _join(lines: list[Line]) -> str:
    body = "".join(line.raw for line in lines)
    if lines:
        body = body.removesuffix(lines[-1].ending)
    return body


def _span(start: Line, end: Line) -> SourceSpan:
    return SourceSpan(
        start_line=start.number, start_col=1, end_line=end.number, end_col=len(end.text) + 1
    )


def _error_span(error: ParseError, lines: list[Line]) -> SourceSpan:
    """From the error position to the end of the offending line."""
    line = next((line for line in lines if line.number == error.line), None)
    if line is None:
        return SourceSpan(
            start_line=error.line, start_col=error.col, end_line=error.line, end_col=error.col
        )
    return line.span(error.col, max(error.col, len(line.text) + 1))


def parse(source: str, path: str = "", config: ParserConfig | None = None, **overrides) -> ParseResult:
    """Parse journal text into a ParseResult.

    Keyword overrides (``strict=True`` etc.) are applied on top of ``config``.
    """
    config = (config or ParserConfig()).with_overrides(**overrides)
    if path:
        config = config.with_overrides(path=path)
    return JournalParser(source, config).parse()


def parse_file(filepath: str | Path, config: ParserConfig | None = None, **overrides) -> ParseResult:
    """Parse a journal file. Included files are not followed."""
    filepath = Path(filepath)
    source = filepath.read_text(encoding="utf-8")
    return parse(source, str(filepath), config, **overrides)
