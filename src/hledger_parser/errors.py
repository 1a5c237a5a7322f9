"""Error taxonomy and diagnostics for journal parsing.

Component parsers raise ``ParseError`` subclasses. Only the assembler
catches them; it turns each one into a ``Diagnostic`` and carries on with
the next journal item.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


class ErrorKind(str, Enum):
    LEXICAL = "lexical"
    STRUCTURAL = "structural"
    UNTERMINATED = "unterminated"


class SourceSpan(BaseModel):
    """Line/column range of a node. Lines and columns are 1-based, end column exclusive."""

    model_config = ConfigDict(frozen=True)

    start_line: int
    start_col: int
    end_line: int
    end_col: int


class ParseError(Exception):
    kind = ErrorKind.LEXICAL
    severity = Severity.ERROR

    def __init__(self, msg: str, line: int, col: int):
        super().__init__(f"line {line}, col {col}: {msg}")
        self.msg = msg
        self.line = line
        self.col = col


class LexicalError(ParseError):
    """A required token is missing or malformed (e.g. an invalid date)."""

    kind = ErrorKind.LEXICAL


class StructuralError(ParseError):
    """A line does not fit the expected nesting (e.g. a posting with no transaction)."""

    kind = ErrorKind.STRUCTURAL


class UnterminatedConstruct(ParseError):
    """A block construct reached end of input without its terminator."""

    kind = ErrorKind.UNTERMINATED
    severity = Severity.WARNING


ERROR_CLASSES: dict[ErrorKind, type[ParseError]] = {
    ErrorKind.LEXICAL: LexicalError,
    ErrorKind.STRUCTURAL: StructuralError,
    ErrorKind.UNTERMINATED: UnterminatedConstruct,
}


class Diagnostic(BaseModel):
    """A problem found while parsing, reported alongside the partial AST."""

    model_config = ConfigDict(frozen=True)

    kind: ErrorKind
    severity: Severity
    message: str
    span: SourceSpan
    path: str = ""
    unparsed: str | None = None  # raw text of the skipped item, if any

    @classmethod
    def from_error(
        cls,
        error: ParseError,
        span: SourceSpan,
        path: str = "",
        unparsed: str | None = None,
        severity: Severity | None = None,
    ) -> "Diagnostic":
        return cls(
            kind=error.kind,
            severity=severity or error.severity,
            message=error.msg,
            span=span,
            path=path,
            unparsed=unparsed,
        )

    def to_error(self) -> ParseError:
        """Rebuild the exception this diagnostic was recorded from."""
        return ERROR_CLASSES[self.kind](self.message, self.span.start_line, self.span.start_col)

    def __str__(self) -> str:
        location = f"{self.path}:" if self.path else ""
        return (
            f"{location}{self.span.start_line}:{self.span.start_col}: "
            f"{self.severity.value}: {self.message}"
        )
