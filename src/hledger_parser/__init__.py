"""hledger-parser: parse hledger journals into an immutable syntax tree.

Pipeline: scan lines -> classify each top-level line -> parse the item
(transaction, directive, comment) -> assemble a JournalFile plus diagnostics.

Example:
    from hledger_parser import parse

    result = parse(open("2024.journal").read(), path="2024.journal")
    for txn in result.journal.transactions:
        print(txn.date.raw, txn.note)
    for diagnostic in result.diagnostics:
        print(diagnostic)
"""

__version__ = "0.1.0"

from .ast import (
    AccountComment,
    AccountDirective,
    AliasSubdirective,
    Amount,
    AssertSubdirective,
    BalanceAssertion,
    BlockComment,
    CheckSubdirective,
    Commodity,
    CommodityDirective,
    CostClause,
    Date,
    DecimalMarkDirective,
    DirectiveNode,
    IncludeDirective,
    JournalFile,
    NoteSubdirective,
    PayeeDirective,
    PeriodicTransaction,
    Posting,
    PriceDirective,
    Quantity,
    TagDirective,
    TopComment,
    Transaction,
    TypeSubdirective,
)
from .config import ParserConfig
from .errors import (
    Diagnostic,
    ErrorKind,
    LexicalError,
    ParseError,
    Severity,
    SourceSpan,
    StructuralError,
    UnterminatedConstruct,
)
from .logging_setup import configure_logging
from .parser import JournalParser, ParseResult, parse, parse_file
from .scanner import Scanner

__all__ = [
    # Parse
    "parse",
    "parse_file",
    "JournalParser",
    "ParseResult",
    "ParserConfig",
    "Scanner",
    # Errors
    "ParseError",
    "LexicalError",
    "StructuralError",
    "UnterminatedConstruct",
    "Diagnostic",
    "ErrorKind",
    "Severity",
    "SourceSpan",
    # AST
    "JournalFile",
    "Transaction",
    "PeriodicTransaction",
    "Posting",
    "Date",
    "Amount",
    "Commodity",
    "Quantity",
    "CostClause",
    "BalanceAssertion",
    "DirectiveNode",
    "IncludeDirective",
    "DecimalMarkDirective",
    "TagDirective",
    "CommodityDirective",
    "PriceDirective",
    "PayeeDirective",
    "AccountDirective",
    "AliasSubdirective",
    "NoteSubdirective",
    "CheckSubdirective",
    "AssertSubdirective",
    "TypeSubdirective",
    "AccountComment",
    "BlockComment",
    "TopComment",
    # Logging
    "configure_logging",
]
