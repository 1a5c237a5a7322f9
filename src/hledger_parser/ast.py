"""AST nodes for hledger journals."""

import calendar
from datetime import date
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field

from .errors import SourceSpan


class Node(BaseModel):
    model_config = ConfigDict(frozen=True)

    span: SourceSpan | None = Field(default=None, repr=False)


# Tokens
class Date(BaseModel):
    """A journal date (e.g. 2024-01-31, 24/1/31 or 01.31)."""

    model_config = ConfigDict(frozen=True)

    raw: str
    year: int | None = None  # None for year-less dates (MM-DD)
    month: int
    day: int
    separator: Literal["-", "/", "."] = "-"

    @property
    def triple(self) -> tuple[int | None, int, int]:
        return (self.year, self.month, self.day)

    def to_date(self, default_year: int | None = None) -> date:
        """Convert to ``datetime.date``. Two-digit years are taken as 20YY."""
        year = self.year if self.year is not None else default_year
        if year is None:
            raise ValueError(f"date {self.raw!r} has no year")
        if year < 100:
            year += 2000
        return date(year, self.month, self.day)

    @staticmethod
    def days_in_month(year: int | None, month: int) -> int:
        # Leap-permissive unless the full year is written out
        if year is None or year < 100:
            return calendar.monthrange(2000, month)[1]
        return calendar.monthrange(year, month)[1]


class Commodity(BaseModel):
    model_config = ConfigDict(frozen=True)

    symbol: str  # without quotes
    quoted: bool = False

    def __str__(self) -> str:
        return f'"{self.symbol}"' if self.quoted else self.symbol


class Quantity(BaseModel):
    """A signed decimal number, kept as written.

    Grouping and decimal marks are not interpreted here; which of ``.``,
    ``,`` or space is the decimal mark depends on the journal's
    ``decimal-mark`` directive.
    """

    model_config = ConfigDict(frozen=True)

    sign: Literal["", "+", "-"] = ""
    digits: str  # e.g. "1,000.50" or "10 000"

    @property
    def negative(self) -> bool:
        return self.sign == "-"

    @property
    def marks(self) -> tuple[str, ...]:
        """Non-digit characters in the order they appear."""
        return tuple(c for c in self.digits if not c.isdigit())

    def __str__(self) -> str:
        return f"{self.sign}{self.digits}"


class Amount(BaseModel):
    model_config = ConfigDict(frozen=True)

    commodity: Commodity
    quantity: Quantity
    commodity_first: bool = False  # "$10" vs "10 USD"
    spacing: str = ""  # whitespace between commodity and quantity, at most one char

    def __str__(self) -> str:
        if self.commodity_first:
            return f"{self.commodity}{self.spacing}{self.quantity}"
        return f"{self.quantity}{self.spacing}{self.commodity}"


class CostClause(BaseModel):
    """``@ AMOUNT`` (unit cost) or ``@@ AMOUNT`` (total cost)."""

    model_config = ConfigDict(frozen=True)

    operator: Literal["@", "@@"]
    amount: Amount

    @property
    def total(self) -> bool:
        return self.operator == "@@"


class BalanceAssertion(BaseModel):
    """``= AMOUNT`` and its variants ``=*``, ``==`` and ``==*``."""

    model_config = ConfigDict(frozen=True)

    operator: Literal["=", "=*", "==", "==*"]
    amount: Amount

    @property
    def total(self) -> bool:
        """``==`` asserts the account holds no other commodity."""
        return self.operator.startswith("==")

    @property
    def inclusive(self) -> bool:
        """``*`` includes subaccount balances."""
        return self.operator.endswith("*")


# Transactions
class Posting(Node):
    """One posting line. A comment-only line has no account."""

    type: Literal["posting"] = "posting"
    status: Literal["*", "!"] | None = None
    account: str | None = None
    amount: Amount | None = None
    cost: CostClause | None = None
    assertion: BalanceAssertion | None = None
    comment: str | None = None

    @property
    def is_comment(self) -> bool:
        return self.account is None


class Transaction(Node):
    type: Literal["transaction"] = "transaction"
    date: Date
    status: Literal["*", "!"] | None = None
    code: str | None = None
    payee: str | None = None  # only set when the description has a " | " separator
    note: str | None = None
    comment: str | None = None
    postings: tuple[Posting, ...] = ()

    @property
    def description(self) -> str | None:
        if self.payee is not None:
            return f"{self.payee} | {self.note or ''}".rstrip()
        return self.note


class PeriodicTransaction(Node):
    """``~ monthly from 2024`` followed by postings."""

    type: Literal["periodic_transaction"] = "periodic_transaction"
    period: str
    note: str | None = None
    comment: str | None = None
    postings: tuple[Posting, ...] = ()


# Directives
class DirectiveNode(Node):
    comment: str | None = None


class IncludeDirective(DirectiveNode):
    type: Literal["include"] = "include"
    path: str
    absolute: bool = False


class DecimalMarkDirective(DirectiveNode):
    type: Literal["decimal_mark"] = "decimal_mark"
    mark: Literal[".", ","]


class TagDirective(DirectiveNode):
    type: Literal["tag"] = "tag"
    name: str


class CommodityDirective(DirectiveNode):
    """``commodity USD`` or ``commodity $1,000.00`` (symbol plus display format)."""

    type: Literal["commodity"] = "commodity"
    commodity: Commodity
    amount: Amount | None = None


class PriceDirective(DirectiveNode):
    type: Literal["price"] = "price"
    date: Date
    commodity: Commodity
    amount: Amount


class PayeeDirective(DirectiveNode):
    type: Literal["payee"] = "payee"
    name: str


# Account subdirectives
class SubdirectiveNode(Node):
    comment: str | None = None


class AliasSubdirective(SubdirectiveNode):
    type: Literal["alias"] = "alias"
    value: str


class NoteSubdirective(SubdirectiveNode):
    type: Literal["note"] = "note"
    text: str


class CheckSubdirective(SubdirectiveNode):
    type: Literal["check"] = "check"
    text: str


class AssertSubdirective(SubdirectiveNode):
    type: Literal["assert"] = "assert"
    text: str


ACCOUNT_TYPES = ("A", "L", "E", "R", "X", "C", "V")


class TypeSubdirective(SubdirectiveNode):
    """Account type: Asset, Liability, Equity, Revenue, eXpense, Cash, conVersion."""

    type: Literal["type"] = "type"
    account_type: Literal["A", "L", "E", "R", "X", "C", "V"]


class AccountComment(Node):
    type: Literal["comment"] = "comment"
    text: str


AccountSubdirective = Annotated[
    AliasSubdirective
    | NoteSubdirective
    | CheckSubdirective
    | AssertSubdirective
    | TypeSubdirective
    | AccountComment,
    Field(discriminator="type"),
]


class AccountDirective(DirectiveNode):
    type: Literal["account"] = "account"
    name: str
    subdirectives: tuple[AccountSubdirective, ...] = ()


Directive = Annotated[
    IncludeDirective
    | DecimalMarkDirective
    | TagDirective
    | CommodityDirective
    | PriceDirective
    | PayeeDirective
    | AccountDirective,
    Field(discriminator="type"),
]


# Comments
class BlockComment(Node):
    """Text between ``comment`` and ``end comment``, kept verbatim."""

    type: Literal["block_comment"] = "block_comment"
    body: str
    heading: str | None = None  # text after "comment" on the opening line
    terminated: bool = True


class TopComment(Node):
    type: Literal["top_comment"] = "top_comment"
    marker: Literal[";", "#"] = ";"
    text: str


JournalItem = Annotated[
    Transaction
    | PeriodicTransaction
    | IncludeDirective
    | DecimalMarkDirective
    | TagDirective
    | CommodityDirective
    | PriceDirective
    | PayeeDirective
    | AccountDirective
    | BlockComment
    | TopComment,
    Field(discriminator="type"),
]


class JournalFile(BaseModel):
    """A parsed journal, items in source order."""

    model_config = ConfigDict(frozen=True)

    path: str = ""
    items: tuple[JournalItem, ...] = ()

    @property
    def transactions(self) -> list[Transaction]:
        return [item for item in self.items if isinstance(item, Transaction)]

    @property
    def directives(self) -> list[DirectiveNode]:
        return [item for item in self.items if isinstance(item, DirectiveNode)]
