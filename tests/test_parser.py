"""End-to-end tests for the journal parser."""

import logging

import pytest
from pydantic import ValidationError

from hledger_parser import (
    AccountDirective,
    BlockComment,
    CommodityDirective,
    DecimalMarkDirective,
    ErrorKind,
    IncludeDirective,
    JournalFile,
    LexicalError,
    ParserConfig,
    PayeeDirective,
    PeriodicTransaction,
    PriceDirective,
    Severity,
    TagDirective,
    TopComment,
    Transaction,
    UnterminatedConstruct,
    parse,
    parse_file,
)
from hledger_parser.logging_setup import _parse_level

SAMPLE = """\
; journal for 2024
# kept by hand
include prices.journal
decimal-mark .
commodity $1,000.00
account assets:bank checking  ; main account
    alias checking
    type A

P 2024-01-01 EUR 1.10 USD
payee Acme Corp
tag project
comment
anything goes here
2024-99-99 not parsed
end comment

2024-01-01 * Opening balances
    assets:bank checking  $1,000.00
    equity:opening

2024-01-15 ! (42) Acme Corp | Invoice  ; paid late
    assets:bank checking  $500.00 = $1,500.00
    ; received by wire
    income:consulting  -450 EUR @@ $500.00

~ monthly  Rent
    expenses:rent  $1,200.00
    assets:bank checking
"""


class TestSampleJournal:
    """A journal using every kind of item."""

    @pytest.fixture
    def result(self):
        return parse(SAMPLE, path="2024.journal")

    def test_no_diagnostics(self, result):
        assert result.diagnostics == ()
        assert result.ok

    def test_items_in_source_order(self, result):
        assert [type(item) for item in result.journal.items] == [
            TopComment,
            TopComment,
            IncludeDirective,
            DecimalMarkDirective,
            CommodityDirective,
            AccountDirective,
            PriceDirective,
            PayeeDirective,
            TagDirective,
            BlockComment,
            Transaction,
            Transaction,
            PeriodicTransaction,
        ]

    def test_top_comments(self, result):
        first, second = result.journal.items[:2]
        assert (first.marker, first.text) == (";", "journal for 2024")
        assert (second.marker, second.text) == ("#", "kept by hand")

    def test_account_directive(self, result):
        account = result.journal.items[5]
        assert account.name == "assets:bank checking"
        assert len(account.subdirectives) == 2
        assert account.span.start_line == 6
        assert account.span.end_line == 8

    def test_block_comment_is_verbatim(self, result):
        block = result.journal.items[9]
        assert block.body == "anything goes here\n2024-99-99 not parsed"
        assert block.terminated
        assert (block.span.start_line, block.span.end_line) == (13, 16)

    def test_transactions(self, result):
        opening, invoice = result.journal.transactions
        assert opening.status == "*"
        assert opening.note == "Opening balances"
        assert opening.postings[1].amount is None

        assert invoice.status == "!"
        assert invoice.code == "42"
        assert invoice.payee == "Acme Corp"
        assert invoice.note == "Invoice"
        assert invoice.comment == "paid late"
        bank, wire, income = invoice.postings
        assert bank.assertion.operator == "="
        assert str(bank.assertion.amount) == "$1,500.00"
        assert wire.is_comment
        assert wire.comment == "received by wire"
        assert income.cost.total
        assert str(income.amount) == "-450 EUR"

    def test_periodic_transaction(self, result):
        periodic = result.journal.items[-1]
        assert periodic.period == "monthly"
        assert periodic.note == "Rent"
        assert len(periodic.postings) == 2

    def test_directives_property(self, result):
        assert len(result.journal.directives) == 7

    def test_path(self, result):
        assert result.journal.path == "2024.journal"

    def test_idempotent(self, result):
        assert parse(SAMPLE, path="2024.journal") == result

    def test_dump_and_validate(self, result):
        """The tree survives a round trip through plain data."""
        journal = result.journal
        assert JournalFile.model_validate(journal.model_dump()) == journal


class TestFieldSeparator:
    def test_two_spaces_split_account_and_amount(self):
        txn = parse("2024-01-01 x\n    assets:cash  100 USD\n").journal.transactions[0]
        assert txn.postings[0].account == "assets:cash"
        assert str(txn.postings[0].amount) == "100 USD"

    def test_one_space_keeps_text_in_account(self):
        txn = parse("2024-01-01 x\n    assets:cash 100 USD\n").journal.transactions[0]
        assert txn.postings[0].account == "assets:cash 100 USD"
        assert txn.postings[0].amount is None


class TestBlockComments:
    def test_unterminated_runs_to_end_of_input(self):
        result = parse("comment\nfoo\nbar\n")
        (block,) = result.journal.items
        assert block.body == "foo\nbar"
        assert not block.terminated
        (warning,) = result.diagnostics
        assert warning.kind is ErrorKind.UNTERMINATED
        assert warning.severity is Severity.WARNING
        assert result.ok

    def test_unterminated_as_error(self):
        result = parse("comment\nfoo\n", allow_unterminated_block_comment=False)
        assert len(result.journal.items) == 1
        assert result.errors[0].kind is ErrorKind.UNTERMINATED
        assert not result.ok

    def test_terminated_with_trailing_whitespace(self):
        result = parse("comment  \n  indented text\nend comment \n2024-01-01 x\n")
        block, txn = result.journal.items
        assert block.body == "  indented text"
        assert isinstance(txn, Transaction)

    def test_empty_block(self):
        (block,) = parse("comment\nend comment\n").journal.items
        assert block.body == ""
        assert block.heading is None

    def test_text_after_opening_keyword(self):
        result = parse("comment  imported 2024-01\nx\nend comment\n2024-01-01 y\n")
        assert result.diagnostics == ()
        block, txn = result.journal.items
        assert block.heading == "imported 2024-01"
        assert block.body == "x"
        assert isinstance(txn, Transaction)

    def test_unterminated_keeps_earlier_items(self):
        result = parse("tag a\n2024-01-01 x\n    a  1 USD\ncomment\nfoo\n")
        assert [type(item) for item in result.journal.items] == [
            TagDirective,
            Transaction,
            BlockComment,
        ]
        assert len(result.journal.transactions[0].postings) == 1
        block = result.journal.items[-1]
        assert not block.terminated
        assert block.body == "foo"
        assert [d.kind for d in result.diagnostics] == [ErrorKind.UNTERMINATED]


class TestErrorRecovery:
    MALFORMED = (
        "2024-01-01 first\n"
        "    a  1 USD\n"
        "\n"
        "2024-13-01 bad date\n"
        "    a  1 USD\n"
        "\n"
        "2024-01-03 third\n"
        "    b  2 USD\n"
    )

    def test_malformed_transaction_is_skipped(self):
        result = parse(self.MALFORMED)
        assert [t.note for t in result.journal.transactions] == ["first", "third"]
        (error,) = result.errors
        assert error.kind is ErrorKind.LEXICAL
        assert error.span.start_line == 4
        assert error.unparsed == "2024-13-01 bad date\n    a  1 USD\n"

    def test_bad_posting_reports_its_line(self):
        result = parse("2024-01-01 x\n  a  10 USD ; bad\n")
        assert result.journal.items == ()
        assert result.errors[0].span.start_line == 2

    def test_indented_line_without_parent(self):
        result = parse("    assets  1 USD\n2024-01-01 x\n")
        (error,) = result.errors
        assert error.kind is ErrorKind.STRUCTURAL
        assert error.span.start_col == 5
        assert len(result.journal.transactions) == 1

    def test_indented_line_after_single_line_directive(self):
        result = parse("tag food\n    extra\n")
        assert isinstance(result.journal.items[0], TagDirective)
        assert result.errors[0].kind is ErrorKind.STRUCTURAL

    @pytest.mark.parametrize("blank", ["\r\r", "\xa0", "\x0c", "  \x0c"])
    def test_unusual_whitespace_lines_are_blank(self, blank):
        result = parse(f"tag a\n{blank}\ntag b\n")
        assert result.diagnostics == ()
        assert [item.name for item in result.journal.items] == ["a", "b"]

    def test_form_feed_inside_transaction_body(self):
        result = parse("2024-01-01 a\n    x  1 USD\n\x0c\n    y\n2024-01-02 b\n")
        assert result.diagnostics == ()
        first, second = result.journal.transactions
        assert [p.account for p in first.postings] == ["x", "y"]
        assert second.note == "b"

    def test_form_feed_under_account(self):
        result = parse("account a\n  \x0c\n")
        assert result.diagnostics == ()
        (account,) = result.journal.items
        assert account.subdirectives == ()

    def test_status_mark_without_space(self):
        result = parse("2024-01-01 *Acme\n    a  1 USD\n2024-01-02 ok\n")
        (error,) = result.errors
        assert error.kind is ErrorKind.LEXICAL
        assert [t.note for t in result.journal.transactions] == ["ok"]

    def test_unrecognized_line(self):
        result = parse("hello world\n")
        (error,) = result.errors
        assert error.kind is ErrorKind.LEXICAL
        assert "'hello'" in error.message

    def test_strict_raises_first_error(self):
        with pytest.raises(LexicalError) as exc_info:
            parse(self.MALFORMED, strict=True)
        assert exc_info.value.line == 4

    def test_strict_ignores_warnings(self):
        result = parse("comment\nfoo\n", strict=True)
        assert len(result.warnings) == 1

    def test_raise_for_errors(self):
        result = parse(self.MALFORMED)
        with pytest.raises(LexicalError):
            result.raise_for_errors()

    def test_raise_for_errors_when_clean(self):
        parse(SAMPLE).raise_for_errors()

    def test_diagnostic_str(self):
        result = parse("hello\n", path="main.journal")
        assert str(result.errors[0]) == (
            "main.journal:1:1: error: unrecognized line starting with 'hello'"
        )


class TestPeriodicTransactions:
    def test_disabled(self):
        result = parse("~ monthly\n    a  1 USD\n\n2024-01-01 x\n", periodic_transactions=False)
        assert [type(item) for item in result.journal.items] == [Transaction]
        (error,) = result.errors
        assert error.kind is ErrorKind.STRUCTURAL
        assert error.unparsed == "~ monthly\n    a  1 USD\n"


class TestInput:
    def test_empty(self):
        result = parse("")
        assert result.journal.items == ()
        assert result.diagnostics == ()

    def test_crlf(self):
        (txn,) = parse("2024-01-01 x\r\n    a  1 USD\r\n    b\r\n").journal.transactions
        assert [p.account for p in txn.postings] == ["a", "b"]

    def test_blank_line_inside_transaction(self):
        (txn,) = parse("2024-01-01 x\n    a  1 USD\n\n    b\n").journal.transactions
        assert len(txn.postings) == 2
        assert txn.span.end_line == 4

    def test_unicode_commodities(self):
        (txn,) = parse("2024-01-01 x\n    a  €5\n    b  -5 £\n").journal.transactions
        assert txn.postings[0].amount.commodity.symbol == "€"
        assert txn.postings[1].amount.commodity.symbol == "£"


class TestFiles:
    def test_parse_file(self, tmp_path):
        path = tmp_path / "main.journal"
        path.write_text("2024-01-01 x\n    a  1 USD\nbogus\n", encoding="utf-8")
        result = parse_file(path)
        assert result.journal.path == str(path)
        assert result.errors[0].path == str(path)

    def test_include_is_not_followed(self, tmp_path):
        path = tmp_path / "main.journal"
        path.write_text("include missing.journal\n", encoding="utf-8")
        (include,) = parse_file(path).journal.items
        assert include.path == "missing.journal"


class TestConfig:
    def test_from_yaml(self, tmp_path):
        path = tmp_path / "parser.yaml"
        path.write_text("strict: true\nperiodic_transactions: false\n")
        config = ParserConfig.from_yaml(path)
        assert config.strict
        assert not config.periodic_transactions
        assert config.allow_unterminated_block_comment

    def test_from_empty_yaml(self, tmp_path):
        path = tmp_path / "parser.yaml"
        path.write_text("")
        assert ParserConfig.from_yaml(path) == ParserConfig()

    def test_unknown_key(self, tmp_path):
        path = tmp_path / "parser.yaml"
        path.write_text("strcit: true\n")
        with pytest.raises(ValidationError):
            ParserConfig.from_yaml(path)

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / "parser.yaml"
        path.write_text("- strict\n")
        with pytest.raises(ValueError):
            ParserConfig.from_yaml(path)

    def test_overrides_apply_on_top_of_config(self):
        config = ParserConfig(strict=True)
        with pytest.raises(UnterminatedConstruct):
            parse("comment\n", config=config, allow_unterminated_block_comment=False)

    def test_overrides_are_validated(self):
        with pytest.raises(ValidationError):
            ParserConfig().with_overrides(strict="maybe")


class TestLogging:
    def test_summary_logged(self, caplog):
        caplog.set_level(logging.INFO, logger="hledger_parser")
        parse("2024-01-01 x\n")
        assert "parsed <string>: 1 items, 0 diagnostics" in caplog.text

    def test_items_logged_at_debug(self, caplog):
        caplog.set_level(logging.DEBUG, logger="hledger_parser")
        parse("tag food\n")
        assert "line 1: tag" in caplog.text

    @pytest.mark.parametrize(
        "level,env,expected",
        [
            ("debug", None, logging.DEBUG),
            (logging.WARNING, "DEBUG", logging.WARNING),
            (None, "error", logging.ERROR),
            (None, "15", 15),
            (None, None, logging.INFO),
            ("nonsense", None, logging.INFO),
        ],
    )
    def test_level_resolution(self, monkeypatch, level, env, expected):
        if env is None:
            monkeypatch.delenv("HLEDGER_PARSER_LOG_LEVEL", raising=False)
        else:
            monkeypatch.setenv("HLEDGER_PARSER_LOG_LEVEL", env)
        assert _parse_level(level) == expected
