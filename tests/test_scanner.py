"""Tests for the line scanner and token readers."""

import pytest

from hledger_parser.errors import LexicalError
from hledger_parser.scanner import (
    Cursor,
    Line,
    Scanner,
    is_field_separator,
    read_commodity,
    read_date,
    read_quantity,
    split_comment,
    starts_with_date,
)


def cursor(text: str) -> Cursor:
    return Cursor(Line(1, text, "", 0))


class TestScanner:
    """Splitting source text into physical lines."""

    def test_empty_input(self):
        assert list(Scanner("").lines()) == []

    def test_line_endings(self):
        lines = list(Scanner("a\r\nb\n\nc").lines())
        assert [line.text for line in lines] == ["a", "b", "", "c"]
        assert [line.ending for line in lines] == ["\r\n", "\n", "\n", ""]
        assert [line.number for line in lines] == [1, 2, 3, 4]

    def test_trailing_newline_does_not_add_line(self):
        lines = list(Scanner("a\n").lines())
        assert len(lines) == 1
        assert lines[0].raw == "a\n"

    def test_restartable(self):
        """Each call to lines() starts a fresh iteration."""
        scanner = Scanner("one\ntwo\nthree\n")
        assert list(scanner.lines()) == list(scanner.lines())
        assert [line.text for line in scanner] == ["one", "two", "three"]

    def test_start_offset(self):
        scanner = Scanner("one\ntwo\nthree\n")
        lines = list(scanner.lines(start=4))
        assert lines[0].text == "two"
        assert lines[0].number == 2
        assert lines[0].offset == 4

    def test_bom_is_dropped(self):
        lines = list(Scanner("\ufeff2024-01-01 x\n").lines())
        assert lines[0].text == "2024-01-01 x"

    def test_indentation(self):
        line = Line(1, "  \tassets  1 USD", "\n", 0)
        assert line.indent == "  \t"
        assert line.is_indented
        assert not line.is_blank

    @pytest.mark.parametrize("text", ["   \t", "\x0c", "  \xa0", "\r", "\t\v"])
    def test_whitespace_only_line_is_blank_not_indented(self, text):
        line = Line(1, text, "\n", 0)
        assert line.is_blank
        assert not line.is_indented

    def test_stray_carriage_return_stays_in_text(self):
        (line,) = Scanner("\r\r\n").lines()
        assert line.text == "\r"
        assert line.is_blank


class TestDates:
    """Date tokens in their accepted forms."""

    @pytest.mark.parametrize(
        "text,triple,sep",
        [
            ("2024-01-31", (2024, 1, 31), "-"),
            ("2024/1/5", (2024, 1, 5), "/"),
            ("2024.12.01", (2024, 12, 1), "."),
            ("24-01-15", (24, 1, 15), "-"),
            ("1/5", (None, 1, 5), "/"),
            ("12.31", (None, 12, 31), "."),
        ],
    )
    def test_valid_dates(self, text, triple, sep):
        c = cursor(text)
        date = read_date(c)
        assert date.triple == triple
        assert date.separator == sep
        assert date.raw == text
        assert c.pos == len(text)

    def test_leap_day(self):
        assert read_date(cursor("2024-02-29")).triple == (2024, 2, 29)

    @pytest.mark.parametrize(
        "text",
        ["2024-13-01", "2024-02-30", "2023-02-29", "2024-00-10", "2024-01-32", "2024-01/01", "x2024-01-01"],
    )
    def test_invalid_dates(self, text):
        with pytest.raises(LexicalError):
            read_date(cursor(text))

    def test_digit_after_day_is_not_a_date(self):
        with pytest.raises(LexicalError):
            read_date(cursor("2024-01-011"))

    def test_to_date(self):
        assert read_date(cursor("24-03-05")).to_date().isoformat() == "2024-03-05"
        assert read_date(cursor("03-05")).to_date(default_year=2023).isoformat() == "2023-03-05"

    def test_starts_with_date(self):
        assert starts_with_date("2024-01-01 Groceries")
        assert not starts_with_date("account assets")


class TestQuantities:
    def test_negative_with_grouping(self):
        c = cursor("-1,000.50 USD")
        quantity = read_quantity(c)
        assert quantity.sign == "-"
        assert quantity.digits == "1,000.50"
        assert quantity.negative
        assert quantity.marks == (",", ".")
        assert c.rest() == " USD"

    def test_explicit_plus_and_space_grouping(self):
        quantity = read_quantity(cursor("+10 000"))
        assert str(quantity) == "+10 000"
        assert not quantity.negative

    def test_space_before_letters_is_not_grouping(self):
        c = cursor("10 EUR")
        assert read_quantity(c).digits == "10"
        assert c.rest() == " EUR"

    def test_no_quantity(self):
        c = cursor("abc")
        assert read_quantity(c) is None
        assert c.pos == 0


class TestCommodities:
    def test_letters(self):
        c = cursor("USD 10")
        assert read_commodity(c).symbol == "USD"
        assert c.pos == 3

    def test_unicode_letters(self):
        assert read_commodity(cursor("ÅÄÖ5")).symbol == "ÅÄÖ"

    @pytest.mark.parametrize("symbol", ["€", "$", "£", "¥"])
    def test_single_currency_symbol(self, symbol):
        c = cursor(f"{symbol}{symbol}100")
        assert read_commodity(c).symbol == symbol
        assert c.pos == 1

    def test_quoted(self):
        c = cursor('"AAPL shares" 10')
        commodity = read_commodity(c)
        assert commodity.symbol == "AAPL shares"
        assert commodity.quoted
        assert str(commodity) == '"AAPL shares"'
        assert c.rest() == " 10"

    def test_unterminated_quote(self):
        with pytest.raises(LexicalError):
            read_commodity(cursor('"AAPL 10'))

    def test_no_commodity(self):
        assert read_commodity(cursor("10")) is None
        assert read_commodity(cursor("")) is None


class TestSeparators:
    """Two or more spaces/tabs separate fields; one does not."""

    @pytest.mark.parametrize("text,expected", [("  ", True), ("\t\t", True), (" \t", True), (" ", False), ("\t", False)])
    def test_is_field_separator(self, text, expected):
        assert is_field_separator(text) is expected

    def test_split_comment(self):
        assert split_comment("Acme  ; weekly") == ("Acme", "weekly")

    def test_single_space_semicolon_is_not_a_comment(self):
        assert split_comment("Acme ; weekly") == ("Acme ; weekly", None)

    def test_read_trailer(self):
        c = cursor("x  ; note")
        c.pos = 1
        assert c.read_trailer() == "note"

    def test_read_trailer_at_end(self):
        c = cursor("x   ")
        c.pos = 1
        assert c.read_trailer() is None

    def test_read_trailer_rejects_text(self):
        c = cursor("x y")
        c.pos = 1
        with pytest.raises(LexicalError):
            c.read_trailer()
