"""Amount and commodity parsing.

Grammar:
    amount        = commodity [WS1] quantity | quantity [WS1] commodity
    amount_clause = amount [WS cost_op WS amount] [WS assert_op WS amount]
    cost_op       = "@@" | "@"
    assert_op     = "==*" | "==" | "=*" | "="

WS1 is at most one space or tab; WS is one or more.
"""

from . import ast
from .scanner import WHITESPACE, Cursor, read_commodity, read_quantity

# Longest operator first
COST_OPERATORS = ("@@", "@")
ASSERTION_OPERATORS = ("==*", "==", "=*", "=")


def _read_spacing(cursor: Cursor) -> str:
    """Consume a single space/tab between commodity and quantity.

    Two or more would be a field separator, so those are left alone.
    """
    ch, nxt = cursor.peek(), cursor.peek(1)
    if ch and ch in WHITESPACE and nxt and nxt not in WHITESPACE:
        cursor.pos += 1
        return ch
    return ""


def parse_commodity(cursor: Cursor) -> ast.Commodity:
    commodity = read_commodity(cursor)
    if commodity is None:
        raise cursor.error(f"expected a commodity, got {cursor.rest().strip()[:10]!r}")
    return commodity


def parse_amount(cursor: Cursor) -> ast.Amount:
    """Parse a commodity and quantity in either order.

    On failure the cursor is left where the amount would have started.
    """
    start = cursor.pos

    commodity = read_commodity(cursor)
    if commodity is not None:
        spacing = _read_spacing(cursor)
        quantity = read_quantity(cursor)
        if quantity is None:
            cursor.pos = start
            raise cursor.error(f"expected a quantity after commodity {str(commodity)!r}")
        return ast.Amount(
            commodity=commodity, quantity=quantity, commodity_first=True, spacing=spacing
        )

    quantity = read_quantity(cursor)
    if quantity is None:
        raise cursor.error(f"expected an amount, got {cursor.rest().strip()[:10]!r}")
    after_quantity = cursor.pos
    spacing = _read_spacing(cursor)
    commodity = read_commodity(cursor)
    if commodity is None:
        cursor.pos = after_quantity
        error = cursor.error(f"expected a commodity after quantity {str(quantity)!r}")
        cursor.pos = start
        raise error
    return ast.Amount(commodity=commodity, quantity=quantity, spacing=spacing)


def _read_operator(cursor: Cursor, operators: tuple[str, ...]) -> str | None:
    for op in operators:
        if cursor.at(op):
            cursor.pos += len(op)
            return op
    return None


def parse_amount_clause(
    cursor: Cursor,
) -> tuple[ast.Amount, ast.CostClause | None, ast.BalanceAssertion | None]:
    """Parse an amount with its optional cost and balance assertion.

    Clause order is fixed: amount, then cost, then assertion. When both
    operators could start at the same position, cost is tried first, so
    an assertion followed by a cost is rejected by the caller as trailing
    text.
    """
    amount = parse_amount(cursor)
    cost = None
    assertion = None

    end = cursor.pos
    if cursor.skip_whitespace():
        op = _read_operator(cursor, COST_OPERATORS)
        if op is not None:
            cursor.expect_whitespace(f"amount after {op!r}")
            cost = ast.CostClause(operator=op, amount=parse_amount(cursor))
            end = cursor.pos
        else:
            cursor.pos = end

    if cursor.skip_whitespace():
        op = _read_operator(cursor, ASSERTION_OPERATORS)
        if op is not None:
            cursor.expect_whitespace(f"amount after {op!r}")
            assertion = ast.BalanceAssertion(operator=op, amount=parse_amount(cursor))
            end = cursor.pos

    cursor.pos = end
    return amount, cost, assertion
