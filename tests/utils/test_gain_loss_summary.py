from datetime import date
from decimal import Decimal

import pytest

from domain.errors import WarningCode
from domain.filters import DateWindow, GainLossType
from domain.inventory import HoldingPeriod
from domain.ledger import Position, TaxLot, Transaction, TransactionType
from utils.gain_loss_summary import compute_gain_loss_summary
from tests.helpers.factories import make_lot, make_position, make_transaction

AS_OF = date(2024, 6, 30)


@pytest.fixture()
def positions() -> list[Position]:
    return [
        make_position("p1", symbol="AAA", shares="40", price="150", cost="4800"),
        make_position("p2", symbol="BBB", shares="10", price="40", cost="500"),
    ]


@pytest.fixture()
def lots() -> list[TaxLot]:
    return [
        make_lot("l1", "p1", date(2023, 1, 1), shares="50", cost="5000"),
        make_lot("l2", "p1", date(2023, 6, 1), shares="50", cost="6000"),
        make_lot("l3", "p2", date(2024, 1, 2), shares="10", cost="500"),
    ]


@pytest.fixture()
def sells() -> list[Transaction]:
    return [make_transaction("s1", TransactionType.SELL, date(2024, 3, 1), "9000", position_id="p1", shares="60")]


def test_realized_and_unrealized(positions: list[Position], lots: list[TaxLot], sells: list[Transaction]) -> None:
    summary = compute_gain_loss_summary(positions, lots, sells, as_of=AS_OF)

    assert summary.lot_selection == "FIFO"
    assert summary.summary.total_realized_gain_loss == Decimal("2800.00")
    assert summary.summary.long_term_realized_gain_loss == Decimal("2500.00")
    assert summary.summary.short_term_realized_gain_loss == Decimal("300.00")
    assert summary.summary.total_unrealized_gain_loss == Decimal("1100.00")
    assert summary.summary.total_gain_loss == Decimal("3900.00")
    assert [gain.symbol for gain in summary.unrealized_gains] == ["AAA", "BBB"]
    assert summary.warnings == []

    open_lots = {lot.lot_id: lot for lot in summary.open_lots}
    assert set(open_lots) == {"l2", "l3"}
    assert open_lots["l2"].shares == Decimal("40")
    assert open_lots["l2"].holding_period == HoldingPeriod.LONG_TERM
    assert open_lots["l3"].holding_period == HoldingPeriod.SHORT_TERM


def test_type_filter_limits_lists_not_subtotals(
    positions: list[Position], lots: list[TaxLot], sells: list[Transaction]
) -> None:
    realized_only = compute_gain_loss_summary(positions, lots, sells, as_of=AS_OF, gain_type=GainLossType.REALIZED)
    unrealized_only = compute_gain_loss_summary(
        positions, lots, sells, as_of=AS_OF, gain_type=GainLossType.UNREALIZED
    )

    assert realized_only.unrealized_gains == []
    assert len(realized_only.realized_gains) == 2
    assert realized_only.summary.total_gain_loss == Decimal("2800.00")
    assert realized_only.summary.total_unrealized_gain_loss == Decimal("1100.00")
    assert unrealized_only.realized_gains == []
    assert unrealized_only.summary.total_gain_loss == Decimal("1100.00")


def test_window_limits_reported_sales(positions: list[Position], lots: list[TaxLot], sells: list[Transaction]) -> None:
    summary = compute_gain_loss_summary(
        positions,
        lots,
        sells,
        as_of=AS_OF,
        window=DateWindow(start=date(2024, 4, 1)),
    )

    assert summary.realized_gains == []
    assert summary.summary.total_realized_gain_loss == Decimal("0.00")
    # Lot state still reflects the earlier sale.
    assert {lot.lot_id for lot in summary.open_lots} == {"l2", "l3"}


def test_lot_share_mismatch_is_excluded(lots: list[TaxLot], sells: list[Transaction]) -> None:
    positions = [make_position("p1", symbol="AAA", shares="45", price="150", cost="5400")]

    summary = compute_gain_loss_summary(positions, lots, sells, as_of=AS_OF)

    assert summary.realized_gains == []
    assert [warning.code for warning in summary.warnings] == [WarningCode.LOT_SHARE_MISMATCH]
    assert summary.warnings[0].position_id == "p1"


def test_realized_sorted_newest_first(positions: list[Position], lots: list[TaxLot]) -> None:
    sells = [
        make_transaction("s1", TransactionType.SELL, date(2024, 2, 1), "1500", position_id="p1", shares="10"),
        make_transaction("s2", TransactionType.SELL, date(2024, 3, 1), "7500", position_id="p1", shares="50"),
    ]

    summary = compute_gain_loss_summary(positions, lots, sells, as_of=AS_OF)

    assert [gain.sold_on for gain in summary.realized_gains] == [
        date(2024, 3, 1),
        date(2024, 3, 1),
        date(2024, 2, 1),
    ]
