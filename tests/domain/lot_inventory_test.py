from datetime import date
from decimal import Decimal

from domain.errors import WarningCode
from domain.inventory import HoldingPeriod, LotInventory, classify_holding_period
from domain.ledger import TransactionType
from domain.lot_selection import FifoLotSelection
from tests.helpers.factories import make_lot, make_transaction


def test_fifo_consumes_oldest_lots_first() -> None:
    lots = [
        make_lot("l2", "p1", date(2023, 6, 1), shares="50", cost="6000"),
        make_lot("l1", "p1", date(2023, 1, 1), shares="50", cost="5000"),
    ]
    sell = make_transaction(
        "s1", TransactionType.SELL, date(2024, 3, 1), "9000", position_id="p1", shares="60", price="150"
    )

    result = LotInventory().realize(lots, [sell])

    assert result.policy == "FIFO"
    assert [(link.lot_id, link.shares) for link in result.realized] == [("l1", Decimal("50")), ("l2", Decimal("10"))]
    assert sum(link.gain_loss for link in result.realized) == Decimal("2800.00")
    assert [link.holding_period for link in result.realized] == [HoldingPeriod.LONG_TERM, HoldingPeriod.SHORT_TERM]

    assert len(result.open_lots) == 1
    remaining = result.open_lots[0]
    assert remaining.lot_id == "l2"
    assert remaining.shares_remaining == Decimal("40")
    assert remaining.cost_per_share == Decimal("120")
    assert remaining.cost_basis_remaining == Decimal("4800.00")
    assert [link.cost_basis for link in result.realized] == [Decimal("5000.00"), Decimal("1200.00")]
    assert result.warnings == []


def test_sell_first_lot_jumps_the_queue() -> None:
    lots = [
        make_lot("old", "p1", date(2022, 1, 1), shares="10", cost="100"),
        make_lot("flagged", "p1", date(2023, 1, 1), shares="10", cost="300", sell_first=True),
    ]

    ordered = FifoLotSelection().order(lots)

    assert [lot.id for lot in ordered] == ["flagged", "old"]


def test_oversell_realizes_available_shares_and_warns() -> None:
    lots = [make_lot("l1", "p1", date(2023, 1, 1), shares="10", cost="100")]
    sell = make_transaction("s1", TransactionType.SELL, date(2024, 3, 1), "300", position_id="p1", shares="15")

    result = LotInventory().realize(lots, [sell])

    assert len(result.realized) == 1
    assert result.realized[0].shares == Decimal("10")
    assert result.realized[0].proceeds == Decimal("200.00")
    assert result.open_lots == []
    assert [warning.code for warning in result.warnings] == [WarningCode.OVERSELL]
    assert result.warnings[0].transaction_id == "s1"


def test_sell_without_lots_is_reported() -> None:
    sell = make_transaction("s1", TransactionType.SELL, date(2024, 3, 1), "300", position_id="p1", shares="3")
    early = make_transaction("s2", TransactionType.SELL, date(2022, 3, 1), "300", position_id="p2", shares="3")
    lots = [make_lot("l1", "p2", date(2023, 1, 1), shares="10", cost="100")]

    result = LotInventory().realize(lots, [sell, early])

    assert result.realized == []
    assert [warning.code for warning in result.warnings] == [WarningCode.NO_OPEN_LOT, WarningCode.NO_OPEN_LOT]


def test_sell_without_share_quantity_is_reported() -> None:
    lots = [make_lot("l1", "p1", date(2023, 1, 1), shares="10", cost="100")]
    sell = make_transaction("s1", TransactionType.SELL, date(2024, 3, 1), "300", position_id="p1")

    result = LotInventory().realize(lots, [sell])

    assert result.realized == []
    assert result.warnings[0].code == WarningCode.MISSING_SHARES
    assert result.open_lots[0].shares_remaining == Decimal("10")


def test_fees_reduce_proceeds() -> None:
    lots = [make_lot("l1", "p1", date(2023, 1, 1), shares="10", cost="100")]
    sell = make_transaction(
        "s1", TransactionType.SELL, date(2023, 2, 1), "150", position_id="p1", shares="10", fees="5"
    )

    result = LotInventory().realize(lots, [sell])

    assert result.realized[0].proceeds == Decimal("145.00")
    assert result.realized[0].gain_loss == Decimal("45.00")


def test_non_sell_transactions_are_ignored() -> None:
    lots = [make_lot("l1", "p1", date(2023, 1, 1), shares="10", cost="100")]
    buy = make_transaction("b1", TransactionType.BUY, date(2023, 1, 1), "100", position_id="p1", shares="10")

    result = LotInventory().realize(lots, [buy])

    assert result.realized == []
    assert result.warnings == []


def test_realize_is_repeatable() -> None:
    lots = [make_lot("l1", "p1", date(2023, 1, 1), shares="10", cost="100")]
    sell = make_transaction("s1", TransactionType.SELL, date(2024, 3, 1), "60", position_id="p1", shares="4")
    inventory = LotInventory()

    assert inventory.realize(lots, [sell]) == inventory.realize(lots, [sell])


def test_holding_period_boundary() -> None:
    acquired = date(2023, 1, 1)

    assert classify_holding_period(acquired, date(2024, 1, 1)) == HoldingPeriod.SHORT_TERM
    assert classify_holding_period(acquired, date(2024, 1, 2)) == HoldingPeriod.LONG_TERM
    assert classify_holding_period(acquired, date(2023, 3, 1), long_term_days=30) == HoldingPeriod.LONG_TERM
