import logging
from datetime import date
from decimal import Decimal

import pytest

from domain.filters import DateWindow, PeriodGranularity
from domain.ledger import TransactionType
from utils.performance_summary import (
    chain_returns,
    compute_performance_summary,
    compute_trailing_performance,
    rank_performers,
)
from tests.helpers.factories import make_position, make_transaction

JAN_FEB = DateWindow(start=date(2024, 1, 1), end=date(2024, 2, 29))


def test_single_buy_chains_to_total_return() -> None:
    position = make_position("p1", shares="50", price="110", cost="5000")
    buy = make_transaction("b1", TransactionType.BUY, date(2024, 1, 10), "5000", position_id="p1", shares="50")

    summary = compute_performance_summary([position], [buy], window=JAN_FEB)

    january, february = summary.performance_by_period
    assert (january.period, january.label) == ("2024-01", "Jan 2024")
    assert january.starting_cost_basis == Decimal("0.00")
    assert january.gain_loss == Decimal("0.00")
    assert january.return_percent == 0
    assert february.starting_cost_basis == Decimal("5000.00")
    assert february.gain_loss == Decimal("500.00")
    assert february.return_percent == Decimal("10")
    assert summary.summary.total_return_percent == Decimal("10")
    assert abs(summary.chained_return_percent - summary.summary.total_return_percent) < Decimal("0.01")


def test_totals_and_ranking() -> None:
    winner = make_position("win", shares="10", price="30", cost="200")
    loser = make_position("lose", shares="10", price="8", cost="100")
    flat = make_position("flat", shares="5", price="20", cost="100")

    summary = compute_performance_summary([winner, loser, flat], [])

    assert summary.summary.total_current_value == Decimal("480.00")
    assert summary.summary.total_cost_basis == Decimal("400.00")
    assert summary.summary.total_return == Decimal("80.00")
    assert summary.summary.total_return_percent == Decimal("20")
    assert [p.position_id for p in summary.top_performers] == ["win", "flat", "lose"]
    assert [p.position_id for p in summary.bottom_performers] == ["lose", "flat", "win"]
    assert summary.performance_by_period == []
    assert summary.chained_return_percent == 0


def test_rank_ties_break_on_absolute_return_then_id() -> None:
    small = make_position("a-small", shares="1", price="20", cost="10")
    large = make_position("b-large", shares="10", price="20", cost="100")
    twin = make_position("c-twin", shares="10", price="20", cost="100")

    summary = compute_performance_summary([small, twin, large], [])

    assert [p.position_id for p in rank_performers(summary.top_performers)] == ["b-large", "c-twin", "a-small"]
    assert [p.position_id for p in rank_performers(summary.top_performers, limit=1)] == ["b-large"]


def test_opening_basis_comes_from_flows_before_window() -> None:
    position = make_position("p1", shares="10", price="120", cost="1000")
    transactions = [
        make_transaction("b1", TransactionType.BUY, date(2023, 12, 5), "1000", position_id="p1", shares="10"),
        make_transaction("d1", TransactionType.DIVIDEND, date(2024, 1, 15), "20", position_id="p1"),
    ]

    summary = compute_performance_summary(
        [position], transactions, window=DateWindow(start=date(2024, 1, 1), end=date(2024, 1, 31))
    )

    (january,) = summary.performance_by_period
    assert january.starting_cost_basis == Decimal("1000.00")
    assert january.income == Decimal("20.00")
    assert january.gain_loss == Decimal("220.00")
    assert january.return_percent == Decimal("22")


def test_quarter_granularity() -> None:
    position = make_position("p1", shares="10", price="100", cost="1000")
    transactions = [
        make_transaction("b1", TransactionType.BUY, date(2024, 2, 1), "600", position_id="p1", shares="6"),
        make_transaction("b2", TransactionType.BUY, date(2024, 5, 1), "400", position_id="p1", shares="4"),
    ]

    summary = compute_performance_summary(
        [position],
        transactions,
        window=DateWindow(start=date(2024, 1, 1), end=date(2024, 6, 30)),
        granularity=PeriodGranularity.QUARTER,
    )

    assert [period.period for period in summary.performance_by_period] == ["2024-Q1", "2024-Q2"]
    assert summary.performance_by_period[1].starting_cost_basis == Decimal("600.00")
    assert summary.performance_by_period[1].ending_cost_basis == Decimal("1000.00")


def test_no_transactions_in_window() -> None:
    position = make_position("p1")
    buy = make_transaction("b1", TransactionType.BUY, date(2023, 1, 10), "1000", position_id="p1", shares="10")

    summary = compute_performance_summary([position], [buy], window=JAN_FEB)

    assert summary.performance_by_period == []


def test_chain_returns() -> None:
    assert chain_returns([Decimal("10"), Decimal("10")]) == Decimal("21.00")
    assert chain_returns([]) == 0


def test_summary_is_repeatable() -> None:
    position = make_position("p1", shares="50", price="110", cost="5000")
    buy = make_transaction("b1", TransactionType.BUY, date(2024, 1, 10), "5000", position_id="p1", shares="50")

    first = compute_performance_summary([position], [buy], window=JAN_FEB)
    second = compute_performance_summary([position], [buy], window=JAN_FEB)

    assert first == second


def test_year_granularity() -> None:
    position = make_position("p1", shares="10", price="110", cost="1000")
    transactions = [
        make_transaction("b1", TransactionType.BUY, date(2023, 3, 1), "1000", position_id="p1", shares="10"),
        make_transaction("d1", TransactionType.DIVIDEND, date(2024, 6, 1), "15", position_id="p1"),
    ]

    summary = compute_performance_summary(
        [position],
        transactions,
        window=DateWindow(start=date(2023, 1, 1), end=date(2024, 12, 31)),
        granularity=PeriodGranularity.YEAR,
    )

    first, second = summary.performance_by_period
    assert (first.period, first.label, first.start_date) == ("2023", "2023", date(2023, 1, 1))
    assert first.gain_loss == Decimal("0.00")
    assert second.starting_cost_basis == Decimal("1000.00")
    assert second.gain_loss == Decimal("115.00")
    assert second.return_percent == Decimal("11.5")


def test_trailing_windows() -> None:
    transactions = [
        make_transaction("b1", TransactionType.BUY, date(2023, 6, 1), "1000", position_id="p1", shares="10"),
        make_transaction("d1", TransactionType.DIVIDEND, date(2024, 5, 10), "20", position_id="p1"),
    ]

    trailing = compute_trailing_performance(transactions, current_value=Decimal("1200"), as_of=date(2024, 5, 31))

    assert [(item.period, item.start_date) for item in trailing] == [
        ("1M", date(2024, 4, 30)),
        ("3M", date(2024, 2, 29)),
        ("6M", date(2023, 11, 30)),
        ("1Y", date(2023, 5, 31)),
        ("YTD", date(2024, 1, 1)),
    ]
    assert {item.gain_loss for item in trailing} == {Decimal("220.00")}
    assert {item.return_percent for item in trailing} == {Decimal("22")}


def test_summary_carries_trailing_windows_only_with_valuation_date() -> None:
    position = make_position("p1", shares="50", price="110", cost="5000")
    buy = make_transaction("b1", TransactionType.BUY, date(2024, 1, 10), "5000", position_id="p1", shares="50")

    anchored = compute_performance_summary([position], [buy], window=JAN_FEB)
    unanchored = compute_performance_summary([position], [buy])

    assert [item.period for item in anchored.trailing_performance] == ["1M", "3M", "6M", "1Y", "YTD"]
    assert anchored.trailing_performance[0].end_date == date(2024, 2, 29)
    assert unanchored.trailing_performance == []


def test_negative_opening_basis_is_logged(caplog: pytest.LogCaptureFixture) -> None:
    transactions = [
        make_transaction("b1", TransactionType.BUY, date(2024, 1, 5), "1000", position_id="p1", shares="10"),
        make_transaction("s1", TransactionType.SELL, date(2024, 2, 5), "1500", position_id="p1", shares="10"),
        make_transaction("d1", TransactionType.DIVIDEND, date(2024, 3, 5), "10", position_id="p1"),
    ]

    with caplog.at_level(logging.WARNING):
        summary = compute_performance_summary(
            [], transactions, window=DateWindow(start=date(2024, 1, 1), end=date(2024, 3, 31))
        )

    march = summary.performance_by_period[-1]
    assert march.starting_cost_basis == Decimal("-500.00")
    assert march.gain_loss == Decimal("510.00")
    assert march.return_percent == 0
    assert "Mar 2024 opens with negative cost basis" in caplog.text
