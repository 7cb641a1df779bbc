"""Portfolio performance: totals, per-position ranking and calendar-period returns.

Period returns use the capital invested through the ledger. Holdings are carried at
that invested capital until the valuation period (the period holding the window end,
or ``as_of``), which also books the difference between current value and invested
capital. Chaining the period returns therefore reconciles with the overall return
whenever the ledger explains the positions' cost basis.

A period that opens with a negative basis (sells returned more than was put in) has no
meaningful denominator. Its return is measured against that period's contributions, which
is often 0, so the chained return understates the gain; such periods are logged.

Trailing windows (1M, 3M, 6M, 1Y, YTD) each measure one bucket from the window start
through the valuation date. With no price history the appreciation of held positions
lands in every window that reaches the valuation date.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterable, Sequence

from pydantic import BaseModel

from domain.filters import DateWindow, Period, PeriodGranularity, iter_periods, period_for, trailing_windows
from domain.ledger import FlowCategory, Position, PositionId, Transaction, TransactionType
from domain.valuation import HUNDRED, ZERO, percent_of, round_currency

from .formatting import format_currency, format_percent

logger = logging.getLogger(__name__)


class PerformanceTotals(BaseModel):
    total_current_value: Decimal
    total_cost_basis: Decimal
    total_return: Decimal
    total_return_percent: Decimal


class PositionPerformance(BaseModel):
    position_id: PositionId
    symbol: str
    name: str
    current_value: Decimal
    cost_basis: Decimal
    total_return: Decimal
    total_return_percent: Decimal


class PeriodPerformance(BaseModel):
    period: str
    label: str
    start_date: date
    end_date: date
    starting_cost_basis: Decimal
    contributions: Decimal
    withdrawals: Decimal
    income: Decimal
    ending_cost_basis: Decimal
    gain_loss: Decimal
    return_percent: Decimal


class TrailingPerformance(BaseModel):
    period: str
    start_date: date
    end_date: date
    gain_loss: Decimal
    return_percent: Decimal


class PerformanceSummary(BaseModel):
    summary: PerformanceTotals
    top_performers: list[PositionPerformance]
    bottom_performers: list[PositionPerformance]
    granularity: PeriodGranularity
    performance_by_period: list[PeriodPerformance]
    chained_return_percent: Decimal
    trailing_performance: list[TrailingPerformance]


@dataclass
class _PeriodAccumulator:
    contributions: Decimal = ZERO
    withdrawals: Decimal = ZERO
    income: Decimal = ZERO


def rank_performers(
    performances: Iterable[PositionPerformance],
    *,
    ascending: bool = False,
    limit: int | None = None,
) -> list[PositionPerformance]:
    """Order by percent return; ties go to the larger absolute return, then position id."""
    if ascending:
        ranked = sorted(performances, key=lambda p: (p.total_return_percent, -p.total_return, p.position_id))
    else:
        ranked = sorted(performances, key=lambda p: (-p.total_return_percent, -p.total_return, p.position_id))
    if limit is not None:
        return ranked[:limit]
    return ranked


def _position_performance(position: Position) -> PositionPerformance:
    total_return = position.current_value - position.cost_basis_total
    return PositionPerformance(
        position_id=position.id,
        symbol=position.symbol,
        name=position.name,
        current_value=round_currency(position.current_value),
        cost_basis=round_currency(position.cost_basis_total),
        total_return=round_currency(total_return),
        total_return_percent=percent_of(total_return, position.cost_basis_total),
    )


def _apply_flow(acc: _PeriodAccumulator, txn: Transaction) -> None:
    category = txn.flow.category
    if txn.transaction_type == TransactionType.BUY:
        acc.contributions += txn.total_amount + txn.fees
    elif txn.transaction_type == TransactionType.SELL:
        acc.withdrawals += txn.total_amount - txn.fees
    elif category in (FlowCategory.INCOME, FlowCategory.COST):
        acc.income += txn.signed_amount


def _return_base(label: str, starting: Decimal, contributions: Decimal, gain: Decimal) -> Decimal:
    # Capital arriving in a period that opened empty counts as that period's opening basis.
    if starting > 0:
        return starting
    if starting < 0 and gain != 0:
        logger.warning(
            "%s opens with negative cost basis %s; its return is measured against contributions of %s",
            label,
            round_currency(starting),
            round_currency(contributions),
        )
    return contributions


def _valuation_date(window: DateWindow, as_of: date | None, in_window: Sequence[Transaction]) -> date:
    if window.end is not None:
        return window.end
    if as_of is not None:
        return as_of
    return max(txn.transaction_date for txn in in_window)


def compute_period_performance(
    transactions: Iterable[Transaction],
    *,
    current_value: Decimal,
    window: DateWindow,
    granularity: PeriodGranularity,
    as_of: date | None = None,
) -> list[PeriodPerformance]:
    """Calendar-period returns; empty when no transaction falls inside the window."""
    transactions = list(transactions)
    in_window = [txn for txn in transactions if window.contains(txn.transaction_date)]
    if not in_window:
        return []

    valuation_date = _valuation_date(window, as_of, in_window)
    first_date = window.start or min(txn.transaction_date for txn in in_window)
    if first_date > valuation_date:
        return []

    opening = _PeriodAccumulator()
    for txn in transactions:
        if window.start is not None and txn.transaction_date < window.start:
            _apply_flow(opening, txn)

    periods: list[Period] = iter_periods(first_date, valuation_date, granularity)
    accumulators: dict[str, _PeriodAccumulator] = {period.key: _PeriodAccumulator() for period in periods}
    for txn in in_window:
        if txn.transaction_date > valuation_date:
            continue
        _apply_flow(accumulators[period_for(txn.transaction_date, granularity).key], txn)

    results: list[PeriodPerformance] = []
    basis = opening.contributions - opening.withdrawals
    for index, period in enumerate(periods):
        acc = accumulators[period.key]
        starting = basis
        ending = starting + acc.contributions - acc.withdrawals
        gain = acc.income
        if index == len(periods) - 1:
            gain += current_value - ending

        return_base = _return_base(period.label, starting, acc.contributions, gain)
        results.append(
            PeriodPerformance(
                period=period.key,
                label=period.label,
                start_date=period.start,
                end_date=period.end,
                starting_cost_basis=round_currency(starting),
                contributions=round_currency(acc.contributions),
                withdrawals=round_currency(acc.withdrawals),
                income=round_currency(acc.income),
                ending_cost_basis=round_currency(ending),
                gain_loss=round_currency(gain),
                return_percent=percent_of(gain, return_base),
            )
        )
        basis = ending
    return results


def chain_returns(return_percents: Iterable[Decimal]) -> Decimal:
    growth = Decimal(1)
    for value in return_percents:
        growth *= 1 + value / HUNDRED
    return (growth - 1) * HUNDRED


def compute_trailing_performance(
    transactions: Iterable[Transaction],
    *,
    current_value: Decimal,
    as_of: date,
) -> list[TrailingPerformance]:
    """Gain and return over the standard windows ending on ``as_of``."""
    transactions = [txn for txn in transactions if txn.transaction_date <= as_of]
    results: list[TrailingPerformance] = []
    for label, window in trailing_windows(as_of):
        opening = _PeriodAccumulator()
        acc = _PeriodAccumulator()
        for txn in transactions:
            _apply_flow(acc if window.contains(txn.transaction_date) else opening, txn)

        starting = opening.contributions - opening.withdrawals
        ending = starting + acc.contributions - acc.withdrawals
        gain = acc.income + current_value - ending
        results.append(
            TrailingPerformance(
                period=label,
                start_date=window.start,
                end_date=as_of,
                gain_loss=round_currency(gain),
                return_percent=percent_of(gain, _return_base(label, starting, acc.contributions, gain)),
            )
        )
    return results


def compute_performance_summary(
    positions: Iterable[Position],
    transactions: Iterable[Transaction],
    *,
    window: DateWindow | None = None,
    granularity: PeriodGranularity = PeriodGranularity.MONTH,
    as_of: date | None = None,
) -> PerformanceSummary:
    positions = list(positions)
    transactions = list(transactions)
    window = window or DateWindow()

    total_value = sum((p.current_value for p in positions), start=ZERO)
    total_cost = sum((p.cost_basis_total for p in positions), start=ZERO)
    total_return = total_value - total_cost

    performances = [_position_performance(position) for position in positions]
    periods = compute_period_performance(
        transactions,
        current_value=total_value,
        window=window,
        granularity=granularity,
        as_of=as_of,
    )
    anchor = window.end or as_of
    trailing = compute_trailing_performance(transactions, current_value=total_value, as_of=anchor) if anchor else []

    return PerformanceSummary(
        summary=PerformanceTotals(
            total_current_value=round_currency(total_value),
            total_cost_basis=round_currency(total_cost),
            total_return=round_currency(total_return),
            total_return_percent=percent_of(total_return, total_cost),
        ),
        top_performers=rank_performers(performances),
        bottom_performers=rank_performers(performances, ascending=True),
        granularity=granularity,
        performance_by_period=periods,
        chained_return_percent=chain_returns(period.return_percent for period in periods),
        trailing_performance=trailing,
    )


def render_performance_summary(summary: PerformanceSummary, *, top: int = 5) -> None:
    totals = summary.summary
    print(
        f"Value {format_currency(totals.total_current_value)} / cost {format_currency(totals.total_cost_basis)}: "
        f"return {format_currency(totals.total_return)} ({format_percent(totals.total_return_percent)})"
    )

    print("Top performers:")
    if not summary.top_performers:
        print("  (none)")
    for perf in summary.top_performers[:top]:
        print(
            f"  {perf.symbol:<10} "
            f"{format_percent(perf.total_return_percent):>10} "
            f"{format_currency(perf.total_return):>14}"
        )

    if summary.trailing_performance:
        print("Trailing:")
    for trailing in summary.trailing_performance:
        print(
            f"  {trailing.period:<4} gain {format_currency(trailing.gain_loss):>12} "
            f"{format_percent(trailing.return_percent):>9}"
        )

    print(f"Performance by {summary.granularity.value}:")
    if not summary.performance_by_period:
        print("  (no activity)")
        return
    for period in summary.performance_by_period:
        print(
            f"  {period.label:<10} start {format_currency(period.starting_cost_basis):>14} "
            f"gain {format_currency(period.gain_loss):>12} {format_percent(period.return_percent):>9}"
        )
    print(f"  Chained: {format_percent(summary.chained_return_percent)}")
