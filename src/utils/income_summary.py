from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

from pydantic import BaseModel

from domain.filters import PeriodGranularity, period_for
from domain.ledger import FlowCategory, Position, PositionId, Transaction
from domain.valuation import ZERO, percent_of, round_currency, safe_ratio

from .formatting import format_currency, format_percent

class IncomeTotals(BaseModel):
    total_income: Decimal
    transaction_count: int
    average_per_transaction: Decimal


class PositionIncome(BaseModel):
    position_id: PositionId | None
    symbol: str
    name: str
    total_income: Decimal
    payment_count: int
    current_value: Decimal
    cost_basis: Decimal
    yield_on_cost: Decimal
    current_yield: Decimal


class PeriodIncome(BaseModel):
    period: str
    label: str
    income: Decimal
    count: int


class IncomeSummary(BaseModel):
    summary: IncomeTotals
    by_position: list[PositionIncome]
    by_month: list[PeriodIncome]
    by_quarter: list[PeriodIncome]


@dataclass
class _IncomeAccumulator:
    amount: Decimal = ZERO
    count: int = 0


def _by_period(transactions: list[Transaction], granularity: PeriodGranularity) -> list[PeriodIncome]:
    totals: dict[str, tuple[str, _IncomeAccumulator]] = {}
    for txn in transactions:
        period = period_for(txn.transaction_date, granularity)
        _, acc = totals.setdefault(period.key, (period.label, _IncomeAccumulator()))
        acc.amount += txn.total_amount
        acc.count += 1

    return [
        PeriodIncome(period=key, label=label, income=round_currency(acc.amount), count=acc.count)
        for key, (label, acc) in sorted(totals.items())
    ]


def compute_income_summary(transactions: Iterable[Transaction], positions: Iterable[Position]) -> IncomeSummary:
    """Dividends, distributions, interest and other income; everything else is ignored."""
    income_txns = [txn for txn in transactions if txn.flow.category == FlowCategory.INCOME]
    positions_by_id: dict[PositionId, Position] = {position.id: position for position in positions}

    # Income without a known position collects under None.
    per_position: dict[PositionId | None, _IncomeAccumulator] = {}
    for txn in income_txns:
        key = txn.position_id if txn.position_id in positions_by_id else None
        acc = per_position.setdefault(key, _IncomeAccumulator())
        acc.amount += txn.total_amount
        acc.count += 1

    by_position: list[PositionIncome] = []
    for key, acc in per_position.items():
        position = positions_by_id.get(key) if key is not None else None
        current_value = position.current_value if position else ZERO
        cost_basis = position.cost_basis_total if position else ZERO
        by_position.append(
            PositionIncome(
                position_id=position.id if position else None,
                symbol=position.symbol if position else "N/A",
                name=position.name if position else "Other",
                total_income=round_currency(acc.amount),
                payment_count=acc.count,
                current_value=round_currency(current_value),
                cost_basis=round_currency(cost_basis),
                yield_on_cost=percent_of(acc.amount, cost_basis),
                current_yield=percent_of(acc.amount, current_value),
            )
        )
    by_position.sort(key=lambda item: (-item.total_income, item.symbol))

    total = sum((txn.total_amount for txn in income_txns), start=ZERO)
    return IncomeSummary(
        summary=IncomeTotals(
            total_income=round_currency(total),
            transaction_count=len(income_txns),
            average_per_transaction=round_currency(safe_ratio(total, Decimal(len(income_txns)))),
        ),
        by_position=by_position,
        by_month=_by_period(income_txns, PeriodGranularity.MONTH),
        by_quarter=_by_period(income_txns, PeriodGranularity.QUARTER),
    )


def render_income_summary(summary: IncomeSummary) -> None:
    totals = summary.summary
    print(
        f"Income {format_currency(totals.total_income)} from {totals.transaction_count} payments "
        f"(avg {format_currency(totals.average_per_transaction)})"
    )
    for item in summary.by_position:
        print(
            f"  {item.symbol:<10} {format_currency(item.total_income):>12} "
            f"yield on cost {format_percent(item.yield_on_cost):>8}"
        )
    print("By quarter:")
    if not summary.by_quarter:
        print("  (no income)")
    for period in summary.by_quarter:
        print(f"  {period.label:<8} {format_currency(period.income):>12}")
