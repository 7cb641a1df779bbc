from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

from pydantic import BaseModel

from domain.filters import PeriodGranularity, period_for
from domain.ledger import FlowDirection, Transaction, TransactionType
from domain.valuation import ZERO, round_currency

from .formatting import format_currency


class ActivityTotals(BaseModel):
    total_transactions: int
    total_inflows: Decimal
    total_outflows: Decimal
    net_flow: Decimal
    total_fees: Decimal


class TypeActivity(BaseModel):
    transaction_type: TransactionType
    count: int
    total_amount: Decimal
    net_amount: Decimal


class MonthActivity(BaseModel):
    period: str
    label: str
    count: int
    inflows: Decimal
    outflows: Decimal
    net_flow: Decimal


class ActivitySummary(BaseModel):
    summary: ActivityTotals
    by_type: list[TypeActivity]
    by_month: list[MonthActivity]


@dataclass
class _FlowAccumulator:
    count: int = 0
    inflows: Decimal = ZERO
    outflows: Decimal = ZERO
    gross: Decimal = ZERO

    def add(self, txn: Transaction) -> None:
        self.count += 1
        self.gross += txn.total_amount
        direction = txn.flow.direction
        if direction == FlowDirection.INFLOW:
            self.inflows += txn.total_amount
        elif direction == FlowDirection.OUTFLOW:
            self.outflows += txn.total_amount


def compute_activity_summary(transactions: Iterable[Transaction]) -> ActivitySummary:
    """Cash-flow activity using the transaction flow table; fees are reported separately."""
    overall = _FlowAccumulator()
    total_fees = ZERO
    by_type: dict[TransactionType, _FlowAccumulator] = {}
    by_month: dict[str, tuple[str, _FlowAccumulator]] = {}

    for txn in transactions:
        overall.add(txn)
        total_fees += txn.fees
        by_type.setdefault(txn.transaction_type, _FlowAccumulator()).add(txn)
        period = period_for(txn.transaction_date, PeriodGranularity.MONTH)
        by_month.setdefault(period.key, (period.label, _FlowAccumulator()))[1].add(txn)

    types = [
        TypeActivity(
            transaction_type=txn_type,
            count=acc.count,
            total_amount=round_currency(acc.gross),
            net_amount=round_currency(acc.inflows - acc.outflows),
        )
        for txn_type, acc in by_type.items()
    ]
    types.sort(key=lambda item: (-item.total_amount, item.transaction_type.value))

    months = [
        MonthActivity(
            period=key,
            label=label,
            count=acc.count,
            inflows=round_currency(acc.inflows),
            outflows=round_currency(acc.outflows),
            net_flow=round_currency(acc.inflows - acc.outflows),
        )
        for key, (label, acc) in sorted(by_month.items())
    ]

    return ActivitySummary(
        summary=ActivityTotals(
            total_transactions=overall.count,
            total_inflows=round_currency(overall.inflows),
            total_outflows=round_currency(overall.outflows),
            net_flow=round_currency(overall.inflows - overall.outflows),
            total_fees=round_currency(total_fees),
        ),
        by_type=types,
        by_month=months,
    )


def render_activity_summary(summary: ActivitySummary) -> None:
    totals = summary.summary
    print(
        f"Transactions: {totals.total_transactions}, in {format_currency(totals.total_inflows)}, "
        f"out {format_currency(totals.total_outflows)}, net {format_currency(totals.net_flow)}, "
        f"fees {format_currency(totals.total_fees)}"
    )
    for item in summary.by_type:
        print(f"  {item.transaction_type.value:<13} {item.count:>5} {format_currency(item.total_amount):>14}")
    print("By month:")
    if not summary.by_month:
        print("  (no activity)")
    for month in summary.by_month:
        print(f"  {month.label:<9} {month.count:>5} net {format_currency(month.net_flow):>14}")
