from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, Iterable

from pydantic import BaseModel

from domain.ledger import Account, AccountId, Position
from domain.valuation import ZERO, percent_of, round_currency

from .formatting import format_currency, format_percent

OTHER_LABEL = "Other"


class AllocationGroup(BaseModel):
    key: str
    label: str
    value: Decimal
    percentage: Decimal
    count: int
    cost_basis: Decimal | None = None
    gain_loss: Decimal | None = None


class AllocationSummary(BaseModel):
    total_value: Decimal
    total_cost_basis: Decimal
    total_gain_loss: Decimal
    total_gain_loss_percent: Decimal
    position_count: int
    by_category: list[AllocationGroup]
    by_account: list[AllocationGroup]
    by_account_type: list[AllocationGroup]
    by_tax_treatment: list[AllocationGroup]


@dataclass
class _GroupAccumulator:
    label: str
    value: Decimal = ZERO
    cost_basis: Decimal = ZERO
    count: int = 0


GroupKey = Callable[[Position], tuple[str, str]]


def _group(
    positions: Iterable[Position],
    key_of: GroupKey,
    total_value: Decimal,
    *,
    with_cost: bool = False,
) -> list[AllocationGroup]:
    accumulators: dict[str, _GroupAccumulator] = {}
    for position in positions:
        key, label = key_of(position)
        acc = accumulators.get(key)
        if acc is None:
            acc = accumulators[key] = _GroupAccumulator(label=label)
        acc.value += position.current_value
        acc.cost_basis += position.cost_basis_total
        acc.count += 1

    groups = [
        AllocationGroup(
            key=key,
            label=acc.label,
            value=round_currency(acc.value),
            percentage=percent_of(acc.value, total_value),
            count=acc.count,
            cost_basis=round_currency(acc.cost_basis) if with_cost else None,
            gain_loss=round_currency(acc.value - acc.cost_basis) if with_cost else None,
        )
        for key, acc in accumulators.items()
    ]
    # Callers truncate to the top entries, so the order is part of the contract.
    groups.sort(key=lambda group: (-group.value, group.label, group.key))
    return groups


def compute_allocation_summary(positions: Iterable[Position], accounts: Iterable[Account]) -> AllocationSummary:
    """Break the portfolio down by category, account, account type and tax treatment."""
    positions = list(positions)
    accounts_by_id: dict[AccountId, Account] = {account.id: account for account in accounts}

    total_value = sum((p.current_value for p in positions), start=ZERO)
    total_cost_basis = sum((p.cost_basis_total for p in positions), start=ZERO)
    total_gain_loss = total_value - total_cost_basis

    def by_category(position: Position) -> tuple[str, str]:
        return position.category.value, position.category.value

    def by_account(position: Position) -> tuple[str, str]:
        account = accounts_by_id.get(position.account_id)
        return position.account_id, account.name if account else OTHER_LABEL

    def by_account_type(position: Position) -> tuple[str, str]:
        account = accounts_by_id.get(position.account_id)
        label = account.account_type.value if account else OTHER_LABEL
        return label, label

    def by_tax_treatment(position: Position) -> tuple[str, str]:
        account = accounts_by_id.get(position.account_id)
        label = account.tax_treatment.value if account else OTHER_LABEL
        return label, label

    return AllocationSummary(
        total_value=round_currency(total_value),
        total_cost_basis=round_currency(total_cost_basis),
        total_gain_loss=round_currency(total_gain_loss),
        total_gain_loss_percent=percent_of(total_gain_loss, total_cost_basis),
        position_count=len(positions),
        by_category=_group(positions, by_category, total_value),
        by_account=_group(positions, by_account, total_value, with_cost=True),
        by_account_type=_group(positions, by_account_type, total_value),
        by_tax_treatment=_group(positions, by_tax_treatment, total_value),
    )


def render_allocation_summary(summary: AllocationSummary) -> None:
    print(f"Portfolio value: {format_currency(summary.total_value)} ({summary.position_count} positions)")
    print(
        f"Gain/loss: {format_currency(summary.total_gain_loss)} "
        f"({format_percent(summary.total_gain_loss_percent)} of cost basis)"
    )
    sections = (
        ("Category", summary.by_category),
        ("Account", summary.by_account),
        ("Account type", summary.by_account_type),
        ("Tax treatment", summary.by_tax_treatment),
    )
    for title, groups in sections:
        print()
        if not groups:
            print(f"{title}: (empty)")
            continue

        label_width = max(len(title), max(len(group.label) for group in groups))
        value_width = max(len("Value"), max(len(format_currency(group.value)) for group in groups))
        header = f"{title:<{label_width}} {'Value':>{value_width}} {'Share':>8} {'Count':>5}"
        lines = [header, "-" * len(header)]
        for group in groups:
            lines.append(
                f"{group.label:<{label_width}} "
                f"{format_currency(group.value):>{value_width}} "
                f"{format_percent(group.percentage):>8} "
                f"{group.count:>5}"
            )
        print("\n".join(lines))
