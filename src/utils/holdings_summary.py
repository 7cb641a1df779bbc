from __future__ import annotations

from decimal import Decimal
from typing import Iterable

from pydantic import BaseModel

from domain.ledger import Account, AccountId, AccountType, AssetCategory, Position, PositionId, TaxTreatment
from domain.valuation import ZERO, percent_of, round_currency

from .formatting import format_currency, format_decimal, format_percent


class Holding(BaseModel):
    position_id: PositionId
    symbol: str
    name: str
    account_id: AccountId
    account_name: str | None
    account_type: AccountType | None
    tax_treatment: TaxTreatment | None
    category: AssetCategory
    shares: Decimal
    current_price: Decimal
    current_value: Decimal
    cost_basis: Decimal
    cost_basis_per_share: Decimal
    gain_loss: Decimal
    gain_loss_percent: Decimal
    percent_of_portfolio: Decimal


class HoldingsTotals(BaseModel):
    total_holdings: int
    total_value: Decimal
    total_cost_basis: Decimal
    total_gain_loss: Decimal
    total_gain_loss_percent: Decimal


class HoldingsSummary(BaseModel):
    summary: HoldingsTotals
    holdings: list[Holding]


def compute_holdings_summary(positions: Iterable[Position], accounts: Iterable[Account]) -> HoldingsSummary:
    """Full holdings snapshot ordered by value; use ``top_holdings`` to truncate for display."""
    positions = list(positions)
    accounts_by_id: dict[AccountId, Account] = {account.id: account for account in accounts}

    total_value = sum((p.current_value for p in positions), start=ZERO)
    total_cost = sum((p.cost_basis_total for p in positions), start=ZERO)
    total_gain_loss = total_value - total_cost

    holdings: list[Holding] = []
    for position in positions:
        account = accounts_by_id.get(position.account_id)
        holdings.append(
            Holding(
                position_id=position.id,
                symbol=position.symbol,
                name=position.name,
                account_id=position.account_id,
                account_name=account.name if account else None,
                account_type=account.account_type if account else None,
                tax_treatment=account.tax_treatment if account else None,
                category=position.category,
                shares=position.shares,
                current_price=position.current_price,
                current_value=round_currency(position.current_value),
                cost_basis=round_currency(position.cost_basis_total),
                cost_basis_per_share=position.cost_basis_per_share,
                gain_loss=position.unrealized_gain_loss,
                gain_loss_percent=percent_of(
                    position.current_value - position.cost_basis_total, position.cost_basis_total
                ),
                percent_of_portfolio=percent_of(position.current_value, total_value),
            )
        )
    holdings.sort(key=lambda holding: (-holding.current_value, holding.position_id))

    return HoldingsSummary(
        summary=HoldingsTotals(
            total_holdings=len(holdings),
            total_value=round_currency(total_value),
            total_cost_basis=round_currency(total_cost),
            total_gain_loss=round_currency(total_gain_loss),
            total_gain_loss_percent=percent_of(total_gain_loss, total_cost),
        ),
        holdings=holdings,
    )


def top_holdings(summary: HoldingsSummary, count: int = 10) -> list[Holding]:
    return summary.holdings[:count]


def render_holdings_summary(summary: HoldingsSummary, *, top: int | None = 10) -> None:
    totals = summary.summary
    print(
        f"Holdings: {totals.total_holdings}, value {format_currency(totals.total_value)}, "
        f"gain/loss {format_currency(totals.total_gain_loss)} ({format_percent(totals.total_gain_loss_percent)})"
    )
    rows = summary.holdings if top is None else top_holdings(summary, top)
    if not rows:
        print("  (empty)")
        return

    symbol_width = max(len("Symbol"), max(len(row.symbol) for row in rows))
    shares_width = max(len("Shares"), max(len(format_decimal(row.shares)) for row in rows))
    value_width = max(len("Value"), max(len(format_currency(row.current_value)) for row in rows))
    header = f"{'Symbol':<{symbol_width}} {'Shares':>{shares_width}} {'Value':>{value_width}} {'Weight':>8}"
    lines = [header, "-" * len(header)]
    for row in rows:
        lines.append(
            f"{row.symbol:<{symbol_width}} "
            f"{format_decimal(row.shares):>{shares_width}} "
            f"{format_currency(row.current_value):>{value_width}} "
            f"{format_percent(row.percent_of_portfolio):>8}"
        )
    print("\n".join(lines))
