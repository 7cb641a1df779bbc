from __future__ import annotations

from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Iterable

from pydantic import BaseModel

from domain.errors import DataIntegrityWarning, WarningCode
from domain.filters import DateWindow, GainLossType
from domain.inventory import DEFAULT_LONG_TERM_DAYS, HoldingPeriod, LotInventory, classify_holding_period
from domain.ledger import AccountId, AssetCategory, LotId, Position, PositionId, TaxLot, Transaction, TransactionId
from domain.lot_selection import LotSelectionPolicy
from domain.valuation import ZERO, percent_of, round_currency

from .formatting import format_currency, format_percent


class UnrealizedGain(BaseModel):
    position_id: PositionId
    account_id: AccountId
    symbol: str
    name: str
    category: AssetCategory
    current_value: Decimal
    cost_basis: Decimal
    gain_loss: Decimal
    gain_loss_percent: Decimal


class RealizedGain(BaseModel):
    transaction_id: TransactionId
    position_id: PositionId
    symbol: str
    lot_id: LotId
    acquired_on: date
    sold_on: date
    shares: Decimal
    proceeds: Decimal
    cost_basis: Decimal
    gain_loss: Decimal
    gain_loss_percent: Decimal
    holding_period: HoldingPeriod


class OpenLotHolding(BaseModel):
    lot_id: LotId
    position_id: PositionId
    symbol: str
    acquired_on: date
    shares: Decimal
    cost_basis: Decimal
    holding_period: HoldingPeriod


class GainLossTotals(BaseModel):
    total_unrealized_gain_loss: Decimal
    total_realized_gain_loss: Decimal
    short_term_realized_gain_loss: Decimal
    long_term_realized_gain_loss: Decimal
    total_gain_loss: Decimal


class GainLossSummary(BaseModel):
    gain_type: GainLossType
    lot_selection: str
    summary: GainLossTotals
    unrealized_gains: list[UnrealizedGain]
    realized_gains: list[RealizedGain]
    open_lots: list[OpenLotHolding]
    warnings: list[DataIntegrityWarning]


def _unrealized(position: Position) -> UnrealizedGain:
    return UnrealizedGain(
        position_id=position.id,
        account_id=position.account_id,
        symbol=position.symbol,
        name=position.name,
        category=position.category,
        current_value=round_currency(position.current_value),
        cost_basis=round_currency(position.cost_basis_total),
        gain_loss=position.unrealized_gain_loss,
        gain_loss_percent=percent_of(position.current_value - position.cost_basis_total, position.cost_basis_total),
    )


def compute_gain_loss_summary(
    positions: Iterable[Position],
    tax_lots: Iterable[TaxLot],
    transactions: Iterable[Transaction],
    *,
    as_of: date,
    gain_type: GainLossType = GainLossType.ALL,
    window: DateWindow | None = None,
    policy: LotSelectionPolicy | None = None,
    long_term_days: int = DEFAULT_LONG_TERM_DAYS,
) -> GainLossSummary:
    """Split gain/loss into unrealized (open positions) and realized (lots consumed by sales).

    Every sale is replayed so lot state is right, but only sales inside ``window`` are
    reported. A position whose remaining lot shares disagree with its share count is
    left out of the realized figures and reported as a warning.
    """
    positions = list(positions)
    tax_lots = list(tax_lots)
    window = window or DateWindow()
    positions_by_id: dict[PositionId, Position] = {position.id: position for position in positions}

    inventory = LotInventory(policy=policy, long_term_days=long_term_days)
    result = inventory.realize(tax_lots, transactions)
    warnings = list(result.warnings)

    remaining_by_position: dict[PositionId, Decimal] = defaultdict(lambda: ZERO)
    for snap in result.open_lots:
        remaining_by_position[snap.position_id] += snap.shares_remaining

    inconsistent: set[PositionId] = set()
    for position_id in sorted({lot.position_id for lot in tax_lots}):
        position = positions_by_id.get(position_id)
        if position is None:
            continue
        remaining = remaining_by_position[position_id]
        if remaining != position.shares:
            inconsistent.add(position_id)
            warnings.append(
                DataIntegrityWarning(
                    code=WarningCode.LOT_SHARE_MISMATCH,
                    message=(
                        f"Open lots for {position.symbol} hold {remaining} shares "
                        f"but the position holds {position.shares}"
                    ),
                    position_id=position_id,
                )
            )

    def symbol_of(position_id: PositionId) -> str:
        position = positions_by_id.get(position_id)
        return position.symbol if position else ""

    realized = [
        RealizedGain(
            transaction_id=link.transaction_id,
            position_id=link.position_id,
            symbol=symbol_of(link.position_id),
            lot_id=link.lot_id,
            acquired_on=link.acquired_on,
            sold_on=link.sold_on,
            shares=link.shares,
            proceeds=link.proceeds,
            cost_basis=link.cost_basis,
            gain_loss=link.gain_loss,
            gain_loss_percent=percent_of(link.gain_loss, link.cost_basis),
            holding_period=link.holding_period,
        )
        for link in result.realized
        if link.position_id not in inconsistent and window.contains(link.sold_on)
    ]
    realized.sort(key=lambda gain: (gain.sold_on, gain.transaction_id, gain.acquired_on), reverse=True)

    unrealized = [_unrealized(position) for position in positions]
    unrealized.sort(key=lambda gain: (-gain.gain_loss, gain.position_id))

    open_lots = [
        OpenLotHolding(
            lot_id=snap.lot_id,
            position_id=snap.position_id,
            symbol=symbol_of(snap.position_id),
            acquired_on=snap.acquired_on,
            shares=snap.shares_remaining,
            cost_basis=snap.cost_basis_remaining,
            holding_period=classify_holding_period(snap.acquired_on, as_of, long_term_days=long_term_days),
        )
        for snap in result.open_lots
    ]

    total_unrealized = round_currency(sum((gain.gain_loss for gain in unrealized), start=ZERO))
    total_realized = round_currency(sum((gain.gain_loss for gain in realized), start=ZERO))
    short_term = sum((g.gain_loss for g in realized if g.holding_period == HoldingPeriod.SHORT_TERM), start=ZERO)
    long_term = sum((g.gain_loss for g in realized if g.holding_period == HoldingPeriod.LONG_TERM), start=ZERO)

    total = ZERO
    if gain_type.includes_unrealized:
        total += total_unrealized
    if gain_type.includes_realized:
        total += total_realized

    return GainLossSummary(
        gain_type=gain_type,
        lot_selection=result.policy,
        summary=GainLossTotals(
            total_unrealized_gain_loss=total_unrealized,
            total_realized_gain_loss=total_realized,
            short_term_realized_gain_loss=round_currency(short_term),
            long_term_realized_gain_loss=round_currency(long_term),
            total_gain_loss=round_currency(total),
        ),
        unrealized_gains=unrealized if gain_type.includes_unrealized else [],
        realized_gains=realized if gain_type.includes_realized else [],
        open_lots=open_lots,
        warnings=warnings,
    )


def render_gain_loss_summary(summary: GainLossSummary) -> None:
    totals = summary.summary
    print(f"Gain/loss ({summary.gain_type.value}, lots: {summary.lot_selection}):")
    print(f"  Unrealized: {format_currency(totals.total_unrealized_gain_loss)}")
    print(
        f"  Realized:   {format_currency(totals.total_realized_gain_loss)} "
        f"(short {format_currency(totals.short_term_realized_gain_loss)}, "
        f"long {format_currency(totals.long_term_realized_gain_loss)})"
    )
    print(f"  Total:      {format_currency(totals.total_gain_loss)}")

    for gain in summary.realized_gains:
        print(
            f"  {gain.sold_on} {gain.symbol:<8} {gain.shares:>10} "
            f"{format_currency(gain.gain_loss):>12} {format_percent(gain.gain_loss_percent):>9} "
            f"{gain.holding_period.value}"
        )
    for warning in summary.warnings:
        print(f"  ! {warning.code.value}: {warning.message}")
