from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from enum import StrEnum
from typing import Iterable, Iterator

from pydantic import BaseModel

from .errors import DataIntegrityWarning, WarningCode
from .ledger import LotId, PositionId, TaxLot, Transaction, TransactionId, TransactionType
from .lot_selection import FifoLotSelection, LotSelectionPolicy
from .valuation import ZERO, round_currency

logger = logging.getLogger(__name__)

DEFAULT_LONG_TERM_DAYS = 365


class HoldingPeriod(StrEnum):
    SHORT_TERM = "SHORT_TERM"
    LONG_TERM = "LONG_TERM"


def classify_holding_period(
    acquired_on: date, as_of: date, *, long_term_days: int = DEFAULT_LONG_TERM_DAYS
) -> HoldingPeriod:
    if (as_of - acquired_on) > timedelta(days=long_term_days):
        return HoldingPeriod.LONG_TERM
    return HoldingPeriod.SHORT_TERM


@dataclass
class _OpenLotState:
    lot: TaxLot
    remaining_shares: Decimal
    remaining_cost: Decimal


class RealizedLot(BaseModel):
    lot_id: LotId
    position_id: PositionId
    transaction_id: TransactionId
    acquired_on: date
    sold_on: date
    shares: Decimal
    proceeds: Decimal
    cost_basis: Decimal
    gain_loss: Decimal
    holding_period: HoldingPeriod


class OpenLotSnapshot(BaseModel):
    lot_id: LotId
    position_id: PositionId
    acquired_on: date
    shares_remaining: Decimal
    cost_basis_remaining: Decimal
    cost_per_share: Decimal


class LotInventoryResult(BaseModel):
    policy: str
    realized: list[RealizedLot]
    open_lots: list[OpenLotSnapshot]
    warnings: list[DataIntegrityWarning]


class LotInventory:
    """Replay SELL transactions against tax lots to realize gains."""

    def __init__(
        self,
        *,
        policy: LotSelectionPolicy | None = None,
        long_term_days: int = DEFAULT_LONG_TERM_DAYS,
    ) -> None:
        self._policy = policy or FifoLotSelection()
        self._long_term_days = long_term_days

    def realize(self, lots: Iterable[TaxLot], transactions: Iterable[Transaction]) -> LotInventoryResult:
        """Non-SELL transactions are ignored; sales are applied in date order."""
        inventory: dict[PositionId, list[_OpenLotState]] = defaultdict(list)
        for lot in self._policy.order(lots):
            inventory[lot.position_id].append(
                _OpenLotState(lot=lot, remaining_shares=lot.shares, remaining_cost=lot.cost_basis)
            )

        realized: list[RealizedLot] = []
        warnings: list[DataIntegrityWarning] = []

        sells = sorted(
            (txn for txn in transactions if txn.transaction_type == TransactionType.SELL),
            key=lambda txn: (txn.transaction_date, txn.id),
        )
        for sell in sells:
            realized.extend(self._apply_sale(sell, inventory, warnings))

        open_lots = [
            OpenLotSnapshot(
                lot_id=state.lot.id,
                position_id=state.lot.position_id,
                acquired_on=state.lot.acquired_on,
                shares_remaining=state.remaining_shares,
                cost_basis_remaining=round_currency(state.remaining_cost),
                cost_per_share=state.lot.cost_per_share,
            )
            for states in inventory.values()
            for state in states
        ]
        open_lots.sort(key=lambda snap: (snap.position_id, snap.acquired_on, snap.lot_id))

        return LotInventoryResult(
            policy=self._policy.name,
            realized=realized,
            open_lots=open_lots,
            warnings=warnings,
        )

    def _apply_sale(
        self,
        sell: Transaction,
        inventory: dict[PositionId, list[_OpenLotState]],
        warnings: list[DataIntegrityWarning],
    ) -> list[RealizedLot]:
        shares_sold = sell.share_quantity
        if not shares_sold:
            warnings.append(
                self._warning(WarningCode.MISSING_SHARES, "SELL has no share quantity", sell=sell)
            )
            return []

        open_lots = inventory.get(sell.position_id) if sell.position_id is not None else None
        if not open_lots or not any(state.lot.acquired_on <= sell.transaction_date for state in open_lots):
            warnings.append(self._warning(WarningCode.NO_OPEN_LOT, "No open lot to realize against", sell=sell))
            return []

        net_proceeds = sell.total_amount - sell.fees
        results: list[RealizedLot] = []
        matched = ZERO
        for state, take, cost in self._match_lots(open_lots, shares_sold, sold_on=sell.transaction_date):
            matched += take
            proceeds = round_currency(net_proceeds * take / shares_sold)
            cost_basis = round_currency(cost)
            results.append(
                RealizedLot(
                    lot_id=state.lot.id,
                    position_id=state.lot.position_id,
                    transaction_id=sell.id,
                    acquired_on=state.lot.acquired_on,
                    sold_on=sell.transaction_date,
                    shares=take,
                    proceeds=proceeds,
                    cost_basis=cost_basis,
                    gain_loss=round_currency(proceeds - cost_basis),
                    holding_period=classify_holding_period(
                        state.lot.acquired_on, sell.transaction_date, long_term_days=self._long_term_days
                    ),
                )
            )

        shortfall = shares_sold - matched
        if shortfall > 0:
            warnings.append(
                self._warning(
                    WarningCode.OVERSELL,
                    f"SELL of {shares_sold} shares exceeds open lots by {shortfall}; excess ignored",
                    sell=sell,
                )
            )
        return results

    def _match_lots(
        self,
        open_lots: list[_OpenLotState],
        shares_needed: Decimal,
        *,
        sold_on: date,
    ) -> Iterator[tuple[_OpenLotState, Decimal, Decimal]]:
        remaining = shares_needed
        for state in list(open_lots):
            if remaining <= 0:
                break
            if state.lot.acquired_on > sold_on:
                continue

            take = min(remaining, state.remaining_shares)
            if take == state.remaining_shares:
                # Closing a lot takes whatever cost is left so per-share rounding never strands cents.
                cost = state.remaining_cost
            else:
                cost = state.lot.cost_per_share * take
            state.remaining_shares -= take
            state.remaining_cost -= cost
            remaining -= take
            if state.remaining_shares == 0:
                open_lots.remove(state)
            yield state, take, cost

    def _warning(self, code: WarningCode, reason: str, *, sell: Transaction) -> DataIntegrityWarning:
        message = (
            f"{reason} for transaction={sell.id} position={sell.position_id} "
            f"@{sell.transaction_date.isoformat()} amount={sell.total_amount}"
        )
        logger.warning("Realization data issue: %s", message)
        return DataIntegrityWarning(
            code=code,
            message=message,
            position_id=sell.position_id,
            transaction_id=sell.id,
        )
