from __future__ import annotations

from typing import Iterable, Protocol

from .ledger import TaxLot


class LotSelectionPolicy(Protocol):
    """Decides which open lots a sale consumes first."""

    name: str

    def order(self, lots: Iterable[TaxLot]) -> list[TaxLot]: ...


class FifoLotSelection:
    """Earliest acquisition first; lots flagged ``sell_first`` jump the queue."""

    name = "FIFO"

    def order(self, lots: Iterable[TaxLot]) -> list[TaxLot]:
        return sorted(lots, key=lambda lot: (not lot.sell_first, lot.acquired_on, lot.id))
