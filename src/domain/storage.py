from __future__ import annotations

from typing import Protocol, Sequence

from .filters import DateWindow
from .ledger import Account, AccountId, Position, PositionId, TaxLot, Transaction, TransactionType, UserId
from .property import Property, PropertyExpenseTemplate, PropertyId, PropertyIncome


class LedgerStore(Protocol):
    """Read access to a user's ledger snapshot.

    Implementations return fresh, immutable snapshots on every call.
    """

    def get_accounts(self, user_id: UserId, *, account_id: AccountId | None = None) -> list[Account]: ...

    def get_positions(self, user_id: UserId, *, account_id: AccountId | None = None) -> list[Position]: ...

    def get_transactions(
        self,
        user_id: UserId,
        *,
        account_id: AccountId | None = None,
        window: DateWindow | None = None,
        transaction_types: Sequence[TransactionType] | None = None,
    ) -> list[Transaction]: ...

    def get_tax_lots(self, position_ids: Sequence[PositionId]) -> list[TaxLot]: ...

    def get_properties(self, user_id: UserId) -> list[Property]: ...

    def get_property(self, property_id: PropertyId) -> Property | None: ...

    def get_property_income(self, property_id: PropertyId) -> list[PropertyIncome]: ...

    def get_property_expenses(self, property_id: PropertyId) -> PropertyExpenseTemplate | None: ...
