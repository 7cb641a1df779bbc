from __future__ import annotations

from datetime import date
from decimal import Decimal

from domain.ledger import (
    Account,
    AccountId,
    AccountType,
    AssetCategory,
    Position,
    PositionId,
    TaxLot,
    TaxTreatment,
    Transaction,
    TransactionType,
    UserId,
)

USER_ID = UserId("user-1")
ACCOUNT_ID = AccountId("a1")


def make_account(
    account_id: str = ACCOUNT_ID,
    *,
    name: str = "Brokerage",
    account_type: AccountType = AccountType.BROKERAGE,
    tax_treatment: TaxTreatment = TaxTreatment.TAXABLE,
    user_id: str = USER_ID,
) -> Account:
    return Account(
        id=AccountId(account_id),
        user_id=UserId(user_id),
        name=name,
        account_type=account_type,
        tax_treatment=tax_treatment,
    )


def make_position(
    position_id: str,
    *,
    symbol: str | None = None,
    shares: Decimal | str = "10",
    price: Decimal | str = "100",
    cost: Decimal | str = "1000",
    category: AssetCategory = AssetCategory.EQUITY,
    account_id: str = ACCOUNT_ID,
) -> Position:
    shares = Decimal(shares)
    price = Decimal(price)
    return Position(
        id=PositionId(position_id),
        account_id=AccountId(account_id),
        symbol=symbol or position_id.upper(),
        name=f"{symbol or position_id} Inc",
        category=category,
        shares=shares,
        cost_basis_total=Decimal(cost),
        current_price=price,
        current_value=shares * price,
    )


def make_lot(
    lot_id: str,
    position_id: str,
    acquired_on: date,
    *,
    shares: Decimal | str,
    cost: Decimal | str,
    sell_first: bool = False,
) -> TaxLot:
    return TaxLot(
        id=lot_id,
        position_id=PositionId(position_id),
        acquired_on=acquired_on,
        shares=Decimal(shares),
        cost_basis=Decimal(cost),
        sell_first=sell_first,
    )


def make_transaction(
    txn_id: str,
    transaction_type: TransactionType,
    on: date,
    amount: Decimal | str,
    *,
    position_id: str | None = None,
    shares: Decimal | str | None = None,
    price: Decimal | str | None = None,
    fees: Decimal | str = "0",
    account_id: str = ACCOUNT_ID,
) -> Transaction:
    return Transaction(
        id=txn_id,
        account_id=AccountId(account_id),
        position_id=PositionId(position_id) if position_id else None,
        transaction_type=transaction_type,
        transaction_date=on,
        total_amount=Decimal(amount),
        fees=Decimal(fees),
        shares=Decimal(shares) if shares is not None else None,
        price_per_share=Decimal(price) if price is not None else None,
    )
