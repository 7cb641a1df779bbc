from __future__ import annotations

from datetime import date
from decimal import Decimal
from enum import StrEnum
from typing import NewType
from uuid import uuid4

from pydantic import BaseModel, Field, computed_field, model_validator

from .valuation import CENT, ZERO, coalesce_zero, round_currency, safe_ratio

UserId = NewType("UserId", str)
AccountId = NewType("AccountId", str)
PositionId = NewType("PositionId", str)
LotId = NewType("LotId", str)
TransactionId = NewType("TransactionId", str)


def new_id() -> str:
    return str(uuid4())


class TaxTreatment(StrEnum):
    TAXABLE = "TAXABLE"
    TAX_DEFERRED = "TAX_DEFERRED"
    TAX_EXEMPT = "TAX_EXEMPT"


class AccountType(StrEnum):
    BROKERAGE = "BROKERAGE"
    RETIREMENT = "RETIREMENT"
    IRA = "IRA"
    ROTH_IRA = "ROTH_IRA"
    HSA = "HSA"
    BANK = "BANK"
    REAL_ESTATE = "REAL_ESTATE"
    OTHER = "OTHER"


class AssetCategory(StrEnum):
    EQUITY = "EQUITY"
    FIXED_INCOME = "FIXED_INCOME"
    CASH = "CASH"
    REAL_ESTATE = "REAL_ESTATE"
    COMMODITY = "COMMODITY"
    CRYPTO = "CRYPTO"
    ALTERNATIVE = "ALTERNATIVE"
    OTHER = "OTHER"


class TransactionType(StrEnum):
    BUY = "BUY"
    SELL = "SELL"
    DIVIDEND = "DIVIDEND"
    DISTRIBUTION = "DISTRIBUTION"
    INTEREST = "INTEREST"
    INCOME = "INCOME"
    CONTRIBUTION = "CONTRIBUTION"
    WITHDRAWAL = "WITHDRAWAL"
    TRANSFER = "TRANSFER"
    EXPENSE = "EXPENSE"
    FEE = "FEE"


class FlowDirection(StrEnum):
    INFLOW = "INFLOW"
    OUTFLOW = "OUTFLOW"
    NEUTRAL = "NEUTRAL"


class FlowCategory(StrEnum):
    TRADE = "TRADE"
    INCOME = "INCOME"
    CAPITAL = "CAPITAL"
    COST = "COST"


class FlowRule(BaseModel):
    direction: FlowDirection
    category: FlowCategory

    @property
    def sign(self) -> int:
        if self.direction == FlowDirection.INFLOW:
            return 1
        if self.direction == FlowDirection.OUTFLOW:
            return -1
        return 0


# Cash perspective: money leaving the account is an outflow.
FLOW_TABLE: dict[TransactionType, FlowRule] = {
    TransactionType.BUY: FlowRule(direction=FlowDirection.OUTFLOW, category=FlowCategory.TRADE),
    TransactionType.SELL: FlowRule(direction=FlowDirection.INFLOW, category=FlowCategory.TRADE),
    TransactionType.DIVIDEND: FlowRule(direction=FlowDirection.INFLOW, category=FlowCategory.INCOME),
    TransactionType.DISTRIBUTION: FlowRule(direction=FlowDirection.INFLOW, category=FlowCategory.INCOME),
    TransactionType.INTEREST: FlowRule(direction=FlowDirection.INFLOW, category=FlowCategory.INCOME),
    TransactionType.INCOME: FlowRule(direction=FlowDirection.INFLOW, category=FlowCategory.INCOME),
    TransactionType.CONTRIBUTION: FlowRule(direction=FlowDirection.INFLOW, category=FlowCategory.CAPITAL),
    TransactionType.WITHDRAWAL: FlowRule(direction=FlowDirection.OUTFLOW, category=FlowCategory.CAPITAL),
    TransactionType.TRANSFER: FlowRule(direction=FlowDirection.NEUTRAL, category=FlowCategory.CAPITAL),
    TransactionType.EXPENSE: FlowRule(direction=FlowDirection.OUTFLOW, category=FlowCategory.COST),
    TransactionType.FEE: FlowRule(direction=FlowDirection.OUTFLOW, category=FlowCategory.COST),
}


def flow_rule(transaction_type: TransactionType) -> FlowRule:
    return FLOW_TABLE[transaction_type]


class Account(BaseModel):
    id: AccountId = AccountId(Field(default_factory=new_id))
    user_id: UserId
    name: str
    account_type: AccountType = AccountType.BROKERAGE
    tax_treatment: TaxTreatment = TaxTreatment.TAXABLE


class Position(BaseModel):
    """An open holding inside an account.

    ``current_value`` is stored rather than derived so the snapshot matches what the
    storage layer reports, but it must agree with ``shares * current_price`` to the cent.
    """

    id: PositionId = PositionId(Field(default_factory=new_id))
    account_id: AccountId
    symbol: str
    name: str = ""
    category: AssetCategory = AssetCategory.OTHER
    shares: Decimal
    cost_basis_total: Decimal
    current_price: Decimal
    current_value: Decimal

    @computed_field  # type: ignore[prop-decorator]
    @property
    def unrealized_gain_loss(self) -> Decimal:
        return round_currency(self.current_value - self.cost_basis_total)

    @property
    def cost_basis_per_share(self) -> Decimal:
        return safe_ratio(self.cost_basis_total, self.shares)

    @model_validator(mode="after")
    def _validate_fields(self) -> Position:
        if self.shares < 0:
            raise ValueError("Position.shares must be >= 0")
        if self.cost_basis_total < 0:
            raise ValueError("Position.cost_basis_total must be >= 0")
        if abs(self.shares * self.current_price - self.current_value) > CENT:
            msg = (
                f"Position {self.symbol} current_value={self.current_value} does not match "
                f"shares={self.shares} * current_price={self.current_price}"
            )
            raise ValueError(msg)
        return self


class TaxLot(BaseModel):
    id: LotId = LotId(Field(default_factory=new_id))
    position_id: PositionId
    acquired_on: date
    shares: Decimal
    cost_basis: Decimal
    sell_first: bool = False

    @property
    def cost_per_share(self) -> Decimal:
        return safe_ratio(self.cost_basis, self.shares)

    @model_validator(mode="after")
    def _validate_fields(self) -> TaxLot:
        if self.shares <= 0:
            raise ValueError("TaxLot.shares must be > 0")
        if self.cost_basis < 0:
            raise ValueError("TaxLot.cost_basis must be >= 0")
        return self


class Transaction(BaseModel):
    """A ledger entry.

    ``total_amount`` is a magnitude; its direction comes from ``FLOW_TABLE``.
    """

    id: TransactionId = TransactionId(Field(default_factory=new_id))
    account_id: AccountId
    position_id: PositionId | None = None
    transaction_type: TransactionType
    transaction_date: date
    total_amount: Decimal
    fees: Decimal = ZERO
    shares: Decimal | None = None
    price_per_share: Decimal | None = None

    @property
    def flow(self) -> FlowRule:
        return flow_rule(self.transaction_type)

    @property
    def signed_amount(self) -> Decimal:
        return self.total_amount * self.flow.sign

    @property
    def share_quantity(self) -> Decimal | None:
        """Shares moved by the transaction, derived from the price when not recorded."""
        if self.shares is not None:
            return self.shares
        price = coalesce_zero(self.price_per_share)
        if price == 0:
            return None
        return self.total_amount / price

    @model_validator(mode="after")
    def _validate_fields(self) -> Transaction:
        if self.total_amount < 0:
            raise ValueError("Transaction.total_amount must be >= 0, direction comes from the type")
        if self.fees < 0:
            raise ValueError("Transaction.fees must be >= 0")
        if self.shares is not None and self.shares < 0:
            raise ValueError("Transaction.shares must be >= 0")
        return self
