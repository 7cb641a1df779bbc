from __future__ import annotations

from decimal import Decimal
from enum import StrEnum
from typing import NewType

from pydantic import BaseModel, Field, model_validator

from .ledger import UserId, new_id
from .valuation import ZERO, coalesce_zero

PropertyId = NewType("PropertyId", str)


class IncomeFrequency(StrEnum):
    MONTHLY = "MONTHLY"
    QUARTERLY = "QUARTERLY"
    ANNUALLY = "ANNUALLY"
    ONE_TIME = "ONE_TIME"


class IncomeType(StrEnum):
    RENT = "RENT"
    PARKING = "PARKING"
    LAUNDRY = "LAUNDRY"
    STORAGE = "STORAGE"
    PET_FEE = "PET_FEE"
    OTHER = "OTHER"


_MONTHS_PER_PERIOD: dict[IncomeFrequency, Decimal] = {
    IncomeFrequency.MONTHLY: Decimal(1),
    IncomeFrequency.QUARTERLY: Decimal(3),
    IncomeFrequency.ANNUALLY: Decimal(12),
}


def normalize_to_monthly(amount: Decimal, frequency: IncomeFrequency) -> Decimal:
    months = _MONTHS_PER_PERIOD.get(frequency)
    if months is None:
        # One-time receipts are not part of recurring income.
        return ZERO
    return amount / months


class Property(BaseModel):
    id: PropertyId = PropertyId(Field(default_factory=new_id))
    user_id: UserId
    name: str = ""
    purchase_price: Decimal
    current_value: Decimal
    down_payment: Decimal | None = None
    loan_amount: Decimal | None = None
    loan_balance: Decimal | None = None
    interest_rate_percent: Decimal | None = None
    loan_term_years: int | None = None
    monthly_mortgage_payment: Decimal | None = None
    refurbish_costs: Decimal | None = None
    furnish_costs: Decimal | None = None
    acquisition_costs: Decimal | None = None
    management_fee_percent: Decimal | None = None
    vacancy_rate_percent: Decimal | None = None
    desired_cap_rate_percent: Decimal | None = None

    @model_validator(mode="after")
    def _validate_fields(self) -> Property:
        if self.purchase_price < 0:
            raise ValueError("Property.purchase_price must be >= 0")
        if self.current_value < 0:
            raise ValueError("Property.current_value must be >= 0")
        vacancy = coalesce_zero(self.vacancy_rate_percent)
        if not 0 <= vacancy <= 100:
            raise ValueError("Property.vacancy_rate_percent must be within 0..100")
        return self


class PropertyIncome(BaseModel):
    id: str = Field(default_factory=new_id)
    property_id: PropertyId
    income_type: IncomeType = IncomeType.RENT
    amount: Decimal
    frequency: IncomeFrequency = IncomeFrequency.MONTHLY
    is_active: bool = True

    @property
    def is_recurring(self) -> bool:
        return self.frequency != IncomeFrequency.ONE_TIME

    @property
    def monthly_amount(self) -> Decimal:
        return normalize_to_monthly(self.amount, self.frequency)

    @model_validator(mode="after")
    def _validate_amount(self) -> PropertyIncome:
        if self.amount < 0:
            raise ValueError("PropertyIncome.amount must be >= 0")
        return self


class PropertyExpenseTemplate(BaseModel):
    """Monthly operating expenses; a field left unset costs nothing."""

    property_management_fee: Decimal | None = None
    accounting_legal_fees: Decimal | None = None
    repairs_maintenance: Decimal | None = None
    pest_control: Decimal | None = None
    real_estate_taxes: Decimal | None = None
    property_insurance: Decimal | None = None
    hoa_fees: Decimal | None = None
    water_sewer: Decimal | None = None
    gas_electricity: Decimal | None = None
    garbage: Decimal | None = None
    cable_phone_internet: Decimal | None = None
    advertising: Decimal | None = None

    def amounts(self) -> dict[str, Decimal]:
        return {name: coalesce_zero(getattr(self, name)) for name in type(self).model_fields}

    @model_validator(mode="after")
    def _validate_non_negative(self) -> PropertyExpenseTemplate:
        for name, amount in self.amounts().items():
            if amount < 0:
                raise ValueError(f"PropertyExpenseTemplate.{name} must be >= 0")
        return self
