from __future__ import annotations

from datetime import date
from decimal import Decimal

from sqlalchemy import Boolean, Date, ForeignKey, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy.types import TypeDecorator


class DecimalAsString(TypeDecorator):
    impl = String
    cache_ok = True

    def process_bind_param(self, value: Decimal | None, dialect: object) -> str | None:
        if value is None:
            return None
        return str(value)

    def process_result_value(self, value: str | None, dialect: object) -> Decimal | None:
        if value is None:
            return None
        return Decimal(value)


class Base(DeclarativeBase):
    pass


class AccountOrm(Base):
    __tablename__ = "accounts"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    user_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    account_type: Mapped[str] = mapped_column(String, nullable=False)
    tax_treatment: Mapped[str] = mapped_column(String, nullable=False)

    positions: Mapped[list["PositionOrm"]] = relationship(back_populates="account", cascade="all, delete-orphan")
    transactions: Mapped[list["TransactionOrm"]] = relationship(
        back_populates="account", cascade="all, delete-orphan"
    )


class PositionOrm(Base):
    __tablename__ = "positions"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    account_id: Mapped[str] = mapped_column(String, ForeignKey("accounts.id"), nullable=False)
    symbol: Mapped[str] = mapped_column(String, nullable=False)
    name: Mapped[str] = mapped_column(String, nullable=False, default="")
    category: Mapped[str] = mapped_column(String, nullable=False)
    shares: Mapped[Decimal] = mapped_column(DecimalAsString, nullable=False)
    cost_basis_total: Mapped[Decimal] = mapped_column(DecimalAsString, nullable=False)
    current_price: Mapped[Decimal] = mapped_column(DecimalAsString, nullable=False)
    current_value: Mapped[Decimal] = mapped_column(DecimalAsString, nullable=False)

    account: Mapped[AccountOrm] = relationship(back_populates="positions")
    tax_lots: Mapped[list["TaxLotOrm"]] = relationship(back_populates="position", cascade="all, delete-orphan")


class TaxLotOrm(Base):
    __tablename__ = "tax_lots"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    position_id: Mapped[str] = mapped_column(String, ForeignKey("positions.id"), nullable=False)
    acquired_on: Mapped[date] = mapped_column(Date, nullable=False)
    shares: Mapped[Decimal] = mapped_column(DecimalAsString, nullable=False)
    cost_basis: Mapped[Decimal] = mapped_column(DecimalAsString, nullable=False)
    sell_first: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    position: Mapped[PositionOrm] = relationship(back_populates="tax_lots")


class TransactionOrm(Base):
    __tablename__ = "transactions"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    account_id: Mapped[str] = mapped_column(String, ForeignKey("accounts.id"), nullable=False)
    position_id: Mapped[str | None] = mapped_column(String, ForeignKey("positions.id"), nullable=True)
    transaction_type: Mapped[str] = mapped_column(String, nullable=False)
    transaction_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    total_amount: Mapped[Decimal] = mapped_column(DecimalAsString, nullable=False)
    fees: Mapped[Decimal] = mapped_column(DecimalAsString, nullable=False)
    shares: Mapped[Decimal | None] = mapped_column(DecimalAsString, nullable=True)
    price_per_share: Mapped[Decimal | None] = mapped_column(DecimalAsString, nullable=True)

    account: Mapped[AccountOrm] = relationship(back_populates="transactions")


class PropertyOrm(Base):
    __tablename__ = "properties"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    user_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String, nullable=False, default="")
    purchase_price: Mapped[Decimal] = mapped_column(DecimalAsString, nullable=False)
    current_value: Mapped[Decimal] = mapped_column(DecimalAsString, nullable=False)
    down_payment: Mapped[Decimal | None] = mapped_column(DecimalAsString, nullable=True)
    loan_amount: Mapped[Decimal | None] = mapped_column(DecimalAsString, nullable=True)
    loan_balance: Mapped[Decimal | None] = mapped_column(DecimalAsString, nullable=True)
    interest_rate_percent: Mapped[Decimal | None] = mapped_column(DecimalAsString, nullable=True)
    loan_term_years: Mapped[int | None] = mapped_column(Integer, nullable=True)
    monthly_mortgage_payment: Mapped[Decimal | None] = mapped_column(DecimalAsString, nullable=True)
    refurbish_costs: Mapped[Decimal | None] = mapped_column(DecimalAsString, nullable=True)
    furnish_costs: Mapped[Decimal | None] = mapped_column(DecimalAsString, nullable=True)
    acquisition_costs: Mapped[Decimal | None] = mapped_column(DecimalAsString, nullable=True)
    management_fee_percent: Mapped[Decimal | None] = mapped_column(DecimalAsString, nullable=True)
    vacancy_rate_percent: Mapped[Decimal | None] = mapped_column(DecimalAsString, nullable=True)
    desired_cap_rate_percent: Mapped[Decimal | None] = mapped_column(DecimalAsString, nullable=True)

    incomes: Mapped[list["PropertyIncomeOrm"]] = relationship(
        back_populates="property", cascade="all, delete-orphan"
    )
    expense_template: Mapped["PropertyExpenseTemplateOrm | None"] = relationship(
        back_populates="property", cascade="all, delete-orphan", uselist=False
    )


class PropertyIncomeOrm(Base):
    __tablename__ = "property_incomes"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    property_id: Mapped[str] = mapped_column(String, ForeignKey("properties.id"), nullable=False)
    income_type: Mapped[str] = mapped_column(String, nullable=False)
    amount: Mapped[Decimal] = mapped_column(DecimalAsString, nullable=False)
    frequency: Mapped[str] = mapped_column(String, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    property: Mapped[PropertyOrm] = relationship(back_populates="incomes")


class PropertyExpenseTemplateOrm(Base):
    __tablename__ = "property_expense_templates"

    property_id: Mapped[str] = mapped_column(String, ForeignKey("properties.id"), primary_key=True)
    property_management_fee: Mapped[Decimal | None] = mapped_column(DecimalAsString, nullable=True)
    accounting_legal_fees: Mapped[Decimal | None] = mapped_column(DecimalAsString, nullable=True)
    repairs_maintenance: Mapped[Decimal | None] = mapped_column(DecimalAsString, nullable=True)
    pest_control: Mapped[Decimal | None] = mapped_column(DecimalAsString, nullable=True)
    real_estate_taxes: Mapped[Decimal | None] = mapped_column(DecimalAsString, nullable=True)
    property_insurance: Mapped[Decimal | None] = mapped_column(DecimalAsString, nullable=True)
    hoa_fees: Mapped[Decimal | None] = mapped_column(DecimalAsString, nullable=True)
    water_sewer: Mapped[Decimal | None] = mapped_column(DecimalAsString, nullable=True)
    gas_electricity: Mapped[Decimal | None] = mapped_column(DecimalAsString, nullable=True)
    garbage: Mapped[Decimal | None] = mapped_column(DecimalAsString, nullable=True)
    cable_phone_internet: Mapped[Decimal | None] = mapped_column(DecimalAsString, nullable=True)
    advertising: Mapped[Decimal | None] = mapped_column(DecimalAsString, nullable=True)

    property: Mapped[PropertyOrm] = relationship(back_populates="expense_template")
