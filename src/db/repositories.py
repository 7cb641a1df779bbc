from __future__ import annotations

from typing import Sequence

from sqlalchemy import select
from sqlalchemy.orm import Session

from db import models
from domain.filters import DateWindow
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
from domain.property import (
    IncomeFrequency,
    IncomeType,
    Property,
    PropertyExpenseTemplate,
    PropertyId,
    PropertyIncome,
)


class SqlLedgerStore:
    """``LedgerStore`` backed by the SQLAlchemy read model.

    The ``add_*`` writers exist for seeding; report code only uses the ``get_*`` readers.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def add_account(self, account: Account) -> Account:
        orm_account = models.AccountOrm(
            id=account.id,
            user_id=account.user_id,
            name=account.name,
            account_type=account.account_type.value,
            tax_treatment=account.tax_treatment.value,
        )
        self._session.add(orm_account)
        self._session.commit()
        return self._account_to_domain(orm_account)

    def add_position(self, position: Position) -> Position:
        orm_position = models.PositionOrm(
            id=position.id,
            account_id=position.account_id,
            symbol=position.symbol,
            name=position.name,
            category=position.category.value,
            shares=position.shares,
            cost_basis_total=position.cost_basis_total,
            current_price=position.current_price,
            current_value=position.current_value,
        )
        self._session.add(orm_position)
        self._session.commit()
        return self._position_to_domain(orm_position)

    def add_tax_lot(self, lot: TaxLot) -> TaxLot:
        orm_lot = models.TaxLotOrm(
            id=lot.id,
            position_id=lot.position_id,
            acquired_on=lot.acquired_on,
            shares=lot.shares,
            cost_basis=lot.cost_basis,
            sell_first=lot.sell_first,
        )
        self._session.add(orm_lot)
        self._session.commit()
        return self._lot_to_domain(orm_lot)

    def add_transaction(self, txn: Transaction) -> Transaction:
        orm_txn = models.TransactionOrm(
            id=txn.id,
            account_id=txn.account_id,
            position_id=txn.position_id,
            transaction_type=txn.transaction_type.value,
            transaction_date=txn.transaction_date,
            total_amount=txn.total_amount,
            fees=txn.fees,
            shares=txn.shares,
            price_per_share=txn.price_per_share,
        )
        self._session.add(orm_txn)
        self._session.commit()
        return self._transaction_to_domain(orm_txn)

    def add_property(
        self,
        prop: Property,
        *,
        incomes: Sequence[PropertyIncome] = (),
        expenses: PropertyExpenseTemplate | None = None,
    ) -> Property:
        orm_property = models.PropertyOrm(**prop.model_dump())
        orm_property.incomes = [
            models.PropertyIncomeOrm(
                id=income.id,
                income_type=income.income_type.value,
                amount=income.amount,
                frequency=income.frequency.value,
                is_active=income.is_active,
            )
            for income in incomes
        ]
        if expenses is not None:
            orm_property.expense_template = models.PropertyExpenseTemplateOrm(**expenses.model_dump())
        self._session.add(orm_property)
        self._session.commit()
        return self._property_to_domain(orm_property)

    def get_accounts(self, user_id: UserId, *, account_id: AccountId | None = None) -> list[Account]:
        stmt = select(models.AccountOrm).where(models.AccountOrm.user_id == user_id)
        if account_id is not None:
            stmt = stmt.where(models.AccountOrm.id == account_id)
        stmt = stmt.order_by(models.AccountOrm.id)
        return [self._account_to_domain(orm) for orm in self._session.scalars(stmt)]

    def get_positions(self, user_id: UserId, *, account_id: AccountId | None = None) -> list[Position]:
        stmt = (
            select(models.PositionOrm)
            .join(models.AccountOrm, models.PositionOrm.account_id == models.AccountOrm.id)
            .where(models.AccountOrm.user_id == user_id)
        )
        if account_id is not None:
            stmt = stmt.where(models.PositionOrm.account_id == account_id)
        stmt = stmt.order_by(models.PositionOrm.id)
        return [self._position_to_domain(orm) for orm in self._session.scalars(stmt)]

    def get_transactions(
        self,
        user_id: UserId,
        *,
        account_id: AccountId | None = None,
        window: DateWindow | None = None,
        transaction_types: Sequence[TransactionType] | None = None,
    ) -> list[Transaction]:
        stmt = (
            select(models.TransactionOrm)
            .join(models.AccountOrm, models.TransactionOrm.account_id == models.AccountOrm.id)
            .where(models.AccountOrm.user_id == user_id)
        )
        if account_id is not None:
            stmt = stmt.where(models.TransactionOrm.account_id == account_id)
        if window is not None and window.start is not None:
            stmt = stmt.where(models.TransactionOrm.transaction_date >= window.start)
        if window is not None and window.end is not None:
            stmt = stmt.where(models.TransactionOrm.transaction_date <= window.end)
        if transaction_types is not None:
            stmt = stmt.where(models.TransactionOrm.transaction_type.in_([t.value for t in transaction_types]))
        stmt = stmt.order_by(models.TransactionOrm.transaction_date.asc(), models.TransactionOrm.id.asc())
        return [self._transaction_to_domain(orm) for orm in self._session.scalars(stmt)]

    def get_tax_lots(self, position_ids: Sequence[PositionId]) -> list[TaxLot]:
        if not position_ids:
            return []
        stmt = (
            select(models.TaxLotOrm)
            .where(models.TaxLotOrm.position_id.in_(list(position_ids)))
            .order_by(models.TaxLotOrm.acquired_on.asc(), models.TaxLotOrm.id.asc())
        )
        return [self._lot_to_domain(orm) for orm in self._session.scalars(stmt)]

    def get_properties(self, user_id: UserId) -> list[Property]:
        stmt = select(models.PropertyOrm).where(models.PropertyOrm.user_id == user_id).order_by(models.PropertyOrm.id)
        return [self._property_to_domain(orm) for orm in self._session.scalars(stmt)]

    def get_property(self, property_id: PropertyId) -> Property | None:
        orm_property = self._session.get(models.PropertyOrm, property_id)
        if orm_property is None:
            return None
        return self._property_to_domain(orm_property)

    def get_property_income(self, property_id: PropertyId) -> list[PropertyIncome]:
        stmt = (
            select(models.PropertyIncomeOrm)
            .where(models.PropertyIncomeOrm.property_id == property_id)
            .order_by(models.PropertyIncomeOrm.id)
        )
        return [
            PropertyIncome(
                id=orm.id,
                property_id=PropertyId(orm.property_id),
                income_type=IncomeType(orm.income_type),
                amount=orm.amount,
                frequency=IncomeFrequency(orm.frequency),
                is_active=orm.is_active,
            )
            for orm in self._session.scalars(stmt)
        ]

    def get_property_expenses(self, property_id: PropertyId) -> PropertyExpenseTemplate | None:
        orm_template = self._session.get(models.PropertyExpenseTemplateOrm, property_id)
        if orm_template is None:
            return None
        return PropertyExpenseTemplate(
            **{name: getattr(orm_template, name) for name in PropertyExpenseTemplate.model_fields}
        )

    @staticmethod
    def _account_to_domain(orm: models.AccountOrm) -> Account:
        return Account(
            id=AccountId(orm.id),
            user_id=UserId(orm.user_id),
            name=orm.name,
            account_type=AccountType(orm.account_type),
            tax_treatment=TaxTreatment(orm.tax_treatment),
        )

    @staticmethod
    def _position_to_domain(orm: models.PositionOrm) -> Position:
        return Position(
            id=PositionId(orm.id),
            account_id=AccountId(orm.account_id),
            symbol=orm.symbol,
            name=orm.name,
            category=AssetCategory(orm.category),
            shares=orm.shares,
            cost_basis_total=orm.cost_basis_total,
            current_price=orm.current_price,
            current_value=orm.current_value,
        )

    @staticmethod
    def _lot_to_domain(orm: models.TaxLotOrm) -> TaxLot:
        return TaxLot(
            id=orm.id,
            position_id=PositionId(orm.position_id),
            acquired_on=orm.acquired_on,
            shares=orm.shares,
            cost_basis=orm.cost_basis,
            sell_first=orm.sell_first,
        )

    @staticmethod
    def _transaction_to_domain(orm: models.TransactionOrm) -> Transaction:
        return Transaction(
            id=orm.id,
            account_id=AccountId(orm.account_id),
            position_id=PositionId(orm.position_id) if orm.position_id is not None else None,
            transaction_type=TransactionType(orm.transaction_type),
            transaction_date=orm.transaction_date,
            total_amount=orm.total_amount,
            fees=orm.fees,
            shares=orm.shares,
            price_per_share=orm.price_per_share,
        )

    @staticmethod
    def _property_to_domain(orm: models.PropertyOrm) -> Property:
        return Property(
            id=PropertyId(orm.id),
            user_id=UserId(orm.user_id),
            name=orm.name,
            purchase_price=orm.purchase_price,
            current_value=orm.current_value,
            down_payment=orm.down_payment,
            loan_amount=orm.loan_amount,
            loan_balance=orm.loan_balance,
            interest_rate_percent=orm.interest_rate_percent,
            loan_term_years=orm.loan_term_years,
            monthly_mortgage_payment=orm.monthly_mortgage_payment,
            refurbish_costs=orm.refurbish_costs,
            furnish_costs=orm.furnish_costs,
            acquisition_costs=orm.acquisition_costs,
            management_fee_percent=orm.management_fee_percent,
            vacancy_rate_percent=orm.vacancy_rate_percent,
            desired_cap_rate_percent=orm.desired_cap_rate_percent,
        )
