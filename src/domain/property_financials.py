"""Real-estate underwriting metrics for a single property.

Every monetary figure is rounded to cents as soon as it is produced so later steps
build on the same numbers a reader sees. Percentages and ratios stay unrounded.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Iterable

from pydantic import BaseModel

from .filters import PeriodGranularity, iter_periods
from .property import IncomeType, Property, PropertyExpenseTemplate, PropertyId, PropertyIncome
from .valuation import HUNDRED, ZERO, coalesce_zero, percent_of, round_currency, safe_ratio

MONTHS_PER_YEAR = 12
ONE_PERCENT = Decimal("0.01")
TWO_PERCENT = Decimal("0.02")
RULE_135_MULTIPLIER = Decimal("1.35")


class PropertyFinancials(BaseModel):
    property_id: PropertyId

    gross_monthly_rental_income: Decimal
    additional_monthly_income: Decimal
    gross_monthly_income: Decimal
    vacancy_loss: Decimal
    effective_gross_income: Decimal
    annual_rental_income: Decimal
    annual_additional_income: Decimal

    total_monthly_expenses: Decimal
    annual_operating_expenses: Decimal

    monthly_noi: Decimal
    annual_noi: Decimal

    monthly_mortgage_payment: Decimal
    monthly_cash_flow: Decimal
    annual_cash_flow: Decimal

    total_investment: Decimal
    total_cash_invested: Decimal
    equity: Decimal
    cap_rate: Decimal
    cash_on_cash_return: Decimal
    return_on_equity: Decimal

    loan_to_value: Decimal
    debt_service_coverage_ratio: Decimal

    meets_one_percent_rule: bool
    one_percent_rule_value: Decimal
    meets_two_percent_rule: bool
    two_percent_rule_value: Decimal
    meets_one_thirty_five_rule: bool
    one_thirty_five_rule_value: Decimal

    meets_desired_cap_rate: bool | None = None
    max_price_at_desired_cap_rate: Decimal | None = None


def _monthly_income(incomes: Iterable[PropertyIncome], *, rent: bool) -> Decimal:
    total = ZERO
    for income in incomes:
        if not income.is_active or not income.is_recurring:
            continue
        if (income.income_type == IncomeType.RENT) != rent:
            continue
        total += income.monthly_amount
    return round_currency(total)


def loan_balance_of(prop: Property) -> Decimal:
    if prop.loan_balance is not None:
        return prop.loan_balance
    return coalesce_zero(prop.loan_amount)


def calculate_property_financials(
    prop: Property,
    incomes: Iterable[PropertyIncome],
    expenses: PropertyExpenseTemplate | None,
) -> PropertyFinancials:
    incomes = list(incomes)
    template = expenses or PropertyExpenseTemplate()

    gross_rent = _monthly_income(incomes, rent=True)
    additional = _monthly_income(incomes, rent=False)
    vacancy_loss = round_currency(gross_rent * coalesce_zero(prop.vacancy_rate_percent) / HUNDRED)
    effective_gross_income = round_currency(gross_rent + additional - vacancy_loss)

    total_expenses = round_currency(sum(template.amounts().values(), start=ZERO))

    monthly_noi = round_currency(effective_gross_income - total_expenses)
    annual_noi = round_currency(monthly_noi * MONTHS_PER_YEAR)
    cap_rate = percent_of(annual_noi, prop.purchase_price)

    mortgage = round_currency(coalesce_zero(prop.monthly_mortgage_payment))
    monthly_cash_flow = round_currency(monthly_noi - mortgage)
    annual_cash_flow = round_currency(monthly_cash_flow * MONTHS_PER_YEAR)

    one_time_costs = (
        coalesce_zero(prop.refurbish_costs) + coalesce_zero(prop.furnish_costs) + coalesce_zero(prop.acquisition_costs)
    )
    total_investment = round_currency(prop.purchase_price + one_time_costs)
    if prop.down_payment is not None:
        total_cash_invested = round_currency(prop.down_payment + one_time_costs)
    else:
        total_cash_invested = round_currency(total_investment - coalesce_zero(prop.loan_amount))
    cash_on_cash_return = percent_of(annual_cash_flow, total_cash_invested)

    loan_balance = round_currency(loan_balance_of(prop))
    equity = round_currency(prop.current_value - loan_balance)
    appreciation = prop.current_value - prop.purchase_price
    return_on_equity = percent_of(annual_cash_flow + appreciation, equity)
    loan_to_value = percent_of(loan_balance, prop.current_value)

    if mortgage == 0:
        debt_service_coverage_ratio = ZERO
    else:
        debt_service_coverage_ratio = monthly_noi / mortgage

    one_percent_value = round_currency(prop.purchase_price * ONE_PERCENT)
    two_percent_value = round_currency(prop.purchase_price * TWO_PERCENT)
    rule_135_value = round_currency(total_expenses * RULE_135_MULTIPLIER)

    meets_desired_cap_rate: bool | None = None
    max_price_at_desired_cap_rate: Decimal | None = None
    if prop.desired_cap_rate_percent is not None:
        meets_desired_cap_rate = cap_rate >= prop.desired_cap_rate_percent
        if prop.desired_cap_rate_percent > 0:
            max_price_at_desired_cap_rate = round_currency(annual_noi * HUNDRED / prop.desired_cap_rate_percent)

    return PropertyFinancials(
        property_id=prop.id,
        gross_monthly_rental_income=gross_rent,
        additional_monthly_income=additional,
        gross_monthly_income=round_currency(gross_rent + additional),
        vacancy_loss=vacancy_loss,
        effective_gross_income=effective_gross_income,
        annual_rental_income=round_currency(gross_rent * MONTHS_PER_YEAR),
        annual_additional_income=round_currency(additional * MONTHS_PER_YEAR),
        total_monthly_expenses=total_expenses,
        annual_operating_expenses=round_currency(total_expenses * MONTHS_PER_YEAR),
        monthly_noi=monthly_noi,
        annual_noi=annual_noi,
        monthly_mortgage_payment=mortgage,
        monthly_cash_flow=monthly_cash_flow,
        annual_cash_flow=annual_cash_flow,
        total_investment=total_investment,
        total_cash_invested=total_cash_invested,
        equity=equity,
        cap_rate=cap_rate,
        cash_on_cash_return=cash_on_cash_return,
        return_on_equity=return_on_equity,
        loan_to_value=loan_to_value,
        debt_service_coverage_ratio=debt_service_coverage_ratio,
        meets_one_percent_rule=gross_rent >= one_percent_value,
        one_percent_rule_value=one_percent_value,
        meets_two_percent_rule=gross_rent >= two_percent_value,
        two_percent_rule_value=two_percent_value,
        meets_one_thirty_five_rule=gross_rent >= rule_135_value,
        one_thirty_five_rule_value=rule_135_value,
        meets_desired_cap_rate=meets_desired_cap_rate,
        max_price_at_desired_cap_rate=max_price_at_desired_cap_rate,
    )


def calculate_monthly_payment(principal: Decimal, annual_rate_percent: Decimal, term_years: int) -> Decimal:
    """Standard amortized payment; a zero rate spreads the principal evenly."""
    if principal <= 0 or term_years <= 0:
        return ZERO

    payments = term_years * MONTHS_PER_YEAR
    monthly_rate = annual_rate_percent / HUNDRED / MONTHS_PER_YEAR
    if monthly_rate == 0:
        return round_currency(principal / payments)

    growth = (1 + monthly_rate) ** payments
    return round_currency(principal * monthly_rate * growth / (growth - 1))


class ExpenseBreakdown(BaseModel):
    management: Decimal
    maintenance: Decimal
    taxes_insurance: Decimal
    utilities: Decimal
    other: Decimal
    total: Decimal
    details: dict[str, Decimal]


_EXPENSE_GROUPS: dict[str, tuple[str, ...]] = {
    "management": ("property_management_fee", "accounting_legal_fees"),
    "maintenance": ("repairs_maintenance", "pest_control"),
    "taxes_insurance": ("real_estate_taxes", "property_insurance", "hoa_fees"),
    "utilities": ("water_sewer", "gas_electricity", "garbage", "cable_phone_internet"),
    "other": ("advertising",),
}


def expense_breakdown(expenses: PropertyExpenseTemplate | None) -> ExpenseBreakdown:
    details = (expenses or PropertyExpenseTemplate()).amounts()
    groups = {
        group: round_currency(sum((details[name] for name in names), start=ZERO))
        for group, names in _EXPENSE_GROUPS.items()
    }
    return ExpenseBreakdown(
        **groups,
        total=round_currency(sum(groups.values(), start=ZERO)),
        details={name: round_currency(amount) for name, amount in details.items()},
    )


class IncomeBreakdown(BaseModel):
    rental_income: Decimal
    additional_income: dict[IncomeType, Decimal]
    total_additional_income: Decimal
    total_monthly_income: Decimal


def income_breakdown(incomes: Iterable[PropertyIncome]) -> IncomeBreakdown:
    by_type: dict[IncomeType, Decimal] = {}
    rent = ZERO
    for income in incomes:
        if not income.is_active or not income.is_recurring:
            continue
        if income.income_type == IncomeType.RENT:
            rent += income.monthly_amount
        else:
            by_type[income.income_type] = by_type.get(income.income_type, ZERO) + income.monthly_amount

    additional = {income_type: round_currency(amount) for income_type, amount in sorted(by_type.items())}
    total_additional = round_currency(sum(additional.values(), start=ZERO))
    return IncomeBreakdown(
        rental_income=round_currency(rent),
        additional_income=additional,
        total_additional_income=total_additional,
        total_monthly_income=round_currency(rent + total_additional),
    )


class PropertyReport(BaseModel):
    financials: PropertyFinancials
    income: IncomeBreakdown
    expenses: ExpenseBreakdown
    amortized_mortgage_payment: Decimal | None = None


class CashFlowProjection(BaseModel):
    month: str
    income: Decimal
    expenses: Decimal
    cash_flow: Decimal
    cumulative_cash_flow: Decimal


def project_cash_flow(
    financials: PropertyFinancials, *, start_month: date, months: int = 12
) -> list[CashFlowProjection]:
    """Flat projection of the current monthly figures; expenses include debt service."""
    if months <= 0:
        return []

    last_day = date(
        start_month.year + (start_month.month - 1 + months - 1) // 12,
        (start_month.month - 1 + months - 1) % 12 + 1,
        1,
    )
    expenses = round_currency(financials.total_monthly_expenses + financials.monthly_mortgage_payment)
    projections: list[CashFlowProjection] = []
    cumulative = ZERO
    for period in iter_periods(start_month, last_day, PeriodGranularity.MONTH):
        cumulative += financials.monthly_cash_flow
        projections.append(
            CashFlowProjection(
                month=period.key,
                income=financials.effective_gross_income,
                expenses=expenses,
                cash_flow=financials.monthly_cash_flow,
                cumulative_cash_flow=round_currency(cumulative),
            )
        )
    return projections


class PropertySummaryRow(BaseModel):
    property_id: PropertyId
    name: str
    current_value: Decimal
    equity: Decimal
    cap_rate: Decimal
    cash_on_cash_return: Decimal
    monthly_cash_flow: Decimal


class RealEstateSummary(BaseModel):
    property_count: int
    total_value: Decimal
    total_equity: Decimal
    total_debt: Decimal
    total_monthly_income: Decimal
    total_monthly_expenses: Decimal
    total_monthly_cash_flow: Decimal
    average_cap_rate: Decimal
    average_cash_on_cash_return: Decimal
    properties: list[PropertySummaryRow]


def summarize_real_estate(entries: Iterable[tuple[Property, PropertyFinancials]]) -> RealEstateSummary:
    """Roll up several properties; averages are simple (unweighted) means."""
    rows: list[PropertySummaryRow] = []
    total_value = total_debt = total_income = total_expenses = total_cash_flow = ZERO
    for prop, financials in entries:
        total_value += prop.current_value
        total_debt += loan_balance_of(prop)
        total_income += financials.effective_gross_income
        total_expenses += financials.total_monthly_expenses + financials.monthly_mortgage_payment
        total_cash_flow += financials.monthly_cash_flow
        rows.append(
            PropertySummaryRow(
                property_id=prop.id,
                name=prop.name,
                current_value=round_currency(prop.current_value),
                equity=financials.equity,
                cap_rate=financials.cap_rate,
                cash_on_cash_return=financials.cash_on_cash_return,
                monthly_cash_flow=financials.monthly_cash_flow,
            )
        )

    count = Decimal(len(rows))
    rows.sort(key=lambda row: (-row.current_value, row.property_id))
    return RealEstateSummary(
        property_count=len(rows),
        total_value=round_currency(total_value),
        total_equity=round_currency(total_value - total_debt),
        total_debt=round_currency(total_debt),
        total_monthly_income=round_currency(total_income),
        total_monthly_expenses=round_currency(total_expenses),
        total_monthly_cash_flow=round_currency(total_cash_flow),
        average_cap_rate=safe_ratio(sum((row.cap_rate for row in rows), start=ZERO), count),
        average_cash_on_cash_return=safe_ratio(sum((row.cash_on_cash_return for row in rows), start=ZERO), count),
        properties=rows,
    )
