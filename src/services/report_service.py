from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal

from domain.errors import PropertyNotFoundError
from domain.filters import DateWindow, GainLossType, ReportFilter, parse_period
from domain.inventory import DEFAULT_LONG_TERM_DAYS
from domain.ledger import TransactionType, UserId
from domain.lot_selection import FifoLotSelection, LotSelectionPolicy
from domain.property import PropertyId
from domain.property_financials import (
    CashFlowProjection,
    PropertyFinancials,
    PropertyReport,
    RealEstateSummary,
    calculate_monthly_payment,
    calculate_property_financials,
    expense_breakdown,
    income_breakdown,
    project_cash_flow,
    summarize_real_estate,
)
from domain.storage import LedgerStore
from utils.activity_summary import ActivitySummary, compute_activity_summary
from utils.allocation_summary import AllocationSummary, compute_allocation_summary
from utils.gain_loss_summary import GainLossSummary, compute_gain_loss_summary
from utils.holdings_summary import HoldingsSummary, compute_holdings_summary
from utils.income_summary import IncomeSummary, compute_income_summary
from utils.performance_summary import PerformanceSummary, compute_performance_summary

logger = logging.getLogger(__name__)

INCOME_TYPES = (
    TransactionType.DIVIDEND,
    TransactionType.DISTRIBUTION,
    TransactionType.INTEREST,
    TransactionType.INCOME,
)


class ReportService:
    """Fetches a user's snapshot from a ``LedgerStore`` and hands it to the report components.

    Filters are validated before anything is read from the store.
    """

    def __init__(
        self,
        store: LedgerStore,
        *,
        long_term_days: int = DEFAULT_LONG_TERM_DAYS,
        policy: LotSelectionPolicy | None = None,
    ) -> None:
        self.store = store
        self.long_term_days = long_term_days
        self.policy = policy or FifoLotSelection()

    def allocation_report(self, user_id: UserId, *, account_id: str | None = None) -> AllocationSummary:
        report_filter = ReportFilter.parse(account_id=account_id)
        logger.info("Allocation report for user %s (account=%s)", user_id, report_filter.account_id)
        accounts = self.store.get_accounts(user_id)
        positions = self.store.get_positions(user_id, account_id=report_filter.account_id)
        return compute_allocation_summary(positions, accounts)

    def performance_report(
        self,
        user_id: UserId,
        *,
        account_id: str | None = None,
        start_date: str | date | None = None,
        end_date: str | date | None = None,
        period: str | None = None,
        as_of: date | None = None,
    ) -> PerformanceSummary:
        report_filter = ReportFilter.parse(account_id=account_id, start_date=start_date, end_date=end_date)
        granularity = parse_period(period)
        logger.info(
            "Performance report for user %s (account=%s, window=%s..%s, period=%s)",
            user_id,
            report_filter.account_id,
            report_filter.start_date,
            report_filter.end_date,
            granularity.value,
        )
        positions = self.store.get_positions(user_id, account_id=report_filter.account_id)
        # Flows before the window are needed for the opening cost basis.
        transactions = self.store.get_transactions(
            user_id,
            account_id=report_filter.account_id,
            window=DateWindow(end=report_filter.end_date),
        )
        return compute_performance_summary(
            positions,
            transactions,
            window=report_filter.window,
            granularity=granularity,
            as_of=as_of or date.today(),
        )

    def gain_loss_report(
        self,
        user_id: UserId,
        *,
        account_id: str | None = None,
        start_date: str | date | None = None,
        end_date: str | date | None = None,
        gain_type: str | GainLossType | None = None,
        as_of: date | None = None,
    ) -> GainLossSummary:
        report_filter = ReportFilter.parse(
            account_id=account_id,
            start_date=start_date,
            end_date=end_date,
            gain_type=gain_type,
        )
        logger.info(
            "Gain/loss report for user %s (account=%s, type=%s, lots=%s)",
            user_id,
            report_filter.account_id,
            report_filter.gain_type.value,
            self.policy.name,
        )
        positions = self.store.get_positions(user_id, account_id=report_filter.account_id)
        tax_lots = self.store.get_tax_lots([position.id for position in positions])
        # Every sale is replayed so lot state is correct; the window only limits what is reported.
        sells = self.store.get_transactions(
            user_id,
            account_id=report_filter.account_id,
            transaction_types=[TransactionType.SELL],
        )
        return compute_gain_loss_summary(
            positions,
            tax_lots,
            sells,
            as_of=as_of or date.today(),
            gain_type=report_filter.gain_type,
            window=report_filter.window,
            policy=self.policy,
            long_term_days=self.long_term_days,
        )

    def holdings_report(self, user_id: UserId, *, account_id: str | None = None) -> HoldingsSummary:
        report_filter = ReportFilter.parse(account_id=account_id)
        logger.info("Holdings report for user %s (account=%s)", user_id, report_filter.account_id)
        accounts = self.store.get_accounts(user_id)
        positions = self.store.get_positions(user_id, account_id=report_filter.account_id)
        return compute_holdings_summary(positions, accounts)

    def income_report(
        self,
        user_id: UserId,
        *,
        account_id: str | None = None,
        start_date: str | date | None = None,
        end_date: str | date | None = None,
    ) -> IncomeSummary:
        report_filter = ReportFilter.parse(account_id=account_id, start_date=start_date, end_date=end_date)
        logger.info("Income report for user %s (account=%s)", user_id, report_filter.account_id)
        positions = self.store.get_positions(user_id, account_id=report_filter.account_id)
        transactions = self.store.get_transactions(
            user_id,
            account_id=report_filter.account_id,
            window=report_filter.window,
            transaction_types=INCOME_TYPES,
        )
        return compute_income_summary(transactions, positions)

    def activity_report(
        self,
        user_id: UserId,
        *,
        account_id: str | None = None,
        start_date: str | date | None = None,
        end_date: str | date | None = None,
    ) -> ActivitySummary:
        report_filter = ReportFilter.parse(account_id=account_id, start_date=start_date, end_date=end_date)
        logger.info("Activity report for user %s (account=%s)", user_id, report_filter.account_id)
        transactions = self.store.get_transactions(
            user_id,
            account_id=report_filter.account_id,
            window=report_filter.window,
        )
        return compute_activity_summary(transactions)

    def property_financials(self, property_id: PropertyId) -> PropertyFinancials:
        prop = self.store.get_property(property_id)
        if prop is None:
            raise PropertyNotFoundError(property_id)
        logger.info("Property financials for %s", property_id)
        incomes = self.store.get_property_income(property_id)
        expenses = self.store.get_property_expenses(property_id)
        return calculate_property_financials(prop, incomes, expenses)

    def property_report(self, property_id: PropertyId) -> PropertyReport:
        """Financials plus income and expense breakdowns for one property.

        ``amortized_mortgage_payment`` is what the recorded loan terms imply, for comparison
        with the payment stored on the property.
        """
        prop = self.store.get_property(property_id)
        if prop is None:
            raise PropertyNotFoundError(property_id)
        logger.info("Property report for %s", property_id)
        incomes = self.store.get_property_income(property_id)
        expenses = self.store.get_property_expenses(property_id)

        amortized: Decimal | None = None
        if prop.loan_amount is not None and prop.interest_rate_percent is not None and prop.loan_term_years:
            amortized = calculate_monthly_payment(prop.loan_amount, prop.interest_rate_percent, prop.loan_term_years)
        return PropertyReport(
            financials=calculate_property_financials(prop, incomes, expenses),
            income=income_breakdown(incomes),
            expenses=expense_breakdown(expenses),
            amortized_mortgage_payment=amortized,
        )

    def cash_flow_projection(
        self,
        property_id: PropertyId,
        *,
        start_month: date | None = None,
        months: int = 12,
    ) -> list[CashFlowProjection]:
        financials = self.property_financials(property_id)
        return project_cash_flow(financials, start_month=start_month or date.today(), months=months)

    def real_estate_summary(self, user_id: UserId) -> RealEstateSummary:
        logger.info("Real estate summary for user %s", user_id)
        entries = []
        for prop in self.store.get_properties(user_id):
            incomes = self.store.get_property_income(prop.id)
            expenses = self.store.get_property_expenses(prop.id)
            entries.append((prop, calculate_property_financials(prop, incomes, expenses)))
        return summarize_real_estate(entries)
