from __future__ import annotations

from decimal import Decimal

from domain.property_financials import CashFlowProjection, PropertyFinancials, PropertyReport, RealEstateSummary

from .formatting import format_currency, format_percent


def _yes_no(flag: bool) -> str:
    return "yes" if flag else "no"


def render_property_financials(financials: PropertyFinancials) -> None:
    rows: list[tuple[str, str]] = [
        ("Gross monthly income", format_currency(financials.gross_monthly_income)),
        ("Vacancy loss", format_currency(financials.vacancy_loss)),
        ("Effective gross income", format_currency(financials.effective_gross_income)),
        ("Monthly expenses", format_currency(financials.total_monthly_expenses)),
        ("Monthly NOI", format_currency(financials.monthly_noi)),
        ("Mortgage payment", format_currency(financials.monthly_mortgage_payment)),
        ("Monthly cash flow", format_currency(financials.monthly_cash_flow)),
        ("Annual NOI", format_currency(financials.annual_noi)),
        ("Cap rate", format_percent(financials.cap_rate)),
        ("Cash-on-cash return", format_percent(financials.cash_on_cash_return)),
        ("Return on equity", format_percent(financials.return_on_equity)),
        ("Loan to value", format_percent(financials.loan_to_value)),
        ("DSCR", f"{financials.debt_service_coverage_ratio.quantize(Decimal('0.01'))}"),
        ("1% rule", _yes_no(financials.meets_one_percent_rule)),
        ("2% rule", _yes_no(financials.meets_two_percent_rule)),
        ("1.35 rule", _yes_no(financials.meets_one_thirty_five_rule)),
    ]
    if financials.meets_desired_cap_rate is not None:
        rows.append(("Meets desired cap rate", _yes_no(financials.meets_desired_cap_rate)))

    label_width = max(len(label) for label, _ in rows)
    value_width = max(len(value) for _, value in rows)
    print(f"Property {financials.property_id}:")
    print("\n".join(f"  {label:<{label_width}} {value:>{value_width}}" for label, value in rows))


def render_real_estate_summary(summary: RealEstateSummary) -> None:
    print(
        f"Properties: {summary.property_count}, value {format_currency(summary.total_value)}, "
        f"equity {format_currency(summary.total_equity)}, debt {format_currency(summary.total_debt)}"
    )
    print(
        f"Monthly cash flow {format_currency(summary.total_monthly_cash_flow)}, "
        f"avg cap rate {format_percent(summary.average_cap_rate)}, "
        f"avg cash-on-cash {format_percent(summary.average_cash_on_cash_return)}"
    )
    if not summary.properties:
        print("  (none)")
        return

    name_width = max(len("Property"), max(len(row.name or row.property_id) for row in summary.properties))
    header = f"{'Property':<{name_width}} {'Value':>14} {'Cap rate':>9} {'Cash flow':>12}"
    lines = [header, "-" * len(header)]
    for row in summary.properties:
        lines.append(
            f"{row.name or row.property_id:<{name_width}} "
            f"{format_currency(row.current_value):>14} "
            f"{format_percent(row.cap_rate):>9} "
            f"{format_currency(row.monthly_cash_flow):>12}"
        )
    print("\n".join(lines))


def render_property_report(report: PropertyReport) -> None:
    render_property_financials(report.financials)
    print("Monthly income:")
    print(f"  {'RENT':<12} {format_currency(report.income.rental_income):>12}")
    for income_type, amount in report.income.additional_income.items():
        print(f"  {income_type.value:<12} {format_currency(amount):>12}")
    print("Monthly expenses:")
    for group in ("management", "maintenance", "taxes_insurance", "utilities", "other"):
        print(f"  {group:<16} {format_currency(getattr(report.expenses, group)):>12}")
    if report.amortized_mortgage_payment is not None:
        print(f"Amortized payment from loan terms: {format_currency(report.amortized_mortgage_payment)}")


def render_cash_flow_projection(projections: list[CashFlowProjection]) -> None:
    if not projections:
        print("(no months)")
        return
    for row in projections:
        print(
            f"{row.month} income {format_currency(row.income):>12} "
            f"expenses {format_currency(row.expenses):>12} "
            f"cash flow {format_currency(row.cash_flow):>12} "
            f"cumulative {format_currency(row.cumulative_cash_flow):>14}"
        )
