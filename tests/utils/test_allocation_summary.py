from decimal import Decimal

from domain.ledger import AccountType, AssetCategory, TaxTreatment
from utils.allocation_summary import compute_allocation_summary
from tests.helpers.factories import make_account, make_position


def _portfolio():
    accounts = [
        make_account("taxable", name="Brokerage"),
        make_account("ira", name="IRA", account_type=AccountType.IRA, tax_treatment=TaxTreatment.TAX_DEFERRED),
    ]
    positions = [
        make_position("vti", shares="10", price="200", cost="1500", account_id="taxable"),
        make_position(
            "bnd", shares="20", price="50", cost="1100", category=AssetCategory.FIXED_INCOME, account_id="ira"
        ),
        make_position("aapl", shares="5", price="100", cost="400", account_id="ira"),
        make_position("orphan", shares="1", price="10", cost="10", category=AssetCategory.CASH, account_id="gone"),
    ]
    return positions, accounts


def test_groups_sum_to_totals() -> None:
    positions, accounts = _portfolio()

    summary = compute_allocation_summary(positions, accounts)

    assert summary.total_value == Decimal("3510.00")
    assert summary.position_count == 4
    for groups in (summary.by_category, summary.by_account, summary.by_account_type, summary.by_tax_treatment):
        assert sum(group.value for group in groups) == summary.total_value
        assert sum(group.count for group in groups) == summary.position_count
        assert abs(sum(group.percentage for group in groups) - 100) < Decimal("0.0001")


def test_groups_ordered_by_value() -> None:
    positions, accounts = _portfolio()

    summary = compute_allocation_summary(positions, accounts)

    assert [group.key for group in summary.by_category] == ["EQUITY", "FIXED_INCOME", "CASH"]
    assert [group.label for group in summary.by_account] == ["Brokerage", "IRA", "Other"]
    ira = summary.by_account[1]
    assert ira.value == Decimal("1500.00")
    assert ira.cost_basis == Decimal("1500.00")
    assert ira.gain_loss == Decimal("0.00")
    assert summary.by_category[0].cost_basis is None


def test_unknown_account_falls_into_other() -> None:
    positions, accounts = _portfolio()

    summary = compute_allocation_summary(positions, accounts)

    assert summary.by_account_type[-1].label == "Other"
    assert summary.by_tax_treatment[-1].label == "Other"
    assert summary.by_tax_treatment[-1].value == Decimal("10.00")


def test_empty_portfolio() -> None:
    summary = compute_allocation_summary([], [])

    assert summary.total_value == Decimal("0.00")
    assert summary.total_gain_loss_percent == 0
    assert summary.by_category == []


def test_allocation_is_repeatable() -> None:
    positions, accounts = _portfolio()

    assert compute_allocation_summary(positions, accounts) == compute_allocation_summary(positions, accounts)
