from datetime import date
from decimal import Decimal

from domain.ledger import TransactionType
from utils.activity_summary import compute_activity_summary
from tests.helpers.factories import make_transaction


def test_flows_follow_transaction_types() -> None:
    transactions = [
        make_transaction("c1", TransactionType.CONTRIBUTION, date(2024, 1, 2), "1000"),
        make_transaction("b1", TransactionType.BUY, date(2024, 1, 3), "900", position_id="p1", shares="9", fees="1"),
        make_transaction("d1", TransactionType.DIVIDEND, date(2024, 2, 1), "12", position_id="p1"),
        make_transaction("t1", TransactionType.TRANSFER, date(2024, 2, 5), "50"),
    ]

    summary = compute_activity_summary(transactions)

    assert summary.summary.total_transactions == 4
    assert summary.summary.total_inflows == Decimal("1012.00")
    assert summary.summary.total_outflows == Decimal("900.00")
    assert summary.summary.net_flow == Decimal("112.00")
    assert summary.summary.total_fees == Decimal("1.00")

    by_type = {item.transaction_type: item for item in summary.by_type}
    assert by_type[TransactionType.BUY].net_amount == Decimal("-900.00")
    assert by_type[TransactionType.TRANSFER].net_amount == Decimal("0.00")
    assert summary.by_type[0].transaction_type == TransactionType.CONTRIBUTION

    assert [(month.period, month.count, month.net_flow) for month in summary.by_month] == [
        ("2024-01", 2, Decimal("100.00")),
        ("2024-02", 2, Decimal("12.00")),
    ]
