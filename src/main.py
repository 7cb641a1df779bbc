from __future__ import annotations

import argparse
import json
import logging
from datetime import date
from typing import Any, Callable, Sequence

from pydantic import BaseModel

from config import config
from db.db import init_db
from db.repositories import SqlLedgerStore
from domain.errors import InvalidFilterError, PropertyNotFoundError
from domain.ledger import UserId
from domain.property import PropertyId
from services.report_service import ReportService
from utils.activity_summary import render_activity_summary
from utils.allocation_summary import render_allocation_summary
from utils.gain_loss_summary import render_gain_loss_summary
from utils.holdings_summary import render_holdings_summary
from utils.income_summary import render_income_summary
from utils.performance_summary import render_performance_summary
from utils.property_report import render_cash_flow_projection, render_property_report, render_real_estate_summary

logger = logging.getLogger(__name__)

REPORTS = (
    "allocation",
    "performance",
    "gain-loss",
    "holdings",
    "income",
    "activity",
    "property",
    "cash-flow",
    "real-estate",
)

Report = BaseModel | list[BaseModel]


def build_report(service: ReportService, args: argparse.Namespace) -> tuple[Any, Callable[[Any], None]]:
    user_id = UserId(args.user)
    window = {"account_id": args.account, "start_date": args.start, "end_date": args.end}
    if args.report == "allocation":
        return service.allocation_report(user_id, account_id=args.account), render_allocation_summary
    if args.report == "performance":
        summary = service.performance_report(user_id, **window, period=args.period, as_of=args.as_of)
        return summary, render_performance_summary
    if args.report == "gain-loss":
        summary = service.gain_loss_report(user_id, **window, gain_type=args.type, as_of=args.as_of)
        return summary, render_gain_loss_summary
    if args.report == "holdings":
        return service.holdings_report(user_id, account_id=args.account), render_holdings_summary
    if args.report == "income":
        return service.income_report(user_id, **window), render_income_summary
    if args.report == "activity":
        return service.activity_report(user_id, **window), render_activity_summary
    if args.report == "real-estate":
        return service.real_estate_summary(user_id), render_real_estate_summary

    if not args.property:
        raise InvalidFilterError(f"--property is required for the {args.report} report", field="property")
    property_id = PropertyId(args.property)
    if args.report == "property":
        return service.property_report(property_id), render_property_report
    projection = service.cash_flow_projection(property_id, start_month=args.as_of, months=args.months)
    return projection, render_cash_flow_projection


def to_json(report: Report) -> str:
    if isinstance(report, list):
        return json.dumps([item.model_dump(mode="json") for item in report], indent=2)
    return json.dumps(report.model_dump(mode="json"), indent=2)


def main(argv: Sequence[str] | None = None) -> int:
    settings = config()
    logging.basicConfig(level=settings.log_level, format="%(asctime)s %(levelname)s %(name)s %(message)s")

    parser = argparse.ArgumentParser(description="Portfolio and real-estate analytics reports.")
    parser.add_argument("report", choices=REPORTS)
    parser.add_argument("--user", required=True)
    parser.add_argument("--account")
    parser.add_argument("--start", help="ISO date, inclusive")
    parser.add_argument("--end", help="ISO date, inclusive")
    parser.add_argument("--type", default="all", help="realized, unrealized or all")
    parser.add_argument("--period", default=settings.default_period, help="month, quarter or year")
    parser.add_argument("--property")
    parser.add_argument("--months", type=int, default=12)
    parser.add_argument("--as-of", type=date.fromisoformat)
    parser.add_argument("--database-url", default=settings.database_url)
    parser.add_argument("--format", choices=("json", "text"), default="text")
    args = parser.parse_args(argv)

    session = init_db(args.database_url)
    service = ReportService(SqlLedgerStore(session), long_term_days=settings.long_term_holding_days)
    try:
        report, render = build_report(service, args)
    except (InvalidFilterError, PropertyNotFoundError) as err:
        logger.error("%s", err)
        return 2
    finally:
        session.close()

    if args.format == "json":
        print(to_json(report))
    else:
        render(report)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
