from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import StrEnum

from pydantic import BaseModel, ConfigDict

from .errors import InvalidFilterError
from .ledger import AccountId


class GainLossType(StrEnum):
    REALIZED = "realized"
    UNREALIZED = "unrealized"
    ALL = "all"

    @property
    def includes_realized(self) -> bool:
        return self in (GainLossType.REALIZED, GainLossType.ALL)

    @property
    def includes_unrealized(self) -> bool:
        return self in (GainLossType.UNREALIZED, GainLossType.ALL)


class PeriodGranularity(StrEnum):
    MONTH = "month"
    QUARTER = "quarter"
    YEAR = "year"


@dataclass(frozen=True)
class Period:
    key: str
    label: str
    start: date
    end: date


_MONTH_ABBR = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


def _month_end(year: int, month: int) -> date:
    if month == 12:
        return date(year, 12, 31)
    return date.fromordinal(date(year, month + 1, 1).toordinal() - 1)


def period_for(day: date, granularity: PeriodGranularity) -> Period:
    if granularity == PeriodGranularity.YEAR:
        return Period(key=str(day.year), label=str(day.year), start=date(day.year, 1, 1), end=date(day.year, 12, 31))

    if granularity == PeriodGranularity.MONTH:
        return Period(
            key=f"{day.year}-{day.month:02d}",
            label=f"{_MONTH_ABBR[day.month - 1]} {day.year}",
            start=date(day.year, day.month, 1),
            end=_month_end(day.year, day.month),
        )

    quarter = (day.month - 1) // 3 + 1
    first_month = (quarter - 1) * 3 + 1
    return Period(
        key=f"{day.year}-Q{quarter}",
        label=f"Q{quarter} {day.year}",
        start=date(day.year, first_month, 1),
        end=_month_end(day.year, first_month + 2),
    )


def iter_periods(first: date, last: date, granularity: PeriodGranularity) -> list[Period]:
    """Every period from the one holding ``first`` through the one holding ``last``."""
    periods: list[Period] = []
    current = period_for(first, granularity)
    final = period_for(last, granularity)
    while current.start <= final.start:
        periods.append(current)
        current = period_for(date.fromordinal(current.end.toordinal() + 1), granularity)
    return periods


@dataclass(frozen=True)
class DateWindow:
    """Inclusive date range; ``None`` leaves that side unbounded."""

    start: date | None = None
    end: date | None = None

    def contains(self, day: date) -> bool:
        if self.start is not None and day < self.start:
            return False
        if self.end is not None and day > self.end:
            return False
        return True

    @property
    def is_bounded(self) -> bool:
        return self.start is not None or self.end is not None


def _parse_date(value: str | date | None, field: str) -> date | None:
    if value is None or isinstance(value, date):
        return value
    try:
        return date.fromisoformat(value)
    except ValueError as err:
        raise InvalidFilterError(f"{field} is not an ISO 8601 date: {value!r}", field=field) from err


class ReportFilter(BaseModel):
    model_config = ConfigDict(frozen=True)

    account_id: AccountId | None = None
    start_date: date | None = None
    end_date: date | None = None
    gain_type: GainLossType = GainLossType.ALL

    @property
    def window(self) -> DateWindow:
        return DateWindow(start=self.start_date, end=self.end_date)

    @classmethod
    def parse(
        cls,
        *,
        account_id: str | None = None,
        start_date: str | date | None = None,
        end_date: str | date | None = None,
        gain_type: str | GainLossType | None = None,
    ) -> ReportFilter:
        """Build a filter from raw request parameters, raising ``InvalidFilterError`` on bad input."""
        start = _parse_date(start_date, "start_date")
        end = _parse_date(end_date, "end_date")
        if start is not None and end is not None and start > end:
            raise InvalidFilterError(f"start_date {start} is after end_date {end}", field="start_date")

        try:
            resolved_type = GainLossType(gain_type) if gain_type is not None else GainLossType.ALL
        except ValueError as err:
            allowed = ", ".join(t.value for t in GainLossType)
            msg = f"Unknown gain/loss type {gain_type!r}; expected one of {allowed}"
            raise InvalidFilterError(msg, field="type") from err

        return cls(
            account_id=AccountId(account_id) if account_id else None,
            start_date=start,
            end_date=end,
            gain_type=resolved_type,
        )


def parse_period(value: str | PeriodGranularity | None) -> PeriodGranularity:
    if value is None:
        return PeriodGranularity.MONTH
    try:
        return PeriodGranularity(value)
    except ValueError as err:
        raise InvalidFilterError(f"Unknown period granularity {value!r}", field="period") from err


def shift_months(day: date, months: int) -> date:
    """Move ``day`` by whole months, clamping to the last day of a shorter month."""
    index = day.year * 12 + day.month - 1 + months
    year, month = divmod(index, 12)
    month += 1
    return date(year, month, min(day.day, _month_end(year, month).day))


TRAILING_WINDOWS = (("1M", 1), ("3M", 3), ("6M", 6), ("1Y", 12))


def trailing_windows(as_of: date) -> list[tuple[str, DateWindow]]:
    """The 1M, 3M, 6M, 1Y and year-to-date windows ending on ``as_of``."""
    windows = [(label, DateWindow(start=shift_months(as_of, -months), end=as_of)) for label, months in TRAILING_WINDOWS]
    windows.append(("YTD", DateWindow(start=date(as_of.year, 1, 1), end=as_of)))
    return windows
