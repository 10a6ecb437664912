"""
Period bucketing and aggregation of time entries for charts.

All functions are pure: they never read the clock or touch storage. The
caller fetches entries (see core.database.fetch_entries) and passes `now`.
"""

import calendar
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta

from core.config import (
    GROUPING_UNITS,
    MONTH_RANGE_MONTHS,
    RANGE_MODES,
    WEEK_RANGE_WEEKS,
    YEAR_RANGE_YEARS,
)
from models.entries import CategoryTotal, PeriodBucket, TimeEntry


class AggregationError(ValueError):
    """Base class for aggregation input errors."""


class InvalidRangeError(AggregationError):
    """Date range is missing, reversed or of an unknown mode."""


class InvalidUnitError(AggregationError):
    """Grouping unit is not week, month or year."""


@dataclass
class ChartResult:
    """Everything the chart page needs for one selection."""
    start_date: date
    end_date: date
    categories: list[str] = field(default_factory=list)
    category_totals: list[CategoryTotal] = field(default_factory=list)
    series: list[PeriodBucket] = field(default_factory=list)


# =============================================================================
# CALENDAR HELPERS
# =============================================================================


def _as_date(value: date | datetime) -> date:
    return value.date() if isinstance(value, datetime) else value


def add_months(d: date, months: int) -> date:
    """Shift by whole months, clamping the day to the target month's length."""
    month_index = d.year * 12 + (d.month - 1) + months
    year, month = divmod(month_index, 12)
    month += 1
    day = min(d.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def unit_start(d: date, unit: str) -> date:
    """First day of the week (Monday), month or year containing `d`."""
    if unit == "week":
        return d - timedelta(days=d.weekday())
    if unit == "month":
        return d.replace(day=1)
    if unit == "year":
        return d.replace(month=1, day=1)
    raise InvalidUnitError(f"Unknown grouping unit: {unit!r}")


def unit_end(d: date, unit: str) -> date:
    """Last day of the week (Sunday), month or year containing `d`."""
    start = unit_start(d, unit)
    if unit == "week":
        return start + timedelta(days=6)
    if unit == "month":
        return start.replace(day=calendar.monthrange(start.year, start.month)[1])
    return start.replace(month=12, day=31)


def next_unit_start(start: date, unit: str) -> date:
    if unit == "week":
        return start + timedelta(days=7)
    if unit == "month":
        return add_months(start, 1)
    return start.replace(year=start.year + 1)


def bucket_label(start: date, unit: str) -> str:
    """'KW 12', 'Mar 2024' or '2024'."""
    if unit == "week":
        return f"KW {start.isocalendar()[1]}"
    if unit == "month":
        return start.strftime("%b %Y")
    return start.strftime("%Y")


def _check_range(start_date: date, end_date: date):
    if start_date > end_date:
        raise InvalidRangeError(f"Start date {start_date} is after end date {end_date}")


# =============================================================================
# RANGE SELECTION
# =============================================================================


def select_range(
    mode: str,
    custom_range: tuple[date, date] | None,
    now: date | datetime,
) -> tuple[date, date]:
    """
    Resolve a range mode to an inclusive (start, end) date pair.

    week:   the last 4 weeks up to `now`
    month:  the 12 most recent calendar months, 1st to month end
    year:   the 3 most recent calendar years, Jan 1 to Dec 31
    custom: `custom_range` as given
    """
    if mode not in RANGE_MODES:
        raise InvalidRangeError(f"Unknown range mode: {mode!r}")

    if mode == "custom":
        if not custom_range or custom_range[0] is None or custom_range[1] is None:
            raise InvalidRangeError("Custom range requires a start and an end date")
        start_date, end_date = _as_date(custom_range[0]), _as_date(custom_range[1])
        _check_range(start_date, end_date)
        return start_date, end_date

    today = _as_date(now)
    if mode == "week":
        return today - timedelta(weeks=WEEK_RANGE_WEEKS), today
    if mode == "month":
        start_date = add_months(today.replace(day=1), -(MONTH_RANGE_MONTHS - 1))
        return start_date, unit_end(today, "month")
    return date(today.year - (YEAR_RANGE_YEARS - 1), 1, 1), date(today.year, 12, 31)


def query_window(start_date: date, end_date: date) -> tuple[date, date]:
    """
    Widen a range by one day on each side for the storage query.

    Stored dates may be shifted by timezone rounding; filter_by_range is
    the authoritative boundary afterwards.
    """
    return start_date - timedelta(days=1), end_date + timedelta(days=1)


# =============================================================================
# FILTERING
# =============================================================================


def filter_by_range(entries: list[TimeEntry], start_date: date, end_date: date) -> list[TimeEntry]:
    """Keep entries dated within [start_date, end_date], both inclusive."""
    _check_range(start_date, end_date)
    return [e for e in entries if start_date <= e.date <= end_date]


def filter_by_category(entries: list[TimeEntry], category: str) -> list[TimeEntry]:
    return [e for e in entries if e.object == category]


def collect_categories(entries: list[TimeEntry]) -> set[str]:
    """Distinct non-empty object names."""
    return {e.object for e in entries if e.object}


# =============================================================================
# AGGREGATION
# =============================================================================


def aggregate_by_category(entries: list[TimeEntry]) -> list[CategoryTotal]:
    """
    Sum hours per object, largest first.

    Entries without an object or without hours are skipped. Equal totals
    keep the order in which their object first appears.
    """
    totals: dict[str, float] = {}
    for entry in entries:
        if not entry.object or not entry.hours:
            continue
        totals[entry.object] = totals.get(entry.object, 0) + entry.hours

    result = [CategoryTotal(label=name, value=value) for name, value in totals.items()]
    result.sort(key=lambda t: t.value, reverse=True)
    return result


def aggregate_by_period(
    entries: list[TimeEntry],
    start_date: date,
    end_date: date,
    unit: str,
) -> list[PeriodBucket]:
    """
    Build a gap-free series of week/month/year buckets over the range.

    The first bucket starts at the calendar boundary containing start_date,
    and buckets follow one unit apart while their start is <= end_date.
    Only entries inside [start_date, end_date] are summed, and buckets
    without entries are kept with zero sums.
    """
    if unit not in GROUPING_UNITS:
        raise InvalidUnitError(f"Unknown grouping unit: {unit!r}")
    _check_range(start_date, end_date)
    if not entries:
        return []

    sums: dict[date, PeriodBucket] = defaultdict(lambda: PeriodBucket(label=""))
    for entry in entries:
        if not start_date <= entry.date <= end_date:
            continue
        bucket = sums[unit_start(entry.date, unit)]
        bucket.hours += entry.hours
        bucket.absences += entry.absences
        bucket.overtime += entry.overtime

    buckets = []
    current = unit_start(start_date, unit)
    while current <= end_date:
        found = sums.get(current)
        buckets.append(
            PeriodBucket(
                label=bucket_label(current, unit),
                hours=found.hours if found else 0.0,
                absences=found.absences if found else 0.0,
                overtime=found.overtime if found else 0.0,
            )
        )
        current = next_unit_start(current, unit)

    return buckets


def unit_for_mode(mode: str) -> str:
    """Grouping unit used for a range mode (custom ranges group by month)."""
    return mode if mode in GROUPING_UNITS else "month"


def build_chart(
    entries: list[TimeEntry],
    mode: str,
    now: date | datetime,
    custom_range: tuple[date, date] | None = None,
    category: str | None = None,
    unit: str | None = None,
) -> ChartResult:
    """
    Produce the pie data and, for a selected object, the bar series.

    `entries` may cover a wider window than the selected range.
    """
    start_date, end_date = select_range(mode, custom_range, now)
    in_range = filter_by_range(entries, start_date, end_date)

    result = ChartResult(
        start_date=start_date,
        end_date=end_date,
        categories=sorted(collect_categories(in_range)),
        category_totals=aggregate_by_category(in_range),
    )
    if category:
        result.series = aggregate_by_period(
            filter_by_category(in_range, category),
            start_date,
            end_date,
            unit or unit_for_mode(mode),
        )
    return result
