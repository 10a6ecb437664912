"""Chart data endpoints (pie by object, bar series by period)."""

from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request

from api.dependencies import get_db, get_today, verify_api_key
from api.logging import logged_request
from api.models.responses import (
    CategoriesResponse,
    CategoryTotalModel,
    PeriodBucketModel,
    PeriodsResponse,
)
from core.database import fetch_entries
from services.aggregation import (
    aggregate_by_category,
    aggregate_by_period,
    collect_categories,
    filter_by_category,
    filter_by_range,
    query_window,
    select_range,
    unit_for_mode,
)

router = APIRouter(prefix="/v1/charts")


def _custom_range(start: date | None, end: date | None) -> tuple[date, date] | None:
    if start is None and end is None:
        return None
    return start, end


@router.get("/categories", response_model=CategoriesResponse)
async def category_totals(
    request: Request,
    user_id: str,
    mode: str = "month",
    start: date | None = None,
    end: date | None = None,
    now: Annotated[date | None, Query(description="Reference date for presets")] = None,
    conn=Depends(get_db),
    today: date = Depends(get_today),
    _api_key: str = Depends(verify_api_key),
):
    """Hours per object within the selected range, largest first."""
    with logged_request(request, user_id=user_id) as request_log:
        start_date, end_date = select_range(mode, _custom_range(start, end), now or today)
        entries = fetch_entries(conn, user_id, query_window(start_date, end_date))
        in_range = filter_by_range(entries, start_date, end_date)
        totals = aggregate_by_category(in_range)

        request_log.entry_count = len(in_range)
        request_log.total_hours = sum(e.hours for e in in_range)

        return CategoriesResponse(
            start_date=start_date,
            end_date=end_date,
            categories=sorted(collect_categories(in_range)),
            totals=[CategoryTotalModel(label=t.label, value=t.value) for t in totals],
        )


@router.get("/periods", response_model=PeriodsResponse)
async def period_series(
    request: Request,
    user_id: str,
    mode: str = "month",
    unit: str | None = None,
    category: str | None = None,
    start: date | None = None,
    end: date | None = None,
    now: Annotated[date | None, Query(description="Reference date for presets")] = None,
    conn=Depends(get_db),
    today: date = Depends(get_today),
    _api_key: str = Depends(verify_api_key),
):
    """
    Week, month or year buckets over the selected range.

    Without `unit` the grouping follows the mode (custom ranges group by
    month). With `category` only that object's entries are summed.
    """
    with logged_request(request, user_id=user_id) as request_log:
        start_date, end_date = select_range(mode, _custom_range(start, end), now or today)
        entries = fetch_entries(conn, user_id, query_window(start_date, end_date))
        in_range = filter_by_range(entries, start_date, end_date)
        if category:
            in_range = filter_by_category(in_range, category)

        group_unit = unit or unit_for_mode(mode)
        buckets = aggregate_by_period(in_range, start_date, end_date, group_unit)

        request_log.entry_count = len(in_range)
        request_log.total_hours = sum(e.hours for e in in_range)

        return PeriodsResponse(
            start_date=start_date,
            end_date=end_date,
            unit=group_unit,
            category=category,
            buckets=[
                PeriodBucketModel(
                    label=b.label, hours=b.hours, absences=b.absences, overtime=b.overtime
                )
                for b in buckets
            ],
        )
