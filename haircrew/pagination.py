"""Pagination and time-window parsing shared by admin dashboard routes"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from .errors import DashboardError

TIME_FILTERS = ("daily", "weekly", "monthly", "yearly")
DEFAULT_TIME_FILTER = "monthly"


@dataclass(frozen=True)
class PaginationParams:
    page: int
    page_size: int
    filter: str

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


def _parse_int(raw: Optional[str], name: str, default: int) -> int:
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except (TypeError, ValueError) as e:
        raise DashboardError("INVALID_PAGINATION", f"{name} must be an integer", {name: raw}) from e


def clamp_page(page: int) -> int:
    return max(1, page)


def clamp_page_size(page_size: int, default: int = 10, maximum: int = 100) -> int:
    if page_size is None:
        return default
    return min(maximum, max(1, page_size))


def parse_pagination_params(
    page: Optional[str], page_size: Optional[str], time_filter: Optional[str], default_page_size: int = 10
) -> PaginationParams:
    """page >= 1, pageSize clamped to 1..100, filter one of TIME_FILTERS (monthly by default)"""
    parsed_page = clamp_page(_parse_int(page, "page", 1))
    parsed_size = clamp_page_size(_parse_int(page_size, "pageSize", default_page_size), default_page_size)
    chosen = time_filter or DEFAULT_TIME_FILTER
    if chosen not in TIME_FILTERS:
        raise DashboardError("INVALID_FILTER", "Invalid time filter", {"filter": chosen})
    return PaginationParams(page=parsed_page, page_size=parsed_size, filter=chosen)


def get_date_range(time_filter: str, now: datetime) -> datetime:
    """Start of the reporting window for a dashboard time filter"""
    today = now.replace(hour=0, minute=0, second=0, microsecond=0)
    if time_filter == "daily":
        return today - timedelta(days=30)
    if time_filter == "weekly":
        return today - timedelta(days=90)
    if time_filter == "yearly":
        return today.replace(year=today.year - 5, month=1, day=1)
    # monthly: first day of the month twelve months back
    month_index = today.year * 12 + (today.month - 1) - 12
    return today.replace(year=month_index // 12, month=month_index % 12 + 1, day=1)


def total_pages(total: int, page_size: int) -> int:
    return (total + page_size - 1) // page_size if page_size else 0
