"""Annual usage aggregation and statistics."""

from jules_wrapped.usage.models import (
    MostActiveDay,
    RankedStat,
    Stats,
    UsageSummary,
    WeekdayActivity,
)
from jules_wrapped.usage.collector import UsageAggregator, collect_usage_summary
from jules_wrapped.usage.report import calculate_stats, collect

__all__ = [
    "MostActiveDay",
    "RankedStat",
    "Stats",
    "UsageSummary",
    "WeekdayActivity",
    "UsageAggregator",
    "collect_usage_summary",
    "calculate_stats",
    "collect",
]
