# inventory_planner/core/trend.py
from datetime import date, datetime
from typing import Dict, List, Optional, Tuple, Union, Iterable, Any

from ..exceptions import ValidationError
from ..utils.date_utils import to_datetime, end_of_day, subtract_months, DateLike
from ..utils.math_utils import mean_or_none
from .velocity import build_sku_periods

TIMEFRAMES = {
    '3m': 3,
    '6m': 6,
    '1y': 12,
}
CUSTOM = 'custom'


def resolve_timeframe(
    timeframe: str,
    now: Union[date, datetime],
    custom_start: DateLike = None,
    custom_end: DateLike = None
) -> Optional[Tuple[datetime, datetime]]:
    """Resolve a timeframe selector to a concrete instant range.

    Rolling selectors end at `now`. A custom range starts at midnight of its
    start date and runs through the last instant of its end date. A custom
    range missing either date resolves to None, meaning no filtering.

    Args:
        timeframe: '3m', '6m', '1y' or 'custom'
        now: Reference instant
        custom_start: Start date for a custom range
        custom_end: End date for a custom range

    Returns:
        Tuple with start and end, or None for an incomplete custom range

    Raises:
        ValidationError: If the selector is not recognised
    """
    if timeframe == CUSTOM:
        start = to_datetime(custom_start)
        end = end_of_day(custom_end)
        if start is None or end is None:
            return None
        return start, end

    if timeframe not in TIMEFRAMES:
        raise ValidationError(
            f"Unknown timeframe: {timeframe}",
            details={'valid': [*TIMEFRAMES, CUSTOM]}
        )

    end = to_datetime(now)
    if end is None:
        raise ValidationError("A valid reference date is required")
    return subtract_months(end, TIMEFRAMES[timeframe]), end


def window_periods(periods: Iterable[Dict], window: Optional[Tuple[datetime, datetime]]) -> List[Dict]:
    """Keep the periods plotted inside the window, oldest first.

    A period is plotted at the date of its newer snapshot.

    Args:
        periods: Periods with velocity
        window: Start and end instants, or None to keep everything

    Returns:
        Filtered periods sorted ascending by date
    """
    ordered = sorted(periods, key=lambda p: p['current_date'])
    if window is None:
        return ordered

    start, end = window
    return [p for p in ordered if start <= to_datetime(p['current_date']) <= end]


def summarize_trend(periods: List[Dict]) -> Dict[str, float]:
    """Total units sold and mean daily rate over the periods.

    The mean weighs every period equally regardless of its length.
    """
    total_sold = sum(p['units_sold'] for p in periods)
    avg_rate = mean_or_none(p['daily_rate'] for p in periods)
    return {
        'total_sold': total_sold,
        'avg_rate': avg_rate if avg_rate is not None else 0.0
    }


def trend_skus(snapshots: Iterable[Any]) -> List[str]:
    """SKUs that have at least one snapshot, sorted."""
    return sorted({s.sku for s in snapshots if s.sku})


def sales_trend(
    snapshots: Iterable[Any],
    purchase_orders: Iterable[Any],
    sku: str,
    timeframe: str,
    now: Union[date, datetime],
    custom_start: DateLike = None,
    custom_end: DateLike = None
) -> Dict:
    """Build the sales trend of one SKU over a timeframe.

    Args:
        snapshots: All snapshots
        purchase_orders: All purchase orders
        sku: Selected SKU
        timeframe: '3m', '6m', '1y' or 'custom'
        now: Reference instant for rolling timeframes
        custom_start: Start date for a custom range
        custom_end: End date for a custom range

    Returns:
        Dictionary with the window, summary figures and retained periods
    """
    window = resolve_timeframe(timeframe, now, custom_start, custom_end)
    periods = window_periods(build_sku_periods(snapshots, purchase_orders, sku), window)

    result = {
        'sku': sku,
        'timeframe': timeframe,
        'start': window[0] if window else None,
        'end': window[1] if window else None,
        'periods': periods
    }
    result.update(summarize_trend(periods))
    return result
