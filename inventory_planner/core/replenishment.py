# inventory_planner/core/replenishment.py
import math
from datetime import date
from typing import Dict, List, Optional, Tuple, Union, Iterable, Any

from ..exceptions import ValidationError
from ..utils.date_utils import to_date, add_days, subtract_months, days_between
from ..utils.math_utils import safe_divide, as_number
from .periods import sort_snapshots, make_period
from .velocity import calculate_period_velocity

DEFAULT_SETTINGS = {
    'lead_time': 90,
    'min_days': 60,
    'target_months': 6
}

DAYS_PER_MONTH = 30

LAST_PERIOD = 'last-period'
CUSTOM = 'custom'
ROLLING_MONTHS = {'3m': 3, '6m': 6, '1y': 12}


def parse_rate_basis(rate_basis: Union[None, str, Dict]) -> Dict:
    """Normalize a rate basis selector.

    Args:
        rate_basis: None, 'last-period', '3m', '6m', '1y', 'custom', or a
            dictionary with 'timeframe' and, for custom, 'start' and 'end'

    Returns:
        Dictionary with timeframe, start and end

    Raises:
        ValidationError: If the timeframe is not recognised
    """
    if rate_basis is None:
        rate_basis = {'timeframe': LAST_PERIOD}
    elif isinstance(rate_basis, str):
        rate_basis = {'timeframe': rate_basis}

    timeframe = rate_basis.get('timeframe') or LAST_PERIOD
    if timeframe != LAST_PERIOD and timeframe != CUSTOM and timeframe not in ROLLING_MONTHS:
        raise ValidationError(
            f"Unknown rate basis: {timeframe}",
            details={'valid': [LAST_PERIOD, *ROLLING_MONTHS, CUSTOM]}
        )

    return {
        'timeframe': timeframe,
        'start': to_date(rate_basis.get('start')),
        'end': to_date(rate_basis.get('end'))
    }


def find_closest_snapshot(snapshots: List[Any], target: date) -> Optional[Any]:
    """Find the snapshot whose date is nearest the target; ties go to the first."""
    if not snapshots:
        return None
    return min(snapshots, key=lambda s: days_between(s.date, target))


def calculate_current_rate(
    ordered_snapshots: List[Any],
    purchase_orders: List[Any],
    today: date,
    rate_basis: Dict
) -> Tuple[float, str]:
    """Derive the daily rate the planner works from.

    By default only the most recent period counts. Rolling bases span from
    the snapshot closest to `today` minus N months up to the newest snapshot;
    a custom basis spans between the snapshots closest to its two dates.

    Args:
        ordered_snapshots: Snapshots of one SKU, newest first
        purchase_orders: All purchase orders
        today: Reference date
        rate_basis: Parsed rate basis

    Returns:
        Tuple with the unclamped daily rate and a label for the span used
    """
    if len(ordered_snapshots) < 2:
        return 0.0, 'No Data'

    timeframe = rate_basis['timeframe']

    if timeframe == CUSTOM and rate_basis['start'] and rate_basis['end']:
        previous = find_closest_snapshot(ordered_snapshots, rate_basis['start'])
        current = find_closest_snapshot(ordered_snapshots, rate_basis['end'])
        label = 'Custom Range'
    elif timeframe in ROLLING_MONTHS:
        target = subtract_months(today, ROLLING_MONTHS[timeframe])
        previous = find_closest_snapshot(ordered_snapshots, target)
        current = ordered_snapshots[0]
        label = timeframe
    else:
        # Incomplete custom ranges fall back to the latest period
        previous, current = ordered_snapshots[1], ordered_snapshots[0]
        label = 'Last Period'

    if previous is current:
        return 0.0, label

    if to_date(previous.date) > to_date(current.date):
        previous, current = current, previous

    period = calculate_period_velocity(make_period(previous, current, purchase_orders))
    return period['daily_rate'], label


def resolve_settings(sku: str, settings_by_sku: Dict[str, Any], defaults: Dict) -> Dict:
    """Get the numeric replenishment policy of a SKU.

    A missing row takes the defaults; non-numeric values count as 0.
    """
    row = settings_by_sku.get(sku)
    if row is None:
        source = defaults
    elif isinstance(row, dict):
        source = row
    else:
        source = {
            'lead_time': row.lead_time,
            'min_days': row.min_days,
            'target_months': row.target_months
        }

    return {
        'sku': sku,
        'lead_time': as_number(source.get('lead_time')),
        'min_days': as_number(source.get('min_days')),
        'target_months': as_number(source.get('target_months'))
    }


def _offset_date(start: date, days: float) -> Optional[date]:
    try:
        return add_days(start, days)
    except OverflowError:
        return None


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def build_planner_row(
    sku: str,
    current_inventory: int,
    raw_daily_rate: float,
    on_order: int,
    settings: Dict,
    today: date,
    used_period_label: str = 'Last Period'
) -> Dict:
    """Compute the forecast and reorder recommendation for one SKU.

    Negative demand is floored at zero for the reorder math. A SKU with no
    demand has an infinite horizon and never needs action.

    Args:
        sku: SKU
        current_inventory: Units on hand at the latest count
        raw_daily_rate: Daily rate as calculated, possibly negative
        on_order: Units on unreceived orders
        settings: Numeric lead_time, min_days and target_months
        today: Reference date
        used_period_label: Label of the span the rate came from

    Returns:
        Planner row dictionary
    """
    daily_rate = max(0.0, raw_daily_rate)
    cover_days = settings['lead_time'] + settings['min_days']
    target_days = settings['target_months'] * DAYS_PER_MONTH

    reorder_trigger_level = daily_rate * cover_days
    target_unit_level = daily_rate * (cover_days + target_days)
    reorder_qty = max(0.0, target_unit_level - (current_inventory + on_order))

    days_remaining = safe_divide(current_inventory, daily_rate, default=math.inf)
    zero_date = None
    if math.isfinite(days_remaining):
        zero_date = _offset_date(today, _round_half_up(days_remaining))

    days_until_order = days_remaining - cover_days
    needs_action = math.isfinite(days_remaining) and (
        days_until_order <= 0 or current_inventory <= reorder_trigger_level
    )

    if not math.isfinite(days_until_order) or days_until_order <= 0:
        suggested_order_date = today
    else:
        suggested_order_date = _offset_date(today, math.floor(days_until_order))

    return {
        'sku': sku,
        'current_inventory': current_inventory,
        'daily_rate': daily_rate,
        'raw_daily_rate': raw_daily_rate,
        'days_remaining': days_remaining,
        'settings': settings,
        'reorder_trigger_level': reorder_trigger_level,
        'target_unit_level': target_unit_level,
        'on_order': on_order,
        'reorder_qty': reorder_qty,
        'zero_date': zero_date,
        'days_until_order': days_until_order,
        'suggested_order_date': suggested_order_date,
        'needs_action': needs_action,
        'used_period_label': used_period_label
    }


def sort_planner_rows(rows: List[Dict]) -> List[Dict]:
    """Order rows: those needing action first, alphabetical by SKU within each group."""
    return sorted(rows, key=lambda r: (not r['needs_action'], r['sku']))


def plan_replenishment(
    snapshots: Iterable[Any],
    purchase_orders: Iterable[Any],
    settings: Iterable[Any],
    today: Union[date, str],
    defaults: Optional[Dict] = None,
    rate_basis: Union[None, str, Dict] = None
) -> List[Dict]:
    """Build the replenishment plan for every known SKU.

    The SKU universe is the union of SKUs found in snapshots, purchase orders
    and settings, so a SKU that has only been ordered still gets a row.

    Args:
        snapshots: All snapshots
        purchase_orders: All purchase orders
        settings: All SKU settings rows (objects or dictionaries)
        today: Reference date for horizon and order dates
        defaults: Policy for SKUs without settings, DEFAULT_SETTINGS if None
        rate_basis: Span to derive the daily rate from (see parse_rate_basis)

    Returns:
        Sorted list of planner rows
    """
    today = to_date(today)
    if today is None:
        raise ValidationError("A valid reference date is required")

    defaults = defaults or DEFAULT_SETTINGS
    basis = parse_rate_basis(rate_basis)

    snapshots = list(snapshots)
    purchase_orders = list(purchase_orders)

    snapshots_by_sku = {}
    for snapshot in snapshots:
        snapshots_by_sku.setdefault(snapshot.sku, []).append(snapshot)

    orders_by_sku = {}
    for po in purchase_orders:
        orders_by_sku.setdefault(po.sku, []).append(po)

    settings_by_sku = {}
    for row in settings:
        sku = row['sku'] if isinstance(row, dict) else row.sku
        settings_by_sku[sku] = row

    all_skus = set(snapshots_by_sku) | set(orders_by_sku) | set(settings_by_sku)
    all_skus.discard(None)

    rows = []
    for sku in sorted(all_skus):
        ordered = sort_snapshots(snapshots_by_sku.get(sku, []))
        sku_orders = orders_by_sku.get(sku, [])

        current_inventory = (ordered[0].qty or 0) if ordered else 0
        raw_rate, label = calculate_current_rate(ordered, sku_orders, today, basis)
        on_order = sum(int(po.qty or 0) for po in sku_orders if not po.received)

        rows.append(build_planner_row(
            sku,
            current_inventory,
            raw_rate,
            on_order,
            resolve_settings(sku, settings_by_sku, defaults),
            today,
            label
        ))

    return sort_planner_rows(rows)
