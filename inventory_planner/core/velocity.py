# inventory_planner/core/velocity.py
from typing import Dict, List, Iterable, Any

from ..utils.date_utils import days_between, to_date, DateLike
from ..utils.math_utils import safe_divide
from .periods import reconstruct_periods, sort_snapshots


def days_in_period(prev_date: DateLike, current_date: DateLike) -> int:
    """Calendar days covered by a period, never negative."""
    return days_between(prev_date, current_date) or 0


def calculate_velocity(prev_qty: float, purchases: float, current_qty: float, days: int) -> Dict[str, float]:
    """Calculate units sold and daily rate over a span of days.

    Units sold is not clamped: a negative figure flags a count or receipt
    that is missing from the data. A zero-day span has a rate of 0.

    Args:
        prev_qty: Count at the start of the span
        purchases: Units received during the span
        current_qty: Count at the end of the span
        days: Length of the span in days

    Returns:
        Dictionary with units_sold and daily_rate
    """
    units_sold = prev_qty + purchases - current_qty
    return {
        'units_sold': units_sold,
        'daily_rate': safe_divide(units_sold, days)
    }


def calculate_period_velocity(period: Dict) -> Dict:
    """Add purchases, days, units sold and daily rate to a period.

    Args:
        period: Period dictionary from reconstruct_periods

    Returns:
        The same period dictionary, updated in place
    """
    purchases = sum(int(po.qty or 0) for po in period['purchase_orders'])
    days = days_in_period(period['prev_date'], period['current_date'])

    period['purchases'] = purchases
    period['days_in_period'] = days
    period.update(calculate_velocity(period['prev_qty'], purchases, period['current_qty'], days))
    return period


def build_sku_periods(snapshots: Iterable[Any], purchase_orders: Iterable[Any], sku: str) -> List[Dict]:
    """Reconstruct every period of a SKU with its velocity, newest first."""
    return [
        calculate_period_velocity(period)
        for period in reconstruct_periods(snapshots, purchase_orders, sku)
    ]


def build_inventory_log(snapshots: Iterable[Any], purchase_orders: Iterable[Any]) -> List[Dict]:
    """Build the count log: one row per snapshot with the period ending at it.

    The oldest snapshot of each SKU has no period; its period fields are None
    and its daily rate is 0.

    Args:
        snapshots: All snapshots
        purchase_orders: All purchase orders

    Returns:
        List of log rows ordered by date descending, then SKU
    """
    snapshots = list(snapshots)
    purchase_orders = list(purchase_orders)

    rows = []
    for sku in sorted({s.sku for s in snapshots}):
        ordered = sort_snapshots(snapshots, sku)
        periods = build_sku_periods(ordered, purchase_orders, sku)

        for index, snapshot in enumerate(ordered):
            row = {
                'id': snapshot.id,
                'sku': sku,
                'date': to_date(snapshot.date),
                'qty': snapshot.qty,
                'prev_date': None,
                'prev_qty': None,
                'purchases': 0,
                'days_in_period': None,
                'units_sold': None,
                'daily_rate': 0.0
            }
            if index < len(periods):
                period = periods[index]
                row.update({key: period[key] for key in (
                    'prev_date', 'prev_qty', 'purchases', 'days_in_period', 'units_sold', 'daily_rate'
                )})
            rows.append(row)

    rows.sort(key=lambda r: r['sku'])
    rows.sort(key=lambda r: r['date'], reverse=True)
    return rows
