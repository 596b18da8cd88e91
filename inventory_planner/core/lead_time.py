# inventory_planner/core/lead_time.py
from typing import Dict, List, Optional, Iterable, Any

from ..utils.date_utils import days_between, signed_days_between, DateLike
from ..utils.math_utils import mean_or_none


def calculate_actual_lead_time(order_date: DateLike, received_date: DateLike) -> Optional[int]:
    """Calculate the actual lead time between order and receipt dates.

    Args:
        order_date: Date the order was placed
        received_date: Date the goods arrived

    Returns:
        Lead time in days (never negative), or None if a date is missing
    """
    return days_between(order_date, received_date)


def calculate_eta_variance(eta: DateLike, received_date: DateLike) -> Optional[int]:
    """Days the receipt came after its ETA; zero or negative is on time.

    Returns:
        Variance in days, or None if either date does not parse
    """
    return signed_days_between(eta, received_date)


def _is_populated(value) -> bool:
    if isinstance(value, str):
        return bool(value.strip())
    return value is not None


def analyze_lead_times(purchase_orders: Iterable[Any]) -> Dict:
    """Analyze vendor lead times and ETA accuracy.

    Only received orders with both an order date and a received date take
    part. Orders whose ETA does not parse still count towards the lead time
    average but not towards variance or on-time figures.

    Args:
        purchase_orders: All purchase orders

    Returns:
        Dictionary with total_pos, evaluated_pos, avg_variance, on_time_pct
        and per-SKU rows sorted by SKU. Averages without samples are None.
    """
    purchase_orders = list(purchase_orders)
    received = [
        po for po in purchase_orders
        if po.received and _is_populated(po.order_date) and _is_populated(po.received_date)
    ]

    by_sku = {}
    variances = []

    for po in received:
        entry = by_sku.setdefault(po.sku, {'lead_times': [], 'variances': [], 'received_count': 0})
        entry['received_count'] += 1

        actual_lead = calculate_actual_lead_time(po.order_date, po.received_date)
        if actual_lead is not None:
            entry['lead_times'].append(actual_lead)

        variance = calculate_eta_variance(po.eta, po.received_date)
        if variance is not None:
            entry['variances'].append(variance)
            variances.append(variance)

    rows = [
        {
            'sku': sku,
            'avg_actual_lead_time': mean_or_none(entry['lead_times']),
            'avg_variance_eta': mean_or_none(entry['variances']),
            'received_count': entry['received_count']
        }
        for sku, entry in sorted(by_sku.items())
    ]

    on_time_pct = None
    if variances:
        on_time_pct = sum(1 for v in variances if v <= 0) / len(variances) * 100

    return {
        'total_pos': len(purchase_orders),
        'evaluated_pos': len(received),
        'avg_variance': mean_or_none(variances),
        'on_time_pct': on_time_pct,
        'rows': rows
    }


def eta_status(purchase_order: Any) -> Dict:
    """Describe how a purchase order's receipt compares with its ETA.

    Args:
        purchase_order: Purchase order

    Returns:
        Dictionary with status ('Received' or 'On Order'), days_early
        (positive early, negative late, None if unknown) and a label
    """
    if not purchase_order.received:
        return {'status': 'On Order', 'days_early': None, 'label': None}

    days_early = signed_days_between(purchase_order.received_date, purchase_order.eta)

    if days_early is None:
        label = None
    elif days_early > 0:
        label = f"{days_early} Days Early"
    elif days_early < 0:
        label = f"{abs(days_early)} Days Late"
    else:
        label = 'On Time'

    return {'status': 'Received', 'days_early': days_early, 'label': label}
