# inventory_planner/core/periods.py
from typing import Dict, List, Optional, Iterable, Any

from ..utils.date_utils import to_date, DateLike


def sort_snapshots(snapshots: Iterable[Any], sku: Optional[str] = None) -> List[Any]:
    """Sort snapshots newest first, optionally restricted to one SKU.

    Ordering is by date only. The sort is stable, so snapshots sharing a
    date keep their input order.

    Args:
        snapshots: Snapshot objects (anything with `sku`, `date`, `qty`)
        sku: Optional SKU filter

    Returns:
        Snapshots sorted by date descending; undated snapshots are dropped
    """
    selected = [
        s for s in snapshots
        if (sku is None or s.sku == sku) and to_date(s.date) is not None
    ]
    return sorted(selected, key=lambda s: to_date(s.date), reverse=True)


def purchases_in_period(
    purchase_orders: Iterable[Any],
    sku: str,
    prev_date: DateLike,
    current_date: DateLike
) -> List[Any]:
    """Select received orders for a SKU whose receipt falls in (prev, current].

    The lower bound is exclusive and the upper bound inclusive, so a receipt
    on the boundary between two adjacent periods is counted once, in the
    earlier period.

    Args:
        purchase_orders: All purchase orders, unfiltered
        sku: SKU of the period
        prev_date: Date of the older snapshot
        current_date: Date of the newer snapshot

    Returns:
        Matching purchase orders
    """
    start = to_date(prev_date)
    end = to_date(current_date)
    if start is None or end is None:
        return []

    matched = []
    for po in purchase_orders:
        if po.sku != sku or not po.received:
            continue
        received_date = to_date(po.received_date)
        if received_date is not None and start < received_date <= end:
            matched.append(po)
    return matched


def make_period(previous: Any, current: Any, purchase_orders: Iterable[Any]) -> Dict:
    """Build the period bounded by two snapshots of the same SKU."""
    prev_date = to_date(previous.date)
    current_date = to_date(current.date)
    return {
        'sku': current.sku,
        'prev_snapshot': previous,
        'current_snapshot': current,
        'prev_date': prev_date,
        'current_date': current_date,
        'prev_qty': previous.qty or 0,
        'current_qty': current.qty or 0,
        'purchase_orders': purchases_in_period(purchase_orders, current.sku, prev_date, current_date)
    }


def reconstruct_periods(
    snapshots: Iterable[Any],
    purchase_orders: Iterable[Any],
    sku: Optional[str] = None
) -> List[Dict]:
    """Reconstruct consumption periods from unordered snapshots.

    Every adjacent pair of date-sorted snapshots yields exactly one period,
    including same-day recounts. Fewer than two snapshots yield none.

    Args:
        snapshots: Snapshots of one SKU, or of many SKUs when `sku` is given
        purchase_orders: All purchase orders, unfiltered
        sku: Optional SKU to restrict the snapshots to

    Returns:
        List of period dictionaries, newest first
    """
    ordered = sort_snapshots(snapshots, sku)
    purchase_orders = list(purchase_orders)

    return [
        make_period(ordered[i + 1], ordered[i], purchase_orders)
        for i in range(len(ordered) - 1)
    ]
