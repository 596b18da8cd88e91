from typing import Dict, List, Any

from inventory_planner.models import Snapshot, PurchaseOrder, SkuSettings
from inventory_planner.exceptions import ValidationError
from inventory_planner.utils.date_utils import to_date
from inventory_planner.logging_setup import get_logger

logger = get_logger(__name__)

RECEIVED_DOCUMENT_STATUSES = ('Received', 'Paid')


def _pick(data: Dict[str, Any], *keys, default=None):
    """Return the first present key, accepting camelCase and snake_case names."""
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return default


def _to_int(value):
    if value is None or value == '':
        return 0
    if isinstance(value, bool):
        raise ValueError(f"not a quantity: {value!r}")
    number = float(value)
    if not number.is_integer():
        raise ValueError(f"not a whole quantity: {value!r}")
    return int(number)


def _to_bool(value) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ('true', '1', 'yes', 'y')
    return bool(value)


def validate_snapshot(snapshot: Snapshot) -> Dict[str, str]:
    """Validate a snapshot.

    Args:
        snapshot: Snapshot to validate

    Returns:
        Dictionary with validation errors
    """
    errors = {}

    if not snapshot.sku:
        errors['sku'] = 'SKU is required'

    if to_date(snapshot.date) is None:
        errors['date'] = 'A valid count date is required'

    if snapshot.qty is None or snapshot.qty < 0:
        errors['qty'] = 'Quantity must be a non-negative integer'

    return errors


def validate_purchase_order(purchase_order: PurchaseOrder) -> Dict[str, str]:
    """Validate a purchase order.

    Args:
        purchase_order: Purchase order to validate

    Returns:
        Dictionary with validation errors
    """
    errors = {}

    if not purchase_order.sku:
        errors['sku'] = 'SKU is required'

    if not purchase_order.po_number:
        errors['po_number'] = 'PO number is required'

    if purchase_order.qty is None or purchase_order.qty < 0:
        errors['qty'] = 'Quantity must be a non-negative integer'

    return errors


def snapshot_from_dict(data: Dict[str, Any]) -> Snapshot:
    """Build a transient Snapshot from an exported record.

    Raises:
        ValidationError: If the record is not a usable count
    """
    try:
        qty = _to_int(_pick(data, 'qty', default=0))
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Invalid snapshot quantity: {str(e)}", details={'record': data})

    snapshot = Snapshot(
        id=_pick(data, 'id'),
        sku=str(_pick(data, 'sku', default='')).strip(),
        date=to_date(_pick(data, 'date')),
        qty=qty
    )

    errors = validate_snapshot(snapshot)
    if errors:
        raise ValidationError("Invalid snapshot", details=errors)
    return snapshot


def purchase_order_from_dict(data: Dict[str, Any]) -> PurchaseOrder:
    """Build a transient PurchaseOrder from an exported record.

    Unparseable dates are stored as empty; they drop out of lead-time
    statistics instead of failing the import.

    Raises:
        ValidationError: If the record is not a usable order line
    """
    try:
        qty = _to_int(_pick(data, 'qty', default=0))
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Invalid purchase order quantity: {str(e)}", details={'record': data})

    purchase_order = PurchaseOrder(
        id=_pick(data, 'id'),
        sku=str(_pick(data, 'sku', default='')).strip(),
        po_number=str(_pick(data, 'poNumber', 'po_number', default='')).strip(),
        order_date=to_date(_pick(data, 'orderDate', 'order_date')),
        qty=qty,
        received=_to_bool(_pick(data, 'received', default=False)),
        eta=to_date(_pick(data, 'eta')),
        received_date=to_date(_pick(data, 'receivedDate', 'received_date')),
        vendor=_pick(data, 'vendor') or None
    )

    for key in ('eta', 'receivedDate', 'orderDate'):
        raw = data.get(key)
        if raw and to_date(raw) is None:
            logger.warning(f"Purchase order {purchase_order.po_number}: ignoring unparseable {key} {raw!r}")

    errors = validate_purchase_order(purchase_order)
    if errors:
        raise ValidationError("Invalid purchase order", details=errors)
    return purchase_order


def sku_settings_from_dict(data: Dict[str, Any], defaults: Dict[str, float]) -> SkuSettings:
    """Build a transient SkuSettings row, filling gaps from `defaults`.

    Raises:
        ValidationError: If the SKU is missing
    """
    sku = str(_pick(data, 'sku', default='')).strip()
    if not sku:
        raise ValidationError("Invalid SKU settings", details={'sku': 'SKU is required'})

    return SkuSettings(
        sku=sku,
        lead_time=_pick(data, 'leadTime', 'lead_time', default=defaults['lead_time']),
        min_days=_pick(data, 'minDays', 'min_days', default=defaults['min_days']),
        target_months=_pick(data, 'targetMonths', 'target_months', default=defaults['target_months'])
    )


def normalize_purchase_orders(records: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Flatten document-style purchase orders into one record per line item.

    A document carries `items` plus shared `orderDate`, `receivedDate`, `eta`,
    `status` and `vendorId`; it counts as received when its status is
    Received or Paid. Flat records pass through unchanged.

    Args:
        records: Exported purchase order records

    Returns:
        List of flat purchase order records
    """
    flat = []
    for record in records:
        items = record.get('items')
        if not isinstance(items, list):
            flat.append(record)
            continue

        is_received = record.get('status') in RECEIVED_DOCUMENT_STATUSES
        for item in items:
            line = dict(item)
            line.update({
                'id': item.get('id') or f"{record.get('id')}-{item.get('sku')}",
                'poId': record.get('id'),
                'poNumber': item.get('poNumber') or record.get('poNumber') or str(record.get('id', '')),
                'orderDate': record.get('orderDate'),
                'received': is_received,
                'receivedDate': record.get('receivedDate'),
                'eta': record.get('eta'),
                'vendor': record.get('vendorId')
            })
            flat.append(line)
    return flat


def load_payload(payload: Dict[str, Any], defaults: Dict[str, float]) -> Dict[str, list]:
    """Convert an exported data payload into transient model instances.

    Args:
        payload: Dictionary with `snapshots`, `pos` and `settings` lists
        defaults: Replenishment defaults for incomplete settings rows

    Returns:
        Dictionary with `snapshots`, `purchase_orders` and `settings` lists

    Raises:
        ValidationError: If any record is invalid; `details` lists every failure
    """
    result = {'snapshots': [], 'purchase_orders': [], 'settings': []}
    failures = []

    sources = (
        ('snapshots', payload.get('snapshots') or [], snapshot_from_dict),
        ('purchase_orders', normalize_purchase_orders(payload.get('pos') or []), purchase_order_from_dict),
        ('settings', payload.get('settings') or [], lambda d: sku_settings_from_dict(d, defaults)),
    )

    for name, records, build in sources:
        for index, record in enumerate(records):
            try:
                result[name].append(build(record))
            except ValidationError as e:
                failures.append({'collection': name, 'index': index, 'error': e.to_dict()})

    if failures:
        raise ValidationError(f"{len(failures)} invalid record(s) in payload", details=failures)

    return result
