# inventory_planner/services/inventory_service.py
from datetime import date
from typing import Dict, Optional, Any

from sqlalchemy.orm import Session

from inventory_planner.config import config
from inventory_planner.models import Snapshot, PurchaseOrder, SkuSettings
from inventory_planner.exceptions import ValidationError, NotFoundError
from inventory_planner.utils.date_utils import to_date
from inventory_planner.utils.math_utils import as_number
from inventory_planner.utils.validation import (
    validate_snapshot, validate_purchase_order, load_payload
)
from inventory_planner.logging_setup import get_logger

logger = get_logger(__name__)

SETTING_FIELDS = ('lead_time', 'min_days', 'target_months')


class InventoryService:
    """Service for recording counts, purchase orders and SKU settings."""

    def __init__(self, session: Session):
        """Initialize the inventory service.

        Args:
            session: Database session
        """
        self.session = session

    def _get_purchase_order(self, po_id: int) -> PurchaseOrder:
        purchase_order = self.session.get(PurchaseOrder, po_id)
        if purchase_order is None:
            raise NotFoundError(f"Purchase order with ID {po_id} not found")
        return purchase_order

    def add_snapshot(self, sku: str, count_date: Any, qty: int) -> Snapshot:
        """Record a physical count.

        Args:
            sku: SKU counted
            count_date: Date of the count
            qty: Units on hand

        Returns:
            The new snapshot
        """
        snapshot = Snapshot(sku=(sku or '').strip(), date=to_date(count_date), qty=qty)
        errors = validate_snapshot(snapshot)
        if errors:
            raise ValidationError("Invalid snapshot", details=errors)

        self.session.add(snapshot)
        self.session.flush()
        logger.info(f"Recorded count of {snapshot.qty} for {snapshot.sku} on {snapshot.date}")
        return snapshot

    def delete_snapshot(self, snapshot_id: int) -> None:
        """Delete a physical count."""
        snapshot = self.session.get(Snapshot, snapshot_id)
        if snapshot is None:
            raise NotFoundError(f"Snapshot with ID {snapshot_id} not found")
        self.session.delete(snapshot)
        logger.info(f"Deleted snapshot {snapshot_id}")

    def add_purchase_order(
        self,
        sku: str,
        po_number: str,
        order_date: Any,
        qty: int,
        eta: Any = None,
        vendor: Optional[str] = None
    ) -> PurchaseOrder:
        """Record a new, unreceived purchase order line.

        Returns:
            The new purchase order
        """
        purchase_order = PurchaseOrder(
            sku=(sku or '').strip(),
            po_number=(po_number or '').strip(),
            order_date=to_date(order_date),
            qty=qty,
            received=False,
            eta=to_date(eta),
            received_date=None,
            vendor=vendor or None
        )
        errors = validate_purchase_order(purchase_order)
        if errors:
            raise ValidationError("Invalid purchase order", details=errors)

        self.session.add(purchase_order)
        self.session.flush()
        logger.info(f"Recorded PO {purchase_order.po_number} for {purchase_order.qty} x {purchase_order.sku}")
        return purchase_order

    def toggle_received(self, po_id: int, today: date) -> PurchaseOrder:
        """Flip the received flag of a purchase order.

        Receiving sets the received date to `today`; un-receiving clears it.
        """
        purchase_order = self._get_purchase_order(po_id)
        purchase_order.received = not purchase_order.received
        purchase_order.received_date = to_date(today) if purchase_order.received else None
        logger.info(
            f"PO {purchase_order.po_number} ({purchase_order.sku}) marked "
            f"{'received' if purchase_order.received else 'on order'}"
        )
        return purchase_order

    def update_received_date(self, po_id: int, received_date: Any) -> PurchaseOrder:
        """Correct the received date of a purchase order."""
        purchase_order = self._get_purchase_order(po_id)
        purchase_order.received_date = to_date(received_date)
        return purchase_order

    def delete_purchase_order(self, po_id: int) -> None:
        """Delete a purchase order line."""
        self.session.delete(self._get_purchase_order(po_id))
        logger.info(f"Deleted purchase order {po_id}")

    def update_sku_setting(self, sku: str, field: str, value: Any) -> SkuSettings:
        """Change one replenishment setting of a SKU.

        A SKU without settings gets a row built from the configured defaults
        first. Non-numeric values are stored as 0.
        """
        if field not in SETTING_FIELDS:
            raise ValidationError(f"Unknown setting: {field}", details={'valid': list(SETTING_FIELDS)})

        settings = self.session.get(SkuSettings, sku)
        if settings is None:
            settings = SkuSettings(sku=sku, **config.planner_defaults)
            self.session.add(settings)

        number = as_number(value)
        setattr(settings, field, number if field == 'target_months' else int(number))
        self.session.flush()
        return settings

    def import_payload(self, payload: Dict, replace: bool = False) -> Dict[str, int]:
        """Import an exported data payload.

        Record ids from the payload are discarded; settings rows replace any
        stored row for the same SKU.

        Args:
            payload: Dictionary with snapshots, pos and settings lists
            replace: Delete all stored records first

        Returns:
            Dictionary with the number of records imported per collection
        """
        records = load_payload(payload, config.planner_defaults)

        if replace:
            for model in (Snapshot, PurchaseOrder, SkuSettings):
                self.session.query(model).delete()
            logger.warning("Replaced all stored inventory records")

        for record in records['snapshots'] + records['purchase_orders']:
            record.id = None
            self.session.add(record)

        for settings in records['settings']:
            self.session.merge(settings)

        self.session.flush()

        counts = {name: len(items) for name, items in records.items()}
        logger.info(f"Imported {counts}")
        return counts
