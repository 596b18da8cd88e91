# inventory_planner/services/reporting_service.py
from datetime import date, datetime
from typing import Dict, List, Optional, Union

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from inventory_planner.config import config
from inventory_planner.models import Snapshot, PurchaseOrder, SkuSettings
from inventory_planner.core.replenishment import plan_replenishment
from inventory_planner.core.trend import sales_trend, trend_skus
from inventory_planner.core.lead_time import analyze_lead_times, eta_status
from inventory_planner.core.velocity import build_inventory_log
from inventory_planner.exceptions import ReportingError
from inventory_planner.logging_setup import get_logger

logger = get_logger(__name__)


class ReportingService:
    """Service for producing forecasts and reports from stored records."""

    def __init__(self, session: Session):
        """Initialize the reporting service.

        Args:
            session: Database session
        """
        self.session = session

    def load_collections(self) -> Dict[str, list]:
        """Load every snapshot, purchase order and settings row.

        Returns:
            Dictionary with snapshots, purchase_orders and settings lists
        """
        try:
            return {
                'snapshots': self.session.query(Snapshot).all(),
                'purchase_orders': self.session.query(PurchaseOrder).all(),
                'settings': self.session.query(SkuSettings).all()
            }
        except SQLAlchemyError as e:
            logger.error(f"Error loading inventory records: {str(e)}")
            raise ReportingError(f"Could not load inventory records: {str(e)}")

    def planner_report(
        self,
        today: Optional[date] = None,
        rate_basis: Union[None, str, Dict] = None
    ) -> List[Dict]:
        """Build the replenishment plan.

        Args:
            today: Reference date, defaults to the current date
            rate_basis: Span for the daily rate, defaults to configuration

        Returns:
            Sorted list of planner rows
        """
        today = today or date.today()
        rate_basis = rate_basis or config.report_config['rate_basis']
        collections = self.load_collections()

        rows = plan_replenishment(
            collections['snapshots'],
            collections['purchase_orders'],
            collections['settings'],
            today,
            defaults=config.planner_defaults,
            rate_basis=rate_basis
        )

        flagged = sum(1 for row in rows if row['needs_action'])
        logger.info(f"Planned {len(rows)} SKUs as of {today}, {flagged} need action")
        return rows

    def sales_trend_report(
        self,
        sku: Optional[str] = None,
        timeframe: Optional[str] = None,
        now: Optional[datetime] = None,
        custom_start: Optional[date] = None,
        custom_end: Optional[date] = None
    ) -> Dict:
        """Build the sales trend of one SKU.

        Args:
            sku: SKU to report, defaults to the first SKU with snapshots
            timeframe: '3m', '6m', '1y' or 'custom', defaults to configuration
            now: Reference instant, defaults to the current time
            custom_start: Start date for a custom range
            custom_end: End date for a custom range

        Returns:
            Trend dictionary; empty periods if there is no SKU to report
        """
        timeframe = timeframe or config.report_config['trend_timeframe']
        now = now or datetime.now()
        collections = self.load_collections()

        if sku is None:
            skus = trend_skus(collections['snapshots'])
            if not skus:
                logger.warning("No snapshots recorded, sales trend is empty")
                return {
                    'sku': None, 'timeframe': timeframe, 'start': None, 'end': None,
                    'periods': [], 'total_sold': 0, 'avg_rate': 0.0
                }
            sku = skus[0]

        return sales_trend(
            collections['snapshots'],
            collections['purchase_orders'],
            sku,
            timeframe,
            now,
            custom_start,
            custom_end
        )

    def lead_time_report(self) -> Dict:
        """Analyze lead times and ETA accuracy of all purchase orders."""
        report = analyze_lead_times(self.load_collections()['purchase_orders'])
        logger.info(f"Evaluated {report['evaluated_pos']} of {report['total_pos']} purchase orders")
        return report

    def inventory_log(self, sku: Optional[str] = None) -> List[Dict]:
        """Build the count log, optionally for one SKU."""
        collections = self.load_collections()
        rows = build_inventory_log(collections['snapshots'], collections['purchase_orders'])
        if sku is not None:
            rows = [row for row in rows if row['sku'] == sku]
        return rows

    def purchase_order_status(self) -> List[Dict]:
        """List purchase orders with their receipt status, newest order first."""
        orders = self.load_collections()['purchase_orders']
        orders.sort(key=lambda po: (po.order_date or date.min, po.id or 0), reverse=True)

        results = []
        for po in orders:
            row = {
                'id': po.id,
                'po_number': po.po_number,
                'sku': po.sku,
                'order_date': po.order_date,
                'qty': po.qty,
                'eta': po.eta,
                'received_date': po.received_date,
                'vendor': po.vendor
            }
            row.update(eta_status(po))
            results.append(row)
        return results
