# inventory_planner/models.py
from sqlalchemy import Column, Integer, String, Float, Date, Boolean, Index
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class Snapshot(Base):
    """Physical inventory count of one SKU on one calendar date.

    Snapshots are ordered by date only. Several snapshots may share a date;
    each adjacent pair still forms a period of its own.
    """
    __tablename__ = 'snapshot'

    id = Column(Integer, primary_key=True)
    sku = Column(String(50), nullable=False)
    date = Column(Date, nullable=False)
    qty = Column(Integer, nullable=False, default=0)

    __table_args__ = (
        Index('idx_snapshot_sku_date', 'sku', 'date'),
    )

    def __repr__(self):
        return f"<Snapshot {self.sku} {self.date} qty={self.qty}>"


class PurchaseOrder(Base):
    """Restock order line for one SKU.

    Only `received` and `received_date` change after the order is entered.
    """
    __tablename__ = 'purchase_order'

    id = Column(Integer, primary_key=True)
    sku = Column(String(50), nullable=False)
    po_number = Column(String(50), nullable=False)
    order_date = Column(Date)
    qty = Column(Integer, nullable=False, default=0)
    received = Column(Boolean, nullable=False, default=False)
    eta = Column(Date)
    received_date = Column(Date)
    vendor = Column(String(100))

    __table_args__ = (
        Index('idx_purchase_order_sku', 'sku'),
    )

    def __repr__(self):
        status = 'received' if self.received else 'on order'
        return f"<PurchaseOrder {self.po_number} {self.sku} qty={self.qty} {status}>"


class SkuSettings(Base):
    """Replenishment policy for one SKU."""
    __tablename__ = 'sku_settings'

    sku = Column(String(50), primary_key=True)
    lead_time = Column(Integer, nullable=False, default=90)
    min_days = Column(Integer, nullable=False, default=60)
    target_months = Column(Float, nullable=False, default=6.0)

    def to_dict(self):
        return {
            'sku': self.sku,
            'lead_time': self.lead_time,
            'min_days': self.min_days,
            'target_months': self.target_months
        }
