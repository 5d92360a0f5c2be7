# backend/models/inventory.py
import enum
from sqlalchemy import (
    Column, Integer, String, Float, Date, DateTime, ForeignKey, CheckConstraint, func
)
from sqlalchemy.orm import relationship
from database import Base


class StockStatus(str, enum.Enum):
    IN_STOCK = "in-stock"
    LOW_STOCK = "low-stock"
    OUT_OF_STOCK = "out-of-stock"


# A trackable unit held in the central inventory.
# status and warranty_expiry_date are derived; they are recomputed on every write
# that touches quantity/min_stock or the warranty text.
class InventoryItem(Base):
    __tablename__ = "inventory_items"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, index=True)
    category = Column(String, nullable=False, default="")

    quantity = Column(Integer, CheckConstraint("quantity >= 0"), nullable=False, default=0)
    min_stock = Column(Integer, nullable=False, default=0)
    max_stock = Column(Integer, nullable=True)
    price = Column(Float, nullable=True)

    supplier = Column(String, nullable=False, default="")
    model = Column(String, nullable=True)
    # Comma separated, individual serials are mirrored in item_serials
    serial_number = Column(String, nullable=True)
    warranty = Column(String, nullable=True)
    warranty_expiry_date = Column(Date, nullable=True)
    location = Column(String, nullable=False, default="")
    description = Column(String, nullable=True)

    status = Column(String, nullable=False, default=StockStatus.IN_STOCK.value)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    created_by_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    updated_by_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    # Optimistic concurrency counter
    version = Column(Integer, nullable=False)

    serials = relationship(
        "ItemSerial", back_populates="item", cascade="all, delete-orphan", lazy="selectin"
    )

    __mapper_args__ = {"version_id_col": version}
    # Ids of drained items must never be handed out again, the ledger still points at them
    __table_args__ = {"sqlite_autoincrement": True}


# One row per serial number; the unique index is what keeps a serial on a single item.
class ItemSerial(Base):
    __tablename__ = "item_serials"

    id = Column(Integer, primary_key=True, index=True)
    item_id = Column(Integer, ForeignKey("inventory_items.id", ondelete="CASCADE"), nullable=False, index=True)
    serial_number = Column(String, unique=True, nullable=False, index=True)

    item = relationship("InventoryItem", back_populates="serials")
