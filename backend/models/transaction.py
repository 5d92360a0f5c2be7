# backend/models/transaction.py
import enum
from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, CheckConstraint, func
from sqlalchemy.orm import relationship
from database import Base


class TransactionType(str, enum.Enum):
    IN = "in"
    OUT = "out"
    RETURN = "return"
    TRANSFER = "transfer"
    CONFIRMATION = "confirmation"


# Append-only ledger of stock movements.
# item_id is not a foreign key; entries outlive drained items and keep a
# name/category snapshot.
class Transaction(Base):
    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, index=True)
    item_id = Column(Integer, nullable=False, index=True)
    item_name = Column(String, nullable=True)
    item_category = Column(String, nullable=True)

    type = Column(String, nullable=False, index=True)
    quantity = Column(Integer, CheckConstraint("quantity > 0"), nullable=False)

    # Required for out/return/transfer
    branch = Column(String, nullable=True, index=True)
    asset_number = Column(String, nullable=True)
    model = Column(String, nullable=True)
    serial_number = Column(String, nullable=True)
    # Required for transfer, optional for return
    item_tracking_id = Column(String, nullable=True, index=True)
    reason = Column(String, nullable=True)

    # Transfer acknowledged by a confirmation entry
    related_transaction_id = Column(Integer, nullable=True, index=True)

    performed_by_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    performed_by = relationship("User", lazy="joined", uselist=False)
