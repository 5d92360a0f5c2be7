# backend/schemas/stock.py
from datetime import datetime
from typing import List, Optional

from schemas.inventory import CamelModel, InventoryItemResponse


# Body of POST /transactions. Presence checks happen in the movement service so
# that a missing field is a 400 with a readable message rather than a 422.
class TransactionCreate(CamelModel):
    item_id: Optional[int] = None
    type: Optional[str] = None
    quantity: Optional[int] = None
    branch: Optional[str] = None
    item_tracking_id: Optional[str] = None
    asset_number: Optional[str] = None
    model: Optional[str] = None
    serial_number: Optional[str] = None
    reason: Optional[str] = None


# Body of POST /transactions/transfer; the type is implied
class TransferCreate(CamelModel):
    item_id: Optional[int] = None
    quantity: Optional[int] = None
    branch: Optional[str] = None
    item_tracking_id: Optional[str] = None
    asset_number: Optional[str] = None
    model: Optional[str] = None
    serial_number: Optional[str] = None
    reason: Optional[str] = None

    def as_transaction(self) -> TransactionCreate:
        return TransactionCreate(type="transfer", **self.model_dump())


class TransactionResponse(CamelModel):
    id: int
    item_id: int
    item_name: Optional[str] = None
    item_category: Optional[str] = None
    type: str
    quantity: int
    branch: Optional[str] = None
    asset_number: Optional[str] = None
    model: Optional[str] = None
    serial_number: Optional[str] = None
    item_tracking_id: Optional[str] = None
    reason: Optional[str] = None
    related_transaction_id: Optional[int] = None
    performed_by_id: Optional[int] = None
    created_at: Optional[datetime] = None


class MovementResult(CamelModel):
    transaction: TransactionResponse
    item: InventoryItemResponse
    item_deleted: bool = False


# Net stock of one (item, tracking id) pair at a branch
class BranchItem(CamelModel):
    item_id: int
    name: Optional[str] = None
    category: Optional[str] = None
    item_tracking_id: Optional[str] = None
    net_quantity: int
    asset_number: Optional[str] = None
    model: Optional[str] = None
    serial_number: Optional[str] = None
    reason: Optional[str] = None
    last_movement_at: Optional[datetime] = None


class BranchGroup(CamelModel):
    branch: str
    items: List[BranchItem]


class PendingReplacement(CamelModel):
    id: int
    item_id: int
    item_name: Optional[str] = None
    branch: Optional[str] = None
    item_tracking_id: Optional[str] = None
    reason: Optional[str] = None
    quantity: int
    status: str = "pending"
    created_at: Optional[datetime] = None


# Paginated full ledger for the audit view
class AuditLogPage(CamelModel):
    items: List[TransactionResponse]
    total: int
    page: int
    page_size: int
