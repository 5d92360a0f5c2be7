# backend/services/movements.py
"""Stock movements: the only code path that changes quantity through the ledger.

Each movement validates its input, adjusts the item, and appends one ledger
entry. The item write, the ledger insert and the activity-log entry are
committed together.
"""
import logging
from collections import namedtuple
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from config import settings
from models.inventory import InventoryItem
from models.transaction import Transaction, TransactionType
from models.users import User
from schemas.inventory import InventoryItemResponse
from schemas.stock import TransactionCreate
from services.items import ensure_serials_available, sync_serials
from services.unit_of_work import unit_of_work
from utils.audit import write_log
from utils.errors import (
    AlreadyConfirmedError,
    BranchRequiredError,
    InsufficientStockError,
    InvalidTransactionTypeError,
    InventoryError,
    ItemNotFoundError,
    MissingFieldsError,
    OriginalTransferNotFoundError,
    ResourceNotFoundError,
    TrackingIdRequiredError,
)
from utils.serials import join_serials, split_serials
from utils.stock_status import derive_status

logger = logging.getLogger(__name__)

MOVEMENT_TYPES = {
    TransactionType.IN.value,
    TransactionType.OUT.value,
    TransactionType.RETURN.value,
    TransactionType.TRANSFER.value,
}
BRANCH_TYPES = {TransactionType.OUT.value, TransactionType.RETURN.value, TransactionType.TRANSFER.value}
# Types that take stock out of the central inventory
DECREMENT_TYPES = {TransactionType.OUT.value, TransactionType.TRANSFER.value}

REPLACEMENT_REASON = "Replacement Equipment"

MovementOutcome = namedtuple("MovementOutcome", ["transaction", "item", "item_deleted"])


def validate_movement(payload: TransactionCreate) -> None:
    """Reject malformed requests before anything is read or written."""
    if not payload.item_id or not payload.type or not payload.quantity:
        raise MissingFieldsError()
    if payload.quantity < 0:
        raise InventoryError("Quantity must be a positive integer")
    if payload.type not in MOVEMENT_TYPES:
        raise InvalidTransactionTypeError(payload.type)
    if payload.type in BRANCH_TYPES and not (payload.branch or "").strip():
        raise BranchRequiredError()
    if payload.type == TransactionType.TRANSFER.value and not (payload.item_tracking_id or "").strip():
        raise TrackingIdRequiredError()


def find_original_transfer(db: Session, item_id: int, tracking_id: Optional[str]) -> Optional[Transaction]:
    # Any movement that can drain an item (out or transfer) is a valid source for a return
    query = db.query(Transaction).filter(
        Transaction.type.in_(sorted(DECREMENT_TYPES)),
        Transaction.item_id == item_id,
    )
    if tracking_id:
        query = query.filter(Transaction.item_tracking_id == tracking_id)
    return query.order_by(Transaction.id.desc()).first()


def reconstruct_item(db: Session, original: Transaction, user: User) -> InventoryItem:
    """Recreate a drained item from its last out or transfer entry so a return has somewhere to land."""
    serials = split_serials(original.serial_number)
    ensure_serials_available(db, serials)

    item = InventoryItem(
        id=original.item_id,
        name=original.item_name or "Unknown item",
        category=original.item_category or "",
        model=original.model,
        serial_number=join_serials(serials) if serials else None,
        location=settings.MAIN_INVENTORY_LOCATION,
        supplier="",
        quantity=0,
        min_stock=0,
        created_by_id=user.id,
        updated_by_id=user.id,
    )
    item.status = derive_status(0, 0)
    sync_serials(item, serials)
    db.add(item)
    logger.info("Rebuilt item %s (%s) from %s entry %s for a return", item.id, item.name, original.type, original.id)
    return item


def _load_item(db: Session, item_id: int) -> Optional[InventoryItem]:
    # FOR UPDATE serialises movements on the same row where the backend supports it
    return (
        db.query(InventoryItem)
        .filter(InventoryItem.id == item_id)
        .with_for_update()
        .first()
    )


def apply_movement(db: Session, payload: TransactionCreate, user: User, ip: Optional[str] = None) -> MovementOutcome:
    validate_movement(payload)
    tx_type = payload.type
    branch = (payload.branch or "").strip() or None
    tracking_id = (payload.item_tracking_id or "").strip() or None

    with unit_of_work(db):
        item = _load_item(db, payload.item_id)
        if item is None:
            if tx_type != TransactionType.RETURN.value:
                raise ItemNotFoundError()
            original = find_original_transfer(db, payload.item_id, tracking_id)
            if original is None:
                raise OriginalTransferNotFoundError()
            item = reconstruct_item(db, original, user)

        if tx_type in DECREMENT_TYPES and payload.quantity > item.quantity:
            raise InsufficientStockError(item.quantity, payload.quantity)

        if tx_type in DECREMENT_TYPES:
            item.quantity -= payload.quantity
        else:
            item.quantity += payload.quantity
        item.status = derive_status(item.quantity, item.min_stock)
        item.updated_by_id = user.id

        item_deleted = tx_type in DECREMENT_TYPES and item.quantity == 0
        # Snapshot before a drained item disappears from the session
        item_snapshot = InventoryItemResponse.model_validate(item)
        if item_deleted:
            db.delete(item)

        transaction = Transaction(
            item_id=payload.item_id,
            item_name=item.name,
            item_category=item.category,
            type=tx_type,
            quantity=payload.quantity,
            branch=branch,
            asset_number=payload.asset_number,
            model=payload.model,
            serial_number=payload.serial_number,
            item_tracking_id=tracking_id,
            reason=payload.reason,
            performed_by_id=user.id,
        )
        db.add(transaction)
        write_log(
            db, user_id=user.id, action=f"STOCK_{tx_type.upper()}", resource="transactions",
            status="SUCCESS", ip=ip, commit=False,
            meta={"item_id": payload.item_id, "quantity": payload.quantity, "branch": branch,
                  "item_deleted": item_deleted},
        )

    db.refresh(transaction)
    if not item_deleted:
        db.refresh(item)
        item_snapshot = InventoryItemResponse.model_validate(item)

    logger.info(
        "Stock %s: item=%s qty=%s branch=%s tracking=%s deleted=%s",
        tx_type, payload.item_id, payload.quantity, branch, tracking_id, item_deleted,
    )
    return MovementOutcome(transaction, item_snapshot, item_deleted)


def transactions_for_item(db: Session, item_id: int) -> List[Transaction]:
    return (
        db.query(Transaction)
        .filter(Transaction.item_id == item_id)
        .order_by(Transaction.created_at.desc(), Transaction.id.desc())
        .all()
    )


# --- replacement equipment follow-up ---

def _is_replacement(tx: Transaction) -> bool:
    return (tx.reason or "").startswith(REPLACEMENT_REASON)


def list_pending_replacements(db: Session) -> List[Transaction]:
    confirmed = select(Transaction.related_transaction_id).where(
        Transaction.type == TransactionType.CONFIRMATION.value,
        Transaction.related_transaction_id.isnot(None),
    )
    transfers = (
        db.query(Transaction)
        .filter(
            Transaction.type == TransactionType.TRANSFER.value,
            Transaction.reason.like(f"{REPLACEMENT_REASON}%"),
            Transaction.id.not_in(confirmed),
        )
        .order_by(Transaction.created_at.desc(), Transaction.id.desc())
        .all()
    )
    return transfers


def confirm_replacement(db: Session, transfer_id: int, user: User, ip: Optional[str] = None) -> Transaction:
    """Append a confirmation entry for a replacement transfer. Stock is not touched."""
    transfer = db.query(Transaction).filter(Transaction.id == transfer_id).first()
    if transfer is None or transfer.type != TransactionType.TRANSFER.value or not _is_replacement(transfer):
        raise ResourceNotFoundError("Pending replacement not found")

    already = (
        db.query(Transaction.id)
        .filter(
            Transaction.type == TransactionType.CONFIRMATION.value,
            Transaction.related_transaction_id == transfer.id,
        )
        .first()
    )
    if already:
        raise AlreadyConfirmedError()

    with unit_of_work(db):
        confirmation = Transaction(
            item_id=transfer.item_id,
            item_name=transfer.item_name,
            item_category=transfer.item_category,
            type=TransactionType.CONFIRMATION.value,
            quantity=transfer.quantity,
            branch=transfer.branch,
            item_tracking_id=transfer.item_tracking_id,
            reason=transfer.reason,
            related_transaction_id=transfer.id,
            performed_by_id=user.id,
        )
        db.add(confirmation)
        write_log(
            db, user_id=user.id, action="REPLACEMENT_CONFIRM", resource="transactions",
            status="SUCCESS", ip=ip, commit=False, meta={"transfer_id": transfer.id},
        )

    db.refresh(confirmation)
    return confirmation
