# backend/services/items.py
import logging
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from models.inventory import InventoryItem, ItemSerial
from models.users import User
from schemas.inventory import InventoryItemCreate, InventoryItemUpdate
from utils.errors import DuplicateSerialError, ItemNotFoundError
from utils.serials import join_serials, split_serials
from utils.stock_status import derive_status
from utils.warranty import warranty_expiry

logger = logging.getLogger(__name__)


def get_item_or_404(db: Session, item_id: int) -> InventoryItem:
    item = db.query(InventoryItem).filter(InventoryItem.id == item_id).first()
    if not item:
        raise ItemNotFoundError()
    return item


def ensure_serials_available(
    db: Session,
    serials: Iterable[str],
    exclude_item_id: Optional[int] = None,
    reserved: Optional[Dict[str, str]] = None,
) -> None:
    """Pre-flight check that none of `serials` is held by another item.

    `reserved` maps serials already claimed earlier in the same request to the
    name of the item claiming them. The unique index on item_serials is the
    actual guarantee; this only produces a message that names the culprit.
    """
    candidates = list(serials)
    if not candidates:
        return

    for serial in candidates:
        if reserved and serial in reserved:
            raise DuplicateSerialError(serial, reserved[serial])

    query = (
        db.query(ItemSerial.serial_number, InventoryItem.name)
        .join(InventoryItem, InventoryItem.id == ItemSerial.item_id)
        .filter(ItemSerial.serial_number.in_(candidates))
    )
    if exclude_item_id is not None:
        query = query.filter(ItemSerial.item_id != exclude_item_id)

    clash = query.order_by(ItemSerial.id).first()
    if clash:
        raise DuplicateSerialError(clash.serial_number, clash.name)


def sync_serials(item: InventoryItem, serials: List[str]) -> None:
    # Diff instead of replacing the collection: re-inserting a kept serial in the
    # same flush would trip the unique index before the old row is deleted.
    wanted = set(serials)
    for row in list(item.serials):
        if row.serial_number not in wanted:
            item.serials.remove(row)
    existing = {row.serial_number for row in item.serials}
    for serial in serials:
        if serial not in existing:
            item.serials.append(ItemSerial(serial_number=serial))


def _build_item(data: dict, user: User, now: datetime) -> InventoryItem:
    item = InventoryItem(**data)
    item.status = derive_status(item.quantity, item.min_stock)
    item.warranty_expiry_date = warranty_expiry(item.warranty, now)
    item.created_by_id = user.id
    item.updated_by_id = user.id
    sync_serials(item, split_serials(item.serial_number))
    return item


def create_items(
    db: Session,
    payload: InventoryItemCreate,
    user: User,
    reserved: Optional[Dict[str, str]] = None,
) -> List[InventoryItem]:
    """Add one item, or one item per serial when the quantity counts the serials.

    "SN1, SN2, SN3" with quantity 3 becomes three items of quantity 1. Nothing is
    committed here; the caller owns the unit of work.
    """
    reserved = {} if reserved is None else reserved
    serials = split_serials(payload.serial_number)
    ensure_serials_available(db, serials, reserved=reserved)

    data = payload.model_dump()
    now = datetime.now(timezone.utc)

    if len(serials) > 1 and payload.quantity == len(serials):
        items = []
        for serial in serials:
            items.append(_build_item({**data, "quantity": 1, "serial_number": serial}, user, now))
        logger.info("Fanned out %s into %d items by serial number", payload.name, len(items))
    else:
        if serials:
            data["serial_number"] = join_serials(serials)
        items = [_build_item(data, user, now)]

    for item in items:
        for serial in split_serials(item.serial_number):
            reserved[serial] = item.name
        db.add(item)
    return items


def update_item(db: Session, item: InventoryItem, payload: InventoryItemUpdate, user: User) -> InventoryItem:
    changes = payload.model_dump(exclude_unset=True)

    # Mandatory columns cannot be nulled through a partial update
    for field in ("name", "category", "quantity", "min_stock", "supplier", "location"):
        if field in changes and changes[field] is None:
            changes.pop(field)

    if "serial_number" in changes:
        serials = split_serials(changes["serial_number"])
        ensure_serials_available(db, serials, exclude_item_id=item.id)
        changes["serial_number"] = join_serials(serials) if serials else None
        sync_serials(item, serials)

    warranty_changed = "warranty" in changes and changes["warranty"] != item.warranty

    for field, value in changes.items():
        setattr(item, field, value)

    if warranty_changed:
        start = item.created_at or datetime.now(timezone.utc)
        item.warranty_expiry_date = warranty_expiry(item.warranty, start)

    item.status = derive_status(item.quantity, item.min_stock)
    item.updated_by_id = user.id
    return item
