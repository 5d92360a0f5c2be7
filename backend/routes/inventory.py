# backend/routes/inventory.py
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Query, Request, UploadFile, status
from sqlalchemy import or_
from sqlalchemy.orm import Session

from database import get_db
from models.category import Category
from models.inventory import InventoryItem
from models.users import User
from schemas.inventory import (
    ExtractionResponse,
    InventoryItemBulkCreate,
    InventoryItemCreate,
    InventoryItemResponse,
    InventoryItemUpdate,
)
from services.items import create_items, get_item_or_404, update_item
from services.unit_of_work import unit_of_work
from utils.audit import client_ip, write_log
from utils.errors import InventoryError
from utils.gemini import GeminiExtractor, get_extractor
from utils.tokenJWT import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/inventory", tags=["Inventory"])


# =========================
# LIST / DETAIL
# =========================
@router.get("", response_model=List[InventoryItemResponse])
def list_items(
    q: Optional[str] = Query(None, description="Search name, model or serial number"),
    category: Optional[str] = Query(None),
    status_filter: Optional[str] = Query(None, alias="status"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    query = db.query(InventoryItem)
    if q:
        like = f"%{q}%"
        query = query.filter(or_(
            InventoryItem.name.ilike(like),
            InventoryItem.model.ilike(like),
            InventoryItem.serial_number.ilike(like),
        ))
    if category:
        query = query.filter(InventoryItem.category == category)
    if status_filter:
        query = query.filter(InventoryItem.status == status_filter)
    return query.order_by(InventoryItem.id.asc()).all()


@router.get("/{item_id}", response_model=InventoryItemResponse)
def get_item(
    item_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return get_item_or_404(db, item_id)


# =========================
# CREATE
# =========================
@router.post("", response_model=List[InventoryItemResponse], status_code=status.HTTP_201_CREATED)
def create_item(
    payload: InventoryItemCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Create an item. Several serials with a matching quantity give one item per serial."""
    try:
        with unit_of_work(db):
            items = create_items(db, payload, current_user)
    except InventoryError as e:
        write_log(db, user_id=current_user.id, action="ITEM_CREATE", resource="inventory",
                  status="FAIL", ip=client_ip(request), meta={"name": payload.name, "error": e.message})
        raise

    for item in items:
        db.refresh(item)
    write_log(db, user_id=current_user.id, action="ITEM_CREATE", resource="inventory",
              status="SUCCESS", ip=client_ip(request), meta={"ids": [i.id for i in items]})
    return items


@router.post("/bulk", response_model=List[InventoryItemResponse], status_code=status.HTTP_201_CREATED)
def create_items_bulk(
    payload: InventoryItemBulkCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if not payload.items:
        raise InventoryError("No items to add")

    reserved = {}
    created: List[InventoryItem] = []
    try:
        with unit_of_work(db):
            for entry in payload.items:
                created.extend(create_items(db, entry, current_user, reserved=reserved))
    except InventoryError as e:
        write_log(db, user_id=current_user.id, action="ITEM_BULK_CREATE", resource="inventory",
                  status="FAIL", ip=client_ip(request), meta={"count": len(payload.items), "error": e.message})
        raise

    for item in created:
        db.refresh(item)
    write_log(db, user_id=current_user.id, action="ITEM_BULK_CREATE", resource="inventory",
              status="SUCCESS", ip=client_ip(request), meta={"ids": [i.id for i in created]})
    return created


# =========================
# INVOICE EXTRACTION
# =========================
@router.post("/upload-invoice", response_model=ExtractionResponse)
async def upload_invoice(
    request: Request,
    invoice: UploadFile = File(...),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    extractor: GeminiExtractor = Depends(get_extractor),
):
    data = await invoice.read()
    if not data:
        raise InventoryError("No file uploaded")

    known = [c.name for c in db.query(Category).order_by(Category.name.asc()).all()]
    mime_type = invoice.content_type or "application/octet-stream"
    logger.info("Extracting invoice %s (%s, %d bytes)", invoice.filename, mime_type, len(data))

    items = await extractor.extract_structured_fields(data, mime_type, known)

    write_log(db, user_id=current_user.id, action="INVOICE_EXTRACT", resource="inventory",
              status="SUCCESS", ip=client_ip(request), meta={"file": invoice.filename, "items": len(items)})
    return {"items": items}


# =========================
# UPDATE / DELETE
# =========================
@router.put("/{item_id}", response_model=InventoryItemResponse)
def edit_item(
    item_id: int,
    payload: InventoryItemUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    item = get_item_or_404(db, item_id)
    with unit_of_work(db):
        update_item(db, item, payload, current_user)
        write_log(db, user_id=current_user.id, action="ITEM_UPDATE", resource="inventory",
                  status="SUCCESS", ip=client_ip(request), commit=False,
                  meta={"id": item_id, "fields": sorted(payload.model_dump(exclude_unset=True))})
    db.refresh(item)
    return item


@router.delete("/{item_id}")
def delete_item(
    item_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    item = get_item_or_404(db, item_id)
    name = item.name
    with unit_of_work(db):
        db.delete(item)
        write_log(db, user_id=current_user.id, action="ITEM_DELETE", resource="inventory",
                  status="SUCCESS", ip=client_ip(request), commit=False, meta={"id": item_id, "name": name})
    return {"message": "Item removed"}
