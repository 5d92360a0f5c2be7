# backend/routes/transactions.py
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from database import get_db
from models.transaction import Transaction
from models.users import User
from schemas.stock import (
    AuditLogPage,
    BranchGroup,
    BranchItem,
    MovementResult,
    PendingReplacement,
    TransactionCreate,
    TransactionResponse,
    TransferCreate,
)
from services.branches import branch_names, items_for_branch, transferred_items_by_branch
from services.movements import (
    apply_movement,
    confirm_replacement,
    list_pending_replacements,
    transactions_for_item,
)
from utils.audit import client_ip, write_log
from utils.errors import InventoryError, ResourceNotFoundError
from utils.filters import date_range, paginate
from utils.tokenJWT import get_current_user, require_superadmin

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/transactions", tags=["Transactions"])


def _run_movement(db: Session, payload: TransactionCreate, user: User, request: Request) -> dict:
    try:
        outcome = apply_movement(db, payload, user, ip=client_ip(request))
    except InventoryError as e:
        logger.info("Rejected %s movement for item %s: %s", payload.type, payload.item_id, e.message)
        write_log(db, user_id=user.id, action=f"STOCK_{(payload.type or 'unknown').upper()}",
                  resource="transactions", status="FAIL", ip=client_ip(request),
                  meta={"item_id": payload.item_id, "error": e.message})
        raise
    return {
        "transaction": outcome.transaction,
        "item": outcome.item,
        "item_deleted": outcome.item_deleted,
    }


# =========================
# MOVEMENTS
# =========================
@router.post("", response_model=MovementResult, status_code=status.HTTP_201_CREATED)
def create_transaction(
    payload: TransactionCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Record an in/out/return movement (transfer is accepted as well)."""
    return _run_movement(db, payload, current_user, request)


@router.post("/transfer", response_model=MovementResult, status_code=status.HTTP_201_CREATED)
def create_transfer(
    payload: TransferCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return _run_movement(db, payload.as_transaction(), current_user, request)


# =========================
# BRANCH VIEWS
# =========================
@router.get("/transferred-items", response_model=List[BranchGroup])
def get_transferred_items(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return transferred_items_by_branch(db)


@router.get("/branches", response_model=List[str])
def get_branches(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return branch_names(db)


@router.get("/branch/{branch_name}", response_model=List[BranchItem])
def get_items_by_branch(
    branch_name: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user),
):
    return items_for_branch(db, branch_name)


# =========================
# REPLACEMENTS
# =========================
@router.get("/pending-replacements", response_model=List[PendingReplacement])
def get_pending_replacements(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return list_pending_replacements(db)


@router.post(
    "/pending-replacements/{transaction_id}/confirm",
    response_model=TransactionResponse,
    status_code=status.HTTP_201_CREATED,
)
def confirm_pending_replacement(
    transaction_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return confirm_replacement(db, transaction_id, current_user, ip=client_ip(request))


# =========================
# AUDIT LOG (superadmin)
# =========================
@router.get("/audit-logs", response_model=AuditLogPage)
def get_audit_logs(
    type: Optional[str] = Query(None, description="in / out / return / transfer / confirmation"),
    branch: Optional[str] = Query(None),
    item_id: Optional[int] = Query(None),
    date_from: Optional[str] = Query(None, description="YYYY-MM-DD or ISO datetime"),
    date_to: Optional[str] = Query(None, description="YYYY-MM-DD or ISO datetime"),
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=500),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_superadmin),
):
    query = db.query(Transaction)
    if type:
        query = query.filter(Transaction.type == type)
    if branch:
        query = query.filter(Transaction.branch.ilike(f"%{branch}%"))
    if item_id is not None:
        query = query.filter(Transaction.item_id == item_id)

    query = date_range(query, Transaction.created_at, date_from, date_to)

    query = query.order_by(Transaction.created_at.desc(), Transaction.id.desc())
    return paginate(query, page, page_size)


@router.delete("/audit-logs/{transaction_id}")
def delete_audit_log(
    transaction_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_superadmin),
):
    entry = db.query(Transaction).filter(Transaction.id == transaction_id).first()
    if not entry:
        raise ResourceNotFoundError("Transaction not found")

    db.delete(entry)
    write_log(db, user_id=current_user.id, action="LEDGER_DELETE", resource="transactions",
              status="SUCCESS", ip=client_ip(request),
              meta={"id": transaction_id, "type": entry.type, "item_id": entry.item_id})
    return {"message": "Transaction removed"}


# =========================
# PER ITEM HISTORY
# =========================
@router.get("/{item_id}", response_model=List[TransactionResponse])
def get_transactions_by_item(
    item_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user),
):
    return transactions_for_item(db, item_id)
