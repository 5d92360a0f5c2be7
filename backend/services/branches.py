# backend/services/branches.py
from collections import OrderedDict
from typing import Dict, List, Optional

from sqlalchemy import case, func
from sqlalchemy.orm import Session

from models.inventory import InventoryItem
from models.transaction import Transaction, TransactionType

# Movements that put stock at a branch (+) or bring it back (-)
INBOUND_TO_BRANCH = (TransactionType.TRANSFER.value, TransactionType.OUT.value)
NET_TYPES = INBOUND_TO_BRANCH + (TransactionType.RETURN.value,)


def _net_groups(db: Session, branch: Optional[str] = None) -> List[Dict]:
    """Net quantity per (branch, item, tracking id), positive groups only.

    Each group carries the metadata of its most recent entry (highest id) and the
    live item's name/category when the item still exists, the ledger snapshot
    otherwise.
    """
    signed = case(
        (Transaction.type == TransactionType.RETURN.value, -Transaction.quantity),
        else_=Transaction.quantity,
    )
    net = func.sum(signed)

    query = (
        db.query(
            Transaction.branch,
            Transaction.item_id,
            Transaction.item_tracking_id,
            net.label("net_quantity"),
            func.max(Transaction.id).label("latest_id"),
        )
        .filter(Transaction.type.in_(NET_TYPES), Transaction.branch.isnot(None))
    )
    if branch is not None:
        query = query.filter(Transaction.branch == branch)

    rows = (
        query.group_by(Transaction.branch, Transaction.item_id, Transaction.item_tracking_id)
        .having(net > 0)
        .all()
    )
    if not rows:
        return []

    latest = {
        tx.id: tx
        for tx in db.query(Transaction).filter(Transaction.id.in_([r.latest_id for r in rows])).all()
    }
    live = {
        item.id: item
        for item in db.query(InventoryItem).filter(InventoryItem.id.in_({r.item_id for r in rows})).all()
    }

    groups = []
    for row in rows:
        tx = latest[row.latest_id]
        item = live.get(row.item_id)
        groups.append({
            "branch": row.branch,
            "item_id": row.item_id,
            "name": item.name if item else tx.item_name,
            "category": item.category if item else tx.item_category,
            "item_tracking_id": row.item_tracking_id,
            "net_quantity": int(row.net_quantity),
            "asset_number": tx.asset_number,
            "model": tx.model,
            "serial_number": tx.serial_number,
            "reason": tx.reason,
            "last_movement_at": tx.created_at,
        })

    groups.sort(key=lambda g: (g["branch"], (g["name"] or "").lower(), g["item_tracking_id"] or "", g["item_id"]))
    return groups


def transferred_items_by_branch(db: Session) -> List[Dict]:
    """Everything currently sitting at branches, grouped per branch."""
    by_branch: "OrderedDict[str, List[Dict]]" = OrderedDict()
    for group in _net_groups(db):
        branch = group.pop("branch")
        by_branch.setdefault(branch, []).append(group)
    return [{"branch": name, "items": items} for name, items in by_branch.items()]


def items_for_branch(db: Session, branch: str) -> List[Dict]:
    groups = _net_groups(db, branch=branch)
    for group in groups:
        group.pop("branch")
    return groups


def branch_names(db: Session) -> List[str]:
    # Legacy list: branches that ever received an "out" movement
    rows = (
        db.query(Transaction.branch)
        .filter(Transaction.type == TransactionType.OUT.value, Transaction.branch.isnot(None))
        .distinct()
        .order_by(Transaction.branch.asc())
        .all()
    )
    return [r[0] for r in rows]
