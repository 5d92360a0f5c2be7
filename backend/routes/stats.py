# backend/routes/stats.py
from datetime import datetime, timezone
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func
from sqlalchemy.orm import Session

from database import get_db
from models.category import Category
from models.inventory import InventoryItem, StockStatus
from models.users import User
from schemas.inventory import CamelModel
from utils.tokenJWT import get_current_user

router = APIRouter(prefix="/stats", tags=["Stats"])

MONTHS = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]

# === Response Schemas ===

class DashboardSummary(CamelModel):
    total_items: int
    low_stock_items: int
    out_of_stock_items: int
    categories: int


class CategorySpending(CamelModel):
    category: str
    monthly: Dict[str, float]
    total: float


class SpendingReport(CamelModel):
    year: int
    available_years: List[int]
    months: List[str]
    categories: List[CategorySpending]
    total: float


# === Endpoint 1: Dashboard Summary ===

@router.get("/summary", response_model=DashboardSummary)
def get_dashboard_summary(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    counts = dict(
        db.query(InventoryItem.status, func.count(InventoryItem.id))
        .group_by(InventoryItem.status)
        .all()
    )
    return DashboardSummary(
        total_items=sum(counts.values()),
        low_stock_items=counts.get(StockStatus.LOW_STOCK.value, 0),
        out_of_stock_items=counts.get(StockStatus.OUT_OF_STOCK.value, 0),
        categories=db.query(Category).count(),
    )


# === Endpoint 2: Spending per category and month ===

@router.get("/spending", response_model=SpendingReport)
def get_spending(
    year: Optional[int] = Query(None, ge=1900, le=9999),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """price * quantity of the items added in `year`, bucketed by category and month."""
    year = year or datetime.now(timezone.utc).year

    priced = (
        db.query(InventoryItem)
        .filter(InventoryItem.created_at.isnot(None))
        .all()
    )
    available_years = sorted({i.created_at.year for i in priced}, reverse=True)

    # Every known category shows up, even with nothing spent
    spending: Dict[str, Dict[str, float]] = {
        c.name: {m: 0.0 for m in MONTHS} for c in db.query(Category).all()
    }
    for item in priced:
        if not item.price or item.created_at.year != year:
            continue
        category = item.category or "Uncategorized"
        month = MONTHS[item.created_at.month - 1]
        bucket = spending.setdefault(category, {m: 0.0 for m in MONTHS})
        bucket[month] += item.price * (item.quantity or 1)

    rows = [
        CategorySpending(category=name, monthly=months, total=sum(months.values()))
        for name, months in spending.items()
    ]
    rows = sorted((r for r in rows if r.total > 0), key=lambda r: (-r.total, r.category))

    return SpendingReport(
        year=year,
        available_years=available_years,
        months=MONTHS,
        categories=rows,
        total=sum(r.total for r in rows),
    )
