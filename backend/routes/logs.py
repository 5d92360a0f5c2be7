# backend/routes/logs.py
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from database import get_db
from models.log import Log
from models.users import User
from schemas.log import ActivityLogPage
from utils.filters import date_range, paginate
from utils.tokenJWT import require_superadmin

router = APIRouter(prefix="/logs", tags=["Logs"])


# Activity log: logins, item edits, movements, both successful and rejected
@router.get("", response_model=ActivityLogPage)
def list_activity(
    action: Optional[str] = Query(None, description="e.g. ITEM_CREATE, STOCK_TRANSFER"),
    resource: Optional[str] = Query(None, description="inventory / transactions / categories / auth"),
    outcome: Optional[str] = Query(None, alias="status", description="SUCCESS / FAIL"),
    user_id: Optional[int] = Query(None),
    date_from: Optional[str] = Query(None, description="YYYY-MM-DD or ISO datetime"),
    date_to: Optional[str] = Query(None, description="YYYY-MM-DD or ISO datetime"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_superadmin),
):
    query = db.query(Log)
    if action:
        query = query.filter(Log.action.ilike(f"%{action}%"))
    if resource:
        query = query.filter(Log.resource.ilike(f"%{resource}%"))
    if outcome:
        query = query.filter(Log.status == outcome.upper())
    if user_id is not None:
        query = query.filter(Log.user_id == user_id)
    query = date_range(query, Log.ts, date_from, date_to)

    return paginate(query.order_by(Log.ts.desc(), Log.id.desc()), page, page_size)
