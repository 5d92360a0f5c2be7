# backend/schemas/log.py
from datetime import datetime
from typing import Any, List, Optional

from schemas.inventory import CamelModel


class ActivityLogEntry(CamelModel):
    id: int
    user_id: Optional[int] = None
    action: str
    resource: str
    status: str
    ip: Optional[str] = None
    ts: Optional[datetime] = None
    meta: Optional[Any] = None


class ActivityLogPage(CamelModel):
    items: List[ActivityLogEntry]
    total: int
    page: int
    page_size: int
