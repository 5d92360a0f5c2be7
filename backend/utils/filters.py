# backend/utils/filters.py
from datetime import datetime
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Query


def parse_iso(value: Optional[str], end_of_day: bool = False) -> Optional[datetime]:
    """Query-string date or datetime; a bare YYYY-MM-DD upper bound covers the whole day."""
    if not value:
        return None
    if end_of_day and len(value) == 10:
        value += " 23:59:59"
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Bad datetime format: {value}")


def date_range(query: Query, column, date_from: Optional[str], date_to: Optional[str]) -> Query:
    start = parse_iso(date_from)
    end = parse_iso(date_to, end_of_day=True)
    if start:
        query = query.filter(column >= start)
    if end:
        query = query.filter(column <= end)
    return query


def paginate(query: Query, page: int, page_size: int) -> dict:
    total = query.count()
    items = query.offset((page - 1) * page_size).limit(page_size).all()
    return {"items": items, "total": total, "page": page, "page_size": page_size}
