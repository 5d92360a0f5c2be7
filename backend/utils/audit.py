from typing import Optional
from fastapi import Request
from sqlalchemy.orm import Session
from models.log import Log

def client_ip(request: Optional[Request]) -> Optional[str]:
    if request is None or request.client is None:
        return None
    return request.client.host

def write_log(db: Session, *, user_id, action, resource, status="SUCCESS", ip=None, meta=None, commit=True):
    # commit=False lets the entry ride along with the caller's unit of work
    entry = Log(user_id=user_id, action=action, resource=resource, status=status, ip=ip, meta=meta or {})
    db.add(entry)
    if commit:
        db.commit()
    return entry
