# utils/tokenJWT.py
from jose import jwt, JWTError
from datetime import datetime, timedelta, timezone
from typing import Optional
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from config import settings
from database import get_db
from models import users as models

bearer_scheme = HTTPBearer()

_unauthorized = dict(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Could not validate credentials",
    headers={"WWW-Authenticate": "Bearer"},
)


# Token payload: sub = account email, role = superadmin / subadmin
def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    claims = dict(data)
    lifetime = expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    claims["exp"] = datetime.now(timezone.utc) + lifetime
    return jwt.encode(claims, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def _email_from_token(token: str) -> str:
    try:
        claims = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        raise HTTPException(**_unauthorized)
    email = claims.get("sub")
    if not email:
        raise HTTPException(**_unauthorized)
    return email


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> models.User:
    email = _email_from_token(credentials.credentials)
    # The account may have been removed since the token was issued
    user = db.query(models.User).filter(models.User.email == email).first()
    if user is None:
        raise HTTPException(**_unauthorized)
    return user


def require_superadmin(current_user: models.User = Depends(get_current_user)) -> models.User:
    if not current_user.is_superadmin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Superadmin access required",
        )
    return current_user
