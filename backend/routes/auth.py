# backend/routes/auth.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status, Request
from sqlalchemy import func
from sqlalchemy.orm import Session

from database import get_db
from models import users as models
from schemas import user as schemas
from utils.audit import client_ip, write_log
from utils.hashing import get_password_hash, verify_password
from utils.tokenJWT import create_access_token, get_current_user, require_superadmin

router = APIRouter(tags=["Auth"])


def _create_user(db: Session, payload: schemas.UserCreate, role: str) -> models.User:
    normalized_email = payload.email.strip().lower()
    exists = db.query(models.User).filter(func.lower(models.User.email) == normalized_email).first()
    if exists:
        raise HTTPException(status_code=400, detail="Email already registered")

    user = models.User(
        email=normalized_email,
        password_hash=get_password_hash(payload.password),
        role=role,
        first_name=payload.first_name,
        last_name=payload.last_name,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


# Bootstrap: the first account becomes the superadmin, later accounts are sub-admins created by them
@router.post("/register", response_model=schemas.UserResponse, status_code=status.HTTP_201_CREATED)
def register(payload: schemas.UserCreate, request: Request, db: Session = Depends(get_db)):
    if db.query(models.User).count() > 0:
        write_log(db, user_id=None, action="REGISTER", resource="auth", status="FAIL",
                  ip=client_ip(request), meta={"email": payload.email, "reason": "Registration closed"})
        raise HTTPException(status_code=403, detail="Registration is closed, ask a superadmin for an account")

    user = _create_user(db, payload, models.ROLE_SUPERADMIN)
    write_log(db, user_id=user.id, action="REGISTER", resource="auth", status="SUCCESS",
              ip=client_ip(request), meta={"email": user.email})
    return user


# Authenticate user and issue JWT token
@router.post("/login", response_model=schemas.Token)
def login(payload: schemas.UserLogin, request: Request, db: Session = Depends(get_db)):
    db_user = db.query(models.User).filter(models.User.email == payload.email.strip().lower()).first()

    if not db_user or not verify_password(payload.password, db_user.password_hash):
        write_log(db, user_id=(db_user.id if db_user else None), action="LOGIN", resource="auth",
                  status="FAIL", ip=client_ip(request), meta={"email": payload.email})
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    access_token = create_access_token(data={"sub": db_user.email, "role": db_user.role})

    write_log(db, user_id=db_user.id, action="LOGIN", resource="auth",
              status="SUCCESS", ip=client_ip(request), meta={"email": db_user.email})
    return {"access_token": access_token, "token_type": "bearer"}


@router.get("/me", response_model=schemas.UserResponse)
def me(current_user: models.User = Depends(get_current_user)):
    return current_user


# =========================
# SUB-ADMINS (superadmin only)
# =========================
@router.post("/subadmins", response_model=schemas.UserResponse, status_code=status.HTTP_201_CREATED)
def add_subadmin(
    payload: schemas.UserCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(require_superadmin),
):
    user = _create_user(db, payload, models.ROLE_SUBADMIN)
    write_log(db, user_id=current_user.id, action="SUBADMIN_CREATE", resource="auth", status="SUCCESS",
              ip=client_ip(request), meta={"id": user.id, "email": user.email})
    return user


@router.get("/subadmins", response_model=List[schemas.UserResponse])
def list_subadmins(db: Session = Depends(get_db), current_user: models.User = Depends(require_superadmin)):
    return (
        db.query(models.User)
        .filter(models.User.role == models.ROLE_SUBADMIN)
        .order_by(models.User.id.asc())
        .all()
    )


@router.delete("/subadmins/{user_id}")
def delete_subadmin(
    user_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(require_superadmin),
):
    user = db.query(models.User).filter(
        models.User.id == user_id, models.User.role == models.ROLE_SUBADMIN
    ).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Sub-admin not found")

    email = user.email
    db.delete(user)
    db.commit()
    write_log(db, user_id=current_user.id, action="SUBADMIN_DELETE", resource="auth", status="SUCCESS",
              ip=client_ip(request), meta={"id": user_id, "email": email})
    return {"message": f"Sub-admin {email} has been deleted"}
