# backend/routes/categories.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from database import get_db
from models.category import Category
from models.users import User
from schemas.category import CategoryCreate, CategoryResponse
from utils.audit import client_ip, write_log
from utils.errors import ResourceNotFoundError
from utils.tokenJWT import get_current_user

router = APIRouter(prefix="/categories", tags=["Categories"])


@router.get("", response_model=List[CategoryResponse])
def list_categories(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return db.query(Category).order_by(Category.name.asc()).all()


@router.post("", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
def create_category(
    payload: CategoryCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    name = payload.name.strip()
    if not name:
        raise HTTPException(status_code=400, detail="Category name is required")

    exists = db.query(Category).filter(func.lower(Category.name) == name.lower()).first()
    if exists:
        raise HTTPException(status_code=400, detail=f"Category '{exists.name}' already exists")

    category = Category(name=name, description=payload.description)
    db.add(category)
    db.commit()
    db.refresh(category)

    write_log(db, user_id=current_user.id, action="CATEGORY_CREATE", resource="categories",
              status="SUCCESS", ip=client_ip(request), meta={"id": category.id, "name": category.name})
    return category


@router.delete("/{category_id}")
def delete_category(
    category_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    category = db.query(Category).filter(Category.id == category_id).first()
    if not category:
        raise ResourceNotFoundError("Category not found")

    # Items keep the name string; they simply stop matching a known category
    db.delete(category)
    db.commit()
    write_log(db, user_id=current_user.id, action="CATEGORY_DELETE", resource="categories",
              status="SUCCESS", ip=client_ip(request), meta={"id": category_id})
    return {"message": "Category removed"}
