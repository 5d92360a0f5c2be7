# backend/schemas/category.py
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional


class CategoryCreate(BaseModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None


class CategoryResponse(CategoryCreate):
    id: int

    model_config = ConfigDict(from_attributes=True)
