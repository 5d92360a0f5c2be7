# backend/schemas/inventory.py
from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


# JSON uses camelCase (minStock, serialNumber), snake_case is accepted as well
class CamelModel(BaseModel):
    model_config = ConfigDict(
        from_attributes=True, populate_by_name=True, alias_generator=to_camel
    )


# Shared attributes for inventory items
class InventoryItemBase(CamelModel):
    name: str
    category: str = ""
    quantity: int = Field(default=0, ge=0)
    min_stock: int = Field(default=0, ge=0)
    max_stock: Optional[int] = Field(default=None, ge=0)
    price: Optional[float] = Field(default=None, ge=0)
    supplier: str = ""
    model: Optional[str] = None
    serial_number: Optional[str] = None
    warranty: Optional[str] = None
    location: str = ""
    description: Optional[str] = None


class InventoryItemCreate(InventoryItemBase):
    pass


# Several items at once (e.g. lines picked from an uploaded invoice)
class InventoryItemBulkCreate(CamelModel):
    items: List[InventoryItemCreate]


class InventoryItemUpdate(CamelModel):
    """All fields optional; omitted fields keep their stored value."""
    name: Optional[str] = None
    category: Optional[str] = None
    quantity: Optional[int] = Field(default=None, ge=0)
    min_stock: Optional[int] = Field(default=None, ge=0)
    max_stock: Optional[int] = Field(default=None, ge=0)
    price: Optional[float] = Field(default=None, ge=0)
    supplier: Optional[str] = None
    model: Optional[str] = None
    serial_number: Optional[str] = None
    warranty: Optional[str] = None
    location: Optional[str] = None
    description: Optional[str] = None


class InventoryItemResponse(InventoryItemBase):
    id: int
    status: str
    warranty_expiry_date: Optional[date] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    created_by_id: Optional[int] = None
    updated_by_id: Optional[int] = None


# One line read off an invoice by the extraction service
class ExtractedItem(CamelModel):
    name: str = ""
    category: str = ""
    quantity: int = 1
    min_stock: int = 5
    supplier: str = ""
    model: str = ""
    serial_number: str = ""
    warranty: str = ""
    location: str = ""
    description: str = ""


class ExtractionResponse(CamelModel):
    items: List[ExtractedItem]
