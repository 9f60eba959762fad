from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field


class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=64)
    description: Optional[str] = None
    order_index: int = 0


class CategoryRead(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    order_index: int

    class Config:
        from_attributes = True


class MenuItemCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=128)
    price: Decimal = Field(..., gt=0)
    description: Optional[str] = None
    category_id: Optional[int] = None
    is_available: bool = True
    is_veg: bool = False
    image_url: Optional[str] = None
    order_index: int = 0


class MenuItemUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=128)
    price: Optional[Decimal] = Field(None, gt=0)
    description: Optional[str] = None
    category_id: Optional[int] = None
    is_available: Optional[bool] = None
    is_veg: Optional[bool] = None
    image_url: Optional[str] = None
    order_index: Optional[int] = None

    class Config:
        extra = "forbid"


class MenuItemRead(BaseModel):
    id: int
    name: str
    price: Decimal
    description: Optional[str] = None
    category_id: Optional[int] = None
    category_name: str
    is_available: bool
    is_veg: bool
    image_url: Optional[str] = None
    order_index: int
    created_at: datetime

    class Config:
        from_attributes = True
