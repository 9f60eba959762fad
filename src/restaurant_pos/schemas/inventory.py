from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, model_validator

from restaurant_pos.models import TransactionTypeEnum


class InventoryItemCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=128)
    quantity: Decimal = Field(Decimal("0"), ge=0)
    unit: str = Field(..., min_length=1, max_length=16)
    threshold: Decimal = Field(Decimal("0"), ge=0)
    cost: Decimal = Field(Decimal("0"), ge=0)


class InventoryItemUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=128)
    quantity: Optional[Decimal] = Field(None, ge=0)
    unit: Optional[str] = Field(None, min_length=1, max_length=16)
    threshold: Optional[Decimal] = Field(None, ge=0)
    cost: Optional[Decimal] = Field(None, ge=0)
    notes: Optional[str] = None  # попадает в журнал, если менялся остаток

    class Config:
        extra = "forbid"


class InventoryItemRead(BaseModel):
    id: int
    name: str
    quantity: Decimal
    unit: str
    threshold: Decimal
    cost: Decimal
    is_low_stock: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class InventoryAdjust(BaseModel):
    """Либо new_quantity (абсолютное значение), либо delta (приход/расход)."""
    transaction_type: TransactionTypeEnum
    new_quantity: Optional[Decimal] = None
    delta: Optional[Decimal] = None
    notes: Optional[str] = None
    created_by: Optional[int] = None

    @model_validator(mode="after")
    def check_one_of(self):
        if (self.new_quantity is None) == (self.delta is None):
            raise ValueError("Exactly one of new_quantity or delta must be set")
        return self


class InventoryTransactionRead(BaseModel):
    id: int
    inventory_id: int
    previous_quantity: Decimal
    new_quantity: Decimal
    transaction_type: TransactionTypeEnum
    notes: Optional[str] = None
    created_by: Optional[int] = None
    created_at: datetime

    class Config:
        from_attributes = True
