from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field


class RecipeCreate(BaseModel):
    menu_item_id: int


class IngredientCreate(BaseModel):
    inventory_id: int
    quantity: Decimal = Field(..., gt=0)
    unit: str = Field(..., min_length=1, max_length=16)


class IngredientUpdate(BaseModel):
    quantity: Decimal = Field(..., gt=0)
    unit: str = Field(..., min_length=1, max_length=16)

    class Config:
        extra = "forbid"


class IngredientRead(BaseModel):
    id: int
    recipe_id: int
    inventory_id: int
    inventory_name: Optional[str] = None
    quantity: Decimal
    unit: str

    class Config:
        from_attributes = True


class RecipeRead(BaseModel):
    id: int
    menu_item_id: int
    created_at: datetime
    ingredients: List[IngredientRead] = []

    class Config:
        from_attributes = True
