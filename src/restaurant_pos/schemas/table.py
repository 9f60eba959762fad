from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from restaurant_pos.models import TableStatusEnum


class TableRead(BaseModel):
    id: int
    name: str
    capacity: int
    section_id: int
    section_name: Optional[str] = None
    status: TableStatusEnum
    position_x: float
    position_y: float

    class Config:
        from_attributes = True


class TableView(TableRead):
    """Стол с вычисленной занятостью. Поля вычисляются при чтении и не сохраняются."""
    effective_status: TableStatusEnum
    active_order_id: Optional[int] = None


class TableCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=64)
    section_id: int
    capacity: int = Field(4, ge=1)
    position_x: float = 0
    position_y: float = 0


class TableStatusUpdate(BaseModel):
    status: TableStatusEnum
    confirm: bool = False

    class Config:
        extra = "forbid"


class TablePositionUpdate(BaseModel):
    position_x: float
    position_y: float

    class Config:
        extra = "forbid"


class SectionCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=64)
    order_index: int = 0


class SectionRead(BaseModel):
    id: int
    name: str
    order_index: int
    created_at: datetime

    class Config:
        from_attributes = True


class SectionWithTables(SectionRead):
    tables: List[TableView] = []


class TableStatusResult(BaseModel):
    table: TableView
    completed_order_id: Optional[int] = None


class SectionUpdate(BaseModel):
    name: str = Field(..., min_length=1, max_length=64)

    class Config:
        extra = "forbid"
