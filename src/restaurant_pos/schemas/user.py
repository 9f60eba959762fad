from pydantic import BaseModel, Field
from datetime import datetime

from restaurant_pos.models import RoleEnum


class UserCreate(BaseModel):
    username: str = Field(..., min_length=1, max_length=50)
    role: RoleEnum = RoleEnum.waiter


class UserOut(BaseModel):
    id: int
    username: str
    role: RoleEnum
    created_at: datetime

    class Config:
        from_attributes = True
