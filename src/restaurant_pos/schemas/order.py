from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime
from decimal import Decimal

from restaurant_pos.models import OrderStatusEnum, OrderTypeEnum


class OrderItemRead(BaseModel):
    id: int
    menu_item_id: Optional[int] = None
    name: str
    quantity: int
    price: Decimal
    notes: Optional[str] = None
    line_total: Decimal

    class Config:
        from_attributes = True


class OrderRead(BaseModel):
    id: int
    order_number: str
    table_id: Optional[int] = None
    table_name: Optional[str] = None
    order_type: OrderTypeEnum
    customer_id: Optional[int] = None
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    created_by: Optional[int] = None
    status: OrderStatusEnum
    created_at: datetime
    closed_at: Optional[datetime] = None
    inventory_consumed_at: Optional[datetime] = None
    items: List[OrderItemRead] = []
    discount_percent: Decimal
    total: Decimal
    count_items: int
    next_status: Optional[OrderStatusEnum] = None

    @classmethod
    def from_orm_with_items(cls, order):
        # импорт здесь, чтобы схемы не зависели от crud при загрузке модуля
        from restaurant_pos.crud.order import next_status

        return cls(
            id=order.id,
            order_number=order.order_number,
            table_id=order.table_id,
            table_name=order.table_name,
            order_type=order.order_type,
            customer_id=order.customer_id,
            customer_name=order.customer_name,
            customer_phone=order.customer_phone,
            created_by=order.created_by,
            status=order.status,
            created_at=order.created_at,
            closed_at=order.closed_at,
            inventory_consumed_at=order.inventory_consumed_at,
            items=[OrderItemRead.model_validate(i) for i in order.items],
            discount_percent=order.discount_percent,
            total=order.total,
            count_items=sum(item.quantity for item in order.items),
            next_status=next_status(order.status),
        )

    class Config:
        from_attributes = True


class OrderItemCreate(BaseModel):
    menu_item_id: int
    quantity: int = Field(1, gt=0)
    price: Decimal = Field(..., ge=0)  # цена с экрана заказа, сохраняется как есть
    notes: Optional[str] = None


class OrderCreate(BaseModel):
    table_id: Optional[int] = None  # None -> заказ навынос
    items: List[OrderItemCreate] = []
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    customer_email: Optional[str] = None
    discount_percent: Decimal = Field(Decimal("0"), ge=0, le=100)
    created_by: Optional[int] = None


class OrderStatusUpdate(BaseModel):
    status: OrderStatusEnum

    class Config:
        extra = "forbid"
