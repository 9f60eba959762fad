from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field


class NotificationSettings(BaseModel):
    new_order: bool = True
    low_inventory: bool = True
    daily_summary: bool = False


class StoreSettingsRead(BaseModel):
    restaurant_name: Optional[str] = None
    receipt_footer: Optional[str] = None
    tax_rate: Decimal = Decimal("0")
    service_charge: Decimal = Decimal("0")
    require_customer_details: bool = False
    notifications: NotificationSettings = NotificationSettings()

    class Config:
        from_attributes = True


class StoreSettingsUpdate(BaseModel):
    restaurant_name: Optional[str] = None
    receipt_footer: Optional[str] = None
    tax_rate: Optional[Decimal] = Field(None, ge=0, le=100)
    service_charge: Optional[Decimal] = Field(None, ge=0, le=100)
    require_customer_details: Optional[bool] = None
    notifications: Optional[NotificationSettings] = None

    class Config:
        extra = "forbid"
