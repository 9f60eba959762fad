from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel


class InvoiceLine(BaseModel):
    name: str
    quantity: int
    unit_price: Decimal
    line_total: Decimal
    notes: Optional[str] = None


class Invoice(BaseModel):
    order_id: int
    order_number: str
    created_at: datetime
    order_type: str
    table_name: Optional[str] = None
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    lines: List[InvoiceLine]
    subtotal: Decimal
    discount_percent: Decimal
    discount_amount: Decimal
    total: Decimal  # сумма после скидки
    tax_rate: Decimal
    tax_amount: Decimal
    service_charge_rate: Decimal
    service_charge_amount: Decimal
    grand_total: Decimal
    restaurant_name: str
    footer: Optional[str] = None
    currency_symbol: str
