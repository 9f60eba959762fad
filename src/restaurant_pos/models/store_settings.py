from decimal import Decimal
from sqlalchemy import Column, Integer, String, Text, Numeric, Boolean, DateTime, JSON, func
from ..db.base import Base


class StoreSettings(Base):
    """Настройки заведения. В таблице одна строка."""

    __tablename__ = "store_settings"
    __mapper_args__ = {"eager_defaults": True}

    id = Column(Integer, primary_key=True, index=True)
    restaurant_name = Column(String(128), nullable=True)
    receipt_footer = Column(Text, nullable=True)
    tax_rate = Column(Numeric(5, 2), nullable=False, default=Decimal("0"))  # проценты
    service_charge = Column(Numeric(5, 2), nullable=False, default=Decimal("0"))  # проценты
    require_customer_details = Column(Boolean, nullable=False, default=False)
    notifications = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
