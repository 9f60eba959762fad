from decimal import Decimal
from sqlalchemy import Column, Integer, String, Numeric, DateTime, func
from sqlalchemy.orm import relationship
from ..db.base import Base


class InventoryItem(Base):
    __tablename__ = "inventory"
    __mapper_args__ = {"eager_defaults": True}

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(128), nullable=False)
    quantity = Column(Numeric(12, 3), nullable=False, default=Decimal("0"))
    unit = Column(String(16), nullable=False)
    threshold = Column(Numeric(12, 3), nullable=False, default=Decimal("0"))  # порог дозаказа
    cost = Column(Numeric(10, 2), nullable=False, default=Decimal("0"))
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    transactions = relationship(
        "InventoryTransaction", back_populates="inventory_item", order_by="InventoryTransaction.id.desc()"
    )

    @property
    def is_low_stock(self) -> bool:
        return self.quantity <= self.threshold
