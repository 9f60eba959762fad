import enum
from sqlalchemy import Column, Integer, Numeric, Text, DateTime, ForeignKey, Enum as SAEnum, func
from sqlalchemy.orm import relationship
from ..db.base import Base


class TransactionTypeEnum(str, enum.Enum):
    restock = "restock"
    usage = "usage"
    adjustment = "adjustment"


class InventoryTransaction(Base):
    """Журнал изменений остатков. Только вставка."""

    __tablename__ = "inventory_transactions"
    __mapper_args__ = {"eager_defaults": True}

    id = Column(Integer, primary_key=True, index=True)
    inventory_id = Column(Integer, ForeignKey("inventory.id", ondelete="CASCADE"), nullable=False, index=True)
    previous_quantity = Column(Numeric(12, 3), nullable=False)
    new_quantity = Column(Numeric(12, 3), nullable=False)
    transaction_type = Column(SAEnum(TransactionTypeEnum, name="inventory_transaction_type"), nullable=False)
    notes = Column(Text, nullable=True)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    inventory_item = relationship("InventoryItem", back_populates="transactions")
