import enum
from decimal import Decimal
from sqlalchemy import Column, Integer, String, Numeric, DateTime, ForeignKey, Enum as SAEnum, func
from sqlalchemy.orm import relationship
from ..db.base import Base


class OrderStatusEnum(str, enum.Enum):
    pending = "pending"
    preparing = "preparing"
    ready = "ready"
    served = "served"
    completed = "completed"
    cancelled = "cancelled"


class OrderTypeEnum(str, enum.Enum):
    dine_in = "dine_in"
    takeout = "takeout"


TERMINAL_STATUSES = (OrderStatusEnum.completed, OrderStatusEnum.cancelled)


class Order(Base):
    __tablename__ = "orders"
    __mapper_args__ = {"eager_defaults": True}

    id = Column(Integer, primary_key=True, index=True)
    order_number = Column(String(32), nullable=False, unique=True, index=True)
    table_id = Column(Integer, ForeignKey("tables.id"), nullable=True, index=True)  # null -> навынос
    order_type = Column(SAEnum(OrderTypeEnum, name="order_type"), nullable=False, default=OrderTypeEnum.dine_in)
    customer_id = Column(Integer, ForeignKey("customers.id", ondelete="SET NULL"), nullable=True)
    customer_name = Column(String(128), nullable=True)
    customer_phone = Column(String(32), nullable=True)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    status = Column(SAEnum(OrderStatusEnum, name="order_status"), nullable=False, default=OrderStatusEnum.pending)
    # скидка хранится процентом и применяется только в счёте
    discount_percent = Column(Numeric(5, 2), nullable=False, default=Decimal("0"))
    total = Column(Numeric(10, 2), nullable=False, default=Decimal("0"))  # сумма строк, фиксируется при создании
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    closed_at = Column(DateTime(timezone=True), nullable=True)
    inventory_consumed_at = Column(DateTime(timezone=True), nullable=True)

    # связи
    items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="OrderItem.id",
    )
    table = relationship("DiningTable", back_populates="orders", lazy="selectin")
    customer = relationship("Customer", back_populates="orders")
    created_by_user = relationship("User", back_populates="orders")

    @property
    def is_active(self) -> bool:
        return self.status not in TERMINAL_STATUSES

    @property
    def table_name(self) -> str | None:
        return self.table.name if self.table else None
