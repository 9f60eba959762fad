import enum
from sqlalchemy import Column, Integer, String, DateTime, func, Enum
from sqlalchemy.orm import relationship
from ..db.base import Base


class RoleEnum(str, enum.Enum):
    admin = "admin"
    manager = "manager"
    waiter = "waiter"
    cashier = "cashier"


class User(Base):
    __tablename__ = "users"
    __mapper_args__ = {"eager_defaults": True}

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(50), nullable=False, unique=True, index=True)
    role = Column(Enum(RoleEnum, name="user_role"), nullable=False, default=RoleEnum.waiter)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    # заказы, оформленные сотрудником
    orders = relationship("Order", back_populates="created_by_user")
