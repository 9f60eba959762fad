from sqlalchemy import Column, Integer, String, Text, Numeric, Boolean, DateTime, ForeignKey, func
from sqlalchemy.orm import relationship
from ..db.base import Base

UNCATEGORIZED = "Uncategorized"


class MenuItem(Base):
    __tablename__ = "menu_items"
    __mapper_args__ = {"eager_defaults": True}

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(128), nullable=False)
    description = Column(Text, nullable=True)
    category_id = Column(Integer, ForeignKey("menu_categories.id", ondelete="SET NULL"), nullable=True)
    price = Column(Numeric(10, 2), nullable=False)  # текущая цена в каталоге
    is_available = Column(Boolean, default=True, nullable=False)
    is_veg = Column(Boolean, default=False, nullable=False)
    image_url = Column(String(512), nullable=True)
    order_index = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    # связи
    category = relationship("MenuCategory", back_populates="items", lazy="selectin")
    order_items = relationship("OrderItem", back_populates="menu_item", passive_deletes=True)
    recipe = relationship(
        "Recipe", back_populates="menu_item", uselist=False, cascade="all, delete-orphan", lazy="selectin"
    )

    @property
    def category_name(self) -> str:
        return self.category.name if self.category else UNCATEGORIZED
