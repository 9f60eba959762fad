from sqlalchemy import Column, Integer, String, Text
from sqlalchemy.orm import relationship
from ..db.base import Base


class MenuCategory(Base):
    __tablename__ = "menu_categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(64), nullable=False, unique=True)
    description = Column(Text, nullable=True)
    order_index = Column(Integer, nullable=False, default=0)

    items = relationship("MenuItem", back_populates="category")
