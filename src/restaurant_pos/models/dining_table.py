import enum
from sqlalchemy import Column, Integer, String, Float, DateTime, ForeignKey, Enum as SAEnum, func
from sqlalchemy.orm import relationship
from ..db.base import Base


class TableStatusEnum(str, enum.Enum):
    available = "available"
    occupied = "occupied"
    reserved = "reserved"


class DiningTable(Base):
    __tablename__ = "tables"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(64), nullable=False)
    capacity = Column(Integer, nullable=False, default=4)
    section_id = Column(Integer, ForeignKey("table_sections.id"), nullable=False)
    status = Column(
        SAEnum(TableStatusEnum, name="table_status"), nullable=False, default=TableStatusEnum.available
    )
    position_x = Column(Float, nullable=False, default=0)
    position_y = Column(Float, nullable=False, default=0)
    # счётчик версий: устаревшее обновление статуса даёт StaleDataError
    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    # название секции берётся через связь, в строке стола не дублируется
    section = relationship("TableSection", back_populates="tables", lazy="selectin")
    orders = relationship("Order", back_populates="table")

    __mapper_args__ = {"version_id_col": version, "eager_defaults": True}

    @property
    def section_name(self) -> str | None:
        return self.section.name if self.section else None
