from typing import Dict, Iterable, List, Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from restaurant_pos.crud.utils import commit
from restaurant_pos.exceptions import ConflictError, NotFoundError
from restaurant_pos.models import MenuCategory, MenuItem, OrderItem
from restaurant_pos.schemas.menu import CategoryCreate, MenuItemCreate, MenuItemUpdate


async def get_categories(db: AsyncSession) -> List[MenuCategory]:
    result = await db.execute(select(MenuCategory).order_by(MenuCategory.order_index, MenuCategory.name))
    return result.scalars().all()


async def create_category(db: AsyncSession, category_in: CategoryCreate) -> MenuCategory:
    existing = await db.execute(select(MenuCategory).where(MenuCategory.name == category_in.name))
    if existing.scalars().first():
        raise ConflictError(f"Category '{category_in.name}' already exists")

    category = MenuCategory(**category_in.model_dump())
    db.add(category)
    await commit(db, "create category")
    return category


async def _check_category(db: AsyncSession, category_id: Optional[int]) -> None:
    if category_id is not None and not await db.get(MenuCategory, category_id):
        raise NotFoundError(f"Category with id={category_id} not found")


async def get_menu_items(
    db: AsyncSession,
    category_id: Optional[int] = None,
    available_only: bool = False,
) -> List[MenuItem]:
    """
    Возвращает позиции меню с фильтрацией по категории и доступности.
    """
    stmt = select(MenuItem).order_by(MenuItem.order_index, MenuItem.name)
    if category_id is not None:
        stmt = stmt.where(MenuItem.category_id == category_id)
    if available_only:
        stmt = stmt.where(MenuItem.is_available.is_(True))

    result = await db.execute(stmt)
    return result.scalars().all()


async def get_menu_item_by_id(db: AsyncSession, menu_item_id: int) -> MenuItem:
    stmt = select(MenuItem).where(MenuItem.id == menu_item_id).execution_options(populate_existing=True)
    item = (await db.execute(stmt)).scalars().first()
    if not item:
        raise NotFoundError(f"Menu item with id={menu_item_id} not found")
    return item


async def get_menu_items_by_ids(db: AsyncSession, ids: Iterable[int]) -> Dict[int, MenuItem]:
    result = await db.execute(select(MenuItem).where(MenuItem.id.in_(set(ids))))
    return {item.id: item for item in result.scalars().all()}


async def create_menu_item(db: AsyncSession, item_in: MenuItemCreate) -> MenuItem:
    await _check_category(db, item_in.category_id)

    item = MenuItem(**item_in.model_dump())
    db.add(item)
    await commit(db, "create menu item")
    return await get_menu_item_by_id(db, item.id)


async def update_menu_item(db: AsyncSession, menu_item_id: int, item_in: MenuItemUpdate) -> MenuItem:
    """
    Частичное обновление позиции меню.
    Цена в уже оформленных заказах не меняется: там хранится снимок.
    """
    item = await get_menu_item_by_id(db, menu_item_id)
    update_data = item_in.model_dump(exclude_unset=True)

    if "category_id" in update_data:
        await _check_category(db, update_data["category_id"])

    for key, value in update_data.items():
        setattr(item, key, value)

    await commit(db, "update menu item")
    return await get_menu_item_by_id(db, item.id)


async def delete_menu_item(db: AsyncSession, menu_item_id: int) -> bool:
    """
    Удаляет позицию меню. Строки старых заказов остаются со своим снимком
    названия и цены, ссылка на позицию обнуляется.
    """
    item = await db.get(MenuItem, menu_item_id)
    if not item:
        return False
    await db.execute(
        update(OrderItem).where(OrderItem.menu_item_id == menu_item_id).values(menu_item_id=None)
    )
    await db.delete(item)
    await commit(db, "delete menu item")
    return True
