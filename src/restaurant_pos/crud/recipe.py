from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from restaurant_pos.crud.utils import commit
from restaurant_pos.exceptions import NotFoundError
from restaurant_pos.models import InventoryItem, MenuItem, Recipe, RecipeIngredient
from restaurant_pos.schemas.recipe import IngredientCreate, IngredientUpdate


async def get_recipes(db: AsyncSession) -> List[Recipe]:
    result = await db.execute(select(Recipe).order_by(Recipe.id))
    return result.scalars().all()


async def get_recipe_by_id(db: AsyncSession, recipe_id: int) -> Recipe:
    stmt = select(Recipe).where(Recipe.id == recipe_id).execution_options(populate_existing=True)
    recipe = (await db.execute(stmt)).scalars().first()
    if not recipe:
        raise NotFoundError(f"Recipe with id={recipe_id} not found")
    return recipe


async def get_recipe_by_menu_item(db: AsyncSession, menu_item_id: int) -> Optional[Recipe]:
    stmt = select(Recipe).where(Recipe.menu_item_id == menu_item_id).execution_options(populate_existing=True)
    return (await db.execute(stmt)).scalars().first()


async def get_or_create_recipe(db: AsyncSession, menu_item_id: int) -> Recipe:
    """
    У позиции меню не больше одного рецепта: существующий возвращается как есть.
    """
    if not await db.get(MenuItem, menu_item_id):
        raise NotFoundError(f"Menu item with id={menu_item_id} not found")

    recipe = await get_recipe_by_menu_item(db, menu_item_id)
    if recipe:
        return recipe

    recipe = Recipe(menu_item_id=menu_item_id)
    db.add(recipe)
    await commit(db, "create recipe")
    return await get_recipe_by_id(db, recipe.id)


async def add_ingredient(db: AsyncSession, recipe_id: int, ingredient_in: IngredientCreate) -> Recipe:
    await get_recipe_by_id(db, recipe_id)
    if not await db.get(InventoryItem, ingredient_in.inventory_id):
        raise NotFoundError(f"Inventory item with id={ingredient_in.inventory_id} not found")

    db.add(RecipeIngredient(recipe_id=recipe_id, **ingredient_in.model_dump()))
    await commit(db, "add ingredient")
    return await get_recipe_by_id(db, recipe_id)


async def update_ingredient(db: AsyncSession, ingredient_id: int, ingredient_in: IngredientUpdate) -> Recipe:
    ingredient = await db.get(RecipeIngredient, ingredient_id)
    if not ingredient:
        raise NotFoundError(f"Ingredient with id={ingredient_id} not found")

    ingredient.quantity = ingredient_in.quantity
    ingredient.unit = ingredient_in.unit
    await commit(db, "update ingredient")
    return await get_recipe_by_id(db, ingredient.recipe_id)


async def remove_ingredient(db: AsyncSession, ingredient_id: int) -> bool:
    ingredient = await db.get(RecipeIngredient, ingredient_id)
    if not ingredient:
        return False
    await db.delete(ingredient)
    await commit(db, "remove ingredient")
    return True
