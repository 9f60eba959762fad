from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from restaurant_pos.crud.recipe import (
    add_ingredient,
    get_or_create_recipe,
    get_recipe_by_menu_item,
    get_recipes,
    remove_ingredient,
    update_ingredient,
)
from restaurant_pos.db.deps import get_async_session
from restaurant_pos.schemas.recipe import IngredientCreate, IngredientUpdate, RecipeCreate, RecipeRead


router = APIRouter(prefix="/recipes", tags=["recipes"])


@router.get("/", response_model=List[RecipeRead])
async def list_recipes(db: AsyncSession = Depends(get_async_session)):
    return await get_recipes(db)


@router.get("/menu-item/{menu_item_id}", response_model=RecipeRead)
async def get_recipe_for_menu_item(menu_item_id: int, db: AsyncSession = Depends(get_async_session)):
    recipe = await get_recipe_by_menu_item(db, menu_item_id)
    if not recipe:
        raise HTTPException(status_code=404, detail="Recipe not found")
    return recipe


@router.post("/", response_model=RecipeRead)
async def create_recipe_endpoint(recipe_in: RecipeCreate, db: AsyncSession = Depends(get_async_session)):
    """
    Возвращает рецепт позиции меню, создавая его при необходимости.
    """
    return await get_or_create_recipe(db, recipe_in.menu_item_id)


@router.post("/{recipe_id}/ingredients", response_model=RecipeRead, status_code=201)
async def add_ingredient_endpoint(
    recipe_id: int,
    ingredient_in: IngredientCreate,
    db: AsyncSession = Depends(get_async_session),
):
    return await add_ingredient(db, recipe_id, ingredient_in)


@router.patch("/ingredients/{ingredient_id}", response_model=RecipeRead)
async def update_ingredient_endpoint(
    ingredient_id: int,
    ingredient_in: IngredientUpdate,
    db: AsyncSession = Depends(get_async_session),
):
    return await update_ingredient(db, ingredient_id, ingredient_in)


@router.delete("/ingredients/{ingredient_id}", status_code=204)
async def remove_ingredient_endpoint(ingredient_id: int, db: AsyncSession = Depends(get_async_session)):
    removed = await remove_ingredient(db, ingredient_id)
    if not removed:
        raise HTTPException(status_code=404, detail="Ingredient not found")
