from .user import User, RoleEnum
from .menu_category import MenuCategory
from .menu_item import MenuItem, UNCATEGORIZED
from .table_section import TableSection
from .dining_table import DiningTable, TableStatusEnum
from .order import Order, OrderStatusEnum, OrderTypeEnum, TERMINAL_STATUSES
from .order_item import OrderItem
from .customer import Customer
from .inventory_item import InventoryItem
from .inventory_transaction import InventoryTransaction, TransactionTypeEnum
from .recipe import Recipe, RecipeIngredient
from .store_settings import StoreSettings

__all__ = [
    "User",
    "RoleEnum",
    "MenuCategory",
    "MenuItem",
    "UNCATEGORIZED",
    "TableSection",
    "DiningTable",
    "TableStatusEnum",
    "Order",
    "OrderStatusEnum",
    "OrderTypeEnum",
    "TERMINAL_STATUSES",
    "OrderItem",
    "Customer",
    "InventoryItem",
    "InventoryTransaction",
    "TransactionTypeEnum",
    "Recipe",
    "RecipeIngredient",
    "StoreSettings",
]
