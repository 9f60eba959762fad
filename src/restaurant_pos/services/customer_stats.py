import logging
from typing import Optional

from sqlalchemy.ext.asyncio import async_sessionmaker

from restaurant_pos.crud.customer import update_customer_stats
from restaurant_pos.exceptions import POSError

logger = logging.getLogger(__name__)


async def refresh_customer_stats(session_factory: async_sessionmaker, customer_id: Optional[int]) -> bool:
    """
    Фоновый пересчёт статистики клиента после заказа.

    Ошибка не должна ломать оформление заказа: она пишется в лог, статистика
    может временно отставать. Возвращает True, если пересчёт прошёл.
    """
    if customer_id is None:
        return False
    try:
        async with session_factory() as session:
            customer = await update_customer_stats(session, customer_id)
            logger.debug(
                "Customer %s stats: %s orders, %s spent",
                customer_id, customer.total_orders, customer.total_spent,
            )
        return True
    except POSError as e:
        logger.error("Failed to refresh stats for customer %s: %s", customer_id, e.detail)
    except Exception:
        logger.exception("Failed to refresh stats for customer %s", customer_id)
    return False
