import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError
from sqlalchemy.ext.asyncio import AsyncSession

from restaurant_pos.exceptions import ConflictError, PersistenceError

logger = logging.getLogger(__name__)


async def commit(db: AsyncSession, action: str) -> None:
    """
    Фиксирует транзакцию. Ошибки БД откатываются, пишутся в лог и
    поднимаются как ошибки предметной области.
    """
    try:
        await db.commit()
    except StaleDataError as e:
        await db.rollback()
        logger.warning("Concurrent modification while trying to %s: %s", action, e)
        raise ConflictError(
            f"The record was changed by someone else while trying to {action}. Reload and retry.",
            title="Concurrent update",
        ) from e
    except IntegrityError as e:
        await db.rollback()
        logger.warning("Integrity error while trying to %s: %s", action, e.orig)
        raise ConflictError(f"Failed to {action}: {e.orig}") from e
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error("Database error while trying to %s: %s", action, e)
        raise PersistenceError(f"Failed to {action}: {e}") from e
