from decimal import Decimal
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from restaurant_pos.config import settings as app_settings
from restaurant_pos.crud.utils import commit
from restaurant_pos.models import StoreSettings
from restaurant_pos.schemas.settings import NotificationSettings, StoreSettingsRead, StoreSettingsUpdate


async def get_settings_row(db: AsyncSession) -> Optional[StoreSettings]:
    """
    Возвращает последнюю строку настроек (их должна быть одна).
    """
    result = await db.execute(select(StoreSettings).order_by(StoreSettings.id.desc()).limit(1))
    return result.scalars().first()


def _to_read(row: Optional[StoreSettings]) -> StoreSettingsRead:
    if row is None:
        return StoreSettingsRead(
            restaurant_name=app_settings.RESTAURANT_NAME,
            require_customer_details=app_settings.REQUIRE_CUSTOMER_DETAILS,
        )
    return StoreSettingsRead(
        restaurant_name=row.restaurant_name,
        receipt_footer=row.receipt_footer,
        tax_rate=row.tax_rate if row.tax_rate is not None else Decimal("0"),
        service_charge=row.service_charge if row.service_charge is not None else Decimal("0"),
        require_customer_details=bool(row.require_customer_details),
        notifications=NotificationSettings(**(row.notifications or {})),
    )


async def get_store_settings(db: AsyncSession) -> StoreSettingsRead:
    """
    Настройки заведения; если строки ещё нет - значения из конфигурации.
    """
    return _to_read(await get_settings_row(db))


async def update_store_settings(db: AsyncSession, settings_in: StoreSettingsUpdate) -> StoreSettingsRead:
    """
    Обновляет настройки, создавая строку при первом сохранении.
    """
    row = await get_settings_row(db)
    if row is None:
        row = StoreSettings(
            restaurant_name=app_settings.RESTAURANT_NAME,
            require_customer_details=app_settings.REQUIRE_CUSTOMER_DETAILS,
        )
        db.add(row)

    update_data = settings_in.model_dump(exclude_unset=True)
    for key, value in update_data.items():
        setattr(row, key, value)

    await commit(db, "save settings")
    return _to_read(row)
