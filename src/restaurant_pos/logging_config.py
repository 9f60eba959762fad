import logging

from restaurant_pos.config import settings


def setup_logging(level: str | None = None) -> None:
    """
    Настраивает корневой логгер один раз при старте приложения.
    """
    logging.basicConfig(
        level=(level or settings.LOG_LEVEL).upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    # SQL-эхо управляется DATABASE_ECHO, а не общим уровнем
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
