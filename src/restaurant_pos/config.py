from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    DATABASE_URL: str
    DATABASE_ECHO: bool = False

    PROJECT_NAME: str = "Restaurant POS"
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # значения по умолчанию, пока в store_settings нет строки
    REQUIRE_CUSTOMER_DETAILS: bool = False
    RESTAURANT_NAME: str = "Restaurant"
    CURRENCY_SYMBOL: str = "$"

    # строгая проверка переходов статуса заказа
    STRICT_STATUS_TRANSITIONS: bool = False

    class Config:
        env_file = ".env"
        extra = "ignore"

settings = Settings()
