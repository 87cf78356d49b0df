from decimal import Decimal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env")

    APP_NAME: str = "SariSuki POS"
    SECRET_KEY: str = "change-me"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 12
    DATABASE_URL: str = "sqlite+pysqlite:///./sarisuki.db"
    STORE_ID_LENGTH: int = 8
    PASSWORD_MIN_LENGTH: int = 6
    STORE_NAME_MIN_LENGTH: int = 3
    DISPLAY_NAME_MIN_LENGTH: int = 2
    REPORT_DEFAULT_TIMEZONE: str = "UTC"
    REPORT_MAX_DATE_RANGE_DAYS: int = 366
    LOG_LEVEL: str = "INFO"
    CURRENCY_SYMBOL: str = "₱"
    PLACEHOLDER_IMAGE_URL: str = "https://placehold.co/200x200.png"
    MAX_LINE_QUANTITY: int = 9999
    MAX_PRODUCT_PRICE: Decimal = Decimal("9999999.99")


settings = Settings()
