from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from box_office.platform.constant.path import ENV_EXAMPLE_FILE, ENV_FILE


_ENV_FILE = ENV_FILE if ENV_FILE.exists() else ENV_EXAMPLE_FILE


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(_ENV_FILE),
        env_ignore_empty=True,
        extra='ignore',
    )

    PROJECT_NAME: str = 'Box Office'
    VERSION: str = '0.1.0'
    DEBUG: bool = True  # Set to False in production
    LOG_TO_FILE: bool = False

    # Database
    # DATABASE_URL wins over the POSTGRES_* parts (e.g. sqlite+aiosqlite:///./box_office.db)
    DATABASE_URL: str | None = None
    POSTGRES_SERVER: str = 'localhost'
    POSTGRES_USER: str = 'postgres'
    POSTGRES_PASSWORD: SecretStr = SecretStr('postgres')
    POSTGRES_DB: str = 'box_office'
    POSTGRES_PORT: int = 5432

    # Connection pool (ignored for SQLite)
    DB_POOL_SIZE: int = 10
    DB_POOL_MAX_OVERFLOW: int = 10
    DB_POOL_TIMEOUT: int = 30  # seconds
    DB_POOL_RECYCLE: int = 3600  # seconds
    DB_POOL_PRE_PING: bool = True

    @field_validator('DATABASE_URL', mode='before')
    @classmethod
    def normalize_async_url(cls, v: str | None) -> str | None:
        if not v:
            return None
        if v.startswith('sqlite://'):
            return v.replace('sqlite://', 'sqlite+aiosqlite://', 1)
        if v.startswith('postgresql://'):
            return v.replace('postgresql://', 'postgresql+asyncpg://', 1)
        if v.startswith('postgres://'):
            return v.replace('postgres://', 'postgresql+asyncpg://', 1)
        return v

    @property
    def DATABASE_URL_ASYNC(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        password = self.POSTGRES_PASSWORD.get_secret_value()
        return (
            f'postgresql+asyncpg://{self.POSTGRES_USER}:{password}'
            f'@{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}'
        )

    # Checkout
    DEFAULT_CURRENCY: str = 'CAD'
    TICKET_CODE_LENGTH: int = 15
    TICKET_CODE_MAX_ATTEMPTS: int = 5
    GATEWAY_TIMEOUT_SECONDS: float = 5.0

    # Mock payment gateway
    MOCK_GATEWAY_INITIAL_BALANCE_CENTS: int = 500_000
    MOCK_GATEWAY_CURRENCY: str = 'CAD'

    # Settlement sweeper
    SETTLEMENT_SWEEP_INTERVAL_SECONDS: float = 60.0
    SETTLEMENT_BATCH_SIZE: int = 100

    # Ticket listing
    TICKET_PAGE_SIZE_DEFAULT: int = 20
    TICKET_PAGE_SIZE_MAX: int = 100


settings = Settings()  # type: ignore
