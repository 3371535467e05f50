import os
from dotenv import load_dotenv

load_dotenv()


class Settings:
    # Database
    DATABASE_CONNECTION_STRING: str = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./storefront.db")
    DB_POOL_SIZE: int = int(os.getenv("DB_POOL_SIZE", "5"))
    DB_MAX_OVERFLOW: int = int(os.getenv("DB_MAX_OVERFLOW", "10"))
    DB_POOL_TIMEOUT: float = float(os.getenv("DB_POOL_TIMEOUT", "5"))
    SQL_ECHO: bool = os.getenv("SQL_ECHO", "false").lower() in ("1", "true", "yes")

    # Checkout
    CHECKOUT_TIMEOUT_SECONDS: float = float(os.getenv("CHECKOUT_TIMEOUT_SECONDS", "10"))

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    @property
    def DATABASE_URL(self) -> str:
        """Async URL for the application"""
        return self.DATABASE_CONNECTION_STRING.replace("postgres://", "postgresql+asyncpg://")

    @property
    def SYNC_DATABASE_URL(self) -> str:
        """Sync URL for Alembic"""
        return (
            self.DATABASE_URL
            .replace("postgresql+asyncpg://", "postgresql://")
            .replace("sqlite+aiosqlite://", "sqlite://")
        )


settings = Settings()
