import os
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel

# Load environment variables from .env file
load_dotenv()


class Settings(BaseModel):
    admin_password: str = "changeme123"
    orders_file: str = "storage/orders.json"
    database_url: Optional[str] = None
    database_name: Optional[str] = None
    default_payment_method: str = "card"
    log_level: str = "INFO"
    port: int = 8000

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            admin_password=os.getenv("ADMIN_PASSWORD") or "changeme123",
            orders_file=os.getenv("ORDERS_FILE") or "storage/orders.json",
            database_url=os.getenv("DATABASE_URL") or None,
            database_name=os.getenv("DATABASE_NAME") or None,
            default_payment_method=os.getenv("DEFAULT_PAYMENT_METHOD") or "card",
            log_level=(os.getenv("LOG_LEVEL") or "INFO").upper(),
            port=int(os.getenv("PORT", 8000)),
        )

    @property
    def uses_mongo(self) -> bool:
        return bool(self.database_url and self.database_name)


@lru_cache
def get_settings() -> Settings:
    return Settings.from_env()
