from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


BASE_DIR = Path(__file__).resolve().parents[1]


class Settings(BaseSettings):
    # Local path or http(s) URL of the delimited dataset.
    DASHBOARD_DATA_URL: str = str(BASE_DIR / "Warehouse_and_Retail_Sales.csv")
    DASHBOARD_FETCH_TIMEOUT: float = 30.0
    DASHBOARD_TOP_SUPPLIERS: int = 4
    DASHBOARD_CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]

    # --- Firebase Authentication ---
    FIREBASE_API_KEY: Optional[str] = None
    FIREBASE_AUTH_TIMEOUT: float = 15.0

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def firebase_configured(self) -> bool:
        return bool(self.FIREBASE_API_KEY)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
