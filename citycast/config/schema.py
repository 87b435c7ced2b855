"""Pydantic v2 configuration schema with strict validation."""

from enum import StrEnum

from pydantic import BaseModel, Field


class StoreBackend(StrEnum):
    POSTGREST = "postgrest"  # Hosted record store
    SQLITE = "sqlite"        # Local file, development and tests


class StoreConfig(BaseModel):
    model_config = {"extra": "forbid"}

    backend: StoreBackend = StoreBackend.SQLITE
    url: str = ""
    api_key: str = ""
    db_path: str = "data/citycast.db"
    timeout_seconds: float = Field(default=10.0, gt=0.0)


class AggregationConfig(BaseModel):
    model_config = {"extra": "forbid"}

    forecast_days: int = Field(default=7, ge=1, le=14)
    max_concurrency: int = Field(default=8, ge=1)
    unknown_condition: str = "Unknown"


class LoggingConfig(BaseModel):
    model_config = {"extra": "forbid"}

    level: str = "INFO"


class AppConfig(BaseModel):
    model_config = {"extra": "forbid"}

    store: StoreConfig = StoreConfig()
    aggregation: AggregationConfig = AggregationConfig()
    logging: LoggingConfig = LoggingConfig()
