"""
Centralised settings loader (pydantic-settings).
"""

from __future__ import annotations
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings


# ------------------------------------------------------------------ #
#  Master settings model
# ------------------------------------------------------------------ #
class _Settings(BaseSettings):
    # ─── runtime / DB ────────────────────────────────────────────────
    env_name: str = Field("local", alias="ENV_NAME")
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    database_url: str | None = Field(None, alias="DATABASE_URL")
    cloud_sql_instance: str | None = Field(None, alias="CLOUD_SQL_CONNECTION_NAME")
    db_user: str | None = Field(None, alias="DB_USER")
    db_pass: str | None = Field(None, alias="DB_PASS")
    db_name: str | None = Field(None, alias="DB_NAME")

    # ─── notifications ──────────────────────────────────────────────
    notification_webhook_url: str | None = Field(None, alias="NOTIFICATION_WEBHOOK_URL")
    notification_timeout_s: float = Field(10.0, alias="NOTIFICATION_TIMEOUT_S")

    # ─── analysis windows ───────────────────────────────────────────
    analysis_week_days: int = Field(7, alias="ANALYSIS_WEEK_DAYS", ge=1)
    chart_default_days: int = Field(7, alias="CHART_DEFAULT_DAYS", ge=1)
    chart_max_days: int = Field(90, alias="CHART_MAX_DAYS", ge=1)

    # ─── daily intervention batch ───────────────────────────────────
    batch_concurrency: int = Field(8, alias="BATCH_CONCURRENCY", ge=1)

    # allow other teammates’ env-vars without crashing
    model_config = {
        "extra": "ignore",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "populate_by_name": True,
    }


# ------------------------------------------------------------------ #
#  Cached singleton accessor
# ------------------------------------------------------------------ #
@lru_cache
def _cached() -> _Settings:  # pragma: no cover
    return _Settings()  # type: ignore[call-arg]


settings: _Settings = _cached()
