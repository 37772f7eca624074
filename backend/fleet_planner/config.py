from __future__ import annotations

import os
from functools import lru_cache
from pydantic import BaseModel, Field
from dotenv import load_dotenv

# Load .env for local development
load_dotenv()


class Settings(BaseModel):
    app_env: str = os.getenv("APP_ENV", "local")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    cors_allowed_origins: str = os.getenv("CORS_ALLOWED_ORIGINS", "*")
    # Optional regex to allow wildcard subdomains (e.g., *.vercel.app)
    cors_allowed_origin_regex: str | None = os.getenv("CORS_ALLOWED_ORIGIN_REGEX")

    # AWS / S3 (planning workbooks)
    aws_region: str = os.getenv("AWS_REGION", "us-east-1")
    aws_s3_bucket_uploads: str | None = os.getenv("AWS_S3_BUCKET_UPLOADS")

    # Allocation store (Postgres)
    database_url: str | None = os.getenv("DATABASE_URL")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


class PlanningPolicy(BaseModel):
    """Business thresholds used by scoring, validation and scheduling."""

    # Scoring
    target_utilization_pct: float = Field(75.0, gt=0, le=100)
    fit_ceiling_pct: float = Field(85.0, gt=0, le=100)
    over_ceiling_score: float = Field(20.0, ge=0)
    stop_bonus_base: int = Field(10, ge=0)

    # Validation warnings
    high_utilization_pct: float = Field(90.0, gt=0, le=100)
    many_orders_threshold: int = Field(15, ge=1)

    # Fuel estimate
    km_per_stop: float = Field(25.0, ge=0)
    default_fuel_consumption_l_per_100km: float = Field(12.0, gt=0)
    fuel_reserve_ratio: float = Field(0.8, gt=0, le=1.0)

    # Batch optimizer
    confidence_score: float = Field(85.0, ge=0, le=100)

    # Weight fallbacks (kg)
    default_tare_weight_kg: float = Field(10.0, ge=0)
    default_full_cylinder_kg: float = Field(27.0, ge=0)
    default_empty_cylinder_kg: float = Field(14.0, ge=0)
    kg_per_cylinder_slot: float = Field(27.0, gt=0)
    avg_kg_per_cylinder: float = Field(20.0, gt=0)


DEFAULT_POLICY = PlanningPolicy()
