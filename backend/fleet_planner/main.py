from __future__ import annotations

import logging
import time
from typing import Dict, Optional

import boto3
import psycopg
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from .capacity import calculate_truck_capacity
from .config import DEFAULT_POLICY, get_settings
from .logging_conf import configure_logging
from .models import (
    CapacityInfo,
    CapacityRequest,
    LoadingValidationResult,
    OptimizationResult,
    OptimizeRequest,
    OptimizeWorkbookRequest,
    RecommendationResult,
    RecommendRequest,
    ScheduleRequest,
    ScheduleResponse,
    ValidateAllocationRequest,
    ValidateLoadingRequest,
    ValidationResult,
    WeightEstimate,
    WeightEstimateRequest,
)
from .optimizer import optimize, optimize_workbook
from .preview import generate_preview, PreviewResponse, PreviewRequest
from .schedule import calculate_fleet_utilization, generate_daily_schedule
from .scoring import recommend_trucks
from .validation import validate_truck_allocation, validate_truck_loading
from .weights import calculate_order_weight, estimate_order_weights

settings = get_settings()
configure_logging(settings.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(title="Cylinder Fleet Planner API", version="0.1.0")

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip()
                   for o in settings.cors_allowed_origins.split(",")],
    allow_origin_regex=settings.cors_allowed_origin_regex,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class Health(BaseModel):
    status: str
    env: str


@app.get("/health", response_model=Health)
def health() -> Health:
    return Health(status="ok", env=settings.app_env)


@app.get("/db/ping")
def db_ping():
    if not settings.database_url:
        raise HTTPException(
            status_code=503, detail="DATABASE_URL not configured")
    try:
        with psycopg.connect(settings.database_url, connect_timeout=5) as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT 1")
                _ = cur.fetchone()
        return {"status": "ok"}
    except Exception as e:
        logger.exception("allocation store ping failed")
        raise HTTPException(status_code=500, detail=str(e))


@app.post("/weights/estimate", response_model=Dict[str, WeightEstimate])
def weights_estimate(req: WeightEstimateRequest):
    return estimate_order_weights(req.orders, req.products, req.policy or DEFAULT_POLICY)


@app.post("/trucks/capacity", response_model=CapacityInfo)
def truck_capacity(req: CapacityRequest):
    return calculate_truck_capacity(req.truck, req.allocations, req.date, req.policy or DEFAULT_POLICY)


@app.post("/trucks/recommend", response_model=RecommendationResult)
def trucks_recommend(req: RecommendRequest):
    policy = req.policy or DEFAULT_POLICY
    weight = req.order_weight_kg
    if weight is None:
        if req.order is None:
            raise HTTPException(
                status_code=400, detail="order_weight_kg or order is required")
        weight = calculate_order_weight(
            req.order.lines, req.products, policy, order_id=req.order.id).total_weight_kg
    return recommend_trucks(weight, req.trucks, req.allocations, req.target_date, policy)


@app.post("/allocations/validate", response_model=ValidationResult)
def allocations_validate(req: ValidateAllocationRequest):
    return validate_truck_allocation(
        req.truck, req.order_weight_kg, req.allocations, req.target_date,
        req.policy or DEFAULT_POLICY, order_id=req.order_id)


@app.post("/trucks/validate-loading", response_model=LoadingValidationResult)
def trucks_validate_loading(req: ValidateLoadingRequest):
    return validate_truck_loading(req.truck, req.items, req.policy or DEFAULT_POLICY)


@app.post("/schedule/daily", response_model=ScheduleResponse)
def schedule_daily(req: ScheduleRequest):
    schedules = generate_daily_schedule(
        req.trucks, req.allocations, req.date, req.policy or DEFAULT_POLICY)
    return ScheduleResponse(schedules=schedules, fleet=calculate_fleet_utilization(schedules))


@app.post("/optimize", response_model=OptimizationResult)
def optimize_endpoint(req: OptimizeRequest):
    try:
        return optimize(req)
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("optimization failed")
        raise HTTPException(status_code=500, detail=str(e))


class PresignRequest(BaseModel):
    key_prefix: Optional[str] = "uploads/"
    filename: str
    content_type: Optional[str] = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
    expires_in_seconds: int = 600


@app.post("/upload/presign")
def presign_upload(req: PresignRequest):
    if not settings.aws_s3_bucket_uploads:
        raise HTTPException(
            status_code=503, detail="AWS_S3_BUCKET_UPLOADS not configured")

    s3 = boto3.client("s3", region_name=settings.aws_region)
    # Key format: prefix/timestamp-filename to avoid collisions
    ts = int(time.time())
    key_prefix = req.key_prefix or "uploads/"
    key = f"{key_prefix.rstrip('/')}/{ts}-{req.filename}"

    try:
        params = s3.generate_presigned_post(
            Bucket=settings.aws_s3_bucket_uploads,
            Key=key,
            Fields={"Content-Type": req.content_type},
            Conditions=[["starts-with", "$Content-Type", "application/"]],
            ExpiresIn=req.expires_in_seconds,
        )
        return {"key": key, "presigned": params}
    except Exception as e:
        logger.exception("presign failed for %s", key)
        raise HTTPException(status_code=500, detail=str(e))


@app.post("/upload/preview", response_model=PreviewResponse)
def upload_preview(req: PreviewRequest):
    try:
        return generate_preview(req)
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("preview failed for %s", req.s3_key)
        raise HTTPException(status_code=500, detail=str(e))


@app.post("/optimize/workbook", response_model=OptimizationResult)
def optimize_workbook_endpoint(req: OptimizeWorkbookRequest):
    try:
        return optimize_workbook(req)
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("workbook optimization failed for %s", req.s3_key)
        raise HTTPException(status_code=500, detail=str(e))


@app.get("/policy/defaults")
def policy_defaults():
    return DEFAULT_POLICY.model_dump()

