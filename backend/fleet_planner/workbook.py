from __future__ import annotations

import io
import logging
from typing import Dict, List, Optional

import boto3
import pandas as pd
from fastapi import HTTPException
from pydantic import ValidationError

from .config import get_settings
from .constants import OPTIONAL_SHEETS, REQUIRED_SHEETS
from .models import Allocation, Order, OrderLine, PlanningSnapshot, Product, Truck
from .utils import canonical_rename, normalize, to_bool, to_date, to_float, to_int, to_text

logger = logging.getLogger(__name__)


def read_workbook_bytes_from_s3(s3_key: str) -> bytes:
    settings = get_settings()
    if not settings.aws_s3_bucket_uploads:
        raise HTTPException(
            status_code=503, detail="AWS_S3_BUCKET_UPLOADS not configured")
    s3 = boto3.client("s3", region_name=settings.aws_region)
    try:
        obj = s3.get_object(Bucket=settings.aws_s3_bucket_uploads, Key=s3_key)
        return obj["Body"].read()
    except Exception as e:
        raise HTTPException(
            status_code=404, detail=f"File not found or not accessible: {e}")


def open_workbook(data: bytes) -> pd.ExcelFile:
    try:
        return pd.ExcelFile(io.BytesIO(data))
    except Exception as e:
        raise HTTPException(status_code=400, detail=f"Invalid Excel file: {e}")


def find_sheet(excel: pd.ExcelFile, name: str) -> Optional[str]:
    for sheet in excel.sheet_names:
        if normalize(str(sheet)) == normalize(name):
            return sheet
    return None


def _read_sheet(excel: pd.ExcelFile, name: str, required: bool) -> Optional[pd.DataFrame]:
    sheet = find_sheet(excel, name)
    if sheet is None:
        if required:
            raise HTTPException(status_code=400, detail=f"Missing required sheet: {name}")
        return None
    df = canonical_rename(excel.parse(sheet))
    expected = REQUIRED_SHEETS.get(name) or OPTIONAL_SHEETS.get(name, set())
    missing = sorted(c for c in expected if c not in df.columns)
    if missing:
        raise HTTPException(
            status_code=400, detail=f"Sheet {name} is missing required columns: {missing}")
    # Drop fully blank rows left behind by spreadsheet editing
    return df.dropna(how="all")


def _trucks(df: pd.DataFrame) -> List[Truck]:
    trucks = []
    for _, r in df.iterrows():
        truck_id = to_text(r.get("Truck ID"))
        if truck_id is None:
            continue
        status = normalize(to_text(r.get("Status")) or "active")
        trucks.append(Truck(
            id=truck_id,
            fleet_number=to_text(r.get("Fleet Number")) or truck_id,
            license_plate=to_text(r.get("License Plate")) or "",
            capacity_kg=to_float(r.get("Capacity KG")) or 0.0,
            capacity_cylinders=to_int(r.get("Capacity Cylinders")) or 0,
            active=to_bool(r.get("Active"), default=True),
            status=status,
            next_maintenance_due=to_date(r.get("Next Maintenance Due")),
            fuel_capacity_liters=to_float(r.get("Fuel Capacity Liters")),
            avg_fuel_consumption=to_float(r.get("Avg Fuel Consumption")),
        ))
    return trucks


def _products(df: pd.DataFrame) -> List[Product]:
    products = []
    for _, r in df.iterrows():
        product_id = to_text(r.get("Product ID"))
        if product_id is None:
            continue
        products.append(Product(
            id=product_id,
            name=to_text(r.get("Name")) or "",
            capacity_kg=to_float(r.get("Capacity KG")),
            tare_weight_kg=to_float(r.get("Tare Weight KG")),
            is_variant=to_bool(r.get("Is Variant")),
            variant_name=to_text(r.get("Variant Name")),
            parent_product_id=to_text(r.get("Parent Product ID")),
        ))
    return products


def _orders(df: pd.DataFrame):
    lines: Dict[str, List[OrderLine]] = {}
    weights: Dict[str, float] = {}
    for _, r in df.iterrows():
        order_id = to_text(r.get("Order ID"))
        if order_id is None:
            continue
        order_lines = lines.setdefault(order_id, [])
        product_id = to_text(r.get("Product ID"))
        if product_id is not None:
            order_lines.append(OrderLine(product_id=product_id,
                                         quantity=to_int(r.get("Quantity")) or 0))
        weight = to_float(r.get("Estimated Weight KG"))
        if weight is not None:
            weights[order_id] = weights.get(order_id, 0.0) + weight
    orders = [Order(id=oid, lines=ls) for oid, ls in lines.items()]
    return orders, weights


def _allocations(df: pd.DataFrame) -> List[Allocation]:
    allocations = []
    for _, r in df.iterrows():
        truck_id = to_text(r.get("Truck ID"))
        order_id = to_text(r.get("Order ID"))
        on = to_date(r.get("Allocation Date"))
        if truck_id is None or order_id is None or on is None:
            continue
        allocations.append(Allocation(
            truck_id=truck_id,
            order_id=order_id,
            allocation_date=on,
            estimated_weight_kg=to_float(r.get("Estimated Weight KG")) or 0.0,
            status=normalize(to_text(r.get("Status")) or "planned"),
            stop_sequence=to_int(r.get("Stop Sequence")),
        ))
    return allocations


def parse_planning_workbook(data: bytes) -> PlanningSnapshot:
    excel = open_workbook(data)
    try:
        orders, order_weights = _orders(_read_sheet(excel, "Orders", required=True))
        allocations_df = _read_sheet(excel, "Allocations", required=False)
        snapshot = PlanningSnapshot(
            trucks=_trucks(_read_sheet(excel, "Trucks", required=True)),
            orders=orders,
            products=_products(_read_sheet(excel, "Products", required=True)),
            allocations=_allocations(allocations_df) if allocations_df is not None else [],
            order_weights=order_weights,
        )
    except (ValidationError, ValueError) as e:
        raise HTTPException(status_code=400, detail=f"Invalid planning workbook: {e}")
    logger.debug("parsed workbook: %d trucks, %d orders, %d products, %d allocations",
                 len(snapshot.trucks), len(snapshot.orders),
                 len(snapshot.products), len(snapshot.allocations))
    return snapshot


def load_planning_workbook(s3_key: str) -> PlanningSnapshot:
    return parse_planning_workbook(read_workbook_bytes_from_s3(s3_key))
