from __future__ import annotations

import io
from datetime import date

import pandas as pd
import pytest
from fastapi import HTTPException

from fleet_planner.utils import canonical_rename, map_headers, to_bool, to_text
from fleet_planner.workbook import parse_planning_workbook


def workbook_bytes(**sheets) -> bytes:
    out = io.BytesIO()
    with pd.ExcelWriter(out, engine="openpyxl") as writer:
        for name, rows in sheets.items():
            pd.DataFrame(rows).to_excel(writer, sheet_name=name, index=False)
    return out.getvalue()


TRUCKS = [
    {"Truck ID": 101, "Fleet Number": "FL-1", "capacity_kg": 1000, "Status": "Active",
     "Next Maintenance Due": "2026-03-02", "Fuel Capacity Liters": 120},
    {"Truck ID": 102, "Fleet Number": "FL-2", "capacity_kg": 800, "Status": "maintenance",
     "Next Maintenance Due": None, "Fuel Capacity Liters": None},
]
PRODUCTS = [
    {"Product ID": "P13", "Name": "13kg LPG", "Capacity KG": 13, "Is Variant": "no",
     "Variant Name": None, "Parent Product ID": None},
    {"Product ID": "P13-F", "Name": "13kg full", "Capacity KG": None, "Is Variant": "yes",
     "Variant Name": "full", "Parent Product ID": "P13"},
]
ORDERS = [
    {"Order": "SO-1", "Product": "P13-F", "Qty": 4, "Estimated Weight KG": None},
    {"Order": "SO-1", "Product": "P13", "Qty": 1, "Estimated Weight KG": None},
    {"Order": "SO-2", "Product": None, "Qty": None, "Estimated Weight KG": 250},
]


def test_parse_planning_workbook():
    snapshot = parse_planning_workbook(workbook_bytes(
        Trucks=TRUCKS,
        Products=PRODUCTS,
        Orders=ORDERS,
        Allocations=[{"Truck ID": 101, "Order ID": "SO-0", "Allocation Date": "2026-03-02",
                      "Estimated Weight KG": 300, "Status": "Planned", "Stop Sequence": 1}],
    ))

    t1, t2 = snapshot.trucks
    assert t1.id == "101"
    assert t1.capacity_kg == 1000
    assert t1.status == "active"
    assert t1.next_maintenance_due == date(2026, 3, 2)
    assert t2.status == "maintenance"
    assert t2.fuel_capacity_liters is None

    assert snapshot.products[1].is_variant
    assert snapshot.products[1].parent_product_id == "P13"

    so1, so2 = snapshot.orders
    assert [(l.product_id, l.quantity) for l in so1.lines] == [("P13-F", 4), ("P13", 1)]
    assert so2.lines == []
    assert snapshot.order_weights == {"SO-2": 250}

    (alloc,) = snapshot.allocations
    assert alloc.truck_id == "101"
    assert alloc.allocation_date == date(2026, 3, 2)
    assert alloc.status == "planned"
    assert alloc.stop_sequence == 1


def test_allocations_sheet_is_optional():
    snapshot = parse_planning_workbook(workbook_bytes(Trucks=TRUCKS, Products=PRODUCTS, Orders=ORDERS))
    assert snapshot.allocations == []


def test_missing_sheet_is_rejected():
    with pytest.raises(HTTPException) as exc:
        parse_planning_workbook(workbook_bytes(Trucks=TRUCKS, Orders=ORDERS))
    assert exc.value.status_code == 400
    assert "Products" in exc.value.detail


def test_missing_column_is_rejected():
    trucks = [{"Truck ID": 1, "Status": "active"}]
    with pytest.raises(HTTPException) as exc:
        parse_planning_workbook(workbook_bytes(Trucks=trucks, Products=PRODUCTS, Orders=ORDERS))
    assert "Capacity KG" in exc.value.detail


def test_bad_status_is_a_client_error():
    trucks = [{"Truck ID": 1, "Capacity KG": 100, "Status": "scrapped"}]
    with pytest.raises(HTTPException) as exc:
        parse_planning_workbook(workbook_bytes(Trucks=trucks, Products=PRODUCTS, Orders=ORDERS))
    assert exc.value.status_code == 400


def test_not_a_workbook():
    with pytest.raises(HTTPException) as exc:
        parse_planning_workbook(b"not excel")
    assert exc.value.status_code == 400


def test_header_synonyms():
    df = pd.DataFrame(columns=["truck", "Max Weight", "qty", "status"])
    canonical_rename(df)
    assert list(df.columns) == ["Truck ID", "Capacity KG", "Quantity", "Status"]
    assert map_headers(["order no", "SKU ID"], ["Order ID", "Product ID"]) == {
        "Order ID": "order no", "Product ID": "SKU ID"}


def test_numeric_ids_lose_float_suffix():
    assert to_text(101.0) == "101"
    assert to_text(float("nan")) is None
    assert to_text("  A-1 ") == "A-1"


def test_active_column_text():
    assert to_bool("Active")
    assert to_bool(" yes ")
    assert not to_bool("inactive")
    assert to_bool(None, default=True)

    trucks = [{"Truck ID": 1, "Capacity KG": 100, "Status": "active", "Active": "Active"}]
    snapshot = parse_planning_workbook(workbook_bytes(Trucks=trucks, Products=PRODUCTS, Orders=ORDERS))
    assert snapshot.trucks[0].active
