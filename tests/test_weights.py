from __future__ import annotations

import pytest

from fleet_planner.config import PlanningPolicy
from fleet_planner.models import OrderLine, Order, Product, TruckInventoryItem
from fleet_planner.weights import (
    calculate_order_weight,
    estimate_order_weights,
    inventory_item_weight,
    process_truck_inventory,
)

CATALOG = [
    Product(id="P13", name="13kg LPG", capacity_kg=13, tare_weight_kg=14),
    Product(id="P13-F", name="13kg full", is_variant=True, variant_name="full", parent_product_id="P13"),
    Product(id="P13-E", name="13kg empty", is_variant=True, variant_name="empty", parent_product_id="P13"),
    Product(id="P13-D", name="13kg damaged", is_variant=True, variant_name="damaged", parent_product_id="P13"),
    Product(id="P6", name="6kg LPG", capacity_kg=6.0),
    Product(id="P6-F", name="6kg full", is_variant=True, variant_name="full", parent_product_id="P6"),
    Product(id="P20", name="20kg LPG", capacity_kg=20),
    Product(id="P20-F", name="20kg full", is_variant=True, variant_name="full", parent_product_id="P20"),
    Product(id="REG", name="Regulator"),
]


def test_variant_lines_use_standard_cylinder_table():
    est = calculate_order_weight(
        [OrderLine(product_id="P13-F", quantity=2), OrderLine(product_id="P13-E", quantity=3)], CATALOG)
    assert [l.estimated_weight_kg for l in est.line_estimates] == [54, 42]
    assert est.total_weight_kg == 96
    assert est.unresolved_product_ids == []


def test_float_parent_capacity_resolves_table_key():
    est = calculate_order_weight([OrderLine(product_id="P6-F", quantity=1)], CATALOG)
    assert est.total_weight_kg == 16


def test_non_variant_uses_capacity_plus_tare():
    est = calculate_order_weight([OrderLine(product_id="P13", quantity=2)], CATALOG)
    assert est.total_weight_kg == (13 + 14) * 2


def test_non_variant_without_tare_uses_default_tare():
    est = calculate_order_weight([OrderLine(product_id="P6", quantity=1)], CATALOG)
    assert est.total_weight_kg == 16


def test_product_without_capacity_falls_back_to_13kg_class():
    est = calculate_order_weight([OrderLine(product_id="REG", quantity=4)], CATALOG)
    assert est.total_weight_kg == 27 * 4


def test_policy_overrides_fallback_weights():
    policy = PlanningPolicy(default_full_cylinder_kg=30, default_tare_weight_kg=5)
    est = calculate_order_weight(
        [OrderLine(product_id="REG", quantity=1), OrderLine(product_id="P6", quantity=1)], CATALOG, policy)
    assert est.total_weight_kg == 30 + 11


@pytest.mark.parametrize("product_id", ["P13-D", "P20-F"])
def test_unresolvable_variants_weigh_zero_and_are_reported(product_id):
    est = calculate_order_weight([OrderLine(product_id=product_id, quantity=5)], CATALOG)
    assert est.total_weight_kg == 0
    assert est.line_estimates[0].estimated_weight_kg == 0
    assert est.unresolved_product_ids == [product_id]


def test_unknown_product_is_skipped_and_reported():
    est = calculate_order_weight(
        [OrderLine(product_id="NOPE", quantity=1), OrderLine(product_id="P13-F", quantity=1)], CATALOG)
    assert est.total_weight_kg == 27
    assert [l.product_id for l in est.line_estimates] == ["P13-F"]
    assert est.unresolved_product_ids == ["NOPE"]


def test_estimate_order_weights_keys_by_order():
    orders = [
        Order(id="O1", lines=[OrderLine(product_id="P13-F", quantity=1)]),
        Order(id="O2", lines=[]),
    ]
    estimates = estimate_order_weights(orders, CATALOG)
    assert estimates["O1"].total_weight_kg == 27
    assert estimates["O1"].order_id == "O1"
    assert estimates["O2"].total_weight_kg == 0


def test_inventory_weight_prefers_explicit_weight():
    item = TruckInventoryItem(product_id="P13", qty_full=10, qty_empty=10, weight_kg=123)
    assert inventory_item_weight(item) == 123


def test_inventory_weight_defaults_without_product():
    item = TruckInventoryItem(product_id="X", qty_full=2, qty_empty=1)
    assert inventory_item_weight(item) == 2 * 27 + 14


def test_process_truck_inventory_fills_weights_from_catalog():
    items = [
        TruckInventoryItem(product_id="P13", qty_full=2, qty_empty=1),
        TruckInventoryItem(product_id="X", qty_full=1),
    ]
    processed = process_truck_inventory(items, CATALOG)
    assert processed[0].weight_kg == 2 * 27 + 14
    assert processed[0].product_name == "13kg LPG"
    assert processed[1].weight_kg == 27
    assert processed[1].product_name == "Unknown Product"
