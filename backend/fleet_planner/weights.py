from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Mapping, Optional

from .config import DEFAULT_POLICY, PlanningPolicy
from .constants import CYLINDER_WEIGHTS
from .models import (
    LineWeightEstimate,
    LoadItem,
    Order,
    OrderLine,
    Product,
    TruckInventoryItem,
    WeightEstimate,
)

logger = logging.getLogger(__name__)


def index_products(products: Iterable[Product]) -> Dict[str, Product]:
    return {p.id: p for p in products}


def _capacity_key(capacity_kg: float) -> str:
    # 13.0 -> "13kg", 6.5 -> "6.5kg"
    return f"{capacity_kg:g}kg"


def _variant_weight(product: Product, catalog: Mapping[str, Product], quantity: int) -> Optional[float]:
    """Weight of a cylinder variant line, or None when it cannot be resolved."""
    parent = catalog.get(product.parent_product_id or "")
    if parent is None or not parent.capacity_kg:
        return None
    weights = CYLINDER_WEIGHTS.get(_capacity_key(parent.capacity_kg))
    if weights is None:
        return None
    if product.variant_name == "full":
        return float(weights["full"] * quantity)
    if product.variant_name == "empty":
        return float(weights["empty"] * quantity)
    # damaged/lost and other variants carry no delivery weight
    return None


def estimate_line_weight(
    line: OrderLine,
    product: Product,
    catalog: Mapping[str, Product],
    policy: PlanningPolicy = DEFAULT_POLICY,
) -> Optional[float]:
    """Estimated weight of one order line.

    Returns None when the line is a variant whose weight cannot be resolved;
    callers count it as zero and report it as unresolved.
    """
    if product.is_variant and product.variant_name:
        return _variant_weight(product, catalog, line.quantity)
    if product.capacity_kg:
        # Non-variant products are assumed to ship full
        tare = product.tare_weight_kg or policy.default_tare_weight_kg
        return (product.capacity_kg + tare) * line.quantity
    return policy.default_full_cylinder_kg * line.quantity


def calculate_order_weight(
    lines: Iterable[OrderLine],
    products: Iterable[Product] | Mapping[str, Product],
    policy: PlanningPolicy = DEFAULT_POLICY,
    order_id: Optional[str] = None,
) -> WeightEstimate:
    catalog = products if isinstance(products, Mapping) else index_products(products)
    line_estimates: List[LineWeightEstimate] = []
    unresolved: List[str] = []
    total = 0.0

    for line in lines:
        product = catalog.get(line.product_id)
        if product is None:
            logger.debug("order %s: unknown product %s", order_id, line.product_id)
            unresolved.append(line.product_id)
            continue

        weight = estimate_line_weight(line, product, catalog, policy)
        if weight is None:
            logger.debug("order %s: no weight for variant %s (%s)",
                         order_id, product.id, product.variant_name)
            unresolved.append(line.product_id)
            weight = 0.0

        line_estimates.append(LineWeightEstimate(
            product_id=line.product_id,
            product_name=product.name,
            quantity=line.quantity,
            estimated_weight_kg=weight,
            variant_name=product.variant_name,
        ))
        total += weight

    return WeightEstimate(
        order_id=order_id,
        total_weight_kg=total,
        line_estimates=line_estimates,
        unresolved_product_ids=unresolved,
    )


def estimate_order_weights(
    orders: Iterable[Order],
    products: Iterable[Product],
    policy: PlanningPolicy = DEFAULT_POLICY,
) -> Dict[str, WeightEstimate]:
    catalog = index_products(products)
    return {
        o.id: calculate_order_weight(o.lines, catalog, policy, order_id=o.id)
        for o in orders
    }


def _catalog_item_weight(
    item: TruckInventoryItem | LoadItem,
    product: Optional[Product],
    policy: PlanningPolicy,
) -> float:
    if product is not None and product.capacity_kg and product.tare_weight_kg:
        return (item.qty_full * (product.capacity_kg + product.tare_weight_kg)
                + item.qty_empty * product.tare_weight_kg)
    return (item.qty_full * policy.default_full_cylinder_kg
            + item.qty_empty * policy.default_empty_cylinder_kg)


def inventory_item_weight(
    item: TruckInventoryItem | LoadItem,
    product: Optional[Product] = None,
    policy: PlanningPolicy = DEFAULT_POLICY,
) -> float:
    """Weight of cylinders on (or going onto) a truck; a precomputed weight_kg wins."""
    if item.weight_kg:
        return item.weight_kg
    return _catalog_item_weight(item, product, policy)


def process_truck_inventory(
    items: Iterable[TruckInventoryItem],
    products: Iterable[Product],
    policy: PlanningPolicy = DEFAULT_POLICY,
) -> List[TruckInventoryItem]:
    """Return inventory items with weight_kg and product_name filled from the catalog."""
    catalog = index_products(products)
    processed = []
    for item in items:
        product = catalog.get(item.product_id)
        processed.append(item.model_copy(update={
            "weight_kg": _catalog_item_weight(item, product, policy),
            "product_name": product.name if product else "Unknown Product",
        }))
    return processed
