from __future__ import annotations

import logging
import time
from datetime import date
from typing import Iterable, List, Sequence

from .capacity import active_allocations
from .config import DEFAULT_POLICY, PlanningPolicy
from .models import (
    Allocation,
    OptimizationResult,
    OptimizationSummary,
    OptimizedAllocation,
    OptimizeRequest,
    OptimizeWorkbookRequest,
    OrderWeight,
    PlanningOrder,
    Product,
    Truck,
)
from .schedule import calculate_fleet_utilization, generate_daily_schedule
from .scoring import recommend_trucks
from .weights import calculate_order_weight, index_products
from .workbook import load_planning_workbook

logger = logging.getLogger(__name__)


def next_stop_sequence(allocations: Iterable[Allocation], truck_id: str, on: date) -> int:
    return max((a.stop_sequence or 0 for a in active_allocations(allocations, truck_id, on)), default=0) + 1


def optimize_truck_allocations(
    orders: Sequence[OrderWeight],
    trucks: Iterable[Truck],
    target_date: date,
    policy: PlanningPolicy = DEFAULT_POLICY,
    existing_allocations: Iterable[Allocation] = (),
) -> OptimizationResult:
    """Greedy heaviest-first assignment of orders to trucks for one day.

    Each placement is scored against the allocations made so far, so the
    loop is sequential. Orders no truck can take are reported in
    unallocated_orders; the run itself never fails.
    """
    fleet = [t for t in trucks if t.is_operational]
    working: List[Allocation] = list(existing_allocations)
    placed: List[OptimizedAllocation] = []
    unallocated: List[str] = []

    # Heavier orders are harder to place; ties keep input order
    for order in sorted(orders, key=lambda o: o.estimated_weight_kg, reverse=True):
        result = recommend_trucks(order.estimated_weight_kg, fleet, working, target_date, policy)
        if result.best_truck is None:
            unallocated.append(order.order_id)
            continue

        truck = result.best_truck
        best = next(r for r in result.recommendations if r.truck.id == truck.id)
        allocation = Allocation(
            id=f"{order.order_id}-{truck.id}",
            truck_id=truck.id,
            order_id=order.order_id,
            allocation_date=target_date,
            estimated_weight_kg=order.estimated_weight_kg,
            status="planned",
            stop_sequence=next_stop_sequence(working, truck.id, target_date),
        )
        working.append(allocation)
        placed.append(OptimizedAllocation(
            order_id=order.order_id,
            truck_id=truck.id,
            estimated_weight_kg=order.estimated_weight_kg,
            confidence_score=policy.confidence_score,
            fit_score=best.fit_score,
            allocation=allocation,
        ))

    schedules = generate_daily_schedule(fleet, working, target_date, policy)
    fleet_utilization = calculate_fleet_utilization(schedules)

    return OptimizationResult(
        target_date=target_date,
        optimized_allocations=placed,
        unallocated_orders=unallocated,
        summary=OptimizationSummary(
            total_orders=len(orders),
            allocated_orders=len(placed),
            unallocated_count=len(unallocated),
            fleet_utilization=fleet_utilization.overall_utilization,
            fleet=fleet_utilization,
        ),
        schedules=schedules,
    )


def resolve_order_weights(
    orders: Iterable[PlanningOrder],
    products: Iterable[Product],
    policy: PlanningPolicy = DEFAULT_POLICY,
) -> List[OrderWeight]:
    catalog = index_products(products)
    weights = []
    for o in orders:
        if o.estimated_weight_kg is not None:
            weight = o.estimated_weight_kg
        else:
            estimate = calculate_order_weight(o.lines, catalog, policy, order_id=o.id)
            if estimate.unresolved_product_ids:
                logger.warning("order %s has unweighed lines: %s",
                               o.id, ", ".join(estimate.unresolved_product_ids))
            weight = estimate.total_weight_kg
        weights.append(OrderWeight(order_id=o.id, estimated_weight_kg=weight))
    return weights


def optimize(req: OptimizeRequest) -> OptimizationResult:
    start = time.time()
    policy = req.policy or DEFAULT_POLICY
    order_weights = resolve_order_weights(req.orders, req.products, policy)
    result = optimize_truck_allocations(
        order_weights, req.trucks, req.target_date, policy, req.allocations)

    result.metrics = {
        "orders": len(order_weights),
        "trucks": len(req.trucks),
        "duration_ms": int((time.time() - start) * 1000),
    }
    logger.info("optimized %s: %d/%d orders placed, fleet utilization %.1f%%",
                req.target_date, result.summary.allocated_orders,
                result.summary.total_orders, result.summary.fleet_utilization)
    return result


def optimize_workbook(req: OptimizeWorkbookRequest) -> OptimizationResult:
    snapshot = load_planning_workbook(req.s3_key)
    orders = [
        PlanningOrder(id=o.id, lines=o.lines, estimated_weight_kg=snapshot.order_weights.get(o.id))
        for o in snapshot.orders
    ]
    return optimize(OptimizeRequest(
        orders=orders,
        trucks=snapshot.trucks,
        target_date=req.target_date,
        products=snapshot.products,
        allocations=snapshot.allocations,
        policy=req.policy,
    ))
