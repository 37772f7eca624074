from __future__ import annotations

import math
from datetime import date
from typing import Iterable, List, Optional

from .capacity import calculate_truck_capacity, effective_capacity_kg, utilization_pct
from .config import DEFAULT_POLICY, PlanningPolicy
from .models import (
    Allocation,
    LoadItem,
    LoadingCapacityCheck,
    LoadingValidationResult,
    Truck,
    ValidationResult,
)
from .weights import inventory_item_weight


def truck_status_errors(truck: Truck) -> List[str]:
    errors = []
    if not truck.active:
        errors.append("Truck is inactive")
    if truck.status == "maintenance":
        errors.append("Truck is scheduled for maintenance")
    if truck.status == "inactive":
        errors.append("Truck status is inactive")
    return errors


def cylinders_on_board(truck: Truck) -> int:
    return sum(item.qty_full + item.qty_empty for item in truck.inventory)


def validate_truck_allocation(
    truck: Truck,
    order_weight_kg: float,
    existing_allocations: Iterable[Allocation],
    target_date: date,
    policy: PlanningPolicy = DEFAULT_POLICY,
    order_id: Optional[str] = None,
) -> ValidationResult:
    """Check a proposed (truck, order, date) assignment.

    Errors block the allocation; warnings are business risks for a
    dispatcher to judge. order_id is only used in messages.
    """
    errors = truck_status_errors(truck)
    warnings: List[str] = []
    info = calculate_truck_capacity(truck, existing_allocations, target_date, policy)
    label = f"Order {order_id} weight" if order_id else "Order weight"

    if order_weight_kg > info.available_weight_kg:
        errors.append(f"{label} ({order_weight_kg:g}kg) exceeds available capacity "
                      f"({info.available_weight_kg:g}kg)")

    if truck.capacity_cylinders:
        cylinders_needed = math.ceil(order_weight_kg / policy.avg_kg_per_cylinder)
        free_slots = truck.capacity_cylinders - cylinders_on_board(truck)
        if cylinders_needed > free_slots:
            errors.append(f"Order requires approximately {cylinders_needed} cylinders "
                          f"but only {free_slots} slots available")

    utilization_after = utilization_pct(info.allocated_weight_kg + order_weight_kg,
                                        info.total_capacity_kg)
    if utilization_after > policy.high_utilization_pct:
        warnings.append(f"High utilization after allocation: {utilization_after:.1f}%")

    if info.orders_count >= policy.many_orders_threshold:
        warnings.append(f"Many orders already allocated ({info.orders_count}), "
                        "may affect delivery efficiency")

    if truck.next_maintenance_due and truck.next_maintenance_due <= target_date:
        warnings.append("Truck maintenance is due around this date")

    return ValidationResult(
        is_valid=not errors,
        warnings=warnings,
        errors=errors,
        capacity_info=info,
    )


def validate_truck_loading(
    truck: Truck,
    items_to_load: Iterable[LoadItem],
    policy: PlanningPolicy = DEFAULT_POLICY,
) -> LoadingValidationResult:
    """Check a physical load against both cylinder slots and weight capacity."""
    items_to_load = list(items_to_load)
    errors = truck_status_errors(truck)
    warnings: List[str] = []

    current_cylinders = cylinders_on_board(truck)
    current_weight = sum(inventory_item_weight(i, policy=policy) for i in truck.inventory)
    cylinders_to_add = sum(i.qty_full + i.qty_empty for i in items_to_load)
    weight_to_add = sum(inventory_item_weight(i, policy=policy) for i in items_to_load)

    total_cylinders_after = current_cylinders + cylinders_to_add
    total_weight_after = current_weight + weight_to_add
    cylinder_capacity = truck.capacity_cylinders
    weight_capacity = effective_capacity_kg(truck, policy)
    cylinder_overflow = total_cylinders_after - cylinder_capacity
    weight_overflow = total_weight_after - weight_capacity

    if cylinder_overflow > 0:
        errors.append(
            f"Cylinder capacity exceeded: trying to load {cylinders_to_add} cylinders but only "
            f"{cylinder_capacity - current_cylinders} slots available "
            f"({total_cylinders_after}/{cylinder_capacity} total)")
    if weight_overflow > 0:
        errors.append(
            f"Weight capacity exceeded: trying to load {weight_to_add:.1f}kg but only "
            f"{weight_capacity - current_weight:.1f}kg capacity available "
            f"({total_weight_after:.1f}/{weight_capacity:.1f}kg total)")

    cylinder_utilization = utilization_pct(total_cylinders_after, cylinder_capacity)
    weight_utilization = utilization_pct(total_weight_after, weight_capacity)
    if cylinder_utilization > policy.high_utilization_pct and cylinder_overflow <= 0:
        warnings.append(f"High cylinder utilization after loading: {cylinder_utilization:.1f}% "
                        f"({total_cylinders_after}/{cylinder_capacity})")
    if weight_utilization > policy.high_utilization_pct and weight_overflow <= 0:
        warnings.append(f"High weight utilization after loading: {weight_utilization:.1f}% "
                        f"({total_weight_after:.1f}/{weight_capacity:.1f}kg)")

    return LoadingValidationResult(
        is_valid=not errors,
        warnings=warnings,
        errors=errors,
        capacity_check=LoadingCapacityCheck(
            current_cylinders=current_cylinders,
            cylinders_to_add=cylinders_to_add,
            total_cylinders_after=total_cylinders_after,
            cylinder_capacity=cylinder_capacity,
            cylinder_overflow=cylinder_overflow,
            current_weight_kg=current_weight,
            weight_to_add_kg=weight_to_add,
            total_weight_after_kg=total_weight_after,
            weight_capacity_kg=weight_capacity,
            weight_overflow_kg=weight_overflow,
        ),
    )
