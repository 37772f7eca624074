from __future__ import annotations

from datetime import date
from typing import Iterable, List

from .config import DEFAULT_POLICY, PlanningPolicy
from .models import Allocation, CapacityInfo, Truck
from .weights import inventory_item_weight


def effective_capacity_kg(truck: Truck, policy: PlanningPolicy = DEFAULT_POLICY) -> float:
    """Weight capacity for a physical load check, falling back to cylinder slots."""
    if truck.capacity_kg:
        return truck.capacity_kg
    return truck.capacity_cylinders * policy.kg_per_cylinder_slot


def active_allocations(allocations: Iterable[Allocation], truck_id: str, on: date) -> List[Allocation]:
    return [
        a for a in allocations
        if a.truck_id == truck_id and a.allocation_date == on and a.status != "cancelled"
    ]


def inventory_weight_kg(truck: Truck, policy: PlanningPolicy = DEFAULT_POLICY) -> float:
    return sum(inventory_item_weight(item, policy=policy) for item in truck.inventory)


def utilization_pct(weight_kg: float, capacity_kg: float) -> float:
    if capacity_kg <= 0:
        return 0.0
    return weight_kg / capacity_kg * 100.0


def calculate_truck_capacity(
    truck: Truck,
    allocations: Iterable[Allocation],
    on: date,
    policy: PlanningPolicy = DEFAULT_POLICY,
) -> CapacityInfo:
    """Capacity of one truck on one day.

    allocated_weight_kg is the larger of the non-cancelled allocation weight
    and the on-board inventory weight, so it equals the allocation sum only
    for trucks with an empty inventory.
    """
    day_allocations = active_allocations(allocations, truck.id, on)
    allocation_weight = sum(a.estimated_weight_kg for a in day_allocations)
    on_board = inventory_weight_kg(truck, policy)

    # Cylinders already transferred onto the truck count even if not yet allocated
    allocated = max(allocation_weight, on_board)
    total = truck.capacity_kg

    return CapacityInfo(
        truck_id=truck.id,
        total_capacity_kg=total,
        allocated_weight_kg=allocated,
        available_weight_kg=max(0.0, total - allocated),
        utilization_percentage=utilization_pct(allocated, total),
        orders_count=len(day_allocations),
        is_overallocated=allocated > total,
        allocation_weight_kg=allocation_weight,
        inventory_weight_kg=on_board,
    )
