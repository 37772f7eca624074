from __future__ import annotations

from datetime import date
from typing import Iterable, List, Sequence

from .capacity import active_allocations, calculate_truck_capacity, utilization_pct
from .config import DEFAULT_POLICY, PlanningPolicy
from .models import Allocation, DailySchedule, FleetUtilization, Truck


def route_status(allocations: Sequence[Allocation]) -> str:
    if not allocations:
        return "unassigned"
    statuses = [a.status for a in allocations]
    if all(s == "delivered" for s in statuses):
        return "completed"
    if any(s == "loaded" for s in statuses):
        return "in_progress"
    if all(s == "planned" for s in statuses):
        return "planned"
    return "mixed"


def estimate_fuel_liters(stops: int, truck: Truck, policy: PlanningPolicy = DEFAULT_POLICY) -> float:
    distance_km = stops * policy.km_per_stop
    consumption = truck.avg_fuel_consumption or policy.default_fuel_consumption_l_per_100km
    return distance_km / 100.0 * consumption


def is_fuel_sufficient(fuel_needed: float, truck: Truck, policy: PlanningPolicy = DEFAULT_POLICY) -> bool:
    # Unknown tank size is assumed sufficient
    if not truck.fuel_capacity_liters:
        return True
    return fuel_needed <= truck.fuel_capacity_liters * policy.fuel_reserve_ratio


def generate_daily_schedule(
    trucks: Iterable[Truck],
    allocations: Iterable[Allocation],
    on: date,
    policy: PlanningPolicy = DEFAULT_POLICY,
) -> List[DailySchedule]:
    allocations = list(allocations)
    schedules = []
    for truck in trucks:
        truck_allocations = sorted(
            active_allocations(allocations, truck.id, on),
            key=lambda a: (a.stop_sequence is None, a.stop_sequence or 0),
        )
        fuel_needed = estimate_fuel_liters(len(truck_allocations), truck, policy)
        schedules.append(DailySchedule(
            date=on,
            truck_id=truck.id,
            truck=truck,
            allocations=truck_allocations,
            capacity_info=calculate_truck_capacity(truck, allocations, on, policy),
            maintenance_due=bool(truck.next_maintenance_due and truck.next_maintenance_due <= on),
            fuel_sufficient=is_fuel_sufficient(fuel_needed, truck, policy),
            estimated_distance_km=len(truck_allocations) * policy.km_per_stop,
            fuel_needed_liters=fuel_needed,
            route_status=route_status(truck_allocations),
        ))
    return schedules


def calculate_fleet_utilization(schedules: Sequence[DailySchedule]) -> FleetUtilization:
    """Roll daily schedules up into fleet totals.

    Capacity and weight totals cover operational trucks only; overallocated
    and maintenance-due counts cover every scheduled truck so that a truck
    parked for maintenance is still visible on the dashboard.
    """
    active = [s for s in schedules if s.truck.is_operational]
    total_capacity = sum(s.capacity_info.total_capacity_kg for s in active)
    total_allocated = sum(s.capacity_info.allocated_weight_kg for s in active)
    return FleetUtilization(
        date=schedules[0].date if schedules else None,
        total_capacity_kg=total_capacity,
        total_allocated_kg=total_allocated,
        overall_utilization=utilization_pct(total_allocated, total_capacity),
        active_trucks=len(active),
        overallocated_trucks=sum(1 for s in schedules if s.capacity_info.is_overallocated),
        maintenance_due_trucks=sum(1 for s in schedules if s.maintenance_due),
    )
