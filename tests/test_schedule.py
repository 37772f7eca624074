from __future__ import annotations

from datetime import timedelta

from fleet_planner.schedule import (
    calculate_fleet_utilization,
    estimate_fuel_liters,
    generate_daily_schedule,
    route_status,
)

from factories import DAY, make_allocation, make_truck


def test_maintenance_due_on_the_day_regardless_of_allocations():
    trucks = [make_truck("T1", 1000, next_maintenance_due=DAY),
              make_truck("T2", 1000, next_maintenance_due=DAY + timedelta(days=3))]
    schedules = generate_daily_schedule(trucks, [], DAY)
    assert [s.maintenance_due for s in schedules] == [True, False]
    assert schedules[0].allocations == []
    assert schedules[0].route_status == "unassigned"


def test_schedule_filters_and_orders_allocations():
    truck = make_truck("T1", 1000)
    allocations = [
        make_allocation("T1", "O3", 100),
        make_allocation("T1", "O2", 100, stop_sequence=2),
        make_allocation("T1", "O1", 100, stop_sequence=1),
        make_allocation("T1", "OX", 100, status="cancelled"),
        make_allocation("T2", "OY", 100),
    ]
    (schedule,) = generate_daily_schedule([truck], allocations, DAY)
    assert [a.order_id for a in schedule.allocations] == ["O1", "O2", "O3"]
    assert schedule.capacity_info.allocated_weight_kg == 300
    assert schedule.estimated_distance_km == 75


def test_fuel_uses_truck_consumption_or_default():
    assert estimate_fuel_liters(4, make_truck(avg_fuel_consumption=20)) == 20
    assert estimate_fuel_liters(4, make_truck()) == 12


def test_fuel_sufficiency_keeps_reserve():
    allocations = [make_allocation("T1", f"O{i}", 10) for i in range(8)]
    # 8 stops * 25 km * 12 L/100km = 24 L
    (tight,) = generate_daily_schedule([make_truck("T1", 1000, fuel_capacity_liters=29)], allocations, DAY)
    (ok,) = generate_daily_schedule([make_truck("T1", 1000, fuel_capacity_liters=30)], allocations, DAY)
    (unknown,) = generate_daily_schedule([make_truck("T1", 1000)], allocations, DAY)
    assert tight.fuel_needed_liters == 24
    assert not tight.fuel_sufficient
    assert ok.fuel_sufficient
    assert unknown.fuel_sufficient


def test_route_status():
    a = lambda status: make_allocation("T1", "O", 1, status=status)  # noqa: E731
    assert route_status([]) == "unassigned"
    assert route_status([a("delivered"), a("delivered")]) == "completed"
    assert route_status([a("planned"), a("loaded")]) == "in_progress"
    assert route_status([a("planned")]) == "planned"
    assert route_status([a("planned"), a("delivered")]) == "mixed"


def test_schedule_is_repeatable():
    trucks = [make_truck("T1", 1000), make_truck("T2", 500)]
    allocations = [make_allocation("T1", "O1", 300), make_allocation("T2", "O2", 100)]
    first = generate_daily_schedule(trucks, allocations, DAY)
    second = generate_daily_schedule(trucks, allocations, DAY)
    assert [s.model_dump() for s in first] == [s.model_dump() for s in second]


def test_fleet_utilization_totals_operational_trucks():
    trucks = [
        make_truck("T1", 1000),
        make_truck("T2", 500),
        make_truck("SHOP", 800, status="maintenance", next_maintenance_due=DAY),
    ]
    allocations = [
        make_allocation("T1", "O1", 500),
        make_allocation("T2", "O2", 600),
        make_allocation("SHOP", "O3", 900),
    ]
    fleet = calculate_fleet_utilization(generate_daily_schedule(trucks, allocations, DAY))
    assert fleet.date == DAY
    assert fleet.total_capacity_kg == 1500
    assert fleet.total_allocated_kg == 1100
    assert round(fleet.overall_utilization, 2) == 73.33
    assert fleet.active_trucks == 2
    assert fleet.overallocated_trucks == 2
    assert fleet.maintenance_due_trucks == 1


def test_empty_fleet():
    fleet = calculate_fleet_utilization([])
    assert fleet.overall_utilization == 0
    assert fleet.active_trucks == 0
    assert fleet.date is None
