from __future__ import annotations

from datetime import date
from typing import Iterable, List, Tuple

from .capacity import calculate_truck_capacity, utilization_pct
from .config import DEFAULT_POLICY, PlanningPolicy
from .models import Allocation, CapacityInfo, RecommendationResult, Truck, TruckRecommendation


def fit_score(
    capacity_info: CapacityInfo,
    order_weight_kg: float,
    policy: PlanningPolicy = DEFAULT_POLICY,
) -> Tuple[float, float, List[str]]:
    """Score an order on a truck that can take it.

    Returns (score, utilization_after, reasons). Loads close to the target
    utilization score highest; loads past the fit ceiling get a flat low
    score. Trucks with fewer stops get a small bonus.
    """
    reasons: List[str] = []
    utilization_after = utilization_pct(
        capacity_info.allocated_weight_kg + order_weight_kg, capacity_info.total_capacity_kg)

    if utilization_after <= policy.fit_ceiling_pct:
        score = 100.0 - abs(utilization_after - policy.target_utilization_pct)
        reasons.append(f"Utilization after loading {utilization_after:.1f}% "
                       f"(target {policy.target_utilization_pct:g}%)")
    else:
        score = policy.over_ceiling_score
        reasons.append(f"High utilization after loading {utilization_after:.1f}%")

    bonus = max(0, policy.stop_bonus_base - capacity_info.orders_count)
    if bonus:
        reasons.append(f"Few existing stops ({capacity_info.orders_count})")
    return score + bonus, utilization_after, reasons


def recommend_trucks(
    order_weight_kg: float,
    trucks: Iterable[Truck],
    allocations: Iterable[Allocation],
    target_date: date,
    policy: PlanningPolicy = DEFAULT_POLICY,
) -> RecommendationResult:
    allocations = list(allocations)
    recommendations: List[TruckRecommendation] = []

    for truck in trucks:
        if not truck.is_operational:
            continue
        info = calculate_truck_capacity(truck, allocations, target_date, policy)
        can_accommodate = info.available_weight_kg >= order_weight_kg
        if can_accommodate:
            score, utilization_after, reasons = fit_score(info, order_weight_kg, policy)
        else:
            score, utilization_after = 0.0, None
            reasons = [f"Insufficient capacity ({info.available_weight_kg:g}kg available)"]
            if info.is_overallocated:
                reasons.append("Already overallocated")
        recommendations.append(TruckRecommendation(
            truck=truck,
            capacity_info=info,
            fit_score=score,
            can_accommodate=can_accommodate,
            utilization_after=utilization_after,
            reasons=reasons,
        ))

    # stable: ties keep fleet order
    recommendations.sort(key=lambda r: r.fit_score, reverse=True)
    best = next((r.truck for r in recommendations if r.can_accommodate), None)
    return RecommendationResult(
        order_weight_kg=order_weight_kg,
        recommendations=recommendations,
        best_truck=best,
    )
