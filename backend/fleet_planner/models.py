from __future__ import annotations

import datetime
from datetime import date
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from .config import PlanningPolicy

TruckStatus = Literal["active", "inactive", "maintenance"]
AllocationStatus = Literal["planned", "loaded", "delivered", "cancelled"]
RouteStatus = Literal["unassigned", "completed", "in_progress", "planned", "mixed"]


# --- Catalog and orders -----------------------------------------------------

class Product(BaseModel):
    id: str
    name: str = ""
    sku: Optional[str] = None
    capacity_kg: Optional[float] = Field(None, ge=0)
    tare_weight_kg: Optional[float] = Field(None, ge=0)
    is_variant: bool = False
    variant_name: Optional[str] = None
    parent_product_id: Optional[str] = None


class OrderLine(BaseModel):
    product_id: str
    quantity: int = Field(..., ge=0)


class Order(BaseModel):
    id: str
    lines: List[OrderLine] = Field(default_factory=list)


class LineWeightEstimate(BaseModel):
    product_id: str
    product_name: str = ""
    quantity: int
    estimated_weight_kg: float
    variant_name: Optional[str] = None


class WeightEstimate(BaseModel):
    order_id: Optional[str] = None
    total_weight_kg: float = 0.0
    line_estimates: List[LineWeightEstimate] = Field(default_factory=list)
    # Lines that could not be weighed (unknown product, unresolvable variant)
    unresolved_product_ids: List[str] = Field(default_factory=list)


# --- Fleet ------------------------------------------------------------------

class TruckInventoryItem(BaseModel):
    product_id: str
    product_name: Optional[str] = None
    qty_full: int = Field(0, ge=0)
    qty_empty: int = Field(0, ge=0)
    weight_kg: Optional[float] = Field(None, ge=0)


class Truck(BaseModel):
    id: str
    fleet_number: str = ""
    license_plate: str = ""
    capacity_kg: float = Field(0.0, ge=0)
    capacity_cylinders: int = Field(0, ge=0)
    driver_name: Optional[str] = None
    active: bool = True
    status: TruckStatus = "active"
    last_maintenance_date: Optional[date] = None
    next_maintenance_due: Optional[date] = None
    fuel_capacity_liters: Optional[float] = Field(None, ge=0)
    avg_fuel_consumption: Optional[float] = Field(None, ge=0)  # L per 100 km
    inventory: List[TruckInventoryItem] = Field(default_factory=list)

    @property
    def is_operational(self) -> bool:
        return self.active and self.status == "active"


class Allocation(BaseModel):
    id: Optional[str] = None
    truck_id: str
    order_id: str
    allocation_date: date
    estimated_weight_kg: float = Field(..., ge=0)
    status: AllocationStatus = "planned"
    stop_sequence: Optional[int] = None


# --- Derived views ----------------------------------------------------------

class CapacityInfo(BaseModel):
    truck_id: str
    total_capacity_kg: float
    allocated_weight_kg: float
    available_weight_kg: float
    utilization_percentage: float
    orders_count: int
    is_overallocated: bool
    allocation_weight_kg: float = 0.0
    inventory_weight_kg: float = 0.0


class TruckRecommendation(BaseModel):
    truck: Truck
    capacity_info: CapacityInfo
    fit_score: float
    can_accommodate: bool
    utilization_after: Optional[float] = None
    reasons: List[str] = Field(default_factory=list)


class RecommendationResult(BaseModel):
    order_weight_kg: float
    recommendations: List[TruckRecommendation]
    best_truck: Optional[Truck] = None


class ValidationResult(BaseModel):
    is_valid: bool
    warnings: List[str] = Field(default_factory=list)
    errors: List[str] = Field(default_factory=list)
    capacity_info: Optional[CapacityInfo] = None


class LoadItem(BaseModel):
    product_id: str
    qty_full: int = Field(0, ge=0)
    qty_empty: int = Field(0, ge=0)
    weight_kg: Optional[float] = Field(None, ge=0)


class LoadingCapacityCheck(BaseModel):
    current_cylinders: int
    cylinders_to_add: int
    total_cylinders_after: int
    cylinder_capacity: int
    cylinder_overflow: int
    current_weight_kg: float
    weight_to_add_kg: float
    total_weight_after_kg: float
    weight_capacity_kg: float
    weight_overflow_kg: float


class LoadingValidationResult(BaseModel):
    is_valid: bool
    warnings: List[str] = Field(default_factory=list)
    errors: List[str] = Field(default_factory=list)
    capacity_check: LoadingCapacityCheck


class DailySchedule(BaseModel):
    date: datetime.date
    truck_id: str
    truck: Truck
    allocations: List[Allocation]
    capacity_info: CapacityInfo
    maintenance_due: bool
    fuel_sufficient: bool
    estimated_distance_km: float = 0.0
    fuel_needed_liters: float = 0.0
    route_status: RouteStatus = "unassigned"


class FleetUtilization(BaseModel):
    date: Optional[datetime.date] = None
    total_capacity_kg: float
    total_allocated_kg: float
    overall_utilization: float
    active_trucks: int
    overallocated_trucks: int
    maintenance_due_trucks: int


class OrderWeight(BaseModel):
    order_id: str
    estimated_weight_kg: float = Field(..., ge=0)


class OptimizedAllocation(BaseModel):
    order_id: str
    truck_id: str
    estimated_weight_kg: float
    confidence_score: float
    fit_score: float
    allocation: Allocation


class OptimizationSummary(BaseModel):
    total_orders: int
    allocated_orders: int
    unallocated_count: int
    fleet_utilization: float
    fleet: FleetUtilization


class OptimizationResult(BaseModel):
    target_date: date
    optimized_allocations: List[OptimizedAllocation]
    unallocated_orders: List[str]
    summary: OptimizationSummary
    schedules: List[DailySchedule] = Field(default_factory=list)
    metrics: Dict[str, int] = Field(default_factory=dict)


# --- API requests -----------------------------------------------------------

class WeightEstimateRequest(BaseModel):
    orders: List[Order]
    products: List[Product]
    policy: Optional[PlanningPolicy] = None


class CapacityRequest(BaseModel):
    truck: Truck
    allocations: List[Allocation] = Field(default_factory=list)
    date: datetime.date
    policy: Optional[PlanningPolicy] = None


class RecommendRequest(BaseModel):
    trucks: List[Truck]
    allocations: List[Allocation] = Field(default_factory=list)
    target_date: date
    order_weight_kg: Optional[float] = Field(None, ge=0)
    # Used when order_weight_kg is not given
    order: Optional[Order] = None
    products: List[Product] = Field(default_factory=list)
    policy: Optional[PlanningPolicy] = None


class ValidateAllocationRequest(BaseModel):
    truck: Truck
    order_id: Optional[str] = None
    order_weight_kg: float = Field(..., ge=0)
    allocations: List[Allocation] = Field(default_factory=list)
    target_date: date
    policy: Optional[PlanningPolicy] = None


class ValidateLoadingRequest(BaseModel):
    truck: Truck
    items: List[LoadItem]
    policy: Optional[PlanningPolicy] = None


class ScheduleRequest(BaseModel):
    trucks: List[Truck]
    allocations: List[Allocation] = Field(default_factory=list)
    date: datetime.date
    policy: Optional[PlanningPolicy] = None


class ScheduleResponse(BaseModel):
    schedules: List[DailySchedule]
    fleet: FleetUtilization


class PlanningOrder(BaseModel):
    id: str
    lines: List[OrderLine] = Field(default_factory=list)
    # When given, skips estimation from lines
    estimated_weight_kg: Optional[float] = Field(None, ge=0)


class OptimizeRequest(BaseModel):
    orders: List[PlanningOrder]
    trucks: List[Truck]
    target_date: date
    products: List[Product] = Field(default_factory=list)
    allocations: List[Allocation] = Field(default_factory=list)
    policy: Optional[PlanningPolicy] = None


class OptimizeWorkbookRequest(BaseModel):
    s3_key: str
    target_date: date
    policy: Optional[PlanningPolicy] = None


class PlanningSnapshot(BaseModel):
    trucks: List[Truck] = Field(default_factory=list)
    orders: List[Order] = Field(default_factory=list)
    products: List[Product] = Field(default_factory=list)
    allocations: List[Allocation] = Field(default_factory=list)
    # Explicit order weights from the Orders sheet, keyed by order id
    order_weights: Dict[str, float] = Field(default_factory=dict)
