from __future__ import annotations

# Standard cylinder weights (kg) keyed by nominal gas capacity
CYLINDER_WEIGHTS = {
    "6kg": {"full": 16, "empty": 10, "net": 6},
    "13kg": {"full": 27, "empty": 14, "net": 13},
    "48kg": {"full": 98, "empty": 50, "net": 48},
    "90kg": {"full": 180, "empty": 90, "net": 90},
}

# Planning workbook: required columns per sheet
REQUIRED_SHEETS = {
    "Trucks": {"Truck ID", "Capacity KG", "Status"},
    "Orders": {"Order ID", "Product ID", "Quantity"},
    "Products": {"Product ID"},
}
OPTIONAL_SHEETS = {
    "Allocations": {"Truck ID", "Order ID", "Allocation Date", "Estimated Weight KG"},
}

# Synonyms mapping for flexible header recognition (case-insensitive)
SYNONYMS = {
    "truck id": {"truck id", "truck", "truck_id"},
    "order id": {"order id", "order", "order_id", "order no"},
    "product id": {"product id", "product", "product_id", "sku id"},
    "capacity kg": {"capacity kg", "capacity_kg", "capacity (kg)", "max weight"},
    "capacity cylinders": {"capacity cylinders", "capacity_cylinders", "cylinder slots"},
    "fleet number": {"fleet number", "fleet_number", "fleet no"},
    "license plate": {"license plate", "license_plate", "plate", "registration"},
    "next maintenance due": {"next maintenance due", "next_maintenance_due", "maintenance due"},
    "fuel capacity liters": {"fuel capacity liters", "fuel_capacity_liters", "tank (l)"},
    "avg fuel consumption": {"avg fuel consumption", "avg_fuel_consumption", "l/100km"},
    "quantity": {"quantity", "qty"},
    "tare weight kg": {"tare weight kg", "tare_weight_kg", "tare (kg)"},
    "is variant": {"is variant", "is_variant", "variant"},
    "variant name": {"variant name", "variant_name"},
    "parent product id": {"parent product id", "parent_product_id", "parent"},
    "allocation date": {"allocation date", "allocation_date", "date"},
    "estimated weight kg": {"estimated weight kg", "estimated_weight_kg", "weight (kg)"},
    "stop sequence": {"stop sequence", "stop_sequence", "stop"},
}

# Every column the workbook parser understands, by its display label
KNOWN_COLUMNS = {
    "Truck ID", "Fleet Number", "License Plate", "Capacity KG", "Capacity Cylinders",
    "Active", "Status", "Next Maintenance Due", "Fuel Capacity Liters",
    "Avg Fuel Consumption", "Order ID", "Product ID", "Quantity", "Name",
    "Tare Weight KG", "Is Variant", "Variant Name", "Parent Product ID",
    "Allocation Date", "Estimated Weight KG", "Stop Sequence",
}
