"""Storage keys, time windows, trip cost factors, and seed data."""

# =============================================================================
# Storage
# =============================================================================

STORAGE_KEYS = {
    "trucks": "fleet_flow_trucks",
    "trips": "fleet_flow_trips",
    "maintenance": "fleet_flow_maintenance",
    "drivers": "fleet_flow_drivers",
    "reports": "fleet_flow_reports",
}

DEFAULT_DATA_DIR = ".fleetflow"

ID_LENGTH = 9

# =============================================================================
# Time Ranges
# =============================================================================

HOUR_MS = 60 * 60 * 1000
DAY_MS = 24 * HOUR_MS

TIME_RANGE_WINDOWS_MS = {
    "24h": DAY_MS,
    "7d": 7 * DAY_MS,
    "30d": 30 * DAY_MS,
}

TIME_RANGE_LABELS = {
    "24h": "Last 24 Hours",
    "7d": "Last 7 Days",
    "30d": "Last 30 Days",
}

DEFAULT_TIME_RANGE = "30d"

# =============================================================================
# Trip Derivation (applied once, at trip creation)
# =============================================================================

FUEL_CONSUMED_PER_DISTANCE = 0.3
FUEL_COST_PER_DISTANCE = 0.6
DEFAULT_DRIVER_PAY = 400.0
DEFAULT_TOLLS = 50.0
DEFAULT_OTHER_COSTS = 0.0

# =============================================================================
# Scores
# =============================================================================

SCORE_RANGE = (0, 100)
NEW_TRUCK_HEALTH_SCORE = 100
NEW_DRIVER_PERFORMANCE_SCORE = 100
HEALTH_ALERT_THRESHOLD = 70

# =============================================================================
# Seed Data
# =============================================================================

DEFAULT_TRUCKS = [
    {"id": "1", "vin": "TRK001", "plate": "FLT-101", "model": "Volvo FH16", "year": 2022,
     "fuelType": "Diesel", "loadCapacity": 40000, "status": "Active",
     "healthScore": 92, "mileage": 45200},
    {"id": "2", "vin": "TRK002", "plate": "FLT-202", "model": "Scania R500", "year": 2021,
     "fuelType": "Diesel", "loadCapacity": 35000, "status": "Active",
     "healthScore": 78, "mileage": 88400},
    {"id": "3", "vin": "TRK003", "plate": "FLT-303", "model": "Mercedes Actros", "year": 2023,
     "fuelType": "Electric", "loadCapacity": 25000, "status": "Idle",
     "healthScore": 98, "mileage": 12000},
    {"id": "4", "vin": "TRK004", "plate": "FLT-404", "model": "Kenworth T680", "year": 2020,
     "fuelType": "Diesel", "loadCapacity": 42000, "status": "Under Repair",
     "healthScore": 45, "mileage": 156000},
    {"id": "5", "vin": "TRK005", "plate": "FLT-505", "model": "Freightliner Cascadia", "year": 2021,
     "fuelType": "Diesel", "loadCapacity": 40000, "status": "Active",
     "healthScore": 85, "mileage": 92000},
]

# Stored as-is; these records deliberately omit most optional driver fields.
DEFAULT_DRIVERS = [
    {"id": "drv1", "name": "John Doe", "licenseNumber": "L-55231",
     "assignedTruckId": "1", "performanceScore": 94},
    {"id": "drv2", "name": "Sarah Miller", "licenseNumber": "L-88210",
     "assignedTruckId": "2", "performanceScore": 88},
]

DEFAULT_REPORTS = [
    {"id": "rep1", "title": "Q1 Performance Summary", "type": "Operational"},
]

# Shown on the revenue chart until real trips exist
DEMO_REVENUE_SERIES = [
    {"name": "Jan", "revenue": 45000, "cost": 32000, "profit": 13000},
    {"name": "Feb", "revenue": 52000, "cost": 34000, "profit": 18000},
    {"name": "Mar", "revenue": 48000, "cost": 31000, "profit": 17000},
    {"name": "Apr", "revenue": 61000, "cost": 38000, "profit": 23000},
    {"name": "May", "revenue": 55000, "cost": 35000, "profit": 20000},
    {"name": "Jun", "revenue": 67000, "cost": 42000, "profit": 25000},
]

# =============================================================================
# AI Insights
# =============================================================================

DEFAULT_INSIGHT_MODEL = "llama-3.1-8b-instant"
INSIGHT_TEMPERATURE = 0.1

DISABLED_INSIGHT = {
    "summary": "AI analysis is currently unavailable. Please configure your API key.",
    "warnings": ["Missing API configuration"],
    "recommendations": [],
}

FAILED_INSIGHT = {
    "summary": "An error occurred while generating AI insights.",
    "warnings": ["Connectivity issues"],
    "recommendations": [],
}
