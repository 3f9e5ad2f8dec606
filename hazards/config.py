"""
Pipeline configuration.

Service endpoints, layer names, buffers and the enabled category list.
Values come from environment variables where an operator is likely to
override them; everything else is a plain constant.
"""

import os
import logging

log = logging.getLogger(__name__)

# ═══════════════════════════════════════════════════════════════════════════════
# SERVICE ENDPOINTS
# ═══════════════════════════════════════════════════════════════════════════════

GA_WASTEWATER_URL = os.environ.get(
    "RISK_GA_WASTEWATER_URL",
    "https://services.ga.gov.au/gis/services/Wastewater_Treatment_Facilities/MapServer/WFSServer",
)
GA_ELECTRICITY_URL = os.environ.get(
    "RISK_GA_ELECTRICITY_URL",
    "https://services.ga.gov.au/gis/services/National_Electricity_Infrastructure/MapServer/WFSServer",
)

# GA MapServer endpoints only speak their own GeoJSON output name
GA_OUTPUT_FORMAT = "GEOJSON"

# ═══════════════════════════════════════════════════════════════════════════════
# LAYERS
# ═══════════════════════════════════════════════════════════════════════════════

PLAN_OVERLAY_LAYER = "open-data-platform:plan_overlay"
FLOOD_HISTORY_LAYER = "open-data-platform:vic_flood_history_public"
FLOOD_100_YEAR_LAYER = os.environ.get("RISK_FLOOD_100_YEAR_LAYER", "open-data-platform:extent_100y_ari")
ENABLE_FLOOD_100_YEAR = os.environ.get("RISK_ENABLE_FLOOD_100_YEAR", "false").lower() in ("1", "true", "yes")
HERITAGE_INVENTORY_LAYER = "open-data-platform:heritage_inventory"
BUSHFIRE_PRONE_LAYER = os.environ.get("RISK_BUSHFIRE_PRONE_LAYER", "open-data-platform:bushfire_prone_area")
FIRE_HISTORY_LAYER = "fire_history_scar"
LANDFILL_LAYER = "open-data-platform:vlr_point"
WASTEWATER_LAYER = "Wastewater_Treatment_Facilities:National_Wastewater_Treatment_Facilities"
EPA_PREMISES_LAYER = "open-data-platform:epa_licence_point"
FAUNA_LAYER = "open-data-platform:vba_fauna25"
FLORA_LAYER = "open-data-platform:vba_flora25"
EASEMENT_LAYER = "open-data-platform:easement"
ROAD_LAYER = "open-data-platform:tr_road"
ENERGY_FACILITIES_LAYER = "open-data-platform:energy_facilities"
TRANSMISSION_LINES_LAYER = "National_Electricity_Infrastructure:Electricity_Transmission_Lines"

# ═══════════════════════════════════════════════════════════════════════════════
# BUFFERS
# ═══════════════════════════════════════════════════════════════════════════════

# Metres (converted with sources.wfs.buffer_degrees)
STEEP_LAND_BUFFER_M = 100
WATERWAY_BUFFER_M = 200
CHARACTER_BUFFER_M = 200
FLOOD_BUFFER_M = 1000
HERITAGE_OVERLAY_BUFFER_M = 500
COASTAL_BUFFER_M = 500
NOISE_BUFFER_M = 500

# Degrees
DEFAULT_BUFFER_DEG = 0.0005
FIRE_HISTORY_BUFFER_DEG = 0.1
LANDFILL_BUFFER_DEG = 0.5
WASTEWATER_BUFFER_DEG = 10.0
EPA_PREMISES_BUFFER_DEG = 0.1
BIODIVERSITY_BUFFER_DEG = 0.005
ENERGY_FACILITIES_BUFFER_DEG = 0.1
TRANSMISSION_LINES_BUFFER_DEG = 0.1

# Per-source limits
FIRE_HISTORY_COUNT = 100
GA_FEATURE_COUNT = 50
SOURCE_TIMEOUT = 15
WASTEWATER_TIMEOUT = 30

# ═══════════════════════════════════════════════════════════════════════════════
# CATEGORIES
# ═══════════════════════════════════════════════════════════════════════════════

ALL_CATEGORIES = [
    "bushfire",
    "flood",
    "waterway",
    "steep_land",
    "character",
    "heritage",
    "coastal",
    "noise",
    "odour",
    "biodiversity",
    "easements",
    "sewer",
    "electricity",
]


def parse_categories(value: str) -> list:
    """Parse a comma list of category keys, dropping unknown names."""
    requested = [c.strip() for c in value.split(",") if c.strip()]
    unknown = [c for c in requested if c not in ALL_CATEGORIES]
    if unknown:
        log.warning(f"Ignoring unknown categories: {', '.join(unknown)}")
    return [c for c in requested if c in ALL_CATEGORIES]


_enabled = os.environ.get("RISK_ENABLED_CATEGORIES")
ENABLED_CATEGORIES = parse_categories(_enabled) if _enabled else list(ALL_CATEGORIES)
