"""
Hazard categories and the environmental report aggregator.

Each category module turns nearby features into a tiered report with a
description and recommendations. The aggregator runs the enabled
categories for one address.
"""

from hazards.levels import RiskLevel, BushfireRiskLevel, ImpactLevel
from hazards.base import HazardAnalyzer, Report
from hazards.bushfire import BushfireAnalyzer, BushfireReport
from hazards.flood import FloodAnalyzer, FloodReport
from hazards.waterway import WaterwayAnalyzer, WaterwayReport
from hazards.steep_land import SteepLandAnalyzer, SteepLandReport
from hazards.character import CharacterAnalyzer, CharacterReport
from hazards.heritage import HeritageAnalyzer, HeritageReport
from hazards.coastal import CoastalAnalyzer, CoastalReport
from hazards.noise import NoiseAnalyzer, NoiseReport
from hazards.odour import OdourAnalyzer, OdourReport
from hazards.biodiversity import BiodiversityAnalyzer, BiodiversityReport, SensitivityLevel
from hazards.easements import EasementAnalyzer, EasementReport
from hazards.sewer import SewerAnalyzer, SewerReport, ConnectionType
from hazards.electricity import ElectricityAnalyzer, ElectricityReport, AccessLevel, EMFExposure
from hazards.aggregator import EnvironmentalDataAggregator, EnvironmentalReport

__all__ = [
    # Tiers
    "RiskLevel",
    "BushfireRiskLevel",
    "ImpactLevel",
    "SensitivityLevel",
    "ConnectionType",
    "AccessLevel",
    "EMFExposure",
    # Base
    "HazardAnalyzer",
    "Report",
    # Natural hazards
    "BushfireAnalyzer",
    "BushfireReport",
    "FloodAnalyzer",
    "FloodReport",
    "WaterwayAnalyzer",
    "WaterwayReport",
    "SteepLandAnalyzer",
    "SteepLandReport",
    "CoastalAnalyzer",
    "CoastalReport",
    # Planning
    "CharacterAnalyzer",
    "CharacterReport",
    "HeritageAnalyzer",
    "HeritageReport",
    "EasementAnalyzer",
    "EasementReport",
    # Amenity
    "NoiseAnalyzer",
    "NoiseReport",
    "OdourAnalyzer",
    "OdourReport",
    "BiodiversityAnalyzer",
    "BiodiversityReport",
    # Infrastructure
    "SewerAnalyzer",
    "SewerReport",
    "ElectricityAnalyzer",
    "ElectricityReport",
    # Aggregation
    "EnvironmentalDataAggregator",
    "EnvironmentalReport",
]
