"""
Marine Calendar Config Module

提供系統配置、魚種註冊表與漁場定義。
"""

from .settings import Settings, get_settings, configure_logging
from .species import (
    Species,
    MigrationType,
    PeakWindow,
    TemperatureRange,
    SPECIES,
    get_species,
    is_known_species,
    normalize_species_code,
    list_all_species
)
from .regions import (
    Location,
    FishingGround,
    FISHING_GROUNDS,
    best_locations_for,
    distance_from_shore,
    haversine_distance
)

__all__ = [
    # Settings
    "Settings",
    "get_settings",
    "configure_logging",
    # Species
    "Species",
    "MigrationType",
    "PeakWindow",
    "TemperatureRange",
    "SPECIES",
    "get_species",
    "is_known_species",
    "normalize_species_code",
    "list_all_species",
    # Regions
    "Location",
    "FishingGround",
    "FISHING_GROUNDS",
    "best_locations_for",
    "distance_from_shore",
    "haversine_distance",
]
