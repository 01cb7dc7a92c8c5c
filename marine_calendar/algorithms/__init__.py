"""
Marine Calendar Algorithms Module

提供潮汐、洄游、歷史分析與每日漁況彙整算法。
"""

from .tides import (
    TidalApproximator,
    TidalInfluence,
    TideType,
    FishingImpact
)
from .migration import (
    MigrationProbabilityModel,
    MigrationEvent,
    MigrationEventType,
    MigrationRecommendation,
    SeasonalAvailability,
    filter_events,
    merge_events,
    group_events_by_date,
    migration_recommendations,
    analyze_migration_trends
)
from .historical import (
    HistoricalCorrelationAnalyzer,
    HistoricalSummary,
    LunarCorrelation,
    CatchHistoryAnalyzer
)
from .conditions import (
    FishingConditionsAggregator,
    FishingConditionsReport,
    SpeciesInfluence,
    calculate_conditions
)

__all__ = [
    # Tides
    "TidalApproximator",
    "TidalInfluence",
    "TideType",
    "FishingImpact",
    # Migration
    "MigrationProbabilityModel",
    "MigrationEvent",
    "MigrationEventType",
    "MigrationRecommendation",
    "SeasonalAvailability",
    "filter_events",
    "merge_events",
    "group_events_by_date",
    "migration_recommendations",
    "analyze_migration_trends",
    # Historical
    "HistoricalCorrelationAnalyzer",
    "HistoricalSummary",
    "LunarCorrelation",
    "CatchHistoryAnalyzer",
    # Conditions
    "FishingConditionsAggregator",
    "FishingConditionsReport",
    "SpeciesInfluence",
    "calculate_conditions",
]
