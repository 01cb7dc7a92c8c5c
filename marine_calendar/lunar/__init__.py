"""
月相計算模組
"""

from .phase import (
    LunarPhaseCalculator,
    LunarPhase,
    LunarPhaseType,
    LunarInfluence,
    LunarEvents,
    FishActivityLevel,
    TimeWindow,
    round_half_up
)

__all__ = [
    "LunarPhaseCalculator",
    "LunarPhase",
    "LunarPhaseType",
    "LunarInfluence",
    "LunarEvents",
    "FishActivityLevel",
    "TimeWindow",
    "round_half_up",
]
