"""
Marine Calendar - 海洋漁況日曆

整合月相、潮汐與魚種洄游模型，提供每日漁況評估。

Modules:
    - config: 系統配置、魚種註冊表、漁場定義
    - lunar: 月相計算
    - algorithms: 潮汐、洄游、歷史分析與漁況彙整
    - storage: 資料庫與資料存取
"""

__version__ = "1.0.0"
__author__ = "Marine Calendar Development Team"

from .config import get_settings, configure_logging
from .lunar import LunarPhaseCalculator
from .algorithms import (
    FishingConditionsAggregator,
    FishingConditionsReport,
    calculate_conditions
)

__all__ = [
    # Version
    "__version__",
    # Config
    "get_settings",
    "configure_logging",
    # Core
    "LunarPhaseCalculator",
    "FishingConditionsAggregator",
    "FishingConditionsReport",
    "calculate_conditions",
]
