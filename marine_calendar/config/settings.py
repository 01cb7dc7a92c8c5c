"""
Marine Calendar System Configuration

系統全局配置，包括：
- 資料庫連線
- 漁況計算參數 (查詢上限、魚種上限、歷史窗口)
- 日誌設定
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Any, Tuple
from enum import Enum

from dotenv import load_dotenv

load_dotenv()


class Environment(Enum):
    """運行環境"""
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TEST = "test"


def _env_float(name: str) -> Optional[float]:
    value = os.getenv(name)
    return float(value) if value else None


@dataclass
class DatabaseConfig:
    """資料庫配置"""
    url: str = field(
        default_factory=lambda: os.getenv("MARINE_DATABASE_URL", "sqlite:///./marine_calendar.db")
    )
    echo: bool = field(
        default_factory=lambda: os.getenv("MARINE_DATABASE_ECHO", "false").lower() == "true"
    )


@dataclass
class ForecastConfig:
    """漁況計算配置"""
    # 各端點最大查詢天數
    max_conditions_days: int = 30
    max_lunar_days: int = 90
    max_migration_days: int = 180

    # 每日最多評估的魚種數
    max_species_per_day: int = 5
    species_workers: int = field(
        default_factory=lambda: int(os.getenv("MARINE_SPECIES_WORKERS", "4"))
    )

    # 歷史數據窗口
    history_window_days: int = 7
    history_years_back: Tuple[int, int] = (1, 3)  # (最近, 最遠)
    history_record_limit: int = 50
    correlation_min_records: int = 10
    history_radius_km: Optional[float] = field(
        default_factory=lambda: _env_float("MARINE_HISTORY_RADIUS_KM")
    )

    # 預設位置參數 (卡斯凱什沿岸)
    default_depths: List[float] = field(default_factory=lambda: [10, 20, 30, 50, 80, 120])
    default_bottom_type: str = "mixed"
    reference_coast: Tuple[float, float] = (38.6979, -9.4215)


@dataclass
class Settings:
    """
    主設定類

    集中管理所有系統配置，支持環境變數覆蓋。

    Example:
        >>> settings = Settings()
        >>> print(settings.database.url)
        >>> print(settings.forecast.max_species_per_day)
    """
    environment: Environment = field(
        default_factory=lambda: Environment(os.getenv("MARINE_ENV", "development"))
    )
    debug: bool = field(
        default_factory=lambda: os.getenv("MARINE_DEBUG", "false").lower() == "true"
    )

    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    forecast: ForecastConfig = field(default_factory=ForecastConfig)

    # 日誌設定
    log_level: str = field(
        default_factory=lambda: os.getenv("MARINE_LOG_LEVEL", "INFO")
    )
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    def to_dict(self) -> Dict[str, Any]:
        """轉換為字典（不含連線字串）"""
        return {
            "environment": self.environment.value,
            "debug": self.debug,
            "log_level": self.log_level,
            "database": {
                "backend": self.database.url.split(":", 1)[0]
            },
            "forecast": {
                "max_conditions_days": self.forecast.max_conditions_days,
                "max_lunar_days": self.forecast.max_lunar_days,
                "max_migration_days": self.forecast.max_migration_days,
                "max_species_per_day": self.forecast.max_species_per_day
            }
        }


# 全局設定實例
settings = Settings()


def get_settings() -> Settings:
    """獲取設定實例"""
    return settings


def configure_logging(level: Optional[str] = None) -> None:
    """配置日誌系統"""
    logging.basicConfig(
        level=getattr(logging, (level or settings.log_level).upper()),
        format=settings.log_format
    )

    # 設定第三方庫日誌級別
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
