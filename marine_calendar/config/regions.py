"""
漁場與位置定義

定義卡斯凱什 (葡萄牙大西洋沿岸) 的作業位置，包括：
- 查詢位置 (Location) 與離岸距離推算
- 主要命名漁場 (供推薦與模擬資料使用)
- 依洄游類型的推薦作業區
"""

import math
from dataclasses import dataclass, field
from typing import Dict, List, Tuple, Optional

import numpy as np

from .settings import get_settings
from .species import MigrationType


# 每緯度約 111 公里
KM_PER_DEGREE = 111.0


def haversine_distance(
    lat1: float, lon1: float,
    lat2: float, lon2: float
) -> float:
    """
    計算兩點間的大圓距離

    Returns:
        距離 (公里)
    """
    R = 6371.0  # 地球半徑 (km)

    lat1, lon1, lat2, lon2 = map(np.radians, [lat1, lon1, lat2, lon2])
    dlat = lat2 - lat1
    dlon = lon2 - lon1

    a = np.sin(dlat / 2) ** 2 + np.cos(lat1) * np.cos(lat2) * np.sin(dlon / 2) ** 2
    c = 2 * np.arcsin(np.sqrt(a))

    return float(R * c)


def distance_from_shore(
    lat: float,
    lon: float,
    coast: Optional[Tuple[float, float]] = None
) -> float:
    """
    估算離岸距離

    以參考海岸點的平面距離近似 (每度 111 km)，最小 0.5 km。

    Args:
        lat: 緯度
        lon: 經度
        coast: 參考海岸點 (lat, lon)，預設取設定值

    Returns:
        離岸距離 (公里，0.1 精度)
    """
    coast_lat, coast_lon = coast or get_settings().forecast.reference_coast
    distance = math.sqrt((lat - coast_lat) ** 2 + (lon - coast_lon) ** 2) * KM_PER_DEGREE
    return max(0.5, math.floor(distance * 10 + 0.5) / 10)


@dataclass
class Location:
    """
    查詢位置

    Attributes:
        latitude: 緯度
        longitude: 經度
        name: 顯示名稱
        depths: 深度分層 (m)
        bottom_type: 底質
        distance_from_shore_km: 離岸距離 (自座標推算)
    """
    latitude: float
    longitude: float
    name: str
    depths: List[float] = field(default_factory=list)
    bottom_type: str = "mixed"
    distance_from_shore_km: float = 0.5

    @classmethod
    def from_coordinates(
        cls,
        latitude: float,
        longitude: float,
        name: Optional[str] = None
    ) -> "Location":
        """由座標建立位置，套用預設深度與底質"""
        forecast = get_settings().forecast
        return cls(
            latitude=latitude,
            longitude=longitude,
            name=name or f"座標 {latitude:.4f}, {longitude:.4f}",
            depths=list(forecast.default_depths),
            bottom_type=forecast.default_bottom_type,
            distance_from_shore_km=distance_from_shore(latitude, longitude)
        )

    def to_dict(self) -> Dict:
        return {
            "latitude": self.latitude,
            "longitude": self.longitude,
            "name": self.name,
            "depths": self.depths,
            "bottom_type": self.bottom_type,
            "distance_from_shore_km": self.distance_from_shore_km
        }


@dataclass
class FishingGround:
    """
    命名漁場

    Attributes:
        id: 識別碼
        name: 中文名稱
        name_en: 英文名稱
        center: 中心座標 (lat, lon)
        spread: 模擬資料的座標散佈 (度)
        weight: 被選中的相對權重
        typical_depth: 典型水深 (m)
    """
    id: str
    name: str
    name_en: str
    center: Tuple[float, float]
    spread: float = 0.02
    weight: float = 1.0
    typical_depth: float = 30.0


# ============================================
# 預定義漁場 (卡斯凱什周邊)
# ============================================

FISHING_GROUNDS: Dict[str, FishingGround] = {
    "cascais_bank": FishingGround(
        id="cascais_bank",
        name="卡斯凱什淺灘",
        name_en="Cascais Bank",
        center=(38.67, -9.45),
        spread=0.03,
        weight=0.35,
        typical_depth=30.0
    ),
    "cabo_da_roca": FishingGround(
        id="cabo_da_roca",
        name="羅卡角礁區",
        name_en="Cabo da Roca Reefs",
        center=(38.78, -9.52),
        spread=0.02,
        weight=0.25,
        typical_depth=40.0
    ),
    "lisbon_canyon": FishingGround(
        id="lisbon_canyon",
        name="深海峽谷",
        name_en="Lisbon Canyon",
        center=(38.55, -9.55),
        spread=0.05,
        weight=0.2,
        typical_depth=150.0
    ),
    "estoril_coast": FishingGround(
        id="estoril_coast",
        name="埃斯托里爾沿岸",
        name_en="Estoril Coastal Zone",
        center=(38.69, -9.38),
        spread=0.015,
        weight=0.2,
        typical_depth=15.0
    ),
}


def best_locations_for(migration: MigrationType) -> List[str]:
    """
    依洄游類型推薦作業區

    Args:
        migration: 洄游類型

    Returns:
        推薦區域名稱列表
    """
    base = [g.name for g in FISHING_GROUNDS.values()]

    if migration == MigrationType.ANADROMOUS:
        return ["河口", "潟湖", "沿岸海灣"] + base[:2]
    if migration == MigrationType.OCEANODROMOUS:
        return ["外海", "大陸棚"] + base
    return base
