"""
洄游機率模型

依魚種註冊表推算季節性洄游機率與洄游事件：
- 旺季隸屬度 (窗口內為 1，窗口外 15 天餘弦漸減至 0)
- 水溫係數 (月均水溫曲線，依年內日序內插)
- 位置係數 (洄游類型 x 離岸距離)
- 洄游事件 (抵達/高峰/離開)、篩選、分組、趨勢分析

曲線形狀皆為可替換的近似模型。
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple, Any, Iterable
from datetime import date, timedelta
from enum import Enum
import logging
import math

import numpy as np
import pandas as pd

from ..config import (
    Location,
    Species,
    SPECIES,
    MigrationType,
    normalize_species_code,
    best_locations_for
)
from ..exceptions import UnknownSpeciesError
from ..lunar import round_half_up

logger = logging.getLogger(__name__)


# 葡萄牙沿岸月均水溫 (°C)，1 月至 12 月
MONTHLY_WATER_TEMPERATURE = [15, 15, 16, 17, 18, 20, 22, 23, 22, 20, 18, 16]

# 各月 15 日的年內日序 (內插錨點)
_MONTH_ANCHORS = [date(2001, m, 15).timetuple().tm_yday for m in range(1, 13)]

# 旺季窗口外的漸減天數
TAPER_DAYS = 15


class MigrationEventType(Enum):
    """洄游事件類型"""
    ARRIVAL = "arrival"
    PEAK = "peak"
    DEPARTURE = "departure"


EVENT_TYPE_DESCRIPTIONS = {
    MigrationEventType.ARRIVAL: "抵達海域",
    MigrationEventType.PEAK: "活動高峰",
    MigrationEventType.DEPARTURE: "離開海域",
}

BASE_TACTICS = ["沿洄游路線拖釣", "使用魚探"]


@dataclass
class MigrationEvent:
    """
    洄游事件

    識別鍵為 (species, date, event_type, latitude, longitude)。
    """
    species: str
    event_type: MigrationEventType
    date: date
    probability: float
    latitude: float
    longitude: float
    location_name: Optional[str] = None
    water_temperature: Optional[float] = None
    depth: Optional[float] = None
    direction: Optional[str] = None
    description: Optional[str] = None
    data_source: str = "Migration Model"
    confidence: float = 0.75

    @property
    def key(self) -> Tuple[str, date, str, float, float]:
        return (self.species, self.date, self.event_type.value, self.latitude, self.longitude)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "species": self.species,
            "event_type": self.event_type.value,
            "date": self.date.isoformat(),
            "probability": self.probability,
            "location": {
                "latitude": self.latitude,
                "longitude": self.longitude,
                "name": self.location_name
            },
            "water_temperature": self.water_temperature,
            "depth": self.depth,
            "direction": self.direction,
            "description": self.description,
            "data_source": self.data_source,
            "confidence": self.confidence
        }


@dataclass
class MigrationRecommendation:
    """單一魚種在指定日期的洄游建議"""
    species: str
    probability: float
    recommended_depths: List[float]
    best_locations: List[str]
    tactics: List[str]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "species": self.species,
            "probability": self.probability,
            "recommended_depths": self.recommended_depths,
            "best_locations": self.best_locations,
            "tactics": self.tactics
        }


@dataclass
class SeasonalAvailability:
    """魚種季節可得性 (月份 1-12)"""
    species: str
    best_months: List[int] = field(default_factory=list)
    available_months: List[int] = field(default_factory=list)
    peak_periods: List[Dict[str, str]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "species": self.species,
            "best_months": self.best_months,
            "available_months": self.available_months,
            "peak_periods": self.peak_periods
        }


class MigrationProbabilityModel:
    """
    洄游機率模型

    機率 = 基礎機率 x 季節係數 x 水溫係數 x 位置係數，截斷至 [0, 1]：
    - 基礎機率 = 0.3 + 0.5 x m
    - 季節係數 = 0.6 + 0.4 x m
    其中 m 為旺季隸屬度。

    Example:
        >>> model = MigrationProbabilityModel()
        >>> rec = model.get_recommendation("TUNA", date(2024, 5, 20), location)
        >>> print(rec.probability)
    """

    def __init__(self, registry: Optional[Dict[str, Species]] = None):
        self.registry = registry if registry is not None else SPECIES

    def _species(self, code: str) -> Species:
        species = self.registry.get(normalize_species_code(code))
        if species is None:
            raise UnknownSpeciesError(code)
        return species

    # --------------------------------------------
    # 模型組件
    # --------------------------------------------

    def seasonal_membership(self, species: Species, day: date) -> float:
        """
        旺季隸屬度 (0-1)

        窗口內為 1；窗口外依距離以餘弦曲線在 TAPER_DAYS 天內降至 0。
        """
        best = 0.0
        for year in (day.year - 1, day.year, day.year + 1):
            for window in species.peak_windows:
                start, end = window.bounds(year)
                if start <= day <= end:
                    return 1.0

                gap = min(abs((day - start).days), abs((day - end).days))
                if gap < TAPER_DAYS:
                    best = max(best, 0.5 * (1 + math.cos(math.pi * gap / TAPER_DAYS)))
        return best

    @staticmethod
    def water_temperature(day: date) -> float:
        """季節水溫 (月均值依年內日序內插，跨年循環)"""
        doy = day.timetuple().tm_yday
        temp = np.interp(doy, _MONTH_ANCHORS, MONTHLY_WATER_TEMPERATURE, period=365)
        return round_half_up(float(temp), 1)

    @staticmethod
    def location_multiplier(species: Species, location: Location) -> float:
        """位置係數"""
        distance = location.distance_from_shore_km

        if species.migration == MigrationType.ANADROMOUS and distance < 5:
            return 1.3
        if species.migration == MigrationType.OCEANODROMOUS and distance > 10:
            return 1.2
        if species.migration == MigrationType.RESIDENT:
            return 1.1
        return 1.0

    def probability(
        self,
        species_code: str,
        day: date,
        location: Location,
        water_temperature: Optional[float] = None
    ) -> float:
        """
        洄游機率

        Args:
            species_code: 魚種代碼
            day: 日期
            location: 查詢位置
            water_temperature: 水溫，未提供則取季節水溫

        Returns:
            機率 [0, 1] (0.01 精度)

        Raises:
            UnknownSpeciesError: 未知魚種
        """
        species = self._species(species_code)
        membership = self.seasonal_membership(species, day)

        if water_temperature is None:
            water_temperature = self.water_temperature(day)

        base = 0.3 + 0.5 * membership
        season = 0.6 + 0.4 * membership
        temp = species.temperature.multiplier(water_temperature)
        loc = self.location_multiplier(species, location)

        value = min(1.0, max(0.0, base * season * temp * loc))
        return round_half_up(value, 2)

    # --------------------------------------------
    # 建議與事件
    # --------------------------------------------

    def get_recommendation(
        self,
        species_code: str,
        day: date,
        location: Location
    ) -> MigrationRecommendation:
        """
        指定魚種與日期的作業建議

        Raises:
            UnknownSpeciesError: 未知魚種
        """
        species = self._species(species_code)

        return MigrationRecommendation(
            species=species.code,
            probability=self.probability(species.code, day, location),
            recommended_depths=list(species.migration_depths),
            best_locations=best_locations_for(species.migration),
            tactics=self.tactics_for(species.migration)
        )

    @staticmethod
    def tactics_for(migration: MigrationType) -> List[str]:
        """依洄游類型的作業戰術"""
        if migration == MigrationType.ANADROMOUS:
            return BASE_TACTICS + ["於河口作業", "使用天然餌料"]
        if migration == MigrationType.OCEANODROMOUS:
            return BASE_TACTICS + ["深水拖釣", "追蹤魚群", "尋找海鳥群"]
        if migration == MigrationType.RESIDENT:
            return ["結構物旁作業", "研究海底地形", "固定釣點"]
        return list(BASE_TACTICS)

    def upcoming_events(
        self,
        start: date,
        end: date,
        location: Location,
        species_filter: Optional[Iterable[str]] = None
    ) -> List[MigrationEvent]:
        """
        期間內的洄游事件

        每個旺季窗口於請求涵蓋的每一年產生抵達 (窗口起日)、
        高峰 (中點)、離開 (窗口迄日) 三個事件，只保留落在
        [start, end] 內者。依機率遞減、日期遞增排序。

        Raises:
            UnknownSpeciesError: species_filter 含未知魚種
        """
        if species_filter:
            species_list = [self._species(code) for code in species_filter]
        else:
            species_list = list(self.registry.values())

        events: List[MigrationEvent] = []

        for species in species_list:
            for year in range(start.year, end.year + 1):
                for window in species.peak_windows:
                    window_start, window_end = window.bounds(year)
                    direction = (
                        species.spring_direction if window.start_month < 7
                        else species.autumn_direction
                    )

                    for event_type, event_date in (
                        (MigrationEventType.ARRIVAL, window_start),
                        (MigrationEventType.PEAK, window.midpoint(year)),
                        (MigrationEventType.DEPARTURE, window_end),
                    ):
                        if not (start <= event_date <= end):
                            continue

                        water_temp = self.water_temperature(event_date)
                        events.append(MigrationEvent(
                            species=species.code,
                            event_type=event_type,
                            date=event_date,
                            probability=self.probability(
                                species.code, event_date, location, water_temp
                            ),
                            latitude=location.latitude,
                            longitude=location.longitude,
                            location_name=location.name,
                            water_temperature=water_temp,
                            depth=species.migration_depths[0],
                            direction=direction,
                            description=f"{window.description} - {EVENT_TYPE_DESCRIPTIONS[event_type]}"
                        ))

        logger.debug(f"Computed {len(events)} migration events for {start}..{end}")
        return sort_events(events)

    def seasonal_availability(self, species_code: str) -> SeasonalAvailability:
        """魚種的可作業月份與最佳月份"""
        species = self._species(species_code)

        best_months: List[int] = []
        available_months: List[int] = []

        for window in species.peak_windows:
            month = window.start_month
            while True:
                if month not in available_months:
                    available_months.append(month)
                if month == window.end_month:
                    break
                month = month % 12 + 1

            mid = int(round_half_up((window.start_month + window.end_month) / 2))
            if mid not in best_months:
                best_months.append(mid)

        return SeasonalAvailability(
            species=species.code,
            best_months=best_months,
            available_months=available_months,
            peak_periods=[
                {
                    "start": f"{w.start_month:02d}-{w.start_day:02d}",
                    "end": f"{w.end_month:02d}-{w.end_day:02d}",
                    "description": w.description
                }
                for w in species.peak_windows
            ]
        )


# ============================================
# 事件後處理
# ============================================

def sort_events(events: List[MigrationEvent]) -> List[MigrationEvent]:
    """依機率遞減、日期遞增排序 (穩定)"""
    return sorted(events, key=lambda e: (-e.probability, e.date))


def filter_events(
    events: List[MigrationEvent],
    event_types: Optional[Iterable[str]] = None,
    min_probability: Optional[float] = None
) -> List[MigrationEvent]:
    """依事件類型與最低機率篩選"""
    allowed = set(event_types) if event_types else {t.value for t in MigrationEventType}

    return [
        e for e in events
        if e.event_type.value in allowed
        and (min_probability is None or e.probability >= min_probability)
    ]


def merge_events(
    computed: List[MigrationEvent],
    stored: List[MigrationEvent]
) -> List[MigrationEvent]:
    """合併計算與已儲存事件，同一識別鍵以已儲存者為準"""
    merged = {e.key: e for e in computed}
    for event in stored:
        merged[event.key] = event
    return sort_events(list(merged.values()))


def group_events_by_date(events: List[MigrationEvent]) -> Dict[str, List[Dict[str, Any]]]:
    """依日期分組 (保持輸入順序)"""
    grouped: Dict[str, List[Dict[str, Any]]] = {}
    for event in events:
        grouped.setdefault(event.date.isoformat(), []).append(event.to_dict())
    return grouped


def migration_recommendations(
    events: List[MigrationEvent],
    location: Location,
    today: Optional[date] = None
) -> List[str]:
    """
    洄游作業建議 (最多 5 則)

    Args:
        events: 已排序的事件
        location: 查詢位置
        today: 判斷當季用的日期，預設今天
    """
    today = today or date.today()
    recommendations = []

    top = events[:3]
    if top:
        recommendations.append(
            "最可能的洄游：" + "、".join(
                f"{e.species.lower().replace('_', ' ')} ({int(round_half_up(e.probability * 100))}%)"
                for e in top
            )
        )

    depths = sorted(e.depth for e in events if e.depth)
    if depths:
        avg_depth = sum(depths) / len(depths)
        recommendations.append(
            f"建議作業深度：{int(round_half_up(avg_depth))}m "
            f"(範圍 {depths[0]:g}-{depths[-1]:g}m)"
        )

    def month_gap(m: int) -> int:
        diff = abs(m - today.month)
        return min(diff, 12 - diff)

    if any(month_gap(e.date.month) <= 1 for e in events):
        recommendations.append("目前季節有利於洄游活動")

    if location.distance_from_shore_km < 5:
        recommendations.append("近岸水域：留意溯河性魚種 (歐洲鱸魚、沙丁魚)")
    elif location.distance_from_shore_km > 15:
        recommendations.append("深水區域：鎖定大洋性魚種 (鮪魚、金頭鯛、槍魚)")

    return recommendations[:5]


def analyze_migration_trends(events: List[MigrationEvent]) -> Dict[str, Any]:
    """
    洄游趨勢分析

    Returns:
        peak_activity: 事件最多的月份
        dominant_species: 前 5 名魚種與占比 (%)
        seasonal_distribution: 各月事件數
        event_type_distribution: 各事件類型數
    """
    if not events:
        return {
            "peak_activity": None,
            "dominant_species": [],
            "seasonal_distribution": {},
            "event_type_distribution": {}
        }

    df = pd.DataFrame([
        {
            "species": e.species,
            "month": e.date.month,
            "event_type": e.event_type.value
        }
        for e in events
    ])

    month_counts = df.groupby("month", sort=False).size()
    peak = month_counts.sort_values(ascending=False, kind="stable")

    species_counts = (
        df.groupby("species", sort=False).size()
        .sort_values(ascending=False, kind="stable")
        .head(5)
    )

    return {
        "peak_activity": {
            "month": int(peak.index[0]),
            "event_count": int(peak.iloc[0])
        },
        "dominant_species": [
            {
                "species": species,
                "percentage": int(round_half_up(count / len(df) * 100))
            }
            for species, count in species_counts.items()
        ],
        "seasonal_distribution": {
            int(month): int(count) for month, count in month_counts.sort_index().items()
        },
        "event_type_distribution": {
            str(t): int(c) for t, c in df.groupby("event_type", sort=False).size().items()
        }
    }
