"""
月相計算

以朔望月平均週期近似計算每日月相，並評估對漁獲的影響：
- 月相類型、月角與照明度
- 月地距離與視直徑 (月距級數主項)
- 月相影響力、魚群活躍度與建議釣具
- 每日最佳作業時段
- 近期新月/滿月/弦月時刻

所有計算皆為純函數，同一日期必得相同結果。
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Union
from datetime import date, datetime, time, timedelta, timezone
from enum import Enum
import logging
import math

logger = logging.getLogger(__name__)


# 朔望月平均長度 (日)
SYNODIC_MONTH = 29.530588853

# 參考新月 2000-01-06 18:14 UTC
REFERENCE_NEW_MOON = datetime(2000, 1, 6, 18, 14, tzinfo=timezone.utc)

# J2000.0 儒略日
J2000 = 2451545.0
UNIX_EPOCH_JD = 2440587.5

# 月球半徑 (km)
MOON_RADIUS_KM = 1737.4


def round_half_up(value: float, digits: int = 0) -> float:
    """四捨五入 (0.5 一律進位)"""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


class LunarPhaseType(Enum):
    """月相類型"""
    NEW_MOON = "NEW_MOON"
    WAXING_CRESCENT = "WAXING_CRESCENT"
    FIRST_QUARTER = "FIRST_QUARTER"
    WAXING_GIBBOUS = "WAXING_GIBBOUS"
    FULL_MOON = "FULL_MOON"
    WANING_GIBBOUS = "WANING_GIBBOUS"
    LAST_QUARTER = "LAST_QUARTER"
    WANING_CRESCENT = "WANING_CRESCENT"


class FishActivityLevel(Enum):
    """魚群活躍度"""
    VERY_LOW = "VERY_LOW"
    LOW = "LOW"
    MODERATE = "MODERATE"
    HIGH = "HIGH"
    VERY_HIGH = "VERY_HIGH"


PHASE_NAMES_ZH = {
    LunarPhaseType.NEW_MOON: "新月",
    LunarPhaseType.WAXING_CRESCENT: "眉月",
    LunarPhaseType.FIRST_QUARTER: "上弦月",
    LunarPhaseType.WAXING_GIBBOUS: "盈凸月",
    LunarPhaseType.FULL_MOON: "滿月",
    LunarPhaseType.WANING_GIBBOUS: "虧凸月",
    LunarPhaseType.LAST_QUARTER: "下弦月",
    LunarPhaseType.WANING_CRESCENT: "殘月",
}

# 各月相基礎影響力
PHASE_STRENGTH = {
    LunarPhaseType.NEW_MOON: 8.5,
    LunarPhaseType.WAXING_CRESCENT: 6.0,
    LunarPhaseType.FIRST_QUARTER: 7.5,
    LunarPhaseType.WAXING_GIBBOUS: 6.5,
    LunarPhaseType.FULL_MOON: 9.0,
    LunarPhaseType.WANING_GIBBOUS: 7.0,
    LunarPhaseType.LAST_QUARTER: 7.5,
    LunarPhaseType.WANING_CRESCENT: 5.5,
}

PHASE_DESCRIPTIONS = {
    LunarPhaseType.NEW_MOON: "新月夜色最暗，適合夜釣，魚群因光線微弱而積極覓食。",
    LunarPhaseType.WAXING_CRESCENT: "眉月期間魚群活躍度逐漸上升，傍晚時段尤佳。",
    LunarPhaseType.FIRST_QUARTER: "上弦月是出海的好時機，適度月光吸引餌魚聚集。",
    LunarPhaseType.WAXING_GIBBOUS: "盈凸月條件良好，魚群正為滿月的高峰活動做準備。",
    LunarPhaseType.FULL_MOON: "滿月為活動高峰，對魚群行為與浮游生物影響最大。",
    LunarPhaseType.WANING_GIBBOUS: "滿月過後魚群仍活躍，但強度逐漸減弱。",
    LunarPhaseType.LAST_QUARTER: "下弦月仍有不錯表現，適合經驗豐富的釣手。",
    LunarPhaseType.WANING_CRESCENT: "殘月期間需要更多耐心，但仍可能有意外收穫。",
}

ACTIVITY_DESCRIPTIONS = {
    FishActivityLevel.VERY_HIGH: "魚群極為活躍，幾乎任何擬餌都會咬。",
    FishActivityLevel.HIGH: "魚群活躍，有很好的機會獲得豐收。",
    FishActivityLevel.MODERATE: "活躍度中等，需要選對餌料。",
    FishActivityLevel.LOW: "活躍度偏低，建議耐心進行底釣。",
    FishActivityLevel.VERY_LOW: "活躍度極低，建議改期出海。",
}

# 月相 x 時段評分 (1-10)
TIME_OF_DAY_RATINGS = {
    LunarPhaseType.NEW_MOON: {"dawn": 8, "dusk": 9, "midnight": 10},
    LunarPhaseType.WAXING_CRESCENT: {"dawn": 6, "dusk": 7, "midnight": 5},
    LunarPhaseType.FIRST_QUARTER: {"dawn": 7, "dusk": 8, "midnight": 6},
    LunarPhaseType.WAXING_GIBBOUS: {"dawn": 6, "dusk": 7, "midnight": 7},
    LunarPhaseType.FULL_MOON: {"dawn": 7, "dusk": 8, "midnight": 10},
    LunarPhaseType.WANING_GIBBOUS: {"dawn": 7, "dusk": 8, "midnight": 7},
    LunarPhaseType.LAST_QUARTER: {"dawn": 8, "dusk": 7, "midnight": 6},
    LunarPhaseType.WANING_CRESCENT: {"dawn": 6, "dusk": 6, "midnight": 4},
}

BASE_TACKLE = ["路亞竿", "底釣釣組", "浮標釣竿"]


@dataclass
class LunarInfluence:
    """
    月相對漁獲的影響

    Attributes:
        strength: 影響力 (0.1 精度)
        description: 影響說明
        fish_activity: 魚群活躍度
        recommended_tackle: 建議釣具
    """
    strength: float
    description: str
    fish_activity: FishActivityLevel
    recommended_tackle: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return {
            "strength": self.strength,
            "description": self.description,
            "fish_activity": self.fish_activity.value,
            "recommended_tackle": self.recommended_tackle
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "LunarInfluence":
        return cls(
            strength=float(data["strength"]),
            description=data["description"],
            fish_activity=FishActivityLevel(data["fish_activity"]),
            recommended_tackle=list(data.get("recommended_tackle") or [])
        )


@dataclass
class LunarPhase:
    """
    單日月相

    Attributes:
        date: 日期
        phase_type: 月相類型
        angle: 月角 [0, 360)
        illumination: 照明度 (%)
        distance_km: 月地距離
        apparent_diameter: 視直徑 (度)
        influence: 漁獲影響
    """
    date: date
    phase_type: LunarPhaseType
    angle: float
    illumination: float
    distance_km: float
    apparent_diameter: float
    influence: Optional[LunarInfluence] = None

    @property
    def name_zh(self) -> str:
        return PHASE_NAMES_ZH[self.phase_type]

    def to_dict(self) -> Dict:
        return {
            "date": self.date.isoformat(),
            "phase_type": self.phase_type.value,
            "name_zh": self.name_zh,
            "angle": self.angle,
            "illumination": self.illumination,
            "distance_km": self.distance_km,
            "apparent_diameter": self.apparent_diameter,
            "influence": self.influence.to_dict() if self.influence else None
        }


@dataclass
class TimeWindow:
    """作業時段 (HH:MM，可跨午夜)"""
    start: time
    end: time
    description: str
    rating: int

    def label(self) -> str:
        return f"{self.start.strftime('%H:%M')}-{self.end.strftime('%H:%M')}"

    def to_dict(self) -> Dict:
        return {
            "start": self.start.strftime("%H:%M"),
            "end": self.end.strftime("%H:%M"),
            "description": self.description,
            "rating": self.rating
        }


@dataclass
class LunarEvents:
    """期間內的主要月相時刻"""
    new_moons: List[datetime] = field(default_factory=list)
    full_moons: List[datetime] = field(default_factory=list)
    quarters: List[datetime] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return {
            "new_moons": [d.isoformat() for d in self.new_moons],
            "full_moons": [d.isoformat() for d in self.full_moons],
            "quarters": [d.isoformat() for d in self.quarters]
        }


class LunarPhaseCalculator:
    """
    月相計算器

    以 2000-01-06 18:14 UTC 的新月為起點，依朔望月平均長度
    推算任意日期 (取當日 12:00 UTC) 的月相。

    Example:
        >>> calc = LunarPhaseCalculator()
        >>> phase = calc.calculate(date(2024, 1, 25))
        >>> print(phase.phase_type, phase.illumination)
    """

    def calculate(self, day: Union[date, datetime]) -> LunarPhase:
        """
        計算指定日期的月相 (含漁獲影響)

        Args:
            day: 日期；datetime 只取日期部分

        Returns:
            LunarPhase
        """
        if isinstance(day, datetime):
            day = day.date()

        noon = datetime.combine(day, time(12, 0), tzinfo=timezone.utc)
        days_since = (noon - REFERENCE_NEW_MOON).total_seconds() / 86400.0
        position = days_since % SYNODIC_MONTH

        angle = round_half_up(position / SYNODIC_MONTH * 360.0, 1) % 360.0
        illumination = round_half_up(50.0 * (1 - math.cos(math.radians(angle))), 1)
        illumination = min(100.0, max(0.0, illumination))

        distance_km = self._distance_km(noon)
        apparent_diameter = math.degrees(2 * math.atan(MOON_RADIUS_KM / distance_km))

        phase = LunarPhase(
            date=day,
            phase_type=self.phase_type_for_angle(angle),
            angle=angle,
            illumination=illumination,
            distance_km=round_half_up(distance_km, 1),
            apparent_diameter=round_half_up(apparent_diameter, 4)
        )
        phase.influence = self.calculate_influence(phase)
        return phase

    @staticmethod
    def phase_type_for_angle(angle: float) -> LunarPhaseType:
        """依月角 (45° 扇區) 判定月相類型"""
        a = angle % 360.0

        if a < 22.5 or a >= 337.5:
            return LunarPhaseType.NEW_MOON
        elif a < 67.5:
            return LunarPhaseType.WAXING_CRESCENT
        elif a < 112.5:
            return LunarPhaseType.FIRST_QUARTER
        elif a < 157.5:
            return LunarPhaseType.WAXING_GIBBOUS
        elif a < 202.5:
            return LunarPhaseType.FULL_MOON
        elif a < 247.5:
            return LunarPhaseType.WANING_GIBBOUS
        elif a < 292.5:
            return LunarPhaseType.LAST_QUARTER
        else:
            return LunarPhaseType.WANING_CRESCENT

    @staticmethod
    def _distance_km(moment: datetime) -> float:
        """月距級數主項：385000.56 - 20905.355·cos(M')"""
        jd = UNIX_EPOCH_JD + moment.timestamp() / 86400.0
        t = (jd - J2000) / 36525.0
        mean_anomaly = math.radians((134.9633964 + 477198.8675055 * t) % 360.0)
        return 385000.56 - 20905.355 * math.cos(mean_anomaly)

    def calculate_influence(self, phase: LunarPhase) -> LunarInfluence:
        """
        計算月相影響力

        基礎影響力乘以照明度係數：
        - 照明度 < 10% 或 > 90%：1.1
        - 照明度介於 45%-55%：0.9
        - 其他：1.0
        """
        strength = PHASE_STRENGTH[phase.phase_type]
        strength *= self._illumination_multiplier(phase.illumination)
        strength = round_half_up(strength, 1)

        activity = self.activity_for_strength(strength)

        return LunarInfluence(
            strength=strength,
            description=f"{PHASE_DESCRIPTIONS[phase.phase_type]}{ACTIVITY_DESCRIPTIONS[activity]}",
            fish_activity=activity,
            recommended_tackle=self._recommended_tackle(phase.phase_type, activity)
        )

    @staticmethod
    def _illumination_multiplier(illumination: float) -> float:
        if illumination < 10 or illumination > 90:
            return 1.1
        if 45 < illumination < 55:
            return 0.9
        return 1.0

    @staticmethod
    def activity_for_strength(strength: float) -> FishActivityLevel:
        """影響力 -> 魚群活躍度 (門檻 8.5/7.0/5.5/4.0)"""
        if strength >= 8.5:
            return FishActivityLevel.VERY_HIGH
        if strength >= 7.0:
            return FishActivityLevel.HIGH
        if strength >= 5.5:
            return FishActivityLevel.MODERATE
        if strength >= 4.0:
            return FishActivityLevel.LOW
        return FishActivityLevel.VERY_LOW

    @staticmethod
    def _recommended_tackle(
        phase_type: LunarPhaseType,
        activity: FishActivityLevel
    ) -> List[str]:
        if phase_type == LunarPhaseType.FULL_MOON:
            return BASE_TACKLE + ["夜釣裝備", "夜光擬餌", "靜音米諾"]

        if phase_type == LunarPhaseType.NEW_MOON:
            return BASE_TACKLE + ["亮色擬餌", "響珠米諾", "響珠鐵板"]

        if activity == FishActivityLevel.VERY_HIGH:
            return BASE_TACKLE + ["快速收線", "活潑擬餌", "拖釣"]

        if activity == FishActivityLevel.LOW:
            return ["底釣釣組", "慢速收線", "天然餌料", "籠釣"]

        return list(BASE_TACKLE)

    def best_fishing_hours(self, day: date, phase: LunarPhase) -> List[TimeWindow]:
        """
        當日最佳作業時段

        清晨 05:00-07:00 與黃昏 19:00-21:00 每日皆有；
        新月與滿月另加深夜 23:00-01:00。依評分由高到低排序。
        """
        ratings = TIME_OF_DAY_RATINGS[phase.phase_type]

        windows = [
            TimeWindow(time(5, 0), time(7, 0), "清晨活躍期", ratings["dawn"]),
            TimeWindow(time(19, 0), time(21, 0), "黃昏活躍期", ratings["dusk"]),
        ]

        if phase.phase_type in (LunarPhaseType.NEW_MOON, LunarPhaseType.FULL_MOON):
            windows.append(TimeWindow(
                time(23, 0), time(1, 0),
                f"深夜活躍期 ({phase.name_zh})",
                ratings["midnight"]
            ))

        return sorted(windows, key=lambda w: w.rating, reverse=True)

    def phases_for_period(self, start: date, end: date) -> List[LunarPhase]:
        """逐日計算期間內的月相 (含首尾)"""
        phases = []
        current = start
        while current <= end:
            phases.append(self.calculate(current))
            current += timedelta(days=1)
        return phases

    def upcoming_lunar_events(
        self,
        from_date: Union[date, datetime],
        days_ahead: int = 30
    ) -> LunarEvents:
        """
        近期的新月、滿月與上下弦月時刻

        以朔望月四分點推算 (平均值，誤差可達半日)。
        """
        if isinstance(from_date, datetime):
            start = from_date if from_date.tzinfo else from_date.replace(tzinfo=timezone.utc)
        else:
            start = datetime.combine(from_date, time(0, 0), tzinfo=timezone.utc)
        end = start + timedelta(days=days_ahead)

        quarter = SYNODIC_MONTH / 4
        elapsed = (start - REFERENCE_NEW_MOON).total_seconds() / 86400.0
        index = math.ceil(elapsed / quarter)

        events = LunarEvents()
        while True:
            moment = REFERENCE_NEW_MOON + timedelta(days=index * quarter)
            if moment > end:
                break

            kind = index % 4
            if kind == 0:
                events.new_moons.append(moment)
            elif kind == 2:
                events.full_moons.append(moment)
            else:
                events.quarters.append(moment)
            index += 1

        logger.debug(
            f"Lunar events {start.date()}..{end.date()}: "
            f"{len(events.new_moons)} new, {len(events.full_moons)} full"
        )
        return events
