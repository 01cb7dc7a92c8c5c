"""
魚種定義與洄游特性

定義各目標魚種的：
- 洄游模式與方向
- 旺季窗口 (月/日)
- 偏好深度與水溫
- 建議餌料

新增魚種只需在 SPECIES 註冊表中加入一筆資料。
"""

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Dict, List, Tuple
from enum import Enum

from ..exceptions import UnknownSpeciesError


class MigrationType(Enum):
    """洄游類型"""
    ANADROMOUS = "anadromous"         # 由海入河口
    OCEANODROMOUS = "oceanodromous"   # 大洋內洄游
    RESIDENT = "resident"             # 定棲性


@dataclass
class PeakWindow:
    """
    旺季窗口

    以月/日表示，套用到任意年份；窗口不跨年 (結束日不得早於開始日)。
    窗口外的遞減由洄游模型以前後年份的窗口計算。
    """
    start_month: int
    start_day: int
    end_month: int
    end_day: int
    description: str = ""

    def __post_init__(self):
        if (self.end_month, self.end_day) < (self.start_month, self.start_day):
            raise ValueError(
                f"Peak window {self.start_month}/{self.start_day}-"
                f"{self.end_month}/{self.end_day} crosses the year end"
            )

    def bounds(self, year: int) -> Tuple[date, date]:
        """指定年份的 (開始日, 結束日)"""
        return (
            date(year, self.start_month, self.start_day),
            date(year, self.end_month, self.end_day)
        )

    def midpoint(self, year: int) -> date:
        """指定年份的窗口中點"""
        start, end = self.bounds(year)
        return start + timedelta(days=(end - start).days // 2)


@dataclass
class TemperatureRange:
    """水溫偏好 (°C)"""
    min_temp: float
    max_temp: float
    optimal_temp: float

    def multiplier(self, water_temp: float) -> float:
        """
        洄游機率的水溫修正係數

        最佳水溫 ±2°C 給予 1.2，可接受範圍內 1.0，
        範圍外依偏離程度遞減，最低 0.3。
        """
        if self.min_temp <= water_temp <= self.max_temp:
            if abs(water_temp - self.optimal_temp) <= 2:
                return 1.2
            return 1.0

        deviation = min(
            abs(water_temp - self.min_temp),
            abs(water_temp - self.max_temp)
        )
        return max(0.3, 1.0 - deviation / 10)


@dataclass
class Species:
    """
    魚種定義

    Attributes:
        code: 魚種代碼 (大寫，例如 TUNA)
        name_zh: 中文名
        name_en: 英文名
        name_scientific: 學名
        migration: 洄游類型
        spring_direction: 春季洄游方向
        autumn_direction: 秋季洄游方向
        peak_windows: 旺季窗口
        migration_depths: 洄游期間常見深度 (m)
        temperature: 水溫偏好
        baits: 建議餌料
    """
    code: str
    name_zh: str
    name_en: str
    name_scientific: str
    migration: MigrationType
    spring_direction: str
    autumn_direction: str
    peak_windows: List[PeakWindow]
    migration_depths: List[float]
    temperature: TemperatureRange = field(
        default_factory=lambda: TemperatureRange(15.0, 25.0, 20.0)
    )
    baits: List[str] = field(default_factory=lambda: ["通用擬餌", "天然餌料"])

    @property
    def display_name(self) -> str:
        """推薦文字中使用的名稱"""
        return self.code.lower().replace("_", " ")

    def to_dict(self) -> Dict:
        return {
            "code": self.code,
            "name_zh": self.name_zh,
            "name_en": self.name_en,
            "name_scientific": self.name_scientific,
            "migration": self.migration.value,
            "spring_direction": self.spring_direction,
            "autumn_direction": self.autumn_direction,
            "peak_windows": [
                {
                    "start": f"{w.start_month:02d}-{w.start_day:02d}",
                    "end": f"{w.end_month:02d}-{w.end_day:02d}",
                    "description": w.description
                }
                for w in self.peak_windows
            ],
            "migration_depths": self.migration_depths,
            "temperature": {
                "min": self.temperature.min_temp,
                "max": self.temperature.max_temp,
                "optimal": self.temperature.optimal_temp
            }
        }


def _resident(code: str, name_zh: str, name_en: str, name_scientific: str) -> Species:
    """一般定棲魚種的預設資料"""
    return Species(
        code=code,
        name_zh=name_zh,
        name_en=name_en,
        name_scientific=name_scientific,
        migration=MigrationType.RESIDENT,
        spring_direction="往沿岸移動",
        autumn_direction="退往深水區",
        peak_windows=[PeakWindow(5, 1, 10, 30, "活躍期")],
        migration_depths=[20, 40, 60]
    )


# ============================================
# 預定義魚種 (卡斯凱什 / 葡萄牙大西洋沿岸)
# ============================================

SPECIES: Dict[str, Species] = {
    "SEABASS": Species(
        code="SEABASS",
        name_zh="歐洲鱸魚",
        name_en="European Seabass",
        name_scientific="Dicentrarchus labrax",
        migration=MigrationType.ANADROMOUS,
        spring_direction="進入河口與潟湖",
        autumn_direction="返回外海",
        peak_windows=[
            PeakWindow(4, 15, 6, 30, "產卵洄游"),
            PeakWindow(10, 15, 12, 30, "返回外海")
        ],
        migration_depths=[5, 15, 25],
        temperature=TemperatureRange(10.0, 24.0, 17.0),
        baits=["活蝦", "沙蠶", "軟餌"]
    ),
    "DORADO": Species(
        code="DORADO",
        name_zh="金頭鯛",
        name_en="Gilthead Seabream",
        name_scientific="Sparus aurata",
        migration=MigrationType.OCEANODROMOUS,
        spring_direction="隨洋流北上",
        autumn_direction="南大西洋水域",
        peak_windows=[
            PeakWindow(6, 1, 8, 31, "葡萄牙沿岸高峰"),
            PeakWindow(10, 1, 11, 30, "秋季過境")
        ],
        migration_depths=[20, 40, 60],
        temperature=TemperatureRange(20.0, 28.0, 24.0),
        baits=["魷魚", "亮色擬餌", "鉛頭鉤"]
    ),
    "SEABREAM": Species(
        code="SEABREAM",
        name_zh="白鯛",
        name_en="White Seabream",
        name_scientific="Diplodus sargus",
        migration=MigrationType.RESIDENT,
        spring_direction="沿岸礁區局部移動",
        autumn_direction="深水越冬區",
        peak_windows=[PeakWindow(5, 1, 10, 30, "活躍季")],
        migration_depths=[10, 20, 30, 40]
    ),
    "MACKEREL": Species(
        code="MACKEREL",
        name_zh="大西洋鯖",
        name_en="Atlantic Mackerel",
        name_scientific="Scomber scombrus",
        migration=MigrationType.OCEANODROMOUS,
        spring_direction="靠岸產卵",
        autumn_direction="退往外洋",
        peak_windows=[
            PeakWindow(4, 1, 7, 30, "產卵洄游"),
            PeakWindow(9, 1, 11, 15, "退往外洋")
        ],
        migration_depths=[15, 25, 35, 45],
        temperature=TemperatureRange(12.0, 20.0, 16.0),
        baits=["小魚", "羽毛鉛頭鉤", "湯匙亮片"]
    ),
    "SARDINE": Species(
        code="SARDINE",
        name_zh="歐洲沙丁魚",
        name_en="European Pilchard",
        name_scientific="Sardina pilchardus",
        migration=MigrationType.OCEANODROMOUS,
        spring_direction="沿海岸北上",
        autumn_direction="南下往非洲沿岸",
        peak_windows=[
            PeakWindow(3, 15, 5, 30, "春季魚汛"),
            PeakWindow(10, 1, 12, 15, "秋季聚集")
        ],
        migration_depths=[10, 20, 30],
        temperature=TemperatureRange(14.0, 22.0, 18.0),
        baits=["浮游生物仿餌", "小型湯匙亮片"]
    ),
    "TUNA": Species(
        code="TUNA",
        name_zh="大西洋黑鮪",
        name_en="Atlantic Bluefin Tuna",
        name_scientific="Thunnus thynnus",
        migration=MigrationType.OCEANODROMOUS,
        spring_direction="北上往斯堪地那維亞",
        autumn_direction="南下往地中海",
        peak_windows=[
            PeakWindow(5, 1, 6, 15, "春季北上洄游"),
            PeakWindow(9, 15, 11, 30, "秋季南下洄游")
        ],
        migration_depths=[20, 30, 40, 50],
        temperature=TemperatureRange(18.0, 26.0, 22.0),
        baits=["活鯖魚", "大型硬餌", "旋轉亮片"]
    ),
    "ALBACORE": Species(
        code="ALBACORE",
        name_zh="長鰭鮪",
        name_en="Albacore",
        name_scientific="Thunnus alalunga",
        migration=MigrationType.OCEANODROMOUS,
        spring_direction="追隨浮游生物北上",
        autumn_direction="亞熱帶水域",
        peak_windows=[PeakWindow(7, 1, 10, 30, "葡萄牙外海高峰")],
        migration_depths=[40, 60, 80, 100]
    ),
    "BONITO": Species(
        code="BONITO",
        name_zh="大西洋狐鰹",
        name_en="Atlantic Bonito",
        name_scientific="Sarda sarda",
        migration=MigrationType.OCEANODROMOUS,
        spring_direction="沿海岸北上",
        autumn_direction="南下往暖水區",
        peak_windows=[PeakWindow(6, 1, 9, 30, "夏季漁期")],
        migration_depths=[20, 30, 50]
    ),
    "SWORDFISH": Species(
        code="SWORDFISH",
        name_zh="劍旗魚",
        name_en="Swordfish",
        name_scientific="Xiphias gladius",
        migration=MigrationType.OCEANODROMOUS,
        spring_direction="靠近大陸棚",
        autumn_direction="深海區",
        peak_windows=[PeakWindow(6, 15, 10, 15, "夏季近岸活動")],
        migration_depths=[100, 200, 300, 500],
        temperature=TemperatureRange(18.0, 28.0, 23.0)
    ),
    "MAHI_MAHI": _resident("MAHI_MAHI", "鬼頭刀", "Mahi-mahi", "Coryphaena hippurus"),
    "BLUE_MARLIN": Species(
        code="BLUE_MARLIN",
        name_zh="大西洋藍槍魚",
        name_en="Atlantic Blue Marlin",
        name_scientific="Makaira nigricans",
        migration=MigrationType.OCEANODROMOUS,
        spring_direction="北大西洋",
        autumn_direction="熱帶水域",
        peak_windows=[PeakWindow(7, 1, 9, 30, "夏季出現")],
        migration_depths=[50, 100, 150, 200],
        temperature=TemperatureRange(22.0, 30.0, 26.0)
    ),
    "WHITE_MARLIN": _resident("WHITE_MARLIN", "白槍魚", "White Marlin", "Kajikia albida"),
    "SAILFISH": _resident("SAILFISH", "雨傘旗魚", "Atlantic Sailfish", "Istiophorus albicans"),
    "GROUPER": Species(
        code="GROUPER",
        name_zh="褐石斑",
        name_en="Dusky Grouper",
        name_scientific="Epinephelus marginatus",
        migration=MigrationType.RESIDENT,
        spring_direction="往礁區繁殖",
        autumn_direction="深水藏身處",
        peak_windows=[PeakWindow(4, 15, 7, 15, "繁殖期")],
        migration_depths=[30, 50, 80, 120]
    ),
    "RED_SNAPPER": _resident("RED_SNAPPER", "赤鯛", "Red Porgy", "Pagrus pagrus"),
    "JOHN_DORY": _resident("JOHN_DORY", "遠東海魴", "John Dory", "Zeus faber"),
    "SOLE": _resident("SOLE", "歐洲鰨", "Common Sole", "Solea solea"),
    "TURBOT": _resident("TURBOT", "大菱鮃", "Turbot", "Scophthalmus maximus"),
    "AMBERJACK": _resident("AMBERJACK", "杜氏鰤", "Greater Amberjack", "Seriola dumerili"),
    "CONGER_EEL": _resident("CONGER_EEL", "歐洲康吉鰻", "European Conger", "Conger conger"),
    "OCTOPUS": _resident("OCTOPUS", "真蛸", "Common Octopus", "Octopus vulgaris"),
    "CUTTLEFISH": _resident("CUTTLEFISH", "烏賊", "Common Cuttlefish", "Sepia officinalis"),
    "MIXED_SPECIES": _resident("MIXED_SPECIES", "混合魚種", "Mixed Species", "-"),
}


def normalize_species_code(code: str) -> str:
    """統一魚種代碼格式 (去空白、大寫)"""
    return code.strip().upper()


def get_species(code: str) -> Species:
    """
    根據代碼獲取魚種定義

    Args:
        code: 魚種代碼 (大小寫不拘)

    Returns:
        魚種定義

    Raises:
        UnknownSpeciesError: 代碼不在註冊表中
    """
    species = SPECIES.get(normalize_species_code(code))
    if species is None:
        raise UnknownSpeciesError(code)
    return species


def is_known_species(code: str) -> bool:
    return normalize_species_code(code) in SPECIES


def list_all_species() -> List[Dict]:
    """
    列出所有魚種摘要

    Returns:
        魚種摘要列表
    """
    return [
        {
            "code": s.code,
            "name_zh": s.name_zh,
            "name_en": s.name_en,
            "name_scientific": s.name_scientific,
            "migration": s.migration.value,
            "migration_depths": s.migration_depths
        }
        for s in SPECIES.values()
    ]
