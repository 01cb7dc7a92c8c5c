"""
潮汐近似

以日序與時刻產生的合成潮汐模型，非天文潮汐預報：
- tide_phase = (年內日序 + 小時 × 0.5) mod 12
- 潮高 = 1.5 + 1.2 × sin(2π × tide_phase / 12) (約 0.3-2.7 m)
- 潮汐強度 = |sin(tide_phase)| × 10

可直接替換為真實潮汐表來源，介面不變。
"""

from dataclasses import dataclass
from typing import Dict, Optional, Union
from datetime import date, datetime, time, timedelta
from enum import Enum
import math

from ..config import Location
from ..lunar import round_half_up


class TideType(Enum):
    HIGH_TIDE = "HIGH_TIDE"
    LOW_TIDE = "LOW_TIDE"


class FishingImpact(Enum):
    POSITIVE = "POSITIVE"
    NEGATIVE = "NEGATIVE"
    NEUTRAL = "NEUTRAL"


@dataclass
class TidalInfluence:
    """
    潮汐影響

    Attributes:
        tide_type: 漲潮/退潮
        height: 潮高 (m，0.1 精度)
        strength: 強度 (0-10)
        next_change: 下次轉潮時刻
        fishing_impact: 對漁獲的影響
    """
    tide_type: TideType
    height: float
    strength: int
    next_change: datetime
    fishing_impact: FishingImpact

    def to_dict(self) -> Dict:
        return {
            "type": self.tide_type.value,
            "height": self.height,
            "strength": self.strength,
            "next_change": self.next_change.isoformat(),
            "fishing_impact": self.fishing_impact.value
        }


class TidalApproximator:
    """
    合成潮汐模型

    Example:
        >>> tides = TidalApproximator()
        >>> tides.approximate(date(2024, 6, 1)).tide_type
    """

    HALF_CYCLE_HOURS = 6
    POSITIVE_HEIGHT = 2.0
    NEGATIVE_HEIGHT = 0.8

    def approximate(
        self,
        moment: Union[date, datetime],
        location: Optional[Location] = None
    ) -> TidalInfluence:
        """
        估算指定時刻的潮汐狀態

        Args:
            moment: 日期 (視為當日 00:00) 或時刻
            location: 查詢位置 (目前模型不依位置變化)

        Returns:
            TidalInfluence
        """
        if not isinstance(moment, datetime):
            moment = datetime.combine(moment, time(0, 0))

        day_of_year = moment.timetuple().tm_yday
        tide_phase = (day_of_year + moment.hour * 0.5) % 12

        height = 1.5 + math.sin(tide_phase / 12 * 2 * math.pi) * 1.2

        if height > self.POSITIVE_HEIGHT:
            impact = FishingImpact.POSITIVE
        elif height < self.NEGATIVE_HEIGHT:
            impact = FishingImpact.NEGATIVE
        else:
            impact = FishingImpact.NEUTRAL

        return TidalInfluence(
            tide_type=TideType.HIGH_TIDE if tide_phase < 6 else TideType.LOW_TIDE,
            height=round_half_up(height, 1),
            strength=int(round_half_up(abs(math.sin(tide_phase)) * 10)),
            next_change=moment + timedelta(hours=self.HALF_CYCLE_HOURS),
            fishing_impact=impact
        )
