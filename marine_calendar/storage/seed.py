"""
模擬漁獲紀錄生成器

在沒有真實出海紀錄時，以統計模擬產生合理的歷史漁獲，
用於開發、展示與歷史相關性分析的驗證。

注意：正式環境應使用真實出海回報。
"""

import logging
from datetime import date, datetime, time, timedelta
from typing import Dict, List, Optional
import calendar
import random

import numpy as np

from ..config import FISHING_GROUNDS, FishingGround, get_species
from ..lunar import LunarPhaseCalculator
from ..algorithms.migration import MigrationProbabilityModel
from .models import CatchEntry, CatchRecord

logger = logging.getLogger(__name__)


# 單尾平均重量 (kg)，用於模擬
MEAN_FISH_WEIGHT: Dict[str, float] = {
    "SEABASS": 1.5,
    "DORADO": 0.8,
    "SEABREAM": 0.6,
    "MACKEREL": 0.4,
    "SARDINE": 0.1,
    "TUNA": 40.0,
    "BONITO": 2.5,
}

DEFAULT_SEED_SPECIES = ["SEABASS", "DORADO", "SEABREAM", "MACKEREL", "SARDINE", "TUNA", "BONITO"]

ANGLERS = [f"Angler-{i:02d}" for i in range(1, 21)]


class CatchRecordGenerator:
    """
    漁獲紀錄生成器

    漁獲量受月相影響力、魚種旺季與漁場權重影響。

    Example:
        >>> generator = CatchRecordGenerator(seed=42)
        >>> records = generator.generate(date(2022, 1, 1), date(2024, 12, 31))
        >>> print(f"Generated {len(records)} records")
    """

    def __init__(
        self,
        seed: Optional[int] = None,
        calculator: Optional[LunarPhaseCalculator] = None,
        migration_model: Optional[MigrationProbabilityModel] = None
    ):
        """
        Args:
            seed: 隨機種子 (用於可重複性)
        """
        if seed is not None:
            random.seed(seed)
            np.random.seed(seed)

        self.calculator = calculator or LunarPhaseCalculator()
        self.migration_model = migration_model or MigrationProbabilityModel()

    def generate(
        self,
        start_date: date,
        end_date: date,
        species: Optional[List[str]] = None,
        avg_trips_per_month: int = 8
    ) -> List[CatchRecord]:
        """
        生成期間內的漁獲紀錄

        Args:
            start_date: 起始日期
            end_date: 結束日期
            species: 目標魚種代碼
            avg_trips_per_month: 每月平均出海次數

        Returns:
            依日期排序的 CatchRecord 列表
        """
        species = [get_species(s).code for s in (species or DEFAULT_SEED_SPECIES)]
        records = []

        year, month = start_date.year, start_date.month
        while date(year, month, 1) <= end_date:
            days_in_month = calendar.monthrange(year, month)[1]
            n_trips = max(1, int(np.random.poisson(avg_trips_per_month)))

            for _ in range(n_trips):
                trip_day = date(year, month, random.randint(1, days_in_month))
                if start_date <= trip_day <= end_date:
                    records.append(self._generate_trip(trip_day, species))

            if month == 12:
                year, month = year + 1, 1
            else:
                month += 1

        records.sort(key=lambda r: r.date)
        logger.info(f"Generated {len(records)} catch records from {start_date} to {end_date}")
        return records

    def _generate_trip(self, trip_day: date, species: List[str]) -> CatchRecord:
        """生成單次出海紀錄"""
        ground = self._select_ground()
        lat = ground.center[0] + random.uniform(-ground.spread, ground.spread)
        lon = ground.center[1] + random.uniform(-ground.spread, ground.spread)

        phase = self.calculator.calculate(trip_day)
        lunar_factor = phase.influence.strength / 7.0

        start_hour = random.choice([5, 6, 7, 17, 18, 19, 22])
        started_at = datetime.combine(trip_day, time(start_hour, random.choice([0, 15, 30, 45])))

        targets = random.sample(species, k=min(len(species), random.randint(1, 3)))
        catches = []

        for code in targets:
            membership = self.migration_model.seasonal_membership(get_species(code), trip_day)
            seasonal_factor = 0.7 + 0.8 * membership

            count = int(np.random.poisson(3 * lunar_factor * seasonal_factor))
            if count == 0:
                continue

            mean_weight = MEAN_FISH_WEIGHT.get(code, 1.0)
            weight = float(np.sum(np.random.lognormal(np.log(mean_weight), 0.35, size=count)))

            catches.append(CatchEntry(
                species=code,
                count=count,
                weight=round(weight, 2),
                depth=random.choice(get_species(code).migration_depths),
                bait=random.choice(get_species(code).baits)
            ))

        # 某些航次沒有漁獲
        if random.random() < 0.1:
            catches = []

        water_temp = self.migration_model.water_temperature(trip_day) + np.random.normal(0, 0.8)

        return CatchRecord(
            date=started_at,
            latitude=round(lat, 4),
            longitude=round(lon, 4),
            location_name=ground.name,
            angler=random.choice(ANGLERS),
            total_weight=round(sum(c.weight for c in catches), 2),
            total_count=sum(c.count for c in catches),
            success=bool(catches),
            catches=catches,
            weather={
                "water_temperature": round(float(water_temp), 1),
                "wind_speed": round(random.uniform(2, 25), 1),
                "sea_state": random.randint(1, 6)
            },
            data_source="SIMULATED",
            confidence=0.6
        )

    def _select_ground(self) -> FishingGround:
        """依權重選擇漁場"""
        grounds = list(FISHING_GROUNDS.values())
        weights = [g.weight for g in grounds]
        return random.choices(grounds, weights=weights, k=1)[0]


def seed_catch_records(
    store,
    years_back: int = 3,
    today: Optional[date] = None,
    seed: Optional[int] = 42,
    avg_trips_per_month: int = 8
) -> int:
    """
    生成並寫入過去數年的模擬紀錄

    Args:
        store: CatchRecordStore
        years_back: 回溯年數
        today: 基準日期，預設今天
        seed: 隨機種子

    Returns:
        寫入筆數
    """
    today = today or date.today()
    start = date(today.year - years_back, 1, 1)
    end = today - timedelta(days=1)

    generator = CatchRecordGenerator(seed=seed)
    records = generator.generate(start, end, avg_trips_per_month=avg_trips_per_month)
    written = store.add_many(records)

    logger.info(f"Seeded {written} catch records ({start} to {end})")
    return written
