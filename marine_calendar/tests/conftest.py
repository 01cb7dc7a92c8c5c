"""
Pytest 配置與共用 Fixtures

提供測試所需的記憶體資料庫、各項儲存與共用樣本。
"""

import os
from datetime import date, datetime
from typing import Optional

import pytest

os.environ.setdefault("MARINE_ENV", "test")

from marine_calendar.config import Location
from marine_calendar.lunar import LunarPhaseCalculator
from marine_calendar.services import Services
from marine_calendar.storage import (
    CatchEntry,
    CatchRecord,
    CatchRecordStore,
    Database,
    LunarPhaseCache,
    MigrationEventStore
)


# ============================================
# 位置 Fixtures
# ============================================

@pytest.fixture
def cascais_location():
    """卡斯凱什海岸參考點 (離岸 0.5 km)"""
    return Location.from_coordinates(38.6979, -9.4215, name="Cascais")


@pytest.fixture
def offshore_location():
    """離岸約 20 km 的外海點"""
    return Location.from_coordinates(38.55, -9.55, name="外海")


@pytest.fixture
def calculator():
    return LunarPhaseCalculator()


# ============================================
# 資料庫 Fixtures
# ============================================

@pytest.fixture
def database():
    """記憶體 SQLite 資料庫 (每個測試獨立)"""
    db = Database("sqlite://")
    db.create_all()
    yield db
    db.dispose()


@pytest.fixture
def lunar_cache(database, calculator):
    return LunarPhaseCache(database, calculator)


@pytest.fixture
def migration_store(database):
    return MigrationEventStore(database)


@pytest.fixture
def catch_store(database, lunar_cache):
    return CatchRecordStore(database, lunar_cache)


@pytest.fixture
def services(database):
    return Services.build(database)


# ============================================
# 漁獲紀錄 Fixtures
# ============================================

@pytest.fixture
def make_record():
    """漁獲紀錄工廠"""
    def _make(
        when: datetime,
        weight: float = 5.0,
        count: int = 3,
        species: str = "SEABASS",
        latitude: Optional[float] = 38.69,
        longitude: Optional[float] = -9.42,
        success: Optional[bool] = None,
        lunar_phase: Optional[str] = None,
        illumination: Optional[float] = None,
        weather: Optional[dict] = None
    ) -> CatchRecord:
        if isinstance(when, date) and not isinstance(when, datetime):
            when = datetime(when.year, when.month, when.day, 7, 0)
        return CatchRecord(
            date=when,
            latitude=latitude,
            longitude=longitude,
            total_weight=weight,
            total_count=count,
            success=count > 0 if success is None else success,
            catches=[CatchEntry(species=species, count=count, weight=weight)] if count else [],
            location_name="卡斯凱什淺灘",
            lunar_phase=lunar_phase,
            illumination=illumination,
            weather=weather
        )
    return _make


class StaticRecordSource:
    """固定回傳紀錄的來源 (取代 CatchRecordStore)"""

    def __init__(self, records):
        self.records = list(records)
        self.calls = []

    def find_between(self, start, end, limit=50):
        self.calls.append((start, end, limit))
        return [
            r for r in self.records
            if start <= r.date.date() <= end
        ][:limit]


@pytest.fixture
def static_source():
    return StaticRecordSource

