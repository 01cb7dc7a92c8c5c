"""
服務組裝

在同一個資料庫上建立月相快取、事件/漁獲儲存與漁況彙整器，
供 API 與 CLI 共用。
"""

from dataclasses import dataclass
from typing import Optional

from .lunar import LunarPhaseCalculator
from .algorithms import (
    FishingConditionsAggregator,
    HistoricalCorrelationAnalyzer,
    MigrationProbabilityModel
)
from .storage import (
    Database,
    get_database,
    LunarPhaseCache,
    MigrationEventStore,
    CatchRecordStore
)


@dataclass
class Services:
    """單一資料庫上的各項服務"""
    database: Database
    lunar_cache: LunarPhaseCache
    migration_store: MigrationEventStore
    catch_store: CatchRecordStore
    aggregator: FishingConditionsAggregator
    migration_model: MigrationProbabilityModel
    calculator: LunarPhaseCalculator

    @classmethod
    def build(cls, database: Database) -> "Services":
        calculator = LunarPhaseCalculator()
        lunar_cache = LunarPhaseCache(database, calculator)
        catch_store = CatchRecordStore(database, lunar_cache)
        migration_model = MigrationProbabilityModel()

        return cls(
            database=database,
            lunar_cache=lunar_cache,
            migration_store=MigrationEventStore(database),
            catch_store=catch_store,
            aggregator=FishingConditionsAggregator(
                lunar_source=lunar_cache,
                migration_model=migration_model,
                historical=HistoricalCorrelationAnalyzer(catch_store),
                calculator=calculator
            ),
            migration_model=migration_model,
            calculator=calculator
        )


_services: Optional[Services] = None


def get_services() -> Services:
    """取得全域服務 (首次呼叫時建立)"""
    global _services
    if _services is None:
        _services = Services.build(get_database())
    return _services
