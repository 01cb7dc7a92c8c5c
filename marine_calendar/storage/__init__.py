"""
資料儲存模組

SQLAlchemy 資料表、交易管理與各類資料存取物件。
"""

from .models import (
    Base,
    LunarPhaseRow,
    MigrationEventRow,
    CatchRecordRow,
    CatchRecord,
    CatchEntry
)
from .database import Database, get_database
from .repositories import (
    LunarPhaseCache,
    MigrationEventStore,
    CatchRecordStore,
    CatchSearch,
    filter_by_radius
)
from .seed import CatchRecordGenerator, seed_catch_records

__all__ = [
    "Base",
    "LunarPhaseRow",
    "MigrationEventRow",
    "CatchRecordRow",
    "CatchRecord",
    "CatchEntry",
    "Database",
    "get_database",
    "LunarPhaseCache",
    "MigrationEventStore",
    "CatchRecordStore",
    "CatchSearch",
    "filter_by_radius",
    "CatchRecordGenerator",
    "seed_catch_records",
]
