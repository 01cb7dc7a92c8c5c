"""
資料存取

- LunarPhaseCache: 每日月相的讀取/計算/寫入
- MigrationEventStore: 洄游事件 upsert 與查詢
- CatchRecordStore: 漁獲紀錄新增與查詢
"""

from dataclasses import dataclass
from datetime import date, datetime, time
from typing import List, Optional, Iterable
import logging

from sqlalchemy.exc import IntegrityError

from ..config import haversine_distance, normalize_species_code
from ..exceptions import StorageError
from ..lunar import LunarPhase, LunarPhaseCalculator
from ..algorithms.migration import MigrationEvent
from .database import Database
from .models import LunarPhaseRow, MigrationEventRow, CatchRecordRow, CatchRecord

logger = logging.getLogger(__name__)


class LunarPhaseCache:
    """
    月相快取

    每個日期最多一筆；第一次查詢時計算並寫入，
    之後除非強制重算，否則回傳已儲存的結果。
    """

    def __init__(self, database: Database, calculator: Optional[LunarPhaseCalculator] = None):
        self.database = database
        self.calculator = calculator or LunarPhaseCalculator()

    def get(self, day: date) -> Optional[LunarPhase]:
        """讀取已儲存的月相，不存在則返回 None"""
        with self.database.session_scope() as session:
            row = session.query(LunarPhaseRow).filter_by(date=day).one_or_none()
            return row.to_domain() if row else None

    def get_or_compute(self, day: date) -> LunarPhase:
        """讀取月相；不存在時計算並寫入"""
        cached = self.get(day)
        if cached is not None:
            return cached

        phase = self.calculator.calculate(day)
        try:
            with self.database.session_scope() as session:
                session.add(LunarPhaseRow.from_domain(phase))
        except StorageError as e:
            if not isinstance(e.__cause__, IntegrityError):
                raise
            # 同日已被其他請求寫入
            logger.info(f"Lunar phase for {day} stored concurrently, reading winner")
            return self.get(day) or phase

        logger.debug(f"Cached lunar phase for {day}: {phase.phase_type.value}")
        return phase

    def refresh(self, day: date) -> LunarPhase:
        """強制重算並覆寫"""
        phase = self.calculator.calculate(day)
        with self.database.session_scope() as session:
            row = session.query(LunarPhaseRow).filter_by(date=day).one_or_none()
            if row is None:
                session.add(LunarPhaseRow.from_domain(phase))
            else:
                row.apply(phase)
        return phase


class MigrationEventStore:
    """洄游事件儲存 (以複合鍵 upsert)"""

    def __init__(self, database: Database):
        self.database = database

    def upsert(self, event: MigrationEvent) -> MigrationEvent:
        """
        新增或更新事件

        同一 (species, date, event_type, latitude, longitude) 只保留一筆，
        後寫入者覆蓋其餘欄位。
        """
        with self.database.session_scope() as session:
            row = session.query(MigrationEventRow).filter_by(
                species=event.species,
                date=event.date,
                event_type=event.event_type.value,
                latitude=event.latitude,
                longitude=event.longitude
            ).one_or_none()

            if row is None:
                row = MigrationEventRow(
                    species=event.species,
                    date=event.date,
                    event_type=event.event_type.value,
                    latitude=event.latitude,
                    longitude=event.longitude
                )
                session.add(row)
                logger.info(f"Created migration event {event.key}")
            else:
                logger.info(f"Updated migration event {event.key}")

            row.apply(event)
            session.flush()
            return row.to_domain()

    def query(
        self,
        start: date,
        end: date,
        species: Optional[Iterable[str]] = None,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None
    ) -> List[MigrationEvent]:
        """查詢期間內的事件 (可依魚種與精確座標過濾)"""
        with self.database.session_scope() as session:
            q = session.query(MigrationEventRow).filter(
                MigrationEventRow.date >= start,
                MigrationEventRow.date <= end
            )
            if species:
                q = q.filter(MigrationEventRow.species.in_(
                    [normalize_species_code(s) for s in species]
                ))
            if latitude is not None:
                q = q.filter(MigrationEventRow.latitude == latitude)
            if longitude is not None:
                q = q.filter(MigrationEventRow.longitude == longitude)

            rows = q.order_by(MigrationEventRow.date, MigrationEventRow.id).all()
            return [row.to_domain() for row in rows]


@dataclass
class CatchSearch:
    """漁獲紀錄查詢條件"""
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    radius_km: float = 10.0
    species: Optional[List[str]] = None
    lunar_phase: Optional[str] = None
    min_weight: Optional[float] = None
    limit: int = 100


class CatchRecordStore:
    """漁獲紀錄儲存"""

    MAX_LIMIT = 500

    def __init__(self, database: Database, lunar_cache: Optional[LunarPhaseCache] = None):
        self.database = database
        self.lunar_cache = lunar_cache or LunarPhaseCache(database)

    def add(self, record: CatchRecord) -> CatchRecord:
        """
        新增漁獲紀錄

        當日月相經由月相快取取得 (必要時計算並寫入)。
        """
        day = record.date.date()
        phase = self.lunar_cache.get_or_compute(day)

        with self.database.session_scope() as session:
            phase_row = session.query(LunarPhaseRow).filter_by(date=day).one()
            row = CatchRecordRow(
                date=record.date,
                latitude=record.latitude,
                longitude=record.longitude,
                location_name=record.location_name,
                angler=record.angler,
                lunar_phase=phase_row,
                total_weight=record.total_weight,
                total_count=record.total_count,
                success=record.success,
                catches=[c.to_dict() for c in record.catches],
                weather=record.weather,
                notes=record.notes,
                verified=record.verified,
                data_source=record.data_source,
                confidence=record.confidence
            )
            session.add(row)
            session.flush()
            stored = row.to_domain()

        logger.debug(f"Stored catch record {stored.id} ({phase.phase_type.value})")
        return stored

    def add_many(self, records: Iterable[CatchRecord]) -> int:
        count = 0
        for record in records:
            self.add(record)
            count += 1
        return count

    def find_between(self, start: date, end: date, limit: int = 50) -> List[CatchRecord]:
        """期間內的紀錄 (含首尾日)，依日期遞增，最多 limit 筆"""
        with self.database.session_scope() as session:
            rows = (
                session.query(CatchRecordRow)
                .filter(
                    CatchRecordRow.date >= datetime.combine(start, time.min),
                    CatchRecordRow.date <= datetime.combine(end, time.max)
                )
                .order_by(CatchRecordRow.date, CatchRecordRow.id)
                .limit(limit)
                .all()
            )
            return [row.to_domain() for row in rows]

    def search(self, filters: CatchSearch) -> List[CatchRecord]:
        """
        條件查詢

        日期/重量/月相在資料庫過濾，依日期遞減取前 limit 筆 (上限 500)；
        距離與魚種於取回後過濾。
        """
        limit = min(filters.limit, self.MAX_LIMIT)

        with self.database.session_scope() as session:
            q = session.query(CatchRecordRow)
            if filters.start_date:
                q = q.filter(CatchRecordRow.date >= datetime.combine(filters.start_date, time.min))
            if filters.end_date:
                q = q.filter(CatchRecordRow.date <= datetime.combine(filters.end_date, time.max))
            if filters.min_weight is not None:
                q = q.filter(CatchRecordRow.total_weight >= filters.min_weight)
            if filters.lunar_phase:
                q = q.join(CatchRecordRow.lunar_phase).filter(
                    LunarPhaseRow.phase_type == filters.lunar_phase.upper()
                )

            rows = q.order_by(CatchRecordRow.date.desc(), CatchRecordRow.id.desc()).limit(limit).all()
            records = [row.to_domain() for row in rows]

        if filters.latitude is not None and filters.longitude is not None:
            records = filter_by_radius(
                records, filters.latitude, filters.longitude, filters.radius_km
            )

        if filters.species:
            wanted = {normalize_species_code(s) for s in filters.species}
            records = [r for r in records if wanted.intersection(r.species)]

        return records

    def count(self) -> int:
        with self.database.session_scope() as session:
            return session.query(CatchRecordRow).count()


def filter_by_radius(
    records: List[CatchRecord],
    latitude: float,
    longitude: float,
    radius_km: float
) -> List[CatchRecord]:
    """保留距離查詢點 radius_km 內的紀錄；無座標的紀錄一律保留"""
    return [
        r for r in records
        if r.latitude is None or r.longitude is None
        or haversine_distance(latitude, longitude, r.latitude, r.longitude) <= radius_km
    ]
