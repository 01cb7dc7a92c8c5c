#!/usr/bin/env python3
"""
Marine Calendar - 主程式入口

提供命令列介面與 API 服務。

Usage:
    # 每日漁況
    python -m marine_calendar.main conditions --date 2024-06-01 --lat 38.69 --lon -9.42 --species TUNA,SEABASS

    # 月相
    python -m marine_calendar.main lunar --start 2024-01-01 --end 2024-01-31

    # 洄游事件
    python -m marine_calendar.main migration --start 2024-03-01 --end 2024-06-30 --lat 38.69 --lon -9.42

    # 歷史漁獲分析
    python -m marine_calendar.main history --analysis correlations

    # 產生模擬漁獲紀錄
    python -m marine_calendar.main seed --years 3

    # 啟動 API 服務
    python -m marine_calendar.main serve --port 8000
"""

import argparse
import json
import logging
import sys
from datetime import date, datetime, timedelta

# Fix Windows console encoding for Unicode/emoji output
if sys.platform == 'win32':
    sys.stdout.reconfigure(encoding='utf-8', errors='replace')
    sys.stderr.reconfigure(encoding='utf-8', errors='replace')

from .config import configure_logging
from .exceptions import MarineCalendarError, QueryValidationError
from .algorithms import (
    CatchHistoryAnalyzer,
    filter_events,
    merge_events,
    migration_recommendations
)
from .queries import ConditionsQuery, LunarQuery, MigrationQuery, HistoryQuery, parse_query
from .services import Services
from .storage import CatchSearch, Database, filter_by_radius, seed_catch_records

logger = logging.getLogger(__name__)


def _services(args) -> Services:
    database = Database(args.database)
    database.create_all()
    return Services.build(database)


def _print_json(data) -> None:
    print("\n" + json.dumps(data, indent=2, ensure_ascii=False, default=str))


def _print_validation_error(e: QueryValidationError) -> None:
    print(f"❌ 參數錯誤: {e.message}")
    for detail in e.details:
        print(f"   - {detail['field']}: {detail['message']}")


def _activity_bar(value: float, scale: int = 10) -> str:
    filled = int(value)
    return "█" * filled + "░" * (scale - filled)


def cmd_conditions(args):
    """每日漁況命令"""
    try:
        query = parse_query(ConditionsQuery, {
            "date": args.date,
            "startDate": args.start,
            "endDate": args.end,
            "latitude": args.lat,
            "longitude": args.lon,
            "targetSpecies": args.species,
            "includeHistorical": args.history
        })
    except QueryValidationError as e:
        _print_validation_error(e)
        return 2

    print(f"\n🎣 每日漁況")
    print(f"   位置: ({query.location.latitude}, {query.location.longitude})")
    print(f"   離岸: {query.location.distance_from_shore_km} km")
    print(f"   期間: {query.start} ~ {query.end}")
    print("-" * 40)

    try:
        services = _services(args)
        reports = services.aggregator.compute_period(
            query.start, query.end, query.location, query.species, query.include_historical
        )

        for report in reports:
            phase = report.lunar_phase
            print(f"\n📅 {report.date}  評分 {report.overall_rating}/10")
            print(f"   🌙 {phase.name_zh} (照明 {phase.illumination}%)")
            print(f"   🌊 潮汐: {report.tidal_influence.tide_type.value} "
                  f"{report.tidal_influence.height} m")
            for window in report.best_hours:
                print(f"   ⏰ {window.label()} {window.description} ({window.rating}/10)")
            for influence in report.species_influence:
                print(f"   🐟 {influence.display_name:<16} │{_activity_bar(influence.activity)}│ "
                      f"{influence.activity} ({influence.preferred_depth})")
            if report.historical_data:
                hist = report.historical_data
                print(f"   📊 歷史同期: {hist.total_records} 筆, 平均 {hist.average_weight} kg, "
                      f"成功率 {hist.success_rate}%")
            for line in report.recommendations:
                print(f"   💡 {line}")

        if args.json:
            _print_json([r.to_dict() for r in reports])

    except MarineCalendarError as e:
        logger.error(f"Conditions failed: {e}")
        print(f"❌ 錯誤: {e}")
        return 1

    return 0


def cmd_lunar(args):
    """月相命令"""
    try:
        query = parse_query(LunarQuery, {
            "startDate": args.start,
            "endDate": args.end,
            "forceRecalculate": args.force
        })
    except QueryValidationError as e:
        _print_validation_error(e)
        return 2

    print(f"\n🌙 月相")
    print(f"   期間: {query.start} ~ {query.end}")
    print("-" * 40)

    try:
        services = _services(args)
        cache = services.lunar_cache
        load = cache.refresh if query.force_recalculate else cache.get_or_compute

        phases = [load(day) for day in _days(query.start, query.end)]
        for phase in phases:
            strength = phase.influence.strength if phase.influence else 0
            print(f"   {phase.date}  {phase.name_zh:<4} 照明 {phase.illumination:5.1f}%  "
                  f"影響 {strength:4.1f}  距離 {phase.distance_km:,.0f} km")

        events = services.calculator.upcoming_lunar_events(
            query.start, (query.end - query.start).days + 1
        )
        print(f"\n🌑 新月: {', '.join(d.strftime('%m/%d %H:%M') for d in events.new_moons) or '-'}")
        print(f"🌕 滿月: {', '.join(d.strftime('%m/%d %H:%M') for d in events.full_moons) or '-'}")

        if args.json:
            _print_json({
                "phases": [p.to_dict() for p in phases],
                "events": events.to_dict()
            })

    except MarineCalendarError as e:
        logger.error(f"Lunar query failed: {e}")
        print(f"❌ 錯誤: {e}")
        return 1

    return 0


def cmd_migration(args):
    """洄游事件命令"""
    try:
        query = parse_query(MigrationQuery, {
            "startDate": args.start,
            "endDate": args.end,
            "latitude": args.lat,
            "longitude": args.lon,
            "species": args.species,
            "eventTypes": args.event_types,
            "minProbability": args.min_probability
        })
    except QueryValidationError as e:
        _print_validation_error(e)
        return 2

    print(f"\n🐟 洄游事件")
    print(f"   位置: ({query.location.latitude}, {query.location.longitude})")
    print(f"   期間: {query.start} ~ {query.end}")
    print("-" * 40)

    try:
        services = _services(args)
        location = query.location
        computed = services.migration_model.upcoming_events(
            query.start, query.end, location, query.species
        )
        stored = services.migration_store.query(
            query.start, query.end, query.species, location.latitude, location.longitude
        )
        events = filter_events(
            merge_events(computed, stored), query.event_types, query.min_probability
        )

        if not events:
            print("\n⚠️ 期間內沒有洄游事件")
        for event in events:
            print(f"   {event.date}  {event.species:<14} {event.event_type.value:<10} "
                  f"{event.probability:.0%}  {event.description or ''}")

        recommendations = migration_recommendations(events, location)
        if recommendations:
            print("\n💡 建議:")
            for line in recommendations:
                print(f"   - {line}")

        if args.json:
            _print_json([e.to_dict() for e in events])

    except MarineCalendarError as e:
        logger.error(f"Migration query failed: {e}")
        print(f"❌ 錯誤: {e}")
        return 1

    return 0


def cmd_history(args):
    """歷史漁獲分析命令"""
    try:
        query = parse_query(HistoryQuery, {
            "startDate": args.start,
            "endDate": args.end,
            "latitude": args.lat,
            "longitude": args.lon,
            "radius": args.radius,
            "species": args.species,
            "lunarPhase": args.lunar_phase,
            "minWeight": args.min_weight,
            "analysisType": args.analysis,
            "groupBy": args.group_by,
            "limit": args.limit
        })
    except QueryValidationError as e:
        _print_validation_error(e)
        return 2

    print(f"\n📊 歷史漁獲分析 ({query.analysis_type})")
    print("-" * 40)

    try:
        services = _services(args)
        records = services.catch_store.search(CatchSearch(
            start_date=query.start_date,
            end_date=query.end_date,
            species=query.species,
            lunar_phase=query.lunar_phase,
            min_weight=query.min_weight,
            limit=query.limit
        ))
        if query.has_location:
            records = filter_by_radius(records, query.latitude, query.longitude, query.radius_km)

        analyzer = CatchHistoryAnalyzer(records)
        if query.analysis_type == "detailed":
            data = analyzer.detailed()
        elif query.analysis_type == "correlations":
            data = analyzer.correlations()
        elif query.analysis_type == "trends":
            data = analyzer.trends(query.group_by)
        else:
            data = analyzer.summary()

        print(f"\n   紀錄數: {len(records)}")
        if query.analysis_type == "summary" and records:
            best = data["best_lunar_phase"]
            print(f"   總重量: {data['total_weight']} kg")
            print(f"   成功率: {data['success_rate']}%")
            if best:
                print(f"   最佳月相: {best['phase']} (平均 {best['avg_weight']} kg)")
            else:
                print("   最佳月相: 無 (紀錄未連結月相)")
        elif query.analysis_type == "correlations":
            for line in data.get("insights", []):
                print(f"   💡 {line}")
        elif query.analysis_type == "trends":
            for row in data["trends"][:12]:
                print(f"   {row['period']:<12} {row['record_count']:>4} 筆  平均 {row['avg_weight']} kg")

        if args.json or query.analysis_type == "detailed":
            _print_json(data)

    except MarineCalendarError as e:
        logger.error(f"History analysis failed: {e}")
        print(f"❌ 錯誤: {e}")
        return 1

    return 0


def cmd_seed(args):
    """產生模擬漁獲紀錄命令"""
    print(f"\n🌱 產生模擬漁獲紀錄")
    print(f"   回溯年數: {args.years}")
    print(f"   隨機種子: {args.seed}")
    print("-" * 40)

    try:
        services = _services(args)
        count = seed_catch_records(
            services.catch_store,
            years_back=args.years,
            seed=args.seed,
            avg_trips_per_month=args.trips
        )
        print(f"\n✅ 已寫入 {count} 筆紀錄 (資料庫共 {services.catch_store.count()} 筆)")

        if args.json:
            _print_json({"inserted": count, "total": services.catch_store.count()})

    except MarineCalendarError as e:
        logger.error(f"Seeding failed: {e}")
        print(f"❌ 錯誤: {e}")
        return 1

    return 0


def cmd_serve(args):
    """啟動 API 服務命令"""
    import uvicorn

    print(f"\n🚀 Marine Calendar API: http://{args.host}:{args.port}/docs")
    uvicorn.run(
        "marine_calendar.api:app",
        host=args.host,
        port=args.port,
        reload=args.reload
    )
    return 0


def _days(start: date, end: date):
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def build_parser() -> argparse.ArgumentParser:
    """建立命令列解析器"""
    parser = argparse.ArgumentParser(
        description="Marine Calendar - 卡斯凱什漁況與月相日曆",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("-v", "--verbose", action="store_true", help="詳細輸出")
    common.add_argument("--json", action="store_true", help="輸出 JSON 格式")
    common.add_argument("--database", type=str, default=None, help="資料庫 URL (預設使用設定值)")

    subparsers = parser.add_subparsers(dest="command", help="子命令")

    # 漁況命令
    cond_parser = subparsers.add_parser("conditions", parents=[common], help="每日漁況")
    cond_parser.add_argument("--date", type=str, help="日期 (YYYY-MM-DD)")
    cond_parser.add_argument("--start", type=str, help="起始日期")
    cond_parser.add_argument("--end", type=str, help="結束日期")
    cond_parser.add_argument("--lat", type=float, required=True, help="緯度")
    cond_parser.add_argument("--lon", type=float, required=True, help="經度")
    cond_parser.add_argument("--species", type=str, help="目標魚種 (逗號分隔)")
    cond_parser.add_argument("--history", action="store_true", help="附上歷史同期資料")

    # 月相命令
    lunar_parser = subparsers.add_parser("lunar", parents=[common], help="月相")
    lunar_parser.add_argument("--start", type=str, required=True, help="起始日期")
    lunar_parser.add_argument("--end", type=str, required=True, help="結束日期")
    lunar_parser.add_argument("--force", action="store_true", help="強制重算")

    # 洄游命令
    mig_parser = subparsers.add_parser("migration", parents=[common], help="洄游事件")
    mig_parser.add_argument("--start", type=str, required=True, help="起始日期")
    mig_parser.add_argument("--end", type=str, required=True, help="結束日期")
    mig_parser.add_argument("--lat", type=float, required=True, help="緯度")
    mig_parser.add_argument("--lon", type=float, required=True, help="經度")
    mig_parser.add_argument("--species", type=str, help="魚種 (逗號分隔)")
    mig_parser.add_argument("--event-types", type=str, help="arrival,peak,departure")
    mig_parser.add_argument("--min-probability", type=float, help="最低機率 (0-1)")

    # 歷史命令
    hist_parser = subparsers.add_parser("history", parents=[common], help="歷史漁獲分析")
    hist_parser.add_argument("--start", type=str, help="起始日期")
    hist_parser.add_argument("--end", type=str, help="結束日期")
    hist_parser.add_argument("--lat", type=float, help="緯度")
    hist_parser.add_argument("--lon", type=float, help="經度")
    hist_parser.add_argument("--radius", type=float, help="半徑 (km，預設 10)")
    hist_parser.add_argument("--species", type=str, help="魚種 (逗號分隔)")
    hist_parser.add_argument("--lunar-phase", type=str, help="月相類型 (例如 FULL_MOON)")
    hist_parser.add_argument("--min-weight", type=float, help="最低總重 (kg)")
    hist_parser.add_argument("--analysis", type=str, default="summary",
                             help="summary / detailed / correlations / trends")
    hist_parser.add_argument("--group-by", type=str, default="date",
                             help="date / species / lunar_phase / month / season")
    hist_parser.add_argument("--limit", type=int, default=100, help="最多筆數 (上限 500)")

    # 種子資料命令
    seed_parser = subparsers.add_parser("seed", parents=[common], help="產生模擬漁獲紀錄")
    seed_parser.add_argument("--years", type=int, default=3, help="回溯年數")
    seed_parser.add_argument("--seed", type=int, default=42, help="隨機種子")
    seed_parser.add_argument("--trips", type=int, default=8, help="每月平均出海次數")

    # API 服務命令
    serve_parser = subparsers.add_parser("serve", parents=[common], help="啟動 API 服務")
    serve_parser.add_argument("--host", type=str, default="0.0.0.0", help="綁定位址")
    serve_parser.add_argument("--port", type=int, default=8000, help="連接埠")
    serve_parser.add_argument("--reload", action="store_true", help="自動重新載入")

    return parser


def main(argv=None):
    """主函數"""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    # 設定日誌
    configure_logging("DEBUG" if args.verbose else None)

    # 執行命令
    commands = {
        "conditions": cmd_conditions,
        "lunar": cmd_lunar,
        "migration": cmd_migration,
        "history": cmd_history,
        "seed": cmd_seed,
        "serve": cmd_serve
    }

    logger.debug(f"Running {args.command} at {datetime.now().isoformat()}")
    return commands[args.command](args)


if __name__ == "__main__":
    sys.exit(main())
