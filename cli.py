import argparse
import asyncio
import csv
import datetime
import io
import json
import logging
import shutil

from config import YamlConfig
from workout_service import WorkoutLogService


async def init_db(service: WorkoutLogService) -> bool:
    if await service.start():
        print(f"Database ready at {service.db.db_path}")
        return True
    print(f"Database initialization failed: {service.error}")
    return False


async def export_logs(service: WorkoutLogService, fmt: str) -> str:
    if not await service.start():
        raise RuntimeError(service.error or "Database not initialized")
    logs = await service.logs.fetch_all_logs()
    rows = [
        {
            "id": log.id,
            "date": log.logged_at.isoformat(timespec="seconds"),
            "exercise": service.catalog.name_for(log.exercise_id),
            "weight": log.weight,
            "reps": log.reps,
        }
        for log in logs
    ]
    if fmt == "json":
        return json.dumps(rows, indent=2)
    buf = io.StringIO()
    writer = csv.DictWriter(buf, fieldnames=["id", "date", "exercise", "weight", "reps"])
    writer.writeheader()
    writer.writerows(rows)
    return buf.getvalue()


async def demo_data(service: WorkoutLogService) -> bool:
    """Populate the database with a demo week if it has no exercises."""
    if not await service.start():
        raise RuntimeError(service.error or "Database not initialized")
    if service.catalog.exercises:
        print("Database already contains exercises")
        return False
    bench = await service.add_exercise("Bench Press")
    squat = await service.add_exercise("Squat")
    today = datetime.datetime.combine(service.today, datetime.time(18, 0))
    for days_ago, exercise_id, weight, reps in [
        (2, squat, 100.0, 5),
        (2, squat, 105.0, 5),
        (0, bench, 80.0, 5),
        (0, bench, 82.5, 4),
    ]:
        await service.add_exercise_log(
            exercise_id, weight, reps, today - datetime.timedelta(days=days_ago)
        )
    print("Demo data inserted")
    return True


def backup_db(db_path: str, backup_path: str) -> None:
    shutil.copy(db_path, backup_path)


def restore_db(backup_path: str, db_path: str) -> None:
    shutil.copy(backup_path, db_path)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Workout log utility commands")
    parser.add_argument("--yaml", default="settings.yaml")
    parser.add_argument("--db", default=None, help="override the configured database path")
    sub = parser.add_subparsers(dest="cmd", required=True)

    sub.add_parser("init")
    sub.add_parser("demo")

    exp = sub.add_parser("export")
    exp.add_argument("--fmt", choices=["csv", "json"], default="csv")
    exp.add_argument("--out", default=None)

    bkp = sub.add_parser("backup")
    bkp.add_argument("--out", default="backup.db")

    rst = sub.add_parser("restore")
    rst.add_argument("--in", dest="src", default="backup.db")

    srv = sub.add_parser("serve")
    srv.add_argument("--host", default="127.0.0.1")
    srv.add_argument("--port", type=int, default=8000)

    args = parser.parse_args(argv)

    config = YamlConfig(args.yaml)
    settings = config.settings()
    logging.basicConfig(level=settings.log_level)
    db_path = args.db or settings.db_path
    service = WorkoutLogService(db_path, cache_empty_days=settings.cache_empty_days)

    if args.cmd == "init":
        asyncio.run(init_db(service))
    elif args.cmd == "demo":
        asyncio.run(demo_data(service))
    elif args.cmd == "export":
        data = asyncio.run(export_logs(service, args.fmt))
        if args.out:
            with open(args.out, "w", encoding="utf-8") as f:
                f.write(data)
        else:
            print(data)
    elif args.cmd == "backup":
        backup_db(db_path, args.out)
    elif args.cmd == "restore":
        restore_db(args.src, db_path)
    elif args.cmd == "serve":
        import uvicorn
        from rest_api import WorkoutLogAPI

        api = WorkoutLogAPI(db_path=db_path, yaml_path=args.yaml)
        uvicorn.run(api.app, host=args.host, port=args.port)


if __name__ == "__main__":
    main()
