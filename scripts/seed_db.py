from __future__ import annotations

import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from dotenv import load_dotenv

from config import get_settings_module

from src.attendance_manager.attendance_manager.database.bootstrap import ensure_indexes, seed_demo_users
from src.attendance_manager.attendance_manager.database.connection import DatabaseConnection, MongoConfig


def main() -> None:
    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    mongo = dict(settings.MONGO_CONFIG)

    db = DatabaseConnection.get_instance(MongoConfig(**mongo)).database()
    ensure_indexes(db)
    count = seed_demo_users(db)
    print(f"OK: seeded {count} demo users -> {mongo['database']}")


if __name__ == "__main__":
    main()
