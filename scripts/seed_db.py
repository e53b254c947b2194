from __future__ import annotations

import importlib
import sys
from datetime import date
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from src.coach_attendance.coach_attendance.common.datetime_utils import parse_iso_date
from src.coach_attendance.coach_attendance.database.bootstrap import ensure_demo_data


def main() -> None:
    settings = importlib.import_module(get_settings_module())
    db_config = dict(settings.DB_CONFIG)

    session_date = parse_iso_date(sys.argv[1]) if len(sys.argv) > 1 else date.today()
    ensure_demo_data(db_config, today=session_date)

    print(
        "OK: Seeded demo coaches/players/sessions "
        f"({session_date.isoformat()}) -> "
        f"{db_config.get('user')}@{db_config.get('host')}:{db_config.get('port', 3306)}/{db_config.get('database')}"
    )


if __name__ == "__main__":
    main()
