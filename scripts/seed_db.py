from __future__ import annotations

import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from src.attendance_ledger.attendance_ledger.database.bootstrap import DEMO_ADMIN, DEMO_EMPLOYEES, ensure_demo_users


def main() -> None:
    settings = importlib.import_module(get_settings_module())
    db_config = dict(settings.DB_CONFIG)

    ensure_demo_users(db_config)

    print(f"OK: Seeded {db_config.get('database')} on {db_config.get('host')}")
    print(f"  admin: {DEMO_ADMIN[0]} / {DEMO_ADMIN[1]}")
    for email, password, *_ in DEMO_EMPLOYEES:
        print(f"  employee: {email} / {password}")


if __name__ == "__main__":
    main()
