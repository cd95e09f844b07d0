from __future__ import annotations

import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from dotenv import load_dotenv

from config import get_settings_module

from src.marketplace_backend.marketplace_backend.container import build_container
from src.marketplace_backend.marketplace_backend.database.bootstrap import ensure_super_admin
from src.marketplace_backend.marketplace_backend.main import configure_logging


def main() -> None:
    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    db_config = dict(settings.DB_CONFIG)

    email = getattr(settings, "SUPER_ADMIN_EMAIL", "")
    password = getattr(settings, "SUPER_ADMIN_PASSWORD", "")
    if not email or not password:
        raise SystemExit("SUPER_ADMIN_EMAIL and SUPER_ADMIN_PASSWORD must be set")

    log = configure_logging(bool(getattr(settings, "DEBUG", False)))
    container = build_container(db_config=db_config, logger=log)
    created = ensure_super_admin(container.user_service, email=email, password=password)

    print(
        ("OK: Created super admin " if created else "OK: Super admin already exists ")
        + f"{email} -> {db_config.get('user')}@{db_config.get('host')}:{db_config.get('port', 3306)}/{db_config.get('database')}"
    )


if __name__ == "__main__":
    main()
