from __future__ import annotations

import importlib

from dotenv import load_dotenv

from hrm_core.config import get_settings_module
from hrm_core.database.bootstrap import apply_seed_sql


def main() -> None:
    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    db_config = dict(settings.DB_CONFIG)

    statements = apply_seed_sql(db_config)

    print(
        "OK: Seeded leave policies -> "
        f"{db_config.get('user')}@{db_config.get('host')}:{db_config.get('port', 3306)}/{db_config.get('database')} "
        f"(statements={statements})"
    )


if __name__ == "__main__":
    main()
