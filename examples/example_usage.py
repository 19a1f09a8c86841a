"""Example: drive the engine through its services, without Flask.

Controllers are thin; every rule lives in the services wired by the container.
"""

import importlib
from datetime import date

from dotenv import load_dotenv

from hrm_core.config import get_settings_module
from hrm_core.config.config import engine_settings_from
from hrm_core.container import build_container
from hrm_core.core.actor import Actor
from hrm_core.core.enums import Role


def main():
    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    container = build_container(db_config=settings.DB_CONFIG, engine=engine_settings_from(settings))

    hr = Actor(id=1, role=Role.HR_MANAGER)
    today = date.today()

    balance = container.leave_service.balance(hr, employee_id=1)
    print(balance.to_dict())

    summary = container.attendance_service.summarize(1, today.replace(day=1), today)
    print(f"present_days={summary.present_days} working_days={summary.working_days}")

    for request in container.leave_service.list_upcoming(hr):
        print(request.to_dict())


if __name__ == "__main__":
    main()
