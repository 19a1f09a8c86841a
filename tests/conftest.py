from __future__ import annotations

import pytest

from fakes import make_env
from hrm_core.core.actor import Actor
from hrm_core.core.enums import Role


@pytest.fixture
def env():
    return make_env()


@pytest.fixture
def attendance_service(env):
    return env.container.attendance_service


@pytest.fixture
def leave_service(env):
    return env.container.leave_service


@pytest.fixture
def admin():
    return Actor(id=900, role=Role.ADMIN)


@pytest.fixture
def hr():
    return Actor(id=901, role=Role.HR_MANAGER)


@pytest.fixture
def alice():
    return Actor(id=11, role=Role.EMPLOYEE, employee_id=1)


@pytest.fixture
def bao():
    return Actor(id=12, role=Role.EMPLOYEE, employee_id=2)
