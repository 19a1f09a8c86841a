from datetime import date, time

import pytest

from hrm_core.core.enums import AttendanceStatus, AuditAction
from hrm_core.core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError


def test_check_in_creates_record_and_audits_null_old_state(env, attendance_service, alice):
    rec = attendance_service.check_in(alice, 1, "2026-02-02", "09:00:00", notes="on site")

    assert rec.status == AttendanceStatus.PRESENT
    assert rec.work_hours == 0.0
    assert rec.check_out_time is None
    assert env.attendance.get_for_employee_and_date(1, date(2026, 2, 2)) == rec

    entry = env.audit_sink.entries[-1]
    assert entry["action"] == AuditAction.ATTENDANCE_CHECK_IN
    assert entry["old_values"] is None
    assert entry["new_values"]["check_in_time"] == "09:00:00"
    assert entry["performed_by"] == alice.id


def test_late_check_in(attendance_service, alice):
    rec = attendance_service.check_in(alice, 1, "2026-02-02", "09:20:00")
    assert rec.status == AttendanceStatus.LATE


def test_duplicate_check_in_conflicts_and_keeps_first_record(env, attendance_service, alice):
    first = attendance_service.check_in(alice, 1, "2026-02-02", "08:55:00")

    for attempt in ("09:30:00", "10:00:00"):
        with pytest.raises(ConflictError) as exc:
            attendance_service.check_in(alice, 1, "2026-02-02", attempt)
        assert exc.value.rule == "attendance_exists"

    stored = [r for r in env.attendance.by_id.values() if r.employee_id == 1]
    assert stored == [first]


@pytest.mark.parametrize("bad", ["9:00", "24:00:00", "09:60:00", "nine", ""])
def test_check_in_rejects_malformed_time(attendance_service, alice, bad):
    with pytest.raises(ValidationError) as exc:
        attendance_service.check_in(alice, 1, "2026-02-02", bad)
    assert exc.value.rule == "invalid_time_format"


def test_check_in_rejects_malformed_date(attendance_service, alice):
    with pytest.raises(ValidationError):
        attendance_service.check_in(alice, 1, "02/02/2026", "09:00:00")


def test_check_in_for_unknown_employee(attendance_service, hr):
    with pytest.raises(NotFoundError):
        attendance_service.check_in(hr, 99, "2026-02-02", "09:00:00")


def test_employee_cannot_check_in_someone_else(attendance_service, alice):
    with pytest.raises(AuthorizationError):
        attendance_service.check_in(alice, 2, "2026-02-02", "09:00:00")


def test_full_day_is_eight_hours(attendance_service, alice):
    attendance_service.check_in(alice, 1, "2026-02-02", "09:00:00")
    rec = attendance_service.check_out(alice, 1, "2026-02-02", "17:00:00")

    assert rec.work_hours == 8.0
    assert rec.status in (AttendanceStatus.PRESENT, AttendanceStatus.LATE)
    assert rec.status == AttendanceStatus.PRESENT


def test_overnight_shift_counts_into_next_day(attendance_service, alice):
    attendance_service.check_in(alice, 1, "2026-02-02", "22:00:00")
    rec = attendance_service.check_out(alice, 1, "2026-02-02", "02:00:00")

    assert rec.work_hours == 4.0


def test_short_day_becomes_half_day_even_when_late(attendance_service, alice):
    attendance_service.check_in(alice, 1, "2026-02-02", "10:00:00")
    rec = attendance_service.check_out(alice, 1, "2026-02-02", "13:20:00")

    assert rec.work_hours == 3.33
    assert rec.status == AttendanceStatus.HALF_DAY


def test_check_out_without_check_in_is_not_found(attendance_service, alice):
    with pytest.raises(NotFoundError):
        attendance_service.check_out(alice, 1, "2026-02-02", "17:00:00")


def test_check_out_on_leave_day_is_not_found(attendance_service, alice):
    attendance_service.materialize_leave_day(1, date(2026, 2, 3), "SICK", 7)

    with pytest.raises(NotFoundError):
        attendance_service.check_out(alice, 1, "2026-02-03", "17:00:00")


def test_second_check_out_conflicts(attendance_service, alice):
    attendance_service.check_in(alice, 1, "2026-02-02", "09:00:00")
    attendance_service.check_out(alice, 1, "2026-02-02", "17:00:00")

    with pytest.raises(ConflictError) as exc:
        attendance_service.check_out(alice, 1, "2026-02-02", "18:00:00")
    assert exc.value.rule == "already_checked_out"


def test_check_out_keeps_check_in_notes_unless_new_ones_given(attendance_service, alice):
    attendance_service.check_in(alice, 1, "2026-02-02", "09:00:00", notes="client visit")
    rec = attendance_service.check_out(alice, 1, "2026-02-02", "17:00:00")
    assert rec.notes == "client visit"


def test_update_recomputes_hours_and_status_when_both_times_present(env, attendance_service, alice, hr):
    rec = attendance_service.check_in(alice, 1, "2026-02-02", "09:00:00")

    updated = attendance_service.update_record(hr, rec.attendance_id, check_out_time="12:00:00")

    assert updated.work_hours == 3.0
    assert updated.status == AttendanceStatus.HALF_DAY
    assert env.attendance.get_by_id(rec.attendance_id) == updated

    entry = env.audit_sink.entries[-1]
    assert entry["action"] == AuditAction.ATTENDANCE_UPDATED
    assert entry["old_values"]["check_out_time"] is None
    assert entry["new_values"]["check_out_time"] == "12:00:00"


def test_update_keeps_explicit_status(attendance_service, alice, hr):
    rec = attendance_service.check_in(alice, 1, "2026-02-02", "09:00:00")

    updated = attendance_service.update_record(
        hr, rec.attendance_id, check_out_time="12:00:00", status="PRESENT", notes="approved early leave"
    )

    assert updated.work_hours == 3.0
    assert updated.status == AttendanceStatus.PRESENT
    assert updated.notes == "approved early leave"


def test_update_without_both_times_applies_fields_verbatim(attendance_service, alice, hr):
    rec = attendance_service.check_in(alice, 1, "2026-02-02", "09:30:00")

    updated = attendance_service.update_record(hr, rec.attendance_id, check_in_time="09:00:00")

    assert updated.check_in_time == time(9, 0)
    assert updated.status == AttendanceStatus.LATE
    assert updated.work_hours == 0.0


def test_update_requires_a_field(attendance_service, alice, hr):
    rec = attendance_service.check_in(alice, 1, "2026-02-02", "09:00:00")
    with pytest.raises(ValidationError) as exc:
        attendance_service.update_record(hr, rec.attendance_id)
    assert exc.value.rule == "no_fields_to_update"


def test_update_rejects_unknown_status(attendance_service, alice, hr):
    rec = attendance_service.check_in(alice, 1, "2026-02-02", "09:00:00")
    with pytest.raises(ValidationError):
        attendance_service.update_record(hr, rec.attendance_id, status="WORKING")


def test_employee_cannot_update_records(attendance_service, alice):
    rec = attendance_service.check_in(alice, 1, "2026-02-02", "09:00:00")
    with pytest.raises(AuthorizationError):
        attendance_service.update_record(alice, rec.attendance_id, check_out_time="17:00:00")


def test_only_admin_deletes_and_old_values_are_audited(env, attendance_service, alice, hr, admin):
    rec = attendance_service.check_in(alice, 1, "2026-02-02", "09:00:00")

    with pytest.raises(AuthorizationError):
        attendance_service.delete_record(hr, rec.attendance_id)

    attendance_service.delete_record(admin, rec.attendance_id)

    assert env.attendance.get_by_id(rec.attendance_id) is None
    entry = env.audit_sink.entries[-1]
    assert entry["action"] == AuditAction.ATTENDANCE_DELETED
    assert entry["old_values"] == rec.audit_values()
    assert entry["new_values"] is None


def test_delete_missing_record(attendance_service, admin):
    with pytest.raises(NotFoundError):
        attendance_service.delete_record(admin, 404)


def test_materialize_leave_day_is_idempotent(env, attendance_service):
    first = attendance_service.materialize_leave_day(1, "2026-02-03", "SICK", 5)
    again = attendance_service.materialize_leave_day(1, "2026-02-03", "SICK", 5)

    assert first is not None
    assert first.status == AttendanceStatus.ON_LEAVE
    assert first.check_in_time is None and first.check_out_time is None
    assert first.leave_request_id == 5
    assert again is None
    assert len(env.attendance.by_id) == 1


def test_materialize_leaves_attended_day_alone(attendance_service, alice):
    attended = attendance_service.check_in(alice, 1, "2026-02-03", "09:00:00")

    assert attendance_service.materialize_leave_day(1, "2026-02-03", "SICK", 5) is None
    assert attendance_service.get_for_day(1, "2026-02-03") == attended


def test_dematerialize_only_removes_matching_projection(env, attendance_service, alice, hr):
    attendance_service.materialize_leave_day(1, "2026-02-03", "SICK", 5)
    attendance_service.materialize_leave_day(1, "2026-02-04", "SICK", 5)
    attended = attendance_service.check_in(alice, 1, "2026-02-05", "09:00:00")

    assert attendance_service.dematerialize_leave_day(1, "2026-02-03", 6) is False
    assert attendance_service.dematerialize_leave_day(1, "2026-02-05", 5) is False
    assert attendance_service.dematerialize_leave_day(1, "2026-02-03", 5) is True

    # an employee who came in despite the leave keeps the row
    day = attendance_service.get_for_day(1, "2026-02-04")
    attendance_service.update_record(hr, day.attendance_id, check_in_time="09:00:00")
    assert attendance_service.dematerialize_leave_day(1, "2026-02-04", 5) is False

    assert attendance_service.get_for_day(1, "2026-02-03") is None
    assert attendance_service.get_for_day(1, "2026-02-05") == attended


def test_materialize_range_skips_weekends(attendance_service):
    created = attendance_service.materialize_leave_range(1, date(2026, 2, 6), date(2026, 2, 9), "ANNUAL", 3)

    assert [r.work_date for r in created] == [date(2026, 2, 6), date(2026, 2, 9)]


def test_history_is_scoped_to_self_unless_privileged(attendance_service, alice, bao, hr):
    attendance_service.check_in(alice, 1, "2026-02-02", "09:00:00")
    attendance_service.check_in(alice, 1, "2026-02-03", "09:30:00")

    own = attendance_service.list_for_employee(alice, 1)
    assert [r.work_date for r in own] == [date(2026, 2, 3), date(2026, 2, 2)]

    late_only = attendance_service.list_for_employee(hr, 1, status="LATE")
    assert [r.work_date for r in late_only] == [date(2026, 2, 3)]

    with pytest.raises(AuthorizationError):
        attendance_service.list_for_employee(bao, 1)


def test_get_record_checks_ownership(attendance_service, alice, bao):
    rec = attendance_service.check_in(alice, 1, "2026-02-02", "09:00:00")

    assert attendance_service.get_record(alice, rec.attendance_id) == rec
    with pytest.raises(AuthorizationError):
        attendance_service.get_record(bao, rec.attendance_id)


def test_summarize_counts_half_days_as_half(env, attendance_service, alice):
    attendance_service.check_in(alice, 1, "2026-02-02", "09:00:00")
    attendance_service.check_out(alice, 1, "2026-02-02", "17:00:00")
    attendance_service.check_in(alice, 1, "2026-02-03", "09:40:00")
    attendance_service.check_out(alice, 1, "2026-02-03", "18:00:00")
    attendance_service.check_in(alice, 1, "2026-02-04", "09:00:00")
    attendance_service.check_out(alice, 1, "2026-02-04", "11:00:00")
    attendance_service.materialize_leave_day(1, "2026-02-05", "SICK", 1)

    summary = attendance_service.summarize(1, date(2026, 2, 1), date(2026, 2, 28))

    assert summary.working_days == 20
    assert summary.full_days == 2
    assert summary.half_days == 1
    assert summary.leave_days == 1
    assert str(summary.present_days) == "2.5"
    assert summary.total_work_hours == pytest.approx(18.33)


@pytest.mark.parametrize("notes", [42, ["late"], {"why": "bus"}])
def test_non_text_notes_are_invalid_input(env, attendance_service, alice, notes):
    with pytest.raises(ValidationError) as exc:
        attendance_service.check_in(alice, 1, "2026-02-02", "09:00:00", notes=notes)
    assert exc.value.rule == "invalid_text"
    assert exc.value.context["field"] == "notes"
    assert env.attendance.by_id == {}


def test_concurrent_check_out_only_records_the_first(env, attendance_service, alice, monkeypatch):
    checked_in = attendance_service.check_in(alice, 1, "2026-02-02", "09:00:00")
    attendance_service.check_out(alice, 1, "2026-02-02", "17:00:00")

    # the second caller read the row before the first check-out was stored
    monkeypatch.setattr(env.attendance, "get_for_employee_and_date", lambda employee_id, work_date: checked_in)

    with pytest.raises(ConflictError) as exc:
        attendance_service.check_out(alice, 1, "2026-02-02", "12:00:00")
    assert exc.value.rule == "already_checked_out"

    stored = env.attendance.by_id[checked_in.attendance_id]
    assert stored.check_out_time == time(17, 0, 0)
    assert stored.work_hours == 8.0
    assert env.audit_sink.actions().count(AuditAction.ATTENDANCE_CHECK_OUT) == 1


@pytest.fixture
def busy_monday(attendance_service, hr):
    half = attendance_service.check_in(hr, 1, "2026-02-02", "09:00:00")
    attendance_service.check_out(hr, 1, "2026-02-02", "12:00:00")
    late = attendance_service.check_in(hr, 2, "2026-02-02", "09:20:00")
    full = attendance_service.check_in(hr, 3, "2026-02-02", "09:00:00")
    attendance_service.check_out(hr, 3, "2026-02-02", "17:00:00")
    tuesday = attendance_service.check_in(hr, 1, "2026-02-03", "09:00:00")
    leave = attendance_service.materialize_leave_day(2, date(2026, 2, 3), "SICK", 7)
    return {"half": half, "late": late, "full": full, "tuesday": tuesday, "leave": leave}


def _ids(records):
    return [r.attendance_id for r in records]


def test_list_records_across_employees(attendance_service, hr, busy_monday):
    r = busy_monday

    assert _ids(attendance_service.list_records(hr)) == _ids(
        [r["leave"], r["tuesday"], r["full"], r["late"], r["half"]]
    )
    assert _ids(attendance_service.list_records(hr, department="Finance")) == _ids([r["full"]])
    assert _ids(attendance_service.list_records(hr, status="LATE")) == _ids([r["late"]])
    assert _ids(attendance_service.list_records(hr, employee_id=1)) == _ids([r["tuesday"], r["half"]])
    assert _ids(attendance_service.list_records(hr, start_date="2026-02-03")) == _ids([r["leave"], r["tuesday"]])
    assert _ids(attendance_service.list_records(hr, limit=2, offset=1)) == _ids([r["tuesday"], r["full"]])


def test_list_records_validates_filters_and_role(attendance_service, hr, alice):
    with pytest.raises(ValidationError) as exc:
        attendance_service.list_records(hr, start_date="2026-02-05", end_date="2026-02-02")
    assert exc.value.rule == "end_before_start"

    with pytest.raises(AuthorizationError):
        attendance_service.list_records(alice)


def test_statistics(attendance_service, hr, busy_monday):
    stats = attendance_service.statistics(hr)
    assert stats.total_records == 5
    assert stats.status_counts == {"PRESENT": 2, "ABSENT": 0, "HALF_DAY": 1, "LATE": 1, "ON_LEAVE": 1}
    assert stats.total_work_hours == 11.0
    assert stats.average_work_hours == 2.2

    engineering = attendance_service.statistics(hr, department="Engineering", end_date="2026-02-02")
    assert engineering.total_records == 2
    assert engineering.total_work_hours == 3.0
    assert engineering.average_work_hours == 1.5

    empty = attendance_service.statistics(hr, start_date="2026-03-01")
    assert empty.total_records == 0
    assert empty.average_work_hours == 0.0


def test_statistics_requires_privileged_role(attendance_service, alice):
    with pytest.raises(AuthorizationError):
        attendance_service.statistics(alice)


def test_daily_summary_groups_by_department(attendance_service, hr, busy_monday):
    # a leave projection for an employee unknown to the directory has no department
    attendance_service.materialize_leave_day(99, date(2026, 2, 2), "SICK", 8)

    summary = attendance_service.daily_summary(hr, "2026-02-02")

    assert summary.total_records == 4
    assert summary.status_counts == {"PRESENT": 1, "ABSENT": 0, "HALF_DAY": 1, "LATE": 1, "ON_LEAVE": 1}
    assert summary.departments == {
        "Engineering": {"HALF_DAY": 1, "LATE": 1},
        "Finance": {"PRESENT": 1},
        "UNASSIGNED": {"ON_LEAVE": 1},
    }
    # defaults to the clock's today
    assert attendance_service.daily_summary(hr).status_counts == summary.status_counts


def test_daily_summary_requires_privileged_role(attendance_service, alice):
    with pytest.raises(AuthorizationError):
        attendance_service.daily_summary(alice, "2026-02-02")
