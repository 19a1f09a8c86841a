from __future__ import annotations

from flask import Flask, jsonify

from ..common.http import current_actor, int_field, json_body, query_int, query_str
from ..container import Container


def register(app: Flask, container: Container) -> None:
    service = container.attendance_service

    @app.route("/api/attendance/check-in", methods=["POST"], endpoint="attendance_check_in")
    def check_in():
        data = json_body()
        record = service.check_in(
            current_actor(),
            int_field(data, "employee_id"),
            data.get("date"),
            data.get("time"),
            data.get("notes"),
        )
        return jsonify(record.to_dict()), 201

    @app.route("/api/attendance/check-out", methods=["POST"], endpoint="attendance_check_out")
    def check_out():
        data = json_body()
        record = service.check_out(
            current_actor(),
            int_field(data, "employee_id"),
            data.get("date"),
            data.get("time"),
            data.get("notes"),
        )
        return jsonify(record.to_dict())

    @app.route("/api/attendance/<int:attendance_id>", methods=["GET"], endpoint="attendance_get")
    def get_record(attendance_id: int):
        return jsonify(service.get_record(current_actor(), attendance_id).to_dict())

    @app.route("/api/attendance/<int:attendance_id>", methods=["PATCH"], endpoint="attendance_update")
    def update_record(attendance_id: int):
        data = json_body()
        kwargs = {
            "check_in_time": data.get("check_in_time"),
            "check_out_time": data.get("check_out_time"),
            "status": data.get("status"),
        }
        if "notes" in data:
            kwargs["notes"] = data["notes"]
        record = service.update_record(current_actor(), attendance_id, **kwargs)
        return jsonify(record.to_dict())

    @app.route("/api/attendance/<int:attendance_id>", methods=["DELETE"], endpoint="attendance_delete")
    def delete_record(attendance_id: int):
        service.delete_record(current_actor(), attendance_id)
        return "", 204

    @app.route("/api/employees/<int:employee_id>/attendance", methods=["GET"], endpoint="attendance_history")
    def history(employee_id: int):
        records = service.list_for_employee(
            current_actor(),
            employee_id,
            start_date=query_str("start_date"),
            end_date=query_str("end_date"),
            status=query_str("status"),
            limit=query_int("limit", 50),
            offset=query_int("offset", 0),
        )
        return jsonify({"employee_id": employee_id, "records": [r.to_dict() for r in records]})

    @app.route("/api/attendance", methods=["GET"], endpoint="attendance_list")
    def list_records():
        records = service.list_records(
            current_actor(),
            employee_id=query_int("employee_id"),
            department=query_str("department"),
            start_date=query_str("start_date"),
            end_date=query_str("end_date"),
            status=query_str("status"),
            limit=query_int("limit", 50),
            offset=query_int("offset", 0),
        )
        return jsonify({"records": [r.to_dict() for r in records]})

    @app.route("/api/attendance/stats", methods=["GET"], endpoint="attendance_stats")
    def stats():
        result = service.statistics(
            current_actor(),
            employee_id=query_int("employee_id"),
            department=query_str("department"),
            start_date=query_str("start_date"),
            end_date=query_str("end_date"),
        )
        return jsonify(result.to_dict())

    @app.route("/api/attendance/daily-summary", methods=["GET"], endpoint="attendance_daily_summary")
    def daily_summary():
        return jsonify(service.daily_summary(current_actor(), query_str("date")).to_dict())
