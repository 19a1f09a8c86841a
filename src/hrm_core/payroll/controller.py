from __future__ import annotations

from flask import Flask, jsonify

from ..common.http import current_actor, int_field, json_body, query_int, query_str
from ..common.validators import require_positive_int
from ..container import Container


def register(app: Flask, container: Container) -> None:
    payroll = container.payroll_service
    salaries = container.salary_service

    @app.route("/api/salary-structures", methods=["POST"], endpoint="salary_create")
    def create_structure():
        data = json_body()
        structure = salaries.create_structure(
            current_actor(),
            int_field(data, "employee_id"),
            data.get("basic_salary"),
            data.get("allowances"),
            data.get("deductions"),
            data.get("effective_from"),
        )
        return jsonify(structure.to_dict()), 201

    @app.route("/api/employees/<int:employee_id>/salary-structure", methods=["GET"], endpoint="salary_active")
    def active_structure(employee_id: int):
        return jsonify(salaries.view_active(current_actor(), employee_id).to_dict())

    @app.route("/api/payroll/generate", methods=["POST"], endpoint="payroll_generate")
    def generate():
        data = json_body()
        record = payroll.generate(
            current_actor(),
            int_field(data, "employee_id"),
            int_field(data, "month"),
            int_field(data, "year"),
        )
        return jsonify(record.to_dict()), 201

    @app.route("/api/payroll/generate-bulk", methods=["POST"], endpoint="payroll_generate_bulk")
    def generate_bulk():
        data = json_body()
        raw_ids = data.get("employee_ids")
        employee_ids = [require_positive_int(v, "employee_ids") for v in raw_ids] if raw_ids else None
        result = payroll.generate_bulk(
            current_actor(),
            int_field(data, "month"),
            int_field(data, "year"),
            employee_ids,
        )
        return jsonify(result.to_dict())

    @app.route("/api/payroll/<int:payroll_id>", methods=["GET"], endpoint="payroll_get")
    def get_record(payroll_id: int):
        return jsonify(payroll.get_record(current_actor(), payroll_id).to_dict())

    @app.route("/api/payroll", methods=["GET"], endpoint="payroll_list")
    def list_records():
        records = payroll.list_records(
            current_actor(),
            month=query_int("month"),
            year=query_int("year"),
            employee_id=query_int("employee_id"),
            status=query_str("status"),
            limit=query_int("limit", 50),
            offset=query_int("offset", 0),
        )
        return jsonify({"records": [r.to_dict() for r in records]})

    @app.route("/api/payroll/summary", methods=["GET"], endpoint="payroll_summary")
    def summary():
        result = payroll.summary(
            current_actor(),
            month=query_int("month"),
            year=query_int("year"),
            employee_id=query_int("employee_id"),
            status=query_str("status"),
        )
        return jsonify(result.to_dict())

    @app.route("/api/payroll/analytics/<int:year>", methods=["GET"], endpoint="payroll_analytics")
    def analytics(year: int):
        return jsonify(payroll.yearly_analytics(current_actor(), year).to_dict())
