from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.http import current_actor, int_field, json_body, query_int, query_str
from ..common.validators import require_positive_int
from ..container import Container


def register(app: Flask, container: Container) -> None:
    service = container.leave_service

    @app.route("/api/leave-requests", methods=["POST"], endpoint="leave_submit")
    def submit():
        data = json_body()
        req = service.submit(
            current_actor(),
            int_field(data, "employee_id"),
            data.get("leave_type"),
            data.get("start_date"),
            data.get("end_date"),
            data.get("reason"),
        )
        return jsonify(req.to_dict()), 201

    @app.route("/api/leave-requests", methods=["GET"], endpoint="leave_list")
    def list_requests():
        requests = service.list_requests(
            current_actor(),
            employee_id=query_int("employee_id"),
            status=query_str("status"),
            leave_type=query_str("leave_type"),
            department=query_str("department"),
            start_date=query_str("start_date"),
            end_date=query_str("end_date"),
            limit=query_int("limit", 50),
            offset=query_int("offset", 0),
        )
        return jsonify({"requests": [r.to_dict() for r in requests]})

    @app.route("/api/leave-requests/statistics", methods=["GET"], endpoint="leave_statistics")
    def statistics():
        result = service.statistics(
            current_actor(),
            employee_id=query_int("employee_id"),
            department=query_str("department"),
            start_date=query_str("start_date"),
            end_date=query_str("end_date"),
        )
        return jsonify(result.to_dict())

    @app.route("/api/leave-requests/<int:request_id>", methods=["GET"], endpoint="leave_get")
    def get_request(request_id: int):
        return jsonify(service.get_request(current_actor(), request_id).to_dict())

    @app.route("/api/leave-requests/<int:request_id>/approve", methods=["POST"], endpoint="leave_approve")
    def approve(request_id: int):
        req = service.approve(current_actor(), request_id, json_body().get("notes"))
        return jsonify(req.to_dict())

    @app.route("/api/leave-requests/<int:request_id>/reject", methods=["POST"], endpoint="leave_reject")
    def reject(request_id: int):
        req = service.reject(current_actor(), request_id, json_body().get("notes"))
        return jsonify(req.to_dict())

    @app.route("/api/leave-requests/<int:request_id>", methods=["DELETE"], endpoint="leave_cancel")
    def cancel(request_id: int):
        service.cancel(current_actor(), request_id)
        return "", 204

    @app.route("/api/leave-requests/pending", methods=["GET"], endpoint="leave_pending")
    def pending():
        requests = service.list_pending(
            current_actor(),
            leave_type=query_str("leave_type"),
            limit=query_int("limit", 50),
            offset=query_int("offset", 0),
        )
        return jsonify({"requests": [r.to_dict() for r in requests]})

    @app.route("/api/leave-requests/upcoming", methods=["GET"], endpoint="leave_upcoming")
    def upcoming():
        requests = service.list_upcoming(current_actor(), query_int("days_ahead", 30))
        return jsonify({"requests": [r.to_dict() for r in requests]})

    @app.route("/api/employees/<int:employee_id>/leave-requests", methods=["GET"], endpoint="leave_history")
    def history(employee_id: int):
        requests = service.list_for_employee(
            current_actor(),
            employee_id,
            status=query_str("status"),
            leave_type=query_str("leave_type"),
            limit=query_int("limit", 50),
            offset=query_int("offset", 0),
        )
        return jsonify({"employee_id": employee_id, "requests": [r.to_dict() for r in requests]})

    @app.route("/api/employees/<int:employee_id>/leave-balance", methods=["GET"], endpoint="leave_balance")
    def balance(employee_id: int):
        return jsonify(service.balance(current_actor(), employee_id, query_int("year")).to_dict())

    @app.route("/api/leave-balances", methods=["GET"], endpoint="leave_balances")
    def balances():
        raw_ids = request.args.getlist("employee_id")
        employee_ids = [require_positive_int(v, "employee_id") for v in raw_ids] if raw_ids else None
        results, failures = service.balances(current_actor(), employee_ids, query_int("year"))
        return jsonify(
            {
                "balances": [b.to_dict() for b in results],
                "failures": [f.to_dict() for f in failures],
            }
        )
