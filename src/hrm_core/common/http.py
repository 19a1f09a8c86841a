"""Helpers shared by the JSON controllers.

The identity gateway in front of this service authenticates the caller and
forwards it as ``X-Actor-Id``, ``X-Actor-Role`` and ``X-Employee-Id``.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from flask import Flask, jsonify, request

from ..core.actor import Actor
from ..core.enums import Role
from ..core.exceptions import AuthorizationError, DomainError, ValidationError

logger = logging.getLogger(__name__)

STATUS_BY_KIND = {
    "invalid_input": 400,
    "forbidden": 403,
    "not_found": 404,
    "conflict": 409,
    "invalid_state": 409,
    "policy_violation": 422,
}


def current_actor() -> Actor:
    raw_id = request.headers.get("X-Actor-Id", "").strip()
    raw_role = request.headers.get("X-Actor-Role", "").strip()
    raw_employee = request.headers.get("X-Employee-Id", "").strip()

    try:
        actor_id = int(raw_id)
        role = Role(raw_role)
        employee_id = int(raw_employee) if raw_employee else None
    except ValueError:
        raise AuthorizationError("actor_required", actor_id=raw_id or None, role=raw_role or None)

    return Actor(
        id=actor_id,
        role=role,
        employee_id=employee_id,
        ip_address=request.remote_addr,
        user_agent=request.headers.get("User-Agent"),
    )


def json_body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("invalid_json_body")
    return data


def int_field(data: dict, name: str, *, required: bool = True) -> Optional[int]:
    value = data.get(name)
    if value is None or value == "":
        if required:
            raise ValidationError("required_field", field=name)
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError("invalid_integer", field=name, value=value)


def query_int(name: str, default: Optional[int] = None) -> Optional[int]:
    return int_field(dict(request.args), name, required=False) if name in request.args else default


def query_str(name: str) -> Optional[str]:
    value = request.args.get(name, "").strip()
    return value or None


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(exc: DomainError) -> Any:
        status = STATUS_BY_KIND.get(exc.kind, 400)
        logger.info(
            "Request rejected",
            extra={"event": "REQUEST_REJECTED", "path": request.path, "kind": exc.kind, "rule": exc.rule},
        )
        return jsonify(exc.to_dict()), status
