from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, Optional

from flask import Flask, jsonify, session

from ..auth.model import SessionContext
from .datetime_utils import is_same_day, to_iso
from .formatting import format_duration
from ..core.constants import ALL_DEPARTMENTS
from ..core.exceptions import AuthorizationError, PersistenceError, ValidationError
from ..core.result import OperationResult
from ..roster.model import User
from ..shifts.model import Shift

logger = logging.getLogger(__name__)


def current_context() -> SessionContext:
    return SessionContext(
        is_admin=bool(session.get("is_admin", False)),
        selected_department=session.get("selected_department") or ALL_DEPARTMENTS,
    )


def save_context(ctx: SessionContext) -> None:
    session["is_admin"] = bool(ctx.is_admin)
    session["selected_department"] = ctx.selected_department


def user_json(user: User) -> Dict[str, Any]:
    return {
        "id": user.id,
        "name": user.name,
        "color": user.color,
        "department": user.department_or_default,
        "employeeId": user.employee_id,
        "rank": user.rank,
    }


def shift_json(shift: Shift, now: Optional[datetime] = None) -> Dict[str, Any]:
    data = {
        "id": shift.id,
        "userId": shift.user_id,
        "startTime": to_iso(shift.start_time),
        "endTime": to_iso(shift.end_time),
        "note": shift.note,
    }
    if now is not None:
        data["duration"] = format_duration(shift.duration(now)) if shift.end_time else "-"
        data["missingClockOut"] = shift.end_time is None and not is_same_day(shift.start_time, now)
    return data


def result_response(result: OperationResult, payload: Optional[Dict[str, Any]] = None):
    if result.ok:
        body = {"success": True}
        body.update(payload or {})
        return jsonify(body)
    return jsonify({"success": False, "message": f"Could not save changes: {result.message}"}), 503


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(ValidationError)
    def _validation_error(e: ValidationError):
        return jsonify({"success": False, "message": str(e)}), 400

    @app.errorhandler(AuthorizationError)
    def _authorization_error(e: AuthorizationError):
        return jsonify({"success": False, "message": str(e)}), 403

    @app.errorhandler(PersistenceError)
    def _persistence_error(e: PersistenceError):
        logger.error("Storage failure: %s", e)
        return jsonify({"success": False, "message": "Storage is unavailable"}), 503
