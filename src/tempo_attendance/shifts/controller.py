from __future__ import annotations

from datetime import datetime

from flask import Flask, Response, jsonify, request

from ..common.datetime_utils import now_local, parse_iso_datetime
from ..common.formatting import format_duration
from ..common.web import current_context, result_response, shift_json
from ..container import Container
from ..core.constants import DISPLAY_TICK_SECONDS
from ..core.exceptions import ValidationError


def _parse_timestamp(value, field_name: str) -> datetime | None:
    if not value:
        return None
    try:
        return parse_iso_datetime(str(value))
    except ValueError:
        raise ValidationError(f"{field_name} is not a valid date/time")


def register(app: Flask, container: Container) -> None:
    roster = container.roster_service
    engine = container.shift_engine
    reports = container.report_service

    @app.route("/api/active", methods=["GET"], endpoint="active_shifts")
    def active_shifts():
        now = now_local()
        return jsonify({uid: shift_json(s, now) for uid, s in engine.index.items()})

    @app.route("/api/users/<user_id>/clock-in", methods=["POST"], endpoint="clock_in")
    def clock_in(user_id: str):
        user = roster.require_user(user_id)
        result = engine.clock_in(user)
        return result_response(result, {"shift": shift_json(result.value) if result.value else None})

    @app.route("/api/users/<user_id>/clock-out", methods=["POST"], endpoint="clock_out")
    def clock_out(user_id: str):
        user = roster.require_user(user_id)
        result = engine.clock_out(user)
        return result_response(result, {"shift": shift_json(result.value, now_local())})

    @app.route("/api/users/<user_id>/toggle", methods=["POST"], endpoint="toggle_status")
    def toggle_status(user_id: str):
        user = roster.require_user(user_id)
        result = engine.toggle(user)
        return result_response(
            result,
            {"state": engine.state_of(user_id).value, "shift": shift_json(result.value) if result.value else None},
        )

    @app.route("/api/users/<user_id>/elapsed", methods=["GET"], endpoint="elapsed")
    def elapsed(user_id: str):
        roster.require_user(user_id)
        return jsonify(
            {
                "state": engine.state_of(user_id).value,
                "elapsed": format_duration(engine.elapsed(user_id)),
                "refreshSeconds": DISPLAY_TICK_SECONDS,
            }
        )

    @app.route("/api/users/<user_id>/shifts", methods=["GET"], endpoint="user_shifts")
    def user_shifts(user_id: str):
        roster.require_user(user_id)
        now = now_local()
        shifts = engine.load_history(user_id) if request.args.get("refresh") else engine.history(user_id)
        return jsonify(
            {
                "shifts": [shift_json(s, now) for s in shifts],
                "week": reports.week_hours(shifts, now.date()),
            }
        )

    @app.route("/api/users/<user_id>/shifts", methods=["POST"], endpoint="add_manual_shift")
    def add_manual_shift(user_id: str):
        user = roster.require_user(user_id)
        data = request.get_json(silent=True) or {}
        result = engine.add_manual_entry(
            current_context(),
            user,
            _parse_timestamp(data.get("startTime"), "Start time"),
            _parse_timestamp(data.get("endTime"), "End time"),
            data.get("note"),
        )
        return result_response(result, {"shift": shift_json(result.value, now_local())})

    @app.route("/api/users/<user_id>/shifts/<shift_id>", methods=["DELETE"], endpoint="delete_shift")
    def delete_shift(user_id: str, shift_id: str):
        result = engine.delete_shift(current_context(), user_id, shift_id)
        return result_response(result)

    @app.route("/api/users/<user_id>/shifts.csv", methods=["GET"], endpoint="user_shifts_csv")
    def user_shifts_csv(user_id: str):
        user = roster.require_user(user_id)
        body = reports.export_user_csv(engine.history(user_id))
        filename = f"{user.name.replace(' ', '_')}_attendance_{now_local().date().isoformat()}.csv"
        return Response(
            body,
            mimetype="text/csv",
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )
