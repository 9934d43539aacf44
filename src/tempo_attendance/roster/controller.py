from __future__ import annotations

from dataclasses import replace

from flask import Flask, jsonify, request

from ..common.formatting import format_duration
from ..common.web import current_context, result_response, save_context, user_json
from ..container import Container
from ..core.enums import MoveDirection
from ..core.exceptions import ValidationError


def register(app: Flask, container: Container) -> None:
    roster = container.roster_service
    engine = container.shift_engine

    @app.route("/api/users", methods=["GET"], endpoint="list_users")
    def list_users():
        department = request.args.get("department") or current_context().selected_department
        out = []
        for user in roster.users_in(department):
            row = user_json(user)
            row["state"] = engine.state_of(user.id).value
            row["elapsed"] = format_duration(engine.elapsed(user.id))
            out.append(row)
        return jsonify({"users": out, "department": department})

    @app.route("/api/users", methods=["POST"], endpoint="add_user")
    def add_user():
        data = request.get_json(silent=True) or {}
        ctx = current_context()
        result = roster.add_user(ctx, data.get("name", ""), data.get("department") or None)
        return result_response(result, {"user": user_json(result.value)})

    @app.route("/api/users/<user_id>", methods=["PUT"], endpoint="update_user")
    def update_user(user_id: str):
        data = request.get_json(silent=True) or {}
        existing = roster.require_user(user_id)

        rank = data.get("rank", existing.rank)
        try:
            rank = int(rank) if rank is not None else None
        except (TypeError, ValueError):
            raise ValidationError("Rank must be a number")

        updated = replace(
            existing,
            name=(data.get("name") or existing.name).strip(),
            color=data.get("color") or existing.color,
            department=data.get("department") or existing.department,
            employee_id=data.get("employeeId", existing.employee_id),
            rank=rank,
        )
        result = roster.update_user(current_context(), updated)
        return result_response(result, {"user": user_json(updated)})

    @app.route("/api/users/<user_id>", methods=["DELETE"], endpoint="delete_user")
    def delete_user(user_id: str):
        result = roster.delete_user(current_context(), user_id)
        engine.forget_history(user_id)
        return result_response(result)

    @app.route("/api/users/<user_id>/move", methods=["POST"], endpoint="move_user")
    def move_user(user_id: str):
        data = request.get_json(silent=True) or {}
        try:
            direction = MoveDirection(str(data.get("direction", "")).lower())
        except ValueError:
            raise ValidationError("Direction must be 'prev' or 'next'")

        result = roster.move_user(current_context(), user_id, direction)
        return result_response(result, {"changed": [user_json(u) for u in result.value or []]})

    @app.route("/api/departments", methods=["GET"], endpoint="list_departments")
    def list_departments():
        return jsonify({"departments": roster.departments, "display": roster.display_departments()})

    @app.route("/api/departments", methods=["POST"], endpoint="add_department")
    def add_department():
        data = request.get_json(silent=True) or {}
        result = roster.add_department(current_context(), data.get("name", ""))
        return result_response(result, {"added": bool(result.value), "departments": roster.departments})

    @app.route("/api/departments/reorder", methods=["POST"], endpoint="reorder_departments")
    def reorder_departments():
        data = request.get_json(silent=True) or {}
        names = data.get("names")
        if not isinstance(names, list):
            raise ValidationError("names must be a list")
        result = roster.reorder_departments(current_context(), [str(n) for n in names])
        return result_response(result, {"departments": roster.departments})

    @app.route("/api/departments/<name>", methods=["PUT"], endpoint="rename_department")
    def rename_department(name: str):
        data = request.get_json(silent=True) or {}
        ctx = current_context()
        result = roster.rename_department(ctx, name, data.get("name", ""))
        save_context(ctx)
        return result_response(
            result,
            {"renamed": bool(result.value), "departments": roster.departments, "selectedDepartment": ctx.selected_department},
        )

    @app.route("/api/departments/<name>", methods=["DELETE"], endpoint="delete_department")
    def delete_department(name: str):
        ctx = current_context()
        result = roster.delete_department(ctx, name)
        save_context(ctx)
        return result_response(
            result,
            {"fallback": result.value, "departments": roster.departments, "selectedDepartment": ctx.selected_department},
        )
