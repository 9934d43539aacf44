from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.web import current_context, save_context
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/session", methods=["GET"], endpoint="session_info")
    def session_info():
        ctx = current_context()
        return jsonify({"isAdmin": ctx.is_admin, "selectedDepartment": ctx.selected_department})

    @app.route("/api/session/department", methods=["POST"], endpoint="select_department")
    def select_department():
        data = request.get_json(silent=True) or {}
        ctx = current_context()
        ctx.selected_department = (data.get("department") or "").strip() or ctx.selected_department
        save_context(ctx)
        return jsonify({"success": True, "selectedDepartment": ctx.selected_department})

    @app.route("/api/admin/login", methods=["POST"], endpoint="admin_login")
    def admin_login():
        data = request.get_json(silent=True) or {}
        ctx = current_context()
        if not container.auth_service.unlock(ctx, str(data.get("pin", ""))):
            return jsonify({"success": False, "message": "Incorrect PIN"}), 401
        save_context(ctx)
        return jsonify({"success": True, "isAdmin": True})

    @app.route("/api/admin/logout", methods=["POST"], endpoint="admin_logout")
    def admin_logout():
        ctx = current_context()
        container.auth_service.lock(ctx)
        save_context(ctx)
        return jsonify({"success": True, "isAdmin": False})
