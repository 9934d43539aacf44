from __future__ import annotations

from flask import Flask, Response, jsonify, request

from ..auth.service import require_admin
from ..common.datetime_utils import now_local, parse_iso_date
from ..common.web import current_context, shift_json
from ..container import Container
from ..core.constants import ALL_DEPARTMENTS
from ..core.exceptions import ValidationError


def register(app: Flask, container: Container) -> None:
    roster = container.roster_service
    reports = container.report_service

    def _filtered_rows():
        require_admin(current_context())

        department = request.args.get("department") or None
        if department == ALL_DEPARTMENTS:
            department = None
        try:
            start = parse_iso_date(request.args["start"]) if request.args.get("start") else None
            end = parse_iso_date(request.args["end"]) if request.args.get("end") else None
        except ValueError:
            raise ValidationError("Dates must use YYYY-MM-DD")

        return reports.enriched_shifts(
            roster.users,
            department=department,
            start_date=start,
            end_date=end,
            search=request.args.get("q"),
        )

    @app.route("/api/reports/shifts", methods=["GET"], endpoint="report_shifts")
    def report_shifts():
        now = now_local()
        rows = _filtered_rows()
        return jsonify(
            {
                "rows": [
                    {
                        "employeeName": r.user_name,
                        "employeeId": r.employee_id,
                        "department": r.department,
                        "shift": shift_json(r.shift, now),
                    }
                    for r in rows
                ]
            }
        )

    @app.route("/api/reports/shifts.csv", methods=["GET"], endpoint="report_shifts_csv")
    def report_shifts_csv():
        body = reports.export_csv(_filtered_rows())
        filename = f"attendance_report_{now_local().date().isoformat()}.csv"
        return Response(
            body,
            mimetype="text/csv",
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )
