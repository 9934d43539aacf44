"""Example: drive the services directly (no Flask).

Controllers are a thin layer; the roster and shift rules live in the services.
"""

from datetime import datetime

from tempo_attendance.auth.model import SessionContext
from tempo_attendance.container import build_container


def main():
    container = build_container(backend="local")
    admin = SessionContext(is_admin=True)

    container.roster_service.add_department(admin, "Engineering")
    ada = container.roster_service.add_user(admin, "Ada", "Engineering").value

    container.shift_engine.clock_in(ada, datetime(2026, 2, 2, 9, 0))
    shift = container.shift_engine.clock_out(ada, datetime(2026, 2, 2, 17, 0)).value
    print(shift, shift.duration(datetime(2026, 2, 2, 17, 0)))


if __name__ == "__main__":
    main()
