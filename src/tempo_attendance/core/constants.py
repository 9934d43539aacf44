"""Constants and defaults.

Note: Keep constants here to avoid magic strings spread across code.
"""

DEFAULT_DEPARTMENT = "General"
ALL_DEPARTMENTS = "All Departments"

STALE_CHECK_INTERVAL_SECONDS = 60
DISPLAY_TICK_SECONDS = 1

WEEK_DAYS = 7

ACCENT_COLORS = (
    "#ef4444",
    "#f97316",
    "#f59e0b",
    "#84cc16",
    "#10b981",
    "#06b6d4",
    "#3b82f6",
    "#6366f1",
    "#8b5cf6",
    "#d946ef",
    "#f43f5e",
)

# Key names used by the key-value backend.
USERS_KEY = "tempo_users"
DEPARTMENTS_KEY = "tempo_departments"
SHIFTS_KEY_PREFIX = "tempo_shifts_"
CURRENT_SHIFT_KEY_PREFIX = "tempo_current_shift_"
