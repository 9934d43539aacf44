from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from tempo_attendance.core.enums import ShiftState
from tempo_attendance.core.exceptions import AuthorizationError, PersistenceError, ValidationError
from tempo_attendance.shifts.model import Shift
from tempo_attendance.shifts.service import ShiftLifecycleEngine

from conftest import make_user


class RecordingStore:
    """Wraps a real store; can fail end_shift and records what the index showed at write time."""

    def __init__(self, inner, engine_ref=None, fail_end=False):
        self._inner = inner
        self.fail_end = fail_end
        self.engine_ref = engine_ref
        self.active_during_end = None

    def __getattr__(self, name):
        return getattr(self._inner, name)

    def end_shift(self, user, shift):
        if self.engine_ref is not None:
            self.active_during_end = user.id in self.engine_ref[0].index
        if self.fail_end:
            raise PersistenceError("network down")
        self._inner.end_shift(user, shift)


@pytest.fixture
def user(store):
    u = make_user("a", rank=1)
    store.save_user(u)
    return u


@pytest.fixture
def engine(store, fixed_now):
    return ShiftLifecycleEngine(store, clock=lambda: fixed_now)


def test_clock_in_then_out_same_day(engine, store, user):
    start = datetime(2026, 2, 2, 9, 0)
    end = datetime(2026, 2, 2, 17, 0)

    engine.clock_in(user, start)
    result = engine.clock_out(user, end)

    assert result.ok
    shift = result.value
    assert shift.start_time == start
    assert shift.end_time == end
    assert shift.duration(end) == timedelta(hours=8)
    assert engine.index.get("a") is None
    assert [s.end_time for s in store.list_shifts("a")] == [end]


def test_clock_in_same_day_resumes_existing_shift(engine, store, user):
    engine.clock_in(user, datetime(2026, 2, 2, 9, 0))
    engine.clock_out(user, datetime(2026, 2, 2, 12, 0))

    result = engine.clock_in(user, datetime(2026, 2, 2, 13, 0))

    shifts = store.list_shifts("a")
    assert len(shifts) == 1
    assert shifts[0].id == result.value.id
    assert shifts[0].end_time is None
    assert shifts[0].start_time == datetime(2026, 2, 2, 9, 0)
    assert engine.index.get("a").id == shifts[0].id


def test_clock_in_next_day_starts_new_shift(engine, store, user):
    engine.clock_in(user, datetime(2026, 2, 2, 9, 0))
    engine.clock_out(user, datetime(2026, 2, 2, 17, 0))

    result = engine.clock_in(user, datetime(2026, 2, 3, 0, 5))

    assert len(store.list_shifts("a")) == 2
    assert result.value.start_time == datetime(2026, 2, 3, 0, 5)


def test_same_day_uses_calendar_date_not_24h_window(engine, store, user):
    engine.clock_in(user, datetime(2026, 2, 2, 23, 0))
    engine.clock_out(user, datetime(2026, 2, 2, 23, 30))

    engine.clock_in(user, datetime(2026, 2, 3, 0, 15))

    assert len(store.list_shifts("a")) == 2


def test_resume_drops_shift_from_displayed_history(engine, user):
    engine.clock_in(user, datetime(2026, 2, 2, 9, 0))
    engine.clock_out(user, datetime(2026, 2, 2, 12, 0))
    shown = engine.load_history("a")
    assert len(shown) == 1

    engine.clock_in(user, datetime(2026, 2, 2, 13, 0))

    assert engine.history("a") == []


def test_clock_out_updates_displayed_history(engine, user):
    engine.load_history("a")
    engine.clock_in(user, datetime(2026, 2, 2, 9, 0))

    completed = engine.clock_out(user, datetime(2026, 2, 2, 10, 0)).value

    assert engine.history("a")[0] == completed


def test_open_shift_hidden_from_history_until_clock_out(engine, user):
    engine.load_history("a")
    started = engine.clock_in(user, datetime(2026, 2, 2, 9, 0)).value

    assert engine.history("a") == []

    engine.clock_out(user, datetime(2026, 2, 2, 10, 0))
    assert [s.id for s in engine.history("a")] == [started.id]


def test_demoted_shift_reappears_in_history_still_open(engine, user):
    engine.clock_in(user, datetime(2026, 2, 2, 9, 0))
    assert engine.load_history("a") == []

    engine.index.remove("a")

    [shift] = engine.history("a")
    assert shift.end_time is None


def test_double_clock_in_is_rejected(engine, user):
    engine.clock_in(user, datetime(2026, 2, 2, 9, 0))
    with pytest.raises(ValidationError):
        engine.clock_in(user, datetime(2026, 2, 2, 9, 5))


def test_clock_out_without_active_shift_is_rejected(engine, user):
    with pytest.raises(ValidationError):
        engine.clock_out(user, datetime(2026, 2, 2, 9, 0))


def test_toggle_dispatches_on_active_index(engine, user):
    first = engine.toggle(user, datetime(2026, 2, 2, 9, 0))
    assert first.value.end_time is None
    assert engine.state_of("a", datetime(2026, 2, 2, 9, 1)) == ShiftState.WORKING

    second = engine.toggle(user, datetime(2026, 2, 2, 10, 0))
    assert second.value.end_time == datetime(2026, 2, 2, 10, 0)
    assert engine.state_of("a", datetime(2026, 2, 2, 10, 1)) == ShiftState.OUT


def test_toggle_with_stale_entry_clocks_in_fresh(engine, store, user):
    engine.clock_in(user, datetime(2026, 2, 2, 9, 0))
    assert engine.state_of("a", datetime(2026, 2, 3, 8, 0)) == ShiftState.STALE

    result = engine.toggle(user, datetime(2026, 2, 3, 8, 0))

    assert result.value.start_time == datetime(2026, 2, 3, 8, 0)
    shifts = {s.start_time.date().day: s for s in store.list_shifts("a")}
    assert shifts[2].end_time is None
    assert shifts[3].end_time is None


def test_index_removed_only_after_end_is_durable(store, user):
    holder = []
    recording = RecordingStore(store, engine_ref=holder)
    engine = ShiftLifecycleEngine(recording)
    holder.append(engine)

    engine.clock_in(user, datetime(2026, 2, 2, 9, 0))
    engine.clock_out(user, datetime(2026, 2, 2, 17, 0))

    assert recording.active_during_end is True
    assert "a" not in engine.index


def test_failed_clock_out_keeps_user_active(store, user):
    recording = RecordingStore(store, fail_end=True)
    engine = ShiftLifecycleEngine(recording)
    engine.clock_in(user, datetime(2026, 2, 2, 9, 0))

    result = engine.clock_out(user, datetime(2026, 2, 2, 17, 0))

    assert not result.ok
    assert isinstance(result.error, PersistenceError)
    assert "a" in engine.index


def test_elapsed_for_active_shift(engine, user):
    engine.clock_in(user, datetime(2026, 2, 2, 9, 0))

    assert engine.elapsed("a", datetime(2026, 2, 2, 9, 30, 15)) == timedelta(minutes=30, seconds=15)
    assert engine.elapsed("zzz", datetime(2026, 2, 2, 9, 30)) == timedelta(0)


def test_closed_duration_floors_at_zero():
    skewed = Shift(id="s", user_id="a", start_time=datetime(2026, 2, 2, 9), end_time=datetime(2026, 2, 2, 8))
    assert skewed.duration(datetime(2026, 2, 2, 12)) == timedelta(0)


def test_manual_entry_validates_before_writing(engine, store, user, admin, guest):
    with pytest.raises(ValidationError):
        engine.add_manual_entry(admin, user, datetime(2026, 2, 1, 17), datetime(2026, 2, 1, 9))
    with pytest.raises(ValidationError):
        engine.add_manual_entry(admin, user, None, datetime(2026, 2, 1, 9))
    with pytest.raises(AuthorizationError):
        engine.add_manual_entry(guest, user, datetime(2026, 2, 1, 9), datetime(2026, 2, 1, 17))
    assert store.list_shifts("a") == []

    result = engine.add_manual_entry(admin, user, datetime(2026, 2, 1, 9), datetime(2026, 2, 1, 17), " fixed ")

    assert result.ok
    assert store.list_shifts("a")[0].note == "fixed"
    assert engine.index.get("a") is None


def test_manual_entry_does_not_disturb_open_shift(engine, store, user, admin):
    engine.clock_in(user, datetime(2026, 2, 2, 9, 0))

    engine.add_manual_entry(admin, user, datetime(2026, 2, 1, 9), datetime(2026, 2, 1, 17))

    assert store.list_active_shifts(datetime(2026, 2, 2, 10))["a"].id == engine.index.get("a").id


def test_delete_active_shift_clears_index(engine, store, user, admin):
    shift = engine.clock_in(user, datetime(2026, 2, 2, 9, 0)).value

    engine.delete_shift(admin, "a", shift.id)

    assert "a" not in engine.index
    assert store.list_shifts("a") == []


def test_rebuild_matches_incremental_index(engine, store, user, fixed_now):
    b = make_user("b", rank=2)
    store.save_user(b)
    engine.clock_in(user, datetime(2026, 2, 2, 8, 0))
    engine.clock_in(b, datetime(2026, 2, 2, 8, 30))
    engine.clock_out(b, datetime(2026, 2, 2, 8, 45))

    shifts_by_user = {u.id: store.list_shifts(u.id) for u in (user, b)}
    assert engine.index.matches(shifts_by_user, fixed_now)

    incremental = {uid: s.id for uid, s in engine.index.items()}
    engine.rebuild_active_index([user, b], fixed_now)
    assert {uid: s.id for uid, s in engine.index.items()} == incremental
    assert list(incremental) == ["a"]


def test_load_active_reads_store(engine, store, user):
    store.start_shift(user, Shift(id="s", user_id="a", start_time=datetime(2026, 2, 2, 7)))

    engine.load_active(datetime(2026, 2, 2, 9))

    assert engine.index.get("a").id == "s"
