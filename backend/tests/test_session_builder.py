"""
Tests for session packaging: durations per mode and splitting of sessions
longer than a day window.
"""

from competition_scheduler.services.schedule_types import CompetitionMode, ScheduleConfig, Wod
from competition_scheduler.services.session_builder import (
    build_sessions,
    max_session_minutes,
    session_duration,
)


def _ids(n: int) -> list:
    return [f"a{i}" for i in range(1, n + 1)]


def test_session_duration_rounds_up_concurrency():
    assert session_duration(3, 2, 20) == 40
    assert session_duration(4, 2, 20) == 40
    assert session_duration(1, 3, 15) == 15


def test_max_session_minutes_leaves_room_for_setup_and_transition():
    config = ScheduleConfig(max_day_hours=8, lunch_break_hours=1, setup_time=10, transition_time=5)
    assert max_session_minutes(config) == 405


def test_heats_session():
    config = ScheduleConfig(athletes_per_heat=4, concurrent_heats=2)
    wod = Wod(wod_id="wod-1", name="Fran", time_cap_minutes=20)

    sessions = build_sessions(CompetitionMode.HEATS, "rx", _ids(10), wod, config, number_of_rounds=2)

    assert len(sessions) == 1
    session = sessions[0]
    assert session.session_id == "rx-wod-1-r1"
    assert session.duration == 40
    assert [len(h.athletes) for h in session.heats] == [4, 4, 2]
    assert session.matches is None
    assert session.athlete_count == 10
    assert session.heat_number == 1
    assert session.number_of_heats == 2
    assert session.start_time is None


def test_versus_session_uses_match_slot_without_time_cap():
    config = ScheduleConfig(competition_mode="VERSUS", match_slot_minutes=15)
    wod = Wod(wod_id="wod-2", name="Sprint")

    sessions = build_sessions(CompetitionMode.VERSUS, "open", _ids(5), wod, config, filter_number=2)

    session = sessions[0]
    assert session.session_id == "open-wod-2-r2"
    assert len(session.matches) == 3
    assert session.duration == 45
    assert session.athlete_count == 5
    assert session.heat_number == 2


def test_simultaneous_session_lasts_one_wod():
    config = ScheduleConfig(competition_mode="SIMULTANEOUS")
    wod = Wod(wod_id="wod-1", name="Row", time_cap_minutes=12)

    sessions = build_sessions(CompetitionMode.SIMULTANEOUS, "rx", _ids(30), wod, config)

    assert len(sessions) == 1
    assert sessions[0].duration == 12
    assert len(sessions[0].heats) == 1


def test_no_athletes_no_sessions():
    wod = Wod(wod_id="wod-1", name="Fran", time_cap_minutes=20)
    assert build_sessions(CompetitionMode.HEATS, "rx", [], wod, ScheduleConfig()) == []


def test_long_partition_split_under_limit():
    config = ScheduleConfig(athletes_per_heat=4)
    wod = Wod(wod_id="wod-1", name="Murph", time_cap_minutes=20)

    # 10 heats * 20 min = 200 min; 90 min limit -> 4 heats per session
    sessions = build_sessions(CompetitionMode.HEATS, "rx", _ids(40), wod, config, limit_minutes=90)

    assert [len(s.heats) for s in sessions] == [4, 4, 2]
    assert [s.session_id for s in sessions] == ["rx-wod-1-r1-p1", "rx-wod-1-r1-p2", "rx-wod-1-r1-p3"]
    assert all(s.duration <= 90 for s in sessions)
    assert sum(s.athlete_count for s in sessions) == 40


def test_single_unit_longer_than_limit_kept_whole():
    config = ScheduleConfig(competition_mode="SIMULTANEOUS")
    wod = Wod(wod_id="wod-1", name="Marathon", time_cap_minutes=600)

    sessions = build_sessions(CompetitionMode.SIMULTANEOUS, "rx", _ids(3), wod, config, limit_minutes=405)

    assert len(sessions) == 1
    assert sessions[0].duration == 600
