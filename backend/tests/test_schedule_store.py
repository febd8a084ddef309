"""
Tests for schedule persistence under interleaved writers.

Two categories of one VERSUS schedule advance from loads taken before
either write. The second write must be rejected instead of overwriting
the first category's progress.
"""

import pytest

from competition_scheduler.services import schedule_store
from competition_scheduler.services.errors import StaleScheduleError
from competition_scheduler.services.schedule_assembler import generate
from competition_scheduler.services.schedule_types import MatchResult, ScheduleConfig
from competition_scheduler.services.standings_calculator import compute_standings
from competition_scheduler.services.tournament_progression import submit_round
from competition_scheduler.utils.schedule_guards import http_error


def _two_category_schedule(roster_factory):
    roster = roster_factory({"a": 4, "b": 4}, wod_caps=(10, 10))
    config = ScheduleConfig(
        competition_mode="VERSUS",
        category_heats={"a": 2, "b": 2},
        heat_wod_mapping={"a": {1: "wod-1", 2: "wod-2"}, "b": {1: "wod-1", 2: "wod-2"}},
    )
    return generate("evt-1", config, roster)


def _round_one(category_id: str):
    return [
        MatchResult(category_id=category_id, match_id=f"{category_id}-f1-m{n}", winner_id=winner, filter_number=1)
        for n, winner in enumerate((f"{category_id}-a1", f"{category_id}-a3"), start=1)
    ]


def _advance(session, record, category_id, expected_version=None):
    outcome = submit_round(record.to_schedule(), category_id, 1, _round_one(category_id))
    if not outcome.no_op:
        schedule_store.record_progress(
            session, record, outcome.schedule, outcome.recorded_results, expected_version=expected_version
        )
    return outcome


class TestStaleWrites:
    def test_stale_load_rejected_across_sessions(self, session, other_session, roster_factory):
        schedule_id = schedule_store.save(session, _two_category_schedule(roster_factory)).schedule_id
        record = schedule_store.get_record(session, "evt-1", schedule_id)
        stale = schedule_store.get_record(other_session, "evt-1", schedule_id)
        assert stale.version == record.version == 1

        _advance(session, record, "a")
        assert record.version == 2

        with pytest.raises(StaleScheduleError) as exc_info:
            _advance(other_session, stale, "b")
        assert exc_info.value.code == "STALE_SCHEDULE"

        fresh = schedule_store.get_record(other_session, "evt-1", schedule_id)
        stored = fresh.to_schedule()
        assert stored.brackets["a"].status == "round_2_pending"
        assert stored.brackets["b"].status == "round_1_pending"
        assert len(schedule_store.load_history(other_session, fresh, "a")) == 2
        assert schedule_store.load_history(other_session, fresh, "b") == []

    def test_retry_from_fresh_load_keeps_both_categories(self, session, roster_factory):
        record = schedule_store.save(session, _two_category_schedule(roster_factory))
        loaded_at = record.version

        _advance(session, record, "a")
        with pytest.raises(StaleScheduleError):
            _advance(session, record, "b", expected_version=loaded_at)

        record = schedule_store.get_record(session, "evt-1", record.schedule_id)
        _advance(session, record, "b")

        stored = schedule_store.get_record(session, "evt-1", record.schedule_id).to_schedule()
        assert stored.brackets["a"].status == "round_2_pending"
        assert stored.brackets["b"].status == "round_2_pending"
        assert record.version == 3

        # identical resubmission of a's round is a no-op, history untouched
        assert _advance(session, record, "a").no_op is True
        history = schedule_store.load_history(session, record, "a")
        assert len(history) == 2
        by_id = {s.athlete_id: s for s in compute_standings(record.schedule_id, "a", history)}
        assert by_id["a-a1"].wins == 1
        assert by_id["a-a2"].eliminated is True

    def test_replace_from_stale_load_rejected(self, session, roster_factory):
        record = schedule_store.save(session, _two_category_schedule(roster_factory))
        loaded_at = record.version
        _advance(session, record, "a")

        with pytest.raises(StaleScheduleError):
            schedule_store.replace(session, record, _two_category_schedule(roster_factory), expected_version=loaded_at)

        record = schedule_store.get_record(session, "evt-1", record.schedule_id)
        assert len(schedule_store.load_history(session, record, "a")) == 2

    def test_stale_write_maps_to_conflict(self):
        error = http_error(StaleScheduleError("Schedule s-1 was modified by another request"))
        assert error.status_code == 409
        assert error.detail.startswith("STALE_SCHEDULE:")


class TestPublishedFlag:
    def test_round_progress_keeps_publication(self, session, roster_factory):
        record = schedule_store.save(session, _two_category_schedule(roster_factory))
        schedule_store.publish(session, record)

        _advance(session, record, "a")

        record = schedule_store.get_record(session, "evt-1", record.schedule_id)
        assert record.published is True
        assert record.to_schedule().published is True
