"""
Tests for the HEATS, VERSUS and SIMULTANEOUS partition strategies.
"""

import pytest

from competition_scheduler.services.competition_modes import (
    build_heats,
    build_simultaneous,
    pair_versus,
    parse_mode,
    partition,
    wod_minutes,
)
from competition_scheduler.services.errors import ConfigurationError
from competition_scheduler.services.schedule_types import CompetitionMode, ScheduleConfig, Wod


def _ids(n: int, prefix: str = "a") -> list:
    return [f"{prefix}{i}" for i in range(1, n + 1)]


class TestHeats:
    def test_ten_athletes_four_per_heat(self):
        heats = build_heats(_ids(10), 4, "rx-wod-1-r1")
        assert [len(h.athletes) for h in heats] == [4, 4, 2]
        assert [h.heat_id for h in heats] == ["rx-wod-1-r1-h1", "rx-wod-1-r1-h2", "rx-wod-1-r1-h3"]

    def test_roster_order_kept(self):
        heats = build_heats(_ids(5), 2)
        assert [h.athletes for h in heats] == [["a1", "a2"], ["a3", "a4"], ["a5"]]

    def test_no_athletes_no_heats(self):
        assert build_heats([], 8) == []


class TestVersus:
    def test_odd_field_gets_one_bye_for_last_athlete(self):
        matches = pair_versus(_ids(5), "open", 1)
        assert len(matches) == 3
        assert [(m.athlete1, m.athlete2) for m in matches] == [("a1", "a2"), ("a3", "a4"), ("a5", None)]
        assert [m.is_bye for m in matches] == [False, False, True]

    def test_even_field_has_no_bye(self):
        matches = pair_versus(_ids(4), "open", 2)
        assert not any(m.is_bye for m in matches)
        assert all(m.filter_number == 2 for m in matches)

    def test_match_ids_encode_category_and_round(self):
        matches = pair_versus(_ids(4), "open", 3)
        assert [m.match_id for m in matches] == ["open-f3-m1", "open-f3-m2"]


class TestSimultaneous:
    def test_single_heat_with_everyone(self):
        heats = build_simultaneous(_ids(12))
        assert len(heats) == 1
        assert heats[0].athletes == _ids(12)
        assert heats[0].heat_id == "heat-h1"


class TestModeDispatch:
    def test_parse_mode_is_case_insensitive(self):
        assert parse_mode("versus") == CompetitionMode.VERSUS
        assert parse_mode(CompetitionMode.HEATS) == CompetitionMode.HEATS

    def test_unknown_mode_is_configuration_error(self):
        with pytest.raises(ConfigurationError) as exc_info:
            parse_mode("RELAY")
        assert exc_info.value.code == "CONFIGURATION_ERROR"
        assert "RELAY" in str(exc_info.value)

    def test_wod_minutes_prefers_time_cap(self):
        config = ScheduleConfig(default_wod_minutes=25, match_slot_minutes=12)
        assert wod_minutes(CompetitionMode.HEATS, Wod(wod_id="w", name="W", time_cap_minutes=7), config) == 7
        assert wod_minutes(CompetitionMode.HEATS, Wod(wod_id="w", name="W"), config) == 25
        assert wod_minutes(CompetitionMode.VERSUS, Wod(wod_id="w", name="W"), config) == 12

    def test_partition_uses_mode_concurrency(self):
        config = ScheduleConfig(athletes_per_heat=4, concurrent_heats=2, concurrent_matches=3)
        wod = Wod(wod_id="w", name="W", time_cap_minutes=10)

        heats = partition(CompetitionMode.HEATS, _ids(10), "rx", wod, config)
        assert heats.concurrency == 2
        assert len(heats.units) == 3

        versus = partition(CompetitionMode.VERSUS, _ids(6), "rx", wod, config)
        assert versus.concurrency == 3
        assert len(versus.units) == 3
        assert versus.heats == []

        simultaneous = partition(CompetitionMode.SIMULTANEOUS, _ids(10), "rx", wod, config)
        assert simultaneous.concurrency == 1
        assert len(simultaneous.units) == 1

    def test_partition_heat_ids_name_category_wod_and_round(self):
        config = ScheduleConfig(athletes_per_heat=4)
        wod = Wod(wod_id="wod-2", name="W", time_cap_minutes=10)

        heats = partition(CompetitionMode.HEATS, _ids(6), "rx", wod, config, 3)
        assert [h.heat_id for h in heats.heats] == ["rx-wod-2-r3-h1", "rx-wod-2-r3-h2"]

        simultaneous = partition(CompetitionMode.SIMULTANEOUS, _ids(6), "scaled", wod, config)
        assert [h.heat_id for h in simultaneous.heats] == ["scaled-wod-2-r1-h1"]
