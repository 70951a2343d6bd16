"""Settings-derived scheduling and time helpers"""
from datetime import datetime, timedelta, timezone

import pytest

from civic_escalation.config.settings import Settings
from civic_escalation.utils.time import hours_between, minutes_between, parse_iso


def make_settings(**kwargs) -> Settings:
    return Settings(_env_file=None, **kwargs)


class TestEscalationInterval:
    def test_production_default(self):
        s = make_settings(escalation_worker_interval_seconds=0, test_escalation_override_minutes=0)

        assert s.escalation_interval_seconds == 3600
        assert s.escalation_interval_reason == "production"

    def test_configured_interval(self):
        s = make_settings(escalation_worker_interval_seconds=600, test_escalation_override_minutes=0)

        assert s.escalation_interval_seconds == 600
        assert s.escalation_interval_reason == "configured"

    @pytest.mark.parametrize("configured, expected", [(0, 30), (10, 10), (600, 30)])
    def test_override_caps_interval(self, configured, expected):
        s = make_settings(escalation_worker_interval_seconds=configured, test_escalation_override_minutes=2)

        assert s.escalation_interval_seconds == expected
        assert s.escalation_interval_reason == "pilot override"


class TestTime:
    def test_naive_is_utc(self):
        aware = datetime(2024, 1, 1, 12, tzinfo=timezone.utc)

        assert minutes_between(aware.replace(tzinfo=None), aware + timedelta(minutes=90)) == 90

    def test_offsets_are_normalised(self):
        ist = timezone(timedelta(hours=5, minutes=30))
        start = datetime(2024, 1, 1, 17, 30, tzinfo=ist)  # 12:00 UTC

        assert hours_between(start, datetime(2024, 1, 1, 14, tzinfo=timezone.utc)) == 2

    def test_negative_elapsed_is_clamped(self):
        now = datetime(2024, 1, 1, tzinfo=timezone.utc)

        assert minutes_between(now + timedelta(hours=1), now) == 0

    def test_parse_iso_z_suffix(self):
        assert parse_iso("2024-01-01T12:00:00Z") == datetime(2024, 1, 1, 12, tzinfo=timezone.utc)
