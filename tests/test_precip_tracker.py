"""Tests for precipitation tracking and dryness classification."""

from datetime import timedelta

import pytest

from conftest import point_at, sample_at
from freeze_models import AlertState
from precip_tracker import (
    RISK_HIGH,
    RISK_LOW,
    RISK_MODERATE,
    RISK_UNKNOWN,
    classify_dryness,
    update_precipitation,
)


class TestClassifyDryness:

    def test_no_data(self, now):
        risk = classify_dryness(None, now)
        assert risk.level == RISK_UNKNOWN
        assert risk.days_dry is None
        assert risk.message == "No recent precipitation data"
        assert not risk.is_high

    @pytest.mark.parametrize("hours,level", [
        (0, RISK_HIGH),
        (11, RISK_HIGH),
        (11.99, RISK_HIGH),
        (12, RISK_MODERATE),
        (18, RISK_MODERATE),
        (24, RISK_LOW),
        (36, RISK_LOW),
    ])
    def test_boundaries(self, now, hours, level):
        risk = classify_dryness(now - timedelta(hours=hours), now)
        assert risk.level == level

    def test_high_risk_message(self, now):
        risk = classify_dryness(now - timedelta(hours=11), now)
        assert risk.is_high
        assert "HIGH ICE RISK" in risk.message

    def test_moderate_message_reports_days(self, now):
        risk = classify_dryness(now - timedelta(hours=18), now)
        assert risk.message == "Precipitation 0.8 days ago - MODERATE RISK"

    def test_lower_risk_reports_days_dry(self, now):
        risk = classify_dryness(now - timedelta(hours=36), now)
        assert risk.days_dry == 1.5
        assert risk.message == "Dry for 1.5 days - lower ice risk"


class TestUpdatePrecipitation:

    def test_current_rain_sets_now(self, now):
        state = AlertState(last_precip_at=now - timedelta(days=3))
        updated = update_precipitation(state, sample_at(now, 2.0, rain=0.4), [], now)
        assert updated.last_precip_at == now

    def test_current_snow_sets_now(self, now):
        updated = update_precipitation(AlertState(), sample_at(now, -2.0, snow=1.0), [], now)
        assert updated.last_precip_at == now

    def test_condition_code_counts_as_precip(self, now):
        updated = update_precipitation(AlertState(), sample_at(now, 1.0, code=501), [], now)
        assert updated.last_precip_at == now

    def test_dry_now_and_dry_forecast_keeps_state(self, now):
        state = AlertState()
        forecast = [point_at(now, 3 * i, 1.0) for i in range(1, 9)]
        assert update_precipitation(state, sample_at(now, 1.0), forecast, now) is state

    def test_forecast_seeds_empty_state(self, now):
        forecast = [point_at(now, 3, 1.0), point_at(now, 6, 0.5, precip_mm=2.0)]
        updated = update_precipitation(AlertState(), sample_at(now, 1.0), forecast, now)
        assert updated.last_precip_at == now

    def test_forecast_does_not_refresh_known_time(self, now):
        earlier = now - timedelta(days=2)
        state = AlertState(last_precip_at=earlier)
        forecast = [point_at(now, 3, 1.0, precip_mm=5.0)]
        updated = update_precipitation(state, sample_at(now, 1.0), forecast, now)
        assert updated.last_precip_at == earlier

    def test_forecast_scan_is_bounded(self, now):
        forecast = [point_at(now, 3 * i, 1.0) for i in range(1, 9)]
        forecast.append(point_at(now, 27, 1.0, precip_mm=3.0))
        updated = update_precipitation(AlertState(), sample_at(now, 1.0), forecast, now)
        assert updated.last_precip_at is None

    def test_zero_amount_is_dry(self, now):
        forecast = [point_at(now, 3, 1.0, precip_mm=0.0)]
        updated = update_precipitation(AlertState(), sample_at(now, 1.0), forecast, now)
        assert updated.last_precip_at is None

    def test_does_not_mutate_input(self, now):
        state = AlertState()
        update_precipitation(state, sample_at(now, 1.0, rain=1.0), [], now)
        assert state.last_precip_at is None
