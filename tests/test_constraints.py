"""Tests for forecasting policy and profile validation logic."""

from __future__ import annotations

import pytest

from backend.domain.constraints import (
    ForecastingPolicy,
    InvalidProfileError,
    floor_count,
    round_half_up,
    validate_engine_input,
    validate_forecasting_policy,
    workflow_cycle_time_days,
)
from backend.domain.models import (
    ForecastingEngineInput,
    LaborAvailabilityProfile,
    SubstrateInventoryProfile,
    WorkflowTimingProfile,
)


def valid_policy(**overrides) -> ForecastingPolicy:
    """Return a valid baseline ForecastingPolicy, optionally overriding fields."""
    defaults = {
        "throughput_min_ratio": 0.7,
        "yield_min_ratio": 0.85,
        "bottleneck_threshold": 2,
        "low_throughput_threshold": 2,
    }
    defaults.update(overrides)
    return ForecastingPolicy(**defaults)


# --- Policy ---

def test_valid_policy_passes() -> None:
    validate_forecasting_policy(valid_policy())


def test_default_policy_matches_documented_constants() -> None:
    assert ForecastingPolicy() == valid_policy()


@pytest.mark.parametrize(
    "overrides",
    [
        {"throughput_min_ratio": -0.1},
        {"throughput_min_ratio": 1.01},
        {"yield_min_ratio": -0.01},
        {"yield_min_ratio": 2.0},
        {"bottleneck_threshold": -1},
        {"low_throughput_threshold": -1},
    ],
)
def test_out_of_range_policy_raises(overrides) -> None:
    with pytest.raises(ValueError):
        validate_forecasting_policy(valid_policy(**overrides))


def test_ratio_boundaries_pass() -> None:
    validate_forecasting_policy(valid_policy(throughput_min_ratio=0.0, yield_min_ratio=1.0))


# --- Arithmetic ---

def test_floor_count_absorbs_representation_error() -> None:
    assert floor_count(0.29 * 100) == 29
    assert floor_count(77.28 / 2) == 38
    assert floor_count(60 * 0.93) == 55


def test_round_half_up() -> None:
    assert round_half_up(12.5) == 13
    assert round_half_up(12.49) == 12
    assert round_half_up(700.0) == 700


# --- Profiles ---

def test_cycle_time_includes_delay_factor() -> None:
    workflow = WorkflowTimingProfile("wf", "Workflow", 10, historical_delay_factor=0.2)

    assert workflow_cycle_time_days(workflow) == pytest.approx(12.0)


def test_engine_input_reports_first_invalid_field() -> None:
    payload = ForecastingEngineInput(
        facility_id="facility-1",
        horizon_days=14,
        rooms=(),
        equipment=(),
        substrate=SubstrateInventoryProfile(100, 10, 0.9),
        labor=(LaborAvailabilityProfile("technician", 8, -1),),
        workflows=(),
    )

    with pytest.raises(InvalidProfileError) as exc_info:
        validate_engine_input(payload)

    assert exc_info.value.to_dict() == {
        "profile": "labor[technician]",
        "field": "hours_per_batch",
        "message": "must be > 0, got -1",
    }


def test_completion_rate_outside_unit_interval_is_rejected() -> None:
    payload = ForecastingEngineInput(
        facility_id="facility-1",
        horizon_days=14,
        rooms=(),
        equipment=(),
        substrate=SubstrateInventoryProfile(100, 10, 1.2),
        labor=(),
        workflows=(),
    )

    with pytest.raises(InvalidProfileError) as exc_info:
        validate_engine_input(payload)

    assert exc_info.value.field == "historical_completion_rate"
