"""Tests for per-source frequency tables and the zero-filled histogram."""

from __future__ import annotations

import pytest

from continuous_histogram.analysis.deltas import estimate_min_resolution
from continuous_histogram.analysis.frequencies import filled_frequencies, ordered_frequencies
from continuous_histogram.errors import ResourceLimitError, ValidationError
from continuous_histogram.models.points import FrequencyPoint, Observation


def _pairs(points):
    return [(p.value, p.count) for p in points]


def test_ordered_frequencies_per_source() -> None:
    obs = [
        Observation(3.0, 0.0, "b"),
        Observation(2.0, 1.0, "a"),
        Observation(None, 2.0, "a"),
        Observation(2.0, 3.0, "a"),
        Observation(1.0, 4.0, "a"),
    ]
    tables = ordered_frequencies(obs)

    assert list(tables) == ["b", "a"]
    assert _pairs(tables["a"]) == [(1.0, 1), (2.0, 2)]
    assert _pairs(tables["b"]) == [(3.0, 1)]


def test_ordered_frequencies_all_absent() -> None:
    assert ordered_frequencies([Observation(None, 0.0)]) == {}


def test_wide_gap_gets_two_zero_points() -> None:
    tables = {"a": [FrequencyPoint(1.0, 2), FrequencyPoint(2.0, 1), FrequencyPoint(5.0, 4)]}
    out = filled_frequencies(tables, 1.0)
    assert _pairs(out) == [(1.0, 2), (2.0, 1), (3.0, 0), (4.0, 0), (5.0, 4)]


def test_two_step_gap_gets_one_zero_point() -> None:
    out = filled_frequencies({"a": [FrequencyPoint(1.0, 1), FrequencyPoint(3.0, 1)]}, 1.0)
    assert _pairs(out) == [(1.0, 1), (2.0, 0), (3.0, 1)]


def test_drifted_resolution_adds_no_zero_between_neighbours() -> None:
    values = [0.1, 0.2, 0.3]
    resolution = estimate_min_resolution(values)
    assert resolution != 0.1  # 0.3 - 0.2
    out = filled_frequencies({0: [FrequencyPoint(v, 1) for v in values]}, resolution)
    assert _pairs(out) == [(0.1, 1), (0.2, 1), (0.3, 1)]


def test_drifted_resolution_still_fills_real_gaps() -> None:
    out = filled_frequencies({0: [FrequencyPoint(0.1, 1), FrequencyPoint(0.3, 1)]}, 0.3 - 0.2)
    assert len(out) == 3
    assert out[1].count == 0
    assert out[1].value == pytest.approx(0.2)


def test_equal_values_coalesce_across_sources() -> None:
    tables = {
        "a": [FrequencyPoint(1.0, 1), FrequencyPoint(2.0, 1)],
        "b": [FrequencyPoint(2.0, 3)],
    }
    assert _pairs(filled_frequencies(tables, 1.0)) == [(1.0, 1), (2.0, 4)]


def test_empty_tables() -> None:
    assert filled_frequencies({}, 1.0) == []


def test_resolution_must_be_positive() -> None:
    with pytest.raises(ValidationError):
        filled_frequencies({"a": [FrequencyPoint(1.0, 1)]}, 0.0)


def test_resource_limit() -> None:
    tables = {"a": [FrequencyPoint(float(v), 1) for v in range(3)]}
    assert len(filled_frequencies(tables, 1.0, max_points=4)) == 3
    with pytest.raises(ResourceLimitError) as exc:
        filled_frequencies(tables, 1.0, max_points=3)
    assert exc.value.limit == 3
