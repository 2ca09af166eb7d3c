"""Tests for per-source quantization-noise classification."""

from __future__ import annotations

import logging

import pytest

from continuous_histogram.analysis import noise
from continuous_histogram.analysis.noise import (
    LinearFrequencyScaler,
    LogFrequencyScaler,
    classify_accepted_values,
    classify_source,
    frequency_scaler_for,
    looks_like_noise,
)
from continuous_histogram.errors import InternalConsistencyError
from continuous_histogram.models.field import FieldInfo
from continuous_histogram.models.points import FrequencyPoint


def _table(pairs):
    return [FrequencyPoint(value=v, count=c) for v, c in pairs]


SOURCE_B = _table([(10, 10), (13, 1), (20, 10), (27, 1), (30, 10), (40, 10), (44, 1), (50, 10)])


def test_two_values_pass_through() -> None:
    accepted, dropped = classify_source(_table([(1.0, 100), (2.0, 1)]), LinearFrequencyScaler())
    assert accepted == (1.0, 2.0)
    assert dropped == []


def test_rare_values_between_regular_bins_are_dropped() -> None:
    accepted, dropped = classify_source(SOURCE_B, LinearFrequencyScaler(), source_id="B")
    assert accepted == (10, 20, 30, 40, 50)
    assert [d.dropped.value for d in dropped] == [13, 27, 44]
    assert all(d.source_id == "B" for d in dropped)
    # Each rejection refers back to the last accepted value.
    assert [d.previous.value for d in dropped] == [10, 20, 40]


def test_last_value_accepted_without_lookahead() -> None:
    accepted, _ = classify_source(_table([(1, 10), (2, 10), (3, 1)]), LinearFrequencyScaler())
    assert accepted == (1, 2, 3)


def test_looks_like_noise_needs_both_references() -> None:
    # Rare against the previous value but not against what follows.
    assert not looks_like_noise(1.0, 10.0, [1.0, 1.0])
    assert looks_like_noise(1.0, 10.0, [10.0, 10.0])
    # Exactly 20% is not noise.
    assert not looks_like_noise(2.0, 10.0, [10.0])


def test_lookahead_is_bounded() -> None:
    following = [10.0] * noise.LOOKAHEAD + [0.0] * 100
    assert looks_like_noise(1.0, 10.0, following)


def test_log_scaler_is_more_tolerant() -> None:
    points = _table([(1, 100), (2, 10), (3, 100)])
    linear, _ = classify_source(points, LinearFrequencyScaler())
    log, _ = classify_source(points, LogFrequencyScaler())
    assert linear == (1, 3)
    assert log == (1, 2, 3)


def test_scaler_follows_field() -> None:
    assert isinstance(frequency_scaler_for(FieldInfo("x")), LinearFrequencyScaler)
    assert isinstance(
        frequency_scaler_for(FieldInfo("x", expects_exponential_frequency=True)),
        LogFrequencyScaler,
    )
    assert LogFrequencyScaler().scale(0) == 0.0


def test_fewer_than_two_accepted_is_fatal(monkeypatch) -> None:
    monkeypatch.setattr(noise, "looks_like_noise", lambda *args: True)
    with pytest.raises(InternalConsistencyError):
        classify_source(_table([(1, 5), (2, 5), (3, 5)]), LinearFrequencyScaler(), source_id="s")


def test_classify_accepted_values_per_source(caplog) -> None:
    tables = {
        "A": _table([(v, 10) for v in (10, 20, 30, 40, 50)]),
        "B": SOURCE_B,
    }
    with caplog.at_level(logging.DEBUG, logger="continuous_histogram.analysis.noise"):
        accepted = classify_accepted_values(tables, FieldInfo("x"))

    assert accepted == {"A": (10, 20, 30, 40, 50), "B": (10, 20, 30, 40, 50)}
    assert sum("dropped as noise" in r.getMessage() for r in caplog.records) == 3
