"""Tests for aggregating accepted values into canonical bins."""

from __future__ import annotations

import numpy as np
import pytest

from continuous_histogram.analysis.whitelist import (
    aggregate_accepted_values,
    insertion_position,
    median_gap,
    top_source,
    value_popularity,
)
from continuous_histogram.errors import ValidationError


# -----------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------


@pytest.mark.parametrize(
    "values, expected",
    [
        ([0, 1, 3, 6], 2.0),
        ([0, 1, 3, 6, 10], 2.5),
        ([6, 0, 3, 1], 2.0),
        ([4.0], 0.0),
        ([], 0.0),
    ],
)
def test_median_gap(values, expected) -> None:
    assert median_gap(values) == expected


@pytest.mark.parametrize(
    "value, expected",
    [(0.0, -1), (2.0, 0), (3.0, 0), (4.0, 1), (5.0, 2), (6.0, 2)],
)
def test_insertion_position(value, expected) -> None:
    assert insertion_position([1.0, 3.0, 5.0], value) == expected


def test_insertion_position_empty() -> None:
    assert insertion_position([], 1.0) == -1


def test_value_popularity_counts_sources_not_samples() -> None:
    assert value_popularity({"a": [1, 1, 2], "b": [2]}) == {1: 1, 2: 2}


def test_top_source_first_wins_ties() -> None:
    assert top_source({"a": [1, 2], "b": [1, 2]}) == "a"
    assert top_source({"a": [1], "b": [1, 2]}) == "b"


def test_top_source_requires_sources() -> None:
    with pytest.raises(ValidationError):
        top_source({})


# -----------------------------------------------------------------------
# Aggregation
# -----------------------------------------------------------------------


def test_unpopular_close_value_is_rejected() -> None:
    accepted = {
        "A": (10, 20, 30, 40, 50),
        "B": (10, 13, 20, 30, 40, 50),
    }
    # B scores higher, and its median gap is 10: 13 is too close to 10 and 20.
    assert top_source(accepted) == "B"
    assert aggregate_accepted_values(accepted) == [10, 20, 30, 40, 50]


def test_values_below_the_most_popular_are_prepended() -> None:
    accepted = {"a": (0, 10, 20), "b": (20,), "c": (20,)}
    assert aggregate_accepted_values(accepted) == [0, 10, 20]


def test_empty_input() -> None:
    assert aggregate_accepted_values({}) == []
    assert aggregate_accepted_values({"a": ()}) == []


@pytest.mark.parametrize("seed", [0, 1, 2, 3, 4])
def test_canonical_values_keep_their_distance(seed: int) -> None:
    rng = np.random.default_rng(seed)
    accepted = {
        s: tuple(sorted(set(np.round(rng.uniform(0, 100, size=20), 1).tolist())))
        for s in range(4)
    }
    distance = median_gap(accepted[top_source(accepted)])
    result = aggregate_accepted_values(accepted)

    assert result == sorted(result)
    assert np.all(np.diff(result) >= distance)
