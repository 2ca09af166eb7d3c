"""Tests for the DataFrame-backed observation source."""

from __future__ import annotations

import dataclasses

import numpy as np
import pandas as pd
import pytest

from continuous_histogram.ingest.frames import ObservationFrame
from continuous_histogram.models.field import FieldInfo


def _frame(**kwargs) -> ObservationFrame:
    df = pd.DataFrame(
        {
            "v": [1.0, np.nan, 3.0, 4.0],
            "t": [0.0, 0.5, 2.0, 2.5],
            "src": ["a", "b", "a", "b"],
        }
    )
    return ObservationFrame(df=df, **kwargs)


def test_row_positions_are_time_by_default() -> None:
    obs = _frame().get_values(FieldInfo("v"))
    assert [o.value for o in obs] == [1.0, None, 3.0, 4.0]
    assert [o.time_index for o in obs] == [0.0, 1.0, 2.0, 3.0]
    assert {o.source_id for o in obs} == {0}
    assert obs[1].is_absent


def test_time_and_source_columns() -> None:
    obs = _frame(time_column="t", source_column="src").get_values(FieldInfo("v"))
    assert [o.time_index for o in obs] == [0.0, 0.5, 2.0, 2.5]
    assert [o.source_id for o in obs] == ["a", "b", "a", "b"]


def test_limit_takes_leading_rows() -> None:
    obs = _frame().get_values(FieldInfo("v"), limit=2)
    assert [o.value for o in obs] == [1.0, None]


def test_filter_keeps_original_positions() -> None:
    obs = _frame().get_values(FieldInfo("v"), row_filter=lambda row: row["src"] == "b")
    assert [o.time_index for o in obs] == [1.0, 3.0]
    assert [o.value for o in obs] == [None, 4.0]


def test_numeric_strings_are_converted() -> None:
    frame = ObservationFrame(df=pd.DataFrame({"v": ["1.5", "2"]}))
    assert [o.value for o in frame.get_values(FieldInfo("v"))] == [1.5, 2.0]


def test_missing_column() -> None:
    with pytest.raises(KeyError):
        _frame().get_values(FieldInfo("nope"))
    with pytest.raises(KeyError):
        _frame(time_column="when").get_values(FieldInfo("v"))


def test_n_rows() -> None:
    assert _frame().n_rows == 4


def test_frame_fields() -> None:
    assert [f.name for f in dataclasses.fields(ObservationFrame)] == ["df", "time_column", "source_column"]
