from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, List, Optional

import numpy as np
import pandas as pd

from continuous_histogram.models.field import FieldInfo
from continuous_histogram.models.points import Observation

RowFilter = Callable[[pd.Series], Any]


@dataclass(frozen=True)
class ObservationFrame:
    """
    In-memory table of already validated records, one row per time step,
    one column per field.

    Notes
    - Missing values must already be NaN (file-format sentinels are resolved upstream).
    - Without a ``time_column`` the row position is the time index; positions are
      taken before filtering, so filtered-out rows still count as elapsed time.
    - Without a ``source_column`` every row belongs to source 0.
    """
    df: pd.DataFrame
    time_column: Optional[str] = None
    source_column: Optional[str] = None

    @property
    def n_rows(self) -> int:
        return int(len(self.df))

    def get_values(
        self,
        field: FieldInfo,
        limit: Optional[int] = None,
        row_filter: Optional[RowFilter] = None,
    ) -> List[Observation]:
        """Observations of ``field`` among the first ``limit`` rows that pass ``row_filter``."""
        missing = [
            c for c in (field.name, self.time_column, self.source_column)
            if c is not None and c not in self.df.columns
        ]
        if missing:
            raise KeyError(f"Missing required columns in ObservationFrame.df: {missing}")

        df = self.df
        positions = np.arange(len(df), dtype=float)
        if limit is not None:
            df = df.iloc[:limit]
            positions = positions[:limit]
        if row_filter is not None and len(df):
            mask = np.array([bool(row_filter(row)) for _, row in df.iterrows()], dtype=bool)
            df = df[mask]
            positions = positions[mask]

        values = pd.to_numeric(df[field.name]).to_numpy(dtype=float)
        if self.time_column is not None:
            times = df[self.time_column].to_numpy(dtype=float)
        else:
            times = positions
        if self.source_column is not None:
            sources = df[self.source_column].tolist()
        else:
            sources = [0] * len(df)

        return [
            Observation(value=None if np.isnan(v) else float(v), time_index=float(t), source_id=s)
            for v, t, s in zip(values, times, sources)
        ]
