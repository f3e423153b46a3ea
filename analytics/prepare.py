from __future__ import annotations

"""Build the analytics frame from history records."""

from typing import Sequence

import pandas as pd

from mathdrill.results.schema import HistoryRecord
from mathdrill.stats.history import history_frame

from .config import AnalyticsConfig
from .metrics import compute_metrics


def load_and_prepare(
    records: Sequence[HistoryRecord],
    cfg: AnalyticsConfig,
    include_test_mode: bool = False,
) -> pd.DataFrame:
    """Frame history records and compute metrics with consistent dtypes.

    - Drops test-mode sessions unless ``include_test_mode``.
    - Makes 'type' categorical and sorts oldest first.
    - Adds a stable session index 'session_idx'.
    """
    if not include_test_mode:
        records = [r for r in records if not r.test_mode]
    df = history_frame(records)
    df["type"] = df["type"].astype("category")
    df = df.sort_values(["created_at", "id"], kind="stable").reset_index(drop=True)

    df = compute_metrics(df, cfg)
    df["session_idx"] = pd.factorize(df["id"])[0]
    return df
