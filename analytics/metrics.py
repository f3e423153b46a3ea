from __future__ import annotations

"""Metric computations for per-session analytics."""

import numpy as np
import pandas as pd
from .config import AnalyticsConfig


def compute_metrics(df: pd.DataFrame, cfg: AnalyticsConfig) -> pd.DataFrame:
    """Compute accuracy, speed factor, and composite mark.

    Expects ``correct``, ``question_count`` and ``avg_time`` (seconds).
    Returns a copy with added columns: acc, speed_factor, mark.
    """
    out = df.copy()
    # Sessions without attempts score zero accuracy
    q = out["question_count"].astype("float64").where(out["question_count"] > 0, other=1.0)
    out["acc"] = (out["correct"].astype("float64") / q).astype("float32")

    # Speed factor: exp(-alpha * avg_time / t_ref)
    avg = out["avg_time"].astype("float64").to_numpy()
    out["speed_factor"] = np.exp(-float(cfg.alpha) * avg / float(cfg.t_ref_s)).astype("float32")

    out["mark"] = (out["acc"] * out["speed_factor"]).clip(0, 1).astype("float32")
    return out
