from __future__ import annotations

"""Analytics configuration (hyperparameters) using Pydantic."""

from pydantic import BaseModel, Field


class AnalyticsConfig(BaseModel):
    """Hyperparameters for session metrics and smoothing.

    - alpha: average-time penalty scale (>0)
    - t_ref_s: reference seconds per question (>0)
    - smoothing_span: EWMA span in sessions (>1)
    """

    alpha: float = Field(0.9, gt=0)
    t_ref_s: float = Field(4.0, gt=0)
    smoothing_span: int = Field(10, gt=1)
