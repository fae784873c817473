# citysim/core/intent/threshold_manager.py

import pandas as pd  # type: ignore
from typing import List, Optional


class IntentThresholdManager:
    """
    Derives the Low/High intent cutoff from the empirical score distribution.
    """

    DEFAULT_REPORT_QUANTILES = [0.0, 0.05, 0.1, 0.25, 0.5, 0.75, 0.9, 0.95, 1.0]

    def __init__(
        self,
        scores: pd.Series,
        low_intent_quantile: float = 0.25,
        report_quantiles: Optional[List[float]] = None,
    ):
        """
        Initialize threshold manager.

        Parameters
        ----------
        scores : pd.Series
            Intent scores of the qualifying (multi-city) sessions
        low_intent_quantile : float
            Share of sessions expected at or below the cutoff
        report_quantiles : List[float], optional
            Quantiles listed by ``quantile_table``
        """
        if not 0.0 <= low_intent_quantile <= 1.0:
            raise ValueError(f"low_intent_quantile must be in [0, 1], got {low_intent_quantile}")
        self.scores = pd.Series(scores, dtype="float64").dropna().reset_index(drop=True)
        self.low_intent_quantile = low_intent_quantile
        self.report_quantiles = list(report_quantiles or self.DEFAULT_REPORT_QUANTILES)
        self.cutoff: Optional[float] = None

    def compute_cutoff(self) -> Optional[float]:
        """
        Quantile of the current score population.

        Returns
        -------
        float or None
            ``None`` when there is no qualifying session.
        """
        if self.scores.empty:
            print("   ⚠️ No multi-city sessions, intent cutoff undefined")
            self.cutoff = None
            return None

        self.cutoff = float(self.scores.quantile(self.low_intent_quantile))
        print(f"   ➡️ INTENT_CUTOFF: {self.cutoff:.4f} (quantile {self.low_intent_quantile})")
        return self.cutoff

    def quantile_table(self) -> pd.DataFrame:
        """Score distribution at the report quantiles."""
        if self.scores.empty:
            return pd.DataFrame(columns=["quantile", "intent_score"])
        values = self.scores.quantile(self.report_quantiles)
        return pd.DataFrame({"quantile": self.report_quantiles, "intent_score": values.to_numpy()})

    def to_dataframe(self) -> pd.DataFrame:
        """Cutoff and its provenance, for export"""
        return pd.DataFrame([{
            "threshold": "INTENT_CUTOFF",
            "quantile": self.low_intent_quantile,
            "value": self.cutoff,
            "num_sessions": len(self.scores),
        }])
