# citysim/core/intent/intent_classifier.py

from typing import Iterable, Optional

import numpy as np  # type: ignore
import pandas as pd  # type: ignore

from ..errors import DataFormatError, InsufficientCities
from ..similarity import SimilarityMatrix
from .threshold_manager import IntentThresholdManager


class SessionIntentClassifier:
    """
    Scores multi-city sessions by the mean pairwise similarity of their
    cities and splits them into High and Low intent.

    Low similarity between co-searched cities points at "dreaming"
    browsing; high similarity at focused trip planning. Single-city
    sessions have no score and are left out of every output.
    """

    HIGH_INTENT = "High Intent"
    LOW_INTENT = "Low Intent"

    def __init__(
        self,
        similarity: SimilarityMatrix,
        low_intent_quantile: float = 0.25,
        cutoff: Optional[float] = None,
        report_quantiles: Optional[list] = None,
        labels: Optional[dict] = None,
        verbosity: int = 1,
    ):
        """
        Parameters
        ----------
        similarity : SimilarityMatrix
            Precomputed city similarity
        low_intent_quantile : float
            Quantile of the score distribution used as cutoff
        cutoff : float, optional
            Fixed cutoff for what-if runs; the derived quantile is used otherwise
        report_quantiles : list, optional
            Quantiles for the score distribution table
        labels : dict, optional
            ``{"high": ..., "low": ...}`` label overrides
        """
        self.similarity = similarity
        self.low_intent_quantile = low_intent_quantile
        self.fixed_cutoff = cutoff
        self.report_quantiles = report_quantiles
        labels = labels or {}
        self.high_label = labels.get("high", self.HIGH_INTENT)
        self.low_label = labels.get("low", self.LOW_INTENT)
        self.verbosity = verbosity

        self.cutoff: Optional[float] = None
        self.threshold_manager: Optional[IntentThresholdManager] = None

    def _vprint(self, level, message):
        if self.verbosity >= level:
            print(message)

    # ---------------- Scoring ----------------

    def score_session(self, cities: Iterable[str]) -> float:
        """
        Mean similarity over all unordered pairs of distinct cities.

        Raises
        ------
        InsufficientCities
            Fewer than two distinct cities.
        UnknownCity
            A city outside the similarity vocabulary.
        """
        distinct = sorted(set(cities))
        if len(distinct) < 2:
            raise InsufficientCities(
                f"Intent score needs at least 2 distinct cities, got {len(distinct)}"
            )

        idx = np.array([self.similarity.index_of(city) for city in distinct], dtype=np.int64)
        first, second = np.triu_indices(len(idx), k=1)
        return float(np.mean(self.similarity.values[idx[first], idx[second]]))

    def score_sessions(self, table: pd.DataFrame) -> pd.DataFrame:
        """
        Intent score for every session with at least two distinct cities.

        Returns
        -------
        pd.DataFrame
            Columns ``session_id``, ``num_cities``, ``intent_score``
        """
        city_column = self._city_column(table)
        rows = []
        for session_id, cities in zip(table["session_id"], table[city_column]):
            distinct = set(cities)
            if len(distinct) < 2:
                continue
            rows.append({
                "session_id": session_id,
                "num_cities": len(distinct),
                "intent_score": self.score_session(distinct),
            })
        return pd.DataFrame(rows, columns=["session_id", "num_cities", "intent_score"])

    # ---------------- Classification ----------------

    def classify(self, table: pd.DataFrame) -> pd.DataFrame:
        """
        Score, derive the cutoff and label every multi-city session.

        ``score > cutoff`` is High Intent, ``score <= cutoff`` Low Intent.

        Returns
        -------
        pd.DataFrame
            Columns ``session_id``, ``num_cities``, ``intent_score``, ``intent_label``
        """
        self._vprint(1, "[STEP 5] Classifying session intent...")
        scored = self.score_sessions(table)
        excluded = len(table) - len(scored)
        self._vprint(2, f"   - Scored sessions: {len(scored):,} (single-city excluded: {excluded:,})")

        self.threshold_manager = IntentThresholdManager(
            scored["intent_score"],
            low_intent_quantile=self.low_intent_quantile,
            report_quantiles=self.report_quantiles,
        )
        if self.fixed_cutoff is not None:
            self.cutoff = float(self.fixed_cutoff)
            self.threshold_manager.cutoff = self.cutoff
            self._vprint(1, f"   ➡️ INTENT_CUTOFF: {self.cutoff:.4f} (fixed)")
        else:
            self.cutoff = self.threshold_manager.compute_cutoff()

        if scored.empty:
            scored["intent_label"] = pd.Series(dtype="object")
            return scored

        scored["intent_label"] = np.where(
            scored["intent_score"] > self.cutoff, self.high_label, self.low_label
        )
        self._vprint(1, "✅ Session intent assigned")
        return scored

    def label_distribution(self, classified: pd.DataFrame) -> pd.DataFrame:
        """Counts and percentages per intent label."""
        columns = ["intent_label", "Count", "Percentage"]
        if classified.empty:
            return pd.DataFrame(columns=columns)

        distribution = classified.groupby("intent_label").size().reset_index(name="Count")
        distribution["Percentage"] = (distribution["Count"] / len(classified)) * 100

        for _, row in distribution.iterrows():
            self._vprint(1, f"   - {row['intent_label']}: {row['Count']:,} sessions ({row['Percentage']:.1f}%)")
        return distribution[columns]

    @staticmethod
    def _city_column(table: pd.DataFrame) -> str:
        if "session_id" not in table.columns:
            raise DataFormatError("Session table has no 'session_id' column")
        for column in ("distinct_cities", "cities"):
            if column in table.columns:
                return column
        raise DataFormatError("Session table has no city column")
