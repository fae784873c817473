# citysim/core/similarity/recommender.py
"""Nearest-neighbor lookups on the city similarity matrix."""

from typing import Any, Dict, List, Optional, Tuple

import numpy as np  # type: ignore
import pandas as pd  # type: ignore

from ..errors import InsufficientVocabulary
from .similarity_engine import SimilarityMatrix


class CityRecommender:
    """
    Most likely co-searched city for every city in the vocabulary.

    Ties on the similarity score go to the lexicographically smallest
    city name.
    """

    OUTPUT_COLUMNS = ["city", "most_similar_city", "similarity_score"]

    def __init__(self, similarity: SimilarityMatrix, top_k: int = 5, verbosity: int = 1):
        self.similarity = similarity
        self.top_k = top_k
        self.verbosity = verbosity
        self.cities = list(similarity.cities)
        # rank of every city by name, used to break score ties
        self._name_rank = np.argsort(np.argsort(np.array(self.cities, dtype=object)))

    def _vprint(self, level, message):
        if self.verbosity >= level:
            print(message)

    def _check_vocabulary(self) -> None:
        if len(self.cities) < 2:
            raise InsufficientVocabulary(
                f"Neighbor lookup needs at least 2 cities, vocabulary has {len(self.cities)}"
            )

    def _ranked_neighbors(self, city: str) -> np.ndarray:
        """Indices of every other city, best score first, then by name."""
        query_idx = self.similarity.index_of(city)
        scores = self.similarity.values[query_idx]
        candidates = np.array([idx for idx in range(len(self.cities)) if idx != query_idx], dtype=np.int64)
        # lexsort: last key is the primary one
        order = np.lexsort((self._name_rank[candidates], -scores[candidates]))
        return candidates[order]

    def most_similar(self, city: str) -> Tuple[str, float]:
        """
        Highest-similarity city other than ``city`` itself.

        Returns
        -------
        tuple
            ``(neighbor_name, similarity_score)``
        """
        self._check_vocabulary()
        best = self._ranked_neighbors(city)[0]
        score = float(self.similarity.values[self.similarity.index_of(city), best])
        return self.cities[best], score

    def get_similar_cities(self, city: str, top_k: Optional[int] = None) -> List[Dict[str, Any]]:
        """
        Top-k neighbors of ``city`` with their similarity scores.

        Args:
            city: Query city
            top_k: Number of neighbors to return (defaults to ``self.top_k``)

        Returns:
            List of ``{"city", "similarity_score"}`` dicts, best first
        """
        self._check_vocabulary()
        if top_k is None:
            top_k = self.top_k
        query_idx = self.similarity.index_of(city)
        scores = self.similarity.values[query_idx]
        return [
            {"city": self.cities[idx], "similarity_score": float(scores[idx])}
            for idx in self._ranked_neighbors(city)[:top_k]
        ]

    def recommend_all(self) -> pd.DataFrame:
        """
        One ``{city, most_similar_city, similarity_score}`` row per city.

        An empty vocabulary yields an empty frame.
        """
        self._vprint(1, "[STEP 4] Finding most similar city for every city...")
        if not self.cities:
            self._vprint(1, "   ⚠️ Empty vocabulary, no recommendations")
            return pd.DataFrame(columns=self.OUTPUT_COLUMNS)

        rows = []
        for city in sorted(self.cities):
            neighbor, score = self.most_similar(city)
            rows.append({"city": city, "most_similar_city": neighbor, "similarity_score": score})

        recommendations = pd.DataFrame(rows, columns=self.OUTPUT_COLUMNS)
        self._vprint(1, f"✅ Recommendations ready for {len(recommendations):,} cities")
        return recommendations
