# citysim/core/similarity/similarity_engine.py
"""
All-pairs cosine similarity over city vectors.

The city vectors stay sparse; the result is a dense, read-only
``C × C`` matrix. Rows are computed in independent blocks so the work can
be spread over joblib workers, each one producing a disjoint row range.
"""

import logging
from typing import List, Optional, Sequence, Tuple

import numpy as np  # type: ignore
import pandas as pd  # type: ignore
from joblib import Parallel, delayed  # type: ignore
from scipy import sparse  # type: ignore
from sklearn.metrics.pairwise import cosine_similarity as sk_cosine_similarity  # type: ignore

from ..errors import DataFormatError, UndefinedSimilarity, UnknownCity
from .city_session_matrix import CitySessionMatrix

logger = logging.getLogger(__name__)


class SimilarityMatrix:
    """
    Symmetric city × city cosine similarity, frozen after construction.
    """

    def __init__(self, values: np.ndarray, cities: Sequence[str]):
        values = np.array(values, dtype=np.float64, copy=True)
        if values.ndim != 2 or values.shape[0] != values.shape[1] or values.shape[0] != len(cities):
            raise DataFormatError(
                f"Similarity values of shape {values.shape} do not match {len(cities)} cities"
            )
        values.setflags(write=False)
        self._values = values
        self._cities = tuple(cities)
        self._city_index = {city: idx for idx, city in enumerate(self._cities)}

    @property
    def values(self) -> np.ndarray:
        return self._values

    @property
    def cities(self) -> tuple:
        return self._cities

    @property
    def city_index(self) -> dict:
        return dict(self._city_index)

    def __len__(self) -> int:
        return len(self._cities)

    def __contains__(self, city: str) -> bool:
        return city in self._city_index

    def index_of(self, city: str) -> int:
        try:
            return self._city_index[city]
        except KeyError:
            raise UnknownCity(f"City '{city}' is not in the vocabulary") from None

    def score(self, city_a: str, city_b: str) -> float:
        return float(self._values[self.index_of(city_a), self.index_of(city_b)])

    def row(self, city: str) -> np.ndarray:
        return self._values[self.index_of(city)]

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(self._values, index=list(self._cities), columns=list(self._cities))


# ============================================================
# Pairwise formula
# ============================================================

def _row_vector(vector) -> np.ndarray:
    if sparse.issparse(vector):
        return vector.toarray().ravel().astype(np.float64)
    return np.asarray(vector, dtype=np.float64).ravel()


def cosine_similarity(u, v) -> float:
    """
    ``dot(u, v) / (||u|| * ||v||)`` for two non-negative count vectors.

    Raises ``UndefinedSimilarity`` when either vector is all zeros; the
    identical-city case must be handled by the caller.
    """
    u = _row_vector(u)
    v = _row_vector(v)
    if u.shape != v.shape:
        raise DataFormatError(f"Vector lengths differ: {u.shape[0]} vs {v.shape[0]}")

    norm_u = np.linalg.norm(u)
    norm_v = np.linalg.norm(v)
    if norm_u == 0 or norm_v == 0:
        raise UndefinedSimilarity("Cosine similarity is undefined for a zero vector")

    value = float(np.dot(u, v) / (norm_u * norm_v))
    return min(max(value, 0.0), 1.0)


# ============================================================
# Full matrix
# ============================================================

def _row_blocks(n_rows: int, block_size: int) -> List[Tuple[int, int]]:
    return [(start, min(start + block_size, n_rows)) for start in range(0, n_rows, block_size)]


def _similarity_block(matrix: sparse.csr_matrix, start: int, stop: int) -> np.ndarray:
    return sk_cosine_similarity(matrix[start:stop], matrix, dense_output=True)


def _degenerate_cities(city_matrix: CitySessionMatrix) -> List[str]:
    matrix = city_matrix.matrix
    squared_norms = np.asarray(matrix.multiply(matrix).sum(axis=1)).ravel()
    return [city_matrix.cities[idx] for idx in np.flatnonzero(squared_norms == 0)]


def build_similarity_matrix(
    city_matrix: CitySessionMatrix,
    n_jobs: int = 1,
    block_size: int = 512,
) -> SimilarityMatrix:
    """
    Compute the full symmetric cosine similarity matrix.

    Parameters
    ----------
    city_matrix : CitySessionMatrix
        Sparse city vectors.
    n_jobs : int
        Number of joblib workers for the row blocks (1 = sequential).
    block_size : int
        Number of rows per block.

    Returns
    -------
    SimilarityMatrix
        Diagonal exactly 1.0, entries in [0, 1], exactly symmetric.

    Raises
    ------
    UndefinedSimilarity
        If any vocabulary city has an all-zero vector. Nothing is returned
        in that case.
    """
    if block_size < 1:
        raise ValueError(f"block_size must be positive, got {block_size}")

    n_cities = len(city_matrix)
    if n_cities == 0:
        logger.info("empty vocabulary, returning an empty similarity matrix")
        return SimilarityMatrix(np.zeros((0, 0)), ())

    degenerate = _degenerate_cities(city_matrix)
    if degenerate:
        preview = ", ".join(degenerate[:5])
        raise UndefinedSimilarity(
            f"{len(degenerate)} cities never appear in any session: {preview}"
        )

    blocks = _row_blocks(n_cities, block_size)
    logger.info("computing %d×%d similarity in %d blocks (n_jobs=%s)", n_cities, n_cities, len(blocks), n_jobs)

    if n_jobs == 1 or len(blocks) == 1:
        parts = [_similarity_block(city_matrix.matrix, start, stop) for start, stop in blocks]
    else:
        parts = Parallel(n_jobs=n_jobs)(
            delayed(_similarity_block)(city_matrix.matrix, start, stop) for start, stop in blocks
        )

    values = np.vstack(parts)
    upper = np.triu(values, k=1)
    values = upper + upper.T
    np.clip(values, 0.0, 1.0, out=values)
    np.fill_diagonal(values, 1.0)

    return SimilarityMatrix(values, city_matrix.cities)


class SimilarityEngine:
    """
    Cosine similarity over the city vectors of one ``CitySessionMatrix``.

    ``similarity`` answers single pairs straight from the sparse vectors;
    ``build_matrix`` computes every pair once and caches the result.
    """

    def __init__(
        self,
        city_matrix: CitySessionMatrix,
        n_jobs: int = 1,
        block_size: int = 512,
        verbosity: int = 1,
    ):
        self.city_matrix = city_matrix
        self.n_jobs = n_jobs
        self.block_size = block_size
        self.verbosity = verbosity
        self._similarity: Optional[SimilarityMatrix] = None

    def _vprint(self, level, message):
        if self.verbosity >= level:
            print(message)

    def similarity(self, city_a: str, city_b: str) -> float:
        """Cosine similarity of two cities; a city is always 1.0 to itself."""
        idx_a = self.city_matrix.index_of(city_a)
        idx_b = self.city_matrix.index_of(city_b)
        if idx_a == idx_b:
            return 1.0

        matrix = self.city_matrix.matrix
        try:
            return cosine_similarity(matrix[idx_a], matrix[idx_b])
        except UndefinedSimilarity:
            raise UndefinedSimilarity(
                f"Similarity of '{city_a}' and '{city_b}' is undefined: a city vector is all zeros"
            ) from None

    def build_matrix(self) -> SimilarityMatrix:
        if self._similarity is None:
            self._vprint(1, "[STEP 3] Computing city similarity matrix...")
            self._similarity = build_similarity_matrix(
                self.city_matrix, n_jobs=self.n_jobs, block_size=self.block_size
            )
            self._vprint(1, f"✅ Similarity matrix ready: {len(self._similarity):,} cities")
        return self._similarity

    @property
    def similarity_matrix(self) -> SimilarityMatrix:
        return self.build_matrix()
