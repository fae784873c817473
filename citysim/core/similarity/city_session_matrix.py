# citysim/core/similarity/city_session_matrix.py

import logging
from collections import Counter
from typing import Iterable, List, Optional, Sequence

import numpy as np  # type: ignore
import pandas as pd  # type: ignore
from scipy import sparse  # type: ignore

from ..errors import DataFormatError, UnknownCity

logger = logging.getLogger(__name__)


class CitySessionMatrix:
    """
    Sparse city × session search-count matrix.

    Row ``i`` is the city vector of ``cities[i]``; column ``j`` belongs to
    ``session_ids[j]``. A city absent from a session has an implicit 0.
    """

    def __init__(self, matrix: sparse.spmatrix, cities: Sequence[str], session_ids: Sequence[str]):
        if matrix.shape != (len(cities), len(session_ids)):
            raise DataFormatError(
                f"Matrix shape {matrix.shape} does not match "
                f"{len(cities)} cities × {len(session_ids)} sessions"
            )
        self._matrix = sparse.csr_matrix(matrix, dtype=np.float64)
        self._cities = tuple(cities)
        self._session_ids = tuple(session_ids)
        self._city_index = {city: idx for idx, city in enumerate(self._cities)}

    @property
    def matrix(self) -> sparse.csr_matrix:
        return self._matrix

    @property
    def cities(self) -> tuple:
        """Vocabulary, in row order."""
        return self._cities

    @property
    def session_ids(self) -> tuple:
        return self._session_ids

    @property
    def city_index(self) -> dict:
        return dict(self._city_index)

    @property
    def shape(self) -> tuple:
        return self._matrix.shape

    def __len__(self) -> int:
        return len(self._cities)

    def __contains__(self, city: str) -> bool:
        return city in self._city_index

    def index_of(self, city: str) -> int:
        try:
            return self._city_index[city]
        except KeyError:
            raise UnknownCity(f"City '{city}' is not in the vocabulary") from None

    def vector(self, city: str) -> sparse.csr_matrix:
        """1 × n_sessions sparse row for ``city``."""
        return self._matrix[self.index_of(city)]

    def session_counts(self) -> pd.Series:
        """Total number of searches per city, most searched first."""
        totals = np.asarray(self._matrix.sum(axis=1)).ravel()
        counts = pd.Series(totals, index=list(self._cities), name="num_searches")
        return counts.sort_values(ascending=False, kind="mergesort")

    def to_frame(self) -> pd.DataFrame:
        """Dense labeled view; only meant for small inspections."""
        return pd.DataFrame(
            self._matrix.toarray(),
            index=list(self._cities),
            columns=list(self._session_ids),
        )


class CitySessionMatrixBuilder:
    """
    Builds the sparse city-session matrix from the canonical session table.
    """

    def __init__(self, verbosity: int = 1):
        self.verbosity = verbosity

    def _vprint(self, level, message):
        if self.verbosity >= level:
            print(message)

    def build(self, table: pd.DataFrame, vocabulary: Optional[Iterable[str]] = None) -> CitySessionMatrix:
        """
        Count searches per (city, session).

        Parameters
        ----------
        table : pd.DataFrame
            Session table with ``session_id`` and ``cities`` columns.
        vocabulary : iterable of str, optional
            Explicit vocabulary. Defaults to the distinct cities observed
            in ``table``. Every observed city must be part of it.

        Returns
        -------
        CitySessionMatrix
        """
        self._vprint(1, "[STEP 2] Building city-session matrix...")
        missing_cols = [col for col in ("session_id", "cities") if col not in table.columns]
        if missing_cols:
            raise DataFormatError(f"Session table is missing columns: {missing_cols}")

        session_ids: List[str] = [str(sid) for sid in table["session_id"]]
        city_lists = list(table["cities"])

        if vocabulary is None:
            cities = sorted({city for city_list in city_lists for city in city_list})
        else:
            cities = sorted(set(vocabulary))
        city_index = {city: idx for idx, city in enumerate(cities)}

        rows, cols, counts = [], [], []
        for col, (session_id, city_list) in enumerate(zip(session_ids, city_lists)):
            for city, count in Counter(city_list).items():
                if city not in city_index:
                    raise DataFormatError(
                        f"City '{city}' of session '{session_id}' is not in the supplied vocabulary"
                    )
                rows.append(city_index[city])
                cols.append(col)
                counts.append(count)

        matrix = sparse.coo_matrix(
            (np.asarray(counts, dtype=np.float64), (np.asarray(rows, dtype=np.int64), np.asarray(cols, dtype=np.int64))),
            shape=(len(cities), len(session_ids)),
        ).tocsr()

        logger.debug("city-session matrix shape=%s nnz=%d", matrix.shape, matrix.nnz)
        self._vprint(1, f"✅ Matrix ready: {len(cities):,} cities × {len(session_ids):,} sessions")
        self._vprint(2, f"   - Non-zero entries: {matrix.nnz:,}")
        return CitySessionMatrix(matrix, cities, session_ids)
