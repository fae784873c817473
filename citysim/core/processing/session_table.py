# citysim/core/processing/session_table.py

import math
from typing import Any, Dict, Iterable, List, Optional, Union

import numpy as np  # type: ignore
import pandas as pd  # type: ignore

from ..errors import DataFormatError


class SessionTableBuilder:
    """
    Normalizes raw session records into the canonical session table.

    One row per session with the searched cities split, stripped and
    de-duplicated. Empty categorical fields are kept as an explicit
    ``"Missing"`` category; sessions without an id or without cities are
    rejected with ``DataFormatError``.
    """

    CORE_COLUMNS = ["session_id", "cities", "distinct_cities", "num_cities"]
    METADATA_FIELDS = ["user_id", "joining_date", "country", "unix_timestamp"]

    def __init__(
        self,
        categorical_fields: Optional[List[str]] = None,
        missing_label: str = "Missing",
        city_separator: str = ",",
        verbosity: int = 1,
    ):
        self.categorical_fields = list(categorical_fields) if categorical_fields is not None else ["country"]
        self.missing_label = missing_label
        self.city_separator = city_separator
        self.verbosity = verbosity

    def _vprint(self, level, message):
        if self.verbosity >= level:
            print(message)

    # ---------------- Public API ----------------

    def build(self, records: Union[pd.DataFrame, Iterable[Dict[str, Any]]]) -> pd.DataFrame:
        """
        Build the session table.

        Parameters
        ----------
        records : pd.DataFrame or iterable of dict
            Flat records (``session_id``, ``cities``, ``country``, ...) or the
            nested dump format where user attributes sit under
            ``user: [[{...}]]`` and ``cities`` is a list holding one
            comma-separated string.

        Returns
        -------
        pd.DataFrame
            Canonical session table.
        """
        if isinstance(records, pd.DataFrame):
            records = records.to_dict(orient="records")

        self._vprint(1, "[STEP 1] Building session table...")

        rows = []
        seen_ids = set()
        for position, record in enumerate(records):
            row = self._normalize_record(record, position)
            if row["session_id"] in seen_ids:
                raise DataFormatError(f"Duplicate session_id '{row['session_id']}' at record {position}")
            seen_ids.add(row["session_id"])
            rows.append(row)

        if not rows:
            self._vprint(1, "   ⚠️ No session records supplied, returning empty table")
            return pd.DataFrame(columns=self.CORE_COLUMNS + self.categorical_fields)

        table = pd.DataFrame(rows)
        metadata_columns = [
            col for col in self.METADATA_FIELDS + self.categorical_fields
            if col in table.columns and (col in self.categorical_fields or table[col].notna().any())
        ]
        # dict.fromkeys keeps order while dropping repeats
        ordered = list(dict.fromkeys(self.CORE_COLUMNS + metadata_columns))
        table = table[ordered].reset_index(drop=True)

        self._vprint(1, f"✅ Session table ready: {len(table):,} sessions")
        self._vprint(2, f"   - Multi-city sessions: {(table['num_cities'] >= 2).sum():,}")
        for field in self.categorical_fields:
            missing = (table[field] == self.missing_label).sum()
            if missing:
                self._vprint(2, f"   - '{field}' set to '{self.missing_label}' for {missing:,} sessions")
        return table

    def summarize(self, table: pd.DataFrame, by: Optional[str] = None) -> pd.DataFrame:
        """
        Sessions per category (``"Missing"`` included as its own group).

        Returns columns ``[by, num_sessions, avg_cities, multi_city_sessions, percentage]``.
        """
        by = by or (self.categorical_fields[0] if self.categorical_fields else None)
        if by is None or by not in table.columns:
            raise DataFormatError(f"Cannot summarize sessions by unknown column '{by}'")

        summary_columns = [by, "num_sessions", "avg_cities", "multi_city_sessions", "percentage"]
        if table.empty:
            return pd.DataFrame(columns=summary_columns)

        summary = table.groupby(by).agg(
            num_sessions=("session_id", "count"),
            avg_cities=("num_cities", "mean"),
            multi_city_sessions=("num_cities", lambda n: int((n >= 2).sum())),
        ).reset_index()
        summary["percentage"] = (summary["num_sessions"] / len(table)) * 100
        summary = summary.sort_values(["num_sessions", by], ascending=[False, True])
        summary = summary[summary_columns].reset_index(drop=True)

        self._vprint(1, f" Sessions by {by}:")
        for _, row in summary.iterrows():
            self._vprint(1, f"   - {row[by]}: {row['num_sessions']:,} sessions ({row['percentage']:.1f}%)")
        return summary.round(2)

    # ---------------- Record normalization ----------------

    def _normalize_record(self, record: Dict[str, Any], position: int) -> Dict[str, Any]:
        if not isinstance(record, dict):
            raise DataFormatError(f"Record {position} is not a mapping: {type(record).__name__}")

        session_id = record.get("session_id")
        if _is_blank(session_id):
            raise DataFormatError(f"Record {position} has no session_id")
        session_id = str(session_id).strip()

        cities = self._split_cities(record.get("cities"))
        if not cities:
            raise DataFormatError(f"Session '{session_id}' has an empty city list")
        distinct = list(dict.fromkeys(cities))

        row = {
            "session_id": session_id,
            "cities": cities,
            "distinct_cities": distinct,
            "num_cities": len(distinct),
        }

        user = self._extract_user(record)
        for field in dict.fromkeys(self.METADATA_FIELDS + self.categorical_fields):
            value = record.get(field)
            if _is_blank(value):
                value = user.get(field)
            if field == "unix_timestamp":
                value = _first(value)
            if field in self.categorical_fields:
                value = self.missing_label if _is_blank(value) else str(value).strip()
            elif _is_blank(value):
                value = None
            row[field] = value
        return row

    def _split_cities(self, value: Any) -> List[str]:
        if _is_blank(value):
            return []
        if isinstance(value, str):
            value = [value]
        elif isinstance(value, np.ndarray):
            value = value.tolist()
        elif not isinstance(value, (list, tuple)):
            raise DataFormatError(f"Unsupported cities value: {value!r}")

        cities = []
        for item in value:
            if _is_blank(item):
                continue
            for fragment in str(item).split(self.city_separator):
                fragment = fragment.strip()
                if fragment:
                    cities.append(fragment)
        return cities

    @staticmethod
    def _extract_user(record: Dict[str, Any]) -> Dict[str, Any]:
        """Unwrap ``user`` given as a dict, ``[dict]`` or ``[[dict]]``."""
        user = record.get("user")
        while isinstance(user, (list, tuple)) and user:
            user = user[0]
        return user if isinstance(user, dict) else {}


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    if isinstance(value, str) and not value.strip():
        return True
    return False


def _first(value: Any) -> Any:
    if isinstance(value, (list, tuple)):
        return value[0] if value else None
    return value
