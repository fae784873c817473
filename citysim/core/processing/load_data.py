# citysim/core/processing/load_data.py

import os
import json
from typing import Optional

import pandas as pd  # type: ignore

from citysim.db import Database
from citysim.utils import raw_data_path, processed_data_path
from ..errors import DataFormatError


class DataLoader:
    """
    Loads raw session records from JSON, CSV or the session database.

    The loader only fetches data; normalization is left to
    ``SessionTableBuilder``.
    """

    SUPPORTED_TYPES = ("raw", "processed", "sql")

    def __init__(self, db: Optional[Database] = None):
        """
        Initializes the DataLoader with an optional Database instance.

        The database connection is opened lazily on the first query.
        """
        self._db = db

    @property
    def db(self) -> Database:
        if self._db is None:
            self._db = Database()
        return self._db

    def _get_path(self, data_type: str, table_name: str, extension: str = "json") -> str:
        """
        Resolves the file path for a given data type and table name.
        """
        if data_type == "raw":
            return os.path.join(raw_data_path, f"{table_name}.{extension}")
        if data_type == "processed":
            return os.path.join(processed_data_path, f"{table_name}.{extension}")
        if data_type == "sql":
            return os.path.join(raw_data_path, f"{table_name}.sql")
        raise ValueError(
            f"❌ Invalid data type: '{data_type}'. Allowed: {', '.join(self.SUPPORTED_TYPES)}."
        )

    def load_table(self, data_type: str, table_name: str, extension: str = "json") -> pd.DataFrame:
        """
        Loads a session table from the data directory or the database.

        Args:
            data_type (str): One of 'raw', 'processed', or 'sql'.
            table_name (str): File stem (or database table name).
            extension (str): 'json' or 'csv' for file based types.

        Returns:
            pd.DataFrame: Loaded records, one row per session.
        """
        file_path = self._get_path(data_type, table_name, extension)

        if data_type == "sql" and os.path.exists(file_path):
            print(f"📄 Loading '{table_name}' from SQL file: {file_path}")
            return self.db.execute_sql_file(file_path)

        if data_type != "sql" and os.path.exists(file_path):
            return self.load_file(file_path)

        print(f"🌐 Loading table '{table_name}' directly from the database...")
        df = self.db.execute_query(f"SELECT * FROM {table_name};")
        if df.empty:
            print(f"⚠️ No rows found for table '{table_name}'")
        return df

    def load_file(self, file_path: str) -> pd.DataFrame:
        """Dispatch on the file extension (.json, .jsonl, .csv)."""
        if not os.path.exists(file_path):
            raise FileNotFoundError(f"⚠️ Session file not found: {file_path}")

        extension = os.path.splitext(file_path)[1].lower()
        if extension in (".json", ".jsonl"):
            return self.load_json(file_path)
        if extension == ".csv":
            return self.load_csv(file_path)
        raise ValueError(f"❌ Unsupported file type '{extension}' for {file_path}")

    def load_json(self, file_path: str) -> pd.DataFrame:
        """
        Load session records from a JSON array or a JSON-lines file.

        Nested fields (``user``, ``cities`` lists) are kept as Python objects.
        """
        print(f"📁 Loading sessions from JSON: {file_path}")
        with open(file_path, "r", encoding="utf-8") as f:
            content = f.read()

        try:
            records = json.loads(content) if content.strip() else []
        except json.JSONDecodeError:
            records = self._parse_json_lines(content, file_path)

        if isinstance(records, dict):
            records = [records]
        if not isinstance(records, list):
            raise DataFormatError(f"Expected a list of session records in {file_path}")

        df = pd.DataFrame(records)
        print(f"✅ JSON loaded. Rows: {len(df)}")
        return df

    def load_csv(self, file_path: str) -> pd.DataFrame:
        """Load a flat CSV where ``cities`` holds a comma-separated string."""
        print(f"📁 Loading sessions from CSV: {file_path}")
        df = pd.read_csv(file_path, dtype={"session_id": str})
        print(f"✅ CSV loaded. Rows: {len(df)}")
        return df

    def load_custom_query(self, query: str) -> pd.DataFrame:
        """
        Executes a custom SQL query and returns the result.
        """
        print(" Running custom SQL query...")
        df = self.db.execute_query(query)
        if df.empty:
            print("⚠️ No results for this query.")
        return df

    @staticmethod
    def _parse_json_lines(content: str, file_path: str) -> list:
        records = []
        for line_number, line in enumerate(content.splitlines(), start=1):
            if not line.strip():
                continue
            try:
                records.append(json.loads(line))
            except json.JSONDecodeError as e:
                raise DataFormatError(f"Invalid JSON on line {line_number} of {file_path}: {e}") from e
        return records
