# citysim/db.py
import os
import pandas as pd  # type: ignore
import sqlalchemy as sa  # type: ignore
from sqlalchemy.exc import SQLAlchemyError  # type: ignore
from sqlalchemy.engine import URL
from dotenv import load_dotenv

load_dotenv()  # Loads DB_* variables from .env


class Database:
    def __init__(self, url: str = None):
        """
        Opens a connection to the session database.

        ``url`` takes precedence; otherwise ``DB_URL`` is used, and finally a
        PostgreSQL URL is assembled from ``DB_USER``/``DB_PASSWORD``/
        ``DB_HOST``/``DB_NAME``.
        """
        self._engine = None
        self._connection = None
        self._connect(url)

    def _build_url(self, url: str = None):
        url = url or os.getenv("DB_URL")
        if url:
            return url
        return URL.create(
            drivername="postgresql",
            username=os.getenv("DB_USER"),
            password=os.getenv("DB_PASSWORD"),
            host=os.getenv("DB_HOST"),
            database=os.getenv("DB_NAME"),
            query={"sslmode": os.getenv("DB_SSLMODE", "require")}
        )

    def _connect(self, url: str = None):
        try:
            self._engine = sa.create_engine(self._build_url(url), pool_pre_ping=True)
            self._connection = self._engine.connect()
            print("✅ Database connection established.")
        except SQLAlchemyError as e:
            print(f"❌ Connection error: {e}")
            self._engine = None
            self._connection = None

    @property
    def is_connected(self) -> bool:
        return self._connection is not None

    def execute_query(self, query: str) -> pd.DataFrame:
        """
        Runs a SQL query and returns the result as a DataFrame.
        """
        if not self._connection:
            raise ConnectionError("⚠️ No active database connection.")
        try:
            df = pd.read_sql(sa.text(query), self._connection)
        except SQLAlchemyError as e:
            print(f"❌ Query error: {e}")
            raise
        print(f"✅ Query succeeded. {len(df)} rows fetched.")
        return df

    def execute_sql_file(self, sql_file_path: str) -> pd.DataFrame:
        """
        Runs the query stored in a .sql file.
        """
        if not os.path.exists(sql_file_path):
            raise FileNotFoundError(f"⚠️ SQL file not found: {sql_file_path}")
        with open(sql_file_path, "r") as file:
            sql_query = file.read()
        print(f"📄 Executing SQL file: {sql_file_path}")
        return self.execute_query(sql_query)

    def close(self):
        if self._connection:
            self._connection.close()
            self._connection = None
            print("🔒 Connection closed.")
