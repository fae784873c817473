# citysim/core/processing/__init__.py

from .load_data import DataLoader
from .session_table import SessionTableBuilder

__all__ = [

    # Loading raw records from json, csv or the database
    'DataLoader',

    # Normalization into the canonical session table
    'SessionTableBuilder',

]
