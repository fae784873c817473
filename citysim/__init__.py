# citysim/__init__.py
"""
citysim Package
"""
__version__ = "0.1.0"

from .db import Database
from .utils import (
    # Directory paths
    project_root,
    config_path,
    raw_data_path,
    processed_data_path,
    reports_path,
    get_path,

    # Config
    load_yaml,
    merge_config,
)

from .core import (
    # Errors
    CitySimilarityError,
    DataFormatError,
    UndefinedSimilarity,
    InsufficientVocabulary,
    InsufficientCities,
    UnknownCity,

    # Preparing data
    DataLoader,
    SessionTableBuilder,

    # Similarity
    CitySessionMatrix,
    CitySessionMatrixBuilder,
    SimilarityMatrix,
    SimilarityEngine,
    build_similarity_matrix,
    cosine_similarity,
    CityRecommender,

    # Intent
    IntentThresholdManager,
    SessionIntentClassifier,
    DataExporter,
    IntentVisualizer,

    # Orchestration
    CitySimilarityPipeline,
)


__all__ = [
    # Database
    "Database",

    # Paths
    "project_root",
    "config_path",
    "raw_data_path",
    "processed_data_path",
    "reports_path",
    "get_path",

    # Config
    "load_yaml",
    "merge_config",

    # Errors
    "CitySimilarityError",
    "DataFormatError",
    "UndefinedSimilarity",
    "InsufficientVocabulary",
    "InsufficientCities",
    "UnknownCity",

    # Preparing Data
    "DataLoader",
    "SessionTableBuilder",

    # Similarity
    "CitySessionMatrix",
    "CitySessionMatrixBuilder",
    "SimilarityMatrix",
    "SimilarityEngine",
    "build_similarity_matrix",
    "cosine_similarity",
    "CityRecommender",

    # Intent
    "IntentThresholdManager",
    "SessionIntentClassifier",
    "DataExporter",
    "IntentVisualizer",

    # Orchestration
    "CitySimilarityPipeline",
]
