# citysim/core/__init__.py
"""
Core module initializer for citysim.

Provides session ingestion, city similarity and session intent components.
"""

from .errors import (
    CitySimilarityError,
    DataFormatError,
    UndefinedSimilarity,
    InsufficientVocabulary,
    InsufficientCities,
    UnknownCity,
)
from .processing import DataLoader, SessionTableBuilder
from .similarity import (
    CitySessionMatrix,
    CitySessionMatrixBuilder,
    SimilarityMatrix,
    SimilarityEngine,
    build_similarity_matrix,
    cosine_similarity,
    CityRecommender,
)
from .intent import (
    IntentThresholdManager,
    SessionIntentClassifier,
    DataExporter,
    IntentVisualizer,
)
from .pipeline import CitySimilarityPipeline, DEFAULT_CONFIG

__all__ = [
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
    "DEFAULT_CONFIG",
]
