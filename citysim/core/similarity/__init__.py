# citysim/core/similarity/__init__.py

"""
City Similarity Module
======================

Sparse city-session vectors, all-pairs cosine similarity and
nearest-neighbor lookups.

Main Components:
----------------
- CitySessionMatrixBuilder: Session table → sparse city × session counts
- SimilarityEngine: Pairwise and full-matrix cosine similarity
- CityRecommender: Most similar (and top-k) cities per city

Usage:
------
    from citysim.core.similarity import (
        CitySessionMatrixBuilder,
        SimilarityEngine,
        CityRecommender,
    )

    city_matrix = CitySessionMatrixBuilder().build(session_table)
    similarity = SimilarityEngine(city_matrix).build_matrix()
    recommendations = CityRecommender(similarity).recommend_all()
"""

from .city_session_matrix import CitySessionMatrix, CitySessionMatrixBuilder
from .similarity_engine import (
    SimilarityMatrix,
    SimilarityEngine,
    build_similarity_matrix,
    cosine_similarity,
)
from .recommender import CityRecommender

__all__ = [
    'CitySessionMatrix',
    'CitySessionMatrixBuilder',
    'SimilarityMatrix',
    'SimilarityEngine',
    'build_similarity_matrix',
    'cosine_similarity',
    'CityRecommender',
]
