# citysim/core/intent/__init__.py

"""
Session Intent Module
=====================

Scores multi-city sessions by the mean pairwise similarity of their
cities and labels them High or Low intent with a cutoff taken from the
live score distribution.

Main Components:
----------------
- SessionIntentClassifier: Scoring and labeling
- IntentThresholdManager: Quantile-based cutoff and score distribution table
- DataExporter: CSV reports
- IntentVisualizer: Score distribution and similarity heatmap plots

Usage:
------
    from citysim.core.intent import SessionIntentClassifier

    classifier = SessionIntentClassifier(similarity, low_intent_quantile=0.25)
    intent = classifier.classify(session_table)
    distribution = classifier.label_distribution(intent)
"""

from .threshold_manager import IntentThresholdManager
from .intent_classifier import SessionIntentClassifier
from .data_exporter import DataExporter
from .visualizer import IntentVisualizer

__all__ = [
    'IntentThresholdManager',
    'SessionIntentClassifier',
    'DataExporter',
    'IntentVisualizer',
]
