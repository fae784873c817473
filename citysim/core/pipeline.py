# citysim/core/pipeline.py

import os
import pandas as pd  # type: ignore
from typing import Any, Dict, Iterable, Optional, Union

from citysim.utils import project_root, get_path, load_yaml, merge_config
from .processing import DataLoader, SessionTableBuilder
from .similarity import (
    CitySessionMatrix,
    CitySessionMatrixBuilder,
    SimilarityEngine,
    SimilarityMatrix,
    CityRecommender,
)
from .intent import SessionIntentClassifier, DataExporter, IntentVisualizer


DEFAULT_CONFIG: Dict[str, Any] = {
    "session_table": {
        "categorical_fields": ["country"],
        "missing_label": "Missing",
        "city_separator": ",",
    },
    "similarity": {
        "n_jobs": 1,
        "block_size": 512,
    },
    "recommender": {
        "top_k": 5,
    },
    "intent": {
        "low_intent_quantile": 0.25,
        "report_quantiles": [0.0, 0.05, 0.1, 0.25, 0.5, 0.75, 0.9, 0.95, 1.0],
        "labels": {"high": "High Intent", "low": "Low Intent"},
    },
    "visualization": {
        "heatmap_top_n": 20,
        "bins": 30,
    },
}


class CitySimilarityPipeline:
    """
    City similarity and session intent orchestrator.
    Coordinates:
    - Session table normalization
    - City-session matrix construction
    - Similarity computation
    - Nearest-city recommendations
    - Session intent classification
    - Export and visualization
    """

    REQUIRED_CONFIG_SECTIONS = ["session_table", "similarity", "intent"]

    def __init__(
        self,
        config_path: Optional[str] = None,
        config: Optional[Dict[str, Any]] = None,
        output_dir: Optional[str] = None,
        verbosity: int = 1,
    ) -> None:
        self.verbosity = verbosity
        self.config_path = config_path or os.path.join(project_root, "config", "config.yaml")
        if config is not None:
            self.config = merge_config(DEFAULT_CONFIG, config)
        else:
            self._load_configuration()

        # Resolved lazily so that in-memory runs never touch the project tree
        self._output_dir = output_dir

        # Step results
        self.table: Optional[pd.DataFrame] = None
        self.city_matrix: Optional[CitySessionMatrix] = None
        self.engine: Optional[SimilarityEngine] = None
        self.similarity: Optional[SimilarityMatrix] = None
        self.recommender: Optional[CityRecommender] = None
        self.recommendations: Optional[pd.DataFrame] = None
        self.classifier: Optional[SessionIntentClassifier] = None
        self.intent: Optional[pd.DataFrame] = None
        self.label_distribution: Optional[pd.DataFrame] = None

    def _vprint(self, level, message):
        if self.verbosity >= level:
            print(message)

    # ---------------- Configuration ----------------

    def _load_configuration(self) -> None:
        """Load pipeline configuration from YAML, falling back to defaults."""
        try:
            loaded = load_yaml(self.config_path)

            # If YAML has a top-level 'city_similarity' key, unwrap it
            if "city_similarity" in loaded:
                loaded = loaded["city_similarity"]

            for section in self.REQUIRED_CONFIG_SECTIONS:
                if section not in loaded:
                    raise ValueError(f"Missing required configuration section: {section}")

            self.config = merge_config(DEFAULT_CONFIG, loaded)
            self._vprint(1, "✅ Configuration loaded successfully")

        except (FileNotFoundError, ValueError) as e:
            self._vprint(1, f"❌ Failed to load configuration: {e}")
            self._vprint(1, "⚠️ Using default configuration...")
            self.config = merge_config(DEFAULT_CONFIG, {})

    @property
    def output_dir(self) -> str:
        if self._output_dir is None:
            self._output_dir = get_path("processed")
        os.makedirs(self._output_dir, exist_ok=True)
        return self._output_dir

    # ---------------- Pipeline ----------------

    def run(
        self,
        records: Union[pd.DataFrame, Iterable[Dict[str, Any]]],
        export: bool = False,
        plot: bool = False,
    ) -> Dict[str, Any]:
        """
        Execute the complete pipeline on raw session records.

        Returns
        -------
        Dict[str, Any]
            ``table``, ``city_matrix``, ``similarity``, ``recommendations``,
            ``intent``, ``cutoff``, ``label_distribution`` and, when
            requested, ``exported_files`` / ``figures``.
        """
        self._vprint(1, "\n" + "=" * 80)
        self._vprint(1, "🚀 CITY SIMILARITY PIPELINE")
        self._vprint(1, "=" * 80 + "\n")

        try:
            self.build_session_table(records)
            self.build_city_matrix()
            self.compute_similarity()
            self.recommend_cities()
            self.classify_sessions()
        except Exception as e:
            self._vprint(1, f"❌ Error in CitySimilarityPipeline: {e}")
            raise

        results = {
            "table": self.table,
            "city_matrix": self.city_matrix,
            "similarity": self.similarity,
            "recommendations": self.recommendations,
            "intent": self.intent,
            "cutoff": self.classifier.cutoff,
            "label_distribution": self.label_distribution,
        }
        if export:
            results["exported_files"] = self.export_results()
        if plot:
            results["figures"] = self.create_visualizations()

        self._print_final_summary()
        return results

    def run_from_file(self, file_path: str, **kwargs) -> Dict[str, Any]:
        """Load records with ``DataLoader`` and run the pipeline."""
        records = DataLoader().load_file(file_path)
        return self.run(records, **kwargs)

    def _print_final_summary(self) -> None:
        self._vprint(1, "\n" + "=" * 80)
        self._vprint(1, "🎉 PIPELINE COMPLETE!")
        self._vprint(1, "=" * 80)
        self._vprint(1, f"   - Sessions: {len(self.table):,}")
        self._vprint(1, f"   - Cities: {len(self.similarity):,}")
        self._vprint(1, f"   - Scored sessions: {len(self.intent):,}")
        if self.classifier.cutoff is not None:
            self._vprint(1, f"   - Intent cutoff: {self.classifier.cutoff:.4f}")
        self._vprint(1, "=" * 80)

    # ---------------- Steps ----------------

    def build_session_table(self, records) -> pd.DataFrame:
        table_config = self.config["session_table"]
        builder = SessionTableBuilder(
            categorical_fields=table_config["categorical_fields"],
            missing_label=table_config["missing_label"],
            city_separator=table_config["city_separator"],
            verbosity=self.verbosity,
        )
        self.table = builder.build(records)
        return self.table

    def build_city_matrix(self, vocabulary: Optional[Iterable[str]] = None) -> CitySessionMatrix:
        self._require("table")
        self.city_matrix = CitySessionMatrixBuilder(verbosity=self.verbosity).build(self.table, vocabulary)
        return self.city_matrix

    def compute_similarity(self) -> SimilarityMatrix:
        self._require("city_matrix")
        similarity_config = self.config["similarity"]
        self.engine = SimilarityEngine(
            self.city_matrix,
            n_jobs=similarity_config["n_jobs"],
            block_size=similarity_config["block_size"],
            verbosity=self.verbosity,
        )
        self.similarity = self.engine.build_matrix()
        return self.similarity

    def recommend_cities(self) -> pd.DataFrame:
        self._require("similarity")
        self.recommender = CityRecommender(
            self.similarity,
            top_k=self.config["recommender"]["top_k"],
            verbosity=self.verbosity,
        )
        self.recommendations = self.recommender.recommend_all()
        return self.recommendations

    def classify_sessions(self, cutoff: Optional[float] = None) -> pd.DataFrame:
        self._require("similarity")
        intent_config = self.config["intent"]
        self.classifier = SessionIntentClassifier(
            self.similarity,
            low_intent_quantile=intent_config["low_intent_quantile"],
            cutoff=cutoff,
            report_quantiles=intent_config["report_quantiles"],
            labels=intent_config["labels"],
            verbosity=self.verbosity,
        )
        self.intent = self.classifier.classify(self.table)
        self.label_distribution = self.classifier.label_distribution(self.intent)
        return self.intent

    def export_results(self) -> Dict[str, str]:
        self._require("intent")
        exporter = DataExporter(self.output_dir)
        return exporter.export_results(
            self.recommendations,
            self.intent,
            thresholds=self.classifier.threshold_manager.to_dataframe(),
            label_distribution=self.label_distribution,
        )

    def create_visualizations(self, figure_dir: Optional[str] = None) -> Dict[str, Optional[str]]:
        self._require("intent")
        figure_dir = figure_dir or os.path.join(self.output_dir, "figures")
        visualizer = IntentVisualizer(figure_dir, self.config)
        return {
            "score_distribution": visualizer.plot_score_distribution(self.intent, self.classifier.cutoff),
            "similarity_heatmap": visualizer.plot_similarity_heatmap(self.similarity, self.city_matrix),
        }

    def _require(self, attribute: str) -> None:
        if getattr(self, attribute) is None:
            raise RuntimeError(f"Pipeline step producing '{attribute}' has not been run yet")
