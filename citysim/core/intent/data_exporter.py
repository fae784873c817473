# citysim/core/intent/data_exporter.py

import os
import pandas as pd  # type: ignore
from typing import Dict, Optional


class DataExporter:
    """
    Writes the recommendation and intent reports to CSV.
    """

    def __init__(self, output_dir: str):
        """
        Initialize data exporter.
        """
        self.output_dir = output_dir
        os.makedirs(output_dir, exist_ok=True)

    def export_results(
        self,
        recommendations: pd.DataFrame,
        intent: pd.DataFrame,
        thresholds: Optional[pd.DataFrame] = None,
        label_distribution: Optional[pd.DataFrame] = None,
    ) -> Dict[str, str]:
        """
        Export all report tables.

        Returns
        -------
        Dict[str, str]
            Report name → written file path
        """
        print("[EXPORT] Saving city similarity results...")

        exported_files = {
            "recommendations": self._export_frame(recommendations, "city_recommendations.csv", "Recommendations"),
            "intent": self._export_frame(intent, "session_intent.csv", "Session intent"),
        }
        if thresholds is not None:
            exported_files["thresholds"] = self._export_frame(thresholds, "intent_threshold.csv", "Threshold")
        if label_distribution is not None:
            exported_files["label_distribution"] = self._export_frame(
                label_distribution, "intent_label_distribution.csv", "Label distribution"
            )

        print(f"   ✅ All files saved to: {self.output_dir}")
        return exported_files

    def _export_frame(self, df: pd.DataFrame, filename: str, title: str) -> str:
        file_path = os.path.join(self.output_dir, filename)
        df.to_csv(file_path, index=False)
        print(f"   📄 {title}: {file_path}")
        print(f"      {len(df):,} rows, {len(df.columns)} columns")
        return file_path
