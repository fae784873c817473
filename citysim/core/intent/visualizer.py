# citysim/core/intent/visualizer.py

import os
import matplotlib.pyplot as plt  # type: ignore
import pandas as pd  # type: ignore
import seaborn as sns  # type: ignore
from typing import Any, Dict, Optional

from ..similarity import CitySessionMatrix, SimilarityMatrix


class IntentVisualizer:
    """
    Handles all visualization tasks for city similarity and session intent.
    """

    def __init__(self, output_dir: str, config: Optional[Dict[str, Any]] = None, show: bool = False):
        """
        Initialize visualizer.

        Parameters
        ----------
        output_dir : str
            Directory for saving figures
        config : Dict[str, Any], optional
            Configuration dictionary
        show : bool
            Display figures interactively after saving
        """
        self.output_dir = output_dir
        self.config = config or {}
        self.show = show
        os.makedirs(self.output_dir, exist_ok=True)

        viz_config = self.config.get('visualization', {})
        self.heatmap_top_n = viz_config.get('heatmap_top_n', 20)
        self.bins = viz_config.get('bins', 30)

        sns.set_style("whitegrid")

    def _save(self, fig, filename: str) -> str:
        save_path = os.path.join(self.output_dir, filename)
        fig.savefig(save_path, dpi=150, bbox_inches='tight')
        if self.show:
            plt.show()
        plt.close(fig)
        print(f"   📊 Saved: {save_path}")
        return save_path

    def plot_score_distribution(self, intent: pd.DataFrame, cutoff: Optional[float]) -> Optional[str]:
        """Histogram of intent scores per label with the cutoff marked."""
        if intent.empty:
            print("   ⚠️ No scored sessions to plot")
            return None

        fig, ax = plt.subplots(figsize=(10, 6))
        sns.histplot(
            data=intent,
            x='intent_score',
            hue='intent_label',
            bins=self.bins,
            multiple='stack',
            palette='Set2',
            ax=ax
        )
        if cutoff is not None:
            ax.axvline(cutoff, color='darkred', linestyle='--', linewidth=2, label=f'cutoff = {cutoff:.3f}')
            ax.text(cutoff, ax.get_ylim()[1] * 0.95, f' cutoff={cutoff:.3f}', color='darkred')

        ax.set_title('Session Intent Score Distribution', fontsize=14, fontweight='bold')
        ax.set_xlabel('Mean pairwise city similarity')
        ax.set_ylabel('Sessions')
        plt.tight_layout()
        return self._save(fig, 'intent_score_distribution.png')

    def plot_similarity_heatmap(
        self,
        similarity: SimilarityMatrix,
        city_matrix: CitySessionMatrix,
        top_n: Optional[int] = None
    ) -> Optional[str]:
        """Similarity heatmap restricted to the most searched cities."""
        if len(similarity) < 2:
            print("   ⚠️ Not enough cities for a heatmap")
            return None

        top_n = top_n or self.heatmap_top_n
        top_cities = list(city_matrix.session_counts().index[:top_n])
        frame = similarity.to_frame().loc[top_cities, top_cities]

        size = max(6, len(top_cities) * 0.45)
        fig, ax = plt.subplots(figsize=(size + 2, size))
        sns.heatmap(
            frame,
            cmap='YlOrRd',
            vmin=0.0,
            vmax=1.0,
            square=True,
            cbar_kws={'label': 'Cosine similarity'},
            ax=ax
        )
        ax.set_title(f'City Similarity (top {len(top_cities)} searched cities)', fontsize=14, fontweight='bold')
        plt.tight_layout()
        return self._save(fig, 'city_similarity_heatmap.png')
