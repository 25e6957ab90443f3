"""Static evaluation figures."""

from __future__ import annotations

import os

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd

from denudmap.core.logger import Logger
from denudmap.modeling.evaluation import EvaluationResult


class Visualizer:
    """Static figures for model evaluation and importance."""

    def __init__(self, logger=None) -> None:
        self.logger = logger or Logger.get_logger(__name__)

    def plot_evaluation(self, result: EvaluationResult, output_path: str) -> str:
        """Scatter predicted against actual log-denudation with a 1:1 line."""

        fig, ax = plt.subplots(figsize=(6, 6))
        ax.scatter(result.actual, result.predicted, s=12, alpha=0.6, label="Test sites")
        lo = float(np.nanmin([result.actual.min(), result.predicted.min()]))
        hi = float(np.nanmax([result.actual.max(), result.predicted.max()]))
        ax.plot([lo, hi], [lo, hi], color="black", linestyle="--", label="1:1")
        ax.set_xlabel("Observed log denudation")
        ax.set_ylabel("Predicted log denudation")
        ax.set_title(
            f"Hold-out evaluation (n={result.n}, R²={result.r2:.2f}, "
            f"RMSE={result.rmse:.2f})"
        )
        ax.legend()
        ax.grid(True)

        os.makedirs(os.path.dirname(output_path) or ".", exist_ok=True)
        fig.tight_layout()
        fig.savefig(output_path)
        plt.close(fig)
        self.logger.info("Saved evaluation plot to %s", output_path)
        return output_path

    def plot_importance(self, frame: pd.DataFrame, output_path: str) -> str:
        """Horizontal bar chart of ``relative_importance`` per feature."""

        ordered = frame.sort_values("relative_importance")
        fig, ax = plt.subplots(figsize=(7, 0.35 * len(ordered) + 1.5))
        ax.barh(ordered["feature"], ordered["relative_importance"], color="tab:green")
        ax.set_xlabel("Relative importance (%)")
        ax.set_title("Random forest feature importance")

        os.makedirs(os.path.dirname(output_path) or ".", exist_ok=True)
        fig.tight_layout()
        fig.savefig(output_path)
        plt.close(fig)
        self.logger.info("Saved importance plot to %s", output_path)
        return output_path
