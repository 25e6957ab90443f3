from __future__ import annotations

"""Hold-out evaluation of the trained forest in log space."""

from dataclasses import dataclass
from typing import Sequence, Tuple
import logging

import ee
import numpy as np
import pandas as pd
from sklearn.metrics import mean_absolute_error, mean_squared_error, r2_score

from denudmap.core.logger import Logger
from denudmap.ingestion.eemanager import EarthEngineManager, ee_manager


@dataclass
class EvaluationResult:
    """Actual/predicted log-denudation pairs and their error metrics."""

    actual: np.ndarray
    predicted: np.ndarray
    r2: float
    rmse: float
    mae: float
    bias: float

    @property
    def n(self) -> int:
        return int(self.actual.size)

    def metrics(self) -> dict:
        return {
            "n": self.n,
            "r2": self.r2,
            "rmse": self.rmse,
            "mae": self.mae,
            "bias": self.bias,
        }

    def to_frame(self) -> pd.DataFrame:
        """Per-sample table in log and linear units."""
        return pd.DataFrame(
            {
                "actual_log": self.actual,
                "predicted_log": self.predicted,
                "actual": to_linear(self.actual),
                "predicted": to_linear(self.predicted),
                "residual_log": self.predicted - self.actual,
            }
        )


def to_linear(values) -> np.ndarray:
    """Invert the log transform of denudation values."""
    return np.exp(np.asarray(values, dtype=float))


def classify_testing(
    testing: ee.FeatureCollection,
    model: ee.Classifier,
    output_name: str = "log_denud_Prediction",
) -> ee.FeatureCollection:
    """Attach the model prediction to every test feature as *output_name*."""
    return testing.classify(model, output_name)


def collect_arrays(
    classified: ee.FeatureCollection,
    target: str,
    output_name: str = "log_denud_Prediction",
    manager: EarthEngineManager = ee_manager,
) -> Tuple[np.ndarray, np.ndarray]:
    """Pull actual and predicted values of *classified* in one round trip."""
    info = manager.safe_get_info(
        ee.Dictionary(
            {
                "actual": classified.aggregate_array(target),
                "predicted": classified.aggregate_array(output_name),
            }
        )
    )
    return (
        np.asarray(info["actual"], dtype=float),
        np.asarray(info["predicted"], dtype=float),
    )


def evaluate(
    actual: Sequence[float],
    predicted: Sequence[float],
    logger: logging.Logger | None = None,
) -> EvaluationResult:
    """Compute R², RMSE, MAE and mean bias of *predicted* against *actual*."""
    log = logger or Logger.get_logger(__name__)
    y_true = np.asarray(actual, dtype=float)
    y_pred = np.asarray(predicted, dtype=float)
    if y_true.shape != y_pred.shape:
        raise ValueError(
            f"actual and predicted differ in length: {y_true.size} != {y_pred.size}"
        )
    if y_true.size < 2:
        raise ValueError("At least two test samples are required for evaluation")

    result = EvaluationResult(
        actual=y_true,
        predicted=y_pred,
        r2=float(r2_score(y_true, y_pred)),
        rmse=float(np.sqrt(mean_squared_error(y_true, y_pred))),
        mae=float(mean_absolute_error(y_true, y_pred)),
        bias=float(np.mean(y_pred - y_true)),
    )
    log.info(
        "Test set (n=%d): R2=%.3f RMSE=%.3f MAE=%.3f bias=%.3f",
        result.n,
        result.r2,
        result.rmse,
        result.mae,
        result.bias,
    )
    return result
