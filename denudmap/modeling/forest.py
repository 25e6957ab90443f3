from __future__ import annotations

"""Random Forest regression on Earth Engine's SMILE implementation."""

from dataclasses import dataclass, field
from typing import Any, Dict, Sequence
import logging

import ee

from denudmap.core.logger import Logger
from denudmap.ingestion.eemanager import EarthEngineManager, ee_manager
from .importance import relative_importance


@dataclass
class RandomForestParams:
    """Hyper-parameters of the regression forest."""

    number_of_trees: int = 500
    min_leaf_population: int = 1
    bag_fraction: float = 0.9
    seed: int = 0

    def __post_init__(self) -> None:
        if self.number_of_trees < 1:
            raise ValueError("number_of_trees must be at least 1")
        if self.min_leaf_population < 1:
            raise ValueError("min_leaf_population must be at least 1")
        if not 0 < self.bag_fraction <= 1:
            raise ValueError("bag_fraction must be in (0, 1]")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RandomForestParams":
        return cls(
            number_of_trees=int(data.get("number_of_trees", 500)),
            min_leaf_population=int(data.get("min_leaf_population", 1)),
            bag_fraction=float(data.get("bag_fraction", 0.9)),
            seed=int(data.get("seed", 0)),
        )

    def to_ee(self) -> Dict[str, Any]:
        """Keyword arguments for ``ee.Classifier.smileRandomForest``."""
        return {
            "numberOfTrees": self.number_of_trees,
            "minLeafPopulation": self.min_leaf_population,
            "bagFraction": self.bag_fraction,
            "seed": self.seed,
        }


@dataclass
class ModelSummary:
    """Locally materialised ``explain()`` output of a trained forest."""

    explain: Dict[str, Any]
    importance: Dict[str, float] = field(default_factory=dict)
    relative_importance: Dict[str, float] = field(default_factory=dict)

    @property
    def number_of_trees(self) -> int | None:
        return self.explain.get("numberOfTrees")

    @property
    def oob_error(self) -> float | None:
        return self.explain.get("outOfBagErrorEstimate")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "number_of_trees": self.number_of_trees,
            "out_of_bag_error": self.oob_error,
            "importance": self.importance,
            "relative_importance": self.relative_importance,
        }


def validate_predictors(target: str, predictors: Sequence[str]) -> None:
    """Reject empty or duplicated predictor lists and a target used as predictor."""
    if not predictors:
        raise ValueError("At least one predictor is required")
    dupes = sorted({p for p in predictors if list(predictors).count(p) > 1})
    if dupes:
        raise ValueError(f"Duplicated predictors: {', '.join(dupes)}")
    if target in predictors:
        raise ValueError(f"Target {target!r} cannot be used as a predictor")


def train_regressor(
    training: ee.FeatureCollection,
    target: str,
    predictors: Sequence[str],
    params: RandomForestParams | None = None,
    logger: logging.Logger | None = None,
) -> ee.Classifier:
    """Train a Random Forest in REGRESSION mode on *training*."""

    log = logger or Logger.get_logger(__name__)
    validate_predictors(target, predictors)
    params = params or RandomForestParams()
    log.info(
        "Training %d-tree random forest on %d predictors against %s",
        params.number_of_trees,
        len(predictors),
        target,
    )
    return (
        ee.Classifier.smileRandomForest(**params.to_ee())
        .setOutputMode("REGRESSION")
        .train(
            features=training,
            classProperty=target,
            inputProperties=list(predictors),
        )
    )


def explain_model(
    model: ee.Classifier,
    manager: EarthEngineManager = ee_manager,
    logger: logging.Logger | None = None,
) -> ModelSummary:
    """Fetch ``model.explain()`` and derive relative importances."""

    log = logger or Logger.get_logger(__name__)
    explained = manager.safe_get_info(model.explain()) or {}
    raw = {k: float(v) for k, v in (explained.get("importance") or {}).items()}
    summary = ModelSummary(
        explain=explained,
        importance=raw,
        relative_importance=relative_importance(raw) if raw else {},
    )
    log.info(
        "Regression RF: %s trees, OOB error %s",
        summary.number_of_trees,
        summary.oob_error,
    )
    log.info("Relative importance (%%): %s", summary.relative_importance)
    return summary
