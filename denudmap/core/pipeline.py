from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import ee
import pandas as pd

from denudmap.core.config import PipelineSettings
from denudmap.core.logger import Logger
from denudmap.core.storage import LocalFS, StorageAdapter
from denudmap.ingestion.covariates import CovariateStack
from denudmap.ingestion.eemanager import EarthEngineManager, ee_manager
from denudmap.ingestion.observations import (
    SplitResult,
    SplitSummary,
    load_observations,
    random_split,
    summarize_split,
)
from denudmap.modeling.evaluation import (
    EvaluationResult,
    classify_testing,
    collect_arrays,
    evaluate,
)
from denudmap.modeling.forest import (
    ModelSummary,
    RandomForestParams,
    explain_model,
    train_regressor,
)
from denudmap.modeling.importance import importance_frame
from denudmap.services.export import ExportService
from denudmap.services.prediction import predict_denudation
from denudmap.visualization.visualizer import Visualizer


@dataclass
class TrainingResult:
    """Everything produced by the training half of the workflow."""

    model: ee.Classifier
    split: SplitResult
    split_summary: SplitSummary
    summary: ModelSummary
    evaluation: EvaluationResult


@dataclass
class PredictionResult:
    """The prediction raster and, if started, its export task."""

    image: ee.Image
    composite: ee.Image
    task: Any = None


@dataclass
class DenudationPipeline:
    """Encapsulate the train → evaluate → predict → export workflow."""

    settings: PipelineSettings = field(default_factory=PipelineSettings)
    ee_manager: EarthEngineManager = ee_manager
    storage: StorageAdapter = field(default_factory=LocalFS)
    visualizer: Optional[Visualizer] = None
    logger: Any = None

    def __post_init__(self) -> None:
        self.logger = self.logger or Logger.get_logger(__name__)
        self.visualizer = self.visualizer or Visualizer(logger=self.logger)

    def covariate_stack(self) -> CovariateStack:
        s = self.settings
        return CovariateStack(
            predictors=s.predictors,
            asset_root=s.asset_root,
            reference=s.reference_band,
            scale=s.scale,
            method=s.resample_method,
            ee_manager_instance=self.ee_manager,
            logger=self.logger,
        )

    def split(self) -> tuple:
        """Load the observations and split them into training and testing."""
        s = self.settings
        self.ee_manager.initialize()

        self.logger.info("Loading observations from %s", s.observations_asset)
        observations = load_observations(s.observations_asset)
        split = random_split(
            observations,
            fraction=s.split_fraction,
            column=s.split_column,
            seed=s.split_seed,
        )
        return observations, split

    def fit(self, split: SplitResult) -> ee.Classifier:
        """Train the regression forest on the training subset of *split*."""
        s = self.settings
        return train_regressor(
            split.training,
            s.target,
            s.predictors,
            RandomForestParams.from_dict(s.rf),
            logger=self.logger,
        )

    def train(self) -> TrainingResult:
        """Load, split, train, explain and evaluate on the hold-out subset."""
        s = self.settings
        observations, split = self.split()
        split_summary = summarize_split(
            observations, split, manager=self.ee_manager, logger=self.logger
        )

        model = self.fit(split)
        summary = explain_model(model, manager=self.ee_manager, logger=self.logger)

        output_name = f"{s.target}_Prediction"
        classified = classify_testing(split.testing, model, output_name)
        actual, predicted = collect_arrays(
            classified, s.target, output_name, manager=self.ee_manager
        )
        evaluation = evaluate(actual, predicted, logger=self.logger)
        return TrainingResult(
            model=model,
            split=split,
            split_summary=split_summary,
            summary=summary,
            evaluation=evaluation,
        )

    def predict(
        self,
        model: ee.Classifier,
        export: bool = True,
        verify: bool = True,
        region=None,
    ) -> PredictionResult:
        """Build the covariate composite, apply *model* and optionally export."""
        s = self.settings
        stack = self.covariate_stack()
        stack.load()
        composite = stack.composite()
        if verify:
            stack.verify_grid()
            stack.verify_bands(composite)

        image = predict_denudation(
            composite, model, band_name=s.prediction_band, log_name=s.target
        )
        task = None
        if export:
            exporter = ExportService(
                ee_manager_instance=self.ee_manager,
                logger=self.logger,
                storage=self.storage,
            )
            task = exporter.export_to_drive(image, s.export, region=region)
        return PredictionResult(image=image, composite=composite, task=task)

    def run(self, out_dir: str | None = None, export: bool = True, verify: bool = True):
        """Run training and prediction; write reports when *out_dir* is given."""
        training = self.train()
        if out_dir:
            self.write_reports(training, out_dir)
        prediction = self.predict(training.model, export=export, verify=verify)
        return training, prediction

    def write_reports(self, training: TrainingResult, out_dir: str) -> Dict[str, str]:
        """Persist model summary, importance, metrics and figures under *out_dir*."""
        os.makedirs(out_dir, exist_ok=True)
        paths: Dict[str, str] = {}
        join = self.storage.join

        paths["model_summary"] = self.storage.write_json(
            join(out_dir, "model_summary.json"), training.summary.to_dict()
        )
        paths["metrics"] = self.storage.write_json(
            join(out_dir, "metrics.json"),
            {
                **training.evaluation.metrics(),
                "split": {
                    "total": training.split_summary.total,
                    "training": training.split_summary.training,
                    "testing": training.split_summary.testing,
                },
            },
        )

        evaluation_csv = join(out_dir, "evaluation.csv")
        training.evaluation.to_frame().to_csv(evaluation_csv, index=False)
        paths["evaluation"] = evaluation_csv
        paths["evaluation_png"] = self.visualizer.plot_evaluation(
            training.evaluation, join(out_dir, "evaluation.png")
        )

        if training.summary.importance:
            frame: pd.DataFrame = importance_frame(training.summary.importance)
            importance_csv = join(out_dir, "importance.csv")
            frame.to_csv(importance_csv, index=False)
            paths["importance"] = importance_csv
            paths["importance_png"] = self.visualizer.plot_importance(
                frame, join(out_dir, "importance.png")
            )
        else:
            self.logger.warning("Model explanation carried no importances")

        self.logger.info("Reports written to %s", out_dir)
        return paths
