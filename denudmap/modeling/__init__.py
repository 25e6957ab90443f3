"""Model training, importance and evaluation helpers."""

from .forest import RandomForestParams, ModelSummary, train_regressor, explain_model
from .importance import relative_importance, relative_importance_ee, importance_frame
from .evaluation import EvaluationResult, evaluate, to_linear

__all__ = [
    "RandomForestParams",
    "ModelSummary",
    "train_regressor",
    "explain_model",
    "relative_importance",
    "relative_importance_ee",
    "importance_frame",
    "EvaluationResult",
    "evaluate",
    "to_linear",
]
