"""Ingestion package: Earth Engine session, observations and covariates."""

from .eemanager import EarthEngineManager, ee_manager
from .observations import SplitResult, SplitSummary, load_observations, random_split
from .covariates import CovariateStack, check_band_alignment

__all__ = [
    "EarthEngineManager",
    "ee_manager",
    "SplitResult",
    "SplitSummary",
    "load_observations",
    "random_split",
    "CovariateStack",
    "check_band_alignment",
]
