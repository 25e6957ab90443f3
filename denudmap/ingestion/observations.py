from __future__ import annotations

"""Loading and splitting of the denudation observation collection."""

from dataclasses import dataclass
import logging

import ee

from denudmap.core.errors import SplitError
from denudmap.core.logger import Logger
from .eemanager import EarthEngineManager, ee_manager


@dataclass
class SplitResult:
    """Training and testing subsets of one randomised collection."""

    training: ee.FeatureCollection
    testing: ee.FeatureCollection
    column: str = "random"
    fraction: float = 0.8


@dataclass
class SplitSummary:
    """Record counts of a split, fetched from Earth Engine."""

    total: int
    training: int
    testing: int
    requested_fraction: float

    @property
    def training_fraction(self) -> float:
        return self.training / self.total if self.total else 0.0


def load_observations(asset_id: str) -> ee.FeatureCollection:
    """Return the observation FeatureCollection stored at *asset_id*."""

    return ee.FeatureCollection(asset_id)


def random_split(
    collection: ee.FeatureCollection,
    fraction: float = 0.8,
    column: str = "random",
    seed: int | None = None,
) -> SplitResult:
    """Split *collection* on an appended uniform random column.

    Records with ``column < fraction`` go to training, the rest to testing,
    so the two subsets partition the collection. Only the forest seed is
    fixed by default; pass *seed* to pin the split as well.
    """

    if not 0 < fraction < 1:
        raise ValueError(f"fraction must be in (0, 1), got {fraction}")
    if seed is None:
        sample = collection.randomColumn(column)
    else:
        sample = collection.randomColumn(column, seed)
    training = sample.filter(ee.Filter.lt(column, fraction))
    testing = sample.filter(ee.Filter.gte(column, fraction))
    return SplitResult(training=training, testing=testing, column=column, fraction=fraction)


def summarize_split(
    collection: ee.FeatureCollection,
    split: SplitResult,
    manager: EarthEngineManager = ee_manager,
    tolerance: float = 0.05,
    logger: logging.Logger | None = None,
) -> SplitSummary:
    """Fetch subset sizes and check that the split partitions *collection*."""

    log = logger or Logger.get_logger(__name__)
    sizes = manager.safe_get_info(
        ee.Dictionary(
            {
                "total": collection.size(),
                "training": split.training.size(),
                "testing": split.testing.size(),
            }
        )
    )
    summary = SplitSummary(
        total=int(sizes["total"]),
        training=int(sizes["training"]),
        testing=int(sizes["testing"]),
        requested_fraction=split.fraction,
    )
    check_partition(summary, tolerance=tolerance, logger=log)
    return summary


def check_partition(
    summary: SplitSummary,
    tolerance: float = 0.05,
    logger: logging.Logger | None = None,
) -> None:
    """Raise :class:`SplitError` unless training and testing cover the sample exactly."""

    log = logger or Logger.get_logger(__name__)
    if summary.total == 0:
        raise SplitError("observation collection is empty")
    if summary.training + summary.testing != summary.total:
        raise SplitError(
            f"split does not partition the sample: {summary.training} + "
            f"{summary.testing} != {summary.total}"
        )
    if summary.training == 0 or summary.testing == 0:
        raise SplitError(
            f"degenerate split: {summary.training} training, {summary.testing} testing"
        )
    deviation = abs(summary.training_fraction - summary.requested_fraction)
    if deviation > tolerance:
        log.warning(
            "Training fraction %.3f deviates from requested %.2f by more than %.2f",
            summary.training_fraction,
            summary.requested_fraction,
            tolerance,
        )
    log.info(
        "Split %d observations into %d training / %d testing (%.1f%% training)",
        summary.total,
        summary.training,
        summary.testing,
        100 * summary.training_fraction,
    )
