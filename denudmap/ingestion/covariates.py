"""
Module `ingestion.covariates` builds the multi-band covariate composite the
trained forest is applied to.

Each predictor lives in its own single-band asset with its own native grid.
Layers are renamed to their predictor name, every non-reference layer is
resampled onto the reference layer's CRS at a common scale, and the stack is
masked to the reference layer's footprint.
"""

from typing import Dict, List, Optional, Sequence

import ee

from denudmap.core.errors import BandAlignmentError, GridMismatchError
from denudmap.core.logger import Logger
from .eemanager import EarthEngineManager, ee_manager


def load_layer(asset_root: str, name: str) -> ee.Image:
    """Load ``<asset_root>/<name>`` and rename its single band to *name*."""
    return ee.Image(f"{asset_root.rstrip('/')}/{name}").rename(name)


def resample_layer(
    image: ee.Image, crs, scale: float = 1000, method: str = "bilinear"
) -> ee.Image:
    """Resample *image* with *method* and reproject it to *crs* at *scale* metres."""
    return image.resample(method).reproject(crs=crs, scale=scale)


def check_band_alignment(
    predictors: Sequence[str], band_names: Sequence[str], logger=None
) -> None:
    """
    Ensure every predictor has an identically named band.

    Raises BandAlignmentError when bands are missing or unexpected; a
    differing order is only logged since classification selects by name.
    """
    log = logger or Logger.get_logger(__name__)
    missing = [p for p in predictors if p not in band_names]
    extra = [b for b in band_names if b not in predictors]
    if missing or extra:
        raise BandAlignmentError(missing, extra)
    if list(predictors) != list(band_names):
        log.warning(
            "Band order %s differs from predictor order %s",
            list(band_names),
            list(predictors),
        )


class CovariateStack:
    """
    Loads, aligns and composites the predictor rasters.
    """

    def __init__(
        self,
        predictors: Sequence[str],
        asset_root: str,
        reference: str = "Elevation",
        scale: float = 1000,
        method: str = "bilinear",
        ee_manager_instance: EarthEngineManager = ee_manager,
        logger=None,
    ) -> None:
        if reference not in predictors:
            raise ValueError(f"Reference band {reference!r} is not a predictor")
        self.predictors = list(predictors)
        self.asset_root = asset_root
        self.reference = reference
        self.scale = scale
        self.method = method
        self.ee = ee_manager_instance
        self.logger = logger or Logger.get_logger(__name__)
        self.layers: Dict[str, ee.Image] = {}

    @property
    def reference_layer(self) -> ee.Image:
        return self.layers[self.reference]

    def load(self) -> Dict[str, ee.Image]:
        """Load every predictor layer and resample all but the reference."""
        self.ee.initialize()
        reference = load_layer(self.asset_root, self.reference)
        crs = reference.projection().crs()
        layers: Dict[str, ee.Image] = {}
        for name in self.predictors:
            if name == self.reference:
                layers[name] = reference
                continue
            self.logger.debug(
                "Resampling %s (%s) to %sm", name, self.method, self.scale
            )
            layers[name] = resample_layer(
                load_layer(self.asset_root, name),
                crs,
                scale=self.scale,
                method=self.method,
            )
        self.layers = layers
        self.logger.info(
            "Loaded %d covariate layers from %s", len(layers), self.asset_root
        )
        return layers

    def composite(self) -> ee.Image:
        """Return the predictor-ordered composite masked to the reference footprint."""
        if not self.layers:
            self.load()
        bands = [self.layers[name] for name in self.predictors]
        return ee.Image(bands).updateMask(self.reference_layer)

    def verify_bands(self, image: Optional[ee.Image] = None) -> List[str]:
        """Check the composite's band names against the predictors and return them."""
        image = image if image is not None else self.composite()
        band_names = self.ee.safe_get_info(image.bandNames()) or []
        check_band_alignment(self.predictors, band_names, logger=self.logger)
        return band_names

    def verify_grid(self, rel_tol: float = 1e-6) -> Dict[str, dict]:
        """
        Check that each resampled layer sits on the reference CRS at ``scale``.

        Returns the fetched ``{"crs", "scale"}`` info per resampled layer.
        """
        if not self.layers:
            self.load()
        query = {
            name: ee.Dictionary(
                {"crs": img.projection().crs(), "scale": img.projection().nominalScale()}
            )
            for name, img in self.layers.items()
            if name != self.reference
        }
        query[self.reference] = ee.Dictionary(
            {"crs": self.reference_layer.projection().crs()}
        )
        info = self.ee.safe_get_info(ee.Dictionary(query)) or {}
        ref_crs = info.get(self.reference, {}).get("crs")

        grids = {k: v for k, v in info.items() if k != self.reference}
        problems = []
        for name, grid in grids.items():
            if grid.get("crs") != ref_crs:
                problems.append(f"{name}: crs {grid.get('crs')} != {ref_crs}")
            scale = float(grid.get("scale", 0.0))
            if abs(scale - self.scale) > rel_tol * self.scale:
                problems.append(f"{name}: scale {scale} != {self.scale}")
        if problems:
            raise GridMismatchError("; ".join(problems))
        self.logger.info(
            "All %d resampled layers are on %s at %sm", len(grids), ref_crs, self.scale
        )
        return grids
