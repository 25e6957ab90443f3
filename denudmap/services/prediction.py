"""Pixel-wise application of the trained forest to the covariate composite."""

import ee


def predict_log(
    composite: ee.Image, model: ee.Classifier, output_name: str = "log_denud"
) -> ee.Image:
    """Classify *composite* with *model*; the result is in log units."""
    return composite.classify(model, output_name)


def predict_denudation(
    composite: ee.Image,
    model: ee.Classifier,
    band_name: str = "predictedDenudation",
    log_name: str = "log_denud",
) -> ee.Image:
    """Return exp(log prediction) as a single band named *band_name*."""
    return predict_log(composite, model, log_name).exp().rename(band_name)
