# pylint: disable=missing-module-docstring,missing-function-docstring,redefined-outer-name
from unittest.mock import MagicMock

import pytest

from denudmap.core.errors import BandAlignmentError, GridMismatchError
from denudmap.ingestion.covariates import (
    CovariateStack,
    check_band_alignment,
    load_layer,
    resample_layer,
)


@pytest.fixture
def patched_ee(monkeypatch, fake_ee):
    images = {}

    def make_image(arg):
        if isinstance(arg, list):
            return fake_ee.composite
        return images.setdefault(arg, MagicMock(name=arg))

    fake_ee.Image.side_effect = make_image
    fake_ee.images = images
    monkeypatch.setattr("denudmap.ingestion.covariates.ee", fake_ee)
    return fake_ee


def test_load_layer_renames(patched_ee):
    layer = load_layer("projects/x/assets/", "Slope")

    raw = patched_ee.images["projects/x/assets/Slope"]
    raw.rename.assert_called_once_with("Slope")
    assert layer is raw.rename.return_value


def test_resample_layer_bilinear_reprojection():
    image = MagicMock()

    out = resample_layer(image, "EPSG:4326", scale=1000)

    image.resample.assert_called_once_with("bilinear")
    image.resample.return_value.reproject.assert_called_once_with(
        crs="EPSG:4326", scale=1000
    )
    assert out is image.resample.return_value.reproject.return_value


def test_check_band_alignment_accepts_same_names(predictors):
    check_band_alignment(predictors, list(predictors))


def test_check_band_alignment_reports_missing_and_extra(predictors):
    bands = [p for p in predictors if p != "NDVI"] + ["ndvi"]

    with pytest.raises(BandAlignmentError) as err:
        check_band_alignment(predictors, bands)

    assert err.value.missing == ["NDVI"]
    assert err.value.extra == ["ndvi"]
    assert "NDVI" in str(err.value)


def test_check_band_alignment_tolerates_reordering(predictors, caplog):
    check_band_alignment(predictors, list(reversed(predictors)))

    assert "differs" in caplog.text


def test_stack_resamples_all_but_reference(patched_ee, predictors, fake_manager_cls):
    manager = fake_manager_cls()
    stack = CovariateStack(predictors, "projects/x/assets", ee_manager_instance=manager)

    layers = stack.load()

    assert manager.initialized == 1
    assert list(layers) == predictors
    reference = patched_ee.images["projects/x/assets/Elevation"].rename.return_value
    assert layers["Elevation"] is reference
    reference.resample.assert_not_called()
    crs = reference.projection.return_value.crs.return_value
    for name in predictors[1:]:
        renamed = patched_ee.images[f"projects/x/assets/{name}"].rename.return_value
        renamed.resample.assert_called_once_with("bilinear")
        renamed.resample.return_value.reproject.assert_called_once_with(
            crs=crs, scale=1000
        )


def test_composite_keeps_predictor_order_and_masks(patched_ee, predictors, fake_manager_cls):
    stack = CovariateStack(predictors, "projects/x/assets", ee_manager_instance=fake_manager_cls())
    layers = stack.load()

    composite = stack.composite()

    bands = patched_ee.Image.call_args_list[-1].args[0]
    assert bands == [layers[name] for name in predictors]
    patched_ee.composite.updateMask.assert_called_once_with(layers["Elevation"])
    assert composite is patched_ee.composite.updateMask.return_value


def test_verify_bands_uses_band_names(patched_ee, predictors, fake_manager_cls):
    manager = fake_manager_cls(list(predictors))
    stack = CovariateStack(predictors, "projects/x/assets", ee_manager_instance=manager)

    assert stack.verify_bands(MagicMock()) == predictors


def test_verify_bands_raises_on_mismatch(patched_ee, predictors, fake_manager_cls):
    manager = fake_manager_cls(predictors[:-1])
    stack = CovariateStack(predictors, "projects/x/assets", ee_manager_instance=manager)

    with pytest.raises(BandAlignmentError):
        stack.verify_bands(MagicMock())


def _grid_info(predictors, crs="EPSG:4326", scale=1000.0, **overrides):
    info = {name: {"crs": crs, "scale": scale} for name in predictors[1:]}
    info["Elevation"] = {"crs": crs}
    info.update(overrides)
    return info


def test_verify_grid_passes_on_reference_grid(patched_ee, predictors, fake_manager_cls):
    manager = fake_manager_cls(_grid_info(predictors))
    stack = CovariateStack(predictors, "projects/x/assets", ee_manager_instance=manager)

    grids = stack.verify_grid()

    assert set(grids) == set(predictors[1:])


def test_verify_grid_detects_wrong_crs_and_scale(patched_ee, predictors, fake_manager_cls):
    info = _grid_info(
        predictors,
        MAP={"crs": "EPSG:3857", "scale": 1000.0},
        PGA={"crs": "EPSG:4326", "scale": 5000.0},
    )
    manager = fake_manager_cls(info)
    stack = CovariateStack(predictors, "projects/x/assets", ee_manager_instance=manager)

    with pytest.raises(GridMismatchError) as err:
        stack.verify_grid()

    assert "MAP" in str(err.value)
    assert "PGA" in str(err.value)


def test_reference_must_be_predictor(predictors):
    with pytest.raises(ValueError):
        CovariateStack(predictors, "root", reference="DEM")
