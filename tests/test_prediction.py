# pylint: disable=missing-module-docstring,missing-function-docstring
from unittest.mock import MagicMock

from denudmap.services.prediction import predict_denudation, predict_log


def test_predict_log_classifies_composite():
    composite, model = MagicMock(), MagicMock()

    out = predict_log(composite, model)

    composite.classify.assert_called_once_with(model, "log_denud")
    assert out is composite.classify.return_value


def test_predict_denudation_exponentiates_log_output():
    composite, model = MagicMock(), MagicMock()
    log_image = composite.classify.return_value

    out = predict_denudation(composite, model)

    log_image.exp.assert_called_once_with()
    log_image.exp.return_value.rename.assert_called_once_with("predictedDenudation")
    assert out is log_image.exp.return_value.rename.return_value


def test_predict_denudation_custom_names():
    composite = MagicMock()

    predict_denudation(composite, MagicMock(), band_name="denud", log_name="ln_d")

    assert composite.classify.call_args.args[1] == "ln_d"
    composite.classify.return_value.exp.return_value.rename.assert_called_once_with(
        "denud"
    )
