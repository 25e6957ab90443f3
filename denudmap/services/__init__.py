"""Lightweight service-layer helpers used by the CLI and tests."""

from importlib import import_module

__all__ = [
    "predict_log",
    "predict_denudation",
    "ExportService",
]


def __getattr__(name):
    if name in ("predict_log", "predict_denudation"):
        return getattr(import_module(".prediction", __name__), name)
    if name == "ExportService":
        return import_module(".export", __name__).ExportService
    raise AttributeError(name)
