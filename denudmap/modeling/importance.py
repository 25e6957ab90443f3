"""Normalisation of Random Forest feature importances to percentages."""

from typing import Mapping, Dict

import ee
import pandas as pd


def relative_importance(raw: Mapping[str, float]) -> Dict[str, float]:
    """
    Scale raw importances so they sum to 100.

    Each value is multiplied by 100 and divided by the sum of all values.
    """
    if not raw:
        raise ValueError("No importances to normalise")
    if any(v < 0 for v in raw.values()):
        raise ValueError("Importances must be non-negative")
    total = float(sum(raw.values()))
    if total == 0:
        raise ValueError("Importances sum to zero")
    return {k: float(v) * 100.0 / total for k, v in raw.items()}


def relative_importance_ee(importance: ee.Dictionary) -> ee.Dictionary:
    """Server-side equivalent of :func:`relative_importance`."""
    importance = ee.Dictionary(importance)
    total = ee.Number(importance.values().reduce(ee.Reducer.sum()))
    return importance.map(lambda _key, val: ee.Number(val).multiply(100).divide(total))


def importance_frame(raw: Mapping[str, float]) -> pd.DataFrame:
    """Return importances as a DataFrame sorted by relative importance."""
    rel = relative_importance(raw)
    df = pd.DataFrame(
        {
            "feature": list(raw.keys()),
            "importance": [float(v) for v in raw.values()],
            "relative_importance": [rel[k] for k in raw.keys()],
        }
    )
    return df.sort_values("relative_importance", ascending=False).reset_index(
        drop=True
    )
