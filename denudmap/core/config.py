"""core.config
---------------

Configuration loader/manager for denudmap. Provides a central API for
loading settings from YAML/TOML/JSON and retrieving them via
:py:meth:`ConfigManager.get`. :class:`PipelineSettings` turns the flat
configuration into the typed objects consumed by the pipeline.
"""

import os
import json
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

import yaml
import toml


class ConfigValidationError(Exception):
    """Raised when configuration loading or validation fails."""


class ConfigManager:
    """
    Loads and manages configuration from file or defaults.
    Every literal of the denudation workflow has a default here.
    """

    ASSET_ROOT: str = "projects/ee-maumassant/assets"
    OBSERVATIONS_ASSET: str = f"{ASSET_ROOT}/denudation_all_features"
    TARGET: str = "log_denud"

    # Training order; raster bands must carry exactly these names
    PREDICTORS: Tuple[str, ...] = (
        "Elevation",
        "Slope",
        "Runoff",
        "MAT",
        "Tmin",
        "Tseason",
        "MDR",
        "MAP",
        "Pseason",
        "Pwet",
        "NDVI",
        "EVI",
        "PGA",
        "Lithology",
    )
    REFERENCE_BAND: str = "Elevation"

    SPLIT_FRACTION: float = 0.8
    SPLIT_COLUMN: str = "random"

    RF_PARAMS: Dict[str, Any] = {
        "number_of_trees": 500,
        "min_leaf_population": 1,
        "bag_fraction": 0.9,
        "seed": 0,
    }

    SCALE: int = 1000
    RESAMPLE_METHOD: str = "bilinear"

    PREDICTION_BAND: str = "predictedDenudation"
    EXPORT: Dict[str, Any] = {
        "description": "Global_Denudation_Rate_1km",
        "folder": None,
        "file_format": "GeoTIFF",
        "max_pixels": 1e13,
        "scale": None,
        "crs": None,
    }

    PRESET_PALETTES: Dict[str, Tuple[str, ...]] = {
        "denudation": ("purple", "blue", "cyan", "green", "yellow", "red"),
    }
    VIS: Dict[str, Any] = {"min": 0, "max": 500, "palette": "denudation"}

    def __init__(self, config_path=None):
        self.config: Dict[str, Any] = {
            "asset_root": self.ASSET_ROOT,
            "observations_asset": self.OBSERVATIONS_ASSET,
            "target": self.TARGET,
            "predictors": list(self.PREDICTORS),
            "reference_band": self.REFERENCE_BAND,
            "split_fraction": self.SPLIT_FRACTION,
            "split_column": self.SPLIT_COLUMN,
            "split_seed": None,
            "rf": dict(self.RF_PARAMS),
            "scale": self.SCALE,
            "resample_method": self.RESAMPLE_METHOD,
            "prediction_band": self.PREDICTION_BAND,
            "export": dict(self.EXPORT),
            "vis": dict(self.VIS),
        }
        self.preset_palettes = {k: list(v) for k, v in self.PRESET_PALETTES.items()}
        if config_path:
            self.load(config_path)

    def load(self, path: str) -> None:
        """
        Load configuration from a file (YAML, TOML, or JSON).
        Top-level keys overwrite existing ones; the nested ``rf``, ``export``
        and ``vis`` sections are updated key by key.
        """
        ext = os.path.splitext(path)[1].lower()
        try:
            with open(path, "r", encoding="utf-8") as f:
                if ext in (".yaml", ".yml"):
                    data = yaml.safe_load(f)
                elif ext == ".toml":
                    data = toml.load(f)
                elif ext == ".json":
                    data = json.load(f)
                else:
                    raise ConfigValidationError(f"Unsupported config format: {ext}")
        except ConfigValidationError:
            raise
        except Exception as e:
            raise ConfigValidationError(
                f"Failed to load config from {path}: {e}"
            ) from e
        if not isinstance(data, dict):
            raise ConfigValidationError(f"Config file {path} did not produce a dict")
        self.update(data)

    def update(self, data: Dict[str, Any]) -> None:
        """Merge *data* into the current configuration."""
        for key, value in data.items():
            current = self.config.get(key)
            if isinstance(current, dict) and isinstance(value, dict):
                current.update(value)
            else:
                self.config[key] = value

    def get(self, key, default=None):
        """
        Retrieve a configuration value by key, or return `default` if not present.
        Attributes such as `preset_palettes` are also reachable through here.
        """
        if key in self.config:
            return self.config.get(key, default)
        elif hasattr(self, key):
            return getattr(self, key)
        else:
            return default

    def resolve_palette(self, palette) -> Tuple[str, ...]:
        """Return a colour tuple for a preset name, comma string or sequence."""
        if isinstance(palette, str):
            if palette in self.preset_palettes:
                return tuple(self.preset_palettes[palette])
            return tuple(c.strip() for c in palette.split(",") if c.strip())
        return tuple(palette)


@dataclass
class ExportSettings:
    """Parameters of the Drive export of the prediction raster."""

    description: str = "Global_Denudation_Rate_1km"
    folder: Optional[str] = None
    file_format: str = "GeoTIFF"
    max_pixels: float = 1e13
    scale: Optional[float] = None
    crs: Optional[str] = None


@dataclass
class VisParams:
    """Map-layer visualisation parameters."""

    min: float = 0
    max: float = 500
    palette: Tuple[str, ...] = ConfigManager.PRESET_PALETTES["denudation"]

    def to_ee(self) -> Dict[str, Any]:
        return {"min": self.min, "max": self.max, "palette": list(self.palette)}


@dataclass
class PipelineSettings:
    """Typed view of a :class:`ConfigManager`."""

    observations_asset: str = ConfigManager.OBSERVATIONS_ASSET
    asset_root: str = ConfigManager.ASSET_ROOT
    target: str = ConfigManager.TARGET
    predictors: Tuple[str, ...] = ConfigManager.PREDICTORS
    reference_band: str = ConfigManager.REFERENCE_BAND
    split_fraction: float = ConfigManager.SPLIT_FRACTION
    split_column: str = ConfigManager.SPLIT_COLUMN
    split_seed: Optional[int] = None
    rf: Dict[str, Any] = field(default_factory=lambda: dict(ConfigManager.RF_PARAMS))
    scale: int = ConfigManager.SCALE
    resample_method: str = ConfigManager.RESAMPLE_METHOD
    prediction_band: str = ConfigManager.PREDICTION_BAND
    export: ExportSettings = field(default_factory=ExportSettings)
    vis: VisParams = field(default_factory=VisParams)

    def __post_init__(self) -> None:
        self.predictors = tuple(self.predictors)
        if not 0 < self.split_fraction < 1:
            raise ConfigValidationError(
                f"split_fraction must be in (0, 1), got {self.split_fraction}"
            )
        if self.reference_band not in self.predictors:
            raise ConfigValidationError(
                f"reference band {self.reference_band!r} is not a predictor"
            )
        if self.target in self.predictors:
            raise ConfigValidationError(
                f"target {self.target!r} cannot also be a predictor"
            )
        if self.scale <= 0:
            raise ConfigValidationError(f"scale must be positive, got {self.scale}")

    @classmethod
    def from_config(cls, cfg: ConfigManager | None = None) -> "PipelineSettings":
        """Build settings from *cfg* (defaults when ``None``)."""
        cfg = cfg or ConfigManager()
        export_cfg = cfg.get("export", {}) or {}
        vis_cfg = cfg.get("vis", {}) or {}
        try:
            export = ExportSettings(
                description=export_cfg.get("description", ExportSettings.description),
                folder=export_cfg.get("folder"),
                file_format=export_cfg.get("file_format", ExportSettings.file_format),
                max_pixels=float(export_cfg.get("max_pixels", ExportSettings.max_pixels)),
                scale=export_cfg.get("scale"),
                crs=export_cfg.get("crs"),
            )
            vis = VisParams(
                min=float(vis_cfg.get("min", VisParams.min)),
                max=float(vis_cfg.get("max", VisParams.max)),
                palette=cfg.resolve_palette(vis_cfg.get("palette", "denudation")),
            )
            return cls(
                observations_asset=cfg.get("observations_asset"),
                asset_root=cfg.get("asset_root"),
                target=cfg.get("target"),
                predictors=tuple(cfg.get("predictors")),
                reference_band=cfg.get("reference_band"),
                split_fraction=float(cfg.get("split_fraction")),
                split_column=cfg.get("split_column"),
                split_seed=cfg.get("split_seed"),
                rf=dict(cfg.get("rf")),
                scale=int(cfg.get("scale")),
                resample_method=cfg.get("resample_method"),
                prediction_band=cfg.get("prediction_band"),
                export=export,
                vis=vis,
            )
        except (TypeError, ValueError) as e:
            raise ConfigValidationError(f"Invalid configuration value: {e}") from e
