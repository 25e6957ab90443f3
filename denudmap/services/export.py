"""Service for exporting the prediction raster out of Earth Engine."""

from __future__ import annotations

import logging
import time
from typing import Any, Dict

import ee
import requests

from denudmap.core.config import ExportSettings
from denudmap.core.errors import ExportError
from denudmap.core.storage import LocalFS, StorageAdapter
from denudmap.core.utils import sanitize_description
from denudmap.ingestion.eemanager import EarthEngineManager, ee_manager
from .base import BaseService


class ExportService(BaseService):
    """Start Drive exports, follow their tasks, and fetch small GeoTIFF clips."""

    TERMINAL_STATES = ("COMPLETED", "FAILED", "CANCELLED")

    def __init__(
        self,
        ee_manager_instance: EarthEngineManager = ee_manager,
        logger: logging.Logger | None = None,
        storage: StorageAdapter | None = None,
    ) -> None:
        super().__init__(logger)
        self.ee_manager = ee_manager_instance
        self.storage = storage or LocalFS()

    def build_params(
        self, image: ee.Image, settings: ExportSettings, region=None
    ) -> Dict[str, Any]:
        """Return keyword arguments for ``ee.batch.Export.image.toDrive``."""
        params: Dict[str, Any] = {
            "image": image,
            "description": sanitize_description(settings.description),
            "fileFormat": settings.file_format,
            "maxPixels": settings.max_pixels,
        }
        if settings.folder:
            params["folder"] = settings.folder
        if settings.scale is not None:
            params["scale"] = settings.scale
        if settings.crs:
            params["crs"] = settings.crs
        if region is not None:
            params["region"] = region
        return params

    def export_to_drive(
        self, image: ee.Image, settings: ExportSettings | None = None, region=None
    ):
        """Create and start a Drive export task; return the task."""
        settings = settings or ExportSettings()
        self.ee_manager.initialize()
        params = self.build_params(image, settings, region=region)
        task = ee.batch.Export.image.toDrive(**params)
        task.start()
        self.logger.info(
            "Started Drive export %s (%s, maxPixels=%g)",
            params["description"],
            settings.file_format,
            settings.max_pixels,
        )
        return task

    def wait(self, task, poll_interval: float = 30.0, timeout: float | None = None):
        """
        Poll *task* until it reaches a terminal state and return its status.

        Raises ExportError when the task fails, is cancelled, or *timeout*
        seconds elapse first.
        """
        start = time.monotonic()
        while True:
            status = task.status() or {}
            state = status.get("state", "UNKNOWN")
            if state in self.TERMINAL_STATES:
                break
            if timeout is not None and time.monotonic() - start > timeout:
                raise ExportError(
                    f"Export {status.get('description')} still {state} after {timeout}s"
                )
            self.logger.debug("Export task state %s; sleeping %ss", state, poll_interval)
            time.sleep(poll_interval)

        if state != "COMPLETED":
            raise ExportError(
                f"Export {status.get('description')} {state.lower()}: "
                f"{status.get('error_message', 'no error message')}"
            )
        self.logger.info("Export %s completed", status.get("description"))
        return status

    def download_region(
        self, image: ee.Image, region, output: str, scale: float = 1000
    ) -> str:
        """Download *image* over a small *region* as GeoTIFF to *output*."""
        self.ee_manager.initialize()
        url = image.getDownloadURL(
            {"scale": scale, "region": region, "format": "GEO_TIFF"}
        )
        resp = requests.get(url, timeout=120)
        resp.raise_for_status()
        self.storage.write_bytes(output, resp.content)
        self.logger.info("Wrote prediction clip to %s", output)
        return output
