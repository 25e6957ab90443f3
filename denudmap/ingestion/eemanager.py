"""
Module `ingestion.eemanager` provides the EarthEngineManager class to
encapsulate Google Earth Engine initialization and retry-aware result retrieval.
"""

import os
import json
import time
from typing import Optional, Any

from google.oauth2.credentials import Credentials

import ee
from ee import EEException

from denudmap.core.logger import Logger


class EarthEngineManager:
    """
    Manages interaction with Google Earth Engine: initialization and retries.
    """

    def __init__(
        self,
        credential_path: Optional[str] = None,
        project: Optional[str] = None,
        logger=None,
    ):
        self.credential_path = credential_path
        # Allow non-interactive auth using a refresh token passed via env.
        self.token_env = os.getenv("EARTHENGINE_TOKEN")
        self.project = project or os.getenv("DENUDMAP_EE_PROJECT")
        self.logger = logger or Logger.get_logger(__name__)
        self._initialized = False

    def _token_credentials(self) -> Credentials | None:
        """Return OAuth credentials built from EARTHENGINE_TOKEN, if usable."""
        creds_data = None
        if os.path.exists(self.token_env):
            with open(self.token_env, "r", encoding="utf-8") as fh:
                creds_data = json.load(fh)
        else:
            try:
                creds_data = json.loads(self.token_env)
            except json.JSONDecodeError:
                self.logger.warning("EARTHENGINE_TOKEN is neither a file nor JSON")
        if not creds_data or "refresh_token" not in creds_data:
            return None
        return Credentials(
            None,
            refresh_token=creds_data.get("refresh_token"),
            token_uri=creds_data.get("token_uri", ee.oauth.TOKEN_URI),
            client_id=creds_data.get("client_id", ee.oauth.CLIENT_ID),
            client_secret=creds_data.get("client_secret", ee.oauth.CLIENT_SECRET),
            scopes=creds_data.get("scopes", ee.oauth.SCOPES),
            quota_project_id=creds_data.get("project"),
        )

    def initialize(self, force: bool = False) -> None:
        """
        Authenticate & initialize Earth Engine.
        If a service‑account JSON path is given, use it; otherwise try the
        EARTHENGINE_TOKEN refresh token, then the default credentials.
        """
        if self._initialized and not force:
            return
        project = self.project
        try:
            if self.credential_path:
                sa_credentials: Any = ee.ServiceAccountCredentials(
                    None, self.credential_path  # type: ignore[arg-type]
                )
                ee.Initialize(sa_credentials, project=project)
            elif self.token_env:
                token_credentials = self._token_credentials()
                if token_credentials is not None:
                    ee.Initialize(token_credentials, project=project)
                else:
                    ee.Initialize(project=project)
            else:
                ee.Initialize(project=project)
        except EEException:
            self.logger.info("Earth Engine not authenticated; starting auth flow")
            ee.Authenticate()
            ee.Initialize(project=project)
        self._initialized = True
        self.logger.debug("Earth Engine initialized (project=%s)", project)

    def safe_get_info(self, obj, max_retries: int = 3):
        """
        Wrapper for obj.getInfo() that:
          - retries transient errors
          - on PERMISSION_DENIED, forces a re-auth + re-init and retries once
          - raises after max_retries
        """
        for attempt in range(1, max_retries + 1):
            try:
                return obj.getInfo()
            except EEException as e:
                msg = str(e)
                if "PERMISSION_DENIED" in msg and attempt == 1 and max_retries > 1:
                    self.logger.error(
                        "Earth Engine permission denied. Re-authenticating..."
                    )
                    ee.Authenticate()
                    self.initialize(force=True)
                    continue
                if attempt < max_retries:
                    backoff = 2 ** (attempt - 1)
                    self.logger.warning(
                        "Transient EE error (attempt %d/%d): %s - retrying in %ds",
                        attempt,
                        max_retries,
                        msg,
                        backoff,
                    )
                    time.sleep(backoff)
                    continue
                self.logger.error(
                    "Failed to getInfo() after %d attempts: %s", attempt, msg
                )
                raise
        return None


# Convenience singleton
ee_manager = EarthEngineManager()
