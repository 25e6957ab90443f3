"""Storage adapter abstractions."""

from __future__ import annotations

import json
import os
from abc import ABC, abstractmethod
from typing import Any


class StorageAdapter(ABC):
    """Abstract interface for persisting pipeline artefacts."""

    @abstractmethod
    def join(self, *parts: str) -> str:
        """Join path components into a destination URI."""

    @abstractmethod
    def write_bytes(self, uri: str, data: bytes) -> str:
        """Write bytes to the destination and return the URI."""

    @abstractmethod
    def read_bytes(self, uri: str) -> bytes:
        """Return bytes stored at *uri*."""

    def write_json(self, uri: str, payload: Any) -> str:
        """Serialise *payload* as indented JSON at *uri*."""
        data = json.dumps(payload, indent=2, sort_keys=True, default=str)
        return self.write_bytes(uri, data.encode("utf-8"))


class LocalFS(StorageAdapter):
    """Store files on the local filesystem."""

    def join(self, *parts: str) -> str:  # pragma: no cover - trivial
        return os.path.join(*parts)

    def write_bytes(self, uri: str, data: bytes) -> str:
        dirpath = os.path.dirname(uri) or "."
        os.makedirs(dirpath, exist_ok=True)
        with open(uri, "wb") as fh:
            fh.write(data)
        return uri

    def read_bytes(self, uri: str) -> bytes:
        with open(uri, "rb") as fh:
            return fh.read()
