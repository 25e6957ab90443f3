"""Utility helpers for core modules."""

from __future__ import annotations

import re

# Earth Engine task descriptions accept this set and at most 100 characters
_TASK_DESCRIPTION_PATTERN = r"[^A-Za-z0-9.,:;_\-]"
MAX_DESCRIPTION_LENGTH = 100


def sanitize_description(description: str) -> str:
    """Return a valid Earth Engine task description for ``description``.

    Disallowed characters are replaced with an underscore and the result is
    truncated to 100 characters. If the sanitized value would be empty,
    ``"denudmap_export"`` is returned.
    """
    sanitized = re.sub(_TASK_DESCRIPTION_PATTERN, "_", description.strip())
    return sanitized[:MAX_DESCRIPTION_LENGTH] or "denudmap_export"
