"""Application-wide constants for the Trim booking core."""

from __future__ import annotations

BRAND_NAME = "Trim"

MINUTES_PER_DAY = 24 * 60

# Text constraints
MAX_NOTES_LENGTH = 2000
