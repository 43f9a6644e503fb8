"""Physical and reference constants used by the decoder and propagator."""

from __future__ import annotations

import math
from datetime import datetime, timezone

SOLAR_DAY = 86400.0
"""Seconds in a solar day."""

SIDEREAL_DAY_SECONDS = 86164.0984
"""One Earth rotation relative to the stars (s)."""

TROPICAL_YEAR_DAYS = 365.242197
"""Tropical year (solar days)."""

GM_OVER_4PI2 = 10096.66709265246
"""Earth gravitational parameter divided by 4π² (km³/s²)."""

TWO_PI = 2.0 * math.pi
"""2π constant."""

GHAA_REFERENCE_EPOCH = datetime(1990, 1, 1, tzinfo=timezone.utc)
"""Instant at which the Greenwich hour angle of Aries is tabulated."""

GHAA_REFERENCE_DEG = 99.4033
"""Greenwich hour angle of Aries at ``GHAA_REFERENCE_EPOCH`` (degrees)."""

EARTH_ROTATION_RATE = TWO_PI / SOLAR_DAY + TWO_PI / (TROPICAL_YEAR_DAYS * SOLAR_DAY)
"""Earth rotation rate relative to the vernal equinox (rad/s)."""

YEAR_PIVOT = 57
"""Two-digit years at or above this value belong to the 1900s."""
