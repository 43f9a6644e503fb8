"""tletrack — Two-Line Element decoding and Keplerian sub-point tracking.

Decode NORAD Two-Line Element sets and locate the satellite at any instant
with a simple two-body propagation.

Modules:
    tle_parser:  Strict fixed-column TLE decoder and the orbital element set.
    propagator:  Kepler solver, frame rotations and geodetic sub-point.
    celestrak:   CelesTrak client for fetching a single element set.
    viz:         Ground-track and orbital-radius plots.
    cli:         Command-line interface.

Example:
    >>> from datetime import datetime, timezone
    >>> from tletrack.tle_parser import parse
    >>> from tletrack.propagator import propagate
    >>>
    >>> elements = parse(open("iss.tle").read())
    >>> result = propagate(elements, datetime(2024, 6, 1, tzinfo=timezone.utc))
    >>> print(result.summary())
"""

__version__ = "0.1.0"
