"""Keplerian state propagation and geodetic sub-point computation.

Propagates a decoded element set to an arbitrary instant with an
unperturbed two-body model:

    1. Advance the mean anomaly with the mean motion.
    2. Solve Kepler's equation for the eccentric anomaly (Newton–Raphson).
    3. Place the satellite in the orbital plane.
    4. Rotate into celestial (geocentric-equatorial) coordinates with the
       3-1-3 Euler sequence (argument of perigee, inclination, RAAN).
    5. Remove Earth's rotation using the Greenwich hour angle of Aries.
    6. Read off the sub-satellite latitude/longitude.

Drag terms, J2 and every other perturbation are ignored. The evaluation
instant is always an explicit argument; nothing here reads the clock.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import numpy as np
import pandas as pd

from .constants import (
    EARTH_ROTATION_RATE,
    GHAA_REFERENCE_DEG,
    GHAA_REFERENCE_EPOCH,
    TWO_PI,
)
from .errors import DomainError, NonConvergent
from .tle_parser import OrbitalElementSet

logger = logging.getLogger(__name__)

# Rounding slack tolerated on |z / r| before asin is declared undefined.
_ASIN_SLACK = 1e-12


# Configuration
@dataclass
class PropagatorSettings:
    """Kepler solver controls.

    Attributes:
        tolerance: Stop once the Newton step is no larger than this (rad).
        max_iterations: Iteration cap before giving up with NonConvergent.
    """
    tolerance: float = 1e-4
    max_iterations: int = 100

    @classmethod
    def strict(cls) -> PropagatorSettings:
        """Solve to machine precision instead of the 1e-4 rad default."""
        return cls(tolerance=1e-12, max_iterations=50)


# Propagation result
@dataclass(frozen=True)
class PropagationResult:
    """Orbital state of one element set at one instant.

    Attributes:
        at: Evaluation instant (UTC).
        elapsed_seconds: Seconds since the element set epoch (negative
            before epoch).
        mean_anomaly: Mean anomaly at ``at``, reduced to [0, 2π) (rad).
        eccentric_anomaly: Solved eccentric anomaly (rad).
        iterations: Newton–Raphson iterations used.
        radius: Orbital radius (km).
        orbital_plane: Perifocal position ``(x_p, y_p)`` (km).
        celestial: Geocentric-equatorial position ``(X, Y, Z)`` (km).
        greenwich_hour_angle: Greenwich hour angle of Aries (rad).
        geocentric: Earth-fixed position ``(X, Y, Z)`` (km).
        latitude: Sub-satellite latitude (degrees).
        longitude: Sub-satellite longitude (degrees, east positive).
    """
    at: datetime
    elapsed_seconds: float
    mean_anomaly: float
    eccentric_anomaly: float
    iterations: int
    radius: float
    orbital_plane: tuple[float, float]
    celestial: tuple[float, float, float]
    greenwich_hour_angle: float
    geocentric: tuple[float, float, float]
    latitude: float
    longitude: float

    def to_dict(self) -> dict:
        """Serialize to a flat dictionary for DataFrame construction."""
        x_p, y_p = self.orbital_plane
        x_cel, y_cel, z_cel = self.celestial
        x_geo, y_geo, z_geo = self.geocentric
        return {
            "at": self.at,
            "elapsed_s": self.elapsed_seconds,
            "mean_anomaly_rad": self.mean_anomaly,
            "eccentric_anomaly_rad": self.eccentric_anomaly,
            "iterations": self.iterations,
            "radius_km": self.radius,
            "x_p_km": x_p,
            "y_p_km": y_p,
            "x_cel_km": x_cel,
            "y_cel_km": y_cel,
            "z_cel_km": z_cel,
            "ghaa_rad": self.greenwich_hour_angle,
            "x_geo_km": x_geo,
            "y_geo_km": y_geo,
            "z_geo_km": z_geo,
            "latitude_deg": self.latitude,
            "longitude_deg": self.longitude,
        }

    def summary(self) -> str:
        """Return a one-line human-readable summary of the state."""
        ns = "N" if self.latitude >= 0 else "S"
        ew = "E" if self.longitude >= 0 else "W"
        return (
            f"[{self.at:%Y-%m-%d %H:%M:%S}] "
            f"{abs(self.latitude):.3f}°{ns} {abs(self.longitude):.3f}°{ew} "
            f"(r={self.radius:.1f} km, E={self.eccentric_anomaly:.4f} rad)"
        )


# Propagation engine
class Propagator:
    """Keplerian propagator bound to a set of solver settings.

    Args:
        settings: Kepler solver controls. Defaults to a 1e-4 rad tolerance
            and a 100-iteration cap.

    Example:
        >>> propagator = Propagator(PropagatorSettings.strict())
        >>> track = propagator.ground_track(elements, start, end)
        >>> track[["at", "latitude_deg", "longitude_deg"]].head()
    """
    def __init__(self, settings: Optional[PropagatorSettings] = None) -> None:
        self.settings = settings or PropagatorSettings()

    def propagate(self, elements: OrbitalElementSet, at: datetime) -> PropagationResult:
        """Compute the state of ``elements`` at ``at``. See :func:`propagate`."""
        return propagate(elements, at, self.settings)

    def ground_track(
        self,
        elements: OrbitalElementSet,
        start: datetime,
        end: datetime,
        step: timedelta = timedelta(minutes=1),
    ) -> pd.DataFrame:
        """Sample the sub-satellite point over a time window.

        Each sample is an independent :meth:`propagate` call; nothing is
        carried between instants.

        Args:
            elements: Element set to propagate.
            start: First instant (inclusive).
            end: Last instant (inclusive when it falls on a step).
            step: Spacing between samples.

        Returns:
            DataFrame with one row per instant, columns from
            :meth:`PropagationResult.to_dict`.

        Raises:
            ValueError: If ``step`` is not positive or ``end`` precedes ``start``.
        """
        if step <= timedelta(0):
            raise ValueError(f"step must be positive, got {step}")
        start, end = _as_utc(start), _as_utc(end)
        if end < start:
            raise ValueError(f"end ({end:%Y-%m-%d %H:%M}) precedes start ({start:%Y-%m-%d %H:%M})")

        instants = pd.date_range(start=start, end=end, freq=step)
        records = [
            self.propagate(elements, instant.to_pydatetime()).to_dict()
            for instant in instants
        ]
        logger.debug(
            "Ground track for %d: %d samples every %s",
            elements.catalog_number,
            len(records),
            step,
        )
        return pd.DataFrame(records)


def propagate(
    elements: OrbitalElementSet,
    at: datetime,
    settings: Optional[PropagatorSettings] = None,
) -> PropagationResult:
    """Propagate an element set to an instant with two-body Kepler motion.

    Args:
        elements: Decoded element set.
        at: Evaluation instant. Naive datetimes are taken to be UTC.
        settings: Kepler solver controls (defaults to PropagatorSettings()).

    Returns:
        The orbital state at ``at``.

    Raises:
        NonConvergent: If Kepler's equation does not converge.
        DomainError: If the latitude is undefined for the computed position.
    """
    settings = settings or PropagatorSettings()
    at = _as_utc(at)
    e = elements.eccentricity
    a = elements.semi_major_axis
    b = elements.semi_minor_axis

    elapsed = (at - elements.epoch).total_seconds()
    mean_anomaly = elements.mean_motion_rad * elapsed + math.radians(elements.mean_anomaly)
    mean_anomaly -= TWO_PI * math.floor(mean_anomaly / TWO_PI)

    ecc_anomaly, iterations = solve_kepler(
        mean_anomaly,
        e,
        tolerance=settings.tolerance,
        max_iterations=settings.max_iterations,
    )

    radius = a * (1.0 - e * math.cos(ecc_anomaly))
    x_p = a * (math.cos(ecc_anomaly) - e)
    y_p = b * math.sin(ecc_anomaly)

    celestial = perifocal_to_celestial(
        x_p,
        y_p,
        raan=math.radians(elements.raan),
        inclination=math.radians(elements.inclination),
        arg_perigee=math.radians(elements.arg_perigee),
    )
    ghaa = greenwich_hour_angle(at)
    geocentric = _rotation_z(-ghaa) @ celestial
    latitude, longitude = geodetic_subpoint(geocentric, radius)

    return PropagationResult(
        at=at,
        elapsed_seconds=elapsed,
        mean_anomaly=mean_anomaly,
        eccentric_anomaly=ecc_anomaly,
        iterations=iterations,
        radius=radius,
        orbital_plane=(x_p, y_p),
        celestial=_as_tuple(celestial),
        greenwich_hour_angle=ghaa,
        geocentric=_as_tuple(geocentric),
        latitude=latitude,
        longitude=longitude,
    )


def solve_kepler(
    mean_anomaly: float,
    eccentricity: float,
    tolerance: float = 1e-4,
    max_iterations: int = 100,
) -> tuple[float, int]:
    """Solve Kepler's equation ``E - e sin(E) = M`` for ``E``.

    Newton–Raphson starting from ``E = M``, stopping once the step
    ``f(E) / f'(E)`` is no larger than ``tolerance``.

    Args:
        mean_anomaly: Mean anomaly M (rad).
        eccentricity: Orbital eccentricity, 0 <= e < 1.
        tolerance: Step size that ends the iteration (rad).
        max_iterations: Maximum number of Newton steps.

    Returns:
        ``(E, iterations)`` — eccentric anomaly (rad) and steps taken.

    Raises:
        NonConvergent: If the step is still above ``tolerance`` after
            ``max_iterations`` steps.
    """
    ecc_anomaly = mean_anomaly
    step = math.inf
    for iteration in range(1, max_iterations + 1):
        f = ecc_anomaly - eccentricity * math.sin(ecc_anomaly) - mean_anomaly
        f_prime = 1.0 - eccentricity * math.cos(ecc_anomaly)
        step = f / f_prime
        ecc_anomaly -= step
        if abs(step) <= tolerance:
            logger.debug("Kepler solver converged in %d iterations", iteration)
            return ecc_anomaly, iteration

    raise NonConvergent(max_iterations, abs(step))


def greenwich_hour_angle(at: datetime) -> float:
    """Greenwich hour angle of Aries at ``at``, in [0, 2π) rad.

    Extrapolated linearly from the value tabulated at 1990-01-01 00:00 UTC
    using Earth's rotation rate relative to the vernal equinox.
    """
    elapsed = (_as_utc(at) - GHAA_REFERENCE_EPOCH).total_seconds()
    angle = math.radians(GHAA_REFERENCE_DEG) + EARTH_ROTATION_RATE * elapsed
    return angle % TWO_PI


def perifocal_to_celestial(
    x_p: float,
    y_p: float,
    raan: float,
    inclination: float,
    arg_perigee: float,
) -> np.ndarray:
    """Rotate an orbital-plane position into geocentric-equatorial axes.

    Angles are in radians. Applies the 3-1-3 sequence
    ``Rz(raan) · Rx(inclination) · Rz(arg_perigee)``.
    """
    rotation = _rotation_z(raan) @ _rotation_x(inclination) @ _rotation_z(arg_perigee)
    return rotation @ np.array([x_p, y_p, 0.0])


def geodetic_subpoint(position: np.ndarray, radius: float) -> tuple[float, float]:
    """Latitude and longitude (degrees) beneath an Earth-fixed position.

    Raises:
        DomainError: If ``|z / radius|`` exceeds 1.
    """
    x, y, z = (float(c) for c in position)
    ratio = z / radius
    if abs(ratio) > 1.0:
        if abs(ratio) - 1.0 > _ASIN_SLACK:
            raise DomainError(f"|z / r| = {abs(ratio):.6f} exceeds 1; latitude undefined")
        ratio = math.copysign(1.0, ratio)

    latitude = math.degrees(math.asin(ratio))
    longitude = math.degrees(math.atan2(y, x))
    return latitude, longitude


# Private helpers
def _rotation_z(angle: float) -> np.ndarray:
    c, s = math.cos(angle), math.sin(angle)
    return np.array([
        [c, -s, 0.0],
        [s, c, 0.0],
        [0.0, 0.0, 1.0],
    ])


def _rotation_x(angle: float) -> np.ndarray:
    c, s = math.cos(angle), math.sin(angle)
    return np.array([
        [1.0, 0.0, 0.0],
        [0.0, c, -s],
        [0.0, s, c],
    ])


def _as_tuple(vector: np.ndarray) -> tuple[float, float, float]:
    return float(vector[0]), float(vector[1]), float(vector[2])


def _as_utc(at: datetime) -> datetime:
    """Treat naive datetimes as UTC; convert aware ones to UTC."""
    if at.tzinfo is None:
        return at.replace(tzinfo=timezone.utc)
    return at.astimezone(timezone.utc)
