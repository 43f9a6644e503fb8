"""TLE parsing and orbital element extraction.

Decodes standard NORAD Two-Line Element sets column by column, verifies
both line checksums, and computes the time-independent quantities needed
for Keplerian propagation: mean motion in rad/s, orbital period and the
semi-major/semi-minor axes.

A record either decodes completely into an immutable
:class:`OrbitalElementSet` or raises a :class:`~tletrack.errors.FormatError`;
nothing is ever half-built.

References:
    - Kelso, T.S. "CelesTrak TLE Format Documentation"
      https://celestrak.org/columns/v04n03/
    - Vallado, D. (2013). Fundamentals of Astrodynamics and Applications.
"""

from __future__ import annotations

import calendar
import logging
import math
import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum, auto
from typing import Callable, Optional, TypeVar

from .constants import (
    GM_OVER_4PI2,
    SIDEREAL_DAY_SECONDS,
    SOLAR_DAY,
    TWO_PI,
    YEAR_PIVOT,
)
from .errors import (
    ChecksumMismatch,
    InvalidField,
    WrongLineCount,
    WrongLineLength,
)

logger = logging.getLogger(__name__)

LINE_LENGTH = 69
"""Characters in a TLE data line, checksum included."""

NAME_LENGTH = 24
"""Characters of line 0 kept as the satellite name."""

DIGITS = "0123456789"
"""ASCII digits; the only characters with a checksum value besides ``-``."""

_INTEGER = re.compile(r"[0-9]+")
_DECIMAL = re.compile(r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)")

T = TypeVar("T")


class Classification(str, Enum):
    """Security classification from line 1, column 8."""

    UNCLASSIFIED = "U"
    CLASSIFIED = "C"
    SECRET = "S"


class OrbitDirection(Enum):
    """Direction of travel implied by the inclination."""

    PROGRADE = auto()
    RETROGRADE = auto()
    POLAR = auto()


@dataclass(frozen=True, slots=True)
class InternationalDesignator:
    """COSPAR launch identifier (e.g. ``98067A``).

    Attributes:
        launch_year: Full 4-digit launch year.
        launch_number: Launch number within the year.
        launch_piece: Piece of the launch ("A" is the primary payload).
    """

    launch_year: int
    launch_number: int
    launch_piece: str

    def __str__(self) -> str:
        return f"{self.launch_year % 100:02d}{self.launch_number:03d}{self.launch_piece}"


@dataclass(frozen=True, slots=True)
class OrbitalElementSet:
    """A decoded Two-Line Element set with derived orbital quantities.

    Attributes:
        name: Spacecraft name from line 0 (if present).
        catalog_number: NORAD catalog number.
        classification: Security classification.
        intl_designator: International designator, or None when blank.
        epoch_year: Full 4-digit epoch year.
        epoch_day: Fractional day of year at epoch (1.0 = Jan 1 00:00 UTC).
        epoch: Epoch as a timezone-aware UTC datetime.
        element_number: Element set number.
        mean_motion_dot: First derivative of mean motion / 2 (rev/day²).
        mean_motion_ddot: Second derivative of mean motion / 6 (rev/day³).
        bstar: B* drag term (1/Earth radii).
        inclination: Orbital inclination (degrees).
        raan: Right ascension of ascending node (degrees).
        eccentricity: Orbital eccentricity (dimensionless).
        arg_perigee: Argument of perigee (degrees).
        mean_anomaly: Mean anomaly at epoch (degrees).
        mean_motion: Mean motion (revolutions per day).
        rev_number: Revolution number at epoch.
        line1: Verbatim TLE line 1.
        line2: Verbatim TLE line 2.
        mean_motion_rad: Derived mean motion (rad/s).
        period: Derived orbital period (seconds).
        semi_major_axis: Derived semi-major axis (km).
        semi_minor_axis: Derived semi-minor axis (km).
    """

    # Identity
    name: Optional[str]
    catalog_number: int
    classification: Classification
    intl_designator: Optional[InternationalDesignator]

    # Epoch
    epoch_year: int
    epoch_day: float
    epoch: datetime
    element_number: int

    # Drag model (stored only)
    mean_motion_dot: float
    mean_motion_ddot: float
    bstar: float

    # Line 2 fields
    inclination: float
    raan: float
    eccentricity: float
    arg_perigee: float
    mean_anomaly: float
    mean_motion: float
    rev_number: int

    line1: str = field(default="", repr=False)
    line2: str = field(default="", repr=False)

    # Derived (computed in __post_init__)
    mean_motion_rad: float = field(init=False)
    period: float = field(init=False)
    semi_major_axis: float = field(init=False)
    semi_minor_axis: float = field(init=False)

    def __post_init__(self) -> None:
        """Compute derived orbital quantities from TLE fields."""
        # Period scales mean motion by the sidereal day; the axes depend on it.
        period = self.mean_motion * SIDEREAL_DAY_SECONDS
        semi_major_axis = (GM_OVER_4PI2 * period**2) ** (1.0 / 3.0)

        object.__setattr__(self, "mean_motion_rad", self.mean_motion * TWO_PI / SOLAR_DAY)
        object.__setattr__(self, "period", period)
        object.__setattr__(self, "semi_major_axis", semi_major_axis)
        object.__setattr__(
            self,
            "semi_minor_axis",
            semi_major_axis * math.sqrt(1.0 - self.eccentricity**2),
        )

    @staticmethod
    def parse(
        line1: str,
        line2: str,
        name: Optional[str] = None,
    ) -> OrbitalElementSet:
        """Parse an element set from line 1 and line 2 strings.

        Args:
            line1: TLE line 1 (69 characters, starts with '1').
            line2: TLE line 2 (69 characters, starts with '2').
            name: Optional spacecraft name (from line 0).

        Returns:
            Parsed element set with derived orbital quantities.

        Raises:
            WrongLineLength: If a line is not 69 characters long.
            ChecksumMismatch: If a line fails its modulo-10 checksum.
            InvalidField: If any field fails to parse or is out of range.
        """
        l1 = line1.rstrip()
        l2 = line2.rstrip()

        for index, line in ((1, l1), (2, l2)):
            if len(line) != LINE_LENGTH:
                raise WrongLineLength(index, len(line))
            verify_checksum(line, index)
            if line[0] != str(index):
                raise InvalidField("line_number", line[0])

        # ── Line 1 ──
        catalog_number = _field(l1, 2, 7, "catalog_number", _parse_int)
        classification = _field(l1, 7, 8, "classification", Classification)
        intl_designator = _parse_designator(l1[9:17])

        epoch_year = _field(l1, 18, 20, "epoch_year", _parse_year)
        epoch_day = _field(l1, 20, 32, "epoch_day", _parse_decimal)
        days_in_year = 366 if calendar.isleap(epoch_year) else 365
        _check_range("epoch_day", epoch_day, 1.0, days_in_year + 1.0)

        mean_motion_dot = _field(l1, 33, 43, "mean_motion_dot", _parse_decimal)
        mean_motion_ddot = _field(l1, 44, 52, "mean_motion_ddot", _parse_implied_decimal)
        bstar = _field(l1, 53, 61, "bstar", _parse_implied_decimal)
        element_number = _field(l1, 64, 68, "element_number", _parse_counter)

        # ── Line 2 ──
        catalog_number_2 = _field(l2, 2, 7, "catalog_number", _parse_int)
        if catalog_number != catalog_number_2:
            raise InvalidField("catalog_number", f"{catalog_number} vs {catalog_number_2}")

        inclination = _field(l2, 8, 16, "inclination", _parse_decimal)
        _check_range("inclination", inclination, 0.0, 180.0, inclusive=True)
        raan = _field(l2, 17, 25, "raan", _parse_decimal)
        _check_range("raan", raan, 0.0, 360.0)
        eccentricity = _field(l2, 26, 33, "eccentricity", _parse_eccentricity)
        arg_perigee = _field(l2, 34, 42, "arg_perigee", _parse_decimal)
        _check_range("arg_perigee", arg_perigee, 0.0, 360.0)
        mean_anomaly = _field(l2, 43, 51, "mean_anomaly", _parse_decimal)
        _check_range("mean_anomaly", mean_anomaly, 0.0, 360.0)
        mean_motion = _field(l2, 52, 63, "mean_motion", _parse_decimal)
        if not mean_motion > 0.0 or not math.isfinite(mean_motion):
            raise InvalidField("mean_motion", l2[52:63])
        rev_number = _field(l2, 63, 68, "rev_number", _parse_counter)

        elements = OrbitalElementSet(
            name=_parse_name(name),
            catalog_number=catalog_number,
            classification=classification,
            intl_designator=intl_designator,
            epoch_year=epoch_year,
            epoch_day=epoch_day,
            epoch=_epoch_to_datetime(epoch_year, epoch_day),
            element_number=element_number,
            mean_motion_dot=mean_motion_dot,
            mean_motion_ddot=mean_motion_ddot,
            bstar=bstar,
            inclination=inclination,
            raan=raan,
            eccentricity=eccentricity,
            arg_perigee=arg_perigee,
            mean_anomaly=mean_anomaly,
            mean_motion=mean_motion,
            rev_number=rev_number,
            line1=l1,
            line2=l2,
        )
        logger.debug(
            "Parsed element set %d (epoch %s)",
            elements.catalog_number,
            elements.epoch.isoformat(),
        )
        return elements

    # ── Orbit classification ──

    def is_retrograde(self) -> bool:
        """Inclination greater than 90 degrees."""
        return self.inclination > 90.0

    def is_prograde(self) -> bool:
        """Inclination less than 90 degrees."""
        return self.inclination < 90.0

    def is_polar(self) -> bool:
        """Inclination exactly 90 degrees."""
        return self.inclination == 90.0

    @property
    def orbit_direction(self) -> OrbitDirection:
        if self.is_retrograde():
            return OrbitDirection.RETROGRADE
        if self.is_prograde():
            return OrbitDirection.PROGRADE
        return OrbitDirection.POLAR

    def to_dict(self) -> dict:
        """Convert to a flat dictionary suitable for DataFrame construction.

        Returns:
            Dictionary with all decoded fields and derived quantities.
        """
        return {
            "catalog_number": self.catalog_number,
            "name": self.name,
            "classification": self.classification.value,
            "intl_designator": str(self.intl_designator) if self.intl_designator else None,
            "epoch": self.epoch,
            "epoch_year": self.epoch_year,
            "epoch_day": self.epoch_day,
            "element_number": self.element_number,
            "inclination_deg": self.inclination,
            "raan_deg": self.raan,
            "eccentricity": self.eccentricity,
            "arg_perigee_deg": self.arg_perigee,
            "mean_anomaly_deg": self.mean_anomaly,
            "mean_motion_rev_day": self.mean_motion,
            "mean_motion_dot": self.mean_motion_dot,
            "mean_motion_ddot": self.mean_motion_ddot,
            "bstar": self.bstar,
            "rev_number": self.rev_number,
            "mean_motion_rad_s": self.mean_motion_rad,
            "period_s": self.period,
            "sma_km": self.semi_major_axis,
            "smi_km": self.semi_minor_axis,
            "orbit_direction": self.orbit_direction.name,
        }

    def __str__(self) -> str:
        header = f"{self.name}\n" if self.name else ""
        return f"{header}{self.line1}\n{self.line2}"


def parse(text: str) -> OrbitalElementSet:
    """Parse a single 2-line or 3-line TLE record.

    A 3-line record carries the satellite name on its first line; only the
    first 24 characters of it are kept.

    Args:
        text: The raw record. Trailing newlines are ignored.

    Returns:
        The decoded element set.

    Raises:
        WrongLineCount: If the record has fewer than 2 or more than 3 lines.
        FormatError: If either data line fails validation.
    """
    lines = [line.rstrip("\r") for line in text.rstrip("\r\n").split("\n")]

    if len(lines) == 2:
        return OrbitalElementSet.parse(lines[0], lines[1])
    if len(lines) == 3:
        return OrbitalElementSet.parse(lines[1], lines[2], name=lines[0])
    raise WrongLineCount(len(lines))


def compute_checksum(line: str) -> int:
    """Modulo-10 checksum over the first 68 characters of a TLE line.

    Digits count for their value, ``-`` counts as 1 and every other
    character counts as 0.
    """
    total = 0
    for ch in line[: LINE_LENGTH - 1]:
        if ch in DIGITS:
            total += int(ch)
        elif ch == "-":
            total += 1
    return total % 10


def verify_checksum(line: str, line_index: int) -> None:
    """Verify a TLE line's modulo-10 checksum.

    Args:
        line: Full 69-character TLE line.
        line_index: Line number (1 or 2) reported on failure.

    Raises:
        ChecksumMismatch: If column 69 is not a digit or does not match.
    """
    expected = line[LINE_LENGTH - 1 : LINE_LENGTH]
    computed = compute_checksum(line)
    if not _INTEGER.fullmatch(expected) or int(expected) != computed:
        raise ChecksumMismatch(line_index, expected, computed)


# ── Private helpers ──


def _field(
    line: str,
    start: int,
    stop: int,
    name: str,
    convert: Callable[[str], T],
) -> T:
    """Slice ``line[start:stop]`` and convert it, naming the field on failure."""
    raw = line[start:stop]
    try:
        return convert(raw.strip())
    except ValueError:
        raise InvalidField(name, raw) from None


def _check_range(
    name: str,
    value: float,
    low: float,
    high: float,
    inclusive: bool = False,
) -> None:
    ok = low <= value <= high if inclusive else low <= value < high
    if not ok:
        raise InvalidField(name, str(value))


def _resolve_year(two_digit: int) -> int:
    """Map a two-digit year onto 1957–2056."""
    return 1900 + two_digit if two_digit >= YEAR_PIVOT else 2000 + two_digit


def _parse_year(s: str) -> int:
    if len(s) != 2 or not _INTEGER.fullmatch(s):
        raise ValueError(s)
    return _resolve_year(int(s))


def _parse_int(s: str) -> int:
    """Parse an unsigned ASCII integer."""
    if not _INTEGER.fullmatch(s):
        raise ValueError(s)
    return int(s)


def _parse_decimal(s: str) -> float:
    """Parse a plain decimal column such as ``51.6416`` or ``-.00002182``.

    Rejects everything ``float()`` would otherwise accept beyond TLE
    notation: ``nan``, ``inf``, exponents and ``_`` separators.
    """
    if not _DECIMAL.fullmatch(s):
        raise ValueError(s)
    return float(s)


def _parse_counter(s: str) -> int:
    """Parse an optional integer counter; blank means 0."""
    return _parse_int(s) if s else 0


def _parse_eccentricity(s: str) -> float:
    """Eccentricity is stored as 7 digits with an implied leading ``0.``."""
    if not _INTEGER.fullmatch(s):
        raise ValueError(s)
    return float(f"0.{s}")


def _parse_implied_decimal(s: str) -> float:
    """Parse TLE implied-decimal notation into a float.

    The TLE format encodes some fields as ``NNNNN±N`` where the mantissa
    has an implied leading ``0.`` and the final ``±N`` is a base-10
    exponent. For example, ``16538-4`` becomes ``0.16538e-4``.

    Args:
        s: Raw field string from a TLE line.

    Returns:
        Parsed floating-point value.

    Raises:
        ValueError: If the mantissa or exponent is not numeric.
    """
    s = s.strip()
    if not s:
        return 0.0

    sign = ""
    if s[0] in "+-":
        sign = "-" if s[0] == "-" else ""
        s = s[1:].lstrip()

    if len(s) >= 2 and s[-2] in "+-":
        digits, exponent = s[:-2].strip(), s[-2:]
    else:
        digits, exponent = s, "+0"

    if not _INTEGER.fullmatch(digits) or exponent[1] not in DIGITS:
        raise ValueError(s)
    return float(f"{sign}0.{digits}e{exponent}")


def _parse_designator(raw: str) -> Optional[InternationalDesignator]:
    """Decode columns 10–17 of line 1; blank columns mean no designator."""
    if not raw.strip():
        return None
    try:
        return InternationalDesignator(
            launch_year=_parse_year(raw[0:2]),
            launch_number=_parse_int(raw[2:5]),
            launch_piece=raw[5:8].strip(),
        )
    except ValueError:
        raise InvalidField("intl_designator", raw) from None


def _parse_name(name: Optional[str]) -> Optional[str]:
    if name is None:
        return None
    return name[:NAME_LENGTH].strip() or None


def _epoch_to_datetime(year: int, day_of_year: float) -> datetime:
    """Convert a TLE epoch (year + fractional day-of-year) to a datetime.

    Args:
        year: Full 4-digit year.
        day_of_year: Fractional day of year (1.0 = midnight Jan 1).

    Returns:
        Corresponding timezone-aware UTC datetime.
    """
    jan1 = datetime(year, 1, 1, tzinfo=timezone.utc)
    return jan1 + timedelta(days=day_of_year - 1.0)
