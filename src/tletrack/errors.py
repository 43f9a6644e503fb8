"""Exception hierarchy for record decoding and propagation failures."""

from __future__ import annotations

from typing import Optional


class TletrackError(Exception):
    """Base class for every error raised by tletrack."""


# ── Decoding ──


class FormatError(TletrackError, ValueError):
    """The raw record is not a well-formed Two-Line Element set."""


class WrongLineCount(FormatError):
    """The record does not contain two or three lines."""

    def __init__(self, count: int) -> None:
        self.count = count
        super().__init__(f"Expected 2 or 3 lines, got {count}")


class WrongLineLength(FormatError):
    """A data line is not exactly 69 characters long."""

    def __init__(self, line_index: int, length: int) -> None:
        self.line_index = line_index
        self.length = length
        super().__init__(
            f"Line {line_index} must be 69 characters, got {length}"
        )


class ChecksumMismatch(FormatError):
    """A data line's modulo-10 checksum does not match its last column."""

    def __init__(
        self,
        line_index: int,
        expected: Optional[str] = None,
        computed: Optional[int] = None,
    ) -> None:
        self.line_index = line_index
        self.expected = expected
        self.computed = computed
        super().__init__(
            f"Checksum mismatch on line {line_index}: "
            f"expected {expected!r}, computed {computed}"
        )


class InvalidField(FormatError):
    """A fixed-column field could not be parsed or is out of range."""

    def __init__(self, field: str, raw: Optional[str] = None) -> None:
        self.field = field
        self.raw = raw
        detail = f" ({raw!r})" if raw is not None else ""
        super().__init__(f"Invalid field '{field}'{detail}")


# ── Propagation ──


class PropagationError(TletrackError, ArithmeticError):
    """The orbital state could not be computed."""


class NonConvergent(PropagationError):
    """Kepler's equation did not converge within the iteration cap."""

    def __init__(self, iterations: int, residual: float) -> None:
        self.iterations = iterations
        self.residual = residual
        super().__init__(
            f"Kepler solver did not converge after {iterations} iterations "
            f"(last step {residual:.3e} rad)"
        )


class DomainError(PropagationError):
    """The geodetic latitude is undefined for the computed position."""
