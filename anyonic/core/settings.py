"""Module-level numeric settings.

Usage:
    from anyonic.core.settings import get_tolerance, set_tolerance

    tol = get_tolerance()      # default tolerance for consistency checks
    set_tolerance(1e-6)        # loosen every check that is not given one
"""

from __future__ import annotations

_DEFAULT_TOLERANCE = 1e-9
_DEFAULT_AMPLITUDE_CUTOFF = 1e-12

_tolerance: float = _DEFAULT_TOLERANCE
_amplitude_cutoff: float = _DEFAULT_AMPLITUDE_CUTOFF


def _positive(name: str, value: float) -> float:
    value = float(value)
    if not value > 0.0:
        raise ValueError(f"{name} must be positive, got {value!r}")
    return value


def get_tolerance() -> float:
    """Tolerance used by S/T, F/R and normalization checks."""
    return _tolerance


def set_tolerance(value: float) -> None:
    global _tolerance
    _tolerance = _positive("tolerance", value)


def get_amplitude_cutoff() -> float:
    """Magnitude below which superposition terms are pruned."""
    return _amplitude_cutoff


def set_amplitude_cutoff(value: float) -> None:
    global _amplitude_cutoff
    _amplitude_cutoff = _positive("amplitude cutoff", value)


def reset() -> None:
    """Restore every setting to its default."""
    global _tolerance, _amplitude_cutoff
    _tolerance = _DEFAULT_TOLERANCE
    _amplitude_cutoff = _DEFAULT_AMPLITUDE_CUTOFF


def resolve_tolerance(tolerance: float | None) -> float:
    """Return *tolerance* if given, else the module default."""
    if tolerance is None:
        return _tolerance
    return _positive("tolerance", tolerance)
