# Copyright (C) 2025 Gil Benezer
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU Affero General Public License for more details.
#
# You should have received a copy of the GNU Affero General Public License
# along with this program.  If not, see <https://www.gnu.org/licenses/>.

"""
Damped harmonic oscillator invariants.

For m ẍ + c ẋ + k x = F the free response depends on the parameters only
through

    ω₀ = √(k/m)               natural frequency
    ζ  = c / (2√(k m))        damping ratio
    ω  = ω₀ √(1 - ζ²)         damped natural frequency

so fits that disagree on (k, m, c) individually can still agree on these.
"""

from typing import Any, Mapping, Tuple

import numpy as np

from lumpsim.types.calibration import OscillatorCharacteristics


def _by_name(params: Mapping[Any, float]) -> dict:
    return {str(key): float(value) for key, value in params.items()}


def _require(values: dict, *names: str) -> Tuple[float, ...]:
    missing = [n for n in names if n not in values]
    if missing:
        raise ValueError(
            f"Missing oscillator parameters {missing}; got {sorted(values)}"
        )
    return tuple(values[n] for n in names)


def harmonic_oscillator_parameters(params: Mapping[Any, float]) -> Tuple[float, float, float]:
    """
    Damped frequency, natural frequency and damping ratio.

    The damped frequency is ``w0 * sqrt(1 - zeta**2)``. The shortcut
    ``sqrt(w0**2 - zeta**2)`` subtracts a dimensionless ratio from a squared
    frequency and is deliberately not used; it overestimates ``w`` (9.999
    instead of 9.887 rad/s for m=10, k=1000, c=30).

    Parameters
    ----------
    params : mapping
        Parameter values keyed by symbol or name; needs ``m``, ``k``, ``c``

    Returns
    -------
    (w, w0, zeta) : tuple of float
        ``w`` is NaN when ζ ≥ 1 (no oscillation)

    Raises
    ------
    ValueError
        If a parameter is missing or m, k are not positive

    Examples
    --------
    >>> w, w0, zeta = harmonic_oscillator_parameters({"m": 10, "k": 1000, "c": 30})
    >>> round(w0, 3), round(zeta, 4)
    (10.0, 0.15)
    """
    m, k, c = _require(_by_name(params), "m", "k", "c")
    if m <= 0 or k <= 0:
        raise ValueError(f"Mass and stiffness must be positive, got m={m}, k={k}")

    w0 = np.sqrt(k / m)
    zeta = c / (2.0 * np.sqrt(k * m))
    w = w0 * np.sqrt(1.0 - zeta**2) if zeta < 1.0 else np.nan
    return float(w), float(w0), float(zeta)


def oscillator_characteristics(params: Mapping[Any, float]) -> OscillatorCharacteristics:
    """
    Oscillator invariants plus decay rate and static deflection.

    ``static_deflection`` (m·g/k) is NaN when ``g`` is not given.

    Examples
    --------
    >>> oscillator_characteristics(param_names_values(problem))["decay_rate"]
    1.5
    """
    values = _by_name(params)
    w, w0, zeta = harmonic_oscillator_parameters(values)
    m, k, c = _require(values, "m", "k", "c")

    static = m * values["g"] / k if "g" in values else np.nan

    return {
        "natural_frequency": w0,
        "damping_ratio": zeta,
        "damped_frequency": w,
        "decay_rate": float(c / (2.0 * m)),
        "static_deflection": float(static),
    }
