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
Calibration and Analysis Result Types

Result containers for parameter calibration and for the post-hoc
oscillator analysis used to explain why fitted parameters differ from the
ones that generated the data.

Mathematical Background
-----------------------
Calibration problem:
    Given: data y_i at times t_i, model x(t; p)
    Find: p* = argmin_p (1/N) Σ (y_i - x(t_i; p))²
    Subject to: lb ≤ p ≤ ub

Damped harmonic oscillator (m ẍ + c ẋ + k x = F):
    ω₀ = √(k/m)                 natural frequency
    ζ  = c / (2√(k m))          damping ratio
    ω  = ω₀ √(1 - ζ²)           damped natural frequency

Only these combinations are observable from a free response, so
independent fits of (k, m, c) need not recover the generating values.
"""

from typing import Any, Dict, List

from typing_extensions import TypedDict

from .core import ParameterVector


class CalibrationState(TypedDict):
    """
    Optimizer state passed to calibration callbacks.

    Fields
    ------
    u : ParameterVector
        Current tunable parameter vector
    iteration : int
        Iteration counter (starts at 1)
    loss : float
        Loss at ``u``
    """

    u: ParameterVector
    iteration: int
    loss: float


class CalibrationResult(TypedDict, total=False):
    """
    Result from parameter calibration.

    Fields
    ------
    u : ParameterVector
        Optimal tunable parameter vector, ordered as ``tunables``
    tunables : List[str]
        Names of the tunable parameters
    parameters : Dict[Any, float]
        Full parameter mapping (symbol → value) after calibration
    loss : float
        Final loss value
    initial_loss : float
        Loss at the initial guess
    loss_history : List[float]
        Loss after each iteration
    success : bool
        Whether the optimizer reported convergence
    message : str
        Optimizer status message
    nit : int
        Number of iterations
    nfev : int
        Number of loss evaluations
    njev : int
        Number of gradient evaluations
    solver : str
        Optimizer name (e.g. 'scipy.L-BFGS-B')
    gradient : str
        Gradient strategy ('sensitivity' or 'finite-difference')
    optimization_time : float
        Wall-clock time in seconds

    Examples
    --------
    >>> result: CalibrationResult = calibrator.fit(guess)
    >>> print(f"Loss: {result['initial_loss']:.3e} → {result['loss']:.3e}")
    >>> fitted_problem = problem.remake(p=result["parameters"])
    """

    u: ParameterVector
    tunables: List[str]
    parameters: Dict[Any, float]
    loss: float
    initial_loss: float
    loss_history: List[float]
    success: bool
    message: str
    nit: int
    nfev: int
    njev: int
    solver: str
    gradient: str
    optimization_time: float


class OscillatorCharacteristics(TypedDict):
    """
    Physical invariants of a damped second-order system.

    Fields
    ------
    natural_frequency : float
        ω₀ = √(k/m) [rad/s]
    damping_ratio : float
        ζ = c / (2√(k m)) [-]
    damped_frequency : float
        ω = ω₀ √(1 - ζ²) [rad/s]; NaN when ζ ≥ 1 (no oscillation)
    decay_rate : float
        σ = ζ ω₀ = c / (2m) [1/s]
    static_deflection : float
        m g / k [m]; NaN when g is not part of the model
    """

    natural_frequency: float
    damping_ratio: float
    damped_frequency: float
    decay_rate: float
    static_deflection: float


class ParameterComparison(TypedDict):
    """
    Row of a reference-vs-fitted parameter comparison.

    Fields
    ------
    name : str
        Parameter name
    reference : float
        Reference value
    fitted : float
        Fitted value
    relative_error : float
        |fitted - reference| / |reference| (absolute error when reference is 0)
    match : bool
        Whether the values agree within tolerance
    """

    name: str
    reference: float
    fitted: float
    relative_error: float
    match: bool


__all__ = [
    "CalibrationState",
    "CalibrationResult",
    "OscillatorCharacteristics",
    "ParameterComparison",
]
