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
Integrator Base - Abstract Interface for Numerical Integration

Provides a unified interface for fixed-step and adaptive integrators that
solve an ODE problem over its time span.

A "problem" here is anything exposing:
- ``f(t, x)``: right-hand side with parameters bound
- ``u0``: initial state (nx,)
- ``tspan``: (t0, tf)

which covers ODEProblem and the augmented forward-sensitivity problem used
during calibration.
"""

import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Dict, Optional

import numpy as np

from lumpsim.types.core import ScalarLike, StateVector
from lumpsim.types.trajectories import IntegrationResult, SaveAt, TimePoints, TimeSpan

logger = logging.getLogger(__name__)


class IntegrationError(RuntimeError):
    """Raised when a requested integration does not complete"""
    pass


class StepMode(Enum):
    """
    Integration step mode.

    Attributes
    ----------
    FIXED : str
        Fixed time step - integrator uses constant dt
    ADAPTIVE : str
        Adaptive time step - integrator adjusts dt based on error estimates
    """

    FIXED = "fixed"
    ADAPTIVE = "adaptive"


def resolve_saveat(tspan: TimeSpan, saveat: SaveAt = None) -> Optional[TimePoints]:
    """
    Turn a a ``saveat`` argument into explicit time points.

    Parameters
    ----------
    tspan : (t0, tf)
        Integration interval
    saveat : float, array-like or None
        - None: let the integrator choose
        - float: step; points t0, t0 + step, ... up to tf (tf included when
          it falls on the grid)
        - array-like: explicit, increasing time points within tspan

    Returns
    -------
    Optional[np.ndarray]
        Time points, or None

    Raises
    ------
    ValueError
        If the step is not positive or explicit points fall outside tspan

    Examples
    --------
    >>> resolve_saveat((0.0, 1.0), 0.25)
    array([0.  , 0.25, 0.5 , 0.75, 1.  ])
    """
    if saveat is None:
        return None

    t0, tf = float(tspan[0]), float(tspan[1])

    if np.ndim(saveat) == 0:
        step = float(saveat)
        if not step > 0:
            raise ValueError(f"saveat step must be positive, got {step}")
        n = int(np.floor((tf - t0) / step + 1e-9))
        # Accumulated rounding must not push the last point past tf
        return np.minimum(t0 + step * np.arange(n + 1), tf)

    points = np.asarray(saveat, dtype=float).reshape(-1)
    if points.size == 0:
        raise ValueError("saveat must contain at least one time point")
    if np.any(np.diff(points) <= 0):
        raise ValueError("saveat time points must be strictly increasing")
    span = tf - t0
    if points[0] < t0 - 1e-12 * span or points[-1] > tf + 1e-12 * span:
        raise ValueError(
            f"saveat time points must lie within tspan ({t0}, {tf}), "
            f"got [{points[0]}, {points[-1]}]"
        )
    return np.clip(points, t0, tf)


class IntegratorBase(ABC):
    """
    Abstract base class for numerical integrators.

    All integrators must implement:
    - step(): Single integration step
    - integrate(): Integration over the problem's time span
    - name: Integrator name for display

    Result Types
    ------------
    All integrators return IntegrationResult TypedDict with:
    - t: Time points (T,)
    - x: State trajectory (T, nx)
    - success, message, nfev, nsteps, integration_time, solver

    Examples
    --------
    >>> integrator = RK4Integrator(dt=0.001)
    >>> result = integrator.integrate(problem, saveat=0.02)
    >>> t, x_traj = result["t"], result["x"]
    >>> print(f"Steps: {result['nsteps']}, Function evals: {result['nfev']}")
    """

    def __init__(
        self,
        dt: Optional[ScalarLike] = None,
        step_mode: StepMode = StepMode.FIXED,
        **options,
    ):
        """
        Initialize integrator.

        Parameters
        ----------
        dt : Optional[float]
            Time step:
            - FIXED mode: Required, constant step size
            - ADAPTIVE mode: Initial guess, will be adjusted
        step_mode : StepMode
            FIXED or ADAPTIVE stepping
        **options : dict
            - rtol : float
                Relative tolerance (adaptive only, default: 1e-6)
            - atol : float
                Absolute tolerance (adaptive only, default: 1e-8)
            - max_steps : int
                Maximum number of steps (fixed only, default: 1000000)

        Raises
        ------
        ValueError
            If FIXED mode specified without a positive dt
        """
        self.dt = dt
        self.step_mode = step_mode
        self.options = options

        if step_mode == StepMode.FIXED and (dt is None or dt <= 0):
            raise ValueError(
                "A positive time step dt is required for FIXED step mode. "
                "Specify dt in constructor."
            )

        if step_mode == StepMode.ADAPTIVE and dt is None:
            self.dt = 0.01

        self.rtol = options.get("rtol", 1e-6)
        self.atol = options.get("atol", 1e-8)
        self.max_steps = options.get("max_steps", 1_000_000)

        self._stats = {
            "total_steps": 0,
            "total_fev": 0,
            "total_time": 0.0,
        }

    @abstractmethod
    def step(self, problem, t: ScalarLike, x: StateVector, dt: Optional[ScalarLike] = None) -> StateVector:
        """
        Take one integration step: x(t) → x(t + dt).

        Parameters
        ----------
        problem
            Object with ``f(t, x)``
        t : float
            Current time
        x : np.ndarray
            Current state (nx,)
        dt : Optional[float]
            Step size (uses self.dt if None)
        """
        pass

    @abstractmethod
    def integrate(self, problem, saveat: SaveAt = None, dense_output: bool = False) -> IntegrationResult:
        """
        Integrate the problem over ``problem.tspan`` from ``problem.u0``.

        Parameters
        ----------
        problem
            Object with ``f(t, x)``, ``u0`` and ``tspan``
        saveat : float, array-like or None
            Save step or explicit time points (see ``resolve_saveat``)
        dense_output : bool
            If True, include a continuous interpolant in ``result["sol"]``

        Returns
        -------
        IntegrationResult
            TypedDict with t (T,), x (T, nx), success, message, nfev,
            nsteps, integration_time, solver and optional fields
        """
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        """
        Integrator name for display and logging.

        Examples
        --------
        >>> RK4Integrator(dt=0.01).name
        'RK4 (Classic)'
        """
        pass

    # ========================================================================
    # Common Utilities
    # ========================================================================

    def _evaluate_dynamics(self, problem, t: ScalarLike, x: StateVector) -> StateVector:
        """Evaluate ``problem.f`` and count the function evaluation."""
        self._stats["total_fev"] += 1
        return problem.f(t, x)

    def get_stats(self) -> Dict[str, Any]:
        """
        Integration statistics accumulated since the last reset.

        Returns
        -------
        dict
            'total_steps', 'total_fev', 'total_time', 'avg_fev_per_step'
        """
        avg_fev = self._stats["total_fev"] / max(1, self._stats["total_steps"])
        return {
            **self._stats,
            "avg_fev_per_step": avg_fev,
        }

    def reset_stats(self):
        """Reset integration statistics to zero."""
        self._stats["total_steps"] = 0
        self._stats["total_fev"] = 0
        self._stats["total_time"] = 0.0

    def __repr__(self) -> str:
        """String representation for debugging"""
        return f"{self.__class__.__name__}(dt={self.dt}, mode={self.step_mode.value})"

    def __str__(self) -> str:
        """Human-readable string"""
        return f"{self.name} (dt={self.dt:.4f})"
