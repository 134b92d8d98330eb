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
Scipy Integrator

Adaptive Integration using scipy.integrate.solve_ivp

Wraps scipy's ODE solvers with adaptive time stepping, error control and
automatic stiffness detection.

Supported Methods:
- RK45: Explicit Runge-Kutta 5(4) - general purpose
- RK23: Explicit Runge-Kutta 3(2) - low accuracy/fast
- DOP853: Explicit Runge-Kutta 8 - high accuracy
- Radau: Implicit Runge-Kutta (Radau IIA) - stiff systems
- BDF: Backward Differentiation Formula - very stiff systems
- LSODA: Automatic stiffness detection and switching
"""

import time
from typing import Optional

import numpy as np
from scipy.integrate import solve_ivp

from lumpsim.systems.base.numerical_integration.integrator_base import (
    IntegratorBase,
    StepMode,
    resolve_saveat,
)
from lumpsim.types.core import ScalarLike, StateVector
from lumpsim.types.trajectories import IntegrationResult, SaveAt


class ScipyIntegrator(IntegratorBase):
    """
    Adaptive integrator using scipy.integrate.solve_ivp.

    Parameters
    ----------
    method : str
        Solver method: 'RK45', 'RK23', 'DOP853', 'Radau', 'BDF', 'LSODA'
    dt : Optional[float]
        Initial step guess, used by ``step()`` only
    **options
        rtol, atol, max_step, first_step

    Examples
    --------
    >>> integrator = ScipyIntegrator(method="DOP853", rtol=1e-8, atol=1e-10)
    >>> result = integrator.integrate(problem, saveat=0.02)
    >>> result["x"].shape
    (251, 2)
    """

    VALID_METHODS = ["RK45", "RK23", "DOP853", "Radau", "BDF", "LSODA"]

    def __init__(self, method: str = "RK45", dt: Optional[ScalarLike] = None, **options):
        super().__init__(dt, StepMode.ADAPTIVE, **options)

        if method not in self.VALID_METHODS:
            raise ValueError(f"Invalid method '{method}'. Choose from: {self.VALID_METHODS}")

        self.method = method

    def step(self, problem, t: ScalarLike, x: StateVector, dt: Optional[ScalarLike] = None) -> StateVector:
        """
        Take one adaptive step of size dt (reinitializes the solver).

        Less efficient than integrate() for trajectories.
        """
        dt = dt if dt is not None else self.dt
        sol = solve_ivp(
            fun=lambda s, y: self._evaluate_dynamics(problem, s, y),
            t_span=(t, t + dt),
            y0=np.asarray(x, dtype=float),
            method=self.method,
            t_eval=[t + dt],
            rtol=self.rtol,
            atol=self.atol,
        )
        return sol.y[:, -1]

    def integrate(self, problem, saveat: SaveAt = None, dense_output: bool = False) -> IntegrationResult:
        """
        Integrate using scipy.solve_ivp with adaptive stepping.

        Returns
        -------
        IntegrationResult
            TypedDict containing:
            - t: Time points (T,)
            - x: State trajectory (T, nx) - time-major ordering
            - success, message, nfev, nsteps, integration_time, solver
            - njev, nlu, status: solver counters
            - sol: Dense output object (if dense_output=True)

        Examples
        --------
        >>> result = integrator.integrate(problem, dense_output=True)
        >>> x_mid = result["sol"](2.5)
        """
        start_time = time.time()
        t_eval = resolve_saveat(problem.tspan, saveat)

        def ode_func(t: float, x: np.ndarray) -> np.ndarray:
            """Dynamics in scipy's signature: f(t, x) → dx/dt"""
            return self._evaluate_dynamics(problem, t, x)

        sol = solve_ivp(
            fun=ode_func,
            t_span=problem.tspan,
            y0=np.asarray(problem.u0, dtype=float),
            method=self.method,
            t_eval=t_eval,
            dense_output=dense_output,
            rtol=self.rtol,
            atol=self.atol,
            max_step=self.options.get("max_step", np.inf),
            first_step=self.options.get("first_step", None),
        )

        elapsed = time.time() - start_time
        self._stats["total_time"] += elapsed
        self._stats["total_steps"] += sol.nfev  # scipy doesn't track steps separately

        result: IntegrationResult = {
            "t": sol.t,
            "x": sol.y.T,  # scipy returns (nx, T), we want (T, nx)
            "success": sol.success,
            "message": sol.message,
            "nfev": sol.nfev,
            "nsteps": sol.nfev,
            "integration_time": elapsed,
            "solver": self.name,
            "njev": sol.njev,
            "nlu": sol.nlu,
            "status": sol.status,
        }

        if dense_output and sol.sol is not None:
            result["sol"] = sol.sol
            result["dense_output"] = True

        return result

    @property
    def name(self) -> str:
        stiff_indicator = " (Stiff)" if self.method in ["Radau", "BDF"] else ""
        auto_indicator = " (Auto-Stiffness)" if self.method == "LSODA" else ""
        return f"scipy.{self.method}{stiff_indicator}{auto_indicator}"

    def __repr__(self) -> str:
        return (
            f"ScipyIntegrator(method='{self.method}', "
            f"rtol={self.rtol:.1e}, atol={self.atol:.1e})"
        )
