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
Fixed-Step Integrators

Implements classic fixed time-step integration methods:
- Explicit Euler (1st order)
- RK4 (4th order)

Save points are honoured exactly: each interval between consecutive save
points is split into the smallest number of equal substeps no larger
than ``dt``.
"""

import time
from typing import List, Optional

import numpy as np

from lumpsim.systems.base.numerical_integration.integrator_base import (
    IntegratorBase,
    StepMode,
    resolve_saveat,
)
from lumpsim.types.core import ScalarLike, StateVector
from lumpsim.types.trajectories import IntegrationResult, SaveAt


class FixedStepIntegrator(IntegratorBase):
    """
    Shared trajectory loop for fixed-step methods.

    Subclasses implement ``step()`` and ``name``.
    """

    def __init__(self, dt: ScalarLike, **options):
        super().__init__(dt, StepMode.FIXED, **options)

    def integrate(self, problem, saveat: SaveAt = None, dense_output: bool = False) -> IntegrationResult:
        """
        Integrate with fixed steps.

        Parameters
        ----------
        problem
            Object with ``f(t, x)``, ``u0`` and ``tspan``
        saveat : float, array-like or None
            Save points; if None, every step is saved
        dense_output : bool
            Ignored for fixed-step methods

        Returns
        -------
        IntegrationResult
            ``success`` is False if the state becomes non-finite or the
            step budget ``max_steps`` is exhausted; the trajectory is then
            truncated at the last finite save point.
        """
        start_time = time.time()
        fev_before = self._stats["total_fev"]
        t0, tf = problem.tspan

        t_points = resolve_saveat(problem.tspan, saveat)
        if t_points is None:
            num_steps = int(np.ceil((tf - t0) / self.dt - 1e-9))
            t_points = np.linspace(t0, tf, num_steps + 1)

        x = np.asarray(problem.u0, dtype=float)
        t = float(t0)

        trajectory: List[np.ndarray] = []
        saved_t: List[float] = []
        success = True
        message = f"{self.name} integration completed"
        nsteps = 0

        for t_save in t_points:
            n_sub = int(np.ceil((t_save - t) / self.dt - 1e-9)) if t_save > t else 0
            if nsteps + n_sub > self.max_steps:
                success = False
                message = f"Maximum number of steps ({self.max_steps}) exceeded"
                break

            if n_sub > 0:
                h = (t_save - t) / n_sub
                for _ in range(n_sub):
                    x = self.step(problem, t, x, dt=h)
                    t += h
                nsteps += n_sub
                t = float(t_save)

            if not np.all(np.isfinite(x)):
                success = False
                message = f"Non-finite state encountered at t={t:.6g}"
                break

            trajectory.append(x.copy())
            saved_t.append(float(t_save))

        elapsed = time.time() - start_time
        self._stats["total_time"] += elapsed
        self._stats["total_steps"] += nsteps

        nx = np.size(problem.u0)
        result: IntegrationResult = {
            "t": np.asarray(saved_t),
            "x": np.stack(trajectory) if trajectory else np.empty((0, nx)),
            "success": success,
            "message": message,
            "nfev": self._stats["total_fev"] - fev_before,
            "nsteps": nsteps,
            "integration_time": elapsed,
            "solver": self.name,
        }
        return result


class ExplicitEulerIntegrator(FixedStepIntegrator):
    """
    Explicit Euler integrator (Forward Euler).

    First-order method: x_{k+1} = x_k + dt * f(t_k, x_k)

    Conditionally stable; for the suspended mass (ω₀ = 10 rad/s) dt should
    stay well below 0.01.

    Examples
    --------
    >>> integrator = ExplicitEulerIntegrator(dt=1e-4)
    >>> result = integrator.integrate(problem, saveat=0.02)
    """

    def step(self, problem, t: ScalarLike, x: StateVector, dt: Optional[ScalarLike] = None) -> StateVector:
        dt = dt if dt is not None else self.dt
        return x + dt * self._evaluate_dynamics(problem, t, x)

    @property
    def name(self) -> str:
        return "Explicit Euler"


class RK4Integrator(FixedStepIntegrator):
    """
    Classic 4th-order Runge-Kutta integrator.

    Algorithm:
        k1 = f(t, x)
        k2 = f(t + dt/2, x + 0.5*dt*k1)
        k3 = f(t + dt/2, x + 0.5*dt*k2)
        k4 = f(t + dt, x + dt*k3)
        x_{k+1} = x_k + (dt/6) * (k1 + 2*k2 + 2*k3 + k4)

    Examples
    --------
    >>> integrator = RK4Integrator(dt=0.001)
    >>> result = integrator.integrate(problem, saveat=0.02)
    >>> print(f"RK4: {result['nfev']} evaluations for {result['nsteps']} steps")
    """

    def step(self, problem, t: ScalarLike, x: StateVector, dt: Optional[ScalarLike] = None) -> StateVector:
        """Take one RK4 step using four function evaluations."""
        dt = dt if dt is not None else self.dt

        k1 = self._evaluate_dynamics(problem, t, x)
        k2 = self._evaluate_dynamics(problem, t + 0.5 * dt, x + 0.5 * dt * k1)
        k3 = self._evaluate_dynamics(problem, t + 0.5 * dt, x + 0.5 * dt * k2)
        k4 = self._evaluate_dynamics(problem, t + dt, x + dt * k3)

        return x + (dt / 6.0) * (k1 + 2 * k2 + 2 * k3 + k4)

    @property
    def name(self) -> str:
        return "RK4 (Classic)"


__all__ = [
    "FixedStepIntegrator",
    "ExplicitEulerIntegrator",
    "RK4Integrator",
]
