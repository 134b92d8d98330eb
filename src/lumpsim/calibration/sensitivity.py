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
Forward Sensitivity Analysis

Augments the ODE with the sensitivity equations

    dS/dt = ∂f/∂x · S + ∂f/∂p,    S(t0) = ∂u0/∂p

where S = ∂x/∂p (nx × n_tunables). The Jacobians come from the symbolic
model, so the sensitivities are exact up to integration error. Solving the
augmented system once gives the trajectory and its derivative with
respect to every tunable, which is what gradient-based calibration needs.

The augmented problem exposes ``f(t, z)``, ``u0`` and ``tspan`` and can be
passed to any integrator.
"""

from typing import Optional, Sequence, Tuple

import numpy as np

from lumpsim.systems.base.problem import ODEProblem
from lumpsim.types.core import ParameterVector


class ForwardSensitivityProblem:
    """
    State plus forward sensitivities as one first-order system.

    Augmented state layout: z = [x (nx), S.ravel() (nx·nt)], with S stored
    row-major so that S[i, j] = ∂x_i/∂p_j.

    Parameters
    ----------
    problem : ODEProblem
        Base problem
    p : array-like, optional
        Full parameter vector (default: problem.p)
    indices : sequence of int, optional
        Indices into ``system.parameters`` of the parameters to
        differentiate with respect to (default: the problem's tunables)

    Examples
    --------
    >>> sens = ForwardSensitivityProblem(problem)
    >>> result = ScipyIntegrator("RK45").integrate(sens, saveat=0.02)
    >>> X, S = sens.split(result["x"])
    >>> S.shape
    (251, 2, 5)
    """

    def __init__(
        self,
        problem: ODEProblem,
        p: Optional[ParameterVector] = None,
        indices: Optional[Sequence[int]] = None,
    ):
        self.problem = problem
        self.p = problem.p.copy() if p is None else np.asarray(p, dtype=float)
        self.indices = list(problem.tunable_indices if indices is None else indices)
        self.tspan = problem.tspan

        self.nx = problem.nx
        self.nt = len(self.indices)

        code_gen = problem.system.code_generator
        self._rhs = code_gen.generate_rhs()
        self._fx, self._fp = code_gen.generate_rhs_jacobians()

        x0 = problem.initial_state(self.p)
        S0 = problem.initial_state_jacobian(self.p)[:, self.indices]
        self.u0 = np.concatenate([x0, S0.ravel()])

    def f(self, t, z):
        """Augmented right-hand side."""
        x = z[: self.nx]
        S = z[self.nx:].reshape(self.nx, self.nt)

        dx = self._rhs(t, x, self.p)
        dS = self._fx(t, x, self.p) @ S + self._fp(t, x, self.p)[:, self.indices]
        return np.concatenate([dx, dS.ravel()])

    def split(self, z_traj: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        """
        Split an augmented trajectory (T, nx + nx·nt).

        Returns
        -------
        X : np.ndarray
            States (T, nx)
        S : np.ndarray
            Sensitivities (T, nx, nt)
        """
        z_traj = np.asarray(z_traj)
        X = z_traj[:, : self.nx]
        S = z_traj[:, self.nx:].reshape(len(z_traj), self.nx, self.nt)
        return X, S

    def __repr__(self) -> str:
        return f"ForwardSensitivityProblem(nx={self.nx}, n_tunables={self.nt}, tspan={self.tspan})"
