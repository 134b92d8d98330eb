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
Calibration losses.

Mean squared error between simulated states and data on the save grid:

    L(x) = (1/N) Σ_ij (data_ij - X_ij(p(x)))²

where p(x) is the full parameter vector with the tunables replaced by x,
and N = T·nx.

The gradient uses forward sensitivities:

    ∂L/∂x_k = -(2/N) Σ_ij (data_ij - X_ij) · S_ijk
"""

from typing import Optional, Tuple

import numpy as np

from lumpsim.calibration.sensitivity import ForwardSensitivityProblem
from lumpsim.systems.base.numerical_integration import (
    IntegrationError,
    IntegratorBase,
    IntegratorFactory,
    resolve_saveat,
    solve,
)
from lumpsim.systems.base.problem import ODEProblem
from lumpsim.types.core import ArrayLike
from lumpsim.types.trajectories import SaveAt


def check_data_shape(problem: ODEProblem, data: ArrayLike, saveat: SaveAt) -> np.ndarray:
    """
    Validate that ``data`` is a (T, nx) array on the ``saveat`` grid.

    Raises
    ------
    ValueError
        If saveat is missing or the shapes disagree
    """
    t_save = resolve_saveat(problem.tspan, saveat)
    if t_save is None:
        raise ValueError("saveat is required to align simulations with data")

    data = np.asarray(data, dtype=float)
    expected = (len(t_save), problem.nx)
    if data.shape != expected:
        raise ValueError(
            f"data has shape {data.shape}, expected {expected} "
            f"(time points × states {problem.system.state_names})"
        )
    if not np.all(np.isfinite(data)):
        raise ValueError("data contains non-finite values")
    return data


def _simulate(
    problem: ODEProblem,
    x: ArrayLike,
    saveat: SaveAt,
    integrator: Optional[IntegratorBase],
) -> np.ndarray:
    sol = solve(
        problem.remake(p=problem.replace_tunables(x)),
        saveat=saveat,
        raise_on_failure=True,
        integrator=integrator or IntegratorFactory.create(),
    )
    return sol.u


def mse_loss(
    problem: ODEProblem,
    x: ArrayLike,
    data: ArrayLike,
    saveat: SaveAt,
    integrator: Optional[IntegratorBase] = None,
) -> float:
    """
    Mean squared error of the states simulated with tunables ``x``.

    Parameters
    ----------
    problem : ODEProblem
        Problem whose tunables are set from ``x``
    x : array-like
        Tunable values, ordered as ``problem.tunables``
    data : array-like
        Observations (T, nx) on the ``saveat`` grid
    saveat : float or array-like
        Save grid matching ``data``
    integrator : IntegratorBase, optional
        Integrator to use (default: Tsit5 → scipy RK45)

    Raises
    ------
    IntegrationError
        If the simulation fails

    Examples
    --------
    >>> mse_loss(problem, problem.tunable_values(), data, saveat=0.02)
    2.5e-05
    """
    data = np.asarray(data, dtype=float)
    simulated = _simulate(problem, x, saveat, integrator)
    if simulated.shape != data.shape:
        raise IntegrationError(
            f"Simulation returned shape {simulated.shape}, data has {data.shape}"
        )
    return float(np.mean((data - simulated) ** 2))


def mse_loss_and_gradient(
    problem: ODEProblem,
    x: ArrayLike,
    data: ArrayLike,
    saveat: SaveAt,
    integrator: Optional[IntegratorBase] = None,
) -> Tuple[float, np.ndarray]:
    """
    MSE loss and its gradient with respect to the tunables.

    One integration of the state and forward sensitivities gives both.

    Returns
    -------
    loss : float
    gradient : np.ndarray
        Shape (n_tunables,)

    Raises
    ------
    IntegrationError
        If the augmented integration fails
    """
    data = np.asarray(data, dtype=float)
    if integrator is None:
        integrator = IntegratorFactory.create()

    sens = ForwardSensitivityProblem(problem, p=problem.replace_tunables(x))
    result = integrator.integrate(sens, saveat=saveat)

    n_saved = len(result["t"])
    if not result["success"] or n_saved != data.shape[0]:
        raise IntegrationError(
            f"Sensitivity integration failed: {result.get('message', '')}"
        )

    X, S = sens.split(result["x"])
    residual = data - X
    loss = float(np.mean(residual**2))
    gradient = -2.0 * np.einsum("ti,tik->k", residual, S) / residual.size
    return loss, gradient
