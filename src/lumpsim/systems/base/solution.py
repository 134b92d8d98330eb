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
ODE Solution

Wraps an IntegrationResult together with the problem that produced it, so
any variable of the flat model (state, observed or state derivative) can be
looked up on the saved time grid:

>>> sol = solve(problem, saveat=0.02)
>>> sol["x_m"].shape             # state
(251,)
>>> sol[[F_k, F_c]].shape        # observed, recomputed from the states
(2, 251)
"""

from typing import TYPE_CHECKING, Dict, List, Optional, Sequence, Union

import numpy as np
import sympy as sp

from lumpsim.systems.base.utils.symbols import symbol_name
from lumpsim.types.core import ArrayLike, SymbolKey
from lumpsim.types.trajectories import IntegrationResult

if TYPE_CHECKING:
    from lumpsim.systems.base.problem import ODEProblem


class ODESolution:
    """
    Solution of an ODEProblem on its saved time grid.

    Attributes
    ----------
    t : np.ndarray
        Time points (T,)
    u : np.ndarray
        State trajectory (T, nx), columns ordered as ``system.states``
    success : bool
        Whether integration reached the end of the time span
    retcode : str
        'Success' or 'Failure'
    message : str
        Solver status message
    """

    def __init__(self, problem: "ODEProblem", result: IntegrationResult):
        self.problem = problem
        self.system = problem.system
        self.result = result

        self.t: np.ndarray = np.asarray(result["t"], dtype=float)
        self.u: np.ndarray = np.asarray(result["x"], dtype=float).reshape(len(self.t), self.system.nx)
        self.success: bool = bool(result["success"])
        self.retcode: str = "Success" if self.success else "Failure"
        self.message: str = str(result.get("message", ""))

    # ========================================================================
    # Variable access
    # ========================================================================

    def __getitem__(self, key: Union[SymbolKey, Sequence[SymbolKey]]) -> np.ndarray:
        """
        Values of one variable (T,) or a list of variables (n, T).

        Keys may be variables x(t), names, or state derivatives D(x).
        """
        if isinstance(key, (list, tuple)):
            variables = [self.system.resolve_variable(k) for k in key]
            return self._evaluate(variables)
        return self._evaluate([self.system.resolve_variable(key)])[0]

    def _evaluate(self, variables: List[sp.Expr]) -> np.ndarray:
        if all(v in self.system.states for v in variables):
            idx = [self.system.states.index(v) for v in variables]
            return self.u[:, idx].T.copy()

        observed = self.system.code_generator.generate_observed(variables)
        return observed(self.t, self.u.T, self.problem.p)

    def to_array(self) -> np.ndarray:
        """States as an array of shape (nx, T)."""
        return self.u.T.copy()

    def to_dict(self, variables: Optional[Sequence[SymbolKey]] = None) -> Dict[str, np.ndarray]:
        """
        Name → values mapping (all variables by default), plus 't'.

        Examples
        --------
        >>> data = sol.to_dict()
        >>> data["F_k"][0]
        0.0
        """
        if variables is None:
            variables = self.system.variables
        resolved = [self.system.resolve_variable(v) for v in variables]
        values = self._evaluate(resolved)
        out = {"t": self.t.copy()}
        out.update({symbol_name(v): row for v, row in zip(resolved, values)})
        return out

    # ========================================================================
    # Interpolation
    # ========================================================================

    def __call__(self, t: ArrayLike) -> np.ndarray:
        """
        State at arbitrary times within the solved range.

        Uses the solver's dense output when available, otherwise linear
        interpolation between saved points.

        Returns
        -------
        np.ndarray
            (nx,) for scalar t, (T_query, nx) for arrays
        """
        scalar = np.ndim(t) == 0
        t_query = np.atleast_1d(np.asarray(t, dtype=float))

        if len(self.t) and (t_query.min() < self.t[0] or t_query.max() > self.t[-1]):
            raise ValueError(
                f"Interpolation times must lie within [{self.t[0]}, {self.t[-1]}]"
            )

        dense = self.result.get("sol")
        if dense is not None:
            values = np.asarray(dense(t_query)).T
        else:
            values = np.column_stack(
                [np.interp(t_query, self.t, self.u[:, i]) for i in range(self.u.shape[1])]
            )
        return values[0] if scalar else values

    # ========================================================================
    # Info
    # ========================================================================

    @property
    def stats(self) -> Dict[str, float]:
        """Solver counters (nfev, nsteps, integration_time, ...)."""
        keys = ["nfev", "nsteps", "njev", "nlu", "integration_time"]
        return {k: self.result[k] for k in keys if k in self.result}

    @property
    def solver(self) -> str:
        return self.result.get("solver", "")

    def __len__(self) -> int:
        return len(self.t)

    def __repr__(self) -> str:
        return (
            f"ODESolution(retcode={self.retcode}, solver={self.solver}, "
            f"T={len(self.t)}, nx={self.u.shape[1]})"
        )
