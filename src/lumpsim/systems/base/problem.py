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
ODE Problem

Binds a reduced FlatSystem to numeric initial conditions, a time span and a
parameter vector.

Initial conditions are kept as expressions of the parameters (e.g.
``x_m = x_m0``) and re-evaluated for every parameter vector, so calibrating
``x_m0`` moves the initial position with it.

Example
-------
>>> system = SuspendedMass()
>>> problem = ODEProblem(system, tspan=(0.0, 5.0))
>>> problem.u0
array([1., 0.])
>>> heavier = problem.remake(p={"m": 20.0})
"""

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

import numpy as np
import sympy as sp

from lumpsim.systems.base.core.flat_system import FlatSystem
from lumpsim.systems.base.utils.symbols import symbol_name
from lumpsim.types.core import ArrayLike, ParameterVector, StateVector, SymbolKey

logger = logging.getLogger(__name__)

ParameterInput = Union[Mapping[SymbolKey, Any], ArrayLike, None]


class ODEProblem:
    """
    Numeric ODE problem for a flat system.

    Parameters
    ----------
    system : FlatSystem
        Reduced symbolic system
    u0 : dict or array-like, optional
        Initial conditions for the states, by variable or name (values may
        be parameter expressions), or an array in ``system.states`` order.
        Merged over the system defaults.
    tspan : tuple of float
        (t0, tf) with tf > t0
    p : dict or array-like, optional
        Parameter values by symbol or name, or an array in
        ``system.parameters`` order. Merged over the system defaults.
    tunables : list, optional
        Parameters exposed to calibration (default: all parameters)

    Raises
    ------
    ValueError
        If tspan is invalid or a state/parameter has no value
    """

    def __init__(
        self,
        system: FlatSystem,
        u0: ParameterInput = None,
        tspan=None,
        p: ParameterInput = None,
        tunables: Optional[Sequence[SymbolKey]] = None,
    ):
        self.system = system
        self.tspan = self._validate_tspan(tspan)
        self._u0_exprs: List[sp.Expr] = self._merge_initial_conditions(u0)
        self.p: ParameterVector = self._merge_parameters(p)

        if tunables is None:
            self.tunables: List[sp.Symbol] = list(system.parameters)
        else:
            self.tunables = [system.resolve_parameter(k) for k in tunables]
            if len(set(self.tunables)) != len(self.tunables):
                raise ValueError(f"Duplicate tunables: {[str(s) for s in self.tunables]}")

        code_gen = system.code_generator
        self._u0_func = code_gen.generate_parameter_function(self._u0_exprs)
        self._u0_jac_func = code_gen.generate_parameter_jacobian(self._u0_exprs)
        self._rhs_func = code_gen.generate_rhs()

        self.u0: StateVector = self._u0_func(self.p)
        if not np.all(np.isfinite(self.u0)):
            raise ValueError(f"Initial conditions are not finite: {self.u0}")

    # ========================================================================
    # Construction helpers
    # ========================================================================

    @staticmethod
    def _validate_tspan(tspan):
        if tspan is None:
            raise ValueError("tspan is required, e.g. tspan=(0.0, 5.0)")
        if len(tspan) != 2:
            raise ValueError(f"tspan must be (t0, tf), got {tspan}")
        t0, tf = float(tspan[0]), float(tspan[1])
        if not tf > t0:
            raise ValueError(f"tspan end must be after start, got ({t0}, {tf})")
        return (t0, tf)

    def _merge_initial_conditions(self, u0: ParameterInput) -> List[sp.Expr]:
        system = self.system
        values: Dict[sp.Expr, Any] = dict(system.default_initial_conditions())

        if u0 is not None:
            if isinstance(u0, Mapping):
                for key, value in u0.items():
                    var = system.resolve_variable(key)
                    if var not in system.states:
                        logger.warning(
                            "Initial value for %s ignored: it is computed from the states",
                            symbol_name(var),
                        )
                        continue
                    values[var] = value
            else:
                array = np.asarray(u0, dtype=float).reshape(-1)
                if array.size != system.nx:
                    raise ValueError(
                        f"u0 has {array.size} entries, expected {system.nx} "
                        f"for states {system.state_names}"
                    )
                values = dict(zip(system.states, array))

        missing = [symbol_name(s) for s in system.states if s not in values]
        if missing:
            raise ValueError(f"Missing initial conditions for states: {missing}")

        exprs = []
        allowed = set(system.parameters)
        for state in system.states:
            expr = sp.sympify(values[state])
            stray = expr.free_symbols - allowed
            if stray:
                raise ValueError(
                    f"Initial condition for {symbol_name(state)} = {expr} may only "
                    f"depend on parameters, found {sorted(str(s) for s in stray)}"
                )
            exprs.append(expr)
        return exprs

    def _merge_parameters(self, p: ParameterInput) -> ParameterVector:
        system = self.system
        values: Dict[sp.Symbol, Any] = dict(system.default_parameters())

        if p is not None:
            if isinstance(p, Mapping):
                for key, value in p.items():
                    values[system.resolve_parameter(key)] = value
            else:
                array = np.asarray(p, dtype=float).reshape(-1)
                if array.size != system.n_params:
                    raise ValueError(
                        f"p has {array.size} entries, expected {system.n_params} "
                        f"for parameters {system.parameter_names}"
                    )
                values = dict(zip(system.parameters, array))

        missing = [symbol_name(s) for s in system.parameters if s not in values]
        if missing:
            raise ValueError(f"Missing values for parameters: {missing}")

        numeric: Dict[sp.Symbol, float] = {}
        pending: Dict[sp.Symbol, sp.Expr] = {}
        for sym in system.parameters:
            value = values[sym]
            if isinstance(value, sp.Basic) and value.free_symbols:
                pending[sym] = value
            else:
                numeric[sym] = float(value)

        # Parameter defaults may reference other parameters
        while pending:
            resolved = {}
            for sym, expr in pending.items():
                expr = expr.subs(numeric)
                if not expr.free_symbols:
                    resolved[sym] = float(expr)
            if not resolved:
                raise ValueError(
                    f"Cannot evaluate parameters {[str(s) for s in pending]}: "
                    f"circular or unknown references"
                )
            numeric.update(resolved)
            for sym in resolved:
                del pending[sym]

        return np.array([numeric[s] for s in system.parameters], dtype=float)

    # ========================================================================
    # Numeric interface
    # ========================================================================

    def f(self, t, x):
        """RHS with the problem's parameters bound: dx/dt = f(t, x)."""
        return self._rhs_func(t, x, self.p)

    def rhs(self, t, x, p: Optional[ParameterVector] = None):
        """RHS for an explicit parameter vector."""
        return self._rhs_func(t, x, self.p if p is None else p)

    def initial_state(self, p: Optional[ParameterVector] = None) -> StateVector:
        """Initial state evaluated for a parameter vector."""
        return self._u0_func(self.p if p is None else p)

    def initial_state_jacobian(self, p: Optional[ParameterVector] = None) -> np.ndarray:
        """∂u0/∂p, shape (nx, n_params)."""
        return self._u0_jac_func(self.p if p is None else p)

    @property
    def nx(self) -> int:
        return self.system.nx

    # ========================================================================
    # Parameters and tunables
    # ========================================================================

    def parameter_values(self) -> ParameterVector:
        """Parameter vector in ``system.parameters`` order (a copy)."""
        return self.p.copy()

    def parameter_map(self) -> Dict[sp.Symbol, float]:
        return dict(zip(self.system.parameters, (float(v) for v in self.p)))

    def initial_conditions(self) -> Dict[sp.Expr, sp.Expr]:
        """State → initial value expression (before numeric evaluation)."""
        return dict(zip(self.system.states, self._u0_exprs))

    @property
    def tunable_indices(self) -> List[int]:
        return [self.system.parameters.index(s) for s in self.tunables]

    @property
    def tunable_names(self) -> List[str]:
        return [symbol_name(s) for s in self.tunables]

    def tunable_values(self) -> np.ndarray:
        return self.p[self.tunable_indices]

    def replace_tunables(self, x: ArrayLike) -> ParameterVector:
        """
        Full parameter vector with the tunables replaced by ``x``.

        The problem itself is not modified.

        Raises
        ------
        ValueError
            If ``x`` does not have one entry per tunable
        """
        x = np.asarray(x, dtype=float).reshape(-1)
        if x.size != len(self.tunables):
            raise ValueError(
                f"Expected {len(self.tunables)} tunable values {self.tunable_names}, got {x.size}"
            )
        p = self.p.copy()
        p[self.tunable_indices] = x
        return p

    def remake(
        self,
        p: ParameterInput = None,
        u0: ParameterInput = None,
        tspan=None,
        tunables: Optional[Sequence[SymbolKey]] = None,
    ) -> "ODEProblem":
        """
        New problem with some fields replaced; the original is not mutated.

        Mapping arguments update the current values; arrays replace them.
        Initial conditions that are parameter expressions follow the new
        parameters.

        Examples
        --------
        >>> fitted = problem.remake(p=problem.replace_tunables(result["u"]))
        >>> longer = problem.remake(tspan=(0.0, 10.0))
        """
        if p is None:
            new_p = self.p.copy()
        elif isinstance(p, Mapping):
            new_p = self.parameter_map()
            new_p.update({self.system.resolve_parameter(k): v for k, v in p.items()})
        else:
            new_p = p

        if u0 is None:
            new_u0 = self.initial_conditions()
        elif isinstance(u0, Mapping):
            new_u0 = self.initial_conditions()
            new_u0.update({self.system.resolve_variable(k): v for k, v in u0.items()})
        else:
            new_u0 = u0

        return ODEProblem(
            self.system,
            u0=new_u0,
            tspan=self.tspan if tspan is None else tspan,
            p=new_p,
            tunables=self.tunables if tunables is None else tunables,
        )

    def __repr__(self) -> str:
        return (
            f"ODEProblem(system={type(self.system).__name__}, tspan={self.tspan}, "
            f"u0={np.array2string(self.u0, precision=4)}, "
            f"p={ {n: round(float(v), 6) for n, v in zip(self.system.parameter_names, self.p)} })"
        )


def param_names_values(problem: ODEProblem) -> Dict[sp.Symbol, float]:
    """
    Parameter symbol → value mapping of a problem.

    Examples
    --------
    >>> param_names_values(problem)
    {m: 10.0, k: 1000.0, c: 30.0, g: 9.81, x_m0: 1.0}
    """
    return problem.parameter_map()
