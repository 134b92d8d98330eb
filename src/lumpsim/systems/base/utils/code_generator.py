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
Code Generator

Manages:
- RHS function: f(t, x, p) → dx/dt
- Observed function: h(t, X, p) evaluated over a time grid
- Jacobians: ∂f/∂x, ∂f/∂p (sensitivities) and ∂h/∂x, ∂h/∂p
- Function caching and compilation timing

This class is the high-level orchestrator that uses codegen_utils for
the low-level SymPy → NumPy conversion.

Calling Convention
------------------
Every generated callable takes ``(t, x, p)`` where ``x`` is ordered as
``system.states`` and ``p`` as ``system.parameters``. Parameters stay
symbolic in the generated code so a single compiled function serves every
parameter vector the optimizer tries.
"""

import time
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional, Sequence, Tuple

import numpy as np
import sympy as sp

from lumpsim.systems.base.utils.codegen_utils import (
    generate_jacobian_function,
    generate_matrix_function,
    generate_numpy_function,
    generate_vectorized_function,
)
from lumpsim.types.core import JacobianFunction, ObservedFunction, RHSFunction

if TYPE_CHECKING:
    from lumpsim.systems.base.core.flat_system import FlatSystem


class CodeGenerator:
    """
    Orchestrates code generation and caching for a flat system.

    Example:
        >>> code_gen = CodeGenerator(system)
        >>> f = code_gen.generate_rhs()
        >>> f is code_gen.generate_rhs()  # Returns cached
        True
        >>> dx = f(0.0, problem.u0, problem.p)
    """

    def __init__(self, system: "FlatSystem"):
        """
        Initialize code generator for a system.

        Args:
            system: Flat system that has already been reduced
        """
        self.system = system

        # States become plain symbols in generated code
        self._x_syms: List[sp.Symbol] = [sp.Dummy(s.func.__name__) for s in system.states]
        self._state_map = dict(zip(system.states, self._x_syms))

        self._f_func: Optional[RHSFunction] = None
        self._h_funcs: Dict[Tuple, ObservedFunction] = {}
        self._fx_func: Optional[JacobianFunction] = None
        self._fp_func: Optional[JacobianFunction] = None
        self._h_jac_funcs: Dict[Tuple, Tuple[Callable, Callable]] = {}
        self._param_funcs: Dict[Tuple, Callable] = {}

    # ========================================================================
    # Helpers
    # ========================================================================

    @property
    def arguments(self) -> List[sp.Symbol]:
        """Flat argument list of the generated functions: [t, x..., p...]"""
        return [self.system.t] + self._x_syms + list(self.system.parameters)

    def to_numeric_symbols(self, expr):
        """Replace state functions x(t) with the plain symbols used in generated code."""
        return expr.xreplace(self._state_map)

    def _expressions_for(self, variables: Sequence[sp.Expr]) -> List[sp.Expr]:
        return [self.to_numeric_symbols(self.system.expression_for(v)) for v in variables]

    def _wrap(self, func: Callable) -> Callable:
        def wrapped(t, x, p):
            return func(t, *x, *p)

        return wrapped

    # ========================================================================
    # RHS Generation
    # ========================================================================

    def generate_rhs(self) -> RHSFunction:
        """
        Generate f(t, x, p) → dx/dt, shape (nx,).

        Example:
            >>> f = code_gen.generate_rhs()
            >>> f(0.0, np.array([1.0, 0.0]), p)
        """
        if self._f_func is not None:
            return self._f_func

        rhs = self.to_numeric_symbols(self.system.rhs)
        self._f_func = self._wrap(generate_numpy_function(rhs, self.arguments))
        return self._f_func

    def generate_rhs_jacobians(self) -> Tuple[JacobianFunction, JacobianFunction]:
        """
        Generate (∂f/∂x, ∂f/∂p).

        Returns:
            Callables of shape (nx, nx) and (nx, np)
        """
        if self._fx_func is not None and self._fp_func is not None:
            return self._fx_func, self._fp_func

        rhs = self.to_numeric_symbols(self.system.rhs)
        self._fx_func = self._wrap(generate_jacobian_function(rhs, self.arguments, self._x_syms))
        self._fp_func = self._wrap(
            generate_jacobian_function(rhs, self.arguments, list(self.system.parameters))
        )
        return self._fx_func, self._fp_func

    # ========================================================================
    # Observed Generation
    # ========================================================================

    def generate_observed(self, variables: Optional[Sequence[sp.Expr]] = None) -> ObservedFunction:
        """
        Generate h(t, X, p) for a list of variables over a time grid.

        States are allowed in ``variables`` and map to themselves.

        Args:
            variables: Variables to evaluate (None = all algebraic variables)

        Returns:
            Callable with ``t`` of shape (T,), ``X`` of shape (nx, T),
            returning an array of shape (len(variables), T)
        """
        if variables is None:
            variables = self.system.algebraic
        key = tuple(variables)

        if key not in self._h_funcs:
            exprs = self._expressions_for(variables)
            self._h_funcs[key] = self._wrap(generate_vectorized_function(exprs, self.arguments))
        return self._h_funcs[key]

    def generate_observed_jacobians(
        self, variables: Optional[Sequence[sp.Expr]] = None
    ) -> Tuple[JacobianFunction, JacobianFunction]:
        """
        Generate (∂h/∂x, ∂h/∂p) for observed variables at a single point.

        Returns:
            Callables of shape (n_vars, nx) and (n_vars, np)
        """
        if variables is None:
            variables = self.system.algebraic
        key = tuple(variables)

        if key not in self._h_jac_funcs:
            exprs = self._expressions_for(variables)
            hx = generate_jacobian_function(exprs, self.arguments, self._x_syms)
            hp = generate_jacobian_function(exprs, self.arguments, list(self.system.parameters))
            self._h_jac_funcs[key] = (self._wrap(hx), self._wrap(hp))
        return self._h_jac_funcs[key]

    # ========================================================================
    # Parameter-only expressions
    # ========================================================================

    def generate_parameter_function(self, exprs: Sequence[sp.Expr]) -> Callable:
        """
        Compile expressions of parameters only (e.g. initial conditions).

        Returns:
            Callable p → array of shape (len(exprs),)
        """
        key = ("value",) + tuple(exprs)
        if key not in self._param_funcs:
            func = generate_numpy_function(list(exprs), list(self.system.parameters))
            self._param_funcs[key] = lambda p: func(*p)
        return self._param_funcs[key]

    def generate_parameter_jacobian(self, exprs: Sequence[sp.Expr]) -> Callable:
        """
        Jacobian of parameter-only expressions with respect to all parameters.

        Returns:
            Callable p → array of shape (len(exprs), np)
        """
        params = list(self.system.parameters)
        if len(exprs) == 0:
            return lambda p: np.zeros((0, len(params)))

        key = ("jacobian",) + tuple(exprs)
        if key not in self._param_funcs:
            jac = sp.Matrix(list(exprs)).jacobian(params) if params else sp.zeros(len(exprs), 0)
            func = generate_matrix_function(jac, params)
            self._param_funcs[key] = lambda p: func(*p)
        return self._param_funcs[key]

    # ========================================================================
    # Compilation
    # ========================================================================

    def compile_all(self, include_jacobians: bool = False, verbose: bool = False) -> Dict[str, float]:
        """
        Pre-compile the system functions.

        Args:
            include_jacobians: Also compile Jacobian functions
            verbose: Print compilation progress

        Returns:
            Dict mapping function_name → compilation_time

        Example:
            >>> timings = code_gen.compile_all(include_jacobians=True, verbose=True)
              f: 0.01s
              h: 0.02s
              df/dx, df/dp: 0.03s
        """
        timings = {}

        start = time.time()
        self.generate_rhs()
        timings["f"] = time.time() - start

        start = time.time()
        self.generate_observed()
        timings["h"] = time.time() - start

        if include_jacobians:
            start = time.time()
            self.generate_rhs_jacobians()
            timings["jacobians"] = time.time() - start

        if verbose:
            print(f"  f: {timings['f']:.4f}s")
            print(f"  h: {timings['h']:.4f}s")
            if include_jacobians:
                print(f"  df/dx, df/dp: {timings['jacobians']:.4f}s")

        return timings

    def reset_cache(self):
        """Clear all cached functions."""
        self._f_func = None
        self._h_funcs = {}
        self._fx_func = None
        self._fp_func = None
        self._h_jac_funcs = {}
        self._param_funcs = {}

    def is_compiled(self) -> Dict[str, bool]:
        """
        Check which functions are compiled.

        Example:
            >>> code_gen.is_compiled()
            {'f': True, 'h': False, 'jacobians': False}
        """
        return {
            "f": self._f_func is not None,
            "h": len(self._h_funcs) > 0,
            "jacobians": self._fx_func is not None,
        }

    def get_info(self) -> Dict[str, Any]:
        """Code generation status and argument layout."""
        return {
            "compiled": self.is_compiled(),
            "nx": len(self._x_syms),
            "np": len(self.system.parameters),
            "cached_observed_sets": len(self._h_funcs),
        }

    # ========================================================================
    # String Representations
    # ========================================================================

    def __repr__(self) -> str:
        """String representation for debugging"""
        compiled = [name for name, done in self.is_compiled().items() if done]
        return f"CodeGenerator(system={type(self.system).__name__}, compiled={compiled})"

    def __str__(self) -> str:
        """Human-readable string"""
        count = sum(self.is_compiled().values())
        return f"CodeGenerator({count}/3 function groups compiled)"
