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
Flat System Base Class
======================

Abstract base class for acausal lumped-parameter models written as a flat
list of equations.

A subclass declares, inside ``define_system``:

- ``variables``: time-dependent unknowns x(t) (see ``make_variables``)
- ``parameters``: constant symbols (see ``make_parameters``)
- ``equations``: ``sp.Eq`` relations, using ``D(x)`` for time derivatives
- ``defaults``: initial values for variables and values for parameters;
  a variable default may be an expression of parameters

Construction follows the template method pattern:

    define_system() → validate → structural simplification → code generation

after which ``states``, ``rhs`` and ``observed`` describe the explicit
first-order form.

Example
-------
>>> class Decay(FlatSystem):
...     def define_system(self, k=0.5, x0=1.0):
...         x, = make_variables("x")
...         k_sym, x0_sym = make_parameters("k x0")
...         self.variables = [x]
...         self.parameters = [k_sym, x0_sym]
...         self.equations = [sp.Eq(D(x), -k_sym * x)]
...         self.defaults = {k_sym: k, x0_sym: x0, x: x0_sym}
>>> system = Decay()
>>> system.rhs
Matrix([[-k*x(t)]])
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Union

import sympy as sp

from lumpsim.systems.base.utils.code_generator import CodeGenerator
from lumpsim.systems.base.utils.structural_simplifier import (
    ReducedSystem,
    StructuralSimplifier,
)
from lumpsim.systems.base.utils.symbolic_validator import (
    SymbolicValidator,
    ValidationError,
)
from lumpsim.systems.base.utils.symbols import symbol_name, t
from lumpsim.types.core import SymbolKey

logger = logging.getLogger(__name__)


class FlatSystem(ABC):
    """
    Abstract base class for flat equation models.

    Subclasses implement ``define_system()`` only; ``__init__`` should not
    be overridden.

    Attributes
    ----------
    simplify_equations : bool
        Class attribute. Run ``sp.simplify`` on the reduced expressions.
    states : List[sp.Expr]
        Differentiated variables (ODE state), in declaration order
    algebraic : List[sp.Expr]
        Non-state variables, recomputed from the states
    rhs : sp.Matrix
        D(states) as expressions of t, states and parameters
    observed : Dict[sp.Expr, sp.Expr]
        Algebraic variable → expression of t, states and parameters
    """

    simplify_equations: bool = False

    def __init__(self, *args, **kwargs):
        """
        Initialize the system: define → validate → simplify → code generator.

        Parameters
        ----------
        *args, **kwargs
            Forwarded to ``define_system()``

        Raises
        ------
        ValidationError
            If the definition is malformed
        StructuralError
            If the equations cannot be reduced to an explicit ODE
        """
        # Populated by define_system()
        self.variables: List[sp.Expr] = []
        self.parameters: List[sp.Symbol] = []
        self.equations: List[sp.Equality] = []
        self.defaults: Dict[sp.Basic, Any] = {}

        self.t: sp.Symbol = t
        """Independent variable shared by all models"""

        self.define_system(*args, **kwargs)

        self._validator = SymbolicValidator(self)
        try:
            self._validator.validate(raise_on_error=True)
        except ValidationError as e:
            raise ValidationError(
                f"Validation failed for {self.__class__.__name__}:\n{str(e)}"
            ) from e

        simplifier = StructuralSimplifier(
            self.equations, self.variables, simplify=self.simplify_equations
        )
        self._reduced: ReducedSystem = simplifier.simplify()

        self.states: List[sp.Expr] = self._reduced.states
        self.algebraic: List[sp.Expr] = self._reduced.algebraic
        self.rhs: sp.Matrix = self._reduced.rhs
        self.observed: Dict[sp.Expr, sp.Expr] = self._reduced.observed

        self._names: Dict[str, sp.Basic] = {
            symbol_name(s): s for s in list(self.variables) + list(self.parameters)
        }

        self._code_gen = CodeGenerator(self)

        logger.debug(
            "%s reduced to %d states (%s) with %d observed variables",
            self.__class__.__name__,
            self.nx,
            ", ".join(symbol_name(s) for s in self.states),
            len(self.algebraic),
        )

    # ========================================================================
    # Abstract Methods
    # ========================================================================

    @abstractmethod
    def define_system(self, *args, **kwargs):
        """
        Define the flat model (must be implemented by subclasses).

        Must set ``variables``, ``parameters``, ``equations`` and
        ``defaults``. Parameter values usually come in as keyword arguments
        and are stored in ``defaults``.
        """
        pass

    # ========================================================================
    # Properties
    # ========================================================================

    @property
    def nx(self) -> int:
        """Number of states."""
        return len(self.states)

    @property
    def n_params(self) -> int:
        """Number of parameters."""
        return len(self.parameters)

    @property
    def state_names(self) -> List[str]:
        return [symbol_name(s) for s in self.states]

    @property
    def parameter_names(self) -> List[str]:
        return [symbol_name(p) for p in self.parameters]

    @property
    def variable_names(self) -> List[str]:
        return [symbol_name(v) for v in self.variables]

    @property
    def derivatives(self) -> Dict[sp.Expr, sp.Expr]:
        """D(state) → expression, the derivative aliases of ``rhs``."""
        return self._reduced.derivatives

    @property
    def code_generator(self) -> CodeGenerator:
        return self._code_gen

    # ========================================================================
    # Name Resolution
    # ========================================================================

    def resolve_variable(self, key: SymbolKey) -> sp.Expr:
        """
        Map a variable name, x(t) or D(x) to the object used internally.

        Raises
        ------
        KeyError
            If the key is not a declared variable or state derivative
        """
        if isinstance(key, str):
            found = self._names.get(key)
            if found is None or found not in self.variables:
                raise KeyError(
                    f"Unknown variable '{key}'. Available: {self.variable_names}"
                )
            return found
        if isinstance(key, sp.Derivative) and key in self.derivatives:
            return key
        if key in self.variables:
            return key
        raise KeyError(f"Unknown variable {key}. Available: {self.variable_names}")

    def resolve_parameter(self, key: SymbolKey) -> sp.Symbol:
        """Map a parameter name or symbol to the declared symbol."""
        if isinstance(key, str):
            found = self._names.get(key)
            if found is None or found not in self.parameters:
                raise KeyError(
                    f"Unknown parameter '{key}'. Available: {self.parameter_names}"
                )
            return found
        if key in self.parameters:
            return key
        raise KeyError(f"Unknown parameter {key}. Available: {self.parameter_names}")

    def expression_for(self, variable: SymbolKey) -> sp.Expr:
        """
        Explicit expression of a variable in terms of t, states and parameters.

        States map to themselves; D(state) maps to its right-hand side.
        """
        var = self.resolve_variable(variable)
        if var in self.derivatives:
            return self.derivatives[var]
        if var in self.observed:
            return self.observed[var]
        return var

    # ========================================================================
    # Parameters and Defaults
    # ========================================================================

    def default_parameters(self) -> Dict[sp.Symbol, Any]:
        """Default parameter values (numbers or parameter expressions)."""
        return {p: self.defaults[p] for p in self.parameters if p in self.defaults}

    def default_initial_conditions(self) -> Dict[sp.Expr, Any]:
        """Default initial values for states."""
        return {s: self.defaults[s] for s in self.states if s in self.defaults}

    def substitute_parameters(
        self,
        expr: Union[sp.Expr, sp.Matrix],
        values: Optional[Dict[SymbolKey, float]] = None,
    ) -> Union[sp.Expr, sp.Matrix]:
        """
        Substitute numerical parameter values into a symbolic expression.

        Parameters
        ----------
        expr : sp.Expr or sp.Matrix
            Symbolic expression
        values : dict, optional
            Parameter values by symbol or name; defaults are used for the rest

        Examples
        --------
        >>> system.substitute_parameters(system.rhs, {"k": 500.0})
        """
        subs = dict(self.default_parameters())
        for key, value in (values or {}).items():
            subs[self.resolve_parameter(key)] = value
        return expr.subs(subs)

    # ========================================================================
    # Printing
    # ========================================================================

    def print_equations(self, simplify: bool = False):
        """
        Print the flat equations and the reduced explicit form.

        Parameters
        ----------
        simplify : bool
            Simplify the reduced expressions before printing
        """
        print("=" * 70)
        print(f"{self.__class__.__name__}")
        print("=" * 70)
        print(f"Variables ({len(self.variables)}): {self.variable_names}")
        print(f"Parameters ({self.n_params}): {self.parameter_names}")

        print("\nEquations:")
        for eq in self.equations:
            print(f"  {eq.lhs} = {eq.rhs}")

        print(f"\nStates ({self.nx}): {self.state_names}")
        print("\nDifferential equations:")
        for state, expr in zip(self.states, self.rhs):
            expr = sp.simplify(expr) if simplify else expr
            print(f"  d{symbol_name(state)}/dt = {expr}")

        if self.observed:
            print("\nObserved:")
            for var, expr in self.observed.items():
                expr = sp.simplify(expr) if simplify else expr
                print(f"  {symbol_name(var)} = {expr}")
        print("=" * 70)

    # ========================================================================
    # Compilation
    # ========================================================================

    def compile(self, include_jacobians: bool = False, verbose: bool = False) -> Dict[str, float]:
        """
        Pre-compile the numerical functions.

        Compilation happens lazily by default (on first use).

        Returns
        -------
        Dict[str, float]
            Compilation time per function group (seconds)
        """
        return self._code_gen.compile_all(include_jacobians=include_jacobians, verbose=verbose)

    def reset_caches(self):
        """Clear compiled functions, forcing regeneration on next use."""
        self._code_gen.reset_cache()

    # ========================================================================
    # String Representations
    # ========================================================================

    def __repr__(self) -> str:
        """
        Examples
        --------
        >>> repr(SuspendedMass())
        'SuspendedMass(nx=2, n_algebraic=5, n_params=5)'
        """
        return (
            f"{self.__class__.__name__}("
            f"nx={self.nx}, n_algebraic={len(self.algebraic)}, n_params={self.n_params})"
        )

    def __str__(self) -> str:
        return f"{self.__class__.__name__}(states={self.state_names}, parameters={self.parameter_names})"
