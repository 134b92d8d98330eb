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
Structural Simplifier

Reduces a flat system of algebraic/differential equations to an explicit
first-order ODE plus observed variables.

Classification
--------------
- states: variables appearing inside a first-order time derivative D(x)
- unknowns: D(x) for every state, plus every other (algebraic) variable

The equations are solved for the unknowns, treating states, parameters and
``t`` as known. Linear systems (the usual case for lumped networks) go
through a Gauss-Jordan solve; anything else falls back to ``sympy.solve``.

Example
-------
>>> x, v = make_variables("x v")
>>> k, = make_parameters("k")
>>> reduced = StructuralSimplifier([sp.Eq(D(x), v), sp.Eq(D(v), -k * x)], [x, v]).simplify()
>>> reduced.rhs
Matrix([[v(t)], [-k*x(t)]])
"""

import logging
import warnings
from dataclasses import dataclass, field
from typing import Dict, List, Sequence

import sympy as sp
from sympy.solvers.solveset import NonlinearError

from lumpsim.systems.base.utils.symbols import is_variable, t

logger = logging.getLogger(__name__)


class StructuralError(ValueError):
    """Raised when a flat system cannot be reduced to an explicit ODE"""
    pass


@dataclass
class ReducedSystem:
    """
    Explicit form of a flat system.

    Attributes
    ----------
    states : List[sp.Expr]
        Differentiated variables, in declaration order
    algebraic : List[sp.Expr]
        Remaining variables, in declaration order
    rhs : sp.Matrix
        Column vector of D(state) expressions in t, states and parameters
    observed : Dict[sp.Expr, sp.Expr]
        Algebraic variable → expression in t, states and parameters
    derivatives : Dict[sp.Expr, sp.Expr]
        D(state) → expression (same content as ``rhs``, keyed by derivative)
    """
    states: List[sp.Expr]
    algebraic: List[sp.Expr]
    rhs: sp.Matrix
    observed: Dict[sp.Expr, sp.Expr] = field(default_factory=dict)
    derivatives: Dict[sp.Expr, sp.Expr] = field(default_factory=dict)


class StructuralSimplifier:
    """
    Solves flat equations for state derivatives and algebraic variables.

    Args:
        equations: List of ``sp.Eq``
        variables: Declared variables x(t), defines the ordering
        simplify: Run ``sp.simplify`` on every resulting expression
    """

    def __init__(
        self,
        equations: Sequence[sp.Equality],
        variables: Sequence[sp.Expr],
        simplify: bool = False,
    ):
        self.equations = list(equations)
        self.variables = list(variables)
        self.simplify_expressions = simplify

    def classify(self):
        """
        Split variables into states and algebraic variables.

        Returns:
            (states, algebraic) lists in declaration order

        Raises:
            StructuralError: on higher-order or non-time derivatives, or
                derivatives of expressions that are not declared variables
        """
        differentiated = set()
        for eq in self.equations:
            for derivative in eq.atoms(sp.Derivative):
                if derivative.variables != (t,):
                    raise StructuralError(
                        f"Only first-order time derivatives are supported, got {derivative}"
                    )
                if not is_variable(derivative.expr) or derivative.expr not in self.variables:
                    raise StructuralError(
                        f"Derivative of undeclared or composite expression: {derivative}"
                    )
                differentiated.add(derivative.expr)

        states = [v for v in self.variables if v in differentiated]
        algebraic = [v for v in self.variables if v not in differentiated]
        return states, algebraic

    def simplify(self) -> ReducedSystem:
        """
        Reduce the equations to explicit form.

        Returns:
            ReducedSystem

        Raises:
            StructuralError: if the equation count does not match the number
                of unknowns, or the system is singular or unsolvable
        """
        states, algebraic = self.classify()

        if not states:
            raise StructuralError("System has no differential equations (no D(x) terms)")

        derivative_keys = [sp.Derivative(s, t) for s in states]
        unknown_keys = derivative_keys + algebraic

        if len(self.equations) != len(unknown_keys):
            raise StructuralError(
                f"System has {len(self.equations)} equations for {len(unknown_keys)} "
                f"unknowns ({', '.join(str(u) for u in unknown_keys)})"
            )

        # Derivatives first: D(x) contains x(t) and would be rewritten otherwise
        derivative_dummies = {d: sp.Dummy(f"D_{s.func.__name__}") for d, s in zip(derivative_keys, states)}
        variable_dummies = {v: sp.Dummy(v.func.__name__) for v in self.variables}

        residuals = [
            (eq.lhs - eq.rhs).xreplace(derivative_dummies).xreplace(variable_dummies)
            for eq in self.equations
        ]
        unknowns = [derivative_dummies[d] for d in derivative_keys]
        unknowns += [variable_dummies[v] for v in algebraic]

        solution = self._solve(residuals, unknowns)

        back = {dummy: var for var, dummy in variable_dummies.items()}

        def restore(expr):
            expr = expr.xreplace(back)
            if self.simplify_expressions:
                expr = sp.simplify(expr)
            return expr

        derivatives = {d: restore(solution[derivative_dummies[d]]) for d in derivative_keys}
        observed = {v: restore(solution[variable_dummies[v]]) for v in algebraic}

        logger.debug(
            "Reduced %d equations to %d states and %d observed variables",
            len(self.equations),
            len(states),
            len(algebraic),
        )

        return ReducedSystem(
            states=states,
            algebraic=algebraic,
            rhs=sp.Matrix([derivatives[d] for d in derivative_keys]),
            observed=observed,
            derivatives=derivatives,
        )

    def _solve(self, residuals: List[sp.Expr], unknowns: List[sp.Symbol]) -> Dict[sp.Symbol, sp.Expr]:
        try:
            A, b = sp.linear_eq_to_matrix(residuals, unknowns)
        except NonlinearError:
            return self._solve_nonlinear(residuals, unknowns)

        try:
            solution, free = A.gauss_jordan_solve(b)
        except ValueError as e:
            raise StructuralError(f"Equations are inconsistent: {e}") from e

        if free.shape[0] > 0:
            raise StructuralError(
                "Equations are singular: some unknowns are not determined "
                "(check for redundant equations)"
            )

        return dict(zip(unknowns, solution))

    def _solve_nonlinear(self, residuals: List[sp.Expr], unknowns: List[sp.Symbol]) -> Dict[sp.Symbol, sp.Expr]:
        logger.debug("Equations are nonlinear in the unknowns, using sympy.solve")
        solutions = sp.solve(residuals, unknowns, dict=True)

        if not solutions:
            raise StructuralError("sympy.solve found no solution for the unknowns")

        if len(solutions) > 1:
            warnings.warn(
                f"Equations have {len(solutions)} solution branches; using the first",
                UserWarning,
            )

        solution = solutions[0]
        missing = [u for u in unknowns if u not in solution]
        if missing:
            raise StructuralError(
                f"Equations are singular: {len(missing)} unknowns are not determined"
            )
        return solution

    def __repr__(self) -> str:
        return (
            f"StructuralSimplifier(equations={len(self.equations)}, "
            f"variables={len(self.variables)})"
        )
