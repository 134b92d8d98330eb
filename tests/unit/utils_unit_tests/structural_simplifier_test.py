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
Unit tests for StructuralSimplifier

Tests cover:
1. Classification into states and algebraic variables
2. Linear reduction (oscillator, force balance, RLC network)
3. Nonlinear fallback through sympy.solve
4. Structural errors (no derivatives, count mismatch, singular, inconsistent)
"""

import pytest
import sympy as sp

from lumpsim.systems.base.utils.structural_simplifier import (
    ReducedSystem,
    StructuralError,
    StructuralSimplifier,
)
from lumpsim.systems.base.utils.symbols import D, make_parameters, make_variables, t


def assert_expr_equal(actual, expected):
    assert sp.simplify(actual - expected) == 0, f"{actual} != {expected}"


# ============================================================================
# Classification
# ============================================================================


class TestClassification:
    def test_states_in_declaration_order(self):
        a, x, b, v = make_variables("a x b v")
        eqs = [sp.Eq(D(v), a), sp.Eq(D(x), v), sp.Eq(a, -x), sp.Eq(b, 2 * v)]
        states, algebraic = StructuralSimplifier(eqs, [a, x, b, v]).classify()
        assert states == [x, v]
        assert algebraic == [a, b]

    def test_higher_order_derivative_rejected(self):
        (x,) = make_variables("x")
        eqs = [sp.Eq(sp.Derivative(x, (t, 2)), -x)]
        with pytest.raises(StructuralError, match="first-order"):
            StructuralSimplifier(eqs, [x]).classify()

    def test_derivative_of_undeclared_variable(self):
        x, y = make_variables("x y")
        eqs = [sp.Eq(D(y), -x)]
        with pytest.raises(StructuralError, match="undeclared or composite"):
            StructuralSimplifier(eqs, [x]).classify()


# ============================================================================
# Linear reduction
# ============================================================================


class TestLinearReduction:
    def test_oscillator(self):
        x, v = make_variables("x v")
        (k,) = make_parameters("k")
        reduced = StructuralSimplifier([sp.Eq(D(x), v), sp.Eq(D(v), -k * x)], [x, v]).simplify()

        assert isinstance(reduced, ReducedSystem)
        assert reduced.states == [x, v]
        assert reduced.algebraic == []
        assert reduced.rhs.shape == (2, 1)
        assert_expr_equal(reduced.rhs[0], v)
        assert_expr_equal(reduced.rhs[1], -k * x)

    def test_force_balance(self):
        x_m, v_m, a_m, F_i, F_m, F_k, F_c = make_variables("x_m v_m a_m F_i F_m F_k F_c")
        x_m0, g, k, m, c = make_parameters("x_m0 g k m c")
        eqs = [
            sp.Eq(F_i, F_k - F_c - F_m),
            sp.Eq(F_i, m * a_m),
            sp.Eq(F_m, m * g),
            sp.Eq(F_c, c * v_m),
            sp.Eq(F_k, k * (x_m0 - x_m)),
            sp.Eq(v_m, D(x_m)),
            sp.Eq(a_m, D(v_m)),
        ]
        reduced = StructuralSimplifier(eqs, [x_m, v_m, a_m, F_i, F_m, F_k, F_c]).simplify()

        assert reduced.states == [x_m, v_m]
        assert reduced.algebraic == [a_m, F_i, F_m, F_k, F_c]

        accel = (k * (x_m0 - x_m) - c * v_m - m * g) / m
        assert_expr_equal(reduced.rhs[0], v_m)
        assert_expr_equal(reduced.rhs[1], accel)
        assert_expr_equal(reduced.derivatives[D(v_m)], accel)
        assert_expr_equal(reduced.observed[a_m], accel)
        assert_expr_equal(reduced.observed[F_k], k * (x_m0 - x_m))
        assert_expr_equal(reduced.observed[F_i], m * accel)

    def test_rlc_network(self):
        dV, v_L, i_L, v_R, i_R, v_C, i_C = make_variables("dV v_L i_L v_R i_R v_C i_C")
        R, L, C = make_parameters("R L C")
        source = sp.Piecewise((0, t <= 1), (32, True))
        eqs = [
            sp.Eq(dV, source),
            sp.Eq(i_L, i_R + i_C),
            sp.Eq(dV - v_L, v_R),
            sp.Eq(v_R, v_C),
            sp.Eq(v_R, i_R * R),
            sp.Eq(v_L, L * D(i_L)),
            sp.Eq(i_C, C * D(v_C)),
        ]
        reduced = StructuralSimplifier(eqs, [dV, v_L, i_L, v_R, i_R, v_C, i_C]).simplify()

        assert reduced.states == [i_L, v_C]
        # Compare on both sides of the switching time
        for t_val in (0.5, 2.0):
            assert_expr_equal(reduced.rhs[0].subs(t, t_val), ((source - v_C) / L).subs(t, t_val))
        assert_expr_equal(reduced.rhs[1], (i_L - v_C / R) / C)
        assert_expr_equal(reduced.observed[i_R], v_C / R)

    def test_simplify_option(self):
        x, y = make_variables("x y")
        (k,) = make_parameters("k")
        eqs = [sp.Eq(D(x), y), sp.Eq(y, k * x + k * x)]
        reduced = StructuralSimplifier(eqs, [x, y], simplify=True).simplify()
        assert reduced.rhs[0] == 2 * k * x


# ============================================================================
# Nonlinear reduction
# ============================================================================


class TestNonlinearReduction:
    def test_exponential_relation(self):
        x, y = make_variables("x y")
        eqs = [sp.Eq(D(x), y), sp.Eq(sp.exp(y), x)]
        reduced = StructuralSimplifier(eqs, [x, y]).simplify()
        assert_expr_equal(reduced.observed[y], sp.log(x))
        assert_expr_equal(reduced.rhs[0], sp.log(x))


# ============================================================================
# Errors
# ============================================================================


class TestStructuralErrors:
    def test_no_differential_equations(self):
        (x,) = make_variables("x")
        with pytest.raises(StructuralError, match="no differential equations"):
            StructuralSimplifier([sp.Eq(x, 1)], [x]).simplify()

    def test_equation_count_mismatch(self):
        x, v = make_variables("x v")
        with pytest.raises(StructuralError, match="1 equations for 2 unknowns"):
            StructuralSimplifier([sp.Eq(D(x), v)], [x, v]).simplify()

    def test_singular_system(self):
        x, y, z = make_variables("x y z")
        eqs = [sp.Eq(D(x), y + z), sp.Eq(y + z, 1), sp.Eq(2 * y + 2 * z, 2)]
        with pytest.raises(StructuralError, match="singular"):
            StructuralSimplifier(eqs, [x, y, z]).simplify()

    def test_inconsistent_system(self):
        x, y, z = make_variables("x y z")
        eqs = [sp.Eq(D(x), y + z), sp.Eq(y + z, 1), sp.Eq(y + z, 2)]
        with pytest.raises(StructuralError, match="inconsistent"):
            StructuralSimplifier(eqs, [x, y, z]).simplify()

    def test_structural_error_is_value_error(self):
        assert issubclass(StructuralError, ValueError)

    def test_repr(self):
        x, v = make_variables("x v")
        simplifier = StructuralSimplifier([sp.Eq(D(x), v), sp.Eq(D(v), -x)], [x, v])
        assert repr(simplifier) == "StructuralSimplifier(equations=2, variables=2)"
