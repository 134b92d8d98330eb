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
Unit tests for CodeGenerator

Tests cover:
1. RHS generation and caching
2. RHS Jacobians against hand-derived values
3. Observed variables over a time grid
4. Parameter-only functions (initial conditions)
5. Compilation status and cache reset
"""

import numpy as np
import pytest
from numpy.testing import assert_allclose

from lumpsim.systems.base.utils.code_generator import CodeGenerator
from lumpsim.systems.builtin import SuspendedMass

# Parameter order: x_m0, g, k, m, c
P = np.array([1.0, 9.81, 1000.0, 10.0, 30.0])


@pytest.fixture
def system():
    return SuspendedMass()


@pytest.fixture
def code_gen(system):
    return CodeGenerator(system)


class TestRHS:
    def test_rhs_at_rest_position(self, code_gen):
        f = code_gen.generate_rhs()
        assert_allclose(f(0.0, np.array([1.0, 0.0]), P), [0.0, -9.81])

    def test_rhs_general_point(self, code_gen):
        f = code_gen.generate_rhs()
        x = np.array([0.9, 0.5])
        expected_accel = (1000.0 * (1.0 - 0.9) - 30.0 * 0.5 - 10.0 * 9.81) / 10.0
        assert_allclose(f(0.0, x, P), [0.5, expected_accel])

    def test_rhs_is_cached(self, code_gen):
        assert code_gen.generate_rhs() is code_gen.generate_rhs()

    def test_parameters_are_not_baked_in(self, code_gen):
        f = code_gen.generate_rhs()
        p = P.copy()
        p[1] = 0.0  # no gravity
        assert_allclose(f(0.0, np.array([1.0, 0.0]), p), [0.0, 0.0])


class TestJacobians:
    def test_state_jacobian(self, code_gen):
        fx, _ = code_gen.generate_rhs_jacobians()
        assert_allclose(fx(0.0, np.array([0.9, 0.5]), P), [[0.0, 1.0], [-100.0, -3.0]])

    def test_parameter_jacobian(self, code_gen):
        _, fp = code_gen.generate_rhs_jacobians()
        J = fp(0.0, np.array([0.9, 0.5]), P)
        assert J.shape == (2, 5)
        assert_allclose(J[0], np.zeros(5))
        # d(accel)/d[x_m0, g, k, m, c]
        assert_allclose(J[1], [100.0, -1.0, 0.01, -0.85, -0.05], atol=1e-12)

    def test_jacobians_cached(self, code_gen):
        assert code_gen.generate_rhs_jacobians()[0] is code_gen.generate_rhs_jacobians()[0]


class TestObserved:
    def test_default_observed_are_algebraic(self, system, code_gen):
        h = code_gen.generate_observed()
        t = np.linspace(0.0, 1.0, 4)
        X = np.vstack([np.ones(4), np.zeros(4)])
        values = h(t, X, P)

        assert values.shape == (len(system.algebraic), 4)
        names = [s.func.__name__ for s in system.algebraic]
        by_name = dict(zip(names, values))
        assert_allclose(by_name["a_m"], -9.81)
        assert_allclose(by_name["F_m"], 98.1)
        assert_allclose(by_name["F_k"], 0.0)
        assert_allclose(by_name["F_c"], 0.0)
        assert_allclose(by_name["F_i"], -98.1)

    def test_states_map_to_themselves(self, system, code_gen):
        h = code_gen.generate_observed(system.states)
        X = np.array([[1.0, 2.0], [3.0, 4.0]])
        assert_allclose(h(np.zeros(2), X, P), X)

    def test_observed_cached_per_variable_set(self, system, code_gen):
        F_k = system.resolve_variable("F_k")
        F_c = system.resolve_variable("F_c")
        h1 = code_gen.generate_observed([F_k])
        assert code_gen.generate_observed([F_k]) is h1
        assert code_gen.generate_observed([F_k, F_c]) is not h1

    def test_observed_jacobians(self, system, code_gen):
        F_k = system.resolve_variable("F_k")
        hx, hp = code_gen.generate_observed_jacobians([F_k])
        x = np.array([0.9, 0.0])
        assert_allclose(hx(0.0, x, P), [[-1000.0, 0.0]])
        assert_allclose(hp(0.0, x, P), [[1000.0, 0.0, 0.1, 0.0, 0.0]], atol=1e-12)


class TestParameterFunctions:
    def test_parameter_function(self, system, code_gen):
        x_m0, g = system.parameters[:2]
        f = code_gen.generate_parameter_function([2 * x_m0, g])
        assert_allclose(f(P), [2.0, 9.81])

    def test_parameter_jacobian(self, system, code_gen):
        x_m0 = system.parameters[0]
        f = code_gen.generate_parameter_jacobian([x_m0, 0])
        assert_allclose(f(P), [[1.0, 0.0, 0.0, 0.0, 0.0], [0.0] * 5])

    def test_parameter_jacobian_of_nothing(self, code_gen):
        assert code_gen.generate_parameter_jacobian([])(P).shape == (0, 5)


class TestCompilation:
    def test_nothing_compiled_initially(self, code_gen):
        assert code_gen.is_compiled() == {"f": False, "h": False, "jacobians": False}

    def test_compile_all(self, code_gen):
        timings = code_gen.compile_all(include_jacobians=True)
        assert set(timings) == {"f", "h", "jacobians"}
        assert all(code_gen.is_compiled().values())

    def test_compile_verbose_prints(self, code_gen, capsys):
        code_gen.compile_all(verbose=True)
        out = capsys.readouterr().out
        assert "f:" in out and "h:" in out

    def test_reset_cache(self, code_gen):
        code_gen.compile_all(include_jacobians=True)
        code_gen.reset_cache()
        assert not any(code_gen.is_compiled().values())

    def test_info_and_repr(self, code_gen):
        code_gen.generate_rhs()
        info = code_gen.get_info()
        assert info["nx"] == 2
        assert info["np"] == 5
        assert "SuspendedMass" in repr(code_gen)
        assert str(code_gen) == "CodeGenerator(1/3 function groups compiled)"
