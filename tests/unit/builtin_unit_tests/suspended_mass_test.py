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
Unit tests for the SuspendedMass model

Tests cover:
1. Reduction of the seven force-balance equations to two states
2. Default and custom parameter values
3. Equilibrium position
4. Simulated response against the closed-form solution
"""

import numpy as np
import pytest
import sympy as sp
from numpy.testing import assert_allclose

from lumpsim.systems.base.numerical_integration import solve
from lumpsim.systems.base.problem import ODEProblem
from lumpsim.systems.base.utils import D
from lumpsim.systems.builtin import SuspendedMass


@pytest.fixture(scope="module")
def system():
    return SuspendedMass()


class TestStructure:
    def test_dimensions(self, system):
        assert len(system.equations) == 7
        assert system.state_names == ["x_m", "v_m"]
        assert system.nx == 2
        assert [str(p) for p in system.parameters] == ["x_m0", "g", "k", "m", "c"]

    def test_observed_variables(self, system):
        names = {str(v.func) for v in system.observed}
        assert names == {"a_m", "F_i", "F_m", "F_k", "F_c"}

    def test_reduced_dynamics(self, system):
        x_m, v_m = system.states
        x_m0, g, k, m, c = system.parameters
        assert system.rhs[0] == v_m
        expected = (k * (x_m0 - x_m) - c * v_m - m * g) / m
        assert sp.simplify(system.rhs[1] - expected) == 0

    def test_acceleration_is_velocity_derivative(self, system):
        _, v_m = system.states
        a_m = system.resolve_variable("a_m")
        assert sp.simplify(system.expression_for(a_m) - system.expression_for(D(v_m))) == 0

    def test_initial_position_follows_rest_position(self, system):
        x_m, v_m = system.states
        assert system.default_initial_conditions() == {x_m: system.parameters[0], v_m: 0.0}


class TestParameters:
    def test_defaults(self, system):
        values = {str(k): v for k, v in system.default_parameters().items()}
        assert values == {"x_m0": 1.0, "g": 9.81, "k": 1000.0, "m": 10.0, "c": 30.0}

    def test_custom_values(self):
        heavy = SuspendedMass(m_val=20.0, k_val=500.0)
        values = {str(k): v for k, v in heavy.default_parameters().items()}
        assert values["m"] == 20.0
        assert values["k"] == 500.0

    def test_non_positive_mass_rejected(self):
        with pytest.raises(ValueError, match="should be positive"):
            SuspendedMass(m_val=0.0)


class TestEquilibrium:
    def test_default(self, system):
        assert system.equilibrium_position() == pytest.approx(0.9019)

    def test_with_values(self, system):
        assert system.equilibrium_position({"m": 20.0}) == pytest.approx(1.0 - 20.0 * 9.81 / 1000.0)

    def test_equilibrium_is_fixed_point(self, system):
        problem = ODEProblem(system, tspan=(0.0, 1.0), u0=[system.equilibrium_position(), 0.0])
        assert_allclose(problem.f(0.0, problem.u0), [0.0, 0.0], atol=1e-12)


class TestResponse:
    def test_underdamped_decay(self, system):
        sol = solve(ODEProblem(system, tspan=(0.0, 5.0)), saveat=0.01, rtol=1e-10, atol=1e-12)
        x = sol["x_m"]
        x_eq = system.equilibrium_position()

        # Overshoot below equilibrium at half a damped period
        omega = np.sqrt(100.0 - 1.5**2)
        half_period = np.pi / omega
        x_half = sol(half_period)[0]
        expected = x_eq - 0.0981 * np.exp(-1.5 * half_period)
        assert x_half == pytest.approx(expected, abs=1e-3)

        assert x.max() == pytest.approx(1.0)
        assert abs(x[-1] - x_eq) < 1e-3

    def test_spring_force_at_rest(self, system):
        sol = solve(ODEProblem(system, tspan=(0.0, 5.0)), saveat=0.05)
        assert sol["F_k"][-1] == pytest.approx(98.1, rel=1e-2)
