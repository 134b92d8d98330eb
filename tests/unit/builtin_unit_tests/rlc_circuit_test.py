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
Unit tests for the RLCCircuit model

The capacitor voltage after switching follows

    v_C(τ) = V·[1 - e^(-στ)·(cos ωτ + σ/ω · sin ωτ)],   τ = t - t_on

with σ = 1/(2RC) = 5 s⁻¹ and ω = √(1/(LC) - σ²).
"""

import numpy as np
import pytest
from numpy.testing import assert_allclose

from lumpsim.systems.base.numerical_integration import solve
from lumpsim.systems.base.problem import ODEProblem
from lumpsim.systems.builtin import RLCCircuit

SIGMA = 5.0
OMEGA = np.sqrt(1000.0 - SIGMA**2)


def capacitor_voltage(t, V=32.0, t_on=1.0):
    tau = np.clip(np.asarray(t) - t_on, 0.0, None)
    return V * (1.0 - np.exp(-SIGMA * tau) * (np.cos(OMEGA * tau) + SIGMA / OMEGA * np.sin(OMEGA * tau)))


@pytest.fixture(scope="module")
def circuit():
    return RLCCircuit()


@pytest.fixture(scope="module")
def sol(circuit):
    problem = ODEProblem(circuit, tspan=(0.5, 2.5))
    return solve(problem, saveat=0.005, rtol=1e-8, atol=1e-10, max_step=0.01)


class TestStructure:
    def test_states(self, circuit):
        assert circuit.state_names == ["i_L", "v_C"]
        assert circuit.n_params == 3
        assert len(circuit.observed) == 5

    def test_source_parameters(self, circuit):
        assert circuit.V == 32.0
        assert circuit.t_on == 1.0
        assert circuit.parameter_names == ["R", "L", "C"]

    def test_source_is_piecewise_in_time(self, circuit):
        source = circuit.expression_for("ΔV")
        assert source.subs(circuit.t, 0.5) == 0
        assert source.subs(circuit.t, 1.5) == 32

    def test_zero_initial_state(self, circuit):
        problem = ODEProblem(circuit, tspan=(0.5, 2.5))
        assert_allclose(problem.u0, [0.0, 0.0])

    def test_custom_source(self):
        circuit = RLCCircuit(V=5.0, t_on=0.0)
        assert circuit.expression_for("ΔV").subs(circuit.t, 0.1) == 5


class TestResponse:
    def test_grid(self, sol):
        assert sol.success
        assert len(sol) == 401
        assert sol.t[0] == 0.5

    def test_quiet_before_switching(self, sol):
        before = sol.t <= 1.0
        assert_allclose(sol["v_C"][before], 0.0, atol=1e-4)
        assert_allclose(sol["ΔV"][before], 0.0)

    def test_source_after_switching(self, sol):
        assert_allclose(sol["ΔV"][sol.t > 1.0], 32.0)

    def test_capacitor_voltage(self, sol):
        assert_allclose(sol["v_C"], capacitor_voltage(sol.t), atol=1e-3)

    def test_settles(self, sol):
        assert sol["v_C"][-1] == pytest.approx(32.0, abs=0.05)
        assert sol["i_L"][-1] == pytest.approx(0.32, abs=0.005)
        assert sol["i_R"][-1] == pytest.approx(0.32, abs=0.005)

    def test_kirchhoff_laws(self, sol):
        i_L, i_R, i_C = sol[["i_L", "i_R", "i_C"]]
        dV, v_L, v_R, v_C = sol[["ΔV", "v_L", "v_R", "v_C"]]
        assert_allclose(i_L, i_R + i_C, atol=1e-9)
        assert_allclose(dV - v_L, v_R, atol=1e-9)
        assert_allclose(v_R, v_C)
        assert_allclose(v_R, 100.0 * i_R, atol=1e-9)
