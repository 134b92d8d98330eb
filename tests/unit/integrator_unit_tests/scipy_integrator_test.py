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
Unit tests for ScipyIntegrator

Tests cover:
1. Method validation and naming
2. Accuracy on problems with analytical solutions
3. Save grids and dense output
4. Stiff methods
"""

import numpy as np
import pytest
from numpy.testing import assert_allclose

from lumpsim.systems.base.numerical_integration.integrator_base import StepMode
from lumpsim.systems.base.numerical_integration.scipy_integrator import ScipyIntegrator


class ExponentialDecay:
    tspan = (0.0, 2.0)
    u0 = np.array([1.0])

    def f(self, t, x):
        return -x


class DampedOscillator:
    """x'' + 2ζω₀x' + ω₀²x = 0 with ω₀ = 10, ζ = 0.15"""

    tspan = (0.0, 3.0)
    u0 = np.array([1.0, 0.0])
    decay = 1.5
    omega = np.sqrt(100.0 - 1.5**2)

    def f(self, t, x):
        return np.array([x[1], -100.0 * x[0] - 3.0 * x[1]])

    def position(self, t):
        return np.exp(-self.decay * t) * (
            np.cos(self.omega * t) + self.decay / self.omega * np.sin(self.omega * t)
        )


class StiffRelaxation:
    """x' = -1000 (x - cos t); x tracks cos t + sin t / 1000 after a fast transient."""

    tspan = (0.0, 1.0)
    u0 = np.array([0.0])

    def f(self, t, x):
        return -1000.0 * (x - np.cos(t))


# ============================================================================
# Construction
# ============================================================================


class TestConstruction:
    def test_default_method(self):
        integrator = ScipyIntegrator()
        assert integrator.method == "RK45"
        assert integrator.step_mode == StepMode.ADAPTIVE

    def test_invalid_method(self):
        with pytest.raises(ValueError, match="Invalid method"):
            ScipyIntegrator(method="Tsit5")

    @pytest.mark.parametrize(
        "method, name",
        [
            ("RK45", "scipy.RK45"),
            ("DOP853", "scipy.DOP853"),
            ("Radau", "scipy.Radau (Stiff)"),
            ("BDF", "scipy.BDF (Stiff)"),
            ("LSODA", "scipy.LSODA (Auto-Stiffness)"),
        ],
    )
    def test_names(self, method, name):
        assert ScipyIntegrator(method=method).name == name

    def test_tolerances(self):
        integrator = ScipyIntegrator(rtol=1e-9, atol=1e-11)
        assert integrator.rtol == 1e-9
        assert integrator.atol == 1e-11
        assert repr(integrator) == "ScipyIntegrator(method='RK45', rtol=1.0e-09, atol=1.0e-11)"


# ============================================================================
# Integration
# ============================================================================


class TestIntegrate:
    def test_result_fields(self):
        result = ScipyIntegrator().integrate(ExponentialDecay(), saveat=0.5)
        assert result["success"]
        assert result["solver"] == "scipy.RK45"
        assert result["nfev"] > 0
        for key in ["t", "x", "message", "nsteps", "integration_time", "njev", "nlu", "status"]:
            assert key in result
        assert "sol" not in result

    def test_save_grid(self):
        result = ScipyIntegrator(rtol=1e-10, atol=1e-12).integrate(ExponentialDecay(), saveat=0.5)
        assert_allclose(result["t"], [0.0, 0.5, 1.0, 1.5, 2.0])
        assert_allclose(result["x"][:, 0], np.exp(-result["t"]), rtol=1e-8)

    def test_solver_chosen_grid(self):
        result = ScipyIntegrator().integrate(ExponentialDecay())
        assert result["t"][0] == 0.0
        assert result["t"][-1] == 2.0

    @pytest.mark.parametrize("method", ["RK45", "RK23", "DOP853", "Radau", "BDF", "LSODA"])
    def test_damped_oscillator(self, method):
        problem = DampedOscillator()
        result = ScipyIntegrator(method=method, rtol=1e-9, atol=1e-11).integrate(problem, saveat=0.1)
        assert result["x"].shape == (31, 2)
        assert_allclose(result["x"][:, 0], problem.position(result["t"]), atol=1e-5)

    def test_dense_output(self):
        problem = DampedOscillator()
        result = ScipyIntegrator(rtol=1e-10, atol=1e-12).integrate(problem, saveat=1.0, dense_output=True)
        assert result["dense_output"]
        assert_allclose(result["sol"](0.37)[0], problem.position(0.37), atol=1e-6)

    def test_stiff_problem(self):
        result = ScipyIntegrator(method="Radau", rtol=1e-8, atol=1e-10).integrate(StiffRelaxation(), saveat=0.5)
        assert result["success"]
        assert_allclose(result["x"][-1, 0], np.cos(1.0) + np.sin(1.0) / 1000.0, rtol=1e-4)

    def test_max_step_option(self):
        coarse = ScipyIntegrator().integrate(ExponentialDecay())
        fine = ScipyIntegrator(max_step=0.01).integrate(ExponentialDecay())
        assert len(fine["t"]) > len(coarse["t"])
        assert np.max(np.diff(fine["t"])) <= 0.01 + 1e-12


# ============================================================================
# Single steps
# ============================================================================


class TestStep:
    def test_step(self):
        integrator = ScipyIntegrator(rtol=1e-10, atol=1e-12)
        x = integrator.step(ExponentialDecay(), 0.0, np.array([1.0]), dt=0.5)
        assert_allclose(x, [np.exp(-0.5)], rtol=1e-8)

    def test_step_uses_default_dt(self):
        integrator = ScipyIntegrator(dt=0.1, rtol=1e-10, atol=1e-12)
        x = integrator.step(ExponentialDecay(), 0.0, np.array([1.0]))
        assert_allclose(x, [np.exp(-0.1)], rtol=1e-8)

    def test_stats_accumulate(self):
        integrator = ScipyIntegrator()
        integrator.integrate(ExponentialDecay())
        first = integrator.get_stats()["total_fev"]
        integrator.integrate(ExponentialDecay())
        assert integrator.get_stats()["total_fev"] == 2 * first
