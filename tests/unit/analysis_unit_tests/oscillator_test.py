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

"""Unit tests for oscillator invariants"""

import numpy as np
import pytest
import sympy as sp

from lumpsim.analysis.oscillator import harmonic_oscillator_parameters, oscillator_characteristics
from lumpsim.systems.base.problem import ODEProblem, param_names_values
from lumpsim.systems.builtin import SuspendedMass

DEFAULTS = {"x_m0": 1.0, "g": 9.81, "k": 1000.0, "m": 10.0, "c": 30.0}


class TestHarmonicOscillatorParameters:
    def test_defaults(self):
        w, w0, zeta = harmonic_oscillator_parameters(DEFAULTS)
        assert w0 == pytest.approx(10.0)
        assert zeta == pytest.approx(0.15)
        assert w == pytest.approx(10.0 * np.sqrt(1 - 0.15**2))

    def test_damped_frequency_uses_decay_rate(self):
        w, w0, zeta = harmonic_oscillator_parameters(DEFAULTS)
        decay = 30.0 / (2 * 10.0)
        assert w**2 == pytest.approx(w0**2 - decay**2)
        assert w == pytest.approx(np.sqrt(97.75))
        assert w != pytest.approx(np.sqrt(w0**2 - zeta**2), rel=1e-3)

    def test_symbol_keys(self):
        m, k, c = sp.symbols("m k c", real=True)
        w, w0, zeta = harmonic_oscillator_parameters({m: 2.0, k: 8.0, c: 0.0})
        assert w0 == pytest.approx(2.0)
        assert zeta == 0.0
        assert w == pytest.approx(2.0)

    def test_scaling_invariance(self):
        # Scaling m, k and c together leaves the free response unchanged
        base = harmonic_oscillator_parameters({"m": 10.0, "k": 1000.0, "c": 30.0})
        scaled = harmonic_oscillator_parameters({"m": 30.0, "k": 3000.0, "c": 90.0})
        assert scaled == pytest.approx(base)

    def test_overdamped_has_no_damped_frequency(self):
        w, _, zeta = harmonic_oscillator_parameters({"m": 1.0, "k": 1.0, "c": 3.0})
        assert zeta == pytest.approx(1.5)
        assert np.isnan(w)

    def test_missing_parameter(self):
        with pytest.raises(ValueError, match=r"Missing oscillator parameters \['c'\]"):
            harmonic_oscillator_parameters({"m": 1.0, "k": 1.0})

    def test_non_positive_mass(self):
        with pytest.raises(ValueError, match="must be positive"):
            harmonic_oscillator_parameters({"m": 0.0, "k": 1.0, "c": 1.0})


class TestOscillatorCharacteristics:
    def test_defaults(self):
        chars = oscillator_characteristics(DEFAULTS)
        assert chars["natural_frequency"] == pytest.approx(10.0)
        assert chars["damping_ratio"] == pytest.approx(0.15)
        assert chars["damped_frequency"] == pytest.approx(9.8869, abs=1e-4)
        assert chars["decay_rate"] == pytest.approx(1.5)
        assert chars["static_deflection"] == pytest.approx(0.0981)

    def test_from_problem(self):
        problem = ODEProblem(SuspendedMass(), tspan=(0.0, 1.0))
        chars = oscillator_characteristics(param_names_values(problem))
        assert chars["decay_rate"] == pytest.approx(1.5)

    def test_without_gravity(self):
        chars = oscillator_characteristics({"m": 10.0, "k": 1000.0, "c": 30.0})
        assert np.isnan(chars["static_deflection"])
