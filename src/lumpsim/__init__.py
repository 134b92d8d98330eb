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
lumpsim: lumped-parameter simulation and calibration.

Declare a flat model of algebraic and differential equations, reduce it to
an explicit ODE, simulate it, and fit its parameters to data.

>>> from lumpsim import SuspendedMass, ODEProblem, solve
>>> problem = ODEProblem(SuspendedMass(), tspan=(0.0, 5.0))
>>> sol = solve(problem, saveat=0.02)
>>> sol[["F_k", "F_c"]].shape
(2, 251)
"""

__version__ = "0.1.0"

from lumpsim.systems import (
    FlatSystem,
    ODEProblem,
    ODESolution,
    RLCCircuit,
    SuspendedMass,
    param_names_values,
    solve,
)
from lumpsim.systems.base.numerical_integration import IntegrationError, IntegratorFactory
from lumpsim.systems.base.utils import D, StructuralError, ValidationError, make_parameters, make_variables, t
from lumpsim.calibration import Calibrator, add_gaussian_noise
from lumpsim.logging_config import setup_logging

__all__ = [
    "__version__",
    "FlatSystem",
    "ODEProblem",
    "ODESolution",
    "solve",
    "param_names_values",
    "SuspendedMass",
    "RLCCircuit",
    "IntegratorFactory",
    "IntegrationError",
    "StructuralError",
    "ValidationError",
    "D",
    "t",
    "make_variables",
    "make_parameters",
    "Calibrator",
    "add_gaussian_noise",
    "setup_logging",
]
