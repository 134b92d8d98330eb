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
Base classes for flat models, numeric problems and their solutions.

>>> from lumpsim.systems.base import FlatSystem, ODEProblem, solve
"""

from .core import FlatSystem
from .problem import ODEProblem, param_names_values
from .solution import ODESolution
from .numerical_integration import IntegrationError, IntegratorFactory, solve
from .utils import (
    D,
    StructuralError,
    ValidationError,
    make_parameters,
    make_variables,
    t,
)

__all__ = [
    "FlatSystem",
    "ODEProblem",
    "ODESolution",
    "param_names_values",
    "solve",
    "IntegratorFactory",
    "IntegrationError",
    "StructuralError",
    "ValidationError",
    "D",
    "t",
    "make_variables",
    "make_parameters",
]
