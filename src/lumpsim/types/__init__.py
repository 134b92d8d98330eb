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
Centralized Type System

>>> from lumpsim.types import StateVector, IntegrationResult, CalibrationResult

Module Organization
------------------
- core: Basic arrays, vectors, symbolic keys, compiled function signatures
- trajectories: Time grids and integration results
- calibration: Calibration and oscillator analysis results
"""

from .core import (
    ArrayLike,
    JacobianFunction,
    ObservedFunction,
    ParameterMap,
    ParameterVector,
    RHSFunction,
    ScalarLike,
    StateVector,
    SymbolKey,
    SymbolicParameter,
    SymbolicVariable,
    VariableMap,
)
from .trajectories import (
    IntegrationResult,
    SaveAt,
    StateTrajectory,
    TimePoints,
    TimeSpan,
)
from .calibration import (
    CalibrationResult,
    CalibrationState,
    OscillatorCharacteristics,
    ParameterComparison,
)

__all__ = [
    # Core
    "ArrayLike",
    "ScalarLike",
    "StateVector",
    "ParameterVector",
    "SymbolicVariable",
    "SymbolicParameter",
    "SymbolKey",
    "ParameterMap",
    "VariableMap",
    "RHSFunction",
    "ObservedFunction",
    "JacobianFunction",
    # Trajectories
    "TimePoints",
    "TimeSpan",
    "SaveAt",
    "StateTrajectory",
    "IntegrationResult",
    # Calibration
    "CalibrationState",
    "CalibrationResult",
    "OscillatorCharacteristics",
    "ParameterComparison",
]
