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
Core Types for Lumped-Parameter Models

Fundamental type aliases shared across the library:
- Numeric arrays and scalars
- State and parameter vectors
- Symbolic variables and parameters
- Mappings from symbols (or their names) to values

Conventions
-----------
- Variables are SymPy applied functions of time, e.g. ``x(t)``
- Parameters are plain SymPy symbols, e.g. ``k``
- Every public mapping is keyed by the SymPy object; string keys are
  accepted on input and resolved by name

Usage
-----
>>> from lumpsim.types.core import StateVector, ParameterMap
>>>
>>> x0: StateVector = np.array([1.0, 0.0])
>>> p: ParameterMap = {"k": 1000.0, "m": 10.0}
"""

from typing import Callable, Dict, Sequence, Union

import numpy as np
import sympy as sp

# ============================================================================
# Numeric Types
# ============================================================================

ArrayLike = Union[np.ndarray, Sequence[float]]
"""
Array-like numeric input.

Anything ``np.asarray`` turns into a float array: NumPy arrays, lists and
tuples of numbers.
"""

ScalarLike = Union[float, int, np.number]
"""
Scalar numeric value.

Examples
--------
>>> dt: ScalarLike = 0.02
>>> k: ScalarLike = np.float64(1000.0)
"""

StateVector = np.ndarray
"""
State vector (nx,).

Ordered as ``system.states``, the variables that survive structural
simplification.

Examples
--------
>>> x0: StateVector = np.array([1.0, 0.0])  # [x_m, v_m]
"""

ParameterVector = np.ndarray
"""
Numeric parameter vector (np,).

Ordered as ``system.parameters``. Tunable sub-vectors are ordered as
``problem.tunables``.

Examples
--------
>>> p: ParameterVector = problem.parameter_values()
>>> p.shape
(5,)
"""

# ============================================================================
# Symbolic Types
# ============================================================================

SymbolicVariable = sp.Expr
"""
Time-dependent model variable, a SymPy applied function such as ``x(t)``.
"""

SymbolicParameter = sp.Symbol
"""
Model parameter symbol such as ``k``.
"""

SymbolKey = Union[sp.Basic, str]
"""
Key accepted on input mappings: the SymPy object itself or its name.
"""

ParameterMap = Dict[SymbolKey, Union[ScalarLike, sp.Expr]]
"""
Mapping from parameters to values.

Examples
--------
>>> p: ParameterMap = {k: 1000.0, "m": 10.0}
"""

VariableMap = Dict[SymbolKey, Union[ScalarLike, sp.Expr]]
"""
Mapping from variables to initial values.

Values may be numbers or expressions of parameters:

>>> u0: VariableMap = {x_m: x_m0, v_m: 0.0}
"""

# ============================================================================
# Function Types
# ============================================================================

RHSFunction = Callable[[float, np.ndarray, np.ndarray], np.ndarray]
"""
Compiled right-hand side: (t, x, p) → dx/dt with shape (nx,).
"""

ObservedFunction = Callable[[float, np.ndarray, np.ndarray], np.ndarray]
"""
Compiled observed-variable function over a time grid: (t, X, p) → values
with shape (n_obs, T).
"""

JacobianFunction = Callable[[float, np.ndarray, np.ndarray], np.ndarray]
"""
Compiled Jacobian: (t, x, p) → matrix with shape (n_out, n_in).
"""

__all__ = [
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
]
