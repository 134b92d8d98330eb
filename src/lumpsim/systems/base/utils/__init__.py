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
System Utilities
================

Symbol declaration, validation, structural reduction and code generation
for flat models.

Declaring Symbols
-----------------
>>> from lumpsim.systems.base.utils import D, make_parameters, make_variables, t
>>> x, v = make_variables("x v")
>>> k, m = make_parameters("k m")

Reduction and Code Generation
-----------------------------
>>> from lumpsim.systems.base.utils import StructuralSimplifier, CodeGenerator
>>> reduced = StructuralSimplifier(equations, variables).simplify()
>>> f = CodeGenerator(system).generate_rhs()
"""

from .symbols import D, is_variable, make_parameters, make_variables, symbol_name, t
from .symbolic_validator import SymbolicValidator, ValidationError, ValidationResult
from .structural_simplifier import ReducedSystem, StructuralError, StructuralSimplifier
from .codegen_utils import (
    generate_jacobian_function,
    generate_matrix_function,
    generate_numpy_function,
    generate_vectorized_function,
)
from .code_generator import CodeGenerator

__all__ = [
    # Symbols
    "t",
    "D",
    "make_variables",
    "make_parameters",
    "is_variable",
    "symbol_name",
    # Validation
    "SymbolicValidator",
    "ValidationError",
    "ValidationResult",
    # Reduction
    "StructuralSimplifier",
    "StructuralError",
    "ReducedSystem",
    # Code generation
    "CodeGenerator",
    "generate_numpy_function",
    "generate_matrix_function",
    "generate_vectorized_function",
    "generate_jacobian_function",
]
