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
Unit tests for the low-level SymPy → NumPy code generation helpers.
"""

import numpy as np
import pytest
import sympy as sp
from numpy.testing import assert_allclose

from lumpsim.systems.base.utils.codegen_utils import (
    generate_jacobian_function,
    generate_matrix_function,
    generate_numpy_function,
    generate_vectorized_function,
)


@pytest.fixture
def xy():
    return sp.symbols("x y")


class TestGenerateNumpyFunction:
    def test_vector_output(self, xy):
        x, y = xy
        f = generate_numpy_function([x + y, x * y], [x, y])
        result = f(2.0, 3.0)
        assert result.shape == (2,)
        assert_allclose(result, [5.0, 6.0])

    def test_scalar_expression_returns_1d(self, xy):
        x, y = xy
        f = generate_numpy_function(x**2, [x, y])
        assert f(3.0, 0.0).shape == (1,)
        assert_allclose(f(3.0, 0.0), [9.0])

    def test_matrix_input(self, xy):
        x, y = xy
        f = generate_numpy_function(sp.Matrix([x, -y]), [x, y])
        assert_allclose(f(1.0, 2.0), [1.0, -2.0])

    def test_constant_expression(self, xy):
        x, y = xy
        f = generate_numpy_function([sp.Integer(0), x], [x, y])
        assert_allclose(f(4.0, 1.0), [0.0, 4.0])

    def test_min_max(self, xy):
        x, y = xy
        f = generate_numpy_function([sp.Min(x, y, 1), sp.Max(x, y)], [x, y])
        assert_allclose(f(2.0, 0.5), [0.5, 2.0])


class TestGenerateMatrixFunction:
    def test_matrix_shape(self, xy):
        x, y = xy
        f = generate_matrix_function(sp.Matrix([[x, 1], [0, y]]), [x, y])
        assert_allclose(f(2.0, 3.0), [[2.0, 1.0], [0.0, 3.0]])

    def test_empty_matrix(self, xy):
        x, y = xy
        f = generate_matrix_function(sp.zeros(2, 0), [x, y])
        assert f(1.0, 2.0).shape == (2, 0)


class TestGenerateVectorizedFunction:
    def test_broadcasts_constants(self):
        t, m = sp.symbols("t m")
        f = generate_vectorized_function([m * t, m], [t, m])
        result = f(np.array([0.0, 1.0, 2.0]), 2.0)
        assert result.shape == (2, 3)
        assert_allclose(result, [[0.0, 2.0, 4.0], [2.0, 2.0, 2.0]])

    def test_piecewise_over_grid(self):
        t = sp.Symbol("t", real=True)
        f = generate_vectorized_function([sp.Piecewise((0, t <= 1), (32, True))], [t])
        assert_allclose(f(np.array([0.0, 1.0, 1.5, 2.0])), [[0.0, 0.0, 32.0, 32.0]])

    def test_empty_expression_list(self):
        t = sp.Symbol("t")
        f = generate_vectorized_function([], [t])
        assert f(np.zeros(4)).shape == (0, 4)


class TestGenerateJacobianFunction:
    def test_jacobian_values(self, xy):
        x, y = xy
        f = generate_jacobian_function([x * y, x + y**2], [x, y], [x, y])
        assert_allclose(f(2.0, 3.0), [[3.0, 2.0], [1.0, 6.0]])

    def test_partial_jacobian(self, xy):
        x, y = xy
        f = generate_jacobian_function([x * y, x + y], [x, y], [x])
        assert_allclose(f(2.0, 3.0), [[3.0], [1.0]])

    def test_no_wrt_symbols(self, xy):
        x, y = xy
        f = generate_jacobian_function([x * y, x + y], [x, y], [])
        assert f(2.0, 3.0).shape == (2, 0)
