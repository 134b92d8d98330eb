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
Low-level SymPy → NumPy code generation.

Thin wrappers around ``sympy.lambdify`` that fix the output shape of the
generated callables:

- ``generate_numpy_function``: vector output, shape (n,)
- ``generate_matrix_function``: matrix output, shape (rows, cols)
- ``generate_vectorized_function``: one row per expression evaluated over
  a whole time grid, shape (n, T)
- ``generate_jacobian_function``: symbolic Jacobian compiled to a matrix
  function

Piecewise expressions (e.g. switched sources) are translated to
``numpy.select`` by lambdify and therefore work with both scalar and
array arguments.
"""

from typing import Callable, List, Sequence, Union

import numpy as np
import sympy as sp


def _numpy_min(*args):
    """
    Handle SymPy Min for NumPy backend.

    SymPy's Min can take arbitrary number of arguments: Min(x, y, z)
    NumPy's np.minimum only takes 2 arguments.

    Examples:
        >>> _numpy_min(1, 2, 3)
        1
    """
    if len(args) == 0:
        raise ValueError("Min requires at least one argument")
    result = args[0]
    for arg in args[1:]:
        result = np.minimum(result, arg)
    return result


def _numpy_max(*args):
    """
    Handle SymPy Max for NumPy backend.

    Examples:
        >>> _numpy_max(np.array([1, 2]), np.array([3, 0]))
        array([3, 2])
    """
    if len(args) == 0:
        raise ValueError("Max requires at least one argument")
    result = args[0]
    for arg in args[1:]:
        result = np.maximum(result, arg)
    return result


SYMPY_TO_NUMPY_LAMBDIFY = {
    "Min": _numpy_min,
    "Max": _numpy_max,
}


def _as_expr_list(expr: Union[sp.Expr, Sequence[sp.Expr], sp.MatrixBase]) -> List[sp.Expr]:
    """Flatten a scalar, list or column/row Matrix into a list of expressions."""
    if isinstance(expr, sp.MatrixBase):
        return list(expr)
    if isinstance(expr, (list, tuple)):
        return list(expr)
    return [expr]


def _lambdify(expr, symbols: Sequence[sp.Symbol]) -> Callable:
    return sp.lambdify(list(symbols), expr, modules=[SYMPY_TO_NUMPY_LAMBDIFY, "numpy"])


def generate_numpy_function(
    expr: Union[sp.Expr, Sequence[sp.Expr], sp.MatrixBase],
    symbols: Sequence[sp.Symbol],
) -> Callable:
    """
    Generate a NumPy function from SymPy expression(s).

    Args:
        expr: SymPy expression, list, or column Matrix
        symbols: Input symbols in order

    Returns:
        Callable taking scalar arguments in ``symbols`` order

    Return Type Convention:
        All functions return float 1D arrays, even for scalar expressions:
        - Scalar expr: returns shape (1,)
        - Vector expr: returns shape (n,)

    Examples:
        >>> x, y = sp.symbols('x y')
        >>> f = generate_numpy_function([x + y, x * y], [x, y])
        >>> f(2.0, 3.0)
        array([5., 6.])
    """
    exprs = _as_expr_list(expr)
    func = _lambdify(exprs, symbols)

    def wrapped_func(*args):
        return np.asarray(func(*args), dtype=float).reshape(-1)

    return wrapped_func


def generate_matrix_function(
    expr: sp.MatrixBase,
    symbols: Sequence[sp.Symbol],
) -> Callable:
    """
    Generate a NumPy function returning a 2D array.

    Empty matrices (e.g. a Jacobian with respect to zero parameters) produce
    a function returning ``np.zeros(shape)``.

    Examples:
        >>> x, y = sp.symbols('x y')
        >>> J = sp.Matrix([[x, 1], [0, y]])
        >>> generate_matrix_function(J, [x, y])(2.0, 3.0)
        array([[2., 1.],
               [0., 3.]])
    """
    rows, cols = expr.shape
    if rows == 0 or cols == 0:
        return lambda *args: np.zeros((rows, cols))

    nested = [[expr[i, j] for j in range(cols)] for i in range(rows)]
    func = _lambdify(nested, symbols)

    def wrapped_func(*args):
        return np.asarray(func(*args), dtype=float).reshape(rows, cols)

    return wrapped_func


def generate_vectorized_function(
    expr: Union[Sequence[sp.Expr], sp.MatrixBase],
    symbols: Sequence[sp.Symbol],
) -> Callable:
    """
    Generate a function evaluating expressions over a grid of points.

    Arguments may be arrays of a common length T (or scalars). Every
    expression result is broadcast to (T,), so constant expressions such
    as ``m*g`` still produce a full row.

    Returns:
        Callable returning an array of shape (n_expr, T)

    Examples:
        >>> t, m = sp.symbols('t m')
        >>> f = generate_vectorized_function([m * t, m], [t, m])
        >>> f(np.array([0.0, 1.0, 2.0]), 2.0)
        array([[0., 2., 4.],
               [2., 2., 2.]])
    """
    exprs = _as_expr_list(expr)
    func = _lambdify(exprs, symbols)

    def wrapped_func(*args):
        n_points = max((np.size(a) for a in args), default=1)
        if not exprs:
            return np.zeros((0, n_points))
        values = func(*args)
        return np.vstack(
            [np.broadcast_to(np.asarray(v, dtype=float), (n_points,)) for v in values]
        )

    return wrapped_func


def generate_jacobian_function(
    expr: Union[Sequence[sp.Expr], sp.MatrixBase],
    symbols: Sequence[sp.Symbol],
    wrt_symbols: Sequence[sp.Symbol],
) -> Callable:
    """
    Compute a Jacobian symbolically, then compile it.

    Args:
        expr: Expressions to differentiate (column vector)
        symbols: All input symbols in order
        wrt_symbols: Symbols to differentiate with respect to

    Returns:
        Matrix function of shape (len(expr), len(wrt_symbols))
    """
    matrix = sp.Matrix(_as_expr_list(expr))
    if len(wrt_symbols) == 0:
        jacobian = sp.zeros(matrix.shape[0], 0)
    else:
        jacobian = matrix.jacobian(list(wrt_symbols))
    return generate_matrix_function(jacobian, symbols)
