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
Symbol helpers for flat models.

Provides the shared independent variable ``t``, the time-derivative
operator ``D`` and small factories for declaring time-dependent variables
and parameters:

>>> x, v = make_variables("x v")
>>> m, k = make_parameters("m k")
>>> eq = sp.Eq(D(x), v)
"""

from typing import List, Tuple, Union

import sympy as sp
from sympy.core.function import AppliedUndef

t = sp.Symbol("t", real=True)
"""Independent variable (time) shared by every model."""


def D(expr: sp.Expr) -> sp.Derivative:
    """First time derivative d(expr)/dt."""
    return sp.Derivative(expr, t)


def make_variables(names: Union[str, List[str]]) -> Tuple[sp.Expr, ...]:
    """
    Declare time-dependent variables ``name(t)``.

    Parameters
    ----------
    names : str or list of str
        Space- or comma-separated names, or a list of names

    Returns
    -------
    tuple
        Applied functions of ``t`` (always a tuple, even for one name)

    Examples
    --------
    >>> x_m, v_m = make_variables("x_m v_m")
    >>> x_m
    x_m(t)
    """
    if isinstance(names, str):
        names = names.replace(",", " ").split()
    return tuple(sp.Function(name, real=True)(t) for name in names)


def make_parameters(names: Union[str, List[str]], **assumptions) -> Tuple[sp.Symbol, ...]:
    """
    Declare parameter symbols (real by default).

    Examples
    --------
    >>> m, k, c = make_parameters("m k c")
    """
    if isinstance(names, str):
        names = names.replace(",", " ").split()
    assumptions.setdefault("real", True)
    return tuple(sp.Symbol(name, **assumptions) for name in names)


def is_variable(expr: sp.Basic) -> bool:
    """True if ``expr`` is an undefined function applied to ``t`` only."""
    return isinstance(expr, AppliedUndef) and expr.args == (t,)


def symbol_name(expr: sp.Basic) -> str:
    """
    Name used to refer to a variable or parameter by string.

    Variables ``x(t)`` are named ``'x'``; symbols by their own name.
    """
    if isinstance(expr, AppliedUndef):
        return expr.func.__name__
    return str(expr)
