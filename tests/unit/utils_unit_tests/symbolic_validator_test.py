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
Unit tests for SymbolicValidator

Tests cover:
1. Valid definitions
2. Required attributes and types
3. Undeclared symbols and unsupported derivatives
4. Defaults (keys, values, parameter expressions)
5. Physical parameter constraints and unused-parameter warnings
6. Naming conventions
"""

import warnings
from types import SimpleNamespace

import numpy as np
import pytest
import sympy as sp

from lumpsim.systems.base.utils.symbolic_validator import (
    SymbolicValidator,
    ValidationError,
    ValidationResult,
)
from lumpsim.systems.base.utils.symbols import D, make_parameters, make_variables, t


def make_system(variables, parameters, equations, defaults):
    return SimpleNamespace(
        variables=variables, parameters=parameters, equations=equations, defaults=defaults
    )


@pytest.fixture
def oscillator():
    x, v = make_variables("x v")
    (k,) = make_parameters("k")
    return make_system(
        [x, v],
        [k],
        [sp.Eq(D(x), v), sp.Eq(D(v), -k * x)],
        {k: 1.0, x: 1.0, v: 0.0},
    )


def validate(system):
    return SymbolicValidator(system).validate(raise_on_error=False)


# ============================================================================
# Valid systems
# ============================================================================


class TestValidSystem:
    def test_valid_system_passes(self, oscillator):
        result = validate(oscillator)
        assert isinstance(result, ValidationResult)
        assert result.is_valid
        assert result.errors == []
        assert result.info == {"num_variables": 2, "num_parameters": 1, "num_equations": 2}

    def test_raise_on_error_returns_result_when_valid(self, oscillator):
        result = SymbolicValidator(oscillator).validate(raise_on_error=True)
        assert result.is_valid

    def test_static_helper(self, oscillator):
        assert SymbolicValidator.validate_system(oscillator).is_valid

    def test_parameter_expression_default_is_valid(self):
        (x,) = make_variables("x")
        k, x0 = make_parameters("k x0")
        system = make_system([x], [k, x0], [sp.Eq(D(x), -k * x)], {k: 1.0, x0: 2.0, x: x0})
        assert validate(system).is_valid


# ============================================================================
# Attributes and types
# ============================================================================


class TestAttributesAndTypes:
    def test_empty_variables_and_equations(self):
        result = validate(make_system([], [], [], {}))
        assert not result.is_valid
        assert any("variables is empty" in e for e in result.errors)
        assert any("equations is empty" in e for e in result.errors)

    def test_variable_must_be_function_of_t(self):
        x = sp.Symbol("x")
        result = validate(make_system([x], [], [sp.Eq(x, 1)], {}))
        assert any("is not a function of t" in e for e in result.errors)

    def test_equation_must_be_eq(self):
        (x,) = make_variables("x")
        result = validate(make_system([x], [], [D(x) - 1], {}))
        assert any("is not a sp.Eq" in e for e in result.errors)

    def test_defaults_must_be_dict(self, oscillator):
        oscillator.defaults = [1.0]
        result = validate(oscillator)
        assert any("defaults must be a dict" in e for e in result.errors)


# ============================================================================
# Symbols and derivatives
# ============================================================================


class TestSymbols:
    def test_undeclared_symbol(self, oscillator):
        b = sp.Symbol("b")
        x, v = oscillator.variables
        oscillator.equations[1] = sp.Eq(D(v), -b * x)
        result = validate(oscillator)
        assert any("undeclared symbols" in e and "'b'" in e for e in result.errors)

    def test_undeclared_variable(self, oscillator):
        (y,) = make_variables("y")
        x, v = oscillator.variables
        oscillator.equations[0] = sp.Eq(D(x), y)
        result = validate(oscillator)
        assert any("undeclared variables" in e for e in result.errors)

    def test_second_derivative_rejected(self, oscillator):
        x, v = oscillator.variables
        oscillator.equations[1] = sp.Eq(sp.Derivative(x, (t, 2)), -v)
        result = validate(oscillator)
        assert any("first-order" in e for e in result.errors)


# ============================================================================
# Defaults
# ============================================================================


class TestDefaults:
    def test_undeclared_default_key(self, oscillator):
        oscillator.defaults[sp.Symbol("z")] = 1.0
        result = validate(oscillator)
        assert any("undeclared symbol z" in e for e in result.errors)

    def test_default_referencing_variable(self, oscillator):
        x, v = oscillator.variables
        oscillator.defaults[x] = v
        result = validate(oscillator)
        assert any("may only reference parameters" in e for e in result.errors)

    def test_non_finite_default(self, oscillator):
        x, _ = oscillator.variables
        oscillator.defaults[x] = np.nan
        result = validate(oscillator)
        assert any("non-finite" in e for e in result.errors)

    def test_non_numeric_default(self, oscillator):
        x, _ = oscillator.variables
        oscillator.defaults[x] = "one"
        result = validate(oscillator)
        assert any("must be numeric" in e for e in result.errors)


# ============================================================================
# Parameters
# ============================================================================


class TestParameters:
    def test_negative_mass_rejected(self):
        x, v = make_variables("x v")
        (m,) = make_parameters("m")
        system = make_system(
            [x, v], [m], [sp.Eq(D(x), v), sp.Eq(m * D(v), -x)], {m: -1.0, x: 0.0, v: 0.0}
        )
        result = validate(system)
        assert any("should be positive" in e for e in result.errors)

    def test_unused_parameter_warns(self, oscillator):
        oscillator.parameters.append(sp.Symbol("unused", real=True))
        oscillator.defaults[oscillator.parameters[-1]] = 1.0
        with pytest.warns(UserWarning, match="System validation warning"):
            result = validate(oscillator)
        assert result.is_valid
        assert len(result.warnings) == 1

    def test_no_warning_when_all_used(self, oscillator):
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            validate(oscillator)


# ============================================================================
# Naming
# ============================================================================


class TestNaming:
    def test_duplicate_names(self):
        (x,) = make_variables("x")
        x_par = sp.Symbol("x", real=True)
        system = make_system([x], [x_par], [sp.Eq(D(x), -x_par * x)], {x_par: 1.0, x: 1.0})
        result = validate(system)
        assert any("Duplicate names" in e for e in result.errors)

    def test_reserved_t(self):
        (x,) = make_variables("x")
        t_par = sp.Symbol("t", real=True)
        system = make_system([x], [t_par], [sp.Eq(D(x), -t_par * x)], {t_par: 1.0, x: 1.0})
        result = validate(system)
        assert any("reserved" in e for e in result.errors)


# ============================================================================
# Error reporting
# ============================================================================


class TestErrorReporting:
    def test_raises_validation_error(self, oscillator):
        oscillator.defaults[sp.Symbol("z")] = 1.0
        with pytest.raises(ValidationError, match="System validation failed"):
            SymbolicValidator(oscillator).validate()

    def test_validation_error_is_value_error(self):
        assert issubclass(ValidationError, ValueError)

    def test_message_lists_common_fixes(self, oscillator):
        oscillator.defaults[sp.Symbol("z")] = 1.0
        with pytest.raises(ValidationError) as excinfo:
            SymbolicValidator(oscillator).validate()
        assert "COMMON FIXES" in str(excinfo.value)
