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
Symbolic Validator for flat equation models.

Validates a FlatSystem definition (variables, parameters, equations and
defaults) before structural simplification runs.

This class is standalone and can validate any object with ``variables``,
``parameters``, ``equations`` and ``defaults`` attributes.
"""

import warnings
from collections import Counter
from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict, List

import numpy as np
import sympy as sp
from sympy.core.function import AppliedUndef

from lumpsim.systems.base.utils.symbols import is_variable, symbol_name, t

if TYPE_CHECKING:
    from lumpsim.systems.base.core.flat_system import FlatSystem


# ============================================================================
# Exceptions
# ============================================================================


class ValidationError(ValueError):
    """Raised when system validation fails"""
    pass


# ============================================================================
# Validation Result Container
# ============================================================================


@dataclass
class ValidationResult:
    """
    Container for validation results.

    Attributes
    ----------
    is_valid : bool
        True if system passed all validation checks
    errors : List[str]
        List of validation errors (empty if valid)
    warnings : List[str]
        List of validation warnings (non-fatal issues)
    info : Dict
        Additional information about the validated system
    """
    is_valid: bool
    errors: List[str]
    warnings: List[str]
    info: Dict


# ============================================================================
# Symbolic Validator
# ============================================================================


class SymbolicValidator:
    """
    Validates flat equation model definitions.

    Checks
    ------
    - Required attributes are present and non-empty
    - Variables are functions of ``t``, parameters are Symbols,
      equations are ``sp.Eq``
    - Equations only reference declared variables, parameters and ``t``
    - Defaults refer to declared symbols and hold finite numbers or
      parameter expressions
    - Physical parameters (mass, stiffness, damping, R, L, C) are positive
    - Names are unique across variables and parameters

    Examples
    --------
    >>> validator = SymbolicValidator(system)
    >>> result = validator.validate(raise_on_error=False)
    >>> if not result.is_valid:
    ...     print(f"Errors: {result.errors}")
    """

    POSITIVE_PARAMETERS = {"m", "mass", "k", "c", "R", "L", "C"}

    def __init__(self, system: "FlatSystem"):
        self.system = system
        self._errors: List[str] = []
        self._warnings: List[str] = []

    # ========================================================================
    # Public API
    # ========================================================================

    def validate(self, raise_on_error: bool = True) -> ValidationResult:
        """
        Validate system definition.

        Parameters
        ----------
        raise_on_error : bool
            If True, raise ValidationError on validation failure
            If False, return ValidationResult with errors

        Returns
        -------
        ValidationResult
            Validation results with errors, warnings, and info

        Raises
        ------
        ValidationError
            If validation fails and raise_on_error=True
        """
        self._errors = []
        self._warnings = []

        # Deeper checks would trip over malformed basics
        self._validate_required_attributes()
        self._validate_types()

        if len(self._errors) == 0:
            self._validate_symbols()
            self._validate_defaults()
            self._validate_parameters()
            self._validate_naming_conventions()

        is_valid = len(self._errors) == 0

        result = ValidationResult(
            is_valid=is_valid,
            errors=self._errors.copy(),
            warnings=self._warnings.copy(),
            info=self._build_info(),
        )

        if result.warnings:
            self._issue_warnings(result.warnings)

        if not is_valid and raise_on_error:
            raise ValidationError(self._format_error_message())

        return result

    # ========================================================================
    # Validation Checks
    # ========================================================================

    def _validate_required_attributes(self):
        """Check that all required attributes are present and non-empty"""
        system = self.system

        if not getattr(system, "variables", None):
            self._errors.append("variables is empty - at least one variable required")

        if not getattr(system, "equations", None):
            self._errors.append("equations is empty - at least one equation required")

        if getattr(system, "parameters", None) is None:
            self._errors.append("parameters must be a list (can be empty: [])")

        if getattr(system, "defaults", None) is None:
            self._errors.append("defaults must be a dict (can be empty: {})")

    def _validate_types(self):
        """Check that all attributes have correct types"""
        system = self.system

        for i, var in enumerate(system.variables or []):
            if not is_variable(var):
                self._errors.append(
                    f"variables[{i}] = {var} is not a function of t "
                    f"(got {type(var).__name__}). Use make_variables('x v')"
                )

        for i, par in enumerate(system.parameters or []):
            if not isinstance(par, sp.Symbol):
                self._errors.append(
                    f"parameters[{i}] = {par} is not a SymPy Symbol "
                    f"(got {type(par).__name__})"
                )

        for i, eq in enumerate(system.equations or []):
            if not isinstance(eq, sp.Equality):
                self._errors.append(
                    f"equations[{i}] = {eq} is not a sp.Eq "
                    f"(got {type(eq).__name__})"
                )

        if system.defaults is not None and not isinstance(system.defaults, dict):
            self._errors.append(
                f"defaults must be a dict, got {type(system.defaults).__name__}"
            )

    def _validate_symbols(self):
        """Check that equations only use declared symbols"""
        system = self.system
        declared_vars = set(system.variables)
        declared_pars = set(system.parameters)

        for i, eq in enumerate(system.equations):
            undeclared = eq.free_symbols - declared_pars - {t}
            if undeclared:
                self._errors.append(
                    f"Equation {i} ({eq}) uses undeclared symbols "
                    f"{sorted(str(s) for s in undeclared)}"
                )

            unknown_funcs = eq.atoms(AppliedUndef) - declared_vars
            if unknown_funcs:
                self._errors.append(
                    f"Equation {i} ({eq}) uses undeclared variables "
                    f"{sorted(str(f) for f in unknown_funcs)}"
                )

            for derivative in eq.atoms(sp.Derivative):
                if derivative.variables != (t,) or not is_variable(derivative.expr):
                    self._errors.append(
                        f"Equation {i} contains {derivative}; only first-order "
                        f"time derivatives of variables are supported. "
                        f"Introduce an intermediate variable for higher orders."
                    )

    def _validate_defaults(self):
        """Check default keys and values"""
        system = self.system
        declared = set(system.variables) | set(system.parameters)

        for key, value in system.defaults.items():
            if key not in declared:
                self._errors.append(
                    f"Default given for undeclared symbol {key}"
                )
                continue

            if isinstance(value, sp.Basic):
                free = value.free_symbols - set(system.parameters)
                if free:
                    self._errors.append(
                        f"Default for {key} = {value} depends on "
                        f"{sorted(str(s) for s in free)}; defaults may only "
                        f"reference parameters"
                    )
                continue

            if not isinstance(value, (int, float, np.number)):
                self._errors.append(
                    f"Default for {key} must be numeric or a parameter "
                    f"expression, got {type(value).__name__}"
                )
            elif not np.isfinite(value):
                self._errors.append(
                    f"Default for {key} has non-finite value: {value}"
                )

    def _validate_parameters(self):
        """Validate parameter usage and physical constraints"""
        system = self.system

        used = set()
        for eq in system.equations:
            used |= eq.free_symbols
        for value in system.defaults.values():
            if isinstance(value, sp.Basic):
                used |= value.free_symbols

        unused = [p for p in system.parameters if p not in used]
        if unused:
            self._warnings.append(
                f"Parameters {unused} are declared but not used in any equation. "
                f"Consider removing them or checking for typos."
            )

        for par in system.parameters:
            value = system.defaults.get(par)
            if value is None or isinstance(value, sp.Basic):
                continue
            if str(par) in self.POSITIVE_PARAMETERS and value <= 0:
                self._errors.append(
                    f"Physical parameter {par} = {value} should be positive. "
                    f"Negative or zero values are physically invalid."
                )

    def _validate_naming_conventions(self):
        """Check for duplicate names across variables and parameters"""
        system = self.system
        names = [symbol_name(v) for v in system.variables]
        names += [symbol_name(p) for p in system.parameters]

        counts = Counter(names)
        duplicates = [name for name, count in counts.items() if count > 1]
        if duplicates:
            self._errors.append(
                f"Duplicate names found: {duplicates}. "
                f"Each variable and parameter must have a unique name."
            )

        if "t" in counts:
            self._errors.append("The name 't' is reserved for the independent variable")

    # ========================================================================
    # Info Building
    # ========================================================================

    def _build_info(self) -> Dict:
        """Build info dictionary with system characteristics."""
        system = self.system
        info = {}
        if getattr(system, "variables", None) is not None:
            info["num_variables"] = len(system.variables)
        if getattr(system, "parameters", None) is not None:
            info["num_parameters"] = len(system.parameters)
        if getattr(system, "equations", None) is not None:
            info["num_equations"] = len(system.equations)
        return info

    # ========================================================================
    # Helper Methods
    # ========================================================================

    def _issue_warnings(self, warnings_list: List[str]):
        """Issue Python warnings for validation warnings"""
        for warning in warnings_list:
            warnings.warn(f"System validation warning: {warning}", UserWarning)

    def _format_error_message(self) -> str:
        """Format error messages in a readable way"""
        msg = "System validation failed:\n\n"
        msg += "Errors:\n"
        msg += "\n".join(f"  • {error}" for error in self._errors)

        if self._warnings:
            msg += "\n\nWarnings:\n"
            msg += "\n".join(f"  • {warning}" for warning in self._warnings)

        msg += "\n\n" + "=" * 70
        msg += "\nCOMMON FIXES:"
        msg += "\n  1. Declare variables with make_variables(), parameters with make_parameters()"
        msg += "\n  2. Write equations as sp.Eq(lhs, rhs), derivatives as D(x)"
        msg += "\n  3. List every symbol used in the equations in variables or parameters"
        msg += "\n" + "=" * 70
        return msg

    @staticmethod
    def validate_system(system: "FlatSystem", raise_on_error: bool = True) -> ValidationResult:
        """
        Static convenience method for one-off validation.

        Examples
        --------
        >>> result = SymbolicValidator.validate_system(my_system, raise_on_error=False)
        """
        return SymbolicValidator(system).validate(raise_on_error=raise_on_error)

    def __repr__(self) -> str:
        return f"SymbolicValidator(system={type(self.system).__name__})"
