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
Integrator Factory - Unified Interface for Creating Numerical Integrators

Creates the appropriate integrator from a method name. Solver names from
the DifferentialEquations.jl family are accepted and mapped to the closest
scipy method, so scripts can keep the familiar ``method="Tsit5"``.

Examples
--------
>>> integrator = IntegratorFactory.create("Tsit5", rtol=1e-8)
>>> integrator.name
'scipy.RK45'
>>> integrator = IntegratorFactory.create("rk4", dt=0.001)
"""

import logging
from typing import Dict, List, Optional

from lumpsim.systems.base.numerical_integration.fixed_step_integrators import (
    ExplicitEulerIntegrator,
    RK4Integrator,
)
from lumpsim.systems.base.numerical_integration.integrator_base import IntegratorBase
from lumpsim.systems.base.numerical_integration.scipy_integrator import ScipyIntegrator
from lumpsim.types.core import ScalarLike

logger = logging.getLogger(__name__)


class IntegratorFactory:
    """
    Factory for creating numerical integrators.

    Supports:
    - Scipy: LSODA, RK45, RK23, DOP853, Radau, BDF
    - Julia-style aliases: Tsit5, Vern6-9, DP5, DP8, BS3, Rosenbrock23,
      Rodas4/5, RadauIIA5, TRBDF2, KenCarp3-5, AutoTsit5(...)
    - Manual fixed-step: euler, rk4 (require dt)
    """

    DEFAULT_METHOD = "Tsit5"

    _SCIPY_METHODS = ["RK45", "RK23", "DOP853", "Radau", "BDF", "LSODA"]

    _FIXED_STEP_METHODS = {
        "euler": ExplicitEulerIntegrator,
        "rk4": RK4Integrator,
    }

    # Julia-style names → scipy method with comparable order/stiffness handling
    _METHOD_ALIASES = {
        "Tsit5": "RK45",
        "tsit5": "RK45",
        "DP5": "RK45",
        "dopri5": "RK45",
        "BS3": "RK23",
        "bosh3": "RK23",
        "Vern6": "DOP853",
        "Vern7": "DOP853",
        "Vern8": "DOP853",
        "Vern9": "DOP853",
        "DP8": "DOP853",
        "dopri8": "DOP853",
        "Rosenbrock23": "Radau",
        "Rosenbrock32": "Radau",
        "Rodas4": "Radau",
        "Rodas4P": "Radau",
        "Rodas5": "Radau",
        "RadauIIA5": "Radau",
        "TRBDF2": "BDF",
        "KenCarp3": "Radau",
        "KenCarp4": "Radau",
        "KenCarp5": "Radau",
        "AutoTsit5(Rosenbrock23())": "LSODA",
        "AutoVern7(Rodas5())": "LSODA",
        "RK4": "rk4",
        "Euler": "euler",
    }

    @classmethod
    def normalize_method(cls, method: Optional[str]) -> str:
        """
        Map a method name to a scipy or fixed-step method.

        Raises
        ------
        ValueError
            If the method is unknown

        Examples
        --------
        >>> IntegratorFactory.normalize_method("Vern9")
        'DOP853'
        >>> IntegratorFactory.normalize_method("Radau")
        'Radau'
        """
        if method is None:
            method = cls.DEFAULT_METHOD

        if method in cls._SCIPY_METHODS or method in cls._FIXED_STEP_METHODS:
            return method

        if method in cls._METHOD_ALIASES:
            return cls._METHOD_ALIASES[method]

        raise ValueError(
            f"Unknown integration method '{method}'. "
            f"Choose from: {cls.list_methods()}"
        )

    @classmethod
    def create(
        cls,
        method: Optional[str] = None,
        dt: Optional[ScalarLike] = None,
        **options,
    ) -> IntegratorBase:
        """
        Create an integrator.

        Parameters
        ----------
        method : str, optional
            Method name (default: 'Tsit5' → scipy RK45)
        dt : float, optional
            Fixed step (required for 'euler'/'rk4'), initial guess otherwise
        **options
            rtol, atol, max_step, first_step, max_steps

        Examples
        --------
        >>> integrator = IntegratorFactory.create("Rodas5")
        >>> integrator.method
        'Radau'
        """
        resolved = cls.normalize_method(method)
        if method is not None and resolved != method:
            logger.debug("Integration method '%s' mapped to '%s'", method, resolved)

        if resolved in cls._FIXED_STEP_METHODS:
            if dt is None:
                raise ValueError(f"Fixed-step method '{resolved}' requires dt")
            return cls._FIXED_STEP_METHODS[resolved](dt, **options)

        return ScipyIntegrator(method=resolved, dt=dt, **options)

    @classmethod
    def list_methods(cls) -> List[str]:
        """All accepted method names."""
        return cls._SCIPY_METHODS + list(cls._FIXED_STEP_METHODS) + list(cls._METHOD_ALIASES)

    @classmethod
    def get_info(cls, method: str) -> Dict[str, str]:
        """
        Describe how a method name is handled.

        Examples
        --------
        >>> IntegratorFactory.get_info("Tsit5")
        {'method': 'Tsit5', 'resolved': 'RK45', 'type': 'adaptive'}
        """
        resolved = cls.normalize_method(method)
        kind = "fixed" if resolved in cls._FIXED_STEP_METHODS else "adaptive"
        return {"method": method, "resolved": resolved, "type": kind}


def create_integrator(method: Optional[str] = None, **options) -> IntegratorBase:
    """
    Convenience function for creating integrators.

    Alias for IntegratorFactory.create().
    """
    return IntegratorFactory.create(method, **options)
