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
Numerical Integration
=====================

>>> from lumpsim.systems.base.numerical_integration import solve
>>> sol = solve(problem, method="Tsit5", saveat=0.02)

Integrators
-----------
- ScipyIntegrator: adaptive, wraps scipy.integrate.solve_ivp
- RK4Integrator, ExplicitEulerIntegrator: fixed-step
- IntegratorFactory: creation by method name (Julia-style aliases accepted)
"""

from .integrator_base import IntegrationError, IntegratorBase, StepMode, resolve_saveat
from .scipy_integrator import ScipyIntegrator
from .fixed_step_integrators import (
    ExplicitEulerIntegrator,
    FixedStepIntegrator,
    RK4Integrator,
)
from .integrator_factory import IntegratorFactory, create_integrator
from .solve import solve

__all__ = [
    "IntegratorBase",
    "IntegrationError",
    "StepMode",
    "resolve_saveat",
    "ScipyIntegrator",
    "FixedStepIntegrator",
    "ExplicitEulerIntegrator",
    "RK4Integrator",
    "IntegratorFactory",
    "create_integrator",
    "solve",
]
