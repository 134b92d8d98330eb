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
High-level solve entry point.

>>> sol = solve(problem, method="Tsit5", saveat=0.02)
>>> sol.retcode
'Success'
"""

import logging
from typing import TYPE_CHECKING, Optional

from lumpsim.systems.base.numerical_integration.integrator_base import (
    IntegrationError,
    IntegratorBase,
)
from lumpsim.systems.base.numerical_integration.integrator_factory import IntegratorFactory
from lumpsim.systems.base.solution import ODESolution
from lumpsim.types.trajectories import SaveAt

if TYPE_CHECKING:
    from lumpsim.systems.base.problem import ODEProblem

logger = logging.getLogger(__name__)


def solve(
    problem: "ODEProblem",
    method: Optional[str] = "Tsit5",
    saveat: SaveAt = None,
    dense_output: bool = False,
    raise_on_failure: bool = False,
    integrator: Optional[IntegratorBase] = None,
    **options,
) -> ODESolution:
    """
    Solve an ODE problem.

    Parameters
    ----------
    problem : ODEProblem
        Problem to solve
    method : str
        Integration method (see ``IntegratorFactory.list_methods()``)
    saveat : float, array-like or None
        Save step or explicit save times
    dense_output : bool
        Keep a continuous interpolant (adaptive methods)
    raise_on_failure : bool
        Raise IntegrationError instead of returning a failed solution
    integrator : IntegratorBase, optional
        Pre-built integrator; overrides ``method`` and ``options``
    **options
        Integrator options (rtol, atol, dt, max_step, ...)

    Returns
    -------
    ODESolution

    Raises
    ------
    IntegrationError
        If integration fails and ``raise_on_failure`` is True

    Examples
    --------
    >>> sol = solve(problem, saveat=0.02, rtol=1e-8, atol=1e-10)
    >>> sol = solve(problem, method="rk4", dt=1e-3, saveat=0.02)
    """
    if integrator is None:
        integrator = IntegratorFactory.create(method, **options)

    result = integrator.integrate(problem, saveat=saveat, dense_output=dense_output)
    solution = ODESolution(problem, result)

    if not solution.success:
        logger.debug("Integration with %s failed: %s", integrator.name, solution.message)
        if raise_on_failure:
            raise IntegrationError(
                f"Integration with {integrator.name} failed: {solution.message}"
            )

    return solution
