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
Trajectory and Integration Result Types

Defines types for time series data produced by simulation:
- Time arrays, spans and save grids
- State trajectories
- Raw integration results (TypedDict)

Shape Convention
----------------
Time-major ordering everywhere:
- t: (T,)
- x: (T, nx)

``ODESolution.to_array()`` offers the transposed (nx, T) layout for
code that prefers one row per variable.
"""

from typing import Any, Optional, Sequence, Tuple, Union

from typing_extensions import TypedDict

from .core import ArrayLike, ScalarLike

# ============================================================================
# Time Types
# ============================================================================

TimePoints = ArrayLike
"""
Time points (T,), monotonically increasing.

Examples
--------
>>> t: TimePoints = np.arange(0.0, 5.0 + 0.02, 0.02)
"""

TimeSpan = Tuple[ScalarLike, ScalarLike]
"""
Integration interval (t_start, t_end).

Examples
--------
>>> tspan: TimeSpan = (0.0, 5.0)
"""

SaveAt = Union[None, ScalarLike, Sequence[ScalarLike]]
"""
Requested output grid:
- None: solver-chosen points
- scalar: uniform step from t_start (t_end included when on the grid)
- sequence: explicit time points
"""

StateTrajectory = ArrayLike
"""
State trajectory (T, nx); ``trajectory[:, i]`` is the i-th state over time.
"""

# ============================================================================
# Integration Results
# ============================================================================


class IntegrationResult(TypedDict, total=False):
    """
    Result from a single ODE solve.

    Attributes
    ----------
    t : ArrayLike
        Time points (T,)
    x : ArrayLike
        State trajectory (T, nx) - time-major ordering
    success : bool
        Whether integration succeeded
    message : str
        Status message
    nfev : int
        Number of right-hand side evaluations
    nsteps : int
        Number of integration steps
    integration_time : float
        Computation time in seconds
    solver : str
        Name of solver used

    Optional Fields
    ---------------
    njev : int
        Number of Jacobian evaluations
    nlu : int
        Number of LU decompositions
    status : int
        Solver-specific status code
    sol : Any
        Dense output object (solver-specific)
    dense_output : bool
        Whether dense output is available

    Examples
    --------
    >>> result: IntegrationResult = integrator.integrate(problem, saveat=0.02)
    >>> t, x = result["t"], result["x"]
    >>> if not result["success"]:
    ...     print(result["message"])
    """

    t: ArrayLike
    x: ArrayLike
    success: bool
    message: str
    nfev: int
    nsteps: int
    integration_time: float
    solver: str
    njev: int
    nlu: int
    status: int
    sol: Optional[Any]
    dense_output: bool


__all__ = [
    "TimePoints",
    "TimeSpan",
    "SaveAt",
    "StateTrajectory",
    "IntegrationResult",
]
