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

import sympy as sp

from lumpsim.systems.base.core.flat_system import FlatSystem
from lumpsim.systems.base.utils.symbols import D, make_parameters, make_variables


class SuspendedMass(FlatSystem):
    """
    Mass hanging from a spring and a viscous damper, written as a force balance.

    Physical System:
    ---------------
    A mass m hangs from a spring (stiffness k, rest position x_m0) and a
    damper (coefficient c) in a gravity field g. Position x_m is measured
    upward; the spring pulls the mass back towards x_m0.

    Forces:
        F_m = m·g                 (weight)
        F_k = k·(x_m0 - x_m)      (spring)
        F_c = c·v_m               (damper)
        F_i = F_k - F_c - F_m     (net force)
        F_i = m·a_m               (Newton's second law)

    Kinematics:
        v_m = dx_m/dt
        a_m = dv_m/dt

    Structural reduction:
    --------------------
    The seven equations reduce to two states (x_m, v_m):

        dx_m/dt = v_m
        dv_m/dt = (k·(x_m0 - x_m) - c·v_m - m·g) / m

    with a_m and the four forces as observed variables.

    Equilibrium:
    -----------
    x_m* = x_m0 - m·g/k (static deflection m·g/k below the rest position).

    Oscillator invariants:
    ---------------------
        ω₀ = √(k/m), ζ = c / (2√(k·m)), ω = ω₀√(1 - ζ²)

    Defaults (k=1000, m=10, c=30): ω₀ = 10 rad/s, ζ = 0.15, an underdamped
    response that settles around x_m* ≈ 0.902 m in a few seconds.

    Parameters:
    ----------
    x_m0_val : float, default=1.0
        Spring rest position [m], also the initial position
    g_val : float, default=9.81
        Gravitational acceleration [m/s²]
    k_val : float, default=1000.0
        Spring stiffness [N/m]
    m_val : float, default=10.0
        Mass [kg]
    c_val : float, default=30.0
        Damping coefficient [N·s/m]

    Initial conditions:
    ------------------
    x_m = x_m0 (an expression, so it follows x_m0 during calibration),
    v_m = 0

    Examples:
    --------
    >>> system = SuspendedMass()
    >>> system.state_names
    ['x_m', 'v_m']
    >>> problem = ODEProblem(system, tspan=(0.0, 5.0))
    >>> sol = solve(problem, saveat=0.02)
    >>> sol["F_k"][0]
    0.0
    """

    def define_system(
        self,
        x_m0_val: float = 1.0,
        g_val: float = 9.81,
        k_val: float = 1000.0,
        m_val: float = 10.0,
        c_val: float = 30.0,
    ):
        x_m, v_m, a_m, F_i, F_m, F_k, F_c = make_variables("x_m v_m a_m F_i F_m F_k F_c")
        x_m0, g, k, m, c = make_parameters("x_m0 g k m c")

        self.variables = [x_m, v_m, a_m, F_i, F_m, F_k, F_c]
        self.parameters = [x_m0, g, k, m, c]

        self.equations = [
            sp.Eq(F_i, F_k - F_c - F_m),
            sp.Eq(F_i, m * a_m),
            sp.Eq(F_m, m * g),
            sp.Eq(F_c, c * v_m),
            sp.Eq(F_k, k * (x_m0 - x_m)),
            sp.Eq(v_m, D(x_m)),
            sp.Eq(a_m, D(v_m)),
        ]

        self.defaults = {
            x_m0: x_m0_val,
            g: g_val,
            k: k_val,
            m: m_val,
            c: c_val,
            x_m: x_m0,
            v_m: 0.0,
        }

    def equilibrium_position(self, values=None) -> float:
        """
        Static equilibrium x_m0 - m·g/k for default (or given) parameters.

        Examples
        --------
        >>> SuspendedMass().equilibrium_position()
        0.9019
        """
        x_m0, g, k, m, _ = self.parameters
        return float(self.substitute_parameters(x_m0 - m * g / k, values))
