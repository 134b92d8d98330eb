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
from lumpsim.systems.base.utils.symbols import D, make_parameters, make_variables, t


class RLCCircuit(FlatSystem):
    """
    Switched voltage source driving an inductor in series with a parallel RC pair.

    Circuit:
    -------
    A step source ΔV feeds an inductor L; the inductor current splits into a
    resistor R and a capacitor C connected in parallel.

        ΔV(t) = 0 for t ≤ t_on, V afterwards

    Equations (KCL/KVL and element laws):
        i_L = i_R + i_C
        ΔV - v_L = v_R
        v_R = v_C
        v_R = i_R·R
        v_L = L·di_L/dt
        i_C = C·dv_C/dt

    States after reduction: i_L (inductor current) and v_C (capacitor
    voltage):

        di_L/dt = (ΔV(t) - v_C) / L
        dv_C/dt = (i_L - v_C/R) / C

    The remaining five variables are observed. With the defaults the
    circuit is underdamped (ζ = √(L/C)/(2R) ≈ 0.16, ω₀ = 1/√(LC) ≈ 31.6 rad/s)
    and settles at v_C = V, i_L = V/R.

    Parameters:
    ----------
    R_val : float, default=100.0
        Resistance [Ω]
    L_val : float, default=1.0
        Inductance [H]
    C_val : float, default=0.001
        Capacitance [F]
    V : float, default=32.0
        Source voltage after switching [V]
    t_on : float, default=1.0
        Switching time [s]

    V and t_on define the source waveform and are not calibratable
    parameters.

    Examples:
    --------
    >>> circuit = RLCCircuit()
    >>> problem = ODEProblem(circuit, tspan=(0.5, 2.5))
    >>> sol = solve(problem, saveat=0.005)
    >>> sol["ΔV"][-1]
    32.0
    """

    def define_system(
        self,
        R_val: float = 100.0,
        L_val: float = 1.0,
        C_val: float = 0.001,
        V: float = 32.0,
        t_on: float = 1.0,
    ):
        delta_V, v_L, i_L, v_R, i_R, v_C, i_C = make_variables("ΔV v_L i_L v_R i_R v_C i_C")
        R, L, C = make_parameters("R L C")

        self.V = float(V)
        self.t_on = float(t_on)

        self.variables = [delta_V, v_L, i_L, v_R, i_R, v_C, i_C]
        self.parameters = [R, L, C]

        source = sp.Piecewise((0, t <= self.t_on), (self.V, True))

        self.equations = [
            sp.Eq(delta_V, source),
            sp.Eq(i_L, i_R + i_C),
            sp.Eq(delta_V - v_L, v_R),
            sp.Eq(v_R, v_C),
            sp.Eq(v_R, i_R * R),
            sp.Eq(v_L, L * D(i_L)),
            sp.Eq(i_C, C * D(v_C)),
        ]

        self.defaults = {R: R_val, L: L_val, C: C_val}
        self.defaults.update({var: 0.0 for var in self.variables})
