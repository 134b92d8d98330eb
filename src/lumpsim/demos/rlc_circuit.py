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
RLC Circuit Demo

Step response of a series inductor feeding a parallel RC load. The source
switches from 0 to V after t_on; the circuit settles at v_C = V and
i_L = i_R = V / R.

Usage
-----
lumpsim-rlc --output-dir figures
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from lumpsim.config import RLCConfig
from lumpsim.demos.suspended_mass import write_figures
from lumpsim.logging_config import setup_logging
from lumpsim.systems import ODEProblem, RLCCircuit, solve
from lumpsim.visualization import plot_panels

logger = logging.getLogger(__name__)

CURRENTS = ("i_L", "i_R", "i_C")
VOLTAGES = ("ΔV", "v_L", "v_R", "v_C")


def run_rlc_demo(config: Optional[RLCConfig] = None, output_dir: Optional[Path] = None) -> Dict[str, Any]:
    """
    Solve the RLC step response and plot currents and voltages.

    Returns
    -------
    dict
        'system', 'problem', 'solution', 'final_values' (name → value at
        tf for every variable), 'figures' and 'written'
    """
    config = config or RLCConfig()
    sim = config.simulation

    system = RLCCircuit(V=config.V, t_on=config.t_on)
    logger.info(
        "Reduced %d equations to states %s", len(system.equations), system.state_names
    )

    problem = ODEProblem(system, tspan=sim.tspan, p=config.parameters)
    solution = solve(
        problem,
        method=sim.method,
        saveat=sim.saveat,
        raise_on_failure=True,
        rtol=sim.rtol,
        atol=sim.atol,
    )

    final_values = {name: float(values[-1]) for name, values in solution.to_dict().items() if name != "t"}
    logger.info(
        "t = %.2f s: i_L = %.4f A, v_C = %.4f V",
        solution.t[-1],
        final_values["i_L"],
        final_values["v_C"],
    )

    figures = {
        "rlc_currents_voltages": plot_panels(
            solution,
            {"Currents": CURRENTS, "Voltages": VOLTAGES},
            title="RLC step response",
        )
    }
    written = write_figures(figures, output_dir) if output_dir is not None else []

    return {
        "system": system,
        "problem": problem,
        "solution": solution,
        "final_values": final_values,
        "figures": figures,
        "written": written,
    }


def main(argv: Optional[List[str]] = None) -> int:
    defaults = RLCConfig()
    p = argparse.ArgumentParser(prog="lumpsim-rlc", description="Simulate an RLC step response.")
    p.add_argument("--output-dir", type=Path, default=None, help="Directory for HTML figures")
    p.add_argument("--voltage", type=float, default=defaults.V, help="Source voltage after switching")
    p.add_argument("--t-on", type=float, default=defaults.t_on, help="Switching time [s]")
    p.add_argument("--method", default=defaults.simulation.method, help="Integration method")
    p.add_argument("--log-level", default="INFO", help="Logging level (DEBUG, INFO, ...)")
    p.add_argument("--log-file", default=None, help="Also write logs to this file")
    args = p.parse_args(argv)

    setup_logging(args.log_level, args.log_file)

    config = defaults.with_overrides(
        V=args.voltage,
        t_on=args.t_on,
        simulation=defaults.simulation.with_overrides(method=args.method),
    )
    run_rlc_demo(config, output_dir=args.output_dir)
    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
