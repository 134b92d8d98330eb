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
Visualization
=============

Plotly figures for simulations and calibrations.

>>> from lumpsim.visualization import plot_fit, CalibrationMonitor
"""

from .themes import ColorSchemes, PlotThemes, hex_to_rgba
from .trajectory_plotter import (
    TrajectoryPlotter,
    plot_dynamics_and_forces,
    plot_fit,
    plot_panel_grid,
    plot_panels,
    plot_variables,
)
from .calibration_plots import CalibrationMonitor, plot_calibration_progress

__all__ = [
    "ColorSchemes",
    "PlotThemes",
    "hex_to_rgba",
    "TrajectoryPlotter",
    "plot_variables",
    "plot_dynamics_and_forces",
    "plot_fit",
    "plot_panels",
    "plot_panel_grid",
    "plot_calibration_progress",
    "CalibrationMonitor",
]
