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
Trajectory Plotting

Plotly figures for simulated solutions and calibration fits.

Examples
--------
>>> plotter = TrajectoryPlotter(default_theme="publication")
>>> fig = plotter.plot_variables(sol, ["x_m", "v_m"], title="Suspended mass")
>>> fig.write_html("states.html")

Module-level shortcuts use a default plotter:

>>> fig = plot_dynamics_and_forces(sol)
>>> fig = plot_fit(sol.t, noisy, fitted_sol.u, ideal=sol.u, state_names=["x_m", "v_m"])
"""

from typing import Dict, List, Optional, Sequence

import numpy as np
import plotly.graph_objects as go
from plotly.subplots import make_subplots

from lumpsim.systems.base.solution import ODESolution
from lumpsim.systems.base.utils.symbols import symbol_name
from lumpsim.types.core import ArrayLike, SymbolKey
from lumpsim.visualization.themes import ColorSchemes, PlotThemes, hex_to_rgba


class TrajectoryPlotter:
    """
    Plotter for ODE solutions and fits.

    Parameters
    ----------
    default_theme : str
        Theme applied to every figure ('default', 'publication', 'dark')
    color_scheme : str, optional
        Palette for variable traces (default: the theme's ``color_scheme``)
    """

    def __init__(self, default_theme: str = "default", color_scheme: Optional[str] = None):
        self.default_theme = default_theme
        self.color_scheme = color_scheme

    def _colors(self, n: int, theme: Optional[str]) -> List[str]:
        scheme = self.color_scheme
        if scheme is None:
            scheme = PlotThemes.get_theme(theme or self.default_theme).get("color_scheme", "plotly")
        return ColorSchemes.get_colors(scheme, n_colors=n)

    # =========================================================================
    # Solutions
    # =========================================================================

    def plot_variables(
        self,
        solution: ODESolution,
        variables: Optional[Sequence[SymbolKey]] = None,
        title: str = "Simulation",
        yaxis_title: str = "Value",
        theme: Optional[str] = None,
    ) -> go.Figure:
        """
        Plot variables of a solution against time in one panel.

        Parameters
        ----------
        solution : ODESolution
            Solved problem
        variables : list, optional
            Variables (objects or names), default: the states
        title : str
            Figure title

        Returns
        -------
        go.Figure
            One line trace per variable, named after the variable
        """
        if variables is None:
            variables = solution.system.states
        resolved = [solution.system.resolve_variable(v) for v in variables]
        values = solution[resolved]
        colors = self._colors(len(resolved), theme)

        fig = go.Figure()
        for var, row, color in zip(resolved, values, colors):
            fig.add_trace(
                go.Scatter(
                    x=solution.t,
                    y=row,
                    mode="lines",
                    name=symbol_name(var),
                    line=dict(color=color, width=2),
                )
            )

        fig.update_layout(
            title=title,
            xaxis_title="Time (s)",
            yaxis_title=yaxis_title,
            width=900,
            height=450,
            showlegend=True,
        )
        return PlotThemes.apply_theme(fig, theme=theme or self.default_theme)

    def plot_panels(
        self,
        solution: ODESolution,
        panels: Dict[str, Sequence[SymbolKey]],
        title: str = "Simulation",
        theme: Optional[str] = None,
    ) -> go.Figure:
        """
        Stacked panels sharing the time axis, one per group of variables.

        Parameters
        ----------
        solution : ODESolution
            Solved problem
        panels : dict
            Panel title → variables shown in that panel

        Examples
        --------
        >>> fig = plotter.plot_panels(
        ...     sol, {"Currents": ["i_L", "i_R", "i_C"], "Voltages": ["ΔV", "v_L", "v_R", "v_C"]}
        ... )
        """
        if not panels:
            raise ValueError("At least one panel is required")

        n_rows = len(panels)
        fig = make_subplots(
            rows=n_rows,
            cols=1,
            shared_xaxes=True,
            subplot_titles=list(panels),
            vertical_spacing=0.1,
        )

        for row, group in enumerate(panels.values(), start=1):
            resolved = [solution.system.resolve_variable(v) for v in group]
            values = solution[resolved]
            colors = self._colors(len(resolved), theme)
            for var, y, color in zip(resolved, values, colors):
                fig.add_trace(
                    go.Scatter(
                        x=solution.t,
                        y=y,
                        mode="lines",
                        name=symbol_name(var),
                        line=dict(color=color, width=2),
                        legendgroup=f"panel{row}",
                    ),
                    row=row,
                    col=1,
                )

        fig.update_xaxes(title_text="Time (s)", row=n_rows, col=1)
        fig.update_layout(title=title, width=900, height=350 * n_rows, showlegend=True)
        return PlotThemes.apply_theme(fig, theme=theme or self.default_theme)

    def plot_panel_grid(
        self,
        solutions: Dict[str, ODESolution],
        panels: Dict[str, Sequence[SymbolKey]],
        title: str = "Simulation",
        theme: Optional[str] = None,
    ) -> go.Figure:
        """
        One row per solution, one column per group of variables.

        Cells in a column share the y axis range so rows compare directly.
        Subplot titles read '<solution label> <panel title>'.

        Parameters
        ----------
        solutions : dict
            Row label → solution (e.g. reference and fitted runs of one model)
        panels : dict
            Column title → variables shown in that column

        Raises
        ------
        ValueError
            If either mapping is empty
        """
        if not solutions or not panels:
            raise ValueError("At least one solution and one panel are required")

        n_rows, n_cols = len(solutions), len(panels)
        titles = [f"{label} {panel}".strip() for label in solutions for panel in panels]
        fig = make_subplots(
            rows=n_rows,
            cols=n_cols,
            shared_xaxes=True,
            shared_yaxes="columns",
            subplot_titles=titles,
            vertical_spacing=0.1,
        )

        for row, solution in enumerate(solutions.values(), start=1):
            for col, group in enumerate(panels.values(), start=1):
                resolved = [solution.system.resolve_variable(v) for v in group]
                colors = self._colors(len(resolved), theme)
                for var, y, color in zip(resolved, solution[resolved], colors):
                    fig.add_trace(
                        go.Scatter(
                            x=solution.t,
                            y=y,
                            mode="lines",
                            name=symbol_name(var),
                            line=dict(color=color, width=2),
                            legendgroup=symbol_name(var),
                            showlegend=row == 1,
                        ),
                        row=row,
                        col=col,
                    )

        fig.update_xaxes(title_text="Time (s)", row=n_rows)
        fig.update_layout(title=title, width=550 * n_cols, height=350 * n_rows, showlegend=True)
        return PlotThemes.apply_theme(fig, theme=theme or self.default_theme)

    def plot_dynamics_and_forces(
        self,
        solution: ODESolution,
        dynamics: Sequence[SymbolKey] = ("x_m", "v_m", "a_m"),
        forces: Sequence[SymbolKey] = ("F_i", "F_m", "F_k", "F_c"),
        title: str = "Dynamics and forces",
        theme: Optional[str] = None,
        compare: Optional[ODESolution] = None,
        labels: Sequence[str] = ("Reference", "Fitted"),
    ) -> go.Figure:
        """
        Kinematic variables and forces of a solution.

        Without ``compare``: two stacked panels, dynamics on top and forces
        below. With ``compare`` (e.g. the re-simulation with fitted
        parameters): a 2x2 grid, one row per solution labelled by
        ``labels``, dynamics left and forces right.

        Defaults match the SuspendedMass variable names.
        """
        panels = {"Dynamics": dynamics, "Forces": forces}
        if compare is None:
            fig = self.plot_panels(solution, panels, title=title, theme=theme)
            fig.update_yaxes(title_text="Force (N)", row=2, col=1)
            return fig

        fig = self.plot_panel_grid(
            dict(zip(labels, (solution, compare))), panels, title=title, theme=theme
        )
        fig.update_yaxes(title_text="Force (N)", col=2, row=1)
        return fig

    # =========================================================================
    # Fits
    # =========================================================================

    def plot_fit(
        self,
        t: ArrayLike,
        data: ArrayLike,
        fitted: ArrayLike,
        ideal: Optional[ArrayLike] = None,
        state_names: Optional[Sequence[str]] = None,
        title: str = "Calibration fit",
        theme: Optional[str] = None,
    ) -> go.Figure:
        """
        Compare noisy data, the fitted simulation and (optionally) the ideal one.

        Parameters
        ----------
        t : array-like
            Time points (T,)
        data : array-like
            Noisy observations (T, nx)
        fitted : array-like
            Simulation with fitted parameters (T, nx)
        ideal : array-like, optional
            Noise-free simulation (T, nx)
        state_names : list of str, optional
            One subplot title per state

        Returns
        -------
        go.Figure
            One row per state with 'data' markers and 'fitted'/'ideal' lines

        Raises
        ------
        ValueError
            If array shapes disagree
        """
        t = np.asarray(t, dtype=float)
        data = np.atleast_2d(np.asarray(data, dtype=float).T).T
        fitted = np.atleast_2d(np.asarray(fitted, dtype=float).T).T

        if data.shape != fitted.shape or data.shape[0] != len(t):
            raise ValueError(
                f"Shapes disagree: t {t.shape}, data {data.shape}, fitted {fitted.shape}"
            )
        if ideal is not None:
            ideal = np.atleast_2d(np.asarray(ideal, dtype=float).T).T
            if ideal.shape != data.shape:
                raise ValueError(f"ideal has shape {ideal.shape}, expected {data.shape}")

        nx = data.shape[1]
        if state_names is None:
            state_names = [f"x{i}" for i in range(nx)]

        fig = make_subplots(
            rows=nx,
            cols=1,
            shared_xaxes=True,
            subplot_titles=list(state_names),
            vertical_spacing=0.08,
        )

        roles = ColorSchemes.ROLES
        for i in range(nx):
            first = i == 0
            fig.add_trace(
                go.Scatter(
                    x=t,
                    y=data[:, i],
                    mode="markers",
                    name="data",
                    marker=dict(color=hex_to_rgba(roles["noisy"], 0.6), size=4),
                    legendgroup="data",
                    showlegend=first,
                ),
                row=i + 1,
                col=1,
            )
            if ideal is not None:
                fig.add_trace(
                    go.Scatter(
                        x=t,
                        y=ideal[:, i],
                        mode="lines",
                        name="ideal",
                        line=dict(color=roles["ideal"], width=2, dash="dash"),
                        legendgroup="ideal",
                        showlegend=first,
                    ),
                    row=i + 1,
                    col=1,
                )
            fig.add_trace(
                go.Scatter(
                    x=t,
                    y=fitted[:, i],
                    mode="lines",
                    name="fitted",
                    line=dict(color=roles["fitted"], width=2),
                    legendgroup="fitted",
                    showlegend=first,
                ),
                row=i + 1,
                col=1,
            )

        fig.update_xaxes(title_text="Time (s)", row=nx, col=1)
        fig.update_layout(title=title, width=900, height=300 * nx + 100, showlegend=True)
        return PlotThemes.apply_theme(fig, theme=theme or self.default_theme)


_default_plotter = TrajectoryPlotter()


def plot_variables(
    solution: ODESolution,
    variables: Optional[Sequence[SymbolKey]] = None,
    title: str = "Simulation",
    **kwargs,
) -> go.Figure:
    """Shortcut for ``TrajectoryPlotter().plot_variables``."""
    return _default_plotter.plot_variables(solution, variables, title=title, **kwargs)


def plot_dynamics_and_forces(solution: ODESolution, **kwargs) -> go.Figure:
    """Shortcut for ``TrajectoryPlotter().plot_dynamics_and_forces``."""
    return _default_plotter.plot_dynamics_and_forces(solution, **kwargs)


def plot_fit(
    t: ArrayLike,
    data: ArrayLike,
    fitted: ArrayLike,
    ideal: Optional[ArrayLike] = None,
    **kwargs,
) -> go.Figure:
    """Shortcut for ``TrajectoryPlotter().plot_fit``."""
    return _default_plotter.plot_fit(t, data, fitted, ideal=ideal, **kwargs)


def plot_panels(solution: ODESolution, panels: Dict[str, Sequence[SymbolKey]], **kwargs) -> go.Figure:
    """Shortcut for ``TrajectoryPlotter().plot_panels``."""
    return _default_plotter.plot_panels(solution, panels, **kwargs)


def plot_panel_grid(
    solutions: Dict[str, ODESolution], panels: Dict[str, Sequence[SymbolKey]], **kwargs
) -> go.Figure:
    """Shortcut for ``TrajectoryPlotter().plot_panel_grid``."""
    return _default_plotter.plot_panel_grid(solutions, panels, **kwargs)
