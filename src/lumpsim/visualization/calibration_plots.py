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
Calibration progress plots.

``CalibrationMonitor`` is a calibration callback that records the loss at
every iteration and can stop the optimizer once the loss falls below a
threshold. Given the problem and data, it also re-solves the model at every
iterate to track the current fit. It optionally keeps live
``go.FigureWidget`` views in sync, which update in place inside a notebook.

Examples
--------
>>> monitor = CalibrationMonitor(stop_below=1e-4)
>>> result = calibrator.fit(guess, callback=monitor)
>>> monitor.figure().write_html("loss.html")
"""

import logging
from typing import TYPE_CHECKING, List, Optional, Sequence

import numpy as np
import plotly.graph_objects as go

from lumpsim.systems.base.numerical_integration.solve import solve
from lumpsim.types.calibration import CalibrationState
from lumpsim.types.core import ArrayLike
from lumpsim.types.trajectories import SaveAt
from lumpsim.visualization.themes import ColorSchemes, PlotThemes
from lumpsim.visualization.trajectory_plotter import plot_fit

if TYPE_CHECKING:
    from lumpsim.systems.base.problem import ODEProblem

logger = logging.getLogger(__name__)


def plot_calibration_progress(
    loss_history: Sequence[float],
    log_scale: bool = True,
    title: str = "Calibration progress",
    theme: str = "default",
) -> go.Figure:
    """
    Plot loss against iteration.

    Parameters
    ----------
    loss_history : sequence of float
        Loss after each iteration
    log_scale : bool
        Use a logarithmic y-axis

    Returns
    -------
    go.Figure
        Single 'loss' line trace
    """
    losses = np.asarray(loss_history, dtype=float)
    iterations = np.arange(1, len(losses) + 1)

    fig = go.Figure()
    fig.add_trace(
        go.Scatter(
            x=iterations,
            y=losses,
            mode="lines+markers",
            name="loss",
            line=dict(color=ColorSchemes.ROLES["loss"], width=2),
            marker=dict(size=4),
        )
    )
    fig.update_layout(
        title=title,
        xaxis_title="Iteration",
        yaxis_title="Loss (MSE)",
        width=800,
        height=450,
    )
    if log_scale:
        fig.update_yaxes(type="log")
    return PlotThemes.apply_theme(fig, theme=theme)


class CalibrationMonitor:
    """
    Callback recording loss history during ``Calibrator.fit``.

    Given the calibrated problem, its save grid and the data, the monitor
    also re-solves the model at every iterate so the current fit can be
    drawn over the data while the optimizer runs.

    Parameters
    ----------
    stop_below : float, optional
        Request early termination once the loss is below this value
    live : bool
        Keep ``go.FigureWidget`` views (loss, and fit when a problem is
        given) updated after every iteration
    log_every : int
        Log progress every N iterations (0 disables logging)
    problem : ODEProblem, optional
        Problem whose tunables match the calibrator's
    saveat : float or array-like, optional
        Save grid of the data (required with ``problem``)
    data : array-like, optional
        Observed states (T, nx) (required with ``problem``)
    **solve_options
        Passed to ``solve`` for the re-simulations (method, rtol, ...)

    Examples
    --------
    >>> monitor = CalibrationMonitor(problem=calibrator.problem, saveat=0.02, data=noisy)
    >>> result = calibrator.fit(guess, callback=monitor)
    >>> monitor.fit_figure().write_html("fit_progress.html")
    """

    def __init__(
        self,
        stop_below: Optional[float] = None,
        live: bool = False,
        log_every: int = 10,
        problem: Optional["ODEProblem"] = None,
        saveat: SaveAt = None,
        data: Optional[ArrayLike] = None,
        **solve_options,
    ):
        if stop_below is not None and stop_below < 0:
            raise ValueError(f"stop_below must be non-negative, got {stop_below}")
        if problem is not None and (saveat is None or data is None):
            raise ValueError("Re-solving requires both saveat and data")

        self.stop_below = stop_below
        self.log_every = log_every
        self.problem = problem
        self.saveat = saveat
        self.data = None if data is None else np.asarray(data, dtype=float)
        self.solve_options = solve_options

        self.history: List[float] = []
        self.parameters: List[np.ndarray] = []
        self.t: Optional[np.ndarray] = None
        self.fits: List[np.ndarray] = []

        self._widget: Optional[go.FigureWidget] = None
        self._fit_widget: Optional[go.FigureWidget] = None
        if live:
            self._widget = go.FigureWidget(self.figure())

    def __call__(self, state: CalibrationState, loss: float) -> bool:
        self.history.append(float(loss))
        self.parameters.append(np.array(state["u"], dtype=float))

        if self.log_every and len(self.history) % self.log_every == 0:
            logger.info("iteration %d: loss = %.6e", len(self.history), loss)

        if self.problem is not None:
            self._resolve(state["u"])

        if self._widget is not None:
            with self._widget.batch_update():
                self._widget.data[0].x = np.arange(1, len(self.history) + 1)
                self._widget.data[0].y = self.history

        return self.stop_below is not None and loss < self.stop_below

    def _resolve(self, u):
        current = self.problem.remake(p=self.problem.replace_tunables(u))
        solution = solve(current, saveat=self.saveat, **self.solve_options)
        if not solution.success:
            logger.warning("Re-simulation at iteration %d failed: %s", len(self.history), solution.message)
            return

        self.t = solution.t
        self.fits.append(solution.u)

        if self._widget is not None and self._fit_widget is None:
            self._fit_widget = go.FigureWidget(self.fit_figure())
        elif self._fit_widget is not None:
            fitted = [trace for trace in self._fit_widget.data if trace.name == "fitted"]
            with self._fit_widget.batch_update():
                for i, trace in enumerate(fitted):
                    trace.y = solution.u[:, i]

    @property
    def widget(self) -> Optional[go.FigureWidget]:
        return self._widget

    @property
    def fit_widget(self) -> Optional[go.FigureWidget]:
        return self._fit_widget

    @property
    def current_fit(self) -> Optional[np.ndarray]:
        """Simulated states (T, nx) at the latest iterate, if re-solving."""
        return self.fits[-1] if self.fits else None

    @property
    def best_loss(self) -> float:
        """Lowest loss seen so far (inf before the first iteration)."""
        return min(self.history) if self.history else float("inf")

    def figure(self, log_scale: bool = True, theme: str = "default") -> go.Figure:
        """Static figure of the recorded history."""
        return plot_calibration_progress(self.history, log_scale=log_scale, theme=theme)

    def fit_figure(self, theme: str = "default") -> go.Figure:
        """
        Data against the fit at the latest iterate.

        Raises
        ------
        ValueError
            If the monitor has no problem or no iteration has been re-solved
        """
        if self.current_fit is None:
            raise ValueError("No fit recorded: pass problem, saveat and data and run a calibration")
        return plot_fit(
            self.t,
            self.data,
            self.current_fit,
            state_names=self.problem.system.state_names,
            title=f"Fit at iteration {len(self.history)}",
            theme=theme,
        )

    def reset(self):
        self.history = []
        self.parameters = []
        self.fits = []

    def __repr__(self) -> str:
        return (
            f"CalibrationMonitor(iterations={len(self.history)}, "
            f"stop_below={self.stop_below})"
        )
