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
Parameter Calibration

Fits the tunable parameters of an ODEProblem to data by minimizing the
mean squared error with ``scipy.optimize.minimize``.

Gradients
---------
- 'sensitivity': exact gradients from the forward sensitivity equations
  (one augmented integration per evaluation)
- 'finite-difference': scipy's own finite-difference approximation

Failed simulations (e.g. a parameter combination that makes the solver
give up) are logged and scored with a large finite penalty, so line
searches back off instead of aborting the fit.

Example
-------
>>> calibrator = Calibrator(problem, noisy, saveat=0.02, lower=lb, upper=ub)
>>> result = calibrator.fit(guess=[1.0, 9.81, 100.0, 30.0, 1.0])
>>> fitted = calibrator.fitted_problem(result)
"""

import logging
import time
from typing import Callable, Optional, Sequence, Tuple

import numpy as np
from scipy.optimize import OptimizeResult, minimize

from lumpsim.calibration.loss import check_data_shape, mse_loss, mse_loss_and_gradient
from lumpsim.systems.base.numerical_integration import (
    IntegrationError,
    IntegratorFactory,
)
from lumpsim.systems.base.problem import ODEProblem
from lumpsim.types.calibration import CalibrationResult, CalibrationState
from lumpsim.types.core import ArrayLike, SymbolKey
from lumpsim.types.trajectories import SaveAt

logger = logging.getLogger(__name__)

CalibrationCallback = Callable[[CalibrationState, float], Optional[bool]]


class Calibrator:
    """
    Least-squares calibration of ODE parameters.

    Parameters
    ----------
    problem : ODEProblem
        Problem providing the model, initial conditions and fixed parameters
    data : array-like
        Observed states (T, nx) on the ``saveat`` grid
    saveat : float or array-like
        Save grid used for simulation
    tunables : list, optional
        Parameters to fit, by symbol or name (default: problem.tunables)
    lower, upper : array-like, optional
        Bounds, one entry per tunable
    method : str
        ``scipy.optimize.minimize`` method (default: 'L-BFGS-B')
    gradient : str
        'sensitivity' or 'finite-difference'
    integrator_method : str
        Integration method for simulations (default: 'Tsit5')
    rtol, atol : float
        Integration tolerances

    Raises
    ------
    ValueError
        On mismatched data, bounds, unknown gradient strategy, or bounds
        passed to a method that cannot handle them
    """

    PENALTY = 1e10

    BOUNDED_METHODS = {"L-BFGS-B", "TNC", "SLSQP", "Powell", "Nelder-Mead", "trust-constr"}
    GRADIENT_FREE_METHODS = {"Powell", "Nelder-Mead"}
    GRADIENTS = ("sensitivity", "finite-difference")

    # Methods whose iteration limit goes by another option name
    ITERATION_OPTIONS = {"TNC": "maxfun"}

    def __init__(
        self,
        problem: ODEProblem,
        data: ArrayLike,
        saveat: SaveAt,
        tunables: Optional[Sequence[SymbolKey]] = None,
        lower: Optional[ArrayLike] = None,
        upper: Optional[ArrayLike] = None,
        method: str = "L-BFGS-B",
        gradient: str = "sensitivity",
        integrator_method: str = "Tsit5",
        rtol: float = 1e-8,
        atol: float = 1e-10,
    ):
        if tunables is not None:
            problem = problem.remake(tunables=tunables)
        self.problem = problem
        self.saveat = saveat
        self.data = check_data_shape(problem, data, saveat)

        if gradient not in self.GRADIENTS:
            raise ValueError(f"Unknown gradient '{gradient}'. Choose from: {list(self.GRADIENTS)}")
        self.gradient = gradient
        self.method = method

        self.lower, self.upper = self._validate_bounds(lower, upper)
        if self.lower is not None and method not in self.BOUNDED_METHODS:
            raise ValueError(
                f"Method '{method}' does not support bounds. "
                f"Use one of {sorted(self.BOUNDED_METHODS)} or drop the bounds."
            )

        self.integrator = IntegratorFactory.create(integrator_method, rtol=rtol, atol=atol)

        self.loss_history = []
        self.n_failures = 0
        self.n_evaluations = 0
        self._last_x: Optional[np.ndarray] = None
        self._last_loss: Optional[float] = None

    # ========================================================================
    # Validation
    # ========================================================================

    @property
    def n_tunables(self) -> int:
        return len(self.problem.tunables)

    def _validate_bounds(self, lower, upper) -> Tuple[Optional[np.ndarray], Optional[np.ndarray]]:
        if lower is None and upper is None:
            return None, None

        n = self.n_tunables
        lower = np.full(n, -np.inf) if lower is None else np.asarray(lower, dtype=float).reshape(-1)
        upper = np.full(n, np.inf) if upper is None else np.asarray(upper, dtype=float).reshape(-1)

        if lower.size != n or upper.size != n:
            raise ValueError(
                f"Bounds must have one entry per tunable ({n}: {self.problem.tunable_names}), "
                f"got lower={lower.size}, upper={upper.size}"
            )
        if np.any(lower > upper):
            bad = [self.problem.tunable_names[i] for i in np.flatnonzero(lower > upper)]
            raise ValueError(f"Lower bound exceeds upper bound for {bad}")
        return lower, upper

    def _validate_guess(self, guess: Optional[ArrayLike]) -> np.ndarray:
        x0 = self.problem.tunable_values() if guess is None else np.asarray(guess, dtype=float).reshape(-1)

        if x0.size != self.n_tunables:
            raise ValueError(
                f"Guess has {x0.size} entries, expected {self.n_tunables} "
                f"for tunables {self.problem.tunable_names}"
            )
        if not np.all(np.isfinite(x0)):
            raise ValueError(f"Guess contains non-finite values: {x0}")
        if self.lower is not None:
            outside = (x0 < self.lower) | (x0 > self.upper)
            if np.any(outside):
                names = [self.problem.tunable_names[i] for i in np.flatnonzero(outside)]
                raise ValueError(f"Guess lies outside the bounds for {names}")
        return x0

    # ========================================================================
    # Objective
    # ========================================================================

    def loss(self, x: ArrayLike) -> float:
        """MSE loss at tunables ``x``; failed simulations give ``PENALTY``."""
        try:
            value = mse_loss(self.problem, x, self.data, self.saveat, integrator=self.integrator)
        except IntegrationError as e:
            self.n_failures += 1
            logger.warning("Simulation failed at %s: %s", np.array2string(np.asarray(x), precision=4), e)
            value = self.PENALTY
        self._remember(x, value)
        return value

    def loss_and_gradient(self, x: ArrayLike) -> Tuple[float, np.ndarray]:
        """MSE loss and sensitivity gradient at ``x``."""
        try:
            value, grad = mse_loss_and_gradient(
                self.problem, x, self.data, self.saveat, integrator=self.integrator
            )
        except IntegrationError as e:
            self.n_failures += 1
            logger.warning("Sensitivity simulation failed at %s: %s", np.array2string(np.asarray(x), precision=4), e)
            value, grad = self.PENALTY, np.zeros(self.n_tunables)
        self._remember(x, value)
        return value, grad

    def _remember(self, x, value):
        self.n_evaluations += 1
        self._last_x = np.array(x, dtype=float)
        self._last_loss = value

    def _loss_at(self, x: np.ndarray) -> float:
        if self._last_x is not None and np.array_equal(x, self._last_x):
            return self._last_loss
        return self.loss(x)

    # ========================================================================
    # Fitting
    # ========================================================================

    def fit(
        self,
        guess: Optional[ArrayLike] = None,
        callback: Optional[CalibrationCallback] = None,
        maxiter: int = 1000,
        **options,
    ) -> CalibrationResult:
        """
        Run the optimizer.

        Parameters
        ----------
        guess : array-like, optional
            Initial tunable values (default: current problem values)
        callback : callable, optional
            ``callback(state, loss)`` after every iteration; return True to
            stop early
        maxiter : int
            Maximum number of optimizer iterations (function evaluations
            for TNC, which has no iteration limit)
        **options
            Extra ``scipy.optimize.minimize`` options

        Returns
        -------
        CalibrationResult

        Examples
        --------
        >>> def stop_when_good(state, loss):
        ...     return loss < 1e-4
        >>> result = calibrator.fit(guess, callback=stop_when_good)
        """
        x0 = self._validate_guess(guess)
        self.loss_history = []
        self.n_failures = 0
        self.n_evaluations = 0

        initial_loss = self.loss(x0)
        logger.info(
            "Calibrating %s with %s (%s gradient), initial loss %.6e",
            self.problem.tunable_names,
            self.method,
            self.gradient,
            initial_loss,
        )

        iteration = {"count": 0}
        stopped = {"flag": False}
        last = {"x": x0.copy(), "loss": initial_loss}

        def scipy_callback(xk, *args):
            iteration["count"] += 1
            current = self._loss_at(np.asarray(xk, dtype=float))
            last["x"], last["loss"] = np.array(xk, dtype=float), current
            self.loss_history.append(current)
            logger.debug("Iteration %d: loss %.6e", iteration["count"], current)

            if callback is not None:
                state: CalibrationState = {
                    "u": np.array(xk, dtype=float),
                    "iteration": iteration["count"],
                    "loss": current,
                }
                if callback(state, current):
                    stopped["flag"] = True
                    raise StopIteration

        if self.method in self.GRADIENT_FREE_METHODS:
            fun, jac = self.loss, None
        elif self.gradient == "sensitivity":
            fun, jac = self.loss_and_gradient, True
        else:
            fun, jac = self.loss, None

        bounds = None
        if self.lower is not None:
            bounds = [
                (None if np.isinf(lo) else lo, None if np.isinf(hi) else hi)
                for lo, hi in zip(self.lower, self.upper)
            ]

        limit = self.ITERATION_OPTIONS.get(self.method, "maxiter")

        start = time.time()
        try:
            opt = minimize(
                fun,
                x0,
                jac=jac,
                method=self.method,
                bounds=bounds,
                callback=scipy_callback,
                options={limit: maxiter, **options},
            )
        except StopIteration:
            # TNC lets a callback's StopIteration escape minimize
            if not stopped["flag"]:
                raise
            opt = OptimizeResult(
                x=last["x"],
                fun=last["loss"],
                success=True,
                message="Stopped by callback",
                nit=iteration["count"],
                nfev=self.n_evaluations,
            )
        elapsed = time.time() - start

        u = np.asarray(opt.x, dtype=float)
        final_loss = float(opt.fun)
        message = "Stopped by callback" if stopped["flag"] else str(opt.message)

        result: CalibrationResult = {
            "u": u,
            "tunables": list(self.problem.tunable_names),
            "parameters": dict(zip(self.problem.system.parameters, self.problem.replace_tunables(u))),
            "loss": final_loss,
            "initial_loss": initial_loss,
            "loss_history": list(self.loss_history),
            "success": bool(opt.success) or stopped["flag"],
            "message": message,
            "nit": int(getattr(opt, "nit", iteration["count"])),
            "nfev": int(getattr(opt, "nfev", 0)),
            "njev": int(getattr(opt, "njev", 0)),
            "solver": f"scipy.{self.method}",
            "gradient": "none" if self.method in self.GRADIENT_FREE_METHODS else self.gradient,
            "optimization_time": elapsed,
        }

        logger.info(
            "Calibration finished after %d iterations in %.2fs: loss %.6e (%s)",
            result["nit"],
            elapsed,
            final_loss,
            message,
        )
        if self.n_failures:
            logger.warning("%d simulations failed during calibration", self.n_failures)

        return result

    def fitted_problem(self, result: CalibrationResult) -> ODEProblem:
        """Problem with the fitted tunables substituted."""
        return self.problem.remake(p=self.problem.replace_tunables(result["u"]))

    def __repr__(self) -> str:
        return (
            f"Calibrator(tunables={self.problem.tunable_names}, method='{self.method}', "
            f"gradient='{self.gradient}')"
        )
